"""Spinners: every path segment on the cell's sides turns the same way round."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

from board.geometry import Cell, GridPoint
from board.rng import pick, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#39ff14"
CLOCKWISE = "clockwise"
COUNTERCLOCKWISE = "counterclockwise"


@dataclass(frozen=True)
class SpinnerTarget:
    cell: Cell
    direction: str
    color: str = DEFAULT_COLOR


def traversal_direction(a: GridPoint, b: GridPoint, cell: Cell) -> Optional[str]:
    """Rotation sense of segment ``a -> b`` around *cell*, or ``None`` when it is not a side."""

    if a[0] == b[0]:
        if min(a[1], b[1]) != cell.y:
            return None
        if a[0] == cell.x:
            return CLOCKWISE if a[1] > b[1] else COUNTERCLOCKWISE
        if a[0] == cell.x + 1:
            return CLOCKWISE if a[1] < b[1] else COUNTERCLOCKWISE
        return None
    if min(a[0], b[0]) != cell.x:
        return None
    if a[1] == cell.y:
        return CLOCKWISE if a[0] < b[0] else COUNTERCLOCKWISE
    if a[1] == cell.y + 1:
        return CLOCKWISE if a[0] > b[0] else COUNTERCLOCKWISE
    return None


def count_traversals(path: Sequence[GridPoint], cell: Cell) -> Tuple[int, int]:
    clockwise = counterclockwise = 0
    for a, b in zip(path, path[1:]):
        sense = traversal_direction(a, b, cell)
        if sense == CLOCKWISE:
            clockwise += 1
        elif sense == COUNTERCLOCKWISE:
            counterclockwise += 1
    return clockwise, counterclockwise


def satisfied_direction(path: Sequence[GridPoint], cell: Cell) -> Optional[str]:
    clockwise, counterclockwise = count_traversals(path, cell)
    if clockwise and not counterclockwise:
        return CLOCKWISE
    if counterclockwise and not clockwise:
        return COUNTERCLOCKWISE
    return None


def collect_failing_spinners(view: BoardView, targets: Sequence[SpinnerTarget]) -> FrozenSet[int]:
    return frozenset(
        index for index, target in enumerate(targets) if satisfied_direction(view.path, target.cell) != target.direction
    )


def generate_spinners(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    candidates = []
    for cell in ctx.free_cells():
        direction = satisfied_direction(path, cell)
        if direction is not None:
            candidates.append((cell, direction))

    count = pick_target_count(rng, len(candidates), ctx.active_count <= 2, (2, 6), (1, 4))
    if count == 0:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(
        SpinnerTarget(cell, direction, pick(palette, rng)) for cell, direction in shuffle(candidates, rng)[:count]
    )
    return Placement(targets, path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[SpinnerTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 107)
    cell = pick(cells, rng)
    actual = satisfied_direction(view.path, cell)
    direction = COUNTERCLOCKWISE if actual == CLOCKWISE else CLOCKWISE
    return SpinnerTarget(cell, direction, pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.SPINNER,
        family="edge-count",
        target_type=SpinnerTarget,
        generate=generate_spinners,
        collect_failing=collect_failing_spinners,
        decoy=_decoy,
    )
)
