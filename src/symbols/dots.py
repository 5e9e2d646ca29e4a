"""Dots: how many of the cell's corners the path passes through."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, List, Optional, Sequence, Tuple

from board.geometry import Cell, GridPoint, cell_corners
from board.rng import pick, shuffle

from .common import BoardView, Placement, PlacementContext, draw_weighted, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#f4eb2f"

_LOW_SET_WEIGHTS = {1: 5.0, 2: 3.0, 3: 0.9, 4: 0.35}
_CROWDED_WEIGHTS = {1: 8.0, 2: 4.5, 3: 0.28, 4: 0.08}


@dataclass(frozen=True)
class DotTarget:
    cell: Cell
    count: int
    color: str = DEFAULT_COLOR


def touched_corners(points: AbstractSet[GridPoint], cell: Cell) -> int:
    return sum(1 for corner in cell_corners(cell) if corner in points)


def collect_failing_dots(view: BoardView, targets: Sequence[DotTarget]) -> FrozenSet[int]:
    return frozenset(
        index for index, target in enumerate(targets) if touched_corners(view.path_points, target.cell) != target.count
    )


def _cap_high_counts(selected: List[Tuple[Cell, int]], remaining: List[Tuple[Cell, int]], low_set: bool, rng) -> None:
    """Swap most three- and four-corner dots for low ones."""

    if low_set:
        allowed = 2 if len(selected) >= 7 else 1 if len(selected) >= 4 else 0
        if allowed and rng() < 0.35:
            allowed -= 1
    else:
        allowed = 1 if len(selected) >= 4 or rng() < 0.2 else 0

    used = 0
    low_pool = shuffle([item for item in remaining if item[1] <= 2], rng)
    for index, (_, count) in enumerate(selected):
        if count <= 2:
            continue
        if used < allowed:
            used += 1
            continue
        if low_pool:
            selected[index] = low_pool.pop()


def generate_dots(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    points = frozenset(path)
    candidates = []
    for cell in ctx.free_cells():
        touched = touched_corners(points, cell)
        if touched >= 1:
            candidates.append((cell, touched))

    low_set = ctx.active_count <= 2
    count = pick_target_count(rng, len(candidates), low_set, (3, 9), (1, 5))
    if count == 0:
        return None
    weights = _LOW_SET_WEIGHTS if low_set else _CROWDED_WEIGHTS
    selected = draw_weighted(candidates, count, lambda item: weights[item[1]], rng)
    remaining = [item for item in candidates if item not in selected]
    _cap_high_counts(selected, remaining, low_set, rng)

    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(DotTarget(cell, touched, pick(palette, rng)) for cell, touched in selected)
    return Placement(targets, path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[DotTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 73)
    cell = pick(cells, rng)
    actual = touched_corners(view.path_points, cell)
    wrong = [count for count in (1, 2, 3, 4) if count != actual]
    return DotTarget(cell, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.DOTS,
        family="edge-count",
        target_type=DotTarget,
        generate=generate_dots,
        collect_failing=collect_failing_dots,
        decoy=_decoy,
    )
)
