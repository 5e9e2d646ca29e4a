"""Diamonds: how many times the path bends on the cell's corners."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence

from board.geometry import Cell, GridPoint, cell_corners
from board.rng import pick

from .common import BoardView, Placement, PlacementContext, draw_weighted, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#9fbc00"

_CROWDED_WEIGHTS = {1: 4.0, 2: 2.6, 3: 1.2, 4: 0.6}


@dataclass(frozen=True)
class DiamondTarget:
    cell: Cell
    count: int
    color: str = DEFAULT_COLOR


def corner_bends(path: Sequence[GridPoint], cell: Cell) -> int:
    corners = set(cell_corners(cell))
    bends = 0
    for i in range(1, len(path) - 1):
        point = path[i]
        if point not in corners:
            continue
        before = (point[0] - path[i - 1][0], point[1] - path[i - 1][1])
        after = (path[i + 1][0] - point[0], path[i + 1][1] - point[1])
        if before != after:
            bends += 1
    return bends


def collect_failing_diamonds(view: BoardView, targets: Sequence[DiamondTarget]) -> FrozenSet[int]:
    return frozenset(
        index for index, target in enumerate(targets) if corner_bends(view.path, target.cell) != target.count
    )


def generate_diamonds(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    candidates = []
    for cell in ctx.free_cells():
        bends = corner_bends(path, cell)
        if bends >= 1:
            candidates.append((cell, bends))

    low_set = ctx.active_count <= 2
    count = pick_target_count(rng, len(candidates), low_set, (3, 9), (1, 5))
    if count == 0:
        return None
    if low_set:
        selected = draw_weighted(candidates, count, lambda item: 1.0, rng)
    else:
        selected = draw_weighted(candidates, count, lambda item: _CROWDED_WEIGHTS[item[1]], rng)
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(DiamondTarget(cell, bends, pick(palette, rng)) for cell, bends in selected)
    return Placement(targets, path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[DiamondTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 79)
    cell = pick(cells, rng)
    actual = corner_bends(view.path, cell)
    wrong = [count for count in (1, 2, 3, 4) if count != actual]
    return DiamondTarget(cell, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.DIAMONDS,
        family="edge-count",
        target_type=DiamondTarget,
        generate=generate_diamonds,
        collect_failing=collect_failing_diamonds,
        decoy=_decoy,
    )
)
