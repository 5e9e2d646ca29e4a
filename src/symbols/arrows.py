"""Arrows: how many times the path crosses the ray from the cell centre.

Cardinal arrows count path segments cut by the ray; diagonal arrows count
path points lying exactly on the diagonal.  Coordinates are doubled so the
cell centre ``(x + 0.5, y + 0.5)`` stays integral.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from board.geometry import Cell, GridPoint
from board.rng import pick, shuffle

from .common import DIRECTION_VECTORS, EIGHT_DIRECTIONS, BoardView, Placement, PlacementContext, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#a855f7"


@dataclass(frozen=True)
class ArrowTarget:
    cell: Cell
    direction: str
    count: int
    color: str = DEFAULT_COLOR


def _cardinal_crossings(path: Sequence[GridPoint], cell: Cell, dx: int, dy: int) -> int:
    crossings = 0
    for a, b in zip(path, path[1:]):
        if a[0] == b[0] and dx and min(a[1], b[1]) == cell.y:
            if (dx > 0 and a[0] > cell.x) or (dx < 0 and a[0] <= cell.x):
                crossings += 1
        elif a[1] == b[1] and dy and min(a[0], b[0]) == cell.x:
            if (dy > 0 and a[1] > cell.y) or (dy < 0 and a[1] <= cell.y):
                crossings += 1
    return crossings


def _diagonal_crossings(path: Sequence[GridPoint], cell: Cell, dx: int, dy: int) -> int:
    cx, cy = 2 * cell.x + 1, 2 * cell.y + 1
    crossings = 0
    for point in path:
        offset_x = 2 * point[0] - cx
        offset_y = 2 * point[1] - cy
        if offset_x * dx > 0 and offset_y * dy > 0 and abs(offset_x) == abs(offset_y):
            crossings += 1
    return crossings


def count_arrow_crossings(path: Sequence[GridPoint], cell: Cell, direction: str) -> int:
    dx, dy = DIRECTION_VECTORS[direction]
    if dx and dy:
        return _diagonal_crossings(path, cell, dx, dy)
    return _cardinal_crossings(path, cell, dx, dy)


def collect_failing_arrows(view: BoardView, targets: Sequence[ArrowTarget]) -> FrozenSet[int]:
    return frozenset(
        index
        for index, target in enumerate(targets)
        if count_arrow_crossings(view.path, target.cell, target.direction) != target.count
    )


def generate_arrows(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    options: Dict[Cell, List[Tuple[str, int]]] = {}
    for cell in ctx.free_cells():
        for direction in EIGHT_DIRECTIONS:
            crossings = count_arrow_crossings(path, cell, direction)
            if 1 <= crossings <= 4:
                options.setdefault(cell, []).append((direction, crossings))

    count = pick_target_count(rng, len(options), ctx.active_count <= 2, (2, 8), (1, 5))
    if count == 0:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = []
    for cell in shuffle(list(options), rng)[:count]:
        direction, crossings = pick(options[cell], rng)
        targets.append(ArrowTarget(cell, direction, crossings, pick(palette, rng)))
    return Placement(tuple(targets), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[ArrowTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 89)
    cell = pick(cells, rng)
    direction = pick(EIGHT_DIRECTIONS, rng)
    actual = count_arrow_crossings(view.path, cell, direction)
    wrong = [count for count in (1, 2, 3, 4) if count != actual]
    return ArrowTarget(cell, direction, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.ARROWS,
        family="ray",
        target_type=ArrowTarget,
        generate=generate_arrows,
        collect_failing=collect_failing_arrows,
        decoy=_decoy,
    )
)
