"""Chevrons: same-region cells along the ray from the chevron's cell."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from board.geometry import CELL_COUNT, Cell, edges_from_path
from board.regions import build_cell_regions
from board.rng import pick, shuffle

from .common import DIRECTION_VECTORS, EIGHT_DIRECTIONS, BoardView, Placement, PlacementContext, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#ff4c00"


@dataclass(frozen=True)
class ChevronTarget:
    cell: Cell
    direction: str
    count: int
    color: str = DEFAULT_COLOR


def count_region_cells_along(regions: Mapping[Cell, int], cell: Cell, direction: str) -> int:
    dx, dy = DIRECTION_VECTORS[direction]
    source = regions[cell]
    x, y = cell.x + dx, cell.y + dy
    matches = 0
    while 0 <= x < CELL_COUNT and 0 <= y < CELL_COUNT:
        if regions[Cell(x, y)] == source:
            matches += 1
        x += dx
        y += dy
    return matches


def collect_failing_chevrons(view: BoardView, targets: Sequence[ChevronTarget]) -> FrozenSet[int]:
    return frozenset(
        index
        for index, target in enumerate(targets)
        if count_region_cells_along(view.regions, target.cell, target.direction) != target.count
    )


def generate_chevrons(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    regions = build_cell_regions(edges_from_path(path))
    options: Dict[Cell, List[Tuple[str, int]]] = {}
    for cell in ctx.free_cells():
        for direction in EIGHT_DIRECTIONS:
            count = count_region_cells_along(regions, cell, direction)
            if 1 <= count <= 3:
                options.setdefault(cell, []).append((direction, count))

    count = pick_target_count(rng, len(options), ctx.active_count <= 2, (3, 8), (1, 5))
    if count == 0:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = []
    for cell in shuffle(list(options), rng)[:count]:
        direction, matches = pick(options[cell], rng)
        targets.append(ChevronTarget(cell, direction, matches, pick(palette, rng)))
    return Placement(tuple(targets), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[ChevronTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 97)
    cell = pick(cells, rng)
    direction = pick(EIGHT_DIRECTIONS, rng)
    actual = count_region_cells_along(view.regions, cell, direction)
    wrong = [count for count in (1, 2, 3) if count != actual]
    return ChevronTarget(cell, direction, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.CHEVRONS,
        family="ray",
        target_type=ChevronTarget,
        generate=generate_chevrons,
        collect_failing=collect_failing_chevrons,
        decoy=_decoy,
    )
)
