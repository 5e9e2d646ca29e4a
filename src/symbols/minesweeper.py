"""Minesweeper numbers: neighbouring cells that lie in a different region."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional, Sequence

from board.geometry import CELL_COUNT, Cell, edges_from_path
from board.regions import build_cell_regions
from board.rng import pick, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng, pick_target_count
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#8f939b"


@dataclass(frozen=True)
class MinesweeperTarget:
    cell: Cell
    value: int
    color: str = DEFAULT_COLOR


def _neighbours(cell: Cell):
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            nx, ny = cell.x + dx, cell.y + dy
            if 0 <= nx < CELL_COUNT and 0 <= ny < CELL_COUNT:
                yield Cell(nx, ny)


def count_separated_neighbours(regions: Mapping[Cell, int], cell: Cell) -> int:
    own = regions[cell]
    return sum(1 for other in _neighbours(cell) if regions[other] != own)


def collect_failing_minesweeper(view: BoardView, targets: Sequence[MinesweeperTarget]) -> FrozenSet[int]:
    return frozenset(
        index
        for index, target in enumerate(targets)
        if count_separated_neighbours(view.regions, target.cell) != target.value
    )


def generate_minesweeper(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    regions = build_cell_regions(edges_from_path(path))
    candidates = [(cell, count_separated_neighbours(regions, cell)) for cell in ctx.free_cells()]
    candidates = [item for item in candidates if item[1] <= 7]

    count = pick_target_count(rng, len(candidates), ctx.active_count <= 2, (1, 7), (1, 4))
    if count == 0:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(
        MinesweeperTarget(cell, value, pick(palette, rng)) for cell, value in shuffle(candidates, rng)[:count]
    )
    return Placement(targets, path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[MinesweeperTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 101)
    cell = pick(cells, rng)
    actual = count_separated_neighbours(view.regions, cell)
    limit = min(7, len(list(_neighbours(cell))))
    wrong = [value for value in range(limit + 1) if value != actual]
    return MinesweeperTarget(cell, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.MINESWEEPER,
        family="region-count",
        target_type=MinesweeperTarget,
        generate=generate_minesweeper,
        collect_failing=collect_failing_minesweeper,
        decoy=_decoy,
    )
)
