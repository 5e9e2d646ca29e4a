"""Colour squares: a region may hold squares of one colour only."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from board.geometry import Cell, edges_from_path
from board.regions import build_cell_regions, group_regions
from board.rng import pick, rand_int, shuffle

from .common import COLOR_PALETTE, BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

_ATTEMPTS = 60


@dataclass(frozen=True)
class ColorSquare:
    cell: Cell
    color: str


def collect_failing_color_squares(view: BoardView, targets: Sequence[ColorSquare]) -> FrozenSet[int]:
    """Every square in a region that mixes colours."""

    colors: Dict[int, Set[str]] = {}
    for square in targets:
        colors.setdefault(view.regions[square.cell], set()).add(square.color)
    return frozenset(
        index for index, square in enumerate(targets) if len(colors[view.regions[square.cell]]) > 1
    )


def _square_counts(rng, color_count: int, crowded: bool) -> List[int]:
    per_color = 2 if color_count == 2 else 1
    minimum = color_count * per_color
    if crowded:
        base = (5 if color_count == 2 else 6) + rand_int(rng, 4)
    else:
        base = 7 + rand_int(rng, 6) if color_count == 2 else 9 + rand_int(rng, 7)
    total = min(10 if crowded else 16, max(minimum, base))
    counts = [per_color] * color_count
    for _ in range(total - minimum):
        counts[rand_int(rng, color_count)] += 1
    return counts


def generate_color_squares(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    available = list(dict.fromkeys(ctx.preferred_colors)) or list(COLOR_PALETTE)
    desired = ctx.option("color_count") or (2 if Kind.STARS in ctx.kinds else 2 + rand_int(rng, 2))
    color_count = max(1, min(desired, len(available)))

    path = ctx.solution_path(rng, 260, 12)
    if path is None:
        return None
    regions = build_cell_regions(edges_from_path(path))
    free = set(ctx.free_cells())
    region_cells = {
        region: [cell for cell in cells if cell in free] for region, cells in group_regions(regions).items()
    }
    if len(region_cells) < color_count:
        return None

    crowded = ctx.active_count >= 3
    for attempt in range(_ATTEMPTS):
        local = local_rng(ctx.seed, 4242 + attempt * 97)
        counts = _square_counts(local, color_count, crowded)
        palette = shuffle(available, local)[:color_count]
        region_list = shuffle(sorted(region_cells), local)
        order = shuffle(list(range(color_count)), local)

        # Round-robin so each colour owns at least one region (two when possible).
        region_color: Dict[int, int] = {}
        rounds = 2 if len(region_list) >= color_count * 2 else 1
        position = 0
        for _ in range(rounds):
            for color_index in order:
                if position >= len(region_list):
                    break
                region_color[region_list[position]] = color_index
                position += 1
        for region in region_list[position:]:
            region_color[region] = pick(order, local)

        pools: List[List[Cell]] = [[] for _ in range(color_count)]
        for region in region_list:
            pools[region_color[region]].extend(region_cells[region])
        if any(len(pool) < counts[i] for i, pool in enumerate(pools)):
            continue

        squares = []
        for color_index, pool in enumerate(pools):
            for cell in shuffle(pool, local)[: counts[color_index]]:
                squares.append(ColorSquare(cell, palette[color_index]))
        return Placement(tuple(squares), path)
    return None


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[ColorSquare]:
    squares = view.symbols.get(Kind.COLOR_SQUARES, ())
    palette = sorted({square.color for square in squares})
    if len(palette) < 2:
        return None
    rng = local_rng(ctx.seed, 127)
    for cell in shuffle(cells, rng):
        region = view.regions[cell]
        present = {square.color for square in squares if view.regions[square.cell] == region}
        if present:
            others = [color for color in palette if color not in present]
            if others:
                return ColorSquare(cell, pick(others, rng))
    return None


register_kind(
    KindSpec(
        kind=Kind.COLOR_SQUARES,
        family="region-uniqueness",
        target_type=ColorSquare,
        generate=generate_color_squares,
        collect_failing=collect_failing_color_squares,
        decoy=_decoy,
    )
)
