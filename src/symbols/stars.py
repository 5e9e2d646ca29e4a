"""Stars: each star pairs with exactly one same-coloured symbol in its region.

For every (region, colour) holding stars, stars plus other cell symbols of
that colour must total two.  Every other cell symbol kind counts, sentinels
included.  Negators are lifted off the board before any check runs, so they
never complete a pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from board.geometry import Cell, edges_from_path
from board.regions import build_cell_regions, group_regions
from board.rng import pick, rand_int, shuffle

from .common import COLOR_PALETTE, MAX_SYMBOL_COLORS, BoardView, Placement, PlacementContext, build_view, count_by_region_color, local_rng
from .registry import Kind, KindSpec, register_kind

_ODD_TOTAL_CHANCE = 0.78


@dataclass(frozen=True)
class StarTarget:
    cell: Cell
    color: str


def collect_failing_stars(view: BoardView, targets: Sequence[StarTarget]) -> FrozenSet[int]:
    others = count_by_region_color(view, exclude=Kind.STARS)
    stars: Dict[Tuple[int, str], int] = {}
    for star in targets:
        key = (view.regions[star.cell], star.color)
        stars[key] = stars.get(key, 0) + 1
    return frozenset(
        index
        for index, star in enumerate(targets)
        if stars[(view.regions[star.cell], star.color)] + others.get((view.regions[star.cell], star.color), 0) != 2
    )


def min_pairs_for(kinds: Sequence[Kind]) -> int:
    active = [kind for kind in kinds if kind is not Kind.GAP]
    if active == [Kind.STARS]:
        return 3
    return 2 if len(active) <= 2 else 1


def _star_palette(ctx: PlacementContext, rng) -> List[str]:
    base = list(dict.fromkeys(ctx.preferred_colors))[:MAX_SYMBOL_COLORS]
    desired = min(MAX_SYMBOL_COLORS, max(2, len(base), 2 + rand_int(rng, 2)))
    palette = list(base)
    for color in shuffle([c for c in COLOR_PALETTE if c not in palette], rng):
        if len(palette) >= desired:
            break
        palette.append(color)
    return palette


def generate_stars(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    regions = build_cell_regions(edges_from_path(path))
    region_cells = group_regions(regions)
    counts = count_by_region_color(build_view(path, ctx.symbols))
    palette = _star_palette(ctx, rng)

    slots: List[Tuple[int, str, int]] = []
    for region in region_cells:
        for color in palette:
            existing = counts.get((region, color), 0)
            if existing >= 2:
                continue
            slots.append((region, color, 1 if existing == 1 else 2))
    slots = shuffle(slots, rng)

    min_pairs = ctx.option("min_pairs") or min_pairs_for(ctx.kinds)
    if ctx.active_count <= 2:
        extra = 2 + rand_int(rng, 3 + rand_int(rng, 4))
    else:
        extra = rand_int(rng, 2 + rand_int(rng, 3))
    target_pairs = min(len(slots), min_pairs + extra)
    if len(slots) < min_pairs:
        return None

    used: Set[Cell] = set(ctx.blocked_cells)
    stars: List[StarTarget] = []
    filled: Set[Tuple[int, str]] = set()

    def place(slot: Tuple[int, str, int]) -> bool:
        region, color, needed = slot
        if (region, color) in filled:
            return False
        available = shuffle([cell for cell in region_cells[region] if cell not in used], rng)
        if len(available) < needed:
            return False
        for cell in available[:needed]:
            used.add(cell)
            stars.append(StarTarget(cell, color))
        filled.add((region, color))
        return True

    has_support = bool(counts)
    one_star = [
        slot for slot in slots
        if slot[2] == 1 and any(cell not in used for cell in region_cells[slot[0]])
    ]
    prefer_odd = has_support and bool(one_star) and rng() < _ODD_TOTAL_CHANCE
    first = pick(one_star, rng) if prefer_odd else None

    pairs = single_slots = 0
    if first is not None and place(first):
        pairs += 1
        single_slots += 1
    for slot in slots:
        if slot is first:
            continue
        if pairs >= target_pairs:
            break
        if prefer_odd and single_slots % 2 == 1 and slot[2] == 1 and pairs >= min_pairs and rng() < 0.8:
            continue
        if not place(slot):
            continue
        pairs += 1
        if slot[2] == 1:
            single_slots += 1

    if pairs < min_pairs or not stars:
        return None
    return Placement(tuple(stars), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[StarTarget]:
    rng = local_rng(ctx.seed, 131)
    counts = count_by_region_color(view)
    colors = list(dict.fromkeys(ctx.preferred_colors)) or [COLOR_PALETTE[2]]
    options = [
        (cell, color)
        for cell in cells
        for color in colors
        if counts.get((view.regions[cell], color), 0) != 1
    ]
    if not options:
        return None
    cell, color = pick(options, rng)
    return StarTarget(cell, color)


register_kind(
    KindSpec(
        kind=Kind.STARS,
        family="pairing",
        target_type=StarTarget,
        generate=generate_stars,
        collect_failing=collect_failing_stars,
        decoy=_decoy,
    )
)
