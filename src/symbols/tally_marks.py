"""Tally marks: the number of path edges on the outline of the mark's region."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence

from board.geometry import CELL_COUNT, Cell, EdgeSet, cell_edges, edges_from_path
from board.regions import build_cell_regions, group_regions
from board.rng import pick, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#f8f5ef"

# cell_edges order is top, bottom, left, right.
_SIDE_STEPS = ((0, -1), (0, 1), (-1, 0), (1, 0))


@dataclass(frozen=True)
class TallyMarkTarget:
    cell: Cell
    count: int
    color: str = DEFAULT_COLOR


def region_outline_count(regions: Mapping[Cell, int], used_edges: EdgeSet, region: int) -> int:
    """Used edges separating *region* from the board edge or another region."""

    outline = 0
    for cell, owner in regions.items():
        if owner != region:
            continue
        for edge, (dx, dy) in zip(cell_edges(cell), _SIDE_STEPS):
            if edge not in used_edges:
                continue
            nx, ny = cell.x + dx, cell.y + dy
            if not (0 <= nx < CELL_COUNT and 0 <= ny < CELL_COUNT) or regions[Cell(nx, ny)] != region:
                outline += 1
    return outline


def collect_failing_tally_marks(view: BoardView, targets: Sequence[TallyMarkTarget]) -> FrozenSet[int]:
    failing = set()
    outlines: Dict[int, int] = {}
    first_in_region: Dict[int, int] = {}
    for index, target in enumerate(targets):
        region = view.regions[target.cell]
        if region in first_in_region:
            failing.add(first_in_region[region])
            failing.add(index)
        else:
            first_in_region[region] = index
        if region not in outlines:
            outlines[region] = region_outline_count(view.regions, view.used_edges, region)
        if target.count != outlines[region]:
            failing.add(index)
    return frozenset(failing)


def generate_tally_marks(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 200, 9)
    if path is None:
        return None
    used = edges_from_path(path)
    regions = build_cell_regions(used)
    free = set(ctx.free_cells())

    candidates: List[tuple] = []
    for region, cells in group_regions(regions).items():
        outline = region_outline_count(regions, used, region)
        open_cells = [cell for cell in cells if cell in free]
        if outline > 0 and open_cells:
            candidates.append((region, open_cells, outline))
    if not candidates:
        return None

    active = ctx.active_count
    maximum = min(7 if active <= 2 else 5 if active == 3 else 4, len(candidates))
    minimum = min(2 if active <= 2 else 1, maximum)
    count = minimum + int(rng() * (maximum - minimum + 1))

    palette = ctx.palette(rng, DEFAULT_COLOR)
    usage: Dict[str, int] = {}
    targets = []
    for region, cells, outline in shuffle(candidates, rng)[:count]:
        color = min(shuffle(palette, rng), key=lambda c: usage.get(c, 0))
        usage[color] = usage.get(color, 0) + 1
        targets.append(TallyMarkTarget(pick(cells, rng), outline, color))
    return Placement(tuple(targets), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[TallyMarkTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 83)
    cell = pick(cells, rng)
    outline = region_outline_count(view.regions, view.used_edges, view.regions[cell])
    return TallyMarkTarget(cell, outline + 1 + int(rng() * 2), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.TALLY_MARKS,
        family="edge-count",
        target_type=TallyMarkTarget,
        generate=generate_tally_marks,
        collect_failing=collect_failing_tally_marks,
        decoy=_decoy,
    )
)
