"""Ghosts: one ghost per region, and as many regions as ghosts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Sequence

from board.geometry import Cell, EdgeSet, GridPoint, Path, edges_from_path, is_valid_path
from board.paths import find_best_loopy_path, find_random_path
from board.regions import RegionMap, build_cell_regions, group_regions
from board.rng import mulberry32, pick, rand_int, shuffle, weighted_pick

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#d7d4da"
MIN_REGIONS = 2
MAX_REGIONS = 5

_MULTI_KIND_WEIGHTS = {2: 3.0, 3: 2.4, 4: 0.42, 5: 0.12}
_SINGLE_KIND_WEIGHTS = {2: 2.2, 3: 1.8, 4: 0.6, 5: 0.2}


@dataclass(frozen=True)
class GhostTarget:
    cell: Cell
    color: str = DEFAULT_COLOR


class GhostPath(NamedTuple):
    path: Path
    regions: RegionMap
    region_cells: Dict[int, List[Cell]]


def collect_failing_ghosts(view: BoardView, targets: Sequence[GhostTarget]) -> FrozenSet[int]:
    by_region: Dict[int, List[int]] = {}
    for index, ghost in enumerate(targets):
        by_region.setdefault(view.regions[ghost.cell], []).append(index)
    if view.region_total != len(targets) or len(by_region) != len(targets):
        return frozenset(range(len(targets)))
    return frozenset(index for indexes in by_region.values() if len(indexes) > 1 for index in indexes)


def _ghost_path(path: Optional[Path], blocked) -> Optional[GhostPath]:
    if path is None or len(path) < 2:
        return None
    regions = build_cell_regions(edges_from_path(path))
    grouped = group_regions(regions)
    if not MIN_REGIONS <= len(grouped) <= MAX_REGIONS:
        return None
    open_cells = {region: [c for c in cells if c not in blocked] for region, cells in grouped.items()}
    if any(not cells for cells in open_cells.values()):
        return None
    return GhostPath(path, regions, open_cells)


def pick_ghost_path(ctx: PlacementContext, seed: int) -> Optional[GhostPath]:
    """Choose a solution path whose region count suits ghosts, favouring 2-3 regions."""

    blocked = ctx.blocked_cells
    preferred = _ghost_path(ctx.preferred_path, blocked) if ctx.has_preferred_path() else None
    if ctx.path_locked:
        return preferred
    if preferred is not None and len(preferred.region_cells) <= 3:
        return preferred

    buckets: Dict[int, List[GhostPath]] = {}

    def add(candidate: Optional[GhostPath]) -> None:
        if candidate is None:
            return
        bucket = buckets.setdefault(len(candidate.region_cells), [])
        if len(bucket) < 3:
            bucket.append(candidate)

    add(preferred)
    for attempt in range(4):
        add(_ghost_path(find_random_path(ctx.edges, mulberry32(seed + 113 + attempt * 97), ctx.start, ctx.end), blocked))
    for attempt in range(2):
        local = mulberry32(seed + 1709 + attempt * 131)
        min_length = 8 + rand_int(local, 3)
        attempts = 12 + rand_int(local, 8)
        add(_ghost_path(find_best_loopy_path(ctx.edges, local, attempts, min_length, start=ctx.start, end=ctx.end), blocked))
    if 2 not in buckets and 3 not in buckets:
        for attempt in range(6):
            add(_ghost_path(find_random_path(ctx.edges, mulberry32(seed + 8011 + attempt * 149), ctx.start, ctx.end), blocked))
            if 2 in buckets or 3 in buckets:
                break

    rng = mulberry32(seed)
    if not buckets:
        return _ghost_path(find_random_path(ctx.edges, rng, ctx.start, ctx.end), blocked)

    counts = shuffle(sorted(buckets), rng)
    multi_kind = ctx.active_count >= 2
    low_counts = [count for count in counts if count in (2, 3)]
    pool = low_counts if multi_kind and low_counts and rng() < 0.9 else counts
    weights = _MULTI_KIND_WEIGHTS if multi_kind else _SINGLE_KIND_WEIGHTS
    chosen = weighted_pick(pool, [weights[count] for count in pool], rng)
    return pick(buckets[chosen], rng)


def generate_ghosts(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    picked = pick_ghost_path(ctx, ctx.seed + 19)
    if picked is None:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR, desired=1)
    targets = []
    for region in shuffle(sorted(picked.region_cells), rng):
        targets.append(GhostTarget(pick(picked.region_cells[region], rng), pick(palette, rng)))
    return Placement(tuple(targets), picked.path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[GhostTarget]:
    """A second ghost in a region that already has one."""

    ghosts = view.symbols.get(Kind.GHOST, ())
    haunted = {view.regions[ghost.cell] for ghost in ghosts}
    options = [cell for cell in cells if view.regions[cell] in haunted]
    if not options:
        return None
    rng = local_rng(ctx.seed, 137)
    return GhostTarget(pick(options, rng), pick(ctx.palette(rng, DEFAULT_COLOR, desired=1), rng))


register_kind(
    KindSpec(
        kind=Kind.GHOST,
        family="region-cardinality",
        target_type=GhostTarget,
        generate=generate_ghosts,
        collect_failing=collect_failing_ghosts,
        decoy=_decoy,
    )
)
