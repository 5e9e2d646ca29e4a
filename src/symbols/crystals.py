"""Crystals: each crystal alone in a region, all crystal regions congruent.

A lone crystal instead demands that the path leaves the board in one piece.
Congruence allows rotation and mirroring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from board.geometry import CELL_COUNT, Cell, Path, edges_from_path
from board.paths import find_best_loopy_path, find_random_path
from board.regions import build_cell_regions, group_regions
from board.rng import mulberry32, pick, shuffle, weighted_pick

from .common import BoardView, Placement, PlacementContext, build_view, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#c9153b"

_LAST = CELL_COUNT - 1
_TRANSFORMS = (
    lambda x, y: (x, y),
    lambda x, y: (-x, y),
    lambda x, y: (x, -y),
    lambda x, y: (-x, -y),
    lambda x, y: (y, x),
    lambda x, y: (-y, x),
    lambda x, y: (y, -x),
    lambda x, y: (-y, -x),
)


@dataclass(frozen=True)
class CrystalTarget:
    cell: Cell
    color: str = DEFAULT_COLOR


def canonical_shape_key(cells: Iterable[Tuple[int, int]]) -> str:
    """Smallest normalised cell listing over the eight rotations and mirrors."""

    cells = list(cells)
    best = ""
    for transform in _TRANSFORMS:
        moved = [transform(x, y) for x, y in cells]
        min_x = min(x for x, _ in moved)
        min_y = min(y for _, y in moved)
        normalised = sorted(((x - min_x, y - min_y) for x, y in moved), key=lambda c: (c[1], c[0]))
        key = "|".join(f"{x},{y}" for x, y in normalised)
        if not best or key < best:
            best = key
    return best


def collect_failing_crystals(view: BoardView, targets: Sequence[CrystalTarget]) -> FrozenSet[int]:
    if not targets:
        return frozenset()
    if len(targets) == 1:
        return frozenset() if view.region_total == 1 else frozenset({0})

    failing = set()
    by_region: Dict[int, List[int]] = {}
    for index, crystal in enumerate(targets):
        by_region.setdefault(view.regions[crystal.cell], []).append(index)
    by_shape: Dict[str, List[int]] = {}
    for region, indexes in by_region.items():
        if len(indexes) > 1:
            failing.update(indexes)
            continue
        by_shape.setdefault(canonical_shape_key(view.region_cells[region]), []).extend(indexes)
    if len(by_shape) > 1:
        dominant = min(by_shape.items(), key=lambda item: (-len(item[1]), item[0]))[0]
        for shape, indexes in by_shape.items():
            if shape != dominant:
                failing.update(indexes)
    return frozenset(failing)


def _is_edge(cell: Cell) -> bool:
    return cell.x in (0, _LAST) or cell.y in (0, _LAST)


class _Candidate(NamedTuple):
    path: Path
    full: Dict[int, List[Cell]]
    free: Dict[int, List[Cell]]
    groups: Dict[str, List[int]]
    best_score: float
    max_group: int


def _group_score(regions: Sequence[int], full, free) -> float:
    """Favour many, larger, interior congruent regions."""

    average = sum(len(full[r]) for r in regions) / len(regions)
    total_free = sum(len(free[r]) for r in regions)
    interior = sum(1 for r in regions for cell in free[r] if not _is_edge(cell))
    edge_only = sum(1 for r in regions if free[r] and all(_is_edge(c) for c in free[r]))
    share = interior / total_free if total_free else 0.0
    return len(regions) * 10 + average * 3 + share * 4 - edge_only * 1.7 - (8 if average <= 1 else 0)


def _candidate(path: Optional[Path], blocked) -> Optional[_Candidate]:
    if path is None or len(path) < 2:
        return None
    full = group_regions(build_cell_regions(edges_from_path(path)))
    free = {region: [c for c in cells if c not in blocked] for region, cells in full.items()}
    groups: Dict[str, List[int]] = {}
    for region, cells in full.items():
        if free[region]:
            groups.setdefault(canonical_shape_key(cells), []).append(region)
    shared = [regions for regions in groups.values() if len(regions) >= 2]
    if not shared:
        return None
    best = max(_group_score(regions, full, free) for regions in shared)
    return _Candidate(path, full, free, groups, best, max(len(r) for r in shared))


def _pick_cell(cells: Sequence[Cell], rng) -> Cell:
    if len(cells) == 1:
        return cells[0]
    weights = []
    for cell in cells:
        x_edge = cell.x in (0, _LAST)
        y_edge = cell.y in (0, _LAST)
        weights.append(0.45 if x_edge and y_edge else 0.9 if x_edge or y_edge else 4.5)
    return weighted_pick(cells, weights, rng)


def generate_crystals(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    blocked = ctx.blocked_cells
    picked: Optional[_Candidate] = None
    if ctx.has_preferred_path():
        picked = _candidate(ctx.preferred_path, blocked)
        if picked is None and ctx.path_locked:
            return None
    if picked is None:
        for attempt in range(24):
            local = mulberry32(ctx.seed + 9011 + attempt * 127)
            path = find_best_loopy_path(ctx.edges, local, 56, 9, start=ctx.start, end=ctx.end)
            if path is None:
                path = find_random_path(ctx.edges, local, ctx.start, ctx.end)
            candidate = _candidate(path, blocked)
            if candidate is None:
                continue
            if picked is None or candidate.best_score > picked.best_score + 0.01 or (
                abs(candidate.best_score - picked.best_score) <= 0.01 and candidate.max_group > picked.max_group
            ):
                picked = candidate
        if picked is None:
            return None

    entries = [(key, regions) for key, regions in picked.groups.items() if len(regions) >= 2]
    roomy = [entry for entry in entries if sum(len(picked.full[r]) for r in entry[1]) / len(entry[1]) >= 2]
    pool = roomy if roomy and (len(roomy) == len(entries) or rng() < 0.9) else entries
    ranked = sorted(
        shuffle(pool, rng),
        key=lambda entry: (-round(_group_score(entry[1], picked.full, picked.free), 2), -len(entry[1])),
    )
    regions = ranked[0][1]

    low_set = ctx.active_count <= 2
    maximum = min(len(regions), 3 if low_set else 2)
    count = 3 if maximum == 3 and rng() < 0.46 else 2

    def interior_rank(region: int):
        free = picked.free[region]
        return (-sum(1 for c in free if not _is_edge(c)), -len(free))

    ordered = sorted(shuffle(regions, rng), key=interior_rank) if rng() < 0.86 else shuffle(regions, rng)
    palette = ctx.palette(rng, DEFAULT_COLOR)
    usage: Dict[str, int] = {}
    targets = []
    for region in ordered[:count]:
        color = min(shuffle(palette, rng), key=lambda c: usage.get(c, 0))
        usage[color] = usage.get(color, 0) + 1
        targets.append(CrystalTarget(_pick_cell(picked.free[region], rng), color))

    view = build_view(picked.path, {Kind.CRYSTALS: tuple(targets)})
    if collect_failing_crystals(view, targets):
        return None
    return Placement(tuple(targets), picked.path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[CrystalTarget]:
    """A second crystal sharing a region with an existing one."""

    occupied = {view.regions[c.cell] for c in view.symbols.get(Kind.CRYSTALS, ())}
    options = [cell for cell in cells if view.regions[cell] in occupied]
    if not options:
        return None
    rng = local_rng(ctx.seed, 139)
    return CrystalTarget(pick(options, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.CRYSTALS,
        family="region-cardinality",
        target_type=CrystalTarget,
        generate=generate_crystals,
        collect_failing=collect_failing_crystals,
        decoy=_decoy,
    )
)
