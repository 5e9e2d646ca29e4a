"""Water droplets: water poured in the cell must not leak off the board.

Water spreads from the droplet's cell through its region along the flow
direction and sideways.  A filled cell on the board edge leaks when that edge
side is open (not drawn by the path) and faces the flow or the sides.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from board.geometry import CELL_COUNT, Cell, EdgeSet, cell_edges, edges_from_path
from board.paths import find_random_path
from board.regions import build_cell_regions
from board.rng import pick, rand_int, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#22c4e5"
DIRECTIONS: Tuple[str, ...] = ("down", "left", "up", "right")

_LAST = CELL_COUNT - 1

_FLOW_OFFSETS: Dict[str, Tuple[Tuple[int, int], ...]] = {
    "down": ((0, 1), (-1, 0), (1, 0)),
    "up": ((0, -1), (-1, 0), (1, 0)),
    "left": ((-1, 0), (0, -1), (0, 1)),
    "right": ((1, 0), (0, -1), (0, 1)),
}

# Board sides that leak for each flow direction.
_LEAK_SIDES: Dict[str, Tuple[str, ...]] = {
    "down": ("bottom", "left", "right"),
    "up": ("top", "left", "right"),
    "left": ("left", "top", "bottom"),
    "right": ("right", "top", "bottom"),
}


@dataclass(frozen=True)
class WaterDropletTarget:
    cell: Cell
    direction: str
    color: str = DEFAULT_COLOR


def fill_cells(regions: Mapping[Cell, int], cell: Cell, direction: str) -> Set[Cell]:
    region = regions[cell]
    filled = {cell}
    queue = deque([cell])
    while queue:
        current = queue.popleft()
        for dx, dy in _FLOW_OFFSETS[direction]:
            nxt = Cell(current.x + dx, current.y + dy)
            if not (0 <= nxt.x < CELL_COUNT and 0 <= nxt.y < CELL_COUNT):
                continue
            if regions[nxt] != region or nxt in filled:
                continue
            filled.add(nxt)
            queue.append(nxt)
    return filled


def _leaks(cell: Cell, direction: str, used_edges: EdgeSet) -> bool:
    top, bottom, left, right = cell_edges(cell)
    on_edge = {
        "top": (cell.y == 0, top),
        "bottom": (cell.y == _LAST, bottom),
        "left": (cell.x == 0, left),
        "right": (cell.x == _LAST, right),
    }
    for side in _LEAK_SIDES[direction]:
        at_border, edge = on_edge[side]
        if at_border and edge not in used_edges:
            return True
    return False


def is_contained(regions: Mapping[Cell, int], used_edges: EdgeSet, cell: Cell, direction: str) -> bool:
    return not any(_leaks(filled, direction, used_edges) for filled in fill_cells(regions, cell, direction))


def collect_failing_water_droplets(view: BoardView, targets: Sequence[WaterDropletTarget]) -> FrozenSet[int]:
    return frozenset(
        index
        for index, target in enumerate(targets)
        if not is_contained(view.regions, view.used_edges, target.cell, target.direction)
    )


def _placements(path, free: Sequence[Cell]) -> List[Tuple[Cell, str]]:
    used = edges_from_path(path)
    regions = build_cell_regions(used)
    return [
        (cell, direction)
        for cell in free
        for direction in DIRECTIONS
        if is_contained(regions, used, cell, direction)
    ]


def _quality(placements: Sequence[Tuple[Cell, str]]) -> Tuple[int, int, int]:
    return (
        len({cell for cell, _ in placements}),
        len({direction for _, direction in placements}),
        len(placements),
    )


def generate_water_droplets(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    free = ctx.free_cells()
    paths = ctx.candidate_paths(rng, 1, 90 if ctx.preferred_path else 140, 8)
    if not ctx.path_locked:
        for _ in range(6):
            path = find_random_path(ctx.edges, rng, ctx.start, ctx.end)
            if path is not None:
                paths.append(path)
    if not paths:
        return None

    best_path = paths[0]
    best = _placements(best_path, free)
    for path in paths[1:]:
        local = _placements(path, free)
        if _quality(local) > _quality(best):
            best_path, best = path, local
    if not ctx.path_locked and _quality(best)[0] < 3:
        for _ in range(12):
            path = find_random_path(ctx.edges, rng, ctx.start, ctx.end)
            if path is None:
                continue
            local = _placements(path, free)
            if _quality(local) > _quality(best):
                best_path, best = path, local
                if _quality(best)[0] >= 3 and _quality(best)[1] >= 2:
                    break

    unique_cells = _quality(best)[0]
    minimum = 3 if ctx.active_count <= 2 else 1
    maximum = min(8, unique_cells)
    if maximum < minimum:
        return None
    count = minimum + rand_int(rng, maximum - minimum + 1)

    buckets = {direction: shuffle([c for c, d in best if d == direction], rng) for direction in DIRECTIONS}
    available = [direction for direction in DIRECTIONS if buckets[direction]]
    used_cells: Set[Cell] = set()
    selected: List[Tuple[Cell, str]] = []
    counts = {direction: 0 for direction in DIRECTIONS}

    def take(direction: str) -> bool:
        bucket = buckets[direction]
        while bucket:
            cell = bucket.pop(0)
            if cell in used_cells:
                continue
            selected.append((cell, direction))
            used_cells.add(cell)
            counts[direction] += 1
            return True
        return False

    distinct = min(3, count, len(available))
    for direction in shuffle(available, rng):
        if sum(1 for d in counts.values() if d) >= distinct:
            break
        take(direction)
    while len(selected) < count:
        order = sorted(shuffle(available, rng), key=lambda d: counts[d])
        if not any(take(direction) for direction in order):
            break
    if len(selected) < minimum:
        return None

    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(WaterDropletTarget(cell, direction, pick(palette, rng)) for cell, direction in selected)
    return Placement(targets, best_path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[WaterDropletTarget]:
    rng = local_rng(ctx.seed, 109)
    options = [
        (cell, direction)
        for cell in cells
        for direction in DIRECTIONS
        if not is_contained(view.regions, view.used_edges, cell, direction)
    ]
    if not options:
        return None
    cell, direction = pick(options, rng)
    return WaterDropletTarget(cell, direction, pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.WATER_DROPLET,
        family="ray",
        target_type=WaterDropletTarget,
        generate=generate_water_droplets,
        collect_failing=collect_failing_water_droplets,
        decoy=_decoy,
    )
)
