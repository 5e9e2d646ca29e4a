"""Sentinels: nothing else in the sentinel's region may sit on the side it faces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from board.geometry import CELL_COUNT, Cell, cell_center, edges_from_path
from board.regions import build_cell_regions, region_ids_for_board_point
from board.rng import Rng, pick, rand_int, shuffle, weighted_pick

from .common import BoardView, Placement, PlacementContext, SymbolMap, build_view, iter_cell_symbols, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#efe96f"
DIRECTIONS: Tuple[str, ...] = ("up", "right", "down", "left")

_LAST = CELL_COUNT - 1
_OUTWARD_WEIGHT = 0.24
_ATTEMPTS = 54


@dataclass(frozen=True)
class SentinelTarget:
    cell: Cell
    direction: str
    color: str = DEFAULT_COLOR


class Observed(NamedTuple):
    x: float
    y: float
    regions: Tuple[int, ...]
    kind: Optional[Kind] = None
    index: int = -1


def in_forbidden_side(sentinel: Cell, direction: str, x: float, y: float) -> bool:
    sx, sy = cell_center(sentinel)
    if direction == "up":
        return y < sy
    if direction == "down":
        return y > sy
    if direction == "left":
        return x < sx
    return x > sx


def observed_symbols(regions: Mapping[Cell, int], symbols: SymbolMap) -> List[Observed]:
    """Every symbol a sentinel can see: cell symbols at their centres, hexagons at their positions."""

    observed = []
    for symbol in iter_cell_symbols(symbols):
        x, y = cell_center(symbol.cell)
        observed.append(Observed(x, y, (regions[symbol.cell],), symbol.kind, symbol.index))
    for hexagon in symbols.get(Kind.HEXAGON, ()):
        px, py = hexagon.position
        ids = region_ids_for_board_point(px, py, regions)
        if ids:
            observed.append(Observed(px, py, ids))
    return observed


def collect_failing_sentinels(view: BoardView, targets: Sequence[SentinelTarget]) -> FrozenSet[int]:
    if not targets:
        return frozenset()
    observed = observed_symbols(view.regions, view.symbols)
    failing = set()
    for index, sentinel in enumerate(targets):
        region = view.regions[sentinel.cell]
        for symbol in observed:
            if symbol.kind is Kind.SENTINEL and symbol.index == index:
                continue
            if region in symbol.regions and in_forbidden_side(sentinel.cell, sentinel.direction, symbol.x, symbol.y):
                failing.add(index)
                break
    return frozenset(failing)


def _is_outward(cell: Cell, direction: str) -> bool:
    return {
        "up": cell.y == 0,
        "down": cell.y == _LAST,
        "left": cell.x == 0,
        "right": cell.x == _LAST,
    }[direction]


def _is_edge_cell(cell: Cell) -> bool:
    return cell.x in (0, _LAST) or cell.y in (0, _LAST)


def _is_corner_cell(cell: Cell) -> bool:
    return cell.x in (0, _LAST) and cell.y in (0, _LAST)


def _pick_direction(directions: Sequence[str], cell: Cell, rng: Rng) -> str:
    has_inward = any(not _is_outward(cell, d) for d in directions)
    weights = [_OUTWARD_WEIGHT if _is_outward(cell, d) and has_inward else 1.0 for d in directions]
    return weighted_pick(directions, weights, rng)


def _valid_directions(cell: Cell, regions, observed: Sequence[Observed], placed: Sequence[SentinelTarget]) -> List[str]:
    region = regions[cell]
    x, y = cell_center(cell)
    for other in placed:
        if regions[other.cell] == region and in_forbidden_side(other.cell, other.direction, x, y):
            return []
    return [
        direction
        for direction in DIRECTIONS
        if not any(
            region in symbol.regions and in_forbidden_side(cell, direction, symbol.x, symbol.y) for symbol in observed
        )
    ]


def _manhattan(a: Cell, b: Cell) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def _placement_score(cell: Cell, occupied: Sequence[Cell], sparse: bool, interior_left: bool, first: bool, rng: Rng) -> float:
    """Prefer cells away from other symbols and off the board edge."""

    nearest = min((_manhattan(cell, other) for other in occupied), default=4)
    score = nearest * (4.3 if sparse else 3.2)
    if any(_manhattan(cell, other) == 1 for other in occupied):
        score -= 6.0 if sparse else 3.4
    if any(abs(cell.x - o.x) == 1 and abs(cell.y - o.y) == 1 for o in occupied):
        score -= 2.2 if sparse else 1.1
    if _is_edge_cell(cell):
        factor = 1.0 if interior_left else 0.28
        score -= (2.8 if sparse else 1.9) * factor
        if _is_corner_cell(cell):
            score -= (1.45 if sparse else 0.95) * factor
        if first:
            score -= (0.9 if sparse else 0.55) * factor
    return score + rng() * 0.9


def generate_sentinels(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    used = edges_from_path(path)
    regions = build_cell_regions(used)
    available = shuffle(ctx.free_cells(), rng)
    if not available:
        return None

    low_set = ctx.active_count <= 2
    minimum = 3 if low_set else 1
    maximum = min(7 if low_set else 4, len(available))
    if maximum < minimum:
        return None
    count = minimum + rand_int(rng, maximum - minimum + 1)
    palette = ctx.palette(rng, DEFAULT_COLOR)
    base_observed = observed_symbols(regions, ctx.symbols)
    sparse = len(ctx.blocked_cells) <= 3

    for attempt in range(_ATTEMPTS):
        local = local_rng(ctx.seed, 6121 + attempt * 131)
        remaining = shuffle(available, local)
        observed = list(base_observed)
        occupied: List[Cell] = sorted(ctx.blocked_cells)
        placed: List[SentinelTarget] = []
        while remaining and len(placed) < count:
            interior_left = any(not _is_edge_cell(cell) for cell in remaining)
            scored = []
            for cell in remaining:
                directions = _valid_directions(cell, regions, observed, placed)
                if not directions:
                    continue
                direction = _pick_direction(directions, cell, local)
                score = _placement_score(cell, occupied, sparse, interior_left, not placed, local)
                scored.append((score, cell, direction))
            if not scored:
                break
            scored.sort(key=lambda item: -item[0])
            _, cell, direction = pick(scored[:3], local)
            remaining.remove(cell)
            placed.append(SentinelTarget(cell, direction, pick(palette, local)))
            occupied.append(cell)
            x, y = cell_center(cell)
            observed.append(Observed(x, y, (regions[cell],), Kind.SENTINEL, len(placed) - 1))

        if len(placed) < count:
            continue
        symbols = dict(ctx.symbols)
        symbols[Kind.SENTINEL] = tuple(placed)
        view = build_view(path, symbols)
        if not collect_failing_sentinels(view, placed):
            return Placement(tuple(placed), path)
    return None


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[SentinelTarget]:
    rng = local_rng(ctx.seed, 113)
    observed = observed_symbols(view.regions, view.symbols)
    options = []
    for cell in cells:
        region = view.regions[cell]
        for direction in DIRECTIONS:
            if any(
                region in symbol.regions and in_forbidden_side(cell, direction, symbol.x, symbol.y)
                for symbol in observed
            ):
                options.append((cell, direction))
    if not options:
        return None
    cell, direction = pick(options, rng)
    return SentinelTarget(cell, direction, pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.SENTINEL,
        family="ray",
        target_type=SentinelTarget,
        generate=generate_sentinels,
        collect_failing=collect_failing_sentinels,
        decoy=_decoy,
    )
)
