"""Shared evaluation view, placement context and helpers for symbol kinds."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from board.geometry import (
    END,
    START,
    Cell,
    EdgeSet,
    GridPoint,
    Path,
    all_cells,
    edge_key,
    edges_from_path,
    is_valid_path,
)
from board.paths import find_best_loopy_path, find_random_path
from board.regions import RegionMap, build_cell_regions, group_regions
from board.rng import Rng, mulberry32, shuffle
from project_config import get_section

from .registry import Kind

COLOR_PALETTE: Tuple[str, ...] = (
    "#f8f5ef",
    "#111111",
    "#2fbf71",
    "#e44b4b",
    "#3b82f6",
    "#f4c430",
    "#f08a2f",
    "#9b59b6",
    "#ec4899",
)

MAX_SYMBOL_COLORS = int(get_section("generation.max_symbol_colors", 3))

SymbolMap = Mapping[Kind, Tuple[Any, ...]]


class CellSymbol(NamedTuple):
    """A cell-anchored symbol as seen by cross-kind rules."""

    kind: Kind
    index: int
    cell: Cell
    color: str


def normalise_symbols(symbols: Mapping[Kind, Sequence[Any]]) -> Dict[Kind, Tuple[Any, ...]]:
    """Drop empty lists and freeze the rest into tuples."""

    return {kind: tuple(targets) for kind, targets in symbols.items() if targets}


def iter_cell_symbols(symbols: SymbolMap) -> Iterator[CellSymbol]:
    for kind in Kind:
        for index, target in enumerate(symbols.get(kind, ())):
            cell = getattr(target, "cell", None)
            if cell is None:
                continue
            yield CellSymbol(kind, index, cell, getattr(target, "color", ""))


def occupied_cells(symbols: SymbolMap) -> FrozenSet[Cell]:
    return frozenset(symbol.cell for symbol in iter_cell_symbols(symbols))


def symbol_colors(symbols: SymbolMap, *, include_negators: bool = True) -> FrozenSet[str]:
    return frozenset(
        symbol.color
        for symbol in iter_cell_symbols(symbols)
        if symbol.color and (include_negators or symbol.kind is not Kind.NEGATOR)
    )


@dataclass(frozen=True)
class BoardView:
    """Everything a constraint needs to judge one path.

    Geometry (``used_edges`` and the region partition) is computed once per
    path; :meth:`with_symbols` shares it between symbol subsets, which is how
    the negation resolver tries removals cheaply.
    """

    path: Path
    used_edges: EdgeSet
    regions: RegionMap
    region_cells: Mapping[int, List[Cell]]
    symbols: SymbolMap
    path_points: FrozenSet[GridPoint]
    memo: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def with_symbols(self, symbols: SymbolMap) -> "BoardView":
        return replace(self, symbols=symbols, memo={})

    def region_of(self, cell: Cell) -> int:
        return self.regions[cell]

    @property
    def region_total(self) -> int:
        return len(self.region_cells)

    def cell_symbols(self) -> List[CellSymbol]:
        cached = self.memo.get("cell_symbols")
        if cached is None:
            cached = list(iter_cell_symbols(self.symbols))
            self.memo["cell_symbols"] = cached
        return cached


def build_view(path: Sequence[GridPoint], symbols: SymbolMap) -> BoardView:
    points = tuple(GridPoint(p[0], p[1]) for p in path)
    used = edges_from_path(points)
    regions = build_cell_regions(used)
    return BoardView(
        path=points,
        used_edges=used,
        regions=regions,
        region_cells=group_regions(regions),
        symbols=symbols,
        path_points=frozenset(points),
    )


@dataclass(frozen=True)
class Placement:
    """Targets of one kind plus the solution path they were built against.

    ``extra`` carries targets of other kinds placed alongside (negator decoys).
    """

    targets: Tuple[Any, ...]
    path: Path
    extra: Mapping[Kind, Tuple[Any, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Puzzle:
    """A generated or supplied puzzle: drawable edges plus targets per kind.

    ``solution_hint`` is the path the generator built against.  It speeds up
    validation but is never trusted in place of it.
    """

    edges: EdgeSet
    symbols: SymbolMap
    start: GridPoint = START
    end: GridPoint = END
    kinds: Tuple[Kind, ...] = ()
    seed: Optional[int] = None
    solution_hint: Optional[Path] = None

    def targets(self, kind: Kind) -> Tuple[Any, ...]:
        return tuple(self.symbols.get(kind, ()))


@dataclass(frozen=True)
class PlacementContext:
    """Inputs handed to a kind generator for one attempt."""

    edges: EdgeSet
    seed: int
    kinds: Tuple[Kind, ...] = ()
    symbols: SymbolMap = field(default_factory=dict)
    blocked_cells: FrozenSet[Cell] = frozenset()
    preferred_colors: Tuple[str, ...] = ()
    preferred_path: Optional[Path] = None
    path_locked: bool = False
    start: GridPoint = START
    end: GridPoint = END
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def active_count(self) -> int:
        return sum(1 for kind in self.kinds if kind is not Kind.GAP)

    @property
    def color_mode(self) -> bool:
        return Kind.STARS in self.kinds or Kind.COLOR_SQUARES in self.kinds

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)

    def free_cells(self, extra: FrozenSet[Cell] = frozenset()) -> List[Cell]:
        blocked = self.blocked_cells | extra
        return [cell for cell in all_cells() if cell not in blocked]

    def has_preferred_path(self) -> bool:
        return self.preferred_path is not None and is_valid_path(
            self.preferred_path, self.edges, self.start, self.end
        )

    def candidate_paths(self, rng: Rng, samples: int = 1, loopy_attempts: int = 80, min_length: int = 9) -> List[Path]:
        """Solution paths a generator may build on.

        A locked context only ever offers the preferred path.  Otherwise the
        preferred path (when usable) comes first, followed by *samples* fresh
        loopy or random walks.
        """

        paths: List[Path] = []
        if self.has_preferred_path():
            paths.append(tuple(self.preferred_path))
        if self.path_locked:
            return paths
        for _ in range(samples):
            path = find_best_loopy_path(self.edges, rng, loopy_attempts, min_length, start=self.start, end=self.end)
            if path is None:
                path = find_random_path(self.edges, rng, self.start, self.end)
            if path is not None and path not in paths:
                paths.append(path)
        return paths

    def solution_path(self, rng: Rng, loopy_attempts: int = 80, min_length: int = 9) -> Optional[Path]:
        paths = self.candidate_paths(rng, 1, loopy_attempts, min_length)
        return paths[0] if paths else None

    def palette(self, rng: Rng, default: str, desired: int = 2) -> List[str]:
        """Colors a kind may use.

        Outside colour mode the kind keeps its fixed colour.  In colour mode
        the colours already on the board are reused; an empty board draws
        *desired* colours from the shuffled palette.
        """

        if not self.color_mode:
            return [default]
        preferred = list(dict.fromkeys(self.preferred_colors))[:MAX_SYMBOL_COLORS]
        if preferred:
            return preferred
        return shuffle(COLOR_PALETTE, rng)[:desired]


def local_rng(seed: int, salt: int = 0) -> Rng:
    return mulberry32(seed + salt)


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def pick_spread(pool: Sequence[Any], count: int, min_distance: float, rng: Rng, position=lambda item: item.position) -> List[Any]:
    """Pick up to *count* items keeping them *min_distance* apart.

    The distance relaxes by a quarter per round while it stays above 0.45.
    """

    if len(pool) <= count:
        return list(pool)
    while True:
        picked: List[Any] = []
        for candidate in shuffle(pool, rng):
            if not picked or all(distance(position(p), position(candidate)) >= min_distance for p in picked):
                picked.append(candidate)
            if len(picked) >= count:
                break
        if len(picked) >= count or min_distance <= 0.45:
            return picked
        min_distance *= 0.75


def count_by_region_color(view: BoardView, *, exclude: Optional[Kind] = None) -> Dict[Tuple[int, str], int]:
    counts: Dict[Tuple[int, str], int] = {}
    for symbol in view.cell_symbols():
        if symbol.kind is exclude:
            continue
        key = (view.regions[symbol.cell], symbol.color)
        counts[key] = counts.get(key, 0) + 1
    return counts


def path_uses(view: BoardView, a: Sequence[int], b: Sequence[int]) -> bool:
    return edge_key(a, b) in view.used_edges


DIRECTION_VECTORS: Dict[str, Tuple[int, int]] = {
    "right": (1, 0),
    "down-right": (1, 1),
    "down": (0, 1),
    "down-left": (-1, 1),
    "left": (-1, 0),
    "up-left": (-1, -1),
    "up": (0, -1),
    "up-right": (1, -1),
}
EIGHT_DIRECTIONS: Tuple[str, ...] = tuple(DIRECTION_VECTORS)


def pick_target_count(rng: Rng, available: int, low_set: bool, low_range: Tuple[int, int], high_range: Tuple[int, int]) -> int:
    """Number of targets to place, or 0 when fewer than the minimum fit."""

    minimum, maximum = low_range if low_set else high_range
    maximum = min(maximum, available)
    if maximum < minimum:
        return 0
    return minimum + int(rng() * (maximum - minimum + 1))


def draw_weighted(items: Sequence[Any], count: int, weight, rng: Rng) -> List[Any]:
    """Draw *count* items without replacement, each pick weighted by ``weight(item)``."""

    remaining = shuffle(items, rng)
    selected: List[Any] = []
    while len(selected) < count and remaining:
        total = sum(weight(item) for item in remaining)
        roll = rng() * total
        index = len(remaining) - 1
        for i, item in enumerate(remaining):
            roll -= weight(item)
            if roll <= 0:
                index = i
                break
        selected.append(remaining.pop(index))
    return selected


__all__ = [
    "BoardView",
    "DIRECTION_VECTORS",
    "EIGHT_DIRECTIONS",
    "COLOR_PALETTE",
    "CellSymbol",
    "MAX_SYMBOL_COLORS",
    "Placement",
    "Puzzle",
    "PlacementContext",
    "SymbolMap",
    "build_view",
    "count_by_region_color",
    "distance",
    "draw_weighted",
    "iter_cell_symbols",
    "local_rng",
    "normalise_symbols",
    "occupied_cells",
    "path_uses",
    "pick_spread",
    "pick_target_count",
    "symbol_colors",
]
