"""Polyomino shapes and the bounded region tilers.

Two searches live here.  Regions holding only positive pieces are solved as
an exact cover inside the region, branching on the uncovered cell with the
fewest fitting placements.  Regions holding negative pieces are solved
board-wide: every cell's net coverage (positive minus negative) must equal 1
inside the region and 0 elsewhere, or 0 everywhere when the pieces cancel out.
Both searches count visits and fail closed once the budget is spent.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from board.geometry import CELL_COUNT, Cell
from board.rng import Rng, shuffle
from project_config import get_section

_POLY_CFG = get_section("polyomino", {})
TILING_BUDGET = int(_POLY_CFG.get("tiling_budget", 20000))
PREFER_LARGE = float(_POLY_CFG.get("prefer_large", 0.58))

Offset = Tuple[int, int]


class Shape(NamedTuple):
    name: str
    cells: Tuple[Offset, ...]

    @property
    def size(self) -> int:
        return len(self.cells)


class Piece(NamedTuple):
    """What the tilers need to know about one polyomino symbol."""

    shape: Shape
    rotatable: bool = False
    negative: bool = False


BASE_SHAPES: Tuple[Tuple[str, Tuple[Offset, ...]], ...] = (
    ("mono", ((0, 0),)),
    ("domino", ((0, 0), (1, 0))),
    ("tri-line", ((0, 0), (1, 0), (2, 0))),
    ("tri-l", ((0, 0), (0, 1), (1, 1))),
    ("tet-line", ((0, 0), (1, 0), (2, 0), (3, 0))),
    ("tet-square", ((0, 0), (1, 0), (0, 1), (1, 1))),
    ("tet-l", ((0, 0), (0, 1), (0, 2), (1, 2))),
    ("tet-t", ((0, 0), (1, 0), (2, 0), (1, 1))),
    ("tet-s", ((0, 0), (1, 0), (1, 1), (2, 1))),
)


def normalise(cells: Iterable[Offset]) -> Tuple[Offset, ...]:
    cells = list(cells)
    min_x = min(x for x, _ in cells)
    min_y = min(y for _, y in cells)
    return tuple(sorted(((x - min_x, y - min_y) for x, y in cells), key=lambda c: (c[1], c[0])))


def rotate(cells: Iterable[Offset]) -> Tuple[Offset, ...]:
    return tuple((-y, x) for x, y in cells)


def rotation_key(cells: Sequence[Offset]) -> Tuple[Offset, ...]:
    """Orientation independent key: the smallest of the four rotations."""

    current = tuple(cells)
    keys = []
    for _ in range(4):
        keys.append(normalise(current))
        current = rotate(current)
    return min(keys)


def _build_catalog() -> Tuple[Shape, ...]:
    shapes: List[Shape] = []
    seen: Set[Tuple[Offset, ...]] = set()
    for name, base in BASE_SHAPES:
        current = base
        for turn in range(4):
            cells = normalise(current)
            if cells not in seen:
                seen.add(cells)
                shapes.append(Shape(f"{name}-{turn}", cells))
            current = rotate(current)
    return tuple(shapes)


SHAPES: Tuple[Shape, ...] = _build_catalog()
SHAPES_BY_NAME: Dict[str, Shape] = {shape.name: shape for shape in SHAPES}
SHAPES_BY_SIZE: Dict[int, Tuple[Shape, ...]] = {
    size: tuple(shape for shape in SHAPES if shape.size == size) for size in sorted({s.size for s in SHAPES})
}


def rotations(shape: Shape) -> Tuple[Shape, ...]:
    """Distinct orientations of *shape*, catalogue shapes first."""

    key = rotation_key(shape.cells)
    known = tuple(s for s in SHAPES if rotation_key(s.cells) == key)
    if known:
        return known
    variants: List[Shape] = []
    current = shape.cells
    for turn in range(4):
        cells = normalise(current)
        if all(v.cells != cells for v in variants):
            variants.append(Shape(f"{shape.name}-rot-{turn}", cells))
        current = rotate(current)
    return tuple(variants)


def allowed_shapes(piece: Piece) -> Tuple[Shape, ...]:
    return rotations(piece.shape) if piece.rotatable else (piece.shape,)


def shape_placements(shape: Shape, allowed: FrozenSet[Cell]) -> List[FrozenSet[Cell]]:
    """Every translation of *shape* that stays inside *allowed*."""

    placements: List[FrozenSet[Cell]] = []
    for anchor in sorted(allowed, key=lambda c: (c.y, c.x)):
        for ox, oy in shape.cells:
            dx, dy = anchor.x - ox, anchor.y - oy
            cells = frozenset(Cell(x + dx, y + dy) for x, y in shape.cells)
            if cells <= allowed and cells not in placements:
                placements.append(cells)
    return placements


def piece_placements(piece: Piece, allowed: FrozenSet[Cell]) -> List[FrozenSet[Cell]]:
    placements: List[FrozenSet[Cell]] = []
    for shape in allowed_shapes(piece):
        for cells in shape_placements(shape, allowed):
            if cells not in placements:
                placements.append(cells)
    return placements


class _Budget:
    def __init__(self, limit: int) -> None:
        self.left = limit

    def spend(self) -> bool:
        self.left -= 1
        return self.left >= 0


def tile_region_with_shapes(region_cells: Sequence[Cell], rng: Rng, budget: int = TILING_BUDGET) -> Optional[List[Shape]]:
    """Random exact tiling of a region with catalogue shapes, or ``None``.

    Always branches on the uncovered cell with the fewest placements; a coin
    weighted by ``prefer_large`` decides whether big or small shapes go first.
    """

    region = frozenset(region_cells)
    by_cell: Dict[Cell, List[Tuple[Shape, FrozenSet[Cell]]]] = {cell: [] for cell in region}
    for shape in sorted(SHAPES, key=lambda s: -s.size):
        for cells in shape_placements(shape, region):
            for cell in cells:
                by_cell[cell].append((shape, cells))
    counter = _Budget(budget)

    def solve(remaining: FrozenSet[Cell]) -> Optional[List[Shape]]:
        if not remaining:
            return []
        if not counter.spend():
            return None
        cell = min(sorted(remaining, key=lambda c: (c.y, c.x)), key=lambda c: len(by_cell[c]))
        options = by_cell[cell]
        if not options:
            return None
        large_first = rng() < PREFER_LARGE
        ordered = sorted(shuffle(options, rng), key=lambda o: -o[0].size if large_first else o[0].size)
        for shape, cells in ordered:
            if not cells <= remaining:
                continue
            rest = solve(remaining - cells)
            if rest is not None:
                return [shape] + rest
        return None

    return solve(region)


def _exact_cover(region: FrozenSet[Cell], pieces: Sequence[Piece], counter: _Budget) -> bool:
    options = [piece_placements(piece, region) for piece in pieces]
    if any(not placements for placements in options):
        return False
    used = [False] * len(pieces)

    def covering(cell: Cell, remaining: FrozenSet[Cell]) -> List[Tuple[int, FrozenSet[Cell]]]:
        found: List[Tuple[int, FrozenSet[Cell]]] = []
        tried: Set[Piece] = set()
        for index, placements in enumerate(options):
            # Identical unused pieces would only repeat the same branch.
            if used[index] or pieces[index] in tried:
                continue
            tried.add(pieces[index])
            found.extend((index, cells) for cells in placements if cell in cells and cells <= remaining)
        return found

    def solve(remaining: FrozenSet[Cell]) -> bool:
        if not remaining:
            return all(used)
        if not counter.spend():
            return False
        best: Optional[List[Tuple[int, FrozenSet[Cell]]]] = None
        for cell in sorted(remaining, key=lambda c: (c.y, c.x)):
            found = covering(cell, remaining)
            if not found:
                return False
            if best is None or len(found) < len(best):
                best = found
        for index, cells in best:
            used[index] = True
            if solve(remaining - cells):
                return True
            used[index] = False
        return False

    return solve(region)


def _net_cover(region: FrozenSet[Cell], pieces: Sequence[Piece], cancel_out: bool, counter: _Budget) -> bool:
    board = frozenset(Cell(x, y) for y in range(CELL_COUNT) for x in range(CELL_COUNT))
    entries = sorted(
        ((piece_placements(piece, board), -1 if piece.negative else 1) for piece in pieces),
        key=lambda entry: len(entry[0]),
    )
    if any(not placements for placements, _ in entries):
        return False
    target = {cell: 0 if cancel_out or cell not in region else 1 for cell in board}
    coverage = [frozenset().union(*placements) for placements, _ in entries]
    positive = {cell: 0 for cell in board}
    negative = {cell: 0 for cell in board}

    def reachable(start: int) -> bool:
        for cell in board:
            pos_left = sum(1 for i in range(start, len(entries)) if entries[i][1] > 0 and cell in coverage[i])
            neg_left = sum(1 for i in range(start, len(entries)) if entries[i][1] < 0 and cell in coverage[i])
            net = positive[cell] - negative[cell]
            if not net - neg_left <= target[cell] <= net + pos_left:
                return False
            if negative[cell] > positive[cell] + pos_left:
                return False
        return True

    def solve(index: int) -> bool:
        if not counter.spend() or not reachable(index):
            return False
        if index == len(entries):
            return all(positive[c] - negative[c] == target[c] and negative[c] <= positive[c] for c in board)
        placements, sign = entries[index]
        counts = positive if sign > 0 else negative
        for cells in placements:
            for cell in cells:
                counts[cell] += 1
            if solve(index + 1):
                return True
            for cell in cells:
                counts[cell] -= 1
        return False

    return solve(0)


def can_tile_region(region_cells: Sequence[Cell], pieces: Sequence[Piece], budget: int = TILING_BUDGET) -> bool:
    """Whether *pieces* exactly tile the region, negative pieces subtracting."""

    region = frozenset(region_cells)
    positive_area = sum(p.shape.size for p in pieces if not p.negative)
    negative_area = sum(p.shape.size for p in pieces if p.negative)
    net = positive_area - negative_area
    counter = _Budget(budget)
    if not any(p.negative for p in pieces):
        return positive_area == len(region) and _exact_cover(region, pieces, counter)
    if net < 0 or (net > 0 and net != len(region)):
        return False
    if all(p.negative for p in pieces):
        return False
    return _net_cover(region, pieces, net == 0, counter)


__all__ = [
    "BASE_SHAPES",
    "Piece",
    "SHAPES",
    "SHAPES_BY_NAME",
    "SHAPES_BY_SIZE",
    "Shape",
    "TILING_BUDGET",
    "allowed_shapes",
    "can_tile_region",
    "normalise",
    "piece_placements",
    "rotate",
    "rotation_key",
    "rotations",
    "shape_placements",
    "tile_region_with_shapes",
]
