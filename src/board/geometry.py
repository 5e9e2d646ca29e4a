"""Node, edge and cell addressing for the square line-puzzle grid.

The board is an ``N x N`` lattice of nodes (``N = 5``) which frames a
``(N - 1) x (N - 1)`` board of cells.  ``y = 0`` is the top row, so the
fixed start node sits in the bottom-left corner and the end node in the
top-right corner.  Cells are addressed by their top-left node.
"""

from __future__ import annotations

from collections import deque
from typing import FrozenSet, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from project_config import get_section

NODE_COUNT = int(get_section("grid.node_count", 5))
MAX_INDEX = NODE_COUNT - 1
CELL_COUNT = NODE_COUNT - 1


class GridPoint(NamedTuple):
    """Integer node coordinate in ``[0, MAX_INDEX]``."""

    x: int
    y: int


class Cell(NamedTuple):
    """Board cell addressed by its top-left node."""

    x: int
    y: int


EdgeKey = Tuple[GridPoint, GridPoint]
EdgeSet = FrozenSet[EdgeKey]
Path = Tuple[GridPoint, ...]

START = GridPoint(0, MAX_INDEX)
END = GridPoint(MAX_INDEX, 0)

_STEPS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x <= MAX_INDEX and 0 <= y <= MAX_INDEX


def cell_in_bounds(x: int, y: int) -> bool:
    return 0 <= x < CELL_COUNT and 0 <= y < CELL_COUNT


def neighbors(point: GridPoint) -> List[GridPoint]:
    """Return the in-bounds orthogonal neighbours of *point*."""

    result: List[GridPoint] = []
    for dx, dy in _STEPS:
        nx, ny = point.x + dx, point.y + dy
        if in_bounds(nx, ny):
            result.append(GridPoint(nx, ny))
    return result


def edge_key(a: Sequence[int], b: Sequence[int]) -> EdgeKey:
    """Canonical, orientation independent identity of the edge ``a``-``b``."""

    first = GridPoint(int(a[0]), int(a[1]))
    second = GridPoint(int(b[0]), int(b[1]))
    if abs(first.x - second.x) + abs(first.y - second.y) != 1:
        raise ValueError(f"Points {first} and {second} are not adjacent")
    return (first, second) if first <= second else (second, first)


def edge_midpoint(edge: EdgeKey) -> Tuple[float, float]:
    a, b = edge
    return ((a.x + b.x) / 2, (a.y + b.y) / 2)


def list_all_edges() -> List[EdgeKey]:
    edges: List[EdgeKey] = []
    for y in range(NODE_COUNT):
        for x in range(NODE_COUNT):
            if x < MAX_INDEX:
                edges.append(edge_key((x, y), (x + 1, y)))
            if y < MAX_INDEX:
                edges.append(edge_key((x, y), (x, y + 1)))
    return edges


TOTAL_EDGE_COUNT = len(list_all_edges())


def full_edge_set() -> EdgeSet:
    return frozenset(list_all_edges())


def all_cells() -> List[Cell]:
    """Every cell in row-major order (``y`` first, then ``x``)."""

    return [Cell(x, y) for y in range(CELL_COUNT) for x in range(CELL_COUNT)]


def cell_edges(cell: Cell) -> Tuple[EdgeKey, EdgeKey, EdgeKey, EdgeKey]:
    """Return the top, bottom, left and right sides of *cell*."""

    x, y = cell
    return (
        edge_key((x, y), (x + 1, y)),
        edge_key((x, y + 1), (x + 1, y + 1)),
        edge_key((x, y), (x, y + 1)),
        edge_key((x + 1, y), (x + 1, y + 1)),
    )


def cell_corners(cell: Cell) -> Tuple[GridPoint, GridPoint, GridPoint, GridPoint]:
    x, y = cell
    return (
        GridPoint(x, y),
        GridPoint(x + 1, y),
        GridPoint(x, y + 1),
        GridPoint(x + 1, y + 1),
    )


def cell_center(cell: Cell) -> Tuple[float, float]:
    return (cell.x + 0.5, cell.y + 0.5)


def edges_from_path(path: Sequence[GridPoint]) -> EdgeSet:
    """Return the set of edges induced by consecutive points of *path*."""

    return frozenset(edge_key(path[i - 1], path[i]) for i in range(1, len(path)))


def is_valid_path(
    path: Sequence[GridPoint],
    edges: Iterable[EdgeKey],
    start: GridPoint = START,
    end: GridPoint = END,
) -> bool:
    """Check the structural path rules: endpoints, adjacency, no revisits."""

    if len(path) < 2:
        return False
    if tuple(path[0]) != tuple(start) or tuple(path[-1]) != tuple(end):
        return False
    available = edges if isinstance(edges, (set, frozenset)) else frozenset(edges)
    seen = set()
    previous: Optional[GridPoint] = None
    for point in path:
        if not in_bounds(point[0], point[1]) or tuple(point) in seen:
            return False
        seen.add(tuple(point))
        if previous is not None:
            if abs(point[0] - previous[0]) + abs(point[1] - previous[1]) != 1:
                return False
            if edge_key(previous, point) not in available:
                return False
        previous = point
    return True


def has_path(edges: Iterable[EdgeKey], start: GridPoint = START, end: GridPoint = END) -> bool:
    """Breadth-first reachability from *start* to *end* over *edges*."""

    available = edges if isinstance(edges, (set, frozenset)) else frozenset(edges)
    queue = deque([start])
    visited = {start}
    while queue:
        current = queue.popleft()
        if current == end:
            return True
        for nxt in neighbors(current):
            if nxt in visited or edge_key(current, nxt) not in available:
                continue
            visited.add(nxt)
            queue.append(nxt)
    return False


def format_point(point: Sequence[int]) -> str:
    return f"{point[0]},{point[1]}"


def format_edge(edge: EdgeKey) -> str:
    return f"{format_point(edge[0])}-{format_point(edge[1])}"


def parse_point(text: str) -> GridPoint:
    x_text, y_text = text.split(",")
    return GridPoint(int(x_text), int(y_text))


def parse_edge(text: str) -> EdgeKey:
    left, right = text.split("-")
    return edge_key(parse_point(left), parse_point(right))


__all__ = [
    "CELL_COUNT",
    "Cell",
    "END",
    "EdgeKey",
    "EdgeSet",
    "GridPoint",
    "MAX_INDEX",
    "NODE_COUNT",
    "Path",
    "START",
    "TOTAL_EDGE_COUNT",
    "all_cells",
    "cell_center",
    "cell_corners",
    "cell_edges",
    "cell_in_bounds",
    "edge_key",
    "edge_midpoint",
    "edges_from_path",
    "format_edge",
    "format_point",
    "full_edge_set",
    "has_path",
    "in_bounds",
    "is_valid_path",
    "list_all_edges",
    "neighbors",
    "parse_edge",
    "parse_point",
]
