"""Region partitioning of the cell board.

Two orthogonally adjacent cells belong to the same region unless the edge
separating them is part of the drawn path.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple

from .geometry import CELL_COUNT, Cell, EdgeKey, all_cells, cell_in_bounds, edge_key

RegionMap = Dict[Cell, int]


def _crossing_edge(cell: Cell, dx: int, dy: int) -> EdgeKey:
    x, y = cell
    if dx == 1:
        return edge_key((x + 1, y), (x + 1, y + 1))
    if dx == -1:
        return edge_key((x, y), (x, y + 1))
    if dy == 1:
        return edge_key((x, y + 1), (x + 1, y + 1))
    return edge_key((x, y), (x + 1, y))


def build_cell_regions(used_edges: Iterable[EdgeKey]) -> RegionMap:
    """Flood-fill every cell; ids follow the row-major discovery order."""

    barriers = used_edges if isinstance(used_edges, (set, frozenset)) else frozenset(used_edges)
    regions: RegionMap = {}
    next_id = 0
    for cell in all_cells():
        if cell in regions:
            continue
        regions[cell] = next_id
        queue = deque([cell])
        while queue:
            current = queue.popleft()
            for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                nx, ny = current.x + dx, current.y + dy
                if not cell_in_bounds(nx, ny):
                    continue
                neighbour = Cell(nx, ny)
                if neighbour in regions:
                    continue
                if _crossing_edge(current, dx, dy) in barriers:
                    continue
                regions[neighbour] = next_id
                queue.append(neighbour)
        next_id += 1
    return regions


def group_regions(regions: Mapping[Cell, int]) -> Dict[int, List[Cell]]:
    grouped: Dict[int, List[Cell]] = {}
    for cell in all_cells():
        grouped.setdefault(regions[cell], []).append(cell)
    return grouped


def region_count(regions: Mapping[Cell, int]) -> int:
    return len(set(regions.values()))


def region_partition(regions: Mapping[Cell, int]) -> FrozenSet[FrozenSet[Cell]]:
    """Id independent view of a region map, suitable for equality checks."""

    return frozenset(frozenset(cells) for cells in group_regions(regions).values())


def region_ids_for_board_point(px: float, py: float, regions: Mapping[Cell, int]) -> Tuple[int, ...]:
    """Regions of every cell whose closed square contains ``(px, py)``."""

    found = set()
    for cy in range(CELL_COUNT):
        if not (cy <= py <= cy + 1):
            continue
        for cx in range(CELL_COUNT):
            if cx <= px <= cx + 1:
                found.add(regions[Cell(cx, cy)])
    return tuple(sorted(found))


__all__ = [
    "RegionMap",
    "build_cell_regions",
    "group_regions",
    "region_count",
    "region_ids_for_board_point",
    "region_partition",
]
