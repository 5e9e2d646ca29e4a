"""Grid primitives, region partitioning and path generation."""

from __future__ import annotations

from .geometry import (
    CELL_COUNT,
    END,
    MAX_INDEX,
    NODE_COUNT,
    START,
    Cell,
    EdgeKey,
    EdgeSet,
    GridPoint,
    Path,
    edge_key,
    edges_from_path,
    full_edge_set,
    has_path,
    is_valid_path,
    neighbors,
)
from .regions import RegionMap, build_cell_regions, group_regions, region_count
from .rng import Rng, mulberry32

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
    "RegionMap",
    "Rng",
    "START",
    "build_cell_regions",
    "edge_key",
    "edges_from_path",
    "full_edge_set",
    "group_regions",
    "has_path",
    "is_valid_path",
    "mulberry32",
    "neighbors",
    "region_count",
]
