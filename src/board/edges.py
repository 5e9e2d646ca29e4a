"""Random gap (missing edge) generation."""

from __future__ import annotations

import math
from typing import Sequence

from project_config import get_section

from .geometry import END, START, EdgeSet, GridPoint, edges_from_path, full_edge_set, has_path, list_all_edges
from .rng import Rng, mulberry32, shuffle

_EDGES_CFG = get_section("edges", {})
GAP_RATIO_MIN = float(_EDGES_CFG.get("gap_ratio_min", 0.12))
GAP_RATIO_SPAN = float(_EDGES_CFG.get("gap_ratio_span", 0.12))
REACHABILITY_ATTEMPTS = int(_EDGES_CFG.get("reachability_attempts", 40))
ATTEMPT_SEED_STEP = int(_EDGES_CFG.get("attempt_seed_step", 97))


def build_edges(rng: Rng) -> EdgeSet:
    """Drop a random 12-24% share of the full edge set."""

    all_edges = list_all_edges()
    gap_count = int(math.floor(len(all_edges) * (GAP_RATIO_MIN + rng() * GAP_RATIO_SPAN)))
    removed = set(shuffle(all_edges, rng)[:gap_count])
    return frozenset(edge for edge in all_edges if edge not in removed)


def generate_gap_edges(seed: int, start: GridPoint = START, end: GridPoint = END) -> EdgeSet:
    """Sample gap layouts until *end* stays reachable from *start*."""

    for attempt in range(REACHABILITY_ATTEMPTS):
        edges = build_edges(mulberry32(seed + attempt * ATTEMPT_SEED_STEP))
        if has_path(edges, start, end):
            return edges
    # Every sample disconnected the endpoints; the caller finds no path and retries.
    return build_edges(mulberry32(seed))


def generate_gap_edges_keeping_path(seed: int, path: Sequence[GridPoint]) -> EdgeSet:
    """Like :func:`generate_gap_edges` but never removes an edge of *path*."""

    required = edges_from_path(path)
    all_edges = list_all_edges()
    removable = [edge for edge in all_edges if edge not in required]
    if not removable:
        return full_edge_set()
    for attempt in range(REACHABILITY_ATTEMPTS):
        rng = mulberry32(seed + attempt * ATTEMPT_SEED_STEP)
        ratio = GAP_RATIO_MIN + rng() * GAP_RATIO_SPAN
        gap_count = min(len(removable), int(math.floor(len(all_edges) * ratio)))
        removed = set(shuffle(removable, rng)[:gap_count])
        edges = frozenset(edge for edge in all_edges if edge not in removed)
        if has_path(edges, path[0], path[-1]):
            return edges
    return full_edge_set()


def missing_edges(edges: EdgeSet):
    """Edges of the full grid absent from *edges*, in canonical order."""

    return [edge for edge in list_all_edges() if edge not in edges]


__all__ = [
    "build_edges",
    "generate_gap_edges",
    "generate_gap_edges_keeping_path",
    "missing_edges",
]
