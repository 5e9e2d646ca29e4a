"""Random and "loopy" solution path generators."""

from __future__ import annotations

from collections import deque
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from project_config import get_section

from .geometry import (
    END,
    MAX_INDEX,
    NODE_COUNT,
    START,
    EdgeSet,
    GridPoint,
    Path,
    edge_key,
    is_valid_path,
    neighbors,
)
from .rng import Rng, mulberry32, shuffle, weighted_pick
from .wildness import path_metrics, random_weight_profile, wildness_score

_WILDNESS_CFG = get_section("wildness", {})
SCORE_WINDOW = float(_WILDNESS_CFG.get("score_window", 6.0))
TOP_CANDIDATES = int(_WILDNESS_CFG.get("top_candidates", 6))

_TURN_BONUS = 1.6
_INTERIOR_BONUS = 0.8

_DIRECTION_LETTERS = {(1, 0): "R", (-1, 0): "L", (0, 1): "D", (0, -1): "U"}


def find_random_path(
    edges: EdgeSet,
    rng: Rng,
    start: GridPoint = START,
    end: GridPoint = END,
) -> Optional[Path]:
    """BFS with shuffled neighbour order; ``None`` when *end* is unreachable."""

    queue = deque([start])
    parent: Dict[GridPoint, GridPoint] = {}
    visited = {start}
    while queue:
        current = queue.popleft()
        if current == end:
            break
        for nxt in shuffle(neighbors(current), rng):
            if nxt in visited or edge_key(current, nxt) not in edges:
                continue
            visited.add(nxt)
            parent[nxt] = current
            queue.append(nxt)

    if end != start and end not in parent:
        return None
    path: List[GridPoint] = [end]
    node = end
    while node != start:
        node = parent[node]
        path.append(node)
    path.reverse()
    return tuple(path)


def _is_interior(point: GridPoint) -> bool:
    return 0 < point.x < MAX_INDEX and 0 < point.y < MAX_INDEX


def build_loopy_path(
    edges: EdgeSet,
    rng: Rng,
    min_length: int,
    max_steps: int,
    start: GridPoint = START,
    end: GridPoint = END,
) -> Optional[Path]:
    """Grow one self-avoiding walk that favours turns and interior nodes.

    The walk avoids stepping onto *end* until it holds ``min_length`` points
    whenever another option exists, and returns ``None`` on a dead end.
    """

    path: List[GridPoint] = [start]
    visited = {start}
    current = start
    for _ in range(max_steps):
        if current == end and len(path) >= min_length:
            break
        options = [nxt for nxt in neighbors(current) if nxt not in visited and edge_key(current, nxt) in edges]
        if not options:
            return None
        if len(path) < min_length:
            without_end = [nxt for nxt in options if nxt != end]
            if without_end:
                options = without_end

        weights = []
        for nxt in options:
            weight = 1.0
            if len(path) >= 2:
                previous = path[-2]
                straight = (current.x - previous.x, current.y - previous.y) == (nxt.x - current.x, nxt.y - current.y)
                if not straight:
                    weight += _TURN_BONUS
            if _is_interior(nxt):
                weight += _INTERIOR_BONUS
            weights.append(weight)

        current = weighted_pick(options, weights, rng)
        visited.add(current)
        path.append(current)
        if current == end and len(path) >= min_length:
            return tuple(path)

    if current == end:
        return tuple(path)
    return None


def path_signature(path: Sequence[GridPoint]) -> str:
    """Run-length encoding of the step directions, e.g. ``U2R1D1``."""

    parts: List[str] = []
    last = ""
    run = 0
    for i in range(1, len(path)):
        letter = _DIRECTION_LETTERS[(path[i][0] - path[i - 1][0], path[i][1] - path[i - 1][1])]
        if letter == last:
            run += 1
            continue
        if last:
            parts.append(f"{last}{run}")
        last, run = letter, 1
    if last:
        parts.append(f"{last}{run}")
    return "".join(parts)


def find_best_loopy_path(
    edges: EdgeSet,
    rng: Rng,
    attempts: int,
    min_length: int,
    avoid_signatures: AbstractSet[str] = frozenset(),
    start: GridPoint = START,
    end: GridPoint = END,
) -> Optional[Path]:
    """Sample loopy walks and pick among the best-scoring distinct shapes."""

    max_steps = max(20, len(edges) - 4)
    profile = random_weight_profile(mulberry32(int(rng() * 4294967296)))
    scored: Dict[str, Tuple[float, Path]] = {}
    for _ in range(attempts):
        path = build_loopy_path(edges, rng, min_length, max_steps, start, end)
        if path is None:
            continue
        signature = path_signature(path)
        score = wildness_score(path_metrics(path), profile)
        known = scored.get(signature)
        if known is None or score > known[0]:
            scored[signature] = (score, path)
    if not scored:
        return None

    ranked = sorted(scored.items(), key=lambda item: (-item[1][0], item[0]))
    fresh = [item for item in ranked if item[0] not in avoid_signatures]
    if fresh:
        ranked = fresh
    best = ranked[0][1][0]
    floor = best - SCORE_WINDOW
    window = [item for item in ranked[:TOP_CANDIDATES] if item[1][0] >= floor]
    choice = weighted_pick(window, [item[1][0] - floor + 0.5 for item in window], rng)
    return choice[1][1]


def _serpentine(by_columns: bool) -> Path:
    points: List[GridPoint] = []
    for major in range(NODE_COUNT):
        minor = range(MAX_INDEX, -1, -1) if major % 2 == 0 else range(NODE_COUNT)
        for m in minor:
            points.append(GridPoint(major, m) if by_columns else GridPoint(MAX_INDEX - m, MAX_INDEX - major))
    return tuple(points)


def build_full_grid_path(
    seed: int,
    edges: EdgeSet,
    budget: int = 4000,
    start: GridPoint = START,
    end: GridPoint = END,
) -> Optional[Path]:
    """Randomised Hamiltonian path from *start* to *end* over *edges*.

    Uses a Warnsdorff-ordered DFS bounded by *budget* expansions and falls
    back to the two serpentine sweeps.
    """

    rng = mulberry32(seed)
    total = NODE_COUNT * NODE_COUNT
    path: List[GridPoint] = [start]
    visited = {start}
    visits = 0

    def onward(node: GridPoint) -> int:
        return sum(1 for n in neighbors(node) if n not in visited and edge_key(node, n) in edges)

    def dfs(current: GridPoint) -> bool:
        nonlocal visits
        visits += 1
        if visits > budget:
            return False
        if current == end:
            return len(path) == total
        options = [n for n in shuffle(neighbors(current), rng) if n not in visited and edge_key(current, n) in edges]
        options.sort(key=onward)
        for nxt in options:
            if nxt == end and len(path) + 1 < total:
                continue
            visited.add(nxt)
            path.append(nxt)
            if dfs(nxt):
                return True
            path.pop()
            visited.discard(nxt)
        return False

    if dfs(start):
        return tuple(path)
    for by_columns in (rng() < 0.5, True, False):
        candidate = _serpentine(by_columns)
        if is_valid_path(candidate, edges, start, end):
            return candidate
    return None


__all__ = [
    "build_full_grid_path",
    "build_loopy_path",
    "find_best_loopy_path",
    "find_random_path",
    "path_signature",
]
