"""Bounded depth-first search for a path that satisfies a puzzle."""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from board.geometry import GridPoint, Path, edge_key, neighbors
from board.wildness import count_turns
from project_config import get_section
from symbols.common import Puzzle

from .evaluation import evaluate

_LOGGER = logging.getLogger(__name__)

_GEN_CFG = get_section("generation", {})
MANUAL_BUDGET = int(_GEN_CFG.get("manual_budget", 12000))
FALLBACK_BUDGET = int(_GEN_CFG.get("fallback_budget", 80000))


def _walk(puzzle: Puzzle, budget: int, mode: str, stop_at_first: bool) -> List[Path]:
    """Enumerate valid paths, closest-to-end neighbours first, until the budget runs out."""

    end = puzzle.end
    found: List[Path] = []
    path: List[GridPoint] = [puzzle.start]
    visited: Set[GridPoint] = {puzzle.start}
    visits = 0

    def dfs(current: GridPoint) -> bool:
        nonlocal visits
        visits += 1
        if visits > budget:
            return True
        if current == end:
            if evaluate(puzzle, path, mode).ok:
                found.append(tuple(path))
                return stop_at_first
            return False
        ordered = sorted(neighbors(current), key=lambda p: abs(end.x - p.x) + abs(end.y - p.y))
        for nxt in ordered:
            if nxt in visited or edge_key(current, nxt) not in puzzle.edges:
                continue
            visited.add(nxt)
            path.append(nxt)
            stop = dfs(nxt)
            path.pop()
            visited.discard(nxt)
            if stop:
                return True
        return False

    dfs(puzzle.start)
    if visits > budget:
        _LOGGER.debug("path search hit its budget of %d visits", budget)
    return found


def find_any_valid_path(puzzle: Puzzle, budget: int = MANUAL_BUDGET, mode: str = "first") -> Optional[Path]:
    """First valid path in search order, or ``None`` when none turns up within *budget*."""

    found = _walk(puzzle, budget, mode, stop_at_first=True)
    return found[0] if found else None


def find_first_valid_path(puzzle: Puzzle) -> Optional[Path]:
    return find_any_valid_path(puzzle, MANUAL_BUDGET)


def find_simplest_valid_path(puzzle: Puzzle, budget: int = MANUAL_BUDGET) -> Optional[Path]:
    """Among the valid paths reachable within *budget*, the shortest, then the straightest."""

    found = _walk(puzzle, budget, "first", stop_at_first=False)
    if not found:
        return None
    return min(found, key=lambda path: (len(path), count_turns(path)))


__all__ = [
    "FALLBACK_BUDGET",
    "MANUAL_BUDGET",
    "find_any_valid_path",
    "find_first_valid_path",
    "find_simplest_valid_path",
]
