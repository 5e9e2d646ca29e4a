"""Caller-supplied puzzles that bypass generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence, Tuple

from board.geometry import END, START, EdgeSet, GridPoint, has_path, in_bounds, list_all_edges
from contracts.errors import InvalidOverridesError
from solver.path_solver import MANUAL_BUDGET, find_any_valid_path
from symbols.common import Puzzle, normalise_symbols
from symbols.registry import Kind, get_kind_spec

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Overrides:
    """Fixed geometry and targets for tutorial or hand-made puzzles."""

    edges: EdgeSet
    start: GridPoint = START
    end: GridPoint = END
    symbols: Mapping[Kind, Tuple[Any, ...]] = field(default_factory=dict)


def _check_shape(overrides: Overrides) -> None:
    for label, point in (("start", overrides.start), ("end", overrides.end)):
        if not in_bounds(point[0], point[1]):
            raise InvalidOverridesError(f"{label} point {tuple(point)} is off the board")
    if overrides.start == overrides.end:
        raise InvalidOverridesError("start and end must differ")
    known = set(list_all_edges())
    stray = [edge for edge in overrides.edges if edge not in known]
    if stray:
        raise InvalidOverridesError(f"{len(stray)} edges are not unit grid edges")
    for kind, targets in overrides.symbols.items():
        target_type = get_kind_spec(kind).target_type
        for index, target in enumerate(targets):
            if not isinstance(target, target_type):
                raise InvalidOverridesError(
                    f"{kind.value}[{index}] is a {type(target).__name__}, expected {target_type.__name__}"
                )


def resolve_overrides(
    overrides: Overrides,
    kinds: Sequence[Kind] = (),
    seed: Optional[int] = None,
    budget: int = MANUAL_BUDGET,
) -> Puzzle:
    """Validate *overrides* and turn them into a :class:`Puzzle`.

    The endpoints must be connected by the edges and a bounded solve must
    find a satisfying path; otherwise :class:`InvalidOverridesError` is raised.
    """

    _check_shape(overrides)
    edges = frozenset(overrides.edges)
    if not has_path(edges, overrides.start, overrides.end):
        raise InvalidOverridesError("end is not reachable from start")
    symbols = normalise_symbols(overrides.symbols)
    puzzle_kinds = tuple(dict.fromkeys(list(kinds) + [kind for kind in Kind if kind in symbols]))
    puzzle = Puzzle(
        edges=edges,
        symbols=symbols,
        start=GridPoint(*overrides.start),
        end=GridPoint(*overrides.end),
        kinds=puzzle_kinds,
        seed=seed,
    )
    path = find_any_valid_path(puzzle, budget)
    if path is None:
        raise InvalidOverridesError(f"no satisfying path found within {budget} visits")
    _LOGGER.debug("override puzzle solved with a %d-point path", len(path))
    return replace(puzzle, solution_hint=path)


__all__ = ["Overrides", "resolve_overrides"]
