"""Checking a path against a whole puzzle."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from board.geometry import GridPoint, is_valid_path
from symbols.common import Puzzle, build_view
from symbols.registry import Kind

from .constraints import FAILED, ConstraintEvaluation
from .negation import resolve_negation


def evaluate(puzzle: Puzzle, path: Sequence[Sequence[int]], mode: str = "first") -> ConstraintEvaluation:
    """Full check of *path*, negation included.

    An ill-formed path (not from start to end, revisiting a node, or using a
    missing edge) evaluates to ``ok=False``.
    """

    points = tuple(GridPoint(int(p[0]), int(p[1])) for p in path)
    if not is_valid_path(points, puzzle.edges, puzzle.start, puzzle.end):
        return FAILED
    return resolve_negation(build_view(points, puzzle.symbols), mode)


def evaluate_symbols(
    path: Sequence[GridPoint], symbols: Mapping[Kind, Sequence[Any]], mode: str = "first"
) -> ConstraintEvaluation:
    """Evaluate a symbol snapshot on a path already known to be drawable."""

    return resolve_negation(build_view(path, {k: tuple(v) for k, v in symbols.items() if v}), mode)


__all__ = ["evaluate", "evaluate_symbols"]
