"""Path checking, negator resolution and bounded path search."""

from __future__ import annotations

from .constraints import FAILED, ConstraintEvaluation, base_failures, failing_refs, passes, without_refs
from .evaluation import evaluate, evaluate_symbols
from .negation import resolve_negation
from .path_solver import find_any_valid_path, find_first_valid_path, find_simplest_valid_path

__all__ = [
    "ConstraintEvaluation",
    "FAILED",
    "base_failures",
    "evaluate",
    "evaluate_symbols",
    "failing_refs",
    "find_any_valid_path",
    "find_first_valid_path",
    "find_simplest_valid_path",
    "passes",
    "resolve_negation",
    "without_refs",
]
