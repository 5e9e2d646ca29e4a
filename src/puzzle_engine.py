"""Public entry points: generate a puzzle, check a path against it, solve it."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from board.geometry import Path
from orchestrator.generator import PuzzleGenerator
from orchestrator.overrides import Overrides
from orchestrator.recency import GenerationHistory
from solver.constraints import ConstraintEvaluation
from solver.evaluation import evaluate
from solver.path_solver import MANUAL_BUDGET, find_any_valid_path
from symbols.common import Puzzle
from symbols.registry import parse_kinds


def generate_puzzle(
    seed: int,
    kinds: Sequence[Any],
    overrides: Optional[Overrides] = None,
    history: Optional[GenerationHistory] = None,
) -> Puzzle:
    """Generate a solvable puzzle for ``(seed, kinds)``.

    Kind names are parsed up front so that an unknown name raises
    ``ValueError`` before any generation work starts.  Passing a
    :class:`GenerationHistory` lets successive calls avoid repeating solution
    shapes; without one the result depends only on the arguments.

    Raises :class:`contracts.errors.GenerationExhaustedError` when every
    attempt and recovery tier fails.
    """

    requested = parse_kinds(kinds)
    return PuzzleGenerator(history=history).generate(int(seed), requested, overrides)


def check_path(puzzle: Puzzle, path: Sequence[Sequence[int]]) -> ConstraintEvaluation:
    """Evaluate *path* on *puzzle*, negators included; ill-formed paths fail."""

    return evaluate(puzzle, path)


def solve(puzzle: Puzzle, budget: Optional[int] = None) -> Optional[Path]:
    """Search for any satisfying path; ``None`` once ``budget`` visits are spent."""

    return find_any_valid_path(puzzle, MANUAL_BUDGET if budget is None else int(budget))


__all__ = ["check_path", "generate_puzzle", "solve"]
