"""Puzzle generation with retries, pending candidates and solver fallbacks.

One attempt builds edges and a preferred solution path, then folds every
requested kind's placement step over an :class:`AttemptState`.  Attempts whose
path checks out (and looks wild enough) are returned straight away.  Attempts
that placed everything but fail the check are scored and parked in a bounded
pending pool; once the attempt budget is spent the pool is worked through in
four tiers of increasing solver effort before generation gives up.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from board.rng import mulberry32
from board.wildness import meets_wildness_target
from contracts.errors import GenerationExhaustedError
from feature_flags import active_profile, is_events_enabled
from project_config import get_section
from solver.evaluation import evaluate_symbols
from solver.path_solver import find_any_valid_path
from symbols.common import Puzzle
from symbols.registry import NEGATIVE_POLYOMINO_KINDS, POLYOMINO_KINDS, Kind, parse_kinds

from . import log
from .attempt import AttemptState, PlacementFailure
from .overrides import Overrides, resolve_overrides
from .pipeline import missing_kinds, run_pipeline, setup_attempt
from .recency import GenerationHistory, puzzle_key

_LOGGER = logging.getLogger(__name__)

MAX_ACTIVE_KINDS = 4


@dataclass(frozen=True)
class GenerationPlan:
    """Budgets for one ``generate`` call, derived from the requested kinds."""

    active: Tuple[Kind, ...]
    attempts: int
    loopy_attempts: int
    min_length: int
    pending_limit: int
    solver_budget: int
    recovery_budget: int
    fallback_budget: int
    heavy: bool
    poly_only: bool


def _pick(table: Mapping[str, Any], name: str, heavy: bool, default: Sequence[int]) -> int:
    pair = table.get(name, default)
    return int(pair[1] if heavy else pair[0])


def plan_for(kinds: Sequence[Kind], config: Mapping[str, Any]) -> GenerationPlan:
    active = tuple(kind for kind in kinds if kind is not Kind.GAP)
    if not active and Kind.GAP not in kinds:
        raise ValueError("At least one symbol kind is required")
    if len(active) > MAX_ACTIVE_KINDS:
        raise ValueError(f"At most {MAX_ACTIVE_KINDS} symbol kinds can be combined, got {len(active)}")

    # A gap-only board is budgeted like a single kind.
    count = max(1, len(active))
    heavy = any(kind in NEGATIVE_POLYOMINO_KINDS or kind is Kind.NEGATOR for kind in active)
    poly_only = bool(active) and all(kind in POLYOMINO_KINDS for kind in active)
    has_poly = any(kind in POLYOMINO_KINDS for kind in active)

    attempts_cfg = config.get("attempts", {})
    if poly_only:
        attempts = _pick(attempts_cfg, "poly_only", heavy, (110, 140))
    elif count >= 4:
        attempts = _pick(attempts_cfg, "four_plus", heavy, (210, 260))
    elif count == 3:
        attempts = _pick(attempts_cfg, "three", heavy, (160, 200))
    else:
        attempts = _pick(attempts_cfg, "one_or_two", heavy, (110, 140))

    loopy_cfg = config.get("loopy", {})
    loopy_name = ("one", "two", "three", "four_plus")[min(count, 4) - 1]
    loopy = _pick(loopy_cfg, loopy_name, heavy, (32, 40))
    min_length = int(list(loopy_cfg.get("min_length", (9, 10, 12, 12)))[min(count, 4) - 1])
    if has_poly:
        loopy = max(int(loopy_cfg.get("poly_min_attempts", 22)), int(loopy * float(loopy_cfg.get("poly_scale", 0.8))))
        min_length = max(9, min_length - 1)

    pending_cfg = config.get("pending", {})
    base = pending_cfg.get("base", (6, 8))
    by_count = list(pending_cfg.get("by_count", (8, 8, 10, 12)))
    pending_limit = max(int(base[0] if poly_only else base[1]), int(by_count[min(count, 4) - 1]))

    if poly_only:
        solver_budget = int(config.get("solver_budget_poly_only", 2200))
        recovery_budget = int(config.get("recovery_budget_poly_only", 4500))
    else:
        solver_budget = int(config.get("solver_budget_heavy" if heavy else "solver_budget_light", 1400 if heavy else 2600))
        recovery_budget = int(config.get("recovery_budget", 6000))

    return GenerationPlan(
        active=active,
        attempts=attempts,
        loopy_attempts=loopy,
        min_length=min_length,
        pending_limit=pending_limit,
        solver_budget=solver_budget,
        recovery_budget=recovery_budget,
        fallback_budget=int(config.get("fallback_budget", 80000)),
        heavy=heavy,
        poly_only=poly_only,
    )


def _payload_key(target: Any) -> Tuple[Any, ...]:
    return tuple(getattr(target, f.name) for f in fields(target) if f.name != "cell")


def score_candidate(state: AttemptState) -> float:
    """Rank a placed-but-unverified attempt: coverage, then symbols, variety and length."""

    active = state.active_kinds
    coverage = sum(1 for kind in active if state.symbols.get(kind)) / max(1, len(active))
    variety = len(
        {
            (kind, _payload_key(target))
            for kind, targets in state.symbols.items()
            if kind is not Kind.GAP
            for target in targets
        }
    )
    length = len(state.path) if state.path else 0
    return coverage * 100 + state.symbol_count() * 10 + variety * 4 + length


@dataclass(frozen=True)
class PendingCandidate:
    score: float
    attempt: int
    state: AttemptState


class PendingPool:
    """Best-scored attempts kept for recovery, capped at ``limit`` entries."""

    def __init__(self, limit: int) -> None:
        self.limit = max(1, int(limit))
        self._items: List[PendingCandidate] = []

    def __len__(self) -> int:
        return len(self._items)

    def offer(self, state: AttemptState) -> PendingCandidate:
        candidate = PendingCandidate(score_candidate(state), state.attempt, state)
        self._items.append(candidate)
        self._items.sort(key=lambda item: (-item.score, item.attempt))
        del self._items[self.limit :]
        return candidate

    def best_first(self) -> List[PendingCandidate]:
        return list(self._items)

    def best(self) -> Optional[PendingCandidate]:
        return self._items[0] if self._items else None


class PuzzleGenerator:
    """Generates solvable puzzles for a seed and a set of requested kinds.

    ``history`` is optional; without one no path shapes are avoided and the
    same ``(seed, kinds)`` always yields the same puzzle.  ``config`` overrides
    keys of the ``[generation]`` table.
    """

    def __init__(
        self,
        history: Optional[GenerationHistory] = None,
        config: Optional[Mapping[str, Any]] = None,
        *,
        events: Optional[bool] = None,
    ) -> None:
        merged: Dict[str, Any] = dict(get_section("generation", {}))
        merged.update(config or {})
        self.config = merged
        self.history = history
        self.events = is_events_enabled(os.environ, profile=active_profile()) if events is None else events
        self.attempt_seed_step = int(merged.get("attempt_seed_step", 313))
        self.attempt_seed_bias = int(merged.get("attempt_seed_bias", 11))
        self.fallback_every = max(1, int(merged.get("fallback_every", 8)))
        self.near_end_window = int(merged.get("near_end_window", 10))

    def _emit(self, name: str, seed: int, kinds: Sequence[Kind], **extra: Any) -> None:
        if not self.events:
            return
        event = {"event": name, "seed": seed, "kinds": [kind.value for kind in kinds]}
        event.update(extra)
        log.append_event(event)

    def _finish(self, key: str, puzzle: Puzzle, event: str, **extra: Any) -> Puzzle:
        if self.history is not None:
            self.history.record(key, puzzle.solution_hint)
        self._emit(event, puzzle.seed, puzzle.kinds, **extra)
        return puzzle

    def run_attempt(self, seed: int, kinds: Tuple[Kind, ...], attempt: int, plan: GenerationPlan, key: str):
        rng = mulberry32(seed + attempt * self.attempt_seed_step + self.attempt_seed_bias)
        avoid = (
            self.history.avoid_signatures(key, attempt, plan.attempts) if self.history is not None else frozenset()
        )
        state = setup_attempt(
            seed,
            attempt,
            kinds,
            rng,
            loopy_attempts=plan.loopy_attempts,
            min_length=plan.min_length,
            avoid_signatures=avoid,
        )
        if isinstance(state, PlacementFailure):
            return state
        return run_pipeline(state)

    def _solve(self, state: AttemptState, budget: int) -> Optional[Puzzle]:
        puzzle = state.to_puzzle()
        path = find_any_valid_path(puzzle, budget)
        if path is None:
            return None
        return state.to_puzzle(solution_hint=path)

    def _wants_early_rescue(self, attempt: int, plan: GenerationPlan) -> bool:
        return (attempt + 1) % self.fallback_every == 0 or attempt >= plan.attempts - self.near_end_window

    def _recover(self, pool: PendingPool, plan: GenerationPlan) -> Tuple[Optional[Puzzle], int]:
        candidates = pool.best_first()
        for candidate in candidates:
            state = candidate.state
            if evaluate_symbols(state.path, state.symbols).ok:
                return state.to_puzzle(), 1
        for tier, budget in ((2, plan.solver_budget), (3, plan.recovery_budget)):
            for candidate in candidates:
                puzzle = self._solve(candidate.state, budget)
                if puzzle is not None:
                    return puzzle, tier
            _LOGGER.info("recovery tier %d found nothing among %d candidates", tier, len(candidates))
        best = pool.best()
        if best is not None:
            puzzle = self._solve(best.state, plan.fallback_budget)
            if puzzle is not None:
                return puzzle, 4
        return None, 0

    def generate(self, seed: int, kinds: Sequence[Any], overrides: Optional[Overrides] = None) -> Puzzle:
        """Return a solvable puzzle holding at least one target of every requested kind."""

        requested = parse_kinds(kinds)
        if overrides is not None:
            return resolve_overrides(overrides, requested, seed)
        plan = plan_for(requested, self.config)
        full_kinds = (Kind.GAP,) + plan.active
        key = puzzle_key(seed, full_kinds)
        pool = PendingPool(plan.pending_limit)
        failures: Dict[str, int] = {}

        for attempt in range(plan.attempts):
            result = self.run_attempt(seed, full_kinds, attempt, plan, key)
            if isinstance(result, PlacementFailure):
                failures[result.kind.value] = failures.get(result.kind.value, 0) + 1
                continue
            if missing_kinds(result):
                continue
            if evaluate_symbols(result.path, result.symbols).ok and meets_wildness_target(result.path, len(plan.active)):
                _LOGGER.debug("seed %d solved on attempt %d", seed, attempt)
                return self._finish(key, result.to_puzzle(), "generation.success", attempts=attempt + 1)
            pool.offer(result)
            if self._wants_early_rescue(attempt, plan):
                puzzle = self._solve(result, plan.solver_budget)
                if puzzle is not None:
                    _LOGGER.debug("seed %d rescued by the solver on attempt %d", seed, attempt)
                    return self._finish(key, puzzle, "generation.success", attempts=attempt + 1, rescued=True)

        _LOGGER.debug("seed %d: placement failures by kind %s", seed, failures)
        if len(pool):
            _LOGGER.info("seed %d: attempts spent, recovering from %d pending candidates", seed, len(pool))
        puzzle, tier = self._recover(pool, plan)
        if puzzle is not None:
            return self._finish(key, puzzle, "generation.recovered", attempts=plan.attempts, tier=tier)

        _LOGGER.warning("seed %d: generation exhausted for %s", seed, [kind.value for kind in full_kinds])
        self._emit("generation.exhausted", seed, full_kinds, attempts=plan.attempts, failures=failures)
        raise GenerationExhaustedError(seed, full_kinds, plan.attempts)


__all__ = [
    "GenerationPlan",
    "PendingCandidate",
    "PendingPool",
    "PuzzleGenerator",
    "plan_for",
    "score_candidate",
]
