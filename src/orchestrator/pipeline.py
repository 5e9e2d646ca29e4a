"""Kind placement steps folded over an :class:`AttemptState`.

Each requested kind contributes one step, run in :data:`GENERATION_ORDER`.
A step either returns the next state or a :class:`PlacementFailure`; the first
failure ends the attempt.  Kinds without a dedicated step use
:func:`place_kind`, which calls the kind's registered generator.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Union

from board.edges import generate_gap_edges, generate_gap_edges_keeping_path
from board.geometry import full_edge_set, is_valid_path
from board.paths import find_best_loopy_path, find_random_path
from board.rng import Rng
from symbols.common import MAX_SYMBOL_COLORS, symbol_colors
from symbols.hexagon import build_full_grid_hex_path, should_use_full_grid
from symbols.registry import GENERATION_ORDER, Kind, get_kind_spec

from .attempt import AttemptState, PlacementFailure, kind_seed

_LOGGER = logging.getLogger(__name__)

StepResult = Union[AttemptState, PlacementFailure]
Step = Callable[[AttemptState], StepResult]

_STEPS: Dict[Kind, Step] = {}


def register_step(kind: Kind) -> Callable[[Step], Step]:
    """Decorator binding a placement step to *kind*."""

    def decorator(step: Step) -> Step:
        if kind in _STEPS:
            raise ValueError(f"Placement step for {kind.value!r} is already registered")
        _STEPS[kind] = step
        return step

    return decorator


def get_step(kind: Kind) -> Step:
    step = _STEPS.get(kind)
    if step is not None:
        return step
    return lambda state: place_kind(state, kind)


def _over_color_budget(state: AttemptState) -> bool:
    return Kind.STARS in state.kinds and len(symbol_colors(state.symbols)) > MAX_SYMBOL_COLORS


def place_kind(state: AttemptState, kind: Kind) -> StepResult:
    """Run *kind*'s generator against *state* and fold the result in."""

    placement = get_kind_spec(kind).generate(state.context(kind))
    if placement is None or not placement.targets:
        return PlacementFailure(kind, state.attempt, "found no placement")
    if state.path_locked and tuple(placement.path) != state.path:
        return PlacementFailure(kind, state.attempt, "moved the locked solution path")
    if not is_valid_path(placement.path, state.edges, state.start, state.end):
        return PlacementFailure(kind, state.attempt, "returned an undrawable path")
    nxt = state.with_placement(kind, placement)
    if _over_color_budget(nxt):
        return PlacementFailure(kind, state.attempt, "exceeded the colour budget")
    return nxt


@register_step(Kind.NEGATOR)
def place_negators(state: AttemptState) -> StepResult:
    if not any(kind is not Kind.GAP for kind in state.symbols) and len(state.active_kinds) > 1:
        return PlacementFailure(Kind.NEGATOR, state.attempt, "has nothing to cancel")
    return place_kind(state, Kind.NEGATOR)


def setup_attempt(
    seed: int,
    attempt: int,
    kinds,
    rng: Rng,
    *,
    loopy_attempts: int,
    min_length: int,
    avoid_signatures=frozenset(),
) -> Union[AttemptState, PlacementFailure]:
    """Edges and preferred solution path for *attempt*.

    With hexagons requested an attempt may switch to the full-grid variant:
    a Hamiltonian path is drawn first and the gaps are cut around it, so the
    path stays drawable and is locked for every later kind.
    """

    state = AttemptState(attempt=attempt, seed=seed, edges=full_edge_set(), kinds=tuple(kinds))
    gap_seed = kind_seed(seed, attempt, Kind.GAP)

    if Kind.HEXAGON in state.kinds:
        hex_seed = kind_seed(seed, attempt, Kind.HEXAGON)
        if should_use_full_grid(hex_seed):
            path = build_full_grid_hex_path(hex_seed, state.edges)
            if path is not None:
                edges = generate_gap_edges_keeping_path(gap_seed, path) if Kind.GAP in state.kinds else state.edges
                _LOGGER.debug("attempt %d uses a full-grid hexagon path", attempt)
                return state.evolve(edges=edges, path=path, path_locked=True)

    edges = generate_gap_edges(gap_seed) if Kind.GAP in state.kinds else state.edges
    path = find_best_loopy_path(edges, rng, loopy_attempts, min_length, avoid_signatures)
    if path is None:
        path = find_random_path(edges, rng)
    if path is None:
        return PlacementFailure(Kind.GAP, attempt, "left no drawable path")
    return state.evolve(edges=edges, path=path)


def run_pipeline(state: AttemptState, order=GENERATION_ORDER) -> StepResult:
    """Fold every requested kind's step over *state*."""

    for kind in order:
        if kind not in state.kinds:
            continue
        result = get_step(kind)(state)
        if isinstance(result, PlacementFailure):
            _LOGGER.debug("%s", result)
            return result
        state = result
    return state


def missing_kinds(state: AttemptState) -> Optional[str]:
    missing = [kind.value for kind in state.kinds if not state.symbols.get(kind)]
    return ", ".join(missing) if missing else None


__all__ = [
    "Step",
    "StepResult",
    "get_step",
    "missing_kinds",
    "place_kind",
    "place_negators",
    "register_step",
    "run_pipeline",
    "setup_attempt",
]
