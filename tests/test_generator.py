from __future__ import annotations

import json

import pytest

from board.geometry import Cell, GridPoint, edge_key, full_edge_set, has_path, is_valid_path
from board.rng import mulberry32
from contracts.errors import GenerationExhaustedError, InvalidOverridesError
from orchestrator import log
from orchestrator.attempt import AttemptState, PlacementFailure, kind_seed
from orchestrator.generator import PendingPool, PuzzleGenerator, plan_for, score_candidate
from orchestrator.overrides import Overrides, resolve_overrides
from orchestrator.pipeline import register_step, run_pipeline, setup_attempt
from orchestrator.recency import GenerationHistory, puzzle_key
from project_config import get_section
from solver.evaluation import evaluate
from solver.path_solver import MANUAL_BUDGET, find_any_valid_path
from symbols.registry import Kind
from symbols.stars import StarTarget
from symbols.triangles import TriangleTarget

MIDDLE_SPLIT = tuple(
    GridPoint(x, y) for x, y in ((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))
)


def _generator(**kwargs):
    return PuzzleGenerator(events=False, **kwargs)


@pytest.mark.parametrize(
    "kinds",
    [
        ["triangles"],
        ["color-squares"],
        ["dots", "arrows"],
        ["stars", "triangles"],
        ["polyomino"],
    ],
)
def test_generated_puzzles_cover_every_kind_and_solve(kinds):
    puzzle = _generator().generate(1234, kinds)
    assert puzzle.kinds[0] is Kind.GAP
    for name in kinds:
        assert puzzle.targets(Kind(name))
    assert is_valid_path(puzzle.solution_hint, puzzle.edges, puzzle.start, puzzle.end)
    assert evaluate(puzzle, puzzle.solution_hint).ok


def _single_kind_requests():
    requests = []
    for kind in Kind:
        if kind is Kind.GAP:
            continue
        if kind is Kind.NEGATIVE_POLYOMINO:
            requests.append(["polyomino", kind.value])
        else:
            requests.append([kind.value])
    return requests


@pytest.mark.parametrize("kinds", _single_kind_requests(), ids=lambda kinds: "+".join(kinds))
def test_every_kind_generates_a_solvable_puzzle(kinds):
    puzzle = _generator().generate(31, kinds)
    for name in kinds:
        assert puzzle.targets(Kind(name))
    assert evaluate(puzzle, puzzle.solution_hint).ok
    path = find_any_valid_path(puzzle, MANUAL_BUDGET)
    assert path is not None
    assert evaluate(puzzle, path).ok


@pytest.mark.parametrize("seed", [1, 2, 40])
def test_gap_only_request_cuts_edges_and_stays_solvable(seed):
    puzzle = _generator().generate(seed, ["gap-line"])
    assert puzzle.kinds == (Kind.GAP,)
    assert puzzle.edges != full_edge_set()
    assert puzzle.targets(Kind.GAP)
    assert has_path(puzzle.edges)
    assert is_valid_path(puzzle.solution_hint, puzzle.edges)


def test_gap_only_plan_uses_single_kind_budgets():
    config = get_section("generation", {})
    gap_only = plan_for((Kind.GAP,), config)
    single = plan_for((Kind.GAP, Kind.TRIANGLES), config)
    assert gap_only.active == ()
    assert not gap_only.poly_only
    assert gap_only.attempts == single.attempts
    assert gap_only.pending_limit == single.pending_limit
    assert gap_only.min_length == single.min_length


def test_generation_is_deterministic():
    first = _generator().generate(77, ["triangles", "dots"])
    second = _generator().generate(77, ["triangles", "dots"])
    assert first == second


def test_kind_count_limits():
    with pytest.raises(ValueError):
        _generator().generate(1, [])
    with pytest.raises(ValueError):
        _generator().generate(1, ["stars", "triangles", "dots", "arrows", "chevrons"])
    with pytest.raises(ValueError):
        _generator().generate(1, ["black-holes"])


def test_exhaustion_raises_with_context():
    generator = _generator(config={"attempts": {"one_or_two": [0, 0]}})
    with pytest.raises(GenerationExhaustedError) as excinfo:
        generator.generate(5, ["triangles"])
    assert excinfo.value.seed == 5
    assert excinfo.value.attempts == 0
    assert "triangles" in excinfo.value.kinds


def test_plan_scales_with_load():
    config = get_section("generation", {})
    light = plan_for((Kind.TRIANGLES,), config)
    heavy = plan_for((Kind.TRIANGLES, Kind.NEGATOR), config)
    four = plan_for((Kind.TRIANGLES, Kind.DOTS, Kind.ARROWS, Kind.STARS), config)
    poly = plan_for((Kind.POLYOMINO,), config)
    assert light.attempts < heavy.attempts < four.attempts
    assert heavy.heavy and not light.heavy
    assert poly.poly_only
    assert poly.min_length == 9
    assert four.pending_limit == 12


def test_history_records_and_relaxes():
    history = GenerationHistory(signature_limit=3, avoid_window=2, key_limit=2, relax_last=1)
    history.record("a", MIDDLE_SPLIT)
    assert len(history) == 1
    assert history.seen("a")
    assert history.avoid_signatures("a", 0, 10) == frozenset()
    assert history.avoid_signatures("b", 0, 10) == {"U2R4U2"}
    assert history.avoid_signatures("b", 9, 10) == frozenset()
    history.record("b", None)
    history.record("c", None)
    assert not history.seen("a")
    history.clear()
    assert len(history) == 0
    assert puzzle_key(3, [Kind.STARS, Kind.GAP]) == "3:gap-line,stars"


def test_generator_feeds_history():
    history = GenerationHistory()
    generator = _generator(history=history)
    puzzle = generator.generate(21, ["triangles"])
    assert len(history) == 1
    assert history.seen(puzzle_key(21, puzzle.kinds))


def test_events_are_logged(tmp_path):
    log.configure(tmp_path)
    PuzzleGenerator(events=True).generate(8, ["triangles"])
    files = list(tmp_path.rglob("events_*.jsonl"))
    assert len(files) == 1
    event = json.loads(files[0].read_text(encoding="utf-8").splitlines()[-1])
    assert event["event"] in ("generation.success", "generation.recovered")
    assert event["seed"] == 8
    assert event["kinds"] == ["gap-line", "triangles"]


def test_kind_seed_uses_configured_offsets():
    assert kind_seed(100, 0, Kind.STARS) == 100
    assert kind_seed(100, 2, Kind.STARS) == 100 + 2 * 5003
    assert kind_seed(100, 1, Kind.GAP) == 231


def test_setup_and_pipeline_produce_a_consistent_state():
    kinds = (Kind.GAP, Kind.TRIANGLES)
    state = setup_attempt(9, 0, kinds, mulberry32(9), loopy_attempts=30, min_length=9)
    assert isinstance(state, AttemptState)
    assert is_valid_path(state.path, state.edges)
    result = run_pipeline(state)
    if isinstance(result, PlacementFailure):
        assert result.kind is Kind.TRIANGLES
    else:
        assert result.path_locked
        assert result.symbols[Kind.TRIANGLES]
        assert {t.cell for t in result.symbols[Kind.TRIANGLES]} <= result.blocked_cells


def test_duplicate_steps_are_rejected():
    with pytest.raises(ValueError):
        register_step(Kind.NEGATOR)(lambda state: state)


def _state(attempt, *targets):
    return AttemptState(
        attempt=attempt,
        seed=1,
        edges=full_edge_set(),
        kinds=(Kind.GAP, Kind.TRIANGLES),
        path=MIDDLE_SPLIT,
        symbols={Kind.TRIANGLES: tuple(targets)} if targets else {},
    )


def test_pending_pool_keeps_the_best_candidates():
    one = _state(0, TriangleTarget(Cell(0, 0), 1))
    two = _state(1, TriangleTarget(Cell(0, 0), 1), TriangleTarget(Cell(1, 0), 2))
    none = _state(2)
    assert score_candidate(two) > score_candidate(one) > score_candidate(none)

    pool = PendingPool(2)
    for state in (one, none, two):
        pool.offer(state)
    assert len(pool) == 2
    assert [candidate.state for candidate in pool.best_first()] == [two, one]
    assert pool.best().state == two


def test_overrides_are_solved_and_returned():
    edges = full_edge_set()
    overrides = Overrides(edges=edges, symbols={Kind.TRIANGLES: (TriangleTarget(Cell(3, 3), 2),)})
    puzzle = _generator().generate(4, ["triangles"], overrides=overrides)
    assert puzzle.seed == 4
    assert puzzle.kinds == (Kind.TRIANGLES,)
    assert evaluate(puzzle, puzzle.solution_hint).ok


def test_invalid_overrides_raise():
    cut = full_edge_set() - {edge_key((3, 0), (4, 0)), edge_key((4, 0), (4, 1))}
    with pytest.raises(InvalidOverridesError):
        resolve_overrides(Overrides(edges=cut))
    with pytest.raises(InvalidOverridesError):
        resolve_overrides(Overrides(edges=full_edge_set(), start=GridPoint(4, 0)))
    with pytest.raises(InvalidOverridesError):
        resolve_overrides(Overrides(edges=full_edge_set(), symbols={Kind.STARS: (TriangleTarget(Cell(0, 0), 1),)}))
    unsolvable = {Kind.STARS: (StarTarget(Cell(0, 0), "#e44b4b"),)}
    with pytest.raises(InvalidOverridesError):
        resolve_overrides(Overrides(edges=full_edge_set(), symbols=unsolvable), budget=500)
