from __future__ import annotations

import pytest

from board.geometry import Cell, GridPoint, full_edge_set, is_valid_path
from board.wildness import count_turns
from puzzle_engine import generate_puzzle
from solver.constraints import passes, without_refs
from solver.evaluation import evaluate, evaluate_symbols
from solver.negation import resolve_negation
from solver.path_solver import find_any_valid_path, find_simplest_valid_path
from symbols.common import Puzzle, build_view
from symbols.negator import NegatorTarget
from symbols.registry import Kind
from symbols.triangles import TriangleTarget

MIDDLE_SPLIT = tuple(
    GridPoint(x, y) for x, y in ((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))
)

# Cell (0, 0) is untouched by MIDDLE_SPLIT, cell (0, 1) has exactly one side drawn.
FAILING_TRIANGLE = TriangleTarget(Cell(0, 0), 3)
PASSING_TRIANGLE = TriangleTarget(Cell(0, 1), 1)


def _resolve(symbols, **kwargs):
    return resolve_negation(build_view(MIDDLE_SPLIT, symbols), **kwargs)


def test_without_negators_it_is_a_plain_check():
    assert _resolve({Kind.TRIANGLES: (PASSING_TRIANGLE,)}).ok
    result = _resolve({Kind.TRIANGLES: (FAILING_TRIANGLE,)})
    assert not result.ok
    assert result.eliminated_symbol_refs == ()


def test_negator_cancels_a_failing_symbol_in_its_region():
    result = _resolve({Kind.TRIANGLES: (FAILING_TRIANGLE, PASSING_TRIANGLE), Kind.NEGATOR: (NegatorTarget(Cell(1, 0)),)})
    assert result.ok
    assert result.eliminated_negator_indexes == (0,)
    assert result.eliminated_symbol_refs == ((Kind.TRIANGLES, 0),)


def test_negator_in_another_region_cannot_help():
    result = _resolve({Kind.TRIANGLES: (FAILING_TRIANGLE,), Kind.NEGATOR: (NegatorTarget(Cell(0, 3)),)})
    assert not result.ok


def test_unnecessary_negator_fails():
    result = _resolve({Kind.TRIANGLES: (PASSING_TRIANGLE,), Kind.NEGATOR: (NegatorTarget(Cell(1, 0)),)})
    assert not result.ok


def test_negators_may_cancel_each_other():
    result = _resolve({Kind.NEGATOR: (NegatorTarget(Cell(1, 0)), NegatorTarget(Cell(2, 0)))})
    assert result.ok
    assert result.eliminated_negator_indexes == (0, 1)
    assert result.eliminated_symbol_refs == ()


def test_mutual_negators_leave_failing_symbols_failing():
    symbols = {
        Kind.TRIANGLES: (FAILING_TRIANGLE,),
        Kind.NEGATOR: (NegatorTarget(Cell(1, 0)), NegatorTarget(Cell(2, 0))),
    }
    assert not _resolve(symbols).ok


def test_too_many_negators_fail_closed():
    negators = tuple(NegatorTarget(Cell(x, y)) for y in range(2) for x in range(3))
    assert not _resolve({Kind.NEGATOR: negators}).ok
    assert _resolve({Kind.NEGATOR: negators[:2]}, max_negators=2).ok


def test_canonical_mode_and_unknown_mode():
    symbols = {Kind.TRIANGLES: (FAILING_TRIANGLE,), Kind.NEGATOR: (NegatorTarget(Cell(1, 0)),)}
    assert _resolve(symbols, mode="canonical") == _resolve(symbols)
    with pytest.raises(ValueError):
        _resolve(symbols, mode="fastest")


def test_evaluate_rejects_undrawable_paths():
    puzzle = Puzzle(edges=full_edge_set(), symbols={})
    assert evaluate(puzzle, MIDDLE_SPLIT).ok
    assert not evaluate(puzzle, MIDDLE_SPLIT[:-1]).ok
    assert not evaluate(Puzzle(edges=full_edge_set() - {(GridPoint(1, 2), GridPoint(2, 2))}, symbols={}), MIDDLE_SPLIT).ok


def test_evaluate_symbols_matches_evaluate():
    symbols = {Kind.TRIANGLES: (PASSING_TRIANGLE,)}
    puzzle = Puzzle(edges=full_edge_set(), symbols=symbols)
    assert evaluate_symbols(MIDDLE_SPLIT, symbols) == evaluate(puzzle, MIDDLE_SPLIT)


def test_solver_finds_a_satisfying_path():
    puzzle = Puzzle(edges=full_edge_set(), symbols={Kind.TRIANGLES: (TriangleTarget(Cell(3, 3), 2), TriangleTarget(Cell(0, 0), 0))})
    path = find_any_valid_path(puzzle)
    assert path is not None
    assert is_valid_path(path, puzzle.edges)
    assert evaluate(puzzle, path).ok


def test_solver_returns_none_when_nothing_fits():
    # A simple path never draws all four sides of a cell.
    puzzle = Puzzle(edges=full_edge_set(), symbols={Kind.TRIANGLES: (TriangleTarget(Cell(1, 1), 4),)})
    assert find_any_valid_path(puzzle, 3000) is None


def test_simplest_path_is_short_and_straight():
    path = find_simplest_valid_path(Puzzle(edges=full_edge_set(), symbols={}))
    assert len(path) == 9
    assert count_turns(path) == 1


@pytest.mark.parametrize("kinds", [["negator", "triangles"], ["negator", "dots"]])
def test_every_elimination_in_a_generated_puzzle_is_needed(kinds):
    restored = 0
    for seed in (3, 8, 15):
        puzzle = generate_puzzle(seed, kinds)
        result = evaluate(puzzle, puzzle.solution_hint)
        assert result.ok
        negators = [(Kind.NEGATOR, i) for i in range(len(puzzle.targets(Kind.NEGATOR)))]
        base = without_refs(puzzle.symbols, negators)
        for ref in result.eliminated_symbol_refs:
            rest = [other for other in result.eliminated_symbol_refs if other != ref]
            assert not passes(build_view(puzzle.solution_hint, without_refs(base, rest)))
            restored += 1
    assert restored > 0
