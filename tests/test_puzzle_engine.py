from __future__ import annotations

import pytest

from board.geometry import Cell, full_edge_set
from orchestrator.overrides import Overrides
from orchestrator.recency import GenerationHistory
from preview import render_puzzle
from puzzle_engine import check_path, generate_puzzle, solve
from symbols.common import Puzzle
from symbols.registry import Kind
from symbols.triangles import TriangleTarget


def test_generate_check_and_solve():
    puzzle = generate_puzzle(2024, ["triangles"])
    assert check_path(puzzle, puzzle.solution_hint).ok
    assert not check_path(puzzle, [(0, 4), (0, 3)]).ok
    solved = solve(puzzle)
    assert solved is not None
    assert check_path(puzzle, solved).ok


def test_generate_is_pure_without_history():
    assert generate_puzzle(7, ["dots"]) == generate_puzzle(7, ["dots"])


def test_generate_accepts_history_and_overrides():
    history = GenerationHistory()
    generate_puzzle(7, ["dots"], history=history)
    assert len(history) == 1

    overrides = Overrides(edges=full_edge_set(), symbols={Kind.TRIANGLES: (TriangleTarget(Cell(3, 3), 2),)})
    puzzle = generate_puzzle(1, ["triangles"], overrides=overrides)
    assert puzzle.targets(Kind.TRIANGLES) == (TriangleTarget(Cell(3, 3), 2),)


def test_unknown_kind_raises_value_error():
    with pytest.raises(ValueError):
        generate_puzzle(1, ["eyes"])


def test_solve_respects_the_budget():
    puzzle = Puzzle(edges=full_edge_set(), symbols={Kind.TRIANGLES: (TriangleTarget(Cell(1, 1), 4),)})
    assert solve(puzzle, budget=200) is None


def test_render_puzzle_writes_png(tmp_path):
    puzzle = generate_puzzle(99, ["stars", "triangles"])
    out = render_puzzle(puzzle, puzzle.solution_hint, out_path=tmp_path / "nested" / "puzzle.png")
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_check_path_is_idempotent():
    puzzle = generate_puzzle(12, ["negator", "triangles"])
    detour = [(0, 4), (1, 4), (1, 3), (0, 3), (0, 2), (0, 1), (0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
    for path in (puzzle.solution_hint, detour):
        first = check_path(puzzle, path)
        assert check_path(puzzle, path) == first
    assert check_path(puzzle, puzzle.solution_hint).ok
