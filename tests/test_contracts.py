from __future__ import annotations

import copy

import pytest

from board.geometry import Cell, GridPoint, edge_key, full_edge_set
from contracts import ManagedValidationError, assert_valid, validate
from contracts.serialize import (
    evaluation_to_payload,
    overrides_from_payload,
    puzzle_from_payload,
    puzzle_id,
    puzzle_to_payload,
    target_from_payload,
)
from solver.constraints import ConstraintEvaluation
from symbols.common import Puzzle
from symbols.gap import GapTarget
from symbols.hexagon import HexTarget
from symbols.polyomino import PolyominoPiece
from symbols.registry import Kind
from symbols.tiling import SHAPES_BY_NAME
from symbols.triangles import TriangleTarget

MIDDLE_SPLIT = tuple(
    GridPoint(x, y) for x, y in ((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))
)
GAP = edge_key((2, 0), (3, 0))


def _puzzle() -> Puzzle:
    return Puzzle(
        edges=full_edge_set() - {GAP},
        symbols={
            Kind.GAP: (GapTarget(GAP),),
            Kind.TRIANGLES: (TriangleTarget(Cell(0, 2), 2),),
            Kind.POLYOMINO: (PolyominoPiece(Cell(1, 0), SHAPES_BY_NAME["tet-square-0"]),),
            Kind.HEXAGON: (HexTarget(node=GridPoint(4, 1)),),
        },
        kinds=(Kind.GAP, Kind.TRIANGLES, Kind.POLYOMINO, Kind.HEXAGON),
        seed=42,
        solution_hint=MIDDLE_SPLIT,
    )


def _payload() -> dict:
    return puzzle_to_payload(_puzzle())


def test_puzzle_payload_round_trip():
    payload = _payload()
    assert payload["type"] == "Puzzle"
    assert payload["kinds"] == ["gap-line", "triangles", "polyomino", "hexagon"]
    assert payload["symbols"]["polyomino"][0]["shape"]["name"] == "tet-square-0"
    assert payload["puzzle_id"] == puzzle_id(payload)
    assert puzzle_from_payload(payload) == _puzzle()


def test_puzzle_id_ignores_key_order_but_not_content():
    payload = _payload()
    reordered = dict(reversed(list(payload.items())))
    assert puzzle_id(reordered) == payload["puzzle_id"]
    assert puzzle_to_payload(_puzzle(), include_solution=False)["puzzle_id"] != payload["puzzle_id"]


def test_generated_payload_validates():
    report = assert_valid(_payload(), "Puzzle")
    assert report.ok
    assert report.warnings == []


def test_schema_violations_are_reported():
    payload = _payload()
    payload["symbols"]["triangles"][0]["sparkle"] = True
    report = validate(payload, "Puzzle")
    assert not report.ok
    assert report.errors[0].code == "schema.violation"

    with pytest.raises(ManagedValidationError) as excinfo:
        assert_valid({"type": "Puzzle"}, "Puzzle")
    assert excinfo.value.report.errors


def test_wrong_type_and_version():
    payload = _payload()
    assert validate(payload, "Overrides").errors[0].code == "type.mismatch"
    payload["schema_version"] = "9.9.9"
    assert "schema.mismatch_version" in {issue.code for issue in validate(payload, "Puzzle").errors}


def test_semantic_checks():
    payload = _payload()
    payload["edges"].append([[0, 0], [1, 1]])
    assert "edge.not_adjacent" in {issue.code for issue in validate(payload, "Puzzle").errors}

    payload = _payload()
    payload["edges"] = [edge for edge in payload["edges"] if edge != [[3, 0], [4, 0]] and edge != [[4, 0], [4, 1]]]
    assert "edges.unreachable" in {issue.code for issue in validate(payload, "Puzzle").errors}

    payload = _payload()
    payload["solution"] = [[0, 4], [0, 3]]
    assert "solution.invalid" in {issue.code for issue in validate(payload, "Puzzle").errors}

    payload = _payload()
    del payload["symbols"]["triangles"]
    assert "kind.unplaced" in {issue.code for issue in validate(payload, "Puzzle").errors}

    payload = _payload()
    payload["symbols"]["triangles"][0]["cell"] = [4, 4]
    assert "cell.out_of_bounds" in {issue.code for issue in validate(payload, "Puzzle").errors}


def test_duplicate_edges_only_warn():
    payload = _payload()
    payload["edges"].append(copy.deepcopy(payload["edges"][0]))
    report = validate(payload, "Puzzle")
    assert report.ok
    assert report.warnings[0].code == "edge.duplicate"


def test_target_from_payload_rejects_unknown_fields():
    assert target_from_payload(Kind.TRIANGLES, {"cell": [1, 1], "count": 2}) == TriangleTarget(Cell(1, 1), 2)
    with pytest.raises(ValueError):
        target_from_payload(Kind.TRIANGLES, {"cell": [1, 1], "count": 2, "shape": None})
    with pytest.raises(ValueError):
        target_from_payload(Kind.TRIANGLES, {"count": 2})


def test_evaluation_payload_validates():
    evaluation = ConstraintEvaluation(ok=True, eliminated_negator_indexes=(0,), eliminated_symbol_refs=((Kind.STARS, 1),))
    payload = evaluation_to_payload(evaluation)
    assert payload["eliminated_symbol_refs"] == [{"kind": "stars", "index": 1}]
    assert validate(payload, "Evaluation").ok


def test_overrides_payload():
    payload = {
        "type": "Overrides",
        "schema_version": "1.0.0",
        "edges": [[[0, 4], [0, 3]], [[0, 3], [1, 3]]],
        "start": [0, 4],
        "end": [1, 3],
        "symbols": {"triangles": [{"cell": [0, 3], "count": 2}]},
    }
    assert validate(payload, "Overrides").ok
    overrides = overrides_from_payload(payload)
    assert overrides.end == GridPoint(1, 3)
    assert overrides.symbols[Kind.TRIANGLES] == (TriangleTarget(Cell(0, 3), 2),)
