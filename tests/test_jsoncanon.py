from __future__ import annotations

import math

import pytest

from board.geometry import GridPoint, edge_key
from contracts.jsoncanon import jcs_dump, jcs_sha256
from symbols.registry import Kind


def test_canonical_order_and_numbers():
    payload_a = {"b": 2, "a": 1.0}
    payload_b = {"a": 1, "b": 2}
    assert jcs_dump(payload_a) == jcs_dump(payload_b)
    assert jcs_sha256(payload_a) == jcs_sha256(payload_b)


def test_rejects_nan():
    with pytest.raises(ValueError):
        jcs_dump({"value": math.nan})


def test_enums_tuples_and_sets():
    edges = {edge_key((1, 0), (0, 0)), edge_key((0, 0), (0, 1))}
    payload = {Kind.STARS: [GridPoint(1, 2)], "edges": edges}
    assert jcs_dump(payload) == b'{"edges":[[[0,0],[0,1]],[[0,0],[1,0]]],"stars":[[1,2]]}'
    assert jcs_sha256(payload).startswith("sha256-")


def test_rejects_unknown_types():
    with pytest.raises(TypeError):
        jcs_dump({"value": object()})
