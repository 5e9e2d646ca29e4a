"""JSON payloads for puzzles, evaluations and override bundles."""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional, Sequence

from board.geometry import Cell, GridPoint, edge_key
from orchestrator.overrides import Overrides
from solver.constraints import ConstraintEvaluation
from symbols.common import Puzzle, normalise_symbols
from symbols.registry import Kind, get_kind_spec, parse_kind, parse_kinds
from symbols.tiling import SHAPES_BY_NAME, Shape, normalise

from . import loader
from .jsoncanon import jcs_sha256

__all__ = [
    "evaluation_to_payload",
    "overrides_from_payload",
    "puzzle_from_payload",
    "puzzle_id",
    "puzzle_to_payload",
    "target_from_payload",
    "target_to_payload",
]


def _point(value: Sequence[int]) -> List[int]:
    return [int(value[0]), int(value[1])]


def _edge(value) -> List[List[int]]:
    return [_point(value[0]), _point(value[1])]


def target_to_payload(target: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for field in fields(target):
        value = getattr(target, field.name)
        if value is None:
            continue
        if field.name in ("cell", "node"):
            payload[field.name] = _point(value)
        elif field.name == "edge":
            payload[field.name] = _edge(value)
        elif field.name == "shape":
            payload[field.name] = {"name": value.name, "cells": [_point(c) for c in value.cells]}
        else:
            payload[field.name] = value
    return payload


def _shape_from_payload(value: Mapping[str, Any]) -> Shape:
    cells = normalise(tuple((int(x), int(y)) for x, y in value["cells"]))
    known = SHAPES_BY_NAME.get(str(value["name"]))
    if known is not None and known.cells == cells:
        return known
    return Shape(str(value["name"]), cells)


def target_from_payload(kind: Kind, payload: Mapping[str, Any]) -> Any:
    """Build *kind*'s target type from its JSON form.

    Raises ``ValueError`` for unknown or missing fields.
    """

    target_type = get_kind_spec(kind).target_type
    names = {field.name for field in fields(target_type)}
    unknown = sorted(set(payload) - names)
    if unknown:
        raise ValueError(f"{kind.value} targets have no field(s) {unknown}")
    kwargs: Dict[str, Any] = {}
    for name, value in payload.items():
        if name == "cell":
            kwargs[name] = Cell(int(value[0]), int(value[1]))
        elif name == "node":
            kwargs[name] = GridPoint(int(value[0]), int(value[1]))
        elif name == "edge":
            kwargs[name] = edge_key(value[0], value[1])
        elif name == "shape":
            kwargs[name] = _shape_from_payload(value)
        else:
            kwargs[name] = value
    try:
        return target_type(**kwargs)
    except TypeError as exc:
        raise ValueError(f"Malformed {kind.value} target: {exc}") from exc


def _symbols_to_payload(symbols: Mapping[Kind, Sequence[Any]]) -> Dict[str, List[Dict[str, Any]]]:
    return {
        kind.value: [target_to_payload(target) for target in symbols[kind]]
        for kind in Kind
        if symbols.get(kind)
    }


def _symbols_from_payload(payload: Mapping[str, Any]) -> Dict[Kind, tuple]:
    symbols: Dict[Kind, tuple] = {}
    for name, targets in payload.items():
        kind = parse_kind(name)
        symbols[kind] = tuple(target_from_payload(kind, target) for target in targets)
    return normalise_symbols(symbols)


def puzzle_id(payload: Mapping[str, Any]) -> str:
    base = {key: value for key, value in payload.items() if key != "puzzle_id"}
    return jcs_sha256(base)


def puzzle_to_payload(puzzle: Puzzle, *, include_solution: bool = True) -> Dict[str, Any]:
    """Canonical JSON form of *puzzle*, with its ``sha256-`` id."""

    descriptor = loader.get_descriptor("Puzzle")
    payload: Dict[str, Any] = {
        "type": "Puzzle",
        "schema_version": descriptor.version,
        "seed": puzzle.seed,
        "kinds": [kind.value for kind in puzzle.kinds],
        "start": _point(puzzle.start),
        "end": _point(puzzle.end),
        "edges": [_edge(edge) for edge in sorted(puzzle.edges)],
        "symbols": _symbols_to_payload(puzzle.symbols),
    }
    if include_solution:
        payload["solution"] = [_point(p) for p in puzzle.solution_hint] if puzzle.solution_hint else None
    payload["puzzle_id"] = puzzle_id(payload)
    return payload


def puzzle_from_payload(payload: Mapping[str, Any]) -> Puzzle:
    solution: Optional[tuple] = None
    if payload.get("solution"):
        solution = tuple(GridPoint(int(x), int(y)) for x, y in payload["solution"])
    return Puzzle(
        edges=frozenset(edge_key(a, b) for a, b in payload["edges"]),
        symbols=_symbols_from_payload(payload.get("symbols", {})),
        start=GridPoint(*_point(payload["start"])),
        end=GridPoint(*_point(payload["end"])),
        kinds=parse_kinds(payload.get("kinds", ())),
        seed=payload.get("seed"),
        solution_hint=solution,
    )


def evaluation_to_payload(evaluation: ConstraintEvaluation) -> Dict[str, Any]:
    return {
        "type": "Evaluation",
        "schema_version": loader.get_descriptor("Evaluation").version,
        "ok": bool(evaluation.ok),
        "eliminated_negator_indexes": [int(i) for i in evaluation.eliminated_negator_indexes],
        "eliminated_symbol_refs": [
            {"kind": kind.value, "index": int(index)} for kind, index in evaluation.eliminated_symbol_refs
        ],
    }


def overrides_from_payload(payload: Mapping[str, Any]) -> Overrides:
    kwargs: Dict[str, Any] = {
        "edges": frozenset(edge_key(a, b) for a, b in payload["edges"]),
        "symbols": _symbols_from_payload(payload.get("symbols", {})),
    }
    if payload.get("start") is not None:
        kwargs["start"] = GridPoint(*_point(payload["start"]))
    if payload.get("end") is not None:
        kwargs["end"] = GridPoint(*_point(payload["end"]))
    return Overrides(**kwargs)
