"""Validation of JSON payloads: catalog schema first, then semantic rules."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from board.geometry import END, START, GridPoint, cell_in_bounds, has_path, in_bounds, is_valid_path
from symbols.registry import Kind

from . import loader
from .errors import SEVERITY_ERROR, ManagedValidationError, ValidationIssue, ValidationReport, make_error, make_warning


def _jsonschema_path(exc: Any) -> str:
    path = getattr(exc, "absolute_path", [])
    if not path:
        return "$"
    components: List[str] = ["$"]
    for part in path:
        if isinstance(part, int):
            components.append(f"[{part}]")
        else:
            components.append(f".{part}")
    return "".join(components)


def _schema_stage(payload: Any, expect_type: str) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not isinstance(payload, dict):
        issues.append(make_error("type.mismatch", "Payload must be a JSON object", "$"))
        return issues
    if payload.get("type") != expect_type:
        issues.append(make_error("type.mismatch", f"Expected type {expect_type!r}, got {payload.get('type')!r}", "$.type"))

    try:
        descriptor = loader.get_descriptor(expect_type)
    except KeyError:
        issues.append(make_error("schema.not_found", f"Unknown payload type {expect_type}", "$.type"))
        return issues

    version = payload.get("schema_version")
    if version is not None and version != descriptor.version:
        issues.append(make_error("schema.mismatch_version", "schema_version does not match catalog", "$.schema_version"))

    try:
        schema_dict = loader.load_schema(descriptor.schema_id, descriptor.schema_path)
    except (OSError, ValueError) as exc:
        issues.append(make_error("schema.not_found", str(exc), "$.schema"))
        return issues
    validator = loader.compile_schema(schema_dict)
    for error in sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path)):
        issues.append(make_error("schema.violation", error.message, _jsonschema_path(error)))
    return issues


def _point(value: Any) -> Optional[GridPoint]:
    if isinstance(value, list) and len(value) == 2 and all(isinstance(v, int) for v in value):
        return GridPoint(value[0], value[1])
    return None


def _edge_issues(payload: Dict[str, Any]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    seen = set()
    for index, edge in enumerate(payload.get("edges", [])):
        a, b = (_point(edge[0]), _point(edge[1])) if len(edge) == 2 else (None, None)
        if a is None or b is None or not (in_bounds(*a) and in_bounds(*b)):
            issues.append(make_error("edge.out_of_bounds", "edge endpoints must lie on the grid", f"$.edges[{index}]"))
            continue
        if abs(a.x - b.x) + abs(a.y - b.y) != 1:
            issues.append(make_error("edge.not_adjacent", "edge endpoints must be adjacent", f"$.edges[{index}]"))
            continue
        key = (min(a, b), max(a, b))
        if key in seen:
            issues.append(make_warning("edge.duplicate", "edge listed twice", f"$.edges[{index}]"))
        seen.add(key)
    return issues


def _semantic_stage(payload: Dict[str, Any], expect_type: str) -> List[ValidationIssue]:
    if expect_type not in ("Puzzle", "Overrides"):
        return []
    issues = _edge_issues(payload)
    start = _point(payload.get("start")) or START
    end = _point(payload.get("end")) or END
    for label, point in (("start", start), ("end", end)):
        if not in_bounds(*point):
            issues.append(make_error("point.out_of_bounds", f"{label} lies off the grid", f"$.{label}"))

    for name, targets in payload.get("symbols", {}).items():
        for index, target in enumerate(targets):
            cell = _point(target.get("cell"))
            if cell is not None and not cell_in_bounds(cell.x, cell.y):
                issues.append(make_error("cell.out_of_bounds", "cell lies off the board", f"$.symbols.{name}[{index}].cell"))

    if any(issue.severity == SEVERITY_ERROR for issue in issues):
        return issues
    edges = {(min(a, b), max(a, b)) for a, b in ((_point(e[0]), _point(e[1])) for e in payload.get("edges", []))}
    if not has_path(edges, start, end):
        issues.append(make_error("edges.unreachable", "end is not reachable from start", "$.edges"))
        return issues
    solution = payload.get("solution")
    if solution:
        path = [_point(p) for p in solution]
        if any(p is None for p in path) or not is_valid_path(path, edges, start, end):
            issues.append(make_error("solution.invalid", "solution is not a drawable path", "$.solution"))
    kinds = payload.get("kinds", [])
    for kind in kinds:
        if kind != Kind.GAP.value and not payload.get("symbols", {}).get(kind):
            issues.append(make_error("kind.unplaced", f"requested kind {kind!r} has no targets", "$.symbols"))
    return issues


def validate(payload: Dict[str, Any], expect_type: str) -> ValidationReport:
    """Check *payload* against the ``expect_type`` schema and semantic rules."""

    timings = {"schema": 0, "semantics": 0}
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    schema_start = time.perf_counter()
    schema_issues = _schema_stage(payload, expect_type)
    timings["schema"] = int((time.perf_counter() - schema_start) * 1000)
    errors.extend(schema_issues)

    if not schema_issues:
        semantics_start = time.perf_counter()
        for issue in _semantic_stage(payload, expect_type):
            (warnings if issue.severity != SEVERITY_ERROR else errors).append(issue)
        timings["semantics"] = int((time.perf_counter() - semantics_start) * 1000)

    return ValidationReport(ok=not errors, errors=errors, warnings=warnings, timings_ms=timings)


def assert_valid(payload: Dict[str, Any], expect_type: str) -> ValidationReport:
    report = validate(payload, expect_type)
    if report.ok:
        return report
    codes = ", ".join(issue.code for issue in report.errors[:5])
    if len(report.errors) > 5:
        codes += ", …"
    raise ManagedValidationError(f"Validation failed for {expect_type}: {codes}", report)


__all__ = [
    "ManagedValidationError",
    "assert_valid",
    "validate",
]
