"""JSON Canonicalization Scheme (JCS) helpers.

A subset of RFC 8785: dictionary keys are sorted, numbers normalised and the
output is compact UTF-8.  Besides plain JSON values the canonicaliser accepts
the value types puzzles are built from: enums serialise as their value,
tuples (grid points, edge keys) as arrays, and sets (edge sets) as arrays
sorted by their canonical encoding so that iteration order never leaks into a
digest.
"""

from __future__ import annotations

import hashlib
import json
import math
from decimal import Decimal
from enum import Enum
from typing import Any

__all__ = ["jcs_dump", "jcs_sha256"]


def _canonical_number(value: float) -> str:
    """ECMAScript-style shortest round-trip string for ``value``."""

    if math.isnan(value) or math.isinf(value):
        raise ValueError("NaN and Infinity are not permitted in JCS payloads")

    if value == 0:
        return "0"

    decimal_value = Decimal(repr(value))
    normalized = format(decimal_value.normalize(), "f")
    if "E" in normalized or "e" in normalized:
        normalized = format(decimal_value.normalize(), "e")
    if normalized.endswith(".0"):
        normalized = normalized[:-2]
    return normalized


def _encode(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def _canonicalize(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return _canonicalize(obj.value)
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        return json.loads(_canonical_number(obj))
    if isinstance(obj, (list, tuple)):
        return [_canonicalize(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        items = [_canonicalize(item) for item in obj]
        return sorted(items, key=_encode)
    if isinstance(obj, dict):
        return {str(_canonicalize(key)): _canonicalize(value) for key, value in obj.items()}
    raise TypeError(f"Unsupported type for JCS canonicalisation: {type(obj)!r}")


def jcs_dump(obj: Any) -> bytes:
    """Return canonical JCS bytes for ``obj``.

    Unsupported value types raise :class:`TypeError`.
    """

    return _encode(_canonicalize(obj)).encode("utf-8")


def jcs_sha256(obj: Any) -> str:
    """Return the ``sha256-`` digest of the canonical representation of ``obj``."""

    digest = hashlib.sha256(jcs_dump(obj)).hexdigest()
    return f"sha256-{digest}"
