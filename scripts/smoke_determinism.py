#!/usr/bin/env python3
"""Smoke-test deterministic puzzle generation."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from contracts import validator
from contracts.jsoncanon import jcs_sha256
from contracts.serialize import puzzle_to_payload
from puzzle_engine import generate_puzzle

KINDS = ("stars", "triangles")


def _digest(seed: int) -> str:
    payload = puzzle_to_payload(generate_puzzle(seed, KINDS))
    validator.assert_valid(payload, "Puzzle")
    return jcs_sha256(payload)


def main() -> int:
    first = _digest(20240)
    second = _digest(20240)
    if first != second:
        print(f"determinism failed: {first} vs {second}")
        return 1

    third = _digest(90511)
    if first == third:
        print(f"different seed produced identical puzzle: {first}")
        return 1

    print("Determinism smoke-test passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
