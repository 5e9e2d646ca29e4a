"""Command line entry point: generate a puzzle, validate it and write it out."""

from __future__ import annotations

import argparse
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from contracts import validator
from contracts.jsoncanon import jcs_dump
from contracts.serialize import puzzle_to_payload
from feature_flags import active_profile, is_events_enabled, is_history_enabled
from symbols.registry import parse_kinds

from . import log
from .generator import PuzzleGenerator
from .recency import GenerationHistory

_LOGGER = logging.getLogger(__name__)

_DEFAULT_OUTPUT_DIR = "exports"
_SEED_MODULUS = 2**31


def derive_seed(root_seed: str, stage: str = "generate", parent_id: Optional[str] = None) -> int:
    """Derive a deterministic 31-bit puzzle seed from a textual root seed."""

    material = "|".join([root_seed, stage, parent_id or ""])
    return uuid.uuid5(uuid.NAMESPACE_URL, material).int % _SEED_MODULUS


def _merge_env(overrides: Mapping[str, str] | None = None) -> Dict[str, str]:
    env: Dict[str, str] = {str(k): str(v) for k, v in os.environ.items()}
    if overrides:
        env.update({str(k): str(v) for k, v in overrides.items()})
    return env


def _split_kinds(raw: Optional[str], env: Mapping[str, str]) -> List[str]:
    value = raw or env.get("PUZZLE_KINDS")
    if not value:
        raise ValueError("Symbol kinds must be given via --kinds or PUZZLE_KINDS")
    return [part.strip() for part in value.split(",") if part.strip()]


def run_generation(
    *,
    kinds: Sequence[str],
    seed: Optional[int] = None,
    output_dir: str | Path = _DEFAULT_OUTPUT_DIR,
    preview: bool = False,
    env_overrides: Mapping[str, str] | None = None,
    generator: Optional[PuzzleGenerator] = None,
) -> Dict[str, Any]:
    """Generate one puzzle, validate its payload and write it to *output_dir*."""

    env_map = _merge_env(env_overrides)
    requested = parse_kinds(kinds)
    if seed is None:
        seed = derive_seed(env_map.get("PUZZLE_ROOT_SEED", "default-root-seed"))
    if generator is None:
        profile = active_profile(env_map)
        history = GenerationHistory() if is_history_enabled(env_map, profile=profile) else None
        generator = PuzzleGenerator(history=history, events=is_events_enabled(env_map, profile=profile))

    puzzle = generator.generate(seed, requested)
    payload = puzzle_to_payload(puzzle)
    validator.assert_valid(payload, "Puzzle")

    target_dir = Path(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    json_path = target_dir / f"{payload['puzzle_id']}.json"
    json_path.write_bytes(jcs_dump(payload))

    result: Dict[str, Any] = {
        "puzzle_id": payload["puzzle_id"],
        "seed": seed,
        "kinds": payload["kinds"],
        "json_path": str(json_path),
        "preview_path": None,
    }
    if preview:
        from preview import render_puzzle

        preview_path = target_dir / f"{payload['puzzle_id']}.png"
        render_puzzle(puzzle, path=puzzle.solution_hint, out_path=preview_path)
        result["preview_path"] = str(preview_path)
    _LOGGER.info("wrote %s", json_path)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a grid line puzzle for a set of symbol kinds.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Puzzle seed. Defaults to a seed derived from PUZZLE_ROOT_SEED.",
    )
    parser.add_argument(
        "--kinds",
        help="Comma separated symbol kinds (e.g. 'stars,triangles'). Overrides PUZZLE_KINDS.",
    )
    parser.add_argument(
        "--output-dir",
        default=_DEFAULT_OUTPUT_DIR,
        help=(
            "Directory where the puzzle payload is written. "
            f"Defaults to '{_DEFAULT_OUTPUT_DIR}'."
        ),
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Also render a PNG preview with the solution path.",
    )
    parser.add_argument(
        "--events-dir",
        dest="events_dir",
        help="Write generation events as JSON lines under this directory.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    env_overrides: Dict[str, str] = {}
    if args.events_dir:
        log.configure(args.events_dir)
        env_overrides["CLI_EVENTS_ENABLED"] = "1"
    try:
        kinds = _split_kinds(args.kinds, _merge_env())
        result = run_generation(
            kinds=kinds,
            seed=args.seed,
            output_dir=args.output_dir,
            preview=args.preview,
            env_overrides=env_overrides,
        )
    except (RuntimeError, ValueError) as exc:
        parser.error(str(exc))
    print(
        f"Puzzle {result['puzzle_id']} (seed {result['seed']}, kinds {', '.join(result['kinds'])}) "
        f"written to {result['json_path']}"
    )
    return 0


__all__ = ["derive_seed", "run_generation", "build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
