"""Puzzle generation: attempt pipeline, generator tiers and recency history."""

from .attempt import AttemptState, PlacementFailure
from .generator import PuzzleGenerator
from .overrides import Overrides, resolve_overrides
from .pipeline import register_step, run_pipeline
from .recency import GenerationHistory

__all__ = [
    "AttemptState",
    "GenerationHistory",
    "Overrides",
    "PlacementFailure",
    "PuzzleGenerator",
    "register_step",
    "resolve_overrides",
    "run_pipeline",
]
