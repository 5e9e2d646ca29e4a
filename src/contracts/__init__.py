"""JSON contracts: schemas, canonical payloads and validation."""

from __future__ import annotations

from .errors import (
    GenerationExhaustedError,
    InvalidOverridesError,
    ManagedValidationError,
    ValidationIssue,
    ValidationReport,
)
from .validator import assert_valid, validate

__all__ = [
    "GenerationExhaustedError",
    "InvalidOverridesError",
    "ManagedValidationError",
    "ValidationIssue",
    "ValidationReport",
    "assert_valid",
    "validate",
]
