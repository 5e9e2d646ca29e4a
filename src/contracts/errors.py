"""Error types shared by validation, generation and the public facade."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

SEVERITY_ERROR = "ERROR"
SEVERITY_WARN = "WARN"


@dataclass(frozen=True)
class ValidationIssue:
    """Single validation finding produced by a rule or schema check."""

    code: str
    msg: str
    path: str
    severity: str


@dataclass(frozen=True)
class ValidationReport:
    """Aggregate result of validating one payload."""

    ok: bool
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]
    timings_ms: dict[str, int]


def make_error(code: str, msg: str, path: str) -> ValidationIssue:
    """Construct an error-level :class:`ValidationIssue`."""

    return ValidationIssue(code=code, msg=msg, path=path, severity=SEVERITY_ERROR)


def make_warning(code: str, msg: str, path: str) -> ValidationIssue:
    """Construct a warning-level :class:`ValidationIssue`."""

    return ValidationIssue(code=code, msg=msg, path=path, severity=SEVERITY_WARN)


class ManagedValidationError(Exception):
    """Raised by :func:`contracts.validator.assert_valid` with the full report attached."""

    def __init__(self, message: str, report: ValidationReport) -> None:
        super().__init__(message)
        self.report = report


class GenerationExhaustedError(RuntimeError):
    """Every attempt and every recovery tier failed to yield a solvable puzzle."""

    def __init__(self, seed: int, kinds: Iterable, attempts: int) -> None:
        self.seed = seed
        self.kinds: Tuple[str, ...] = tuple(getattr(kind, "value", str(kind)) for kind in kinds)
        self.attempts = attempts
        super().__init__(
            f"No solvable puzzle for seed {seed} and kinds {list(self.kinds)} after {attempts} attempts"
        )


class InvalidOverridesError(ValueError):
    """A supplied override bundle is malformed or has no solution."""


__all__ = [
    "GenerationExhaustedError",
    "InvalidOverridesError",
    "ManagedValidationError",
    "SEVERITY_ERROR",
    "SEVERITY_WARN",
    "ValidationIssue",
    "ValidationReport",
    "make_error",
    "make_warning",
]
