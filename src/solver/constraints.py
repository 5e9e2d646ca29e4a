"""Per-kind failure collection shared by the evaluator and the negation resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple

from symbols.common import BoardView, SymbolMap
from symbols.registry import Kind, SymbolRef, get_kind_spec


@dataclass(frozen=True)
class ConstraintEvaluation:
    """Outcome of checking one path against one puzzle."""

    ok: bool
    eliminated_negator_indexes: Tuple[int, ...] = ()
    eliminated_symbol_refs: Tuple[SymbolRef, ...] = ()


FAILED = ConstraintEvaluation(ok=False)


def base_failures(view: BoardView) -> Dict[Kind, FrozenSet[int]]:
    """Failing target indexes for every kind present, negators excluded."""

    failures: Dict[Kind, FrozenSet[int]] = {}
    for kind in Kind:
        if kind is Kind.NEGATOR:
            continue
        targets = view.symbols.get(kind, ())
        if targets:
            failures[kind] = get_kind_spec(kind).collect_failing(view, targets)
    return failures


def failing_refs(view: BoardView) -> List[SymbolRef]:
    return [(kind, index) for kind, indexes in base_failures(view).items() for index in sorted(indexes)]


def passes(view: BoardView) -> bool:
    """Plain conjunction of every non-negator kind's check."""

    for kind in Kind:
        if kind is Kind.NEGATOR:
            continue
        targets = view.symbols.get(kind, ())
        if targets and not get_kind_spec(kind).check(view, targets):
            return False
    return True


def without_refs(symbols: SymbolMap, removed: Sequence[SymbolRef]) -> Dict[Kind, Tuple[Any, ...]]:
    """Copy of *symbols* minus the referenced targets; empty kinds are dropped."""

    dropped: Dict[Kind, set] = {}
    for kind, index in removed:
        dropped.setdefault(kind, set()).add(index)
    result: Dict[Kind, Tuple[Any, ...]] = {}
    for kind, targets in symbols.items():
        kept = tuple(t for i, t in enumerate(targets) if i not in dropped.get(kind, ()))
        if kept:
            result[kind] = kept
    return result


__all__ = [
    "ConstraintEvaluation",
    "FAILED",
    "base_failures",
    "failing_refs",
    "passes",
    "without_refs",
]
