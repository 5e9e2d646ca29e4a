"""Negator resolution.

Each negator cancels exactly one other symbol of its own region, or pairs up
with another negator.  An assignment is accepted when:

* every negator is used and no target is claimed twice;
* the cancellations are all negator/negator pairs or all negator/symbol;
* after removing the cancelled symbols (and the negators) every remaining
  symbol passes its check;
* every cancelled symbol is necessary: putting any single one back makes the
  board fail again.

The search is a plain backtracker bounded by ``negation.visit_budget`` and
fails closed.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from board.regions import region_ids_for_board_point
from project_config import get_section
from symbols.common import BoardView
from symbols.registry import Kind, SymbolRef

from .constraints import FAILED, ConstraintEvaluation, failing_refs, passes, without_refs

_LOGGER = logging.getLogger(__name__)

_NEGATION_CFG = get_section("negation", {})
MAX_NEGATORS = int(_NEGATION_CFG.get("max_negators", 4))
VISIT_BUDGET = int(_NEGATION_CFG.get("visit_budget", 5000))
MODES = ("first", "canonical")

_KIND_ORDER = {kind: position for position, kind in enumerate(Kind)}


def ref_sort_key(ref: SymbolRef) -> Tuple[int, int]:
    return (_KIND_ORDER[ref[0]], ref[1])


def symbol_regions(view: BoardView, target) -> Tuple[int, ...]:
    """Regions a target belongs to; node and edge symbols may touch several."""

    cell = getattr(target, "cell", None)
    if cell is not None:
        return (view.regions[cell],)
    position = getattr(target, "position", None)
    if position is None:
        return ()
    return region_ids_for_board_point(position[0], position[1], view.regions)


def candidate_targets(view: BoardView, failing: Set[SymbolRef]) -> List[List[SymbolRef]]:
    """Per negator, the refs it may cancel: failing symbols first, then the rest, then negators."""

    negators = view.symbols.get(Kind.NEGATOR, ())
    by_region: Dict[int, List[SymbolRef]] = {}
    for kind in Kind:
        if kind in (Kind.NEGATOR, Kind.GAP):
            continue
        for index, target in enumerate(view.symbols.get(kind, ())):
            for region in symbol_regions(view, target):
                by_region.setdefault(region, []).append((kind, index))

    candidates = []
    for index, negator in enumerate(negators):
        region = view.regions[negator.cell]
        refs = sorted(by_region.get(region, ()), key=lambda ref: (ref not in failing, ref_sort_key(ref)))
        refs.extend(
            (Kind.NEGATOR, other)
            for other, peer in enumerate(negators)
            if other != index and view.regions[peer.cell] == region
        )
        candidates.append(refs)
    return candidates


def _accepts(base: BoardView, removed: Sequence[SymbolRef]) -> bool:
    if not passes(base.with_symbols(without_refs(base.symbols, removed))):
        return False
    for ref in removed:
        rest = [other for other in removed if other != ref]
        if passes(base.with_symbols(without_refs(base.symbols, rest))):
            return False
    return True


def resolve_negation(
    view: BoardView,
    mode: str = "first",
    *,
    max_negators: int = MAX_NEGATORS,
    budget: int = VISIT_BUDGET,
) -> ConstraintEvaluation:
    """Evaluate *view* with negators applied.

    ``mode="first"`` returns the first accepted assignment in search order;
    ``mode="canonical"`` the one with the smallest sorted elimination list.
    Without negators this is the plain conjunction of every check.
    """

    if mode not in MODES:
        raise ValueError(f"Unsupported negation mode: {mode!r}")
    negators = view.symbols.get(Kind.NEGATOR, ())
    if not negators:
        return ConstraintEvaluation(ok=passes(view))
    if len(negators) > max_negators:
        _LOGGER.debug("%d negators exceed the limit of %d", len(negators), max_negators)
        return FAILED

    count = len(negators)
    base = view.with_symbols(without_refs(view.symbols, [(Kind.NEGATOR, i) for i in range(count)]))
    candidates = candidate_targets(view, set(failing_refs(base)))
    assignment: List[Optional[SymbolRef]] = [None] * count
    claimed: Set[SymbolRef] = set()
    best: Optional[Tuple[SymbolRef, ...]] = None
    visits = 0

    def consistent(index: int, ref: SymbolRef) -> bool:
        pairing = ref[0] is Kind.NEGATOR
        if any(assigned is not None and (assigned[0] is Kind.NEGATOR) != pairing for assigned in assignment):
            return False
        if pairing:
            partner = assignment[ref[1]]
            return partner is None or partner == (Kind.NEGATOR, index)
        return True

    def search(index: int) -> bool:
        nonlocal visits, best
        visits += 1
        if visits > budget:
            return True
        if index == count:
            if assignment[0][0] is Kind.NEGATOR:
                removed: Tuple[SymbolRef, ...] = ()
                accepted = passes(base)
            else:
                removed = tuple(sorted(assignment, key=ref_sort_key))
                accepted = _accepts(base, removed)
            if accepted and (best is None or [ref_sort_key(r) for r in removed] < [ref_sort_key(r) for r in best]):
                best = removed
            return accepted and mode == "first"
        for ref in candidates[index]:
            if ref in claimed or not consistent(index, ref):
                continue
            assignment[index] = ref
            claimed.add(ref)
            stop = search(index + 1)
            claimed.discard(ref)
            assignment[index] = None
            if stop:
                return True
        return False

    search(0)
    if visits > budget:
        _LOGGER.debug("negation search stopped after %d visits", budget)
    if best is None:
        return FAILED
    return ConstraintEvaluation(
        ok=True,
        eliminated_negator_indexes=tuple(range(count)),
        eliminated_symbol_refs=best,
    )


__all__ = [
    "MAX_NEGATORS",
    "MODES",
    "VISIT_BUDGET",
    "candidate_targets",
    "ref_sort_key",
    "resolve_negation",
    "symbol_regions",
]
