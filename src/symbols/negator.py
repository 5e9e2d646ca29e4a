"""Negators: each cancels one other symbol of its region.

The rule itself lives in :mod:`solver.negation`; this module only places
negators.  Three layouts are tried in turn: a negator next to a symbol that
already fails, a negator next to a deliberately failing decoy of another
requested kind, and (when negators are the only kind) two negators that
cancel each other.  Every layout is confirmed by running the resolver on the
solution path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence

from board.geometry import Cell, Path
from board.rng import Rng, pick, shuffle
from solver.constraints import failing_refs
from solver.negation import resolve_negation, symbol_regions

from .common import BoardView, Placement, PlacementContext, SymbolMap, build_view, local_rng
from .registry import Kind, KindSpec, get_kind_spec, register_kind

_LOGGER = logging.getLogger(__name__)

DEFAULT_COLOR = "#f8f5ef"
_CELLS_PER_DECOY = 3


@dataclass(frozen=True)
class NegatorTarget:
    cell: Cell
    color: str = DEFAULT_COLOR


def collect_failing_negators(view: BoardView, targets: Sequence[NegatorTarget]) -> FrozenSet[int]:
    return frozenset()


def _free_by_region(view: BoardView, ctx: PlacementContext) -> Dict[int, List[Cell]]:
    free: Dict[int, List[Cell]] = {}
    for region, cells in sorted(view.region_cells.items()):
        open_cells = [cell for cell in cells if cell not in ctx.blocked_cells]
        if open_cells:
            free[region] = open_cells
    return free


def _resolves(path: Path, symbols: SymbolMap) -> bool:
    return resolve_negation(build_view(path, symbols)).ok


def _with(symbols: SymbolMap, kind: Kind, targets: Sequence) -> Dict[Kind, tuple]:
    merged = dict(symbols)
    merged[kind] = tuple(merged.get(kind, ())) + tuple(targets)
    return merged


def _cancel_existing(ctx, rng: Rng, path: Path, view: BoardView, free, palette) -> Optional[Placement]:
    refs = failing_refs(view)
    for kind, index in shuffle(refs, rng):
        for region in symbol_regions(view, view.symbols[kind][index]):
            for cell in shuffle(free.get(region, ()), rng)[:_CELLS_PER_DECOY]:
                negator = NegatorTarget(cell, pick(palette, rng))
                if _resolves(path, _with(ctx.symbols, Kind.NEGATOR, [negator])):
                    return Placement((negator,), path)
    return None


def _with_decoy(ctx, rng: Rng, path: Path, view: BoardView, free, palette) -> Optional[Placement]:
    kinds = [k for k in ctx.kinds if k not in (Kind.GAP, Kind.NEGATOR) and get_kind_spec(k).decoy is not None]
    for kind in shuffle(kinds, rng):
        spec = get_kind_spec(kind)
        for region in shuffle(sorted(free), rng):
            cells = free[region]
            decoy = spec.decoy(ctx, view, cells)
            if decoy is None:
                continue
            taken = {decoy.cell} if spec.occupies_cells else set()
            for cell in shuffle([c for c in cells if c not in taken], rng)[:_CELLS_PER_DECOY]:
                negator = NegatorTarget(cell, pick(palette, rng))
                symbols = _with(_with(ctx.symbols, kind, [decoy]), Kind.NEGATOR, [negator])
                if _resolves(path, symbols):
                    return Placement((negator,), path, extra={kind: (decoy,)})
    return None


def _mutual_pair(ctx, rng: Rng, path: Path, free, palette) -> Optional[Placement]:
    for region in shuffle([r for r in sorted(free) if len(free[r]) >= 2], rng):
        first, second = shuffle(free[region], rng)[:2]
        pair = (NegatorTarget(first, pick(palette, rng)), NegatorTarget(second, pick(palette, rng)))
        if _resolves(path, _with(ctx.symbols, Kind.NEGATOR, pair)):
            return Placement(pair, path)
    return None


def generate_negators(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 180, 8)
    if path is None:
        return None
    view = build_view(path, ctx.symbols)
    free = _free_by_region(view, ctx)
    if not free:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)

    others = [k for k in ctx.kinds if k not in (Kind.GAP, Kind.NEGATOR)]
    if not others:
        return _mutual_pair(ctx, rng, path, free, palette)
    placement = _cancel_existing(ctx, rng, path, view, free, palette)
    if placement is None:
        placement = _with_decoy(ctx, rng, path, view, free, palette)
    if placement is None:
        _LOGGER.debug("no negator layout for kinds %s", [k.value for k in others])
    return placement


register_kind(
    KindSpec(
        kind=Kind.NEGATOR,
        family="elimination",
        target_type=NegatorTarget,
        generate=generate_negators,
        collect_failing=collect_failing_negators,
    )
)
