"""Symbol kinds: target types, constraint checks and generators.

Kind modules register themselves with :mod:`symbols.registry` when imported;
:func:`load_kind_modules` imports all of them and lookups through
:func:`get_kind_spec` trigger it on demand.
"""

from __future__ import annotations

from .common import (
    COLOR_PALETTE,
    MAX_SYMBOL_COLORS,
    BoardView,
    Placement,
    PlacementContext,
    Puzzle,
    build_view,
    normalise_symbols,
    occupied_cells,
    symbol_colors,
)
from .registry import (
    GENERATION_ORDER,
    NEGATIVE_POLYOMINO_KINDS,
    POLYOMINO_KINDS,
    Kind,
    KindSpec,
    SymbolRef,
    get_kind_spec,
    load_kind_modules,
    parse_kind,
    parse_kinds,
    register_kind,
    registered_kinds,
)

__all__ = [
    "BoardView",
    "COLOR_PALETTE",
    "GENERATION_ORDER",
    "Kind",
    "KindSpec",
    "MAX_SYMBOL_COLORS",
    "NEGATIVE_POLYOMINO_KINDS",
    "POLYOMINO_KINDS",
    "Placement",
    "PlacementContext",
    "Puzzle",
    "SymbolRef",
    "build_view",
    "get_kind_spec",
    "load_kind_modules",
    "normalise_symbols",
    "occupied_cells",
    "parse_kind",
    "parse_kinds",
    "register_kind",
    "registered_kinds",
    "symbol_colors",
]
