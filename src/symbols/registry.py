"""Kind enumeration and the per-kind dispatch table."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .common import BoardView, Placement, PlacementContext


class Kind(str, Enum):
    GAP = "gap-line"
    COLOR_SQUARES = "color-squares"
    STARS = "stars"
    TRIANGLES = "triangles"
    DOTS = "dots"
    DIAMONDS = "diamonds"
    TALLY_MARKS = "tally-marks"
    ARROWS = "arrows"
    CHEVRONS = "chevrons"
    WATER_DROPLET = "water-droplet"
    CARDINAL = "cardinal"
    MINESWEEPER = "minesweeper-numbers"
    SPINNER = "spinner"
    SENTINEL = "sentinel"
    GHOST = "ghost"
    CRYSTALS = "crystals"
    POLYOMINO = "polyomino"
    ROTATED_POLYOMINO = "rotated-polyomino"
    NEGATIVE_POLYOMINO = "negative-polyomino"
    ROTATED_NEGATIVE_POLYOMINO = "rotated-negative-polyomino"
    HEXAGON = "hexagon"
    NEGATOR = "negator"


POLYOMINO_KINDS: FrozenSet[Kind] = frozenset(
    {
        Kind.POLYOMINO,
        Kind.ROTATED_POLYOMINO,
        Kind.NEGATIVE_POLYOMINO,
        Kind.ROTATED_NEGATIVE_POLYOMINO,
    }
)
NEGATIVE_POLYOMINO_KINDS: FrozenSet[Kind] = frozenset(
    {Kind.NEGATIVE_POLYOMINO, Kind.ROTATED_NEGATIVE_POLYOMINO}
)

# Placement order inside one generation attempt.
GENERATION_ORDER: Tuple[Kind, ...] = (
    Kind.GAP,
    Kind.COLOR_SQUARES,
    Kind.GHOST,
    Kind.CRYSTALS,
    Kind.POLYOMINO,
    Kind.ROTATED_POLYOMINO,
    Kind.NEGATIVE_POLYOMINO,
    Kind.ROTATED_NEGATIVE_POLYOMINO,
    Kind.TRIANGLES,
    Kind.DOTS,
    Kind.DIAMONDS,
    Kind.TALLY_MARKS,
    Kind.ARROWS,
    Kind.CHEVRONS,
    Kind.MINESWEEPER,
    Kind.WATER_DROPLET,
    Kind.CARDINAL,
    Kind.SPINNER,
    Kind.STARS,
    Kind.HEXAGON,
    Kind.SENTINEL,
    Kind.NEGATOR,
)

SymbolRef = Tuple[Kind, int]

GenerateFn = Callable[["PlacementContext"], Optional["Placement"]]
FailingFn = Callable[["BoardView", Sequence[Any]], FrozenSet[int]]
DecoyFn = Callable[["PlacementContext", "BoardView", Sequence[Any]], Optional[Any]]


@dataclass(frozen=True)
class KindSpec:
    """Registry entry binding a kind to its generator and evaluator."""

    kind: Kind
    family: str
    target_type: type
    generate: GenerateFn
    collect_failing: FailingFn
    decoy: Optional[DecoyFn] = None
    occupies_cells: bool = True

    def check(self, view: "BoardView", targets: Sequence[Any]) -> bool:
        return not self.collect_failing(view, targets)


_KIND_REGISTRY: Dict[Kind, KindSpec] = {}

# Module (inside this package) that registers each kind on import.
_KIND_MODULES: Dict[Kind, str] = {
    Kind.GAP: "gap",
    Kind.COLOR_SQUARES: "color_squares",
    Kind.STARS: "stars",
    Kind.TRIANGLES: "triangles",
    Kind.DOTS: "dots",
    Kind.DIAMONDS: "diamonds",
    Kind.TALLY_MARKS: "tally_marks",
    Kind.ARROWS: "arrows",
    Kind.CHEVRONS: "chevrons",
    Kind.WATER_DROPLET: "water_droplet",
    Kind.CARDINAL: "cardinal",
    Kind.MINESWEEPER: "minesweeper",
    Kind.SPINNER: "spinner",
    Kind.SENTINEL: "sentinel",
    Kind.GHOST: "ghost",
    Kind.CRYSTALS: "crystals",
    Kind.POLYOMINO: "polyomino",
    Kind.ROTATED_POLYOMINO: "polyomino",
    Kind.NEGATIVE_POLYOMINO: "polyomino",
    Kind.ROTATED_NEGATIVE_POLYOMINO: "polyomino",
    Kind.HEXAGON: "hexagon",
    Kind.NEGATOR: "negator",
}


def load_kind_modules() -> None:
    """Import every kind module so that each registers itself."""

    for module in dict.fromkeys(_KIND_MODULES.values()):
        importlib.import_module(f"{__package__}.{module}")


def parse_kind(value: Any) -> Kind:
    """Coerce a kind name (or :class:`Kind`) into a :class:`Kind`."""

    if isinstance(value, Kind):
        return value
    try:
        return Kind(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported symbol kind: {value!r}") from None


def parse_kinds(values: Iterable[Any]) -> Tuple[Kind, ...]:
    """Parse and de-duplicate kinds, keeping the first-seen order."""

    seen: List[Kind] = []
    for value in values:
        kind = parse_kind(value)
        if kind not in seen:
            seen.append(kind)
    return tuple(seen)


def register_kind(spec: KindSpec) -> None:
    if not isinstance(spec.kind, Kind):
        raise ValueError(f"Unsupported symbol kind: {spec.kind!r}")
    if spec.kind in _KIND_REGISTRY:
        raise ValueError(f"Kind {spec.kind.value!r} is already registered")
    _KIND_REGISTRY[spec.kind] = spec


def get_kind_spec(kind: Kind) -> KindSpec:
    if kind not in _KIND_REGISTRY:
        load_kind_modules()
    try:
        return _KIND_REGISTRY[kind]
    except KeyError:
        raise KeyError(f"Kind {kind!r} has no registered implementation") from None


def registered_kinds() -> Tuple[Kind, ...]:
    load_kind_modules()
    return tuple(kind for kind in Kind if kind in _KIND_REGISTRY)


__all__ = [
    "GENERATION_ORDER",
    "Kind",
    "KindSpec",
    "NEGATIVE_POLYOMINO_KINDS",
    "POLYOMINO_KINDS",
    "SymbolRef",
    "get_kind_spec",
    "load_kind_modules",
    "parse_kind",
    "parse_kinds",
    "register_kind",
    "registered_kinds",
]
