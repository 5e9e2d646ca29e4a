"""Immutable per-attempt state threaded through the placement pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from board.geometry import END, START, Cell, EdgeSet, GridPoint, Path
from project_config import get_section
from symbols.common import Placement, PlacementContext, Puzzle, normalise_symbols, symbol_colors
from symbols.registry import Kind, get_kind_spec

_GEN_CFG = get_section("generation", {})
GAP_SEED_STEP = int(_GEN_CFG.get("gap_seed_step", 131))
SEED_OFFSETS: Dict[str, int] = dict(get_section("generation.seed_offsets", {}))


def kind_seed(seed: int, attempt: int, kind: Kind) -> int:
    """Seed handed to *kind*'s generator on *attempt*."""

    offset = SEED_OFFSETS.get(kind.value, GAP_SEED_STEP if kind is Kind.GAP else 1009)
    return seed + attempt * int(offset)


@dataclass(frozen=True)
class PlacementFailure:
    """Why a placement step gave up on an attempt."""

    kind: Kind
    attempt: int
    reason: str

    def __str__(self) -> str:
        return f"attempt {self.attempt}: {self.kind.value} {self.reason}"


@dataclass(frozen=True)
class AttemptState:
    """Edges, solution path and symbols accumulated so far in one attempt.

    ``path`` starts out as the attempt's preferred path and becomes locked once
    a kind other than gaps has placed targets against it; later kinds must
    keep it.
    """

    attempt: int
    seed: int
    edges: EdgeSet
    kinds: Tuple[Kind, ...] = ()
    path: Optional[Path] = None
    path_locked: bool = False
    symbols: Mapping[Kind, Tuple[Any, ...]] = field(default_factory=dict)
    blocked_cells: FrozenSet[Cell] = frozenset()
    colors: Tuple[str, ...] = ()
    start: GridPoint = START
    end: GridPoint = END

    def evolve(self, **changes: Any) -> "AttemptState":
        return replace(self, **changes)

    @property
    def active_kinds(self) -> Tuple[Kind, ...]:
        return tuple(kind for kind in self.kinds if kind is not Kind.GAP)

    def context(self, kind: Kind, options: Optional[Mapping[str, Any]] = None) -> PlacementContext:
        return PlacementContext(
            edges=self.edges,
            seed=kind_seed(self.seed, self.attempt, kind),
            kinds=self.kinds,
            symbols=dict(self.symbols),
            blocked_cells=self.blocked_cells,
            preferred_colors=self.colors,
            preferred_path=self.path,
            path_locked=self.path_locked,
            start=self.start,
            end=self.end,
            options=dict(options or {}),
        )

    def with_placement(self, kind: Kind, placement: Placement) -> "AttemptState":
        """Fold *placement* (and any companion targets it carries) into the state."""

        merged: Dict[Kind, Tuple[Any, ...]] = dict(self.symbols)
        blocked = set(self.blocked_cells)
        additions = [(kind, tuple(placement.targets))]
        additions.extend((other, tuple(targets)) for other, targets in placement.extra.items())
        for target_kind, targets in additions:
            merged[target_kind] = merged.get(target_kind, ()) + targets
            if get_kind_spec(target_kind).occupies_cells:
                blocked.update(t.cell for t in targets if getattr(t, "cell", None) is not None)
        merged = normalise_symbols(merged)
        colors = tuple(sorted(symbol_colors(merged)))
        locked = self.path_locked or any(k is not Kind.GAP for k in merged)
        return self.evolve(
            path=tuple(placement.path),
            path_locked=locked,
            symbols=merged,
            blocked_cells=frozenset(blocked),
            colors=colors,
        )

    def placed_kinds(self) -> Tuple[Kind, ...]:
        return tuple(kind for kind in self.kinds if self.symbols.get(kind))

    def symbol_count(self) -> int:
        return sum(len(targets) for kind, targets in self.symbols.items() if kind is not Kind.GAP)

    def to_puzzle(self, solution_hint: Optional[Path] = None) -> Puzzle:
        return Puzzle(
            edges=self.edges,
            symbols=dict(self.symbols),
            start=self.start,
            end=self.end,
            kinds=self.kinds,
            seed=self.seed,
            solution_hint=solution_hint if solution_hint is not None else self.path,
        )


__all__ = ["AttemptState", "PlacementFailure", "SEED_OFFSETS", "kind_seed"]
