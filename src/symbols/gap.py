"""Gap lines: the edges missing from the board."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence

from board.edges import missing_edges
from board.geometry import EdgeKey, edge_midpoint

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind


@dataclass(frozen=True)
class GapTarget:
    edge: EdgeKey

    @property
    def position(self):
        return edge_midpoint(self.edge)


def collect_failing_gaps(view: BoardView, targets: Sequence[GapTarget]) -> FrozenSet[int]:
    # A drawable path never crosses a gap, so gaps hold by construction.
    return frozenset()


def generate_gaps(ctx: PlacementContext) -> Optional[Placement]:
    missing = missing_edges(ctx.edges)
    if not missing:
        return None
    path = ctx.solution_path(local_rng(ctx.seed), 80, 9)
    if path is None:
        return None
    return Placement(tuple(GapTarget(edge) for edge in missing), path)


register_kind(
    KindSpec(
        kind=Kind.GAP,
        family="gap",
        target_type=GapTarget,
        generate=generate_gaps,
        collect_failing=collect_failing_gaps,
        occupies_cells=False,
    )
)
