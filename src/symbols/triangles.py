"""Triangles: the number of the cell's sides drawn by the path."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Tuple

from board.geometry import Cell, EdgeSet, cell_edges, edges_from_path
from board.rng import pick, rand_int, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#ff8a00"


@dataclass(frozen=True)
class TriangleTarget:
    cell: Cell
    count: int
    color: str = DEFAULT_COLOR


def touched_sides(used_edges: EdgeSet, cell: Cell) -> int:
    return sum(1 for edge in cell_edges(cell) if edge in used_edges)


def collect_failing_triangles(view: BoardView, targets: Sequence[TriangleTarget]) -> FrozenSet[int]:
    return frozenset(
        index for index, target in enumerate(targets) if touched_sides(view.used_edges, target.cell) != target.count
    )


def _target_count(ctx: PlacementContext, rng, available: int) -> int:
    if ctx.active_count > 2:
        maximum = min(5, available)
        return 1 + rand_int(rng, maximum) if maximum >= 1 else 0
    maximum = min(10, available)
    if maximum < 3:
        return 0
    spread = maximum - 3
    if ctx.active_count == 2:
        # Mixed boards lean towards few triangles.
        return 3 + min(spread, int(math.floor(math.pow(rng(), 1.85) * (spread + 1))))
    return 3 + rand_int(rng, spread + 1)


def generate_triangles(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    used = edges_from_path(path)
    candidates: List[Tuple[Cell, int]] = []
    for cell in ctx.free_cells():
        touches = touched_sides(used, cell)
        if 1 <= touches <= 3:
            candidates.append((cell, touches))

    count = _target_count(ctx, rng, len(candidates))
    if count == 0:
        return None
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = []
    for cell, touches in shuffle(candidates, rng)[:count]:
        targets.append(TriangleTarget(cell, touches, pick(palette, rng)))
    return Placement(tuple(targets), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[TriangleTarget]:
    if not cells:
        return None
    rng = local_rng(ctx.seed, 71)
    cell = pick(cells, rng)
    actual = touched_sides(view.used_edges, cell)
    wrong = [count for count in (1, 2, 3) if count != actual]
    return TriangleTarget(cell, pick(wrong, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.TRIANGLES,
        family="edge-count",
        target_type=TriangleTarget,
        generate=generate_triangles,
        collect_failing=collect_failing_triangles,
        decoy=_decoy,
    )
)
