"""Cardinals: the path must wall the cell off towards all four board edges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence

from board.geometry import MAX_INDEX, Cell, EdgeSet, GridPoint, edge_key, edges_from_path
from board.rng import pick, rand_int, shuffle

from .common import BoardView, Placement, PlacementContext, local_rng
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#ef2df5"


@dataclass(frozen=True)
class CardinalTarget:
    cell: Cell
    color: str = DEFAULT_COLOR


def _horizontal(x: int, y: int):
    return edge_key(GridPoint(x, y), GridPoint(x + 1, y))


def _vertical(x: int, y: int):
    return edge_key(GridPoint(x, y), GridPoint(x, y + 1))


def blocked_directions(used_edges: EdgeSet, cell: Cell) -> dict:
    x, y = cell
    return {
        "up": any(_horizontal(x, row) in used_edges for row in range(0, y + 1)),
        "down": any(_horizontal(x, row) in used_edges for row in range(y + 1, MAX_INDEX + 1)),
        "left": any(_vertical(col, y) in used_edges for col in range(0, x + 1)),
        "right": any(_vertical(col, y) in used_edges for col in range(x + 1, MAX_INDEX + 1)),
    }


def is_blocked_all_directions(used_edges: EdgeSet, cell: Cell) -> bool:
    return all(blocked_directions(used_edges, cell).values())


def collect_failing_cardinals(view: BoardView, targets: Sequence[CardinalTarget]) -> FrozenSet[int]:
    return frozenset(
        index for index, target in enumerate(targets) if not is_blocked_all_directions(view.used_edges, target.cell)
    )


def _low_set_count(rng, maximum: int) -> int:
    if maximum <= 1:
        return 1
    roll = rng()
    if maximum == 2:
        return 1 if roll < 0.5 else 2
    if maximum == 3:
        return 1 if roll < 0.38 else 2 if roll < 0.78 else 3
    return 1 if roll < 0.32 else 2 if roll < 0.62 else 3 if roll < 0.9 else 4


def generate_cardinals(ctx: PlacementContext) -> Optional[Placement]:
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 220, 10)
    if path is None:
        return None
    used = edges_from_path(path)
    candidates = [cell for cell in ctx.free_cells() if is_blocked_all_directions(used, cell)]
    if not candidates:
        return None

    low_set = ctx.active_count <= 2
    maximum = min(4 if low_set else 2, len(candidates))
    if low_set:
        count = _low_set_count(rng, maximum)
    else:
        count = 1 if maximum == 1 else 1 + rand_int(rng, 2)
    palette = ctx.palette(rng, DEFAULT_COLOR)
    targets = tuple(CardinalTarget(cell, pick(palette, rng)) for cell in shuffle(candidates, rng)[:count])
    return Placement(targets, path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[CardinalTarget]:
    open_cells = [cell for cell in cells if not is_blocked_all_directions(view.used_edges, cell)]
    if not open_cells:
        return None
    rng = local_rng(ctx.seed, 103)
    return CardinalTarget(pick(open_cells, rng), pick(ctx.palette(rng, DEFAULT_COLOR), rng))


register_kind(
    KindSpec(
        kind=Kind.CARDINAL,
        family="ray",
        target_type=CardinalTarget,
        generate=generate_cardinals,
        collect_failing=collect_failing_cardinals,
        decoy=_decoy,
    )
)
