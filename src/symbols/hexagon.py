"""Hexagons sit on grid nodes or edges and must be covered by the path."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

from board.geometry import Cell, EdgeKey, EdgeSet, GridPoint, Path, cell_corners, cell_edges, edge_key, edge_midpoint
from board.paths import build_full_grid_path
from board.rng import mulberry32, pick, rand_int, shuffle
from project_config import get_section

from .common import BoardView, Placement, PlacementContext, local_rng, pick_spread
from .registry import Kind, KindSpec, register_kind

DEFAULT_COLOR = "#0b0b0b"

_HEX_CFG = get_section("hexagon", {})
FULL_GRID_CHANCE = float(_HEX_CFG.get("full_grid_chance", 0.1))
FULL_GRID_BUDGET = int(_HEX_CFG.get("full_grid_budget", 4000))
SPREAD_DISTANCE = float(_HEX_CFG.get("spread_distance", 1.05))


@dataclass(frozen=True)
class HexTarget:
    node: Optional[GridPoint] = None
    edge: Optional[EdgeKey] = None

    @property
    def position(self) -> Tuple[float, float]:
        if self.edge is not None:
            return edge_midpoint(self.edge)
        return (float(self.node.x), float(self.node.y))

    @property
    def key(self) -> str:
        if self.edge is not None:
            (ax, ay), (bx, by) = self.edge
            return f"edge-{ax},{ay}-{bx},{by}"
        return f"node-{self.node.x},{self.node.y}"


def is_covered(view: BoardView, target: HexTarget) -> bool:
    if target.edge is not None:
        return target.edge in view.used_edges
    return target.node in view.path_points


def collect_failing_hexagons(view: BoardView, targets: Sequence[HexTarget]) -> FrozenSet[int]:
    return frozenset(index for index, target in enumerate(targets) if not is_covered(view, target))


def should_use_full_grid(seed: int) -> bool:
    return mulberry32(seed + 4099)() < FULL_GRID_CHANCE


def build_full_grid_hex_path(seed: int, edges: EdgeSet) -> Optional[Path]:
    return build_full_grid_path(seed, edges, FULL_GRID_BUDGET)


def hex_pool(path: Path) -> Tuple[HexTarget, ...]:
    """Interior path nodes followed by every path edge."""

    nodes = tuple(HexTarget(node=point) for point in path[1:-1])
    edges = tuple(HexTarget(edge=edge_key(a, b)) for a, b in zip(path, path[1:]))
    return nodes + edges


def generate_hexagons(ctx: PlacementContext) -> Optional[Placement]:
    rng = mulberry32(ctx.seed + 1337)
    path = ctx.solution_path(rng, 120, 9)
    if path is None or len(path) < 2:
        return None
    pool = hex_pool(path)
    if len(pool) <= 2:
        return Placement(pool, path)
    count = min(len(pool), 2 + rand_int(rng, 3))
    return Placement(tuple(pick_spread(pool, count, SPREAD_DISTANCE, rng)), path)


def _decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[HexTarget]:
    """An unvisited node or unused edge on the border of *cells*."""

    rng = local_rng(ctx.seed, 151)
    options = []
    for cell in shuffle(cells, rng):
        options.extend(HexTarget(node=p) for p in cell_corners(cell) if p not in view.path_points)
        options.extend(HexTarget(edge=e) for e in cell_edges(cell) if e in ctx.edges and e not in view.used_edges)
    if not options:
        return None
    return pick(options, rng)


register_kind(
    KindSpec(
        kind=Kind.HEXAGON,
        family="path-coverage",
        target_type=HexTarget,
        generate=generate_hexagons,
        collect_failing=collect_failing_hexagons,
        decoy=_decoy,
        occupies_cells=False,
    )
)
