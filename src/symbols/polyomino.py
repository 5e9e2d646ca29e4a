"""Polyomino kinds: plain, rotated, negative and rotated-negative pieces.

All four kinds share one rule.  Every region holding any piece, whatever its
kind, must be tileable by the pieces inside it (see :mod:`symbols.tiling`).
A negative kind places positive/negative pairs; each piece carries its own
``negative`` flag so either sign can appear in any of the four target lists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from board.geometry import Cell
from board.rng import Rng, pick, rand_int, shuffle
from project_config import get_section

from .common import BoardView, Placement, PlacementContext, SymbolMap, build_view, local_rng
from .registry import NEGATIVE_POLYOMINO_KINDS, POLYOMINO_KINDS, Kind, KindSpec, register_kind
from .tiling import (
    SHAPES_BY_NAME,
    SHAPES_BY_SIZE,
    Piece,
    Shape,
    can_tile_region,
    piece_placements,
    rotation_key,
    rotations,
    tile_region_with_shapes,
)

_LOGGER = logging.getLogger(__name__)

POSITIVE_COLOR = "#f4c430"
NEGATIVE_COLOR = "#1f43ff"

_GEN_CFG = get_section("generation", {})
_POLY_CFG = get_section("polyomino", {})
MAX_PIECES = int(_GEN_CFG.get("max_polyomino_symbols", 4))
MAX_NEGATIVE_PIECES = int(_GEN_CFG.get("max_negative_polyominoes", 4))
MAX_REGION_CELLS = int(_POLY_CFG.get("max_region_cells", 12))

_PAIR_ATTEMPTS = 72
_SHAPE_ATTEMPTS = 24
_MEMO_KEY = "polyomino_failing_regions"


@dataclass(frozen=True)
class PolyominoPiece:
    cell: Cell
    shape: Shape
    rotatable: bool = False
    negative: bool = False
    color: str = POSITIVE_COLOR

    @property
    def piece(self) -> Piece:
        return Piece(self.shape, self.rotatable, self.negative)


def all_pieces(symbols: SymbolMap) -> List[PolyominoPiece]:
    return [piece for kind in Kind if kind in POLYOMINO_KINDS for piece in symbols.get(kind, ())]


def _pieces_by_region(view: BoardView, pieces: Sequence[PolyominoPiece]) -> Dict[int, List[Piece]]:
    grouped: Dict[int, List[Piece]] = {}
    for piece in pieces:
        grouped.setdefault(view.regions[piece.cell], []).append(piece.piece)
    return grouped


def failing_regions(view: BoardView, pieces: Sequence[PolyominoPiece]) -> FrozenSet[int]:
    """Regions whose pieces cannot tile them."""

    return frozenset(
        region
        for region, region_pieces in _pieces_by_region(view, pieces).items()
        if not can_tile_region(view.region_cells[region], region_pieces)
    )


def _collect_failing(kind: Kind):
    def collect(view: BoardView, targets: Sequence[PolyominoPiece]) -> FrozenSet[int]:
        if not targets:
            return frozenset()
        if tuple(targets) == tuple(view.symbols.get(kind, ())):
            failing = view.memo.get(_MEMO_KEY)
            if failing is None:
                failing = failing_regions(view, all_pieces(view.symbols))
                view.memo[_MEMO_KEY] = failing
        else:
            pieces = [p for k in Kind if k in POLYOMINO_KINDS and k is not kind for p in view.symbols.get(k, ())]
            failing = failing_regions(view, pieces + list(targets))
        return frozenset(index for index, piece in enumerate(targets) if view.regions[piece.cell] in failing)

    collect.__name__ = f"collect_failing_{kind.name.lower()}"
    return collect


def _palette(ctx: PlacementContext, rng: Rng) -> List[str]:
    if Kind.STARS not in ctx.kinds:
        return [POSITIVE_COLOR]
    return ctx.palette(rng, POSITIVE_COLOR)


def _positive_slots(ctx: PlacementContext, kind: Kind) -> int:
    placed = sum(1 for piece in all_pieces(ctx.symbols) if not piece.negative)
    reserved = sum(1 for k in NEGATIVE_POLYOMINO_KINDS if k in ctx.kinds)
    if kind is Kind.POLYOMINO and Kind.ROTATED_POLYOMINO in ctx.kinds:
        reserved += 1
    return MAX_PIECES - placed - reserved


def _generate_positive(ctx: PlacementContext, kind: Kind, rotatable: bool) -> Optional[Placement]:
    slots = _positive_slots(ctx, kind)
    if slots <= 0:
        return None
    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 72, 8)
    if path is None:
        return None
    view = build_view(path, ctx.symbols)
    taken = {view.regions[piece.cell] for piece in all_pieces(ctx.symbols)}
    open_regions = [region for region in sorted(view.region_cells) if region not in taken]
    candidates = shuffle(
        [r for r in open_regions if len(view.region_cells[r]) <= MAX_REGION_CELLS], rng
    ) or shuffle(open_regions, rng)
    if not candidates:
        return None

    extra = 3 if len(candidates) >= 4 else 2 if len(candidates) >= 2 else 1
    target_regions = min(len(candidates), 1 + rand_int(rng, extra))
    palette = _palette(ctx, rng)
    used: Set[Cell] = set(ctx.blocked_cells)
    pieces: List[PolyominoPiece] = []
    placed_regions = 0
    area = 0
    for region in candidates:
        if placed_regions >= target_regions or len(pieces) >= slots:
            break
        cells = view.region_cells[region]
        tiling = tile_region_with_shapes(cells, rng)
        if tiling is None or len(pieces) + len(tiling) > slots:
            continue
        free = shuffle([cell for cell in cells if cell not in used], rng)
        if len(free) < len(tiling):
            continue
        for cell, shape in zip(free, tiling):
            used.add(cell)
            pieces.append(PolyominoPiece(cell, shape, rotatable, False, pick(palette, rng)))
            area += shape.size
        placed_regions += 1

    minimum_area = 4 if slots >= 3 else 3 if slots == 2 else 1
    if not placed_regions or area < minimum_area:
        return None
    return Placement(tuple(pieces), path)


def _shape_size(rng: Rng, max_size: int, boost: float = 0.0) -> int:
    """Piece size for a pair, biased to small pieces unless *boost* is high."""

    boost = max(0.0, min(1.0, boost))
    weights = {
        1: max(8, round(52 - 26 * boost)),
        2: max(14, round(30 - 6 * boost)),
        3: round(12 + 18 * boost),
        4: round(6 + 14 * boost),
    }
    sizes = [size for size in weights if size <= max_size]
    if not sizes:
        return 1
    roll = rng() * sum(weights[size] for size in sizes)
    for size in sizes:
        roll -= weights[size]
        if roll <= 0:
            return size
    return sizes[-1]


def _complexity_boost(region_size: int) -> float:
    if region_size >= 10:
        return 1.0
    if region_size >= 8:
        return 0.88
    if region_size >= 6:
        return 0.68
    if region_size >= 4:
        return 0.46
    return 0.2


def _pick_pair_shape(
    cells: Sequence[Cell],
    rng: Rng,
    *,
    negative: bool,
    allow_rotated: bool,
    require_rotated: bool,
    avoid_key=None,
) -> Optional[Tuple[Shape, bool]]:
    region = frozenset(cells)
    max_size = min(4, len(cells))
    base_boost = _complexity_boost(len(cells)) if negative else 0.0
    for attempt in range(_SHAPE_ATTEMPTS):
        boost = max(0.0, base_boost - attempt * 0.035)
        shapes = shuffle(SHAPES_BY_SIZE.get(_shape_size(rng, max_size, boost), ()), rng)
        if avoid_key is not None:
            shapes = [s for s in shapes if rotation_key(s.cells) != avoid_key] + [
                s for s in shapes if rotation_key(s.cells) == avoid_key
            ]
        for shape in shapes:
            if not negative or require_rotated:
                rotatable = allow_rotated
            else:
                rotatable = allow_rotated and len(rotations(shape)) > 1 and rng() < 0.45
            if piece_placements(Piece(shape, rotatable, negative), region):
                return shape, rotatable
    return None


def _generate_negative(ctx: PlacementContext, kind: Kind) -> Optional[Placement]:
    rotated = kind is Kind.ROTATED_NEGATIVE_POLYOMINO
    existing = all_pieces(ctx.symbols)
    other_pending = any(k in ctx.kinds and not ctx.symbols.get(k) for k in NEGATIVE_POLYOMINO_KINDS if k is not kind)
    negative_slots = MAX_NEGATIVE_PIECES - sum(1 for p in existing if p.negative) - (1 if other_pending else 0)
    positive_slots = MAX_PIECES - sum(1 for p in existing if not p.negative) - (1 if other_pending else 0)
    if negative_slots <= 0 or positive_slots <= 0:
        return None

    rng = local_rng(ctx.seed)
    path = ctx.solution_path(rng, 72, 8)
    if path is None:
        return None
    view = build_view(path, ctx.symbols)
    free: Dict[int, List[Cell]] = {}
    for region, cells in view.region_cells.items():
        open_cells = [cell for cell in cells if cell not in ctx.blocked_cells]
        if len(open_cells) >= 2:
            free[region] = shuffle(open_cells, rng)
    region_pieces: Dict[int, List[Piece]] = {}
    for piece in existing:
        region_pieces.setdefault(view.regions[piece.cell], []).append(piece.piece)

    limit = min(4, negative_slots, positive_slots, sum(len(cells) // 2 for cells in free.values()))
    if limit <= 0:
        return None
    two_pair_bias = 0.72 if any(not p.negative for p in existing) else 0.58
    minimum = 2 if limit >= 2 and rng() < two_pair_bias else 1
    target = minimum
    if limit >= 3 and rng() < 0.4:
        target += 1
    if limit >= 4 and rng() < 0.2:
        target += 1
    target = min(target, limit)

    positive_rotatable = Kind.ROTATED_POLYOMINO in ctx.kinds and Kind.POLYOMINO not in ctx.kinds
    palette = _palette(ctx, rng)
    placed: List[PolyominoPiece] = []
    for _ in range(_PAIR_ATTEMPTS):
        if len(placed) // 2 >= target:
            break
        viable = [region for region in sorted(free) if len(free[region]) >= 2]
        if not viable:
            break
        region = pick(viable, rng)
        cells = view.region_cells[region]
        negative = _pick_pair_shape(cells, rng, negative=True, allow_rotated=rotated, require_rotated=rotated)
        if negative is None:
            continue
        positive = _pick_pair_shape(
            cells,
            rng,
            negative=False,
            allow_rotated=positive_rotatable,
            require_rotated=False,
            avoid_key=rotation_key(negative[0].cells),
        )
        if positive is None:
            continue
        positive_cell, negative_cell = shuffle(free[region], rng)[:2]
        pair = (
            PolyominoPiece(positive_cell, positive[0], positive[1], False, pick(palette, rng)),
            PolyominoPiece(
                negative_cell,
                negative[0],
                negative[1],
                True,
                pick(palette, rng) if Kind.STARS in ctx.kinds else NEGATIVE_COLOR,
            ),
        )
        trial = region_pieces.get(region, []) + [p.piece for p in pair]
        if not can_tile_region(cells, trial):
            continue
        placed.extend(pair)
        region_pieces[region] = trial
        free[region] = [cell for cell in free[region] if cell not in (positive_cell, negative_cell)]

    if len(placed) // 2 < minimum:
        _LOGGER.debug("negative polyomino pairs short: %d < %d", len(placed) // 2, minimum)
        return None
    return Placement(tuple(placed), path)


def _decoy_for(kind: Kind):
    negative = kind in NEGATIVE_POLYOMINO_KINDS
    rotatable = kind in (Kind.ROTATED_POLYOMINO, Kind.ROTATED_NEGATIVE_POLYOMINO)

    def decoy(ctx: PlacementContext, view: BoardView, cells: Sequence[Cell]) -> Optional[PolyominoPiece]:
        """A single-cell piece that leaves its region untileable."""

        rng = local_rng(ctx.seed, 149)
        grouped = _pieces_by_region(view, all_pieces(view.symbols))
        mono = SHAPES_BY_NAME["mono-0"]
        for cell in shuffle(cells, rng):
            region = view.regions[cell]
            trial = grouped.get(region, []) + [Piece(mono, rotatable, negative)]
            if not can_tile_region(view.region_cells[region], trial):
                color = NEGATIVE_COLOR if negative else POSITIVE_COLOR
                if Kind.STARS in ctx.kinds:
                    color = pick(ctx.palette(rng, color), rng)
                return PolyominoPiece(cell, mono, rotatable, negative, color)
        return None

    return decoy


def generate_polyominoes(ctx: PlacementContext) -> Optional[Placement]:
    return _generate_positive(ctx, Kind.POLYOMINO, False)


def generate_rotated_polyominoes(ctx: PlacementContext) -> Optional[Placement]:
    return _generate_positive(ctx, Kind.ROTATED_POLYOMINO, True)


def generate_negative_polyominoes(ctx: PlacementContext) -> Optional[Placement]:
    return _generate_negative(ctx, Kind.NEGATIVE_POLYOMINO)


def generate_rotated_negative_polyominoes(ctx: PlacementContext) -> Optional[Placement]:
    return _generate_negative(ctx, Kind.ROTATED_NEGATIVE_POLYOMINO)


collect_failing_polyominoes = _collect_failing(Kind.POLYOMINO)
collect_failing_rotated_polyominoes = _collect_failing(Kind.ROTATED_POLYOMINO)
collect_failing_negative_polyominoes = _collect_failing(Kind.NEGATIVE_POLYOMINO)
collect_failing_rotated_negative_polyominoes = _collect_failing(Kind.ROTATED_NEGATIVE_POLYOMINO)

for _kind, _generate, _collect in (
    (Kind.POLYOMINO, generate_polyominoes, collect_failing_polyominoes),
    (Kind.ROTATED_POLYOMINO, generate_rotated_polyominoes, collect_failing_rotated_polyominoes),
    (Kind.NEGATIVE_POLYOMINO, generate_negative_polyominoes, collect_failing_negative_polyominoes),
    (
        Kind.ROTATED_NEGATIVE_POLYOMINO,
        generate_rotated_negative_polyominoes,
        collect_failing_rotated_negative_polyominoes,
    ),
):
    register_kind(
        KindSpec(
            kind=_kind,
            family="shape-tiling",
            target_type=PolyominoPiece,
            generate=_generate,
            collect_failing=_collect,
            decoy=_decoy_for(_kind),
        )
    )
