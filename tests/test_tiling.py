from __future__ import annotations

from board.geometry import Cell, GridPoint
from board.rng import mulberry32
from symbols.common import build_view
from symbols.polyomino import PolyominoPiece
from symbols.registry import Kind, get_kind_spec
from symbols.tiling import SHAPES, SHAPES_BY_NAME, Piece, can_tile_region, rotation_key, tile_region_with_shapes

TOP_HALF = [Cell(x, y) for y in range(2) for x in range(4)]
SQUARE = [Cell(0, 0), Cell(1, 0), Cell(0, 1), Cell(1, 1)]

MIDDLE_SPLIT = tuple(
    GridPoint(x, y) for x, y in ((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))
)


def _piece(name, rotatable=False, negative=False):
    return Piece(SHAPES_BY_NAME[name], rotatable, negative)


def test_catalog_names_are_unique_orientations():
    assert len(SHAPES_BY_NAME) == len(SHAPES)
    assert SHAPES_BY_NAME["tet-line-0"].cells == ((0, 0), (1, 0), (2, 0), (3, 0))
    assert rotation_key(SHAPES_BY_NAME["tet-line-0"].cells) == rotation_key(SHAPES_BY_NAME["tet-line-1"].cells)


def test_exact_cover_with_fixed_orientation():
    assert can_tile_region(TOP_HALF, [_piece("tet-line-0"), _piece("tet-line-0")])
    assert can_tile_region(TOP_HALF, [_piece("tet-square-0"), _piece("tet-square-0")])
    assert not can_tile_region(TOP_HALF, [_piece("tet-line-1"), _piece("tet-line-1")])
    assert not can_tile_region(TOP_HALF, [_piece("tet-line-0")])


def test_rotatable_pieces_may_turn():
    assert can_tile_region(TOP_HALF, [_piece("tet-line-1", rotatable=True), _piece("tet-line-1", rotatable=True)])


def test_negative_pieces_subtract_area():
    pieces = [_piece("tet-square-0"), _piece("domino-0"), _piece("domino-0", negative=True)]
    assert can_tile_region(SQUARE, pieces)
    assert can_tile_region(SQUARE, [_piece("domino-0"), _piece("domino-0", negative=True)])
    assert not can_tile_region(SQUARE, [_piece("domino-0", negative=True)])
    assert not can_tile_region(SQUARE, [_piece("mono-0"), _piece("domino-0", negative=True)])


def test_random_tiling_covers_the_region():
    shapes = tile_region_with_shapes(TOP_HALF, mulberry32(5))
    assert shapes is not None
    assert sum(shape.size for shape in shapes) == len(TOP_HALF)


def test_polyomino_check_marks_untileable_regions():
    line = SHAPES_BY_NAME["tet-line-0"]
    targets = (
        PolyominoPiece(Cell(0, 0), line),
        PolyominoPiece(Cell(1, 0), line),
        PolyominoPiece(Cell(0, 3), SHAPES_BY_NAME["tet-square-0"]),
    )
    view = build_view(MIDDLE_SPLIT, {Kind.POLYOMINO: targets})
    assert get_kind_spec(Kind.POLYOMINO).collect_failing(view, targets) == {2}


def test_exact_cover_branches_on_the_tightest_cell():
    monos = [_piece("mono-0")] * 8
    assert can_tile_region(TOP_HALF, monos, budget=len(TOP_HALF))
    mixed = [_piece("domino-1"), _piece("domino-1"), _piece("domino-0"), _piece("mono-0"), _piece("mono-0")]
    assert can_tile_region(TOP_HALF, mixed)
    assert not can_tile_region(TOP_HALF, [_piece("tet-t-0"), _piece("tet-t-0")])
