from __future__ import annotations

import pytest

from board.geometry import Cell, GridPoint, edge_key
from symbols.arrows import ArrowTarget
from symbols.cardinal import CardinalTarget
from symbols.chevrons import ChevronTarget
from symbols.color_squares import ColorSquare
from symbols.common import build_view
from symbols.crystals import CrystalTarget
from symbols.diamonds import DiamondTarget
from symbols.dots import DotTarget
from symbols.ghost import GhostTarget
from symbols.hexagon import HexTarget
from symbols.minesweeper import MinesweeperTarget
from symbols.registry import GENERATION_ORDER, Kind, get_kind_spec, parse_kind, registered_kinds
from symbols.sentinel import SentinelTarget
from symbols.spinner import SpinnerTarget
from symbols.stars import StarTarget
from symbols.tally_marks import TallyMarkTarget
from symbols.triangles import TriangleTarget
from symbols.water_droplet import WaterDropletTarget


def _points(*coords):
    return tuple(GridPoint(x, y) for x, y in coords)


# Up the left border, then along the top: one region.
LEFT_TOP = _points((0, 4), (0, 3), (0, 2), (0, 1), (0, 0), (1, 0), (2, 0), (3, 0), (4, 0))
# Straight across the middle: rows 0-1 and rows 2-3 become two regions.
MIDDLE_SPLIT = _points((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))
# Wraps cell (1, 1) on all four sides' rays.
HOOK = _points(
    (0, 4), (1, 4), (2, 4), (2, 3), (2, 2), (2, 1), (1, 1), (1, 2), (0, 2),
    (0, 1), (0, 0), (1, 0), (2, 0), (3, 0), (4, 0),
)
# Cuts the corner cell (0, 0) off from its right-hand neighbour.
NOTCH = _points((0, 4), (0, 3), (0, 2), (0, 1), (0, 0), (1, 0), (1, 1), (2, 1), (2, 0), (3, 0), (4, 0))


def _failing(kind, path, targets, extra=None):
    symbols = {kind: tuple(targets)}
    symbols.update(extra or {})
    return get_kind_spec(kind).collect_failing(build_view(path, symbols), tuple(targets))


def test_every_kind_is_registered_and_ordered():
    assert set(registered_kinds()) == set(Kind)
    assert set(GENERATION_ORDER) == set(Kind)
    assert GENERATION_ORDER[0] is Kind.GAP
    assert GENERATION_ORDER[-1] is Kind.NEGATOR


def test_parse_kind_rejects_unknown_names():
    assert parse_kind(" Stars ") is Kind.STARS
    with pytest.raises(ValueError):
        parse_kind("black-holes")


def test_color_squares_fail_when_a_region_mixes_colors():
    split = [ColorSquare(Cell(0, 0), "#ffffff"), ColorSquare(Cell(0, 3), "#111111")]
    assert _failing(Kind.COLOR_SQUARES, MIDDLE_SPLIT, split) == frozenset()
    mixed = [ColorSquare(Cell(0, 0), "#ffffff"), ColorSquare(Cell(1, 1), "#111111")]
    assert _failing(Kind.COLOR_SQUARES, MIDDLE_SPLIT, mixed) == {0, 1}


def test_stars_pair_with_stars_or_other_symbols():
    pair = [StarTarget(Cell(0, 0), "#e44b4b"), StarTarget(Cell(1, 1), "#e44b4b")]
    assert _failing(Kind.STARS, MIDDLE_SPLIT, pair) == frozenset()

    square = {Kind.COLOR_SQUARES: (ColorSquare(Cell(2, 0), "#e44b4b"),)}
    assert _failing(Kind.STARS, MIDDLE_SPLIT, pair, square) == {0, 1}
    assert _failing(Kind.STARS, MIDDLE_SPLIT, pair[:1], square) == frozenset()
    assert _failing(Kind.STARS, MIDDLE_SPLIT, pair[:1]) == {0}


def test_triangles_count_touched_sides():
    assert _failing(Kind.TRIANGLES, MIDDLE_SPLIT, [TriangleTarget(Cell(0, 2), 2)]) == frozenset()
    assert _failing(Kind.TRIANGLES, MIDDLE_SPLIT, [TriangleTarget(Cell(0, 1), 1)]) == frozenset()
    assert _failing(Kind.TRIANGLES, MIDDLE_SPLIT, [TriangleTarget(Cell(0, 2), 1)]) == {0}


def test_dots_count_touched_corners():
    assert _failing(Kind.DOTS, MIDDLE_SPLIT, [DotTarget(Cell(0, 2), 3)]) == frozenset()
    assert _failing(Kind.DOTS, MIDDLE_SPLIT, [DotTarget(Cell(1, 0), 0)]) == frozenset()
    assert _failing(Kind.DOTS, MIDDLE_SPLIT, [DotTarget(Cell(0, 2), 2)]) == {0}


def test_diamonds_count_bends_on_corners():
    targets = [DiamondTarget(Cell(0, 2), 1), DiamondTarget(Cell(3, 1), 1), DiamondTarget(Cell(1, 1), 1)]
    assert _failing(Kind.DIAMONDS, MIDDLE_SPLIT, targets) == {2}


def test_tally_marks_count_the_region_outline():
    assert _failing(Kind.TALLY_MARKS, MIDDLE_SPLIT, [TallyMarkTarget(Cell(0, 0), 6)]) == frozenset()
    assert _failing(Kind.TALLY_MARKS, MIDDLE_SPLIT, [TallyMarkTarget(Cell(0, 0), 5)]) == {0}
    twins = [TallyMarkTarget(Cell(0, 0), 6), TallyMarkTarget(Cell(1, 0), 6)]
    assert _failing(Kind.TALLY_MARKS, MIDDLE_SPLIT, twins) == {0, 1}


def test_arrows_count_crossings_along_the_ray():
    targets = [ArrowTarget(Cell(0, 1), "right", 1), ArrowTarget(Cell(0, 1), "down", 1), ArrowTarget(Cell(0, 1), "up", 1)]
    assert _failing(Kind.ARROWS, MIDDLE_SPLIT, targets) == {2}


def test_chevrons_count_same_region_cells():
    targets = [ChevronTarget(Cell(0, 0), "right", 3), ChevronTarget(Cell(0, 0), "down", 1), ChevronTarget(Cell(0, 0), "down", 3)]
    assert _failing(Kind.CHEVRONS, MIDDLE_SPLIT, targets) == {2}


def test_cardinal_needs_all_four_rays_blocked():
    assert _failing(Kind.CARDINAL, HOOK, [CardinalTarget(Cell(1, 1))]) == frozenset()
    assert _failing(Kind.CARDINAL, MIDDLE_SPLIT, [CardinalTarget(Cell(1, 1))]) == {0}


def test_minesweeper_counts_neighbours_in_other_regions():
    assert _failing(Kind.MINESWEEPER, MIDDLE_SPLIT, [MinesweeperTarget(Cell(0, 1), 2)]) == frozenset()
    assert _failing(Kind.MINESWEEPER, MIDDLE_SPLIT, [MinesweeperTarget(Cell(1, 1), 2)]) == {0}
    assert _failing(Kind.MINESWEEPER, LEFT_TOP, [MinesweeperTarget(Cell(1, 1), 0)]) == frozenset()


def test_spinner_follows_the_rotation_sense():
    assert _failing(Kind.SPINNER, LEFT_TOP, [SpinnerTarget(Cell(0, 0), "clockwise")]) == frozenset()
    assert _failing(Kind.SPINNER, LEFT_TOP, [SpinnerTarget(Cell(0, 0), "counterclockwise")]) == {0}
    assert _failing(Kind.SPINNER, LEFT_TOP, [SpinnerTarget(Cell(2, 2), "clockwise")]) == {0}


def test_water_droplet_leaks_through_open_board_edges():
    assert _failing(Kind.WATER_DROPLET, NOTCH, [WaterDropletTarget(Cell(0, 0), "up")]) == frozenset()
    assert _failing(Kind.WATER_DROPLET, NOTCH, [WaterDropletTarget(Cell(0, 0), "down")]) == {0}


def test_ghosts_need_one_region_each():
    assert _failing(Kind.GHOST, MIDDLE_SPLIT, [GhostTarget(Cell(0, 0)), GhostTarget(Cell(0, 3))]) == frozenset()
    assert _failing(Kind.GHOST, MIDDLE_SPLIT, [GhostTarget(Cell(0, 0)), GhostTarget(Cell(1, 0))]) == {0, 1}
    assert _failing(Kind.GHOST, MIDDLE_SPLIT, [GhostTarget(Cell(0, 0))]) == {0}


def test_crystals_need_congruent_regions():
    assert _failing(Kind.CRYSTALS, MIDDLE_SPLIT, [CrystalTarget(Cell(0, 0)), CrystalTarget(Cell(0, 3))]) == frozenset()
    assert _failing(Kind.CRYSTALS, LEFT_TOP, [CrystalTarget(Cell(2, 2))]) == frozenset()
    assert _failing(Kind.CRYSTALS, MIDDLE_SPLIT, [CrystalTarget(Cell(2, 2))]) == {0}


def test_hexagons_must_be_covered():
    targets = [HexTarget(node=GridPoint(0, 0)), HexTarget(edge=edge_key((1, 0), (2, 0))), HexTarget(node=GridPoint(2, 2))]
    assert _failing(Kind.HEXAGON, LEFT_TOP, targets) == {2}


def test_sentinels_forbid_symbols_on_the_watched_side():
    star = {Kind.STARS: (StarTarget(Cell(2, 0), "#e44b4b"),)}
    assert _failing(Kind.SENTINEL, LEFT_TOP, [SentinelTarget(Cell(0, 0), "left")], star) == frozenset()
    assert _failing(Kind.SENTINEL, LEFT_TOP, [SentinelTarget(Cell(0, 0), "right")], star) == {0}
    # A symbol in another region is out of sight.
    far = {Kind.STARS: (StarTarget(Cell(2, 3), "#e44b4b"),)}
    assert _failing(Kind.SENTINEL, MIDDLE_SPLIT, [SentinelTarget(Cell(0, 0), "down")], far) == frozenset()
