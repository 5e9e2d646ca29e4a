from __future__ import annotations

import pytest

from board.edges import build_edges, generate_gap_edges, generate_gap_edges_keeping_path
from board.geometry import (
    END,
    START,
    TOTAL_EDGE_COUNT,
    Cell,
    GridPoint,
    edge_key,
    edges_from_path,
    format_edge,
    full_edge_set,
    has_path,
    is_valid_path,
    neighbors,
    parse_edge,
)
from board.paths import build_full_grid_path, find_best_loopy_path, find_random_path, path_signature
from board.regions import build_cell_regions, region_count, region_partition
from board.rng import mulberry32, shuffle
from board.wildness import count_turns, longest_straight_run, meets_wildness_target


def _points(*coords):
    return tuple(GridPoint(x, y) for x, y in coords)


LEFT_TOP = _points((0, 4), (0, 3), (0, 2), (0, 1), (0, 0), (1, 0), (2, 0), (3, 0), (4, 0))
MIDDLE_SPLIT = _points((0, 4), (0, 3), (0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (4, 1), (4, 0))


def test_start_and_end_are_opposite_corners():
    assert START == GridPoint(0, 4)
    assert END == GridPoint(4, 0)
    assert TOTAL_EDGE_COUNT == 40


def test_neighbors_stay_on_the_grid():
    assert sorted(neighbors(GridPoint(0, 0))) == [GridPoint(0, 1), GridPoint(1, 0)]
    assert len(neighbors(GridPoint(2, 2))) == 4


def test_edge_key_is_orientation_independent():
    assert edge_key((1, 2), (1, 1)) == edge_key((1, 1), (1, 2))
    with pytest.raises(ValueError):
        edge_key((0, 0), (1, 1))


def test_edge_text_round_trip():
    edge = edge_key((3, 1), (2, 1))
    assert format_edge(edge) == "2,1-3,1"
    assert parse_edge("3,1-2,1") == edge


def test_has_path_detects_disconnected_end():
    edges = set(full_edge_set())
    edges.discard(edge_key((3, 0), (4, 0)))
    edges.discard(edge_key((4, 0), (4, 1)))
    assert has_path(full_edge_set())
    assert not has_path(edges)


def test_is_valid_path_rules():
    edges = full_edge_set()
    assert is_valid_path(LEFT_TOP, edges)
    assert not is_valid_path(LEFT_TOP[:1], edges)
    assert not is_valid_path(LEFT_TOP[1:], edges)
    assert not is_valid_path(LEFT_TOP[:3] + LEFT_TOP[1:], edges)
    assert not is_valid_path(LEFT_TOP, edges - {edge_key((0, 0), (1, 0))})


def test_border_path_leaves_one_region():
    regions = build_cell_regions(edges_from_path(LEFT_TOP))
    assert region_count(regions) == 1


def test_split_path_partitions_rows():
    regions = build_cell_regions(edges_from_path(MIDDLE_SPLIT))
    assert region_count(regions) == 2
    assert regions[Cell(0, 0)] == 0
    assert regions[Cell(3, 3)] == 1
    assert sorted(len(cells) for cells in region_partition(regions)) == [8, 8]


def test_regions_are_pure():
    used = edges_from_path(MIDDLE_SPLIT)
    assert build_cell_regions(used) == build_cell_regions(set(used))


def test_mulberry32_is_deterministic():
    first = mulberry32(42)
    second = mulberry32(42)
    values = [first() for _ in range(5)]
    assert values == [second() for _ in range(5)]
    assert all(0.0 <= value < 1.0 for value in values)
    assert shuffle(range(10), mulberry32(7)) == shuffle(range(10), mulberry32(7))


def test_gap_edges_keep_the_end_reachable():
    for seed in range(20):
        edges = generate_gap_edges(seed)
        assert has_path(edges)
        assert len(edges) < TOTAL_EDGE_COUNT
    assert generate_gap_edges(5) == generate_gap_edges(5)


def test_gap_edges_fall_back_to_the_first_sample():
    unreachable = GridPoint(9, 9)
    edges = generate_gap_edges(5, end=unreachable)
    assert edges == build_edges(mulberry32(5))
    assert len(edges) < TOTAL_EDGE_COUNT


def test_gap_edges_keeping_path_never_cut_it():
    edges = generate_gap_edges_keeping_path(11, MIDDLE_SPLIT)
    assert edges_from_path(MIDDLE_SPLIT) <= edges


def test_random_path_is_valid_or_none():
    path = find_random_path(full_edge_set(), mulberry32(3))
    assert is_valid_path(path, full_edge_set())
    cut = full_edge_set() - {edge_key((3, 0), (4, 0)), edge_key((4, 0), (4, 1))}
    assert find_random_path(cut, mulberry32(3)) is None


def test_loopy_path_respects_minimum_length():
    edges = generate_gap_edges(17)
    path = find_best_loopy_path(edges, mulberry32(17), 40, 10)
    assert path is not None
    assert is_valid_path(path, edges)
    assert len(path) >= 10


def test_loopy_path_avoids_recent_signatures_when_possible():
    edges = full_edge_set()
    first = find_best_loopy_path(edges, mulberry32(23), 40, 9)
    second = find_best_loopy_path(edges, mulberry32(23), 40, 9, avoid_signatures={path_signature(first)})
    assert path_signature(second) != path_signature(first)


def test_full_grid_path_visits_every_node():
    path = build_full_grid_path(9, full_edge_set())
    assert len(path) == 25
    assert is_valid_path(path, full_edge_set())


def test_signature_and_turns():
    assert path_signature(LEFT_TOP) == "U4R4"
    assert count_turns(LEFT_TOP) == 1
    assert longest_straight_run(LEFT_TOP) == 4
    assert count_turns(MIDDLE_SPLIT) == 2


def test_wildness_gate_scales_with_kind_count():
    assert not meets_wildness_target(LEFT_TOP, 1)
    snake = _points(
        (0, 4), (0, 3), (1, 3), (1, 4), (2, 4), (2, 3), (2, 2), (1, 2), (0, 2),
        (0, 1), (1, 1), (2, 1), (3, 1), (3, 0), (4, 0),
    )
    assert meets_wildness_target(snake, 1)
    assert meets_wildness_target(snake, 2)
