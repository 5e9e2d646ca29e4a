"""Shape metrics used to prefer winding, region-rich solution paths."""

from __future__ import annotations

from typing import Iterable, List, NamedTuple, Sequence, Tuple

from project_config import get_section

from .geometry import MAX_INDEX, GridPoint, edges_from_path
from .regions import build_cell_regions, region_count
from .rng import Rng

_WILDNESS_CFG = get_section("wildness", {})
BASE_WEIGHTS: Tuple[float, ...] = tuple(float(w) for w in _WILDNESS_CFG.get("weights", [5.0, 2.4, 0.9, 0.35, 1.6]))
WEIGHT_JITTER = float(_WILDNESS_CFG.get("jitter", 0.35))


class WeightProfile(NamedTuple):
    regions: float
    turns: float
    interior: float
    length: float
    straight_run: float


class PathMetrics(NamedTuple):
    regions: int
    turns: int
    interior: int
    length: int
    longest_run: int


def _direction(a: Sequence[int], b: Sequence[int]) -> Tuple[int, int]:
    return (b[0] - a[0], b[1] - a[1])


def count_turns(path: Sequence[GridPoint]) -> int:
    turns = 0
    for i in range(1, len(path) - 1):
        if _direction(path[i - 1], path[i]) != _direction(path[i], path[i + 1]):
            turns += 1
    return turns


def turn_points(path: Sequence[GridPoint]) -> List[GridPoint]:
    """Interior points where the path changes direction."""

    return [
        path[i]
        for i in range(1, len(path) - 1)
        if _direction(path[i - 1], path[i]) != _direction(path[i], path[i + 1])
    ]


def longest_straight_run(path: Sequence[GridPoint]) -> int:
    """Longest number of consecutive edges sharing a direction."""

    if len(path) < 2:
        return 0
    best = run = 1
    for i in range(2, len(path)):
        if _direction(path[i - 2], path[i - 1]) == _direction(path[i - 1], path[i]):
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def count_interior_nodes(path: Iterable[GridPoint]) -> int:
    return sum(1 for p in path if 0 < p[0] < MAX_INDEX and 0 < p[1] < MAX_INDEX)


def path_metrics(path: Sequence[GridPoint]) -> PathMetrics:
    return PathMetrics(
        regions=region_count(build_cell_regions(edges_from_path(path))),
        turns=count_turns(path),
        interior=count_interior_nodes(path),
        length=len(path),
        longest_run=longest_straight_run(path),
    )


def random_weight_profile(rng: Rng) -> WeightProfile:
    """Jitter the configured base weights by up to ``WEIGHT_JITTER``."""

    jittered = [w * (1 - WEIGHT_JITTER + rng() * 2 * WEIGHT_JITTER) for w in BASE_WEIGHTS]
    return WeightProfile(*jittered)


def wildness_score(metrics: PathMetrics, weights: WeightProfile) -> float:
    return (
        metrics.regions * weights.regions
        + metrics.turns * weights.turns
        + metrics.interior * weights.interior
        + metrics.length * weights.length
        - metrics.longest_run * weights.straight_run
    )


def meets_wildness_target(path: Sequence[GridPoint], active_kind_count: int) -> bool:
    """Gate accepted solution paths by how many non-gap kinds are active."""

    turns = count_turns(path)
    run = longest_straight_run(path)
    length = len(path)
    if active_kind_count >= 4:
        return (turns >= 7 and run <= 8 and length >= 12) or (turns >= 6 and run <= 7 and length >= 13)
    if active_kind_count == 3:
        return turns >= 7 and run <= 7 and length >= 12
    if active_kind_count == 2:
        return turns >= 5 and run <= 8 and length >= 10
    return turns >= 3 and length >= 8


__all__ = [
    "PathMetrics",
    "WeightProfile",
    "count_interior_nodes",
    "count_turns",
    "longest_straight_run",
    "meets_wildness_target",
    "path_metrics",
    "random_weight_profile",
    "turn_points",
    "wildness_score",
]
