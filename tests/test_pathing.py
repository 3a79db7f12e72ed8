import math

from descent.dungeon.markers import Marker
from descent.dungeon.pathing import DistanceMap, walkable_cost
from tests.level_test_utils import grid_from_rows


def _map(grid, source):
    return DistanceMap(grid.width, grid.height, source, walkable_cost(lambda p: grid.get(*p) == Marker.FLOOR))


def test_source_distance_is_zero():
    grid = grid_from_rows("...", "...")
    dmap = _map(grid, (1, 1))
    assert dmap.distance_to((1, 1)) == 0
    assert dmap.path_to((1, 1)) == [(1, 1)]


def test_distances_follow_walls():
    grid = grid_from_rows(
        ".....",
        "####.",
        ".....",
    )
    dmap = _map(grid, (0, 0))
    assert dmap.distance_to((4, 0)) == 4
    assert dmap.distance_to((0, 2)) == 10
    path = dmap.path_to((0, 2))
    assert path[0] == (0, 0) and path[-1] == (0, 2)
    assert len(path) == 11


def test_distances_are_non_decreasing_along_paths():
    grid = grid_from_rows(
        "..#....",
        "..#.##.",
        ".......",
        "##.#...",
    )
    dmap = _map(grid, (0, 0))
    for target in dmap.reachable_points():
        path = dmap.path_to(target)
        dists = [dmap.distance_to(p) for p in path]
        assert dists == sorted(dists)
        # every step is a 4-neighbour move
        for a, b in zip(path, path[1:]):
            assert abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def test_unreachable_cells():
    grid = grid_from_rows(
        "..#..",
        "..#..",
    )
    dmap = _map(grid, (0, 0))
    assert dmap.distance_to((4, 1)) == math.inf
    assert not dmap.is_reachable((4, 1))
    assert dmap.path_to((4, 1)) == []
    assert dmap.previous((4, 1)) is None
    assert dmap.distance_to((-1, 0)) == math.inf


def test_weighted_costs_prefer_cheap_route():
    grid = grid_from_rows(
        "...",
        "...",
        "...",
    )
    # the middle column is expensive; a detour around it is cheaper
    def cost(_current, nxt):
        return 10 if nxt[0] == 1 and nxt[1] < 2 else 1

    dmap = DistanceMap(grid.width, grid.height, (0, 0), cost)
    assert dmap.distance_to((2, 0)) == 6
    assert (1, 2) in dmap.path_to((2, 0))


def test_longest_finite_distance():
    grid = grid_from_rows("....#.")
    dmap = _map(grid, (0, 0))
    assert dmap.longest_finite_distance() == 3
    assert dmap.reachable_points() == {(0, 0), (1, 0), (2, 0), (3, 0)}


def test_source_out_of_bounds_reaches_nothing():
    grid = grid_from_rows("...")
    dmap = _map(grid, (5, 5))
    assert dmap.reachable_points() == set()
    assert dmap.longest_finite_distance() == 0
