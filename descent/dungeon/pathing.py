"""Single-source weighted shortest paths over 4-directional grid adjacency.

Costs come from a ``(current, next) -> float`` callback; ``math.inf`` marks an
impassable step. The map is computed once in the constructor and is read-only
afterwards; recompute it if the underlying grid changes.
"""
from __future__ import annotations

import heapq
import math
from typing import Callable, List, Optional, Set, Tuple

Point = Tuple[int, int]
CostFn = Callable[[Point, Point], float]

_STEPS = ((0, -1), (1, 0), (0, 1), (-1, 0))


class DistanceMap:
    def __init__(self, width: int, height: int, source: Point, cost: CostFn):
        self.width = width
        self.height = height
        self.source = source
        self.distances: List[List[float]] = [[math.inf] * height for _ in range(width)]
        self.came_from: List[List[Optional[Point]]] = [[None] * height for _ in range(width)]
        if self._in_bounds(source):
            self._compute(cost)

    def _in_bounds(self, point: Point) -> bool:
        return 0 <= point[0] < self.width and 0 <= point[1] < self.height

    def _compute(self, cost: CostFn) -> None:
        sx, sy = self.source
        self.distances[sx][sy] = 0
        frontier: List[Tuple[float, int, Point]] = [(0, 0, self.source)]
        counter = 0  # tie-breaker so heap order never compares points
        while frontier:
            dist, _, current = heapq.heappop(frontier)
            cx, cy = current
            if dist > self.distances[cx][cy]:
                continue
            for dx, dy in _STEPS:
                nxt = (cx + dx, cy + dy)
                if not self._in_bounds(nxt):
                    continue
                step = cost(current, nxt)
                if step == math.inf:
                    continue
                new_dist = dist + step
                nx, ny = nxt
                if new_dist < self.distances[nx][ny]:
                    self.distances[nx][ny] = new_dist
                    self.came_from[nx][ny] = current
                    counter += 1
                    heapq.heappush(frontier, (new_dist, counter, nxt))

    def distance_to(self, point: Point) -> float:
        if not self._in_bounds(point):
            return math.inf
        return self.distances[point[0]][point[1]]

    def is_reachable(self, point: Point) -> bool:
        return self.distance_to(point) != math.inf

    def previous(self, point: Point) -> Optional[Point]:
        if not self._in_bounds(point):
            return None
        return self.came_from[point[0]][point[1]]

    def path_to(self, target: Point) -> List[Point]:
        """Points from the source to ``target`` inclusive, or [] if unreachable."""
        if not self.is_reachable(target):
            return []
        path = [target]
        point = target
        while point != self.source:
            point = self.came_from[point[0]][point[1]]
            path.append(point)
        path.reverse()
        return path

    def longest_finite_distance(self) -> float:
        return max((d for column in self.distances for d in column if d != math.inf), default=0)

    def reachable_points(self) -> Set[Point]:
        return {
            (x, y)
            for x in range(self.width)
            for y in range(self.height)
            if self.distances[x][y] != math.inf
        }


def walkable_cost(is_walkable: Callable[[Point], bool]) -> CostFn:
    """Unit cost onto walkable cells, impassable otherwise."""
    def _cost(_current: Point, nxt: Point) -> float:
        return 1 if is_walkable(nxt) else math.inf
    return _cost


__all__ = ["DistanceMap", "walkable_cost", "Point", "CostFn"]
