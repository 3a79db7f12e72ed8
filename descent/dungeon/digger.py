"""Composable terrain operators over a marker grid.

Every operator mutates the grid in place and returns the digger so recipes can
chain calls. All randomness flows through ``self.rng`` which is seeded per
digger, so a recipe is a deterministic function of (grid, entrance, seed).
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .markers import Marker, MarkerGrid, Point, Symmetry

Direction = Tuple[int, int]

NORTH: Direction = (0, -1)
NORTH_EAST: Direction = (1, -1)
EAST: Direction = (1, 0)
SOUTH_EAST: Direction = (1, 1)
SOUTH: Direction = (0, 1)
SOUTH_WEST: Direction = (-1, 1)
WEST: Direction = (-1, 0)
NORTH_WEST: Direction = (-1, -1)

# Clockwise ring; rotations step through it.
DIRECTIONS: Tuple[Direction, ...] = (NORTH, NORTH_EAST, EAST, SOUTH_EAST, SOUTH, SOUTH_WEST, WEST, NORTH_WEST)
CARDINAL_DIRECTIONS: Tuple[Direction, ...] = (NORTH, EAST, SOUTH, WEST)
INTERCARDINAL_DIRECTIONS: Tuple[Direction, ...] = (NORTH_EAST, SOUTH_EAST, SOUTH_WEST, NORTH_WEST)


def rotate_right_45(direction: Direction) -> Direction:
    return DIRECTIONS[(DIRECTIONS.index(direction) + 1) % 8]


def rotate_left_45(direction: Direction) -> Direction:
    return DIRECTIONS[(DIRECTIONS.index(direction) - 1) % 8]


def moore_neighbours(point: Point) -> List[Point]:
    x, y = point
    return [(x + dx, y + dy) for dx, dy in DIRECTIONS]


def von_neumann_neighbours(point: Point) -> List[Point]:
    x, y = point
    return [(x + dx, y + dy) for dx, dy in CARDINAL_DIRECTIONS]


class Spades:
    """3x3 stamp patterns. Bit ``i`` carves offset (i % 3 - 1, i // 3 - 1)."""

    ONE_BY_ONE = 0b000_010_000
    TWO_BY_TWO = 0b110_110_000
    THREE_BY_THREE = 0b111_111_111
    STAR = 0b101_010_101
    CROSS = 0b010_111_010
    CIRCLE = 0b010_101_010


def pattern_offsets(pattern: int) -> List[Tuple[int, int]]:
    return [(i % 3 - 1, i // 3 - 1) for i in range(9) if pattern & (1 << i)]


@dataclass(frozen=True)
class CellularAutomataRules:
    birth: FrozenSet[int]
    survival: FrozenSet[int]

    @classmethod
    def of(cls, birth: Iterable[int], survival: Iterable[int]) -> "CellularAutomataRules":
        return cls(frozenset(birth), frozenset(survival))


CellularAutomataRules.CAVES = CellularAutomataRules.of((5, 6, 7, 8), (4, 5, 6, 7, 8))
CellularAutomataRules.SMOOTHING = CellularAutomataRules.of((5, 6, 7, 8), (3, 4, 5, 6, 7, 8))
CellularAutomataRules.CHAOTIC_CAVERNS = CellularAutomataRules.of((6, 7, 8), (3, 4, 5, 6))
CellularAutomataRules.ALIEN = CellularAutomataRules.of((0, 1, 2, 3, 4, 6, 7), (2, 8))


@dataclass
class Tunneler:
    pos: Point
    direction: Direction
    spade: int


class Digger(MarkerGrid):
    def __init__(self, width: int, height: int, seed: int, out_of_bounds: Marker = Marker.WALL):
        super().__init__(width, height, out_of_bounds)
        self.seed = seed
        self.rng = random.Random(seed)

    def _chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def random_point(self) -> Point:
        return self.rng.randrange(self.width), self.rng.randrange(self.height)

    def noise(self, percent: float = 0.5) -> "Digger":
        for x in range(self.width):
            for y in range(self.height):
                self.cells[x][y] = Marker.WALL if self._chance(percent) else Marker.FLOOR
        return self

    def radial_noise(self, percent: float = 0.5) -> "Digger":
        """Noise biased by distance from the centre.

        percent < 0.5 pushes walls to the perimeter, percent > 0.5 fills the
        centre as well.
        """
        cx, cy = self.width // 2, self.height // 2
        max_dist = max(cx, cy) or 1
        additive = percent * 2 - 1
        for x in range(self.width):
            for y in range(self.height):
                dist = math.hypot(x - cx, y - cy)
                bias = dist / max_dist + additive
                self.cells[x][y] = Marker.WALL if self._chance(bias) else Marker.FLOOR
        return self

    def add_bit_pattern(
        self,
        pattern: int,
        marker: Marker = Marker.WALL,
        x: Optional[int] = None,
        y: Optional[int] = None,
    ) -> "Digger":
        x = self.width // 2 if x is None else x
        y = self.height // 2 if y is None else y
        for dx, dy in pattern_offsets(pattern):
            self.set(x + dx, y + dy, marker)
        return self

    def add_perimeter_wall(self) -> "Digger":
        for x in range(self.width):
            self.set(x, 0, Marker.WALL)
            self.set(x, self.height - 1, Marker.WALL)
        for y in range(self.height):
            self.set(0, y, Marker.WALL)
            self.set(self.width - 1, y, Marker.WALL)
        return self

    def count_adjacent_walls(self, point: Point) -> int:
        return sum(1 for nx, ny in moore_neighbours(point) if self.get(nx, ny) == Marker.WALL)

    def create_maze(self) -> "Digger":
        """Randomized depth-first carving.

        A cell is only carved while at least 5 of its 8 neighbours are walls,
        which keeps corridors from merging into open areas.
        """
        self.fill(Marker.WALL)
        stack = [self.random_point()]
        seen: Set[Point] = set(stack)
        while stack:
            pos = stack.pop()
            if self.count_adjacent_walls(pos) < 5:
                continue
            self.set(pos[0], pos[1], Marker.FLOOR)
            neighbours = von_neumann_neighbours(pos)
            self.rng.shuffle(neighbours)
            for neighbour in neighbours:
                if not self.in_bounds(*neighbour) or neighbour in seen:
                    continue
                if self.count_adjacent_walls(neighbour) >= 5:
                    stack.append(neighbour)
                    seen.add(neighbour)
        return self

    def tunnels(
        self,
        start: Optional[Point] = None,
        iterations: int = 10,
        spades: Sequence[int] = (Spades.ONE_BY_ONE,),
        spawn_chance: float = 0.0,
        death_chance: float = 0.0,
        turn_chance: float = 0.1,
        mutation_chance: float = 0.0,
        directions: Sequence[Direction] = CARDINAL_DIRECTIONS,
        turns: Optional[Sequence[Callable[[Direction], Direction]]] = None,
        symmetry: Symmetry = Symmetry.NONE,
        max_tunnelers: int = 10,
    ) -> "Digger":
        """Run a population of random-walk diggers.

        Each iteration every tunneler may spawn a clone (mutated with
        ``mutation_chance``), may die, stamps its spade, steps along its heading
        (staying put at the grid edge), may turn and may swap its spade.
        Without ``turns`` a turn picks a fresh heading from ``directions``.
        Clones start acting on the following iteration.
        """
        start = self.random_point() if start is None else start
        tunnelers = [Tunneler(pos=start, direction=self.rng.choice(directions), spade=self.rng.choice(spades))]

        for _ in range(iterations):
            for tunneler in list(tunnelers):
                if len(tunnelers) < max_tunnelers and self._chance(spawn_chance):
                    mutate = self._chance(mutation_chance)
                    tunnelers.append(
                        Tunneler(
                            pos=tunneler.pos,
                            direction=self.rng.choice(directions) if mutate else tunneler.direction,
                            spade=self.rng.choice(spades) if mutate else tunneler.spade,
                        )
                    )

                if self._chance(death_chance):
                    tunnelers.remove(tunneler)
                    continue

                x, y = tunneler.pos
                for dx, dy in pattern_offsets(tunneler.spade):
                    self.dig(x + dx, y + dy, symmetry)

                nx, ny = x + tunneler.direction[0], y + tunneler.direction[1]
                if self.in_bounds(nx, ny):
                    tunneler.pos = (nx, ny)

                if self._chance(turn_chance):
                    if turns:
                        tunneler.direction = self.rng.choice(turns)(tunneler.direction)
                    else:
                        tunneler.direction = self.rng.choice(directions)

                if self._chance(mutation_chance):
                    tunneler.spade = self.rng.choice(spades)
        return self

    def cellular_automata(
        self,
        rules: CellularAutomataRules,
        iterations: int = 10,
        neighbourhood: Callable[[Point], List[Point]] = moore_neighbours,
    ) -> "Digger":
        """Synchronous birth/survival passes computed from a snapshot of the previous pass."""
        for _ in range(iterations):
            current = self.cells
            following = [[Marker.FLOOR] * self.height for _ in range(self.width)]
            for x in range(self.width):
                for y in range(self.height):
                    marker = current[x][y]
                    score = 0
                    for nx, ny in neighbourhood((x, y)):
                        if 0 <= nx < self.width and 0 <= ny < self.height:
                            if current[nx][ny] == Marker.WALL:
                                score += 1
                        elif self.out_of_bounds == Marker.WALL:
                            score += 1
                    if marker == Marker.WALL and score not in rules.survival:
                        marker = Marker.FLOOR
                    elif marker == Marker.FLOOR and score in rules.birth:
                        marker = Marker.WALL
                    following[x][y] = marker
            self.cells = following
        return self

    def accessible_points(self, start: Point) -> Set[Point]:
        """Floor cells reachable from ``start`` through 4-connected floor."""
        if self.get(*start) != Marker.FLOOR:
            return set()
        visited = {start}
        stack = [start]
        while stack:
            point = stack.pop()
            for nx, ny in von_neumann_neighbours(point):
                if (nx, ny) in visited or not self.in_bounds(nx, ny):
                    continue
                if self.cells[nx][ny] == Marker.WALL:
                    continue
                visited.add((nx, ny))
                stack.append((nx, ny))
        return visited


__all__ = [
    "Digger",
    "Direction",
    "Spades",
    "CellularAutomataRules",
    "Tunneler",
    "DIRECTIONS",
    "CARDINAL_DIRECTIONS",
    "INTERCARDINAL_DIRECTIONS",
    "NORTH",
    "EAST",
    "SOUTH",
    "WEST",
    "rotate_left_45",
    "rotate_right_45",
    "moore_neighbours",
    "von_neumann_neighbours",
    "pattern_offsets",
]
