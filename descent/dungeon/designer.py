"""Level designer: candidate generation, scoring and level assembly.

``design_level`` runs ``designers_per_level`` independent ``LevelDesigner``
candidates, keeps the one with the longest critical path and turns it into a
``Level``. Each candidate runs its whole pipeline in the constructor:

    dig terrain -> entrance map -> exit -> exit map + critical path
    -> tiles, regions, cell metrics -> rooms -> rewards -> monsters

Digging failures degrade to an all-floor grid and room failures are skipped.
A missing or unreachable exit is an invariant violation that aborts the
candidate; only when every candidate aborts does ``design_level`` fail.
"""
from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..logging_utils import get_logger
from . import entities
from . import room_templates  # noqa: F401  (registers the built-in rooms)
from .config import DesignerConfig
from .digger import CARDINAL_DIRECTIONS, Digger, moore_neighbours, von_neumann_neighbours
from .errors import ConstraintError, GenerationInvariantError, LevelGenerationError
from .level import GameSession, Level, LevelType
from .markers import Marker
from .metrics import init_metrics
from .pathing import DistanceMap
from .rooms import RoomBuilderContext, add_rooms
from .tiles import DOWNSTAIRS, Tile

Point = Tuple[int, int]

log = get_logger("designer")

DEFAULT_SEED = 0x123


class SeedSource:
    """Dedicated random stream for level generation.

    Kept apart from any gameplay RNG so designing a level never perturbs, and
    is never perturbed by, anything else that draws random numbers.
    """

    def __init__(self, seed: int = DEFAULT_SEED):
        self.reseed(seed)

    def reseed(self, seed: int) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def next_seed(self) -> int:
        return self._rng.getrandbits(32)


DEFAULT_SEEDS = SeedSource()


@dataclass(frozen=True)
class CellMetrics:
    distance_from_entrance: float
    distance_from_exit: float
    # Approximate: walks each distance map's back-pointer chain until it meets
    # the critical path, so it can exceed the true graph distance.
    distance_from_critical_path: float
    region_size: int
    adjacent_walls: int
    cells_in_line_of_sight: int


@dataclass(frozen=True)
class CellPotentials:
    reward: float
    monster_spawn: float
    uncommon_monster: float
    rare_monster: float


class LevelDesigner:
    def __init__(
        self,
        level_type: LevelType,
        entrance: Point,
        seed: int,
        config: Optional[DesignerConfig] = None,
        seeds: Optional[SeedSource] = None,
    ):
        self.config = config or DesignerConfig()
        self.width = self.config.width
        self.height = self.config.height
        if not (0 <= entrance[0] < self.width and 0 <= entrance[1] < self.height):
            raise ValueError(f"entrance {entrance} outside {self.width}x{self.height} level")
        self.level_type = level_type
        self.entrance: Point = tuple(entrance)
        self.exit: Point = (-1, -1)
        self.seed = seed
        self.seeds = seeds if seeds is not None else DEFAULT_SEEDS
        self.rng = random.Random(seed)
        self.log = log.bind(level_type=level_type.name, seed=seed)
        self.metrics: Dict[str, object] = init_metrics() if self.config.enable_metrics else {}

        self.level = Level(level_type, self.width, self.height)
        self.markers: Optional[Digger] = None
        self.finalised: Set[Point] = set()
        self.critical_path: List[Point] = []
        self.critical_points: Set[Point] = set()
        self.region_index: List[List[Optional[int]]] = []
        self.region_groups: List[List[Point]] = []
        self.cell_metrics: List[List[CellMetrics]] = []
        self.rooms: List[RoomBuilderContext] = []
        self.rewards: List[entities.Chest] = []
        self.monsters: List[entities.Entity] = []
        self._run_pipeline()

    # Pipeline ----------------------------------------------------------
    def _run_pipeline(self) -> None:
        if self.config.enable_metrics:
            start = time.perf_counter()
            phase_times: Dict[str, int] = {}

            def _phase(label, fn, *a, **k):
                ps = time.perf_counter()
                r = fn(*a, **k)
                phase_times[label] = int((time.perf_counter() - ps) * 1000)
                return r
        else:
            def _phase(label, fn, *a, **k):
                return fn(*a, **k)

        _phase("dig", self._dig_tiles)
        self.entrance_map = _phase("entrance_map", self._distance_map, self.entrance)
        self.exit = _phase("find_exit", self._find_exit)
        self.exit_map = _phase("exit_map", self._distance_map, self.exit)
        _phase("critical_path", self._mark_critical_path)
        _phase("regions", self._compute_regions)
        _phase("cell_metrics", self._compute_cell_metrics)
        _phase("rooms", self._add_rooms)
        _phase("verify_exit", self._verify_exit)
        _phase("rewards", self._add_rewards)
        _phase("monsters", self._add_monsters)

        if self.config.enable_metrics:
            self.metrics["critical_path_length"] = len(self.critical_path)
            self.metrics["runtime_ms"] = int((time.perf_counter() - start) * 1000)
            self.metrics["phase_ms"] = phase_times

    def _count(self, key: str, amount: int = 1) -> None:
        if self.config.enable_metrics:
            self.metrics[key] = self.metrics.get(key, 0) + amount

    # Terrain -----------------------------------------------------------
    def _check_digger(self, digger: Digger) -> None:
        if digger.get(*self.entrance) != Marker.FLOOR:
            raise ConstraintError("entrance is not open")
        accessible = digger.accessible_points(self.entrance)
        if len(accessible) < self.config.min_accessible_points:
            raise ConstraintError(f"only {len(accessible)} points accessible from the entrance")

    def _dig_tiles(self) -> None:
        ex, ey = self.entrance
        for attempt in range(self.config.max_dig_attempts):
            self._count("dig_attempts")
            digger = Digger(self.width, self.height, self.rng.getrandbits(32))
            self.level_type.dig(digger, self.entrance)
            digger.circle(ex, ey, self.config.entrance_clearance)
            try:
                self._check_digger(digger)
            except ConstraintError as exc:
                self._count("dig_rejections")
                self.log.debug(event="dig_rejected", attempt=attempt, reason=exc)
                continue
            self._markers_to_tiles(digger)
            return

        self.log.warn(event="dig_fallback", attempts=self.config.max_dig_attempts)
        if self.config.enable_metrics:
            self.metrics["dig_fallback"] = True
        digger = Digger(self.width, self.height, self.rng.getrandbits(32))
        digger.fill(Marker.FLOOR)
        self._markers_to_tiles(digger)

    def _markers_to_tiles(self, digger: Digger) -> None:
        characteristics = self.level_type.characteristics
        floor = characteristics.default_floor_tile
        wall = characteristics.default_wall_tile
        self.markers = digger
        grid = digger.build(lambda marker: Tile(floor if marker == Marker.FLOOR else wall))
        for x, column in enumerate(grid):
            for y, tile in enumerate(column):
                self.level.set_tile(x, y, tile)

    # Pathing -----------------------------------------------------------
    def _distance_map(self, start: Point) -> DistanceMap:
        return self.level.distance_map(start, weighted=True)

    def is_walkable(self, point: Point) -> bool:
        return self.level.is_walkable(point)

    def _walkable_neighbour_count(self, point: Point) -> int:
        return sum(1 for n in moore_neighbours(point) if self.is_walkable(n))

    def _find_exit(self) -> Point:
        longest = self.entrance_map.longest_finite_distance()
        candidates: List[Point] = []
        if longest > 0:
            for point in self.level.points():
                if point == self.entrance:
                    continue
                distance = self.entrance_map.distance_to(point)
                if distance == math.inf:
                    continue
                if distance / longest > self.config.exit_distance_threshold:
                    candidates.append(point)
        if not candidates:
            raise GenerationInvariantError("no possible exit was found")
        dead_ends = [
            p for p in candidates if self._walkable_neighbour_count(p) <= self.config.max_dead_end_neighbours
        ]
        return self.rng.choice(dead_ends or candidates)

    def _mark_critical_path(self) -> None:
        self.critical_path = self.entrance_map.path_to(self.exit)
        if not self.critical_path:
            raise GenerationInvariantError(f"exit {self.exit} is not reachable from {self.entrance}")
        self.critical_points = set(self.critical_path)
        self.finalised.add(self.entrance)
        self.finalised.add(self.exit)
        self.finalised.update(self.critical_path)

    # Metrics -----------------------------------------------------------
    def _compute_regions(self) -> None:
        self.region_index = [[None] * self.height for _ in range(self.width)]
        self.region_groups = []
        for point in self.level.points():
            if self.region_index[point[0]][point[1]] is not None or not self.is_walkable(point):
                continue
            region_id = len(self.region_groups)
            group = [point]
            self.region_index[point[0]][point[1]] = region_id
            stack = [point]
            while stack:
                current = stack.pop()
                for nx, ny in von_neumann_neighbours(current):
                    if not self.level.in_bounds(nx, ny) or self.region_index[nx][ny] is not None:
                        continue
                    if self.is_walkable((nx, ny)):
                        self.region_index[nx][ny] = region_id
                        group.append((nx, ny))
                        stack.append((nx, ny))
            self.region_groups.append(group)

    def region_id(self, point: Point) -> Optional[int]:
        if not self.level.in_bounds(*point):
            return None
        return self.region_index[point[0]][point[1]]

    def _chain_distance(self, dmap: DistanceMap, start: Point) -> float:
        point = start
        steps = 0
        while point not in self.critical_points:
            previous = dmap.previous(point)
            if previous is None:
                return math.inf
            point = previous
            steps += 1
        return steps

    def distance_from_critical_path(self, point: Point) -> float:
        return self._chain_distance(self.entrance_map, point) + self._chain_distance(self.exit_map, point)

    def count_adjacent_walls(self, point: Point) -> int:
        return sum(1 for n in moore_neighbours(point) if not self.is_walkable(n))

    def count_cells_in_line_of_sight(self, point: Point) -> int:
        count = 0
        for dx, dy in CARDINAL_DIRECTIONS:
            x, y = point
            while self.is_walkable((x, y)):
                x, y = x + dx, y + dy
                count += 1
        return count

    def _compute_cell_metrics(self) -> None:
        self.cell_metrics = [
            [self._metrics_for(x, y) for y in range(self.height)] for x in range(self.width)
        ]

    def _metrics_for(self, x: int, y: int) -> CellMetrics:
        point = (x, y)
        region = self.region_index[x][y]
        return CellMetrics(
            distance_from_entrance=self.entrance_map.distance_to(point),
            distance_from_exit=self.exit_map.distance_to(point),
            distance_from_critical_path=self.distance_from_critical_path(point),
            region_size=len(self.region_groups[region]) if region is not None else 0,
            adjacent_walls=self.count_adjacent_walls(point),
            cells_in_line_of_sight=self.count_cells_in_line_of_sight(point),
        )

    def metrics_for(self, point: Point) -> CellMetrics:
        return self.cell_metrics[point[0]][point[1]]

    # Rooms -------------------------------------------------------------
    def _add_rooms(self) -> None:
        metrics = self.metrics if self.config.enable_metrics else None
        self.rooms = add_rooms(self.level, self.finalised, self.rng, self.config, metrics)

    def _verify_exit(self) -> None:
        self.final_map = self.level.distance_map(self.entrance)
        if not self.final_map.is_reachable(self.exit):
            raise GenerationInvariantError(f"exit {self.exit} became unreachable after placing rooms")

    # Content -----------------------------------------------------------
    def potentials_for(self, point: Point) -> CellPotentials:
        return CellPotentials(
            reward=self.reward_potential(point),
            monster_spawn=self.monster_spawn_potential(point),
            uncommon_monster=self.uncommon_monster_potential(point),
            rare_monster=self.rare_monster_potential(point),
        )

    def reward_potential(self, point: Point) -> float:
        metrics = self.metrics_for(point)
        if metrics.distance_from_entrance == math.inf:
            return 0.0
        chance = min(metrics.distance_from_critical_path, 100) / 100
        chance += min(metrics.distance_from_exit, 100) / 200
        return chance * metrics.adjacent_walls

    def monster_spawn_potential(self, point: Point) -> float:
        if not self.is_walkable(point) or point in self.finalised:
            return 0.0
        metrics = self.metrics_for(point)
        score = self.level_type.characteristics.base_monster_spawn_chance
        if metrics.distance_from_entrance < 5:
            score -= 0.05
        if metrics.distance_from_critical_path < 5:
            score += 0.02
        return score

    def uncommon_monster_potential(self, point: Point) -> float:
        score = self.config.chance_uncommon
        if self.metrics_for(point).distance_from_critical_path > 10:
            score += 0.2
        return score

    def rare_monster_potential(self, point: Point) -> float:
        distance = self.metrics_for(point).distance_from_critical_path
        score = self.config.chance_rare
        if distance > 10:
            score += 0.2
        if distance > 30:
            score += 0.2
        return score

    def _place(self, entity: entities.Entity, point: Point) -> None:
        entity.pos = point
        self.level.add_entity(entity)
        self.finalised.add(point)

    def _reward_candidates(self) -> List[Point]:
        points = [
            p
            for p in self.level.points()
            if self.is_walkable(p)
            and p not in self.finalised
            and self.final_map.is_reachable(p)
            and not self.level.get_entities_at(*p)
        ]
        points.sort(key=self.reward_potential)
        return points

    def generate_reward(self) -> entities.Chest:
        rare = self.rng.random() < self.config.chance_rare
        uncommon = self.rng.random() < self.config.chance_uncommon
        if rare:
            return entities.Chest(currency=self.rng.randint(10, 19), rarity="rare")
        if uncommon:
            return entities.Chest(currency=self.rng.randint(2, 4), rarity="uncommon")
        return entities.Chest(currency=1)

    def _add_rewards(self) -> None:
        candidates = self._reward_candidates()
        total = self.rng.randint(1, max(1, self.level_type.characteristics.max_rewards))
        while len(self.rewards) < total and candidates:
            point = candidates.pop()
            if any(math.dist(point, chest.pos) < 10 for chest in self.rewards):
                continue
            chest = self.generate_reward()
            self._place(chest, point)
            self.rewards.append(chest)
        self._count("rewards_placed", len(self.rewards))

    def _add_monsters(self) -> None:
        characteristics = self.level_type.characteristics
        for point in sorted(self.final_map.reachable_points()):
            if self.level.get_entities_at(*point):
                continue
            potentials = self.potentials_for(point)
            if self.rng.random() >= potentials.monster_spawn:
                continue
            if self.rng.random() < potentials.rare_monster:
                pool = characteristics.rare_monster_types
            elif self.rng.random() < potentials.uncommon_monster:
                pool = characteristics.uncommon_monster_types
            else:
                pool = characteristics.common_monster_types
            monster = self.rng.choice(pool)()
            self._place(monster, point)
            self.monsters.append(monster)
        self._count("monsters_placed", len(self.monsters))

    # Result ------------------------------------------------------------
    def score(self) -> int:
        return len(self.critical_path)

    def build(self) -> Level:
        """Copy the candidate into a fresh Level and wire the stairs."""
        level = Level(self.level_type, self.width, self.height)
        level.entrance = self.entrance
        level.exit = self.exit
        level.critical_path = list(self.critical_path)
        level.metrics = dict(self.metrics)

        for x, column in enumerate(self.level.tiles):
            for y, tile in enumerate(column):
                if tile is not None:
                    level.set_tile(x, y, tile)
        for entity in self.level.entities:
            level.add_entity(entity)

        entrance_tile = Tile(DOWNSTAIRS)
        entrance_tile.on_enter = lambda entity, session: session.log("No going back")

        level_type, exit_point, seeds, config = self.level_type, self.exit, self.seeds, self.config

        def descend(entity: entities.Entity, session: GameSession) -> None:
            if entity is session.player:
                next_level = design_level(level_type, exit_point, seeds=seeds, config=config)
                session.set_level(next_level)

        exit_tile = Tile(self.level_type.characteristics.default_door_tile)
        exit_tile.on_enter = descend

        level.set_tile(*self.entrance, entrance_tile)
        level.set_tile(*self.exit, exit_tile)
        return level


def select_best(designers: Sequence[LevelDesigner]) -> LevelDesigner:
    """Highest score wins; ties go to the earliest candidate."""
    if not designers:
        raise ValueError("no designers to choose from")
    return max(designers, key=lambda designer: designer.score())


def design_level(
    level_type: LevelType,
    entrance: Point,
    seeds: Optional[SeedSource] = None,
    config: Optional[DesignerConfig] = None,
) -> Level:
    config = config or DesignerConfig()
    seeds = seeds if seeds is not None else DEFAULT_SEEDS
    entrance = tuple(entrance)
    if not (0 <= entrance[0] < config.width and 0 <= entrance[1] < config.height):
        raise ValueError(f"entrance {entrance} outside {config.width}x{config.height} level")

    type_log = log.bind(level_type=level_type.name)
    start = time.perf_counter()
    designers: List[LevelDesigner] = []
    last_error: Optional[GenerationInvariantError] = None
    for index in range(config.designers_per_level):
        try:
            designers.append(LevelDesigner(level_type, entrance, seeds.next_seed(), config, seeds=seeds))
        except GenerationInvariantError as exc:
            last_error = exc
            type_log.warn(event="candidate_aborted", candidate=index, reason=exc)

    if not designers:
        raise LevelGenerationError(
            f"all {config.designers_per_level} candidates failed for {level_type.name}"
        ) from last_error

    best = select_best(designers)
    level = best.build()
    runtime_ms = int((time.perf_counter() - start) * 1000)
    if config.enable_metrics:
        level.metrics["candidates"] = len(designers)
        level.metrics["candidates_failed"] = config.designers_per_level - len(designers)
        level.metrics["design_ms"] = runtime_ms
    type_log.info(
        event="level_designed",
        score=best.score(),
        candidates=len(designers),
        runtime_ms=runtime_ms,
    )
    return level


__all__ = [
    "SeedSource",
    "DEFAULT_SEEDS",
    "DEFAULT_SEED",
    "CellMetrics",
    "CellPotentials",
    "LevelDesigner",
    "select_best",
    "design_level",
]
