"""Level surface, level types and the session that owns the active level.

A ``Level`` is what the designer hands to the game: a column-major grid of
``Tile`` objects, the entities placed on it, the entrance/exit pair and the
queue of running effects. ``GameSession`` is the explicit context passed to
tile hooks and lever triggers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple, Type

from .entities import Entity, Player
from .pathing import DistanceMap, walkable_cost
from .tiles import Tile, TileType

Point = Tuple[int, int]


class Effect(Protocol):
    def tick(self) -> Optional[int]:
        """Advance one step. ``None`` when finished, else ticks to wait."""


@dataclass(frozen=True)
class LevelCharacteristics:
    default_floor_tile: TileType
    default_wall_tile: TileType
    default_liquid_tile: TileType
    default_door_tile: TileType
    common_monster_types: Sequence[Type[Entity]]
    uncommon_monster_types: Sequence[Type[Entity]]
    rare_monster_types: Sequence[Type[Entity]]
    base_monster_spawn_chance: float = 0.02
    max_rewards: int = 2


@dataclass(frozen=True, eq=False)
class LevelType:
    name: str
    terrain: str
    dig: Callable[[Any, Point], None]
    characteristics: LevelCharacteristics

    def __repr__(self) -> str:
        return f"LevelType({self.name!r})"


class _ScheduledEffect:
    __slots__ = ("effect", "wait")

    def __init__(self, effect: Effect):
        self.effect = effect
        self.wait = 1


class Level:
    def __init__(self, level_type: LevelType, width: int, height: int):
        self.type = level_type
        self.width = width
        self.height = height
        self.tiles: List[List[Optional[Tile]]] = [[None] * height for _ in range(width)]
        self.entities: List[Entity] = []
        self.entrance: Point = (-1, -1)
        self.exit: Point = (-1, -1)
        self.effects: List[_ScheduledEffect] = []
        self.critical_path: List[Point] = []
        self.metrics: Dict[str, Any] = {}

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def points(self) -> Iterator[Point]:
        for x in range(self.width):
            for y in range(self.height):
                yield x, y

    def get_tile(self, x: int, y: int) -> Optional[Tile]:
        if self.in_bounds(x, y):
            return self.tiles[x][y]
        return None

    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        if self.in_bounds(x, y):
            tile.pos = (x, y)
            self.tiles[x][y] = tile

    def add_entity(self, entity: Entity) -> None:
        if entity not in self.entities:
            self.entities.append(entity)

    def remove_entity(self, entity: Entity) -> None:
        if entity in self.entities:
            self.entities.remove(entity)

    def get_entities_at(self, x: int, y: int) -> List[Entity]:
        return [e for e in self.entities if e.pos == (x, y)]

    def is_walkable(self, point: Point) -> bool:
        tile = self.get_tile(*point)
        return tile is not None and tile.type.walkable

    def is_empty(self, point: Point) -> bool:
        """Walkable and not occupied by a blocking entity."""
        if not self.is_walkable(point):
            return False
        return not any(e.blocking for e in self.get_entities_at(*point))

    def distance_map(self, start: Point, weighted: bool = False) -> DistanceMap:
        if weighted:
            def cost(_current: Point, nxt: Point) -> float:
                tile = self.tiles[nxt[0]][nxt[1]]
                return tile.type.movement_cost() if tile is not None else math.inf
            return DistanceMap(self.width, self.height, start, cost)
        return DistanceMap(self.width, self.height, start, walkable_cost(self.is_walkable))

    def find_shortest_path(self, start: Point, end: Point) -> List[Point]:
        return self.distance_map(start).path_to(end)

    # Effects -----------------------------------------------------------
    def add_effect(self, effect: Effect) -> None:
        self.effects.append(_ScheduledEffect(effect))

    def update_effects(self) -> None:
        for entry in list(self.effects):
            entry.wait -= 1
            if entry.wait > 0:
                continue
            result = entry.effect.tick()
            if result is None:
                self.effects.remove(entry)
            else:
                entry.wait = max(int(result), 1)

    def update_tiles(self) -> None:
        for column in self.tiles:
            for tile in column:
                if tile is not None:
                    tile.update()

    # Rendering ---------------------------------------------------------
    def tile_rows(self) -> List[str]:
        return [
            "".join(self.tiles[x][y].char() if self.tiles[x][y] else " " for x in range(self.width))
            for y in range(self.height)
        ]

    def to_ascii(self) -> str:
        rows = [list(row) for row in self.tile_rows()]
        for entity in self.entities:
            x, y = entity.pos
            if self.in_bounds(x, y):
                rows[y][x] = entity.glyph
        return "\n".join("".join(row) for row in rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level_type": self.type.name,
            "width": self.width,
            "height": self.height,
            "entrance": list(self.entrance),
            "exit": list(self.exit),
            "tiles": self.tile_rows(),
            "entities": [e.to_dict() for e in self.entities],
            "critical_path_length": len(self.critical_path),
            "metrics": self.metrics,
        }


class GameSession:
    """Active level, player and message log passed explicitly to hooks."""

    def __init__(self, player: Optional[Player] = None, level: Optional[Level] = None):
        self.player = player or Player()
        self.level: Optional[Level] = None
        self.messages: List[str] = []
        self.depth = 0
        if level is not None:
            self.set_level(level)

    def log(self, message: str) -> None:
        self.messages.append(message)

    def set_level(self, level: Level) -> None:
        if self.level is not None:
            self.level.remove_entity(self.player)
            self.depth += 1
        self.level = level
        self.player.pos = level.entrance
        level.add_entity(self.player)

    def enter_tile(self, entity: Entity, point: Point) -> None:
        entity.pos = point
        tile = self.level.get_tile(*point) if self.level else None
        if tile is not None and tile.on_enter is not None:
            tile.on_enter(entity, self)


__all__ = ["Effect", "LevelCharacteristics", "LevelType", "Level", "GameSession"]
