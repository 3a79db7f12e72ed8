"""Character -> cell-builder rules used by room templates.

Each template character resolves through the template's own legend first and
then through ``DEFAULT_LEGEND``. Characters found in neither place nothing.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Dict, Optional, Union

from . import entities
from . import tiles as T
from .tiles import Substance, Tile, TileType

if TYPE_CHECKING:  # pragma: no cover
    from .level import Level

CreateTile = Union[TileType, Callable[["Level"], TileType]]
CreateEntity = Callable[["Level", random.Random], entities.Entity]
CreateSubstance = Callable[["Level", random.Random], Substance]
TileConstraint = Callable[[Tile, "Level"], bool]


@dataclass(frozen=True)
class CellBuilder:
    key: str = ""
    tile: Optional[CreateTile] = None
    spawn: Optional[CreateEntity] = None
    substance: Optional[CreateSubstance] = None
    constraint: Optional[TileConstraint] = None

    @property
    def places_something(self) -> bool:
        return self.tile is not None or self.spawn is not None or self.substance is not None

    def resolve_tile(self, level: "Level") -> Optional[TileType]:
        if self.tile is None:
            return None
        if isinstance(self.tile, TileType):
            return self.tile
        return self.tile(level)


Legend = Dict[str, CellBuilder]


def default_floor(level: "Level") -> TileType:
    return level.type.characteristics.default_floor_tile


def default_wall(level: "Level") -> TileType:
    return level.type.characteristics.default_wall_tile


def default_liquid(level: "Level") -> TileType:
    return level.type.characteristics.default_liquid_tile


def is_walkable(tile: Tile, level: "Level") -> bool:
    return tile.type.walkable


def is_default_wall(tile: Tile, level: "Level") -> bool:
    return tile.type is level.type.characteristics.default_wall_tile


def is_doorway(tile: Tile, level: "Level") -> bool:
    return tile.type is T.DOORWAY


def common_monster(level: "Level", rng: random.Random) -> entities.Entity:
    return rng.choice(level.type.characteristics.common_monster_types)()


def uncommon_monster(level: "Level", rng: random.Random) -> entities.Entity:
    return rng.choice(level.type.characteristics.uncommon_monster_types)()


def rare_monster(level: "Level", rng: random.Random) -> entities.Entity:
    return rng.choice(level.type.characteristics.rare_monster_types)()


def random_monster(level: "Level", rng: random.Random) -> entities.Entity:
    if rng.random() < 0.05:
        return rare_monster(level, rng)
    if rng.random() < 0.25:
        return uncommon_monster(level, rng)
    return common_monster(level, rng)


DEFAULT_LEGEND: Legend = {
    "*": CellBuilder(),
    ".": CellBuilder(tile=default_floor),
    "+": CellBuilder(constraint=is_walkable),
    "#": CellBuilder(tile=default_wall),
    ",": CellBuilder(tile=default_floor, constraint=is_walkable),
    "%": CellBuilder(constraint=is_default_wall),
    "$": CellBuilder(tile=default_floor, spawn=lambda level, rng: entities.Chest(currency=1)),
    "?": CellBuilder(constraint=is_walkable, spawn=random_monster),
    "C": CellBuilder(constraint=is_walkable, spawn=common_monster),
    "B": CellBuilder(constraint=is_walkable, spawn=uncommon_monster),
    "A": CellBuilder(constraint=is_walkable, spawn=rare_monster),
    "X": CellBuilder(constraint=is_doorway),
    "L": CellBuilder(tile=default_floor, spawn=lambda level, rng: entities.Lever()),
    "O": CellBuilder(tile=default_floor, spawn=lambda level, rng: entities.Boulder()),
    "~": CellBuilder(tile=default_liquid),
}


def lookup(char: str, legend: Optional[Legend] = None) -> CellBuilder:
    """Resolve ``char`` through ``legend`` then the default table, keyed by ``char``."""
    entry = (legend or {}).get(char) or DEFAULT_LEGEND.get(char) or CellBuilder()
    return replace(entry, key=char)


__all__ = [
    "CellBuilder",
    "Legend",
    "DEFAULT_LEGEND",
    "lookup",
    "default_floor",
    "default_wall",
    "default_liquid",
    "is_walkable",
    "is_default_wall",
    "is_doorway",
    "common_monster",
    "uncommon_monster",
    "rare_monster",
    "random_monster",
]
