"""Tile kinds, tile instances and the substances that can sit on a tile.

``TileType`` values are module-level constants compared by identity; a
``Tile`` is the per-cell instance the level grid holds.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

Point = Tuple[int, int]


@dataclass(frozen=True, eq=False)
class TileType:
    name: str
    walkable: bool
    glyph: str
    diggable: bool = False
    cost: Optional[float] = None

    def movement_cost(self) -> float:
        if self.cost is not None:
            return self.cost
        return 1 if self.walkable else math.inf

    def __repr__(self) -> str:
        return f"TileType({self.name!r})"


FLOOR = TileType("floor", walkable=True, glyph=".")
WALL = TileType("wall", walkable=False, glyph="#", diggable=True)
BLOCK = TileType("block", walkable=False, glyph="=", diggable=True)
IRON_BARS = TileType("iron_bars", walkable=False, glyph="|")
DOORWAY = TileType("doorway", walkable=True, glyph="+")
UPSTAIRS = TileType("upstairs", walkable=True, glyph="<")
DOWNSTAIRS = TileType("downstairs", walkable=True, glyph=">")
COBBLESTONE = TileType("cobblestone", walkable=True, glyph=".")
BONE_WALL = TileType("bone_wall", walkable=False, glyph="#", diggable=True)
JUNGLE_FLOOR = TileType("jungle_floor", walkable=True, glyph=",")
JUNGLE_WALL = TileType("jungle_wall", walkable=False, glyph="&", diggable=True)
VOLCANIC_FLOOR = TileType("volcanic_floor", walkable=True, glyph=".")
VOLCANIC_WALL = TileType("volcanic_wall", walkable=False, glyph="%", diggable=True)
RUIN_FLOOR = TileType("ruin_floor", walkable=True, glyph="_")
RUIN_WALL = TileType("ruin_wall", walkable=False, glyph="#", diggable=True)
LAVA = TileType("lava", walkable=False, glyph="~")
WATER = TileType("water", walkable=True, glyph="~", cost=2)
CHASM = TileType("chasm", walkable=False, glyph=" ")
RUBBLE = TileType("rubble", walkable=True, glyph=":", diggable=True, cost=3)
FISSURE = TileType("fissure", walkable=True, glyph="'")


class Substance:
    """Something temporary covering a tile (slime, magma, ice).

    The timer counts down once per tile update; at zero the substance
    removes itself from its tile.
    """

    name = "substance"
    glyph = "?"
    default_timer = 5

    def __init__(self, timer: Optional[int] = None):
        self.timer = timer or 0
        self.tile: Optional["Tile"] = None

    def attach(self, tile: "Tile") -> None:
        self.tile = tile
        if self.timer == 0:
            self.timer = self.default_timer

    def update(self) -> None:
        self.timer -= 1
        if self.timer <= 0 and self.tile is not None:
            self.tile.remove_substance()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "timer": self.timer}


class Slime(Substance):
    name = "slime"
    glyph = "s"


class Magma(Substance):
    name = "magma"
    glyph = "m"


class Ice(Substance):
    name = "ice"
    glyph = "i"


class Tile:
    __slots__ = ("type", "glyph", "substance", "pos", "on_enter")

    def __init__(self, tile_type: TileType, pos: Point = (0, 0)):
        self.type = tile_type
        self.glyph = tile_type.glyph
        self.substance: Optional[Substance] = None
        self.pos = pos
        # on_enter(entity, session)
        self.on_enter: Optional[Callable[[Any, Any], None]] = None

    @property
    def walkable(self) -> bool:
        return self.type.walkable

    def set_substance(self, substance: Substance) -> None:
        self.substance = substance
        substance.attach(self)

    def remove_substance(self) -> None:
        self.substance = None

    def update(self) -> None:
        if self.substance is not None:
            self.substance.update()

    def char(self) -> str:
        return self.substance.glyph if self.substance is not None else self.glyph

    def to_dict(self):
        return {
            "type": self.type.name,
            "glyph": self.glyph,
            "substance": self.substance.to_dict() if self.substance else None,
        }


__all__ = [
    "TileType",
    "Tile",
    "Substance",
    "Slime",
    "Magma",
    "Ice",
    "FLOOR",
    "WALL",
    "BLOCK",
    "IRON_BARS",
    "DOORWAY",
    "UPSTAIRS",
    "DOWNSTAIRS",
    "COBBLESTONE",
    "BONE_WALL",
    "JUNGLE_FLOOR",
    "JUNGLE_WALL",
    "VOLCANIC_FLOOR",
    "VOLCANIC_WALL",
    "RUIN_FLOOR",
    "RUIN_WALL",
    "LAVA",
    "WATER",
    "CHASM",
    "RUBBLE",
    "FISSURE",
]
