"""Built-in room templates, registered on import."""
from __future__ import annotations

from . import entities
from . import tiles as T
from .entities import direction_between
from .legend import CellBuilder, common_monster, default_floor, default_wall, is_default_wall, is_walkable
from .rooms import Rarity, RoomBuilderContext, RoomTemplate, register_room_templates


def _wire_lever_to_boulder(context: RoomBuilderContext) -> None:
    lever = context.find_entity("L")
    boulder = context.find_entity("O")
    if lever is None or boulder is None:
        return

    def release(session) -> None:
        session.log("The ground rumbles as a boulder starts to roll...")
        boulder.push(direction_between(boulder.pos, lever.pos), session.level)

    lever.triggers = release


ROLLING_BOULDER = RoomTemplate(
    "rolling_boulder",
    [
        """
.O.
.@.
.@.
.@.
.L.
""",
    ],
    rarity=Rarity.UNCOMMON,
    cost=30,
    legend={
        "@": CellBuilder(tile=default_floor),
        "L": CellBuilder(tile=default_floor, constraint=is_walkable, spawn=lambda level, rng: entities.Lever()),
    },
    after_build=_wire_lever_to_boulder,
)

JAIL_CELL = RoomTemplate(
    "jail_cell",
    [
        """
*%%%*
#...#
#...#
##=##
**-**
""",
    ],
    cost=25,
    legend={
        "=": CellBuilder(tile=T.IRON_BARS, constraint=is_walkable),
        "#": CellBuilder(tile=default_wall),
        "%": CellBuilder(tile=default_wall, constraint=is_default_wall),
        "-": CellBuilder(tile=default_floor, constraint=is_walkable),
    },
)

MOUNTED_BALLISTA = RoomTemplate(
    "mounted_ballista",
    [
        """
...
.B.
...
""",
    ],
    rotates=False,
    rarity=Rarity.UNCOMMON,
    cost=20,
    legend={
        ".": CellBuilder(constraint=is_walkable),
        "B": CellBuilder(constraint=is_walkable, spawn=lambda level, rng: entities.Ballista()),
    },
)

SEALED_TREASURE_VAULT = RoomTemplate(
    "sealed_treasure_vault",
    [
        """
.###.
##$##
.###.
""",
    ],
    rarity=Rarity.RARE,
    cost=40,
    legend={
        ".": CellBuilder(),
        "$": CellBuilder(
            tile=default_floor,
            spawn=lambda level, rng: entities.Chest(currency=rng.randint(10, 19), rarity="rare"),
        ),
    },
)

GUARD_ROOM = RoomTemplate(
    "guard_room",
    [
        """
#########
#....=..#
#.=.....#
+....=..+
#.=.....#
#==..C.=#
####+####
""",
    ],
    cost=60,
    level_types=("Ruins", "Caverns"),
    legend={
        "=": CellBuilder(tile=default_floor, spawn=lambda level, rng: entities.Crate()),
        "+": CellBuilder(tile=default_floor, constraint=is_walkable),
        "C": CellBuilder(tile=default_floor, spawn=common_monster),
    },
)

FLOODED_ALCOVE = RoomTemplate(
    "flooded_alcove",
    [
        """
%%%
%~%
,s,
""",
        """
*%%*
%ss%
,ss,
""",
    ],
    cost=15,
    level_types=("Jungle", "Caverns"),
    legend={
        "~": CellBuilder(tile=T.WATER),
        "s": CellBuilder(tile=default_floor, substance=lambda level, rng: T.Slime(timer=rng.randint(5, 15))),
    },
)

COLLAPSED_PASSAGE = RoomTemplate(
    "collapsed_passage",
    [
        """
+rr+
""",
        """
+rrr+
""",
    ],
    cost=10,
    legend={
        "r": CellBuilder(tile=T.RUBBLE),
    },
)

MAGMA_VENT = RoomTemplate(
    "magma_vent",
    [
        """
*,*
,m,
*,*
""",
    ],
    rotates=False,
    rarity=Rarity.UNCOMMON,
    cost=15,
    level_types=("Mantle",),
    legend={
        "m": CellBuilder(tile=T.FISSURE, substance=lambda level, rng: T.Magma(timer=rng.randint(5, 10))),
    },
)

BUILTIN_ROOMS = (
    ROLLING_BOULDER,
    JAIL_CELL,
    MOUNTED_BALLISTA,
    SEALED_TREASURE_VAULT,
    GUARD_ROOM,
    FLOODED_ALCOVE,
    COLLAPSED_PASSAGE,
    MAGMA_VENT,
)

register_room_templates(*BUILTIN_ROOMS)

__all__ = [
    "BUILTIN_ROOMS",
    "ROLLING_BOULDER",
    "JAIL_CELL",
    "MOUNTED_BALLISTA",
    "SEALED_TREASURE_VAULT",
    "GUARD_ROOM",
    "FLOODED_ALCOVE",
    "COLLAPSED_PASSAGE",
    "MAGMA_VENT",
]
