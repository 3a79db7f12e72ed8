"""Built-in level types."""
from __future__ import annotations

from typing import Dict, List

from . import entities as E
from . import tiles as T
from .level import LevelCharacteristics, LevelType
from .terrains import TERRAINS


def _level_type(name: str, terrain: str, **characteristics) -> LevelType:
    return LevelType(
        name=name,
        terrain=terrain,
        dig=TERRAINS[terrain],
        characteristics=LevelCharacteristics(**characteristics),
    )


CAVERNS = _level_type(
    "Caverns",
    "cavernous",
    default_floor_tile=T.COBBLESTONE,
    default_wall_tile=T.BONE_WALL,
    default_liquid_tile=T.WATER,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Slime, E.Bat),
    uncommon_monster_types=(E.UncommonSlime,),
    rare_monster_types=(E.RareSlime,),
    base_monster_spawn_chance=0.02,
    max_rewards=2,
)

CHASMS = _level_type(
    "Chasms",
    "chaotic_caverns",
    default_floor_tile=T.COBBLESTONE,
    default_wall_tile=T.WALL,
    default_liquid_tile=T.CHASM,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Bat,),
    uncommon_monster_types=(E.UncommonSlime,),
    rare_monster_types=(E.Golem,),
    base_monster_spawn_chance=0.03,
    max_rewards=3,
)

RUINS = _level_type(
    "Ruins",
    "ruinous",
    default_floor_tile=T.RUIN_FLOOR,
    default_wall_tile=T.RUIN_WALL,
    default_liquid_tile=T.WATER,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Slime,),
    uncommon_monster_types=(E.UncommonSlime,),
    rare_monster_types=(E.Golem,),
    base_monster_spawn_chance=0.02,
    max_rewards=3,
)

JUNGLE = _level_type(
    "Jungle",
    "alien",
    default_floor_tile=T.JUNGLE_FLOOR,
    default_wall_tile=T.JUNGLE_WALL,
    default_liquid_tile=T.WATER,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Slime,),
    uncommon_monster_types=(E.UncommonSlime,),
    rare_monster_types=(E.RareSlime,),
    base_monster_spawn_chance=0.02,
    max_rewards=3,
)

MANTLE = _level_type(
    "Mantle",
    "volcanic",
    default_floor_tile=T.VOLCANIC_FLOOR,
    default_wall_tile=T.VOLCANIC_WALL,
    default_liquid_tile=T.LAVA,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Slime,),
    uncommon_monster_types=(E.Salamander,),
    rare_monster_types=(E.RareSlime,),
    base_monster_spawn_chance=0.02,
    max_rewards=4,
)

LABYRINTH = _level_type(
    "Labyrinth",
    "maze",
    default_floor_tile=T.FLOOR,
    default_wall_tile=T.WALL,
    default_liquid_tile=T.WATER,
    default_door_tile=T.DOORWAY,
    common_monster_types=(E.Bat,),
    uncommon_monster_types=(E.UncommonSlime,),
    rare_monster_types=(E.Golem,),
    base_monster_spawn_chance=0.015,
    max_rewards=2,
)

LEVEL_TYPES: Dict[str, LevelType] = {
    lt.name: lt for lt in (CAVERNS, CHASMS, RUINS, JUNGLE, MANTLE, LABYRINTH)
}


def get_level_type(name: str) -> LevelType:
    """Case-insensitive lookup by level type name."""
    for key, level_type in LEVEL_TYPES.items():
        if key.lower() == name.lower():
            return level_type
    raise KeyError(f"unknown level type {name!r}")


def level_type_names() -> List[str]:
    return list(LEVEL_TYPES)


__all__ = [
    "CAVERNS",
    "CHASMS",
    "RUINS",
    "JUNGLE",
    "MANTLE",
    "LABYRINTH",
    "LEVEL_TYPES",
    "get_level_type",
    "level_type_names",
]
