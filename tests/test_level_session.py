import math
import random

from descent.dungeon import entities
from descent.dungeon import tiles as T
from descent.dungeon.config import DesignerConfig
from descent.dungeon.designer import SeedSource, design_level
from descent.dungeon.level import GameSession
from descent.dungeon.levels import CAVERNS
from descent.dungeon.room_templates import ROLLING_BOULDER
from descent.dungeon.tiles import Tile
from tests.level_test_utils import make_level


def test_tile_type_costs():
    assert T.FLOOR.movement_cost() == 1
    assert T.WALL.movement_cost() == math.inf
    assert T.RUBBLE.walkable and T.RUBBLE.movement_cost() == 3
    assert T.WATER.movement_cost() == 2


def test_set_tile_tracks_position_and_ignores_out_of_range():
    level = make_level(CAVERNS, "...", "...")
    tile = Tile(T.RUBBLE)
    level.set_tile(2, 1, tile)
    assert tile.pos == (2, 1)
    level.set_tile(3, 0, Tile(T.LAVA))
    level.set_tile(-1, 0, Tile(T.LAVA))
    assert all(level.get_tile(*p).type is not T.LAVA for p in level.points())
    assert level.get_tile(5, 5) is None


def test_is_empty_respects_blocking_entities():
    level = make_level(CAVERNS, "..#")
    level.add_entity(entities.Crate((0, 0)))
    assert not level.is_empty((0, 0))
    assert level.is_empty((1, 0))
    assert not level.is_empty((2, 0))
    assert level.get_entities_at(0, 0)[0].name == "crate"


def test_weighted_distance_map_prices_terrain():
    level = make_level(CAVERNS, "....")
    level.set_tile(1, 0, Tile(T.RUBBLE))
    dmap = level.distance_map((0, 0), weighted=True)
    assert dmap.distance_to((3, 0)) == 5
    assert level.distance_map((0, 0)).distance_to((3, 0)) == 3


class _CountingEffect:
    def __init__(self, waits):
        self.waits = list(waits)
        self.ticks = 0

    def tick(self):
        self.ticks += 1
        return self.waits.pop(0)


def test_effects_wait_then_finish():
    level = make_level(CAVERNS, ".")
    effect = _CountingEffect([2, None])
    level.add_effect(effect)
    level.update_effects()
    assert effect.ticks == 1
    level.update_effects()
    assert effect.ticks == 1
    level.update_effects()
    assert effect.ticks == 2
    assert level.effects == []


def test_substances_expire():
    level = make_level(CAVERNS, ".")
    tile = level.get_tile(0, 0)
    tile.set_substance(T.Slime(timer=2))
    assert tile.char() == "s"
    level.update_tiles()
    assert tile.substance is not None
    level.update_tiles()
    assert tile.substance is None
    assert tile.char() == CAVERNS.characteristics.default_floor_tile.glyph


def test_substance_default_timer():
    tile = Tile(T.FLOOR)
    tile.set_substance(T.Magma())
    assert tile.substance.timer == T.Magma.default_timer


def test_lever_releases_boulder_once():
    level = make_level(CAVERNS, *([".." * 4] * 9))
    variant = ROLLING_BOULDER.variants[0]
    context = ROLLING_BOULDER.build(level, (2, 0), set(), variant, random.Random(0))
    lever = context.find_entity("L")
    boulder = context.find_entity("O")
    assert boulder.pos == (3, 0) and lever.pos == (3, 4)

    session = GameSession(level=level)
    lever.pull(session)
    lever.pull(session)
    assert len(level.effects) == 1
    assert session.messages == ["The ground rumbles as a boulder starts to roll..."]
    for _ in range(10):
        level.update_effects()
    # rolls toward the lever and stops in front of it
    assert boulder.pos == (3, 3)
    assert level.effects == []
    assert not boulder.rolling


def test_chest_pays_player_once():
    level = make_level(CAVERNS, "..")
    chest = entities.Chest((1, 0), currency=7)
    level.add_entity(chest)
    session = GameSession(level=level)
    chest.open(session.player, session)
    chest.open(session.player, session)
    assert session.player.currency == 7
    assert chest not in level.entities
    assert session.messages == ["Found 7 coins"]


def test_session_places_player_at_entrance():
    level = make_level(CAVERNS, "...")
    level.entrance = (2, 0)
    session = GameSession(level=level)
    assert session.player.pos == (2, 0)
    assert session.player in level.entities
    assert session.depth == 0


def test_exit_door_designs_next_level():
    config = DesignerConfig(designers_per_level=2)
    seeds = SeedSource(31)
    first = design_level(CAVERNS, (10, 10), seeds=seeds, config=config)
    session = GameSession(level=first)

    # only the player triggers the transition
    session.enter_tile(entities.Bat(), first.exit)
    assert session.level is first

    session.enter_tile(session.player, first.exit)
    second = session.level
    assert second is not first
    assert session.depth == 1
    assert second.entrance == first.exit
    assert session.player.pos == second.entrance
    assert session.player not in first.entities
    assert session.player in second.entities


def test_level_snapshot():
    level = design_level(CAVERNS, (5, 5), seeds=SeedSource(8), config=DesignerConfig(designers_per_level=1))
    data = level.to_dict()
    assert data["level_type"] == "Caverns"
    assert data["width"] == 21 and len(data["tiles"]) == 21
    assert all(len(row) == 21 for row in data["tiles"])
    assert data["entrance"] == [5, 5]
    assert data["critical_path_length"] == len(level.critical_path)
    assert level.to_ascii().splitlines()[5][5] == ">"
