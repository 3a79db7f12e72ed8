import random

import pytest

from descent.dungeon import entities
from descent.dungeon.config import DesignerConfig
from descent.dungeon.errors import GenerationInvariantError, TemplateError
from descent.dungeon.legend import CellBuilder, is_walkable
from descent.dungeon.level import Level
from descent.dungeon.levels import CAVERNS, JUNGLE, MANTLE
from descent.dungeon.room_templates import GUARD_ROOM, JAIL_CELL, MAGMA_VENT, ROLLING_BOULDER
from descent.dungeon.rooms import (
    Rarity,
    RoomTemplate,
    add_rooms,
    get_room_templates_by_type,
    parse_template,
    roll_rarity,
    rotate_left_90,
)
from descent.dungeon.tiles import Slime
from tests.level_test_utils import make_level

OPEN_9x9 = ["." * 9] * 9


def test_parse_template_is_column_major():
    variant = parse_template("ab\ncd")
    assert [[c.key for c in column] for column in variant] == [["a", "c"], ["b", "d"]]


@pytest.mark.parametrize("text", ["", "\n\n", "abc\nab"])
def test_malformed_templates_raise(text):
    with pytest.raises(TemplateError):
        parse_template(text)


def test_template_error_is_value_error():
    with pytest.raises(ValueError):
        RoomTemplate("free_room", ["."], cost=0)


def test_rotate_left_quarter_turn():
    variant = parse_template("ab")
    rotated = rotate_left_90(variant)
    assert [[c.key for c in column] for column in rotated] == [["b", "a"]]
    full = variant
    for _ in range(4):
        full = rotate_left_90(full)
    assert [[c.key for c in column] for column in full] == [["a"], ["b"]]


def test_template_legend_overrides_default():
    marker = CellBuilder(spawn=lambda level, rng: entities.Crate())
    template = RoomTemplate("crate_dot", ["."], legend={".": marker})
    cell = template.variants[0][0][0]
    assert cell.key == "."
    assert cell.tile is None and cell.spawn is not None


def test_unknown_characters_place_nothing():
    template = RoomTemplate("blank", ["Q"])
    assert not template.variants[0][0][0].places_something


def test_placement_never_overwrites_finalised_points():
    level = make_level(CAVERNS, *OPEN_9x9)
    finalised = {(x, 4) for x in range(9)}
    template = RoomTemplate("block", ["##\n##"], rotates=False)
    rng = random.Random(3)
    for _ in range(10):
        before = set(finalised)
        context = template.try_to_build(level, finalised, rng)
        if context is None:
            continue
        assert context.points
        assert not (context.points & before)
        assert context.points <= finalised


def test_filler_cells_may_sit_on_finalised_points():
    level = make_level(CAVERNS, "...", "...", "...")
    finalised = {(1, 1)}
    template = RoomTemplate("ring", ["...\n.*.\n..."], rotates=False)
    context = template.try_to_build(level, finalised, random.Random(0))
    assert context is not None
    assert (1, 1) not in context.points
    assert len(context.points) == 8


def test_constraints_are_checked_against_existing_tiles():
    level = make_level(CAVERNS, "#.", "..")
    template = RoomTemplate("needs_floor", [","], rotates=False)
    variant = template.variants[0]
    assert not template.check_rules(level, (0, 0), set(), variant)
    assert template.check_rules(level, (1, 0), set(), variant)


def test_try_to_build_gives_up():
    level = make_level(CAVERNS, "..", "..")
    template = RoomTemplate("too_big", ["...\n..."])
    assert template.try_to_build(level, set(), random.Random(1), retries=5) is None
    tiny = RoomTemplate("tiny", ["."])
    finalised = set(level.points())
    assert tiny.try_to_build(level, finalised, random.Random(1), retries=5) is None


def test_substance_without_tile_is_invariant_error():
    level = Level(CAVERNS, 3, 3)
    template = RoomTemplate(
        "slime_only", ["s"], legend={"s": CellBuilder(substance=lambda level, rng: Slime())}
    )
    with pytest.raises(GenerationInvariantError):
        template.build(level, (1, 1), set(), template.variants[0], random.Random(0))


def test_build_sets_tiles_spawns_and_runs_hook():
    seen = {}

    def after(context):
        seen["chest"] = context.find_entity("$")

    level = make_level(CAVERNS, *OPEN_9x9)
    template = RoomTemplate("treasure", ["#$#"], rotates=False, after_build=after)
    context = template.build(level, (2, 2), set(), template.variants[0], random.Random(0))
    assert level.get_tile(2, 2).type is CAVERNS.characteristics.default_wall_tile
    assert level.get_tile(3, 2).type is CAVERNS.characteristics.default_floor_tile
    assert isinstance(seen["chest"], entities.Chest)
    assert seen["chest"].pos == (3, 2)
    assert seen["chest"] in level.entities
    assert len(context.find_tiles("#")) == 2


def test_templates_filter_by_level_type():
    assert GUARD_ROOM in get_room_templates_by_type(CAVERNS)
    assert GUARD_ROOM not in get_room_templates_by_type(JUNGLE)
    assert MAGMA_VENT in get_room_templates_by_type(MANTLE)
    assert MAGMA_VENT not in get_room_templates_by_type(CAVERNS)
    # unrestricted templates are available everywhere
    assert JAIL_CELL in get_room_templates_by_type(JUNGLE)


def test_builtin_template_metadata():
    assert ROLLING_BOULDER.rarity == Rarity.UNCOMMON
    assert all(t.cost > 0 for t in get_room_templates_by_type(CAVERNS))


def test_rarity_acceptance_rates():
    rng = random.Random(2024)
    trials = 100_000
    rare = sum(roll_rarity(Rarity.RARE, rng) for _ in range(trials)) / trials
    uncommon = sum(roll_rarity(Rarity.UNCOMMON, rng) for _ in range(trials)) / trials
    common = sum(roll_rarity(Rarity.COMMON, rng) for _ in range(1000))
    assert abs(rare - 0.05) < 0.005
    assert abs(uncommon - 0.25) < 0.01
    assert common == 1000


def test_add_rooms_repeats_common_templates_within_budget():
    level = make_level(CAVERNS, *(["." * 21] * 21))
    config = DesignerConfig()
    metrics = {}
    crate = CellBuilder(constraint=is_walkable, spawn=lambda level, rng: entities.Crate())
    template = RoomTemplate("crate", ["C"], legend={"C": crate})
    placed = add_rooms(level, set(), random.Random(8), config, metrics, templates=[template])
    assert config.room_budget_min <= metrics["room_budget"] <= config.room_budget_max
    assert len(placed) >= 2
    assert len(placed) * template.cost <= metrics["room_budget"]
    assert metrics["rooms_placed"] == len(placed)


def test_add_rooms_tries_uncommon_templates_once():
    level = make_level(CAVERNS, *(["." * 21] * 21))
    config = DesignerConfig(chance_uncommon=1.0)
    template = RoomTemplate("odd", ["$"], rarity=Rarity.UNCOMMON, cost=5)
    placed = add_rooms(level, set(), random.Random(8), config, {}, templates=[template])
    assert len(placed) == 1


def test_add_rooms_skips_unaffordable_and_failed_rooms():
    level = make_level(CAVERNS, *(["." * 5] * 5))
    config = DesignerConfig(room_budget_min=50, room_budget_max=50, room_retries=3)
    metrics = {}
    pricey = RoomTemplate("pricey", ["$"], cost=500)
    huge = RoomTemplate("huge", ["$" * 9])
    placed = add_rooms(level, set(), random.Random(1), config, metrics, templates=[pricey, huge])
    assert placed == []
    assert metrics["rooms_skipped_budget"] == 1
    assert metrics["rooms_failed"] == 1
