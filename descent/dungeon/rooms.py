"""Room templates and the budgeted packer that stamps them onto a level.

A template is one or more ASCII layouts plus metadata. Layouts are parsed once
at definition time into column-major grids of ``CellBuilder`` records. The
packer places templates at random origins, never writing over a finalised
point and honouring every cell's constraint against the tile already there.
"""
from __future__ import annotations

import random
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..logging_utils import get_logger
from .entities import Entity
from .errors import GenerationInvariantError, TemplateError
from .legend import CellBuilder, Legend, lookup
from .tiles import Substance, Tile

if TYPE_CHECKING:  # pragma: no cover
    from .config import DesignerConfig
    from .level import Level, LevelType

Point = Tuple[int, int]
Variant = List[List[CellBuilder]]

log = get_logger("rooms")

ROOM_BUILDER_RETRIES = 100


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


class RoomBuilderContext:
    """Everything one placement created, grouped by template character."""

    def __init__(self, template_id: str = "", origin: Point = (0, 0)):
        self.template_id = template_id
        self.origin = origin
        self.points: Set[Point] = set()
        self.entities_by_key: Dict[str, List[Entity]] = {}
        self.tiles_by_key: Dict[str, List[Tile]] = {}
        self.substances_by_key: Dict[str, List[Substance]] = {}

    def add_entity(self, key: str, entity: Entity) -> None:
        self.entities_by_key.setdefault(key, []).append(entity)

    def add_tile(self, key: str, tile: Tile) -> None:
        self.tiles_by_key.setdefault(key, []).append(tile)

    def add_substance(self, key: str, substance: Substance) -> None:
        self.substances_by_key.setdefault(key, []).append(substance)

    def find_entity(self, key: str) -> Optional[Entity]:
        found = self.entities_by_key.get(key)
        return found[0] if found else None

    def find_entities(self, key: str) -> List[Entity]:
        return self.entities_by_key.get(key, [])

    def find_tiles(self, key: str) -> List[Tile]:
        return self.tiles_by_key.get(key, [])


def parse_template(text: str, legend: Optional[Legend] = None) -> Variant:
    rows = text.strip("\n").split("\n")
    if not rows or not any(row.strip() for row in rows):
        raise TemplateError("empty room template")
    width = len(rows[0])
    for row in rows:
        if len(row) != width:
            raise TemplateError(f"ragged room template row {row!r} (expected width {width})")
    return [[lookup(rows[y][x], legend) for y in range(len(rows))] for x in range(width)]


def rotate_left_90(variant: Variant) -> Variant:
    """Rotate a column-major grid a quarter turn counter-clockwise."""
    width = len(variant)
    height = len(variant[0])
    return [[variant[width - 1 - ny][nx] for ny in range(width)] for nx in range(height)]


class RoomTemplate:
    def __init__(
        self,
        template_id: str,
        templates: Sequence[str],
        rotates: bool = True,
        rarity: Rarity = Rarity.COMMON,
        cost: int = 25,
        level_types: Iterable[str] = (),
        legend: Optional[Legend] = None,
        after_build: Optional[Callable[[RoomBuilderContext], None]] = None,
    ):
        if cost <= 0:
            raise TemplateError(f"room {template_id!r} must have a positive cost")
        if not templates:
            raise TemplateError(f"room {template_id!r} has no layouts")
        self.id = template_id
        self.rotates = rotates
        self.rarity = Rarity(rarity)
        self.cost = cost
        self.level_types = frozenset(level_types)
        self.legend = legend or {}
        self.after_build = after_build
        self.variants: List[Variant] = [parse_template(t, self.legend) for t in templates]

    def __repr__(self) -> str:
        return f"RoomTemplate({self.id!r}, rarity={self.rarity.value}, cost={self.cost})"

    def allows(self, level_type: "LevelType") -> bool:
        return not self.level_types or level_type.name in self.level_types

    def check_rules(self, level: "Level", origin: Point, finalised: Set[Point], variant: Variant) -> bool:
        ox, oy = origin
        for x, column in enumerate(variant):
            for y, cell in enumerate(column):
                pos = (ox + x, oy + y)
                if cell.places_something and pos in finalised:
                    return False
                if cell.constraint is None:
                    continue
                tile = level.get_tile(*pos)
                if tile is None:
                    continue
                if not cell.constraint(tile, level):
                    return False
        return True

    def try_to_build(
        self,
        level: "Level",
        finalised: Set[Point],
        rng: random.Random,
        retries: int = ROOM_BUILDER_RETRIES,
    ) -> Optional[RoomBuilderContext]:
        """Up to ``retries`` random placements; returns the build context or None."""
        for _ in range(retries):
            variant = rng.choice(self.variants)
            if self.rotates:
                for _turn in range(rng.randrange(4)):
                    variant = rotate_left_90(variant)
            width, height = len(variant), len(variant[0])
            if width > level.width or height > level.height:
                continue
            origin = (rng.randint(0, level.width - width), rng.randint(0, level.height - height))
            if not self.check_rules(level, origin, finalised, variant):
                continue
            return self.build(level, origin, finalised, variant, rng)
        return None

    def build(
        self,
        level: "Level",
        origin: Point,
        finalised: Set[Point],
        variant: Variant,
        rng: random.Random,
    ) -> RoomBuilderContext:
        context = RoomBuilderContext(self.id, origin)
        ox, oy = origin
        for x, column in enumerate(variant):
            for y, cell in enumerate(column):
                if not cell.places_something:
                    continue
                pos = (ox + x, oy + y)
                finalised.add(pos)
                context.points.add(pos)

                tile_type = cell.resolve_tile(level)
                if tile_type is not None:
                    tile = Tile(tile_type)
                    level.set_tile(pos[0], pos[1], tile)
                    context.add_tile(cell.key, tile)

                if cell.substance is not None:
                    tile = level.get_tile(*pos)
                    if tile is None:
                        raise GenerationInvariantError(f"no tile for substance at {pos}")
                    substance = cell.substance(level, rng)
                    tile.set_substance(substance)
                    context.add_substance(cell.key, substance)

                if cell.spawn is not None:
                    entity = cell.spawn(level, rng)
                    entity.pos = pos
                    level.add_entity(entity)
                    context.add_entity(cell.key, entity)

        if self.after_build is not None:
            self.after_build(context)
        return context


ROOM_TEMPLATES: Dict[str, RoomTemplate] = {}


def register_room_templates(*templates: RoomTemplate) -> None:
    for template in templates:
        ROOM_TEMPLATES[template.id] = template


def get_room_templates_by_type(level_type: "LevelType") -> List[RoomTemplate]:
    return [t for t in ROOM_TEMPLATES.values() if t.allows(level_type)]


def roll_rarity(rarity: Rarity, rng: random.Random, chance_uncommon: float = 0.25, chance_rare: float = 0.05) -> bool:
    if rarity == Rarity.RARE:
        return rng.random() < chance_rare
    if rarity == Rarity.UNCOMMON:
        return rng.random() < chance_uncommon
    return True


def add_rooms(
    level: "Level",
    finalised: Set[Point],
    rng: random.Random,
    config: "DesignerConfig",
    metrics: Optional[dict] = None,
    templates: Optional[Sequence[RoomTemplate]] = None,
) -> List[RoomBuilderContext]:
    """Spend a random budget placing eligible templates.

    Uncommon and rare templates get one chance per level; common templates go
    back in the queue after each successful placement.
    """
    metrics = metrics if metrics is not None else {}
    candidates = list(templates) if templates is not None else get_room_templates_by_type(level.type)
    rng.shuffle(candidates)
    queue = deque(candidates)
    budget = rng.randint(config.room_budget_min, config.room_budget_max)
    metrics["room_budget"] = budget
    placed: List[RoomBuilderContext] = []

    while queue:
        template = queue.popleft()
        if not roll_rarity(template.rarity, rng, config.chance_uncommon, config.chance_rare):
            metrics["rooms_skipped_rarity"] = metrics.get("rooms_skipped_rarity", 0) + 1
            continue
        if template.cost > budget:
            metrics["rooms_skipped_budget"] = metrics.get("rooms_skipped_budget", 0) + 1
            continue

        context = template.try_to_build(level, finalised, rng, config.room_retries)
        if context is None:
            metrics["rooms_failed"] = metrics.get("rooms_failed", 0) + 1
            log.debug(event="room_failed", room=template.id)
        else:
            budget -= template.cost
            placed.append(context)
            metrics["rooms_placed"] = metrics.get("rooms_placed", 0) + 1
            log.debug(event="room_placed", room=template.id, x=context.origin[0], y=context.origin[1], budget=budget)
            if template.rarity == Rarity.COMMON:
                queue.append(template)

        if budget <= config.room_budget_low_water:
            break
    return placed


__all__ = [
    "Rarity",
    "RoomBuilderContext",
    "RoomTemplate",
    "ROOM_TEMPLATES",
    "ROOM_BUILDER_RETRIES",
    "parse_template",
    "rotate_left_90",
    "register_room_templates",
    "get_room_templates_by_type",
    "roll_rarity",
    "add_rooms",
]
