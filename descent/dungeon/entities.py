"""Entities spawned into levels by room templates and content placement."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .level import GameSession, Level

Point = Tuple[int, int]


class Entity:
    name = "entity"
    glyph = "?"
    kind = "prop"
    blocking = True

    def __init__(self, pos: Point = (0, 0)):
        self.pos = pos

    def to_dict(self):
        return {"name": self.name, "kind": self.kind, "glyph": self.glyph, "x": self.pos[0], "y": self.pos[1]}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(pos={self.pos})"


class Player(Entity):
    name = "player"
    glyph = "@"
    kind = "player"

    def __init__(self, pos: Point = (0, 0)):
        super().__init__(pos)
        self.currency = 0

    def add_currency(self, amount: int) -> None:
        self.currency += amount


class Chest(Entity):
    name = "chest"
    glyph = "$"
    kind = "reward"

    def __init__(self, pos: Point = (0, 0), currency: int = 0, rarity: str = "common"):
        super().__init__(pos)
        self.currency = currency
        self.rarity = rarity
        self.opened = False

    def open(self, entity: Entity, session: "GameSession") -> None:
        if self.opened:
            return
        self.opened = True
        if isinstance(entity, Player) and self.currency:
            entity.add_currency(self.currency)
            session.log(f"Found {self.currency} coins")
        session.level.remove_entity(self)

    def to_dict(self):
        data = super().to_dict()
        data.update(currency=self.currency, rarity=self.rarity)
        return data


class Crate(Entity):
    name = "crate"
    glyph = "="


class Lever(Entity):
    """Runs its trigger the first time it is pulled; later pulls do nothing."""

    name = "lever"
    glyph = "/"

    def __init__(self, pos: Point = (0, 0)):
        super().__init__(pos)
        self.triggers: Optional[Callable[["GameSession"], None]] = None
        self.pulled = False

    def pull(self, session: "GameSession") -> None:
        self.pulled = True
        triggers, self.triggers = self.triggers, None
        if triggers is not None:
            triggers(session)


class RollEffect:
    """Moves a boulder one cell per tick until the next cell is not empty."""

    def __init__(self, boulder: "Boulder", direction: Point, level: "Level"):
        self.boulder = boulder
        self.direction = direction
        self.level = level

    def tick(self) -> Optional[int]:
        x, y = self.boulder.pos
        nxt = (x + self.direction[0], y + self.direction[1])
        if not self.level.is_empty(nxt):
            self.boulder.rolling = False
            return None
        self.boulder.pos = nxt
        return 1


class Boulder(Entity):
    name = "boulder"
    glyph = "O"

    def __init__(self, pos: Point = (0, 0)):
        super().__init__(pos)
        self.rolling = False

    def push(self, direction: Point, level: "Level") -> None:
        if self.rolling:
            return
        self.rolling = True
        level.add_effect(RollEffect(self, direction, level))


class Ballista(Entity):
    name = "ballista"
    glyph = "B"


class Monster(Entity):
    kind = "monster"
    rarity = "common"


class Slime(Monster):
    name = "slime"
    glyph = "s"


class UncommonSlime(Monster):
    name = "acid slime"
    glyph = "S"
    rarity = "uncommon"


class RareSlime(Monster):
    name = "king slime"
    glyph = "K"
    rarity = "rare"


class Bat(Monster):
    name = "bat"
    glyph = "b"


class Salamander(Monster):
    name = "salamander"
    glyph = "l"
    rarity = "uncommon"


class Golem(Monster):
    name = "golem"
    glyph = "G"
    rarity = "rare"


def direction_between(source: Point, target: Point) -> Point:
    """Unit step (per axis) pointing from ``source`` toward ``target``."""
    dx = target[0] - source[0]
    dy = target[1] - source[1]
    return (dx > 0) - (dx < 0), (dy > 0) - (dy < 0)


__all__ = [
    "Entity",
    "Player",
    "Chest",
    "Crate",
    "Lever",
    "Boulder",
    "RollEffect",
    "Ballista",
    "Monster",
    "Slime",
    "UncommonSlime",
    "RareSlime",
    "Bat",
    "Salamander",
    "Golem",
    "direction_between",
]
