"""Named terrain recipes.

A recipe is a fixed operator pipeline ``(digger, entrance) -> None``; all of
its randomness comes from ``digger.rng``.
"""
from __future__ import annotations

from typing import Callable, Dict

from .digger import (
    CARDINAL_DIRECTIONS,
    INTERCARDINAL_DIRECTIONS,
    CellularAutomataRules,
    Digger,
    Spades,
    rotate_right_45,
)
from .markers import Marker, Point, Symmetry

TerrainDigger = Callable[[Digger, Point], None]


def ruinous(digger: Digger, entrance: Point) -> None:
    digger.fill(Marker.WALL)

    # Symmetric 1x1 tunnels lay out something that looks built.
    digger.tunnels(
        start=entrance,
        iterations=20,
        spawn_chance=0.4,
        death_chance=0.02,
        mutation_chance=0.5,
        turn_chance=0.6,
        symmetry=Symmetry.BOTH,
        spades=[Spades.ONE_BY_ONE],
        directions=CARDINAL_DIRECTIONS,
    )

    # The skeleton becomes walls, then a second generation erodes them.
    digger.invert()
    digger.tunnels(
        start=entrance,
        iterations=30,
        spawn_chance=0.4,
        death_chance=0.01,
        mutation_chance=0.5,
        spades=[Spades.ONE_BY_ONE, Spades.TWO_BY_TWO, Spades.CROSS],
        directions=CARDINAL_DIRECTIONS,
    )

    digger.add_perimeter_wall()
    digger.radial_noise(0.1)
    digger.cellular_automata(CellularAutomataRules.SMOOTHING)


def alien(digger: Digger, entrance: Point) -> None:
    digger.add_bit_pattern(digger.rng.randrange(0x100))
    digger.cellular_automata(CellularAutomataRules.ALIEN)
    digger.cellular_automata(CellularAutomataRules.SMOOTHING, iterations=100)
    digger.tunnels(
        start=entrance,
        iterations=30,
        spawn_chance=0.4,
        mutation_chance=0.5,
        spades=[Spades.ONE_BY_ONE],
        directions=CARDINAL_DIRECTIONS,
    )
    digger.add_perimeter_wall()


def cavernous(digger: Digger, entrance: Point) -> None:
    digger.noise(0.5)
    digger.cellular_automata(CellularAutomataRules.CAVES)
    digger.add_perimeter_wall()


def chaotic_caverns(digger: Digger, entrance: Point) -> None:
    digger.noise(0.5)
    digger.cellular_automata(CellularAutomataRules.CHAOTIC_CAVERNS)
    digger.add_perimeter_wall()


def volcanic(digger: Digger, entrance: Point) -> None:
    # Closed caves first.
    digger.noise(0.5)
    digger.cellular_automata(CellularAutomataRules.CAVES)

    # A single wide worm that only ever veers clockwise.
    digger.tunnels(
        start=entrance,
        iterations=100,
        spawn_chance=0,
        turn_chance=0.3,
        spades=[Spades.TWO_BY_TWO],
        directions=INTERCARDINAL_DIRECTIONS,
        turns=[rotate_right_45],
    )
    digger.add_perimeter_wall()


def maze(digger: Digger, entrance: Point) -> None:
    digger.create_maze()


TERRAINS: Dict[str, TerrainDigger] = {
    "ruinous": ruinous,
    "alien": alien,
    "cavernous": cavernous,
    "chaotic_caverns": chaotic_caverns,
    "volcanic": volcanic,
    "maze": maze,
}


def get_terrain(name: str) -> TerrainDigger:
    try:
        return TERRAINS[name]
    except KeyError:
        raise KeyError(f"unknown terrain recipe {name!r}") from None


__all__ = ["TerrainDigger", "TERRAINS", "get_terrain", "ruinous", "alien", "cavernous", "chaotic_caverns", "volcanic", "maze"]
