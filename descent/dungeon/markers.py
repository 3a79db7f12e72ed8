"""Dense 2D buffer of Floor/Wall markers.

The buffer is column-major (``cells[x][y]``) like the rest of the dungeon
package. Reads outside the grid return the configured sentinel and writes
outside the grid are ignored, so operators never need their own bounds checks.
"""
from __future__ import annotations

from enum import IntEnum, IntFlag
from typing import Callable, Iterator, List, Set, Tuple, TypeVar

Point = Tuple[int, int]
T = TypeVar("T")


class Marker(IntEnum):
    FLOOR = 0
    WALL = 1


class Symmetry(IntFlag):
    NONE = 0
    HORIZONTAL = 1
    VERTICAL = 2
    BOTH = 3


MARKER_CHARS = {Marker.FLOOR: ".", Marker.WALL: "#"}


class MarkerGrid:
    def __init__(self, width: int, height: int, out_of_bounds: Marker = Marker.WALL):
        self.width = width
        self.height = height
        self.out_of_bounds = out_of_bounds
        self.cells: List[List[Marker]] = [[Marker.FLOOR for _ in range(height)] for _ in range(width)]

    @classmethod
    def from_ascii(cls, text: str, out_of_bounds: Marker = Marker.WALL) -> "MarkerGrid":
        """Parse rows of '#' (wall) and anything else (floor)."""
        rows = [row for row in text.strip("\n").splitlines()]
        grid = cls(len(rows[0]), len(rows), out_of_bounds)
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                grid.set(x, y, Marker.WALL if ch == "#" else Marker.FLOOR)
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Marker:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.cells[x][y]
        return self.out_of_bounds

    def set(self, x: int, y: int, marker: Marker) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.cells[x][y] = marker

    def fill(self, marker: Marker) -> "MarkerGrid":
        for column in self.cells:
            for y in range(self.height):
                column[y] = marker
        return self

    def reset(self) -> "MarkerGrid":
        return self.fill(Marker.FLOOR)

    def dig(self, x: int, y: int, symmetry: Symmetry = Symmetry.NONE, marker: Marker = Marker.FLOOR) -> None:
        """Write a marker, mirrored across the grid according to ``symmetry``."""
        self.set(x, y, marker)
        if symmetry & Symmetry.VERTICAL:
            self.set(self.width - 1 - x, y, marker)
        if symmetry & Symmetry.HORIZONTAL:
            self.set(x, self.height - 1 - y, marker)
        if symmetry == Symmetry.BOTH:
            self.set(self.width - 1 - x, self.height - 1 - y, marker)

    def circle(self, x: int, y: int, radius: int, marker: Marker = Marker.FLOOR) -> "MarkerGrid":
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if dx * dx + dy * dy <= radius * radius:
                    self.set(x + dx, y + dy, marker)
        return self

    def invert(self) -> "MarkerGrid":
        for column in self.cells:
            for y in range(self.height):
                column[y] = Marker.WALL if column[y] == Marker.FLOOR else Marker.FLOOR
        return self

    def points(self) -> Iterator[Point]:
        for x in range(self.width):
            for y in range(self.height):
                yield x, y

    def count(self, marker: Marker) -> int:
        return sum(1 for column in self.cells for m in column if m == marker)

    def snapshot(self) -> List[List[Marker]]:
        return [list(column) for column in self.cells]

    def floor_points(self) -> Set[Point]:
        return {(x, y) for x, y in self.points() if self.cells[x][y] == Marker.FLOOR}

    def build(self, mapper: Callable[[Marker], T]) -> List[List[T]]:
        """Map every marker to a value, preserving the column-major layout."""
        return [[mapper(m) for m in column] for column in self.cells]

    def to_ascii(self) -> str:
        return "\n".join(
            "".join(MARKER_CHARS[self.cells[x][y]] for x in range(self.width)) for y in range(self.height)
        )


__all__ = ["Marker", "Symmetry", "MarkerGrid", "Point"]
