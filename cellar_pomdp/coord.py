"""
Grid coordinates and compass directions.

Coordinates are (x, y) with x growing East and y growing North. The agent
starts on the west edge and leaves the grid by stepping East off the last
column, so an x equal to the grid size is a legal "exited" position.
"""

from __future__ import annotations

import math
from enum import IntEnum
from typing import List, NamedTuple, Tuple


class Compass(IntEnum):
    """The four cardinal directions, in action-code order."""
    NORTH = 0
    SOUTH = 1
    EAST = 2
    WEST = 3

    def delta(self) -> Tuple[int, int]:
        """x, y displacement for this direction."""
        return {
            Compass.NORTH: (0, 1),
            Compass.SOUTH: (0, -1),
            Compass.EAST: (1, 0),
            Compass.WEST: (-1, 0),
        }[self]

    def opposite(self) -> "Compass":
        return {
            Compass.NORTH: Compass.SOUTH,
            Compass.SOUTH: Compass.NORTH,
            Compass.EAST: Compass.WEST,
            Compass.WEST: Compass.EAST,
        }[self]

    @staticmethod
    def all() -> List["Compass"]:
        return [Compass.NORTH, Compass.SOUTH, Compass.EAST, Compass.WEST]


class Coord(NamedTuple):
    """A grid tile."""
    x: int
    y: int

    def step(self, direction: Compass) -> Coord:
        dx, dy = direction.delta()
        return Coord(self.x + dx, self.y + dy)

    def inside(self, size: int) -> bool:
        return 0 <= self.x < size and 0 <= self.y < size

    def manhattan(self, other: Coord) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def euclidean(self, other: Coord) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def __repr__(self) -> str:
        return f"({self.x},{self.y})"
