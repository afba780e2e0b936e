"""
Grid directions - Octile and four-way step directions.

Defines:
- Dir8: 8 octile directions, counter-clockwise from east
- TileDir: 4 tile sides / headings, clockwise from north
- Turn helpers and vector lookups
"""

from enum import IntEnum
from typing import Optional, Tuple

GridNode = Tuple[int, int]

ORIGIN: GridNode = (0, 0)


class Dir8(IntEnum):
    """Octile step directions (45 degrees apart, counter-clockwise)."""
    E = 0
    NE = 1
    N = 2
    NW = 3
    W = 4
    SW = 5
    S = 6
    SE = 7


DIR8_DELTAS: Tuple[GridNode, ...] = (
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)

SQRT2 = 1.41421356


def turn_left_45(direction: int) -> int:
    return (direction + 1) & 7


def turn_right_45(direction: int) -> int:
    return (direction + 7) & 7


def turn_left_90(direction: int) -> int:
    return (direction + 2) & 7


def turn_right_90(direction: int) -> int:
    return (direction + 6) & 7


def reverse8(direction: int) -> int:
    return (direction + 4) & 7


def is_diagonal(direction: int) -> bool:
    return (direction & 1) == 1


def step_length(direction: int) -> float:
    """Length of one step in grid units."""
    return SQRT2 if is_diagonal(direction) else 1.0


def dir8_delta(direction: int) -> GridNode:
    return DIR8_DELTAS[direction & 7]


def vec_to_dir8(dx: int, dy: int) -> Optional[int]:
    """Map a unit step vector to its octile direction.

    Returns:
        Direction index, or None if the vector is not a unit step
    """
    try:
        return DIR8_DELTAS.index((dx, dy))
    except ValueError:
        return None


def dir8_toward(src: GridNode, dst: GridNode) -> Optional[int]:
    """Octile direction from src toward dst (components clamped to -1..1)."""
    dx = max(-1, min(1, dst[0] - src[0]))
    dy = max(-1, min(1, dst[1] - src[1]))
    return vec_to_dir8(dx, dy)


def normalize_turn(turn: int) -> int:
    """Wrap an octile direction difference into [-4, 4]."""
    while turn > 4:
        turn -= 8
    while turn < -4:
        turn += 8
    return turn


class TileDir(IntEnum):
    """Tile sides and headings (clockwise from north)."""
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def opposite(self) -> "TileDir":
        return TileDir((self + 2) & 3)

    def turn_left(self) -> "TileDir":
        return TileDir((self + 3) & 3)

    def turn_right(self) -> "TileDir":
        return TileDir((self + 1) & 3)

    @property
    def delta(self) -> GridNode:
        return TILE_DELTAS[self]


TILE_DELTAS = {
    TileDir.NORTH: (0, 1),
    TileDir.EAST: (1, 0),
    TileDir.SOUTH: (0, -1),
    TileDir.WEST: (-1, 0),
}


def offset(node: GridNode, delta: GridNode) -> GridNode:
    return (node[0] + delta[0], node[1] + delta[1])
