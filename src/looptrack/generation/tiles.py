"""
Track tiles - Pieces placed on a four-way grid and their local geometry.

Defines:
- TilePiece: straight and corner pieces
- PlacedTile: a piece in a grid cell with its entry side
- Local centerline points of a piece in unit-tile space
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np

from looptrack.curve.smoothing import add_unique
from looptrack.grid.directions import GridNode, TileDir, offset

TILE_POINT_COUNT = 7


class TilePiece(Enum):
    """Placeable track pieces."""
    STRAIGHT = "straight"
    CORNER_LEFT = "corner_left"
    CORNER_RIGHT = "corner_right"

    @property
    def turn_sign(self) -> int:
        """+1 for a left corner, -1 for a right corner, 0 for a straight."""
        if self is TilePiece.CORNER_LEFT:
            return 1
        if self is TilePiece.CORNER_RIGHT:
            return -1
        return 0


PIECE_ORDER: Tuple[TilePiece, ...] = (
    TilePiece.STRAIGHT,
    TilePiece.CORNER_LEFT,
    TilePiece.CORNER_RIGHT,
)


def resolve_exit(piece: TilePiece, entry: TileDir) -> TileDir:
    """Side through which a piece is left, given the side it is entered by.

    Args:
        piece: Piece type
        entry: Side of the cell the track comes in through

    Returns:
        Exit side of the cell
    """
    heading = entry.opposite
    if piece is TilePiece.CORNER_LEFT:
        return heading.turn_left()
    if piece is TilePiece.CORNER_RIGHT:
        return heading.turn_right()
    return heading


@dataclass(frozen=True)
class PlacedTile:
    """A piece placed in a grid cell.

    Only the entry side is stored; the exit side and the next cell are
    derived from the piece type.
    """
    cell: GridNode
    entry: TileDir
    piece: TilePiece

    @property
    def exit(self) -> TileDir:
        return resolve_exit(self.piece, self.entry)

    @property
    def next_cell(self) -> GridNode:
        return offset(self.cell, self.exit.delta)

    @property
    def next_entry(self) -> TileDir:
        return self.exit.opposite

    def get_state(self) -> dict:
        return {
            "cell": self.cell,
            "entry": self.entry.name.lower(),
            "piece": self.piece.value,
        }


# Edge midpoints of the unit tile [0, 1] x [0, 1]
EDGE_MIDPOINTS = {
    TileDir.NORTH: (0.5, 1.0),
    TileDir.EAST: (1.0, 0.5),
    TileDir.SOUTH: (0.5, 0.0),
    TileDir.WEST: (0.0, 0.5),
}


def corner_pivot(a: TileDir, b: TileDir) -> Tuple[float, float]:
    """Tile corner shared by two perpendicular sides."""
    sides = {a, b}
    x = 1.0 if TileDir.EAST in sides else 0.0
    y = 1.0 if TileDir.NORTH in sides else 0.0
    return (x, y)


def line_points(start, end, steps: int = TILE_POINT_COUNT) -> np.ndarray:
    t = np.linspace(0.0, 1.0, steps)[:, None]
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    return start + (end - start) * t


def quarter_arc_points(start, end, center, steps: int = TILE_POINT_COUNT) -> np.ndarray:
    """Tessellate the radius-0.5 arc from start to end around center."""
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64)

    start_angle = math.atan2(start[1] - center[1], start[0] - center[0])
    end_angle = math.atan2(end[1] - center[1], end[0] - center[0])
    delta = (end_angle - start_angle + math.pi) % (2 * math.pi) - math.pi

    angles = start_angle + delta * np.linspace(0.0, 1.0, steps)
    pts = center + 0.5 * np.column_stack([np.cos(angles), np.sin(angles)])

    # Pin the ends exactly onto the edge midpoints
    pts[0] = start
    pts[-1] = end
    return pts


def local_points(piece: TilePiece, entry: TileDir) -> np.ndarray:
    """Centerline of a piece in unit-tile coordinates.

    Args:
        piece: Piece type
        entry: Entry side

    Returns:
        (7, 2) array from the entry edge midpoint to the exit edge midpoint
    """
    exit_side = resolve_exit(piece, entry)
    start = EDGE_MIDPOINTS[entry]
    end = EDGE_MIDPOINTS[exit_side]

    if piece is TilePiece.STRAIGHT:
        return line_points(start, end)

    return quarter_arc_points(start, end, corner_pivot(entry, exit_side))


def tiles_to_world(tiles: List[PlacedTile], cell_size: float) -> List[np.ndarray]:
    """Stitch local tile centerlines into one raw world polyline.

    Cell (x, y) is centered on (x * cell_size, y * cell_size).
    Consecutive coincident points are dropped.
    """
    stitched: List[np.ndarray] = []
    for tile in tiles:
        center = np.array(tile.cell, dtype=np.float64) * cell_size
        for point in local_points(tile.piece, tile.entry):
            add_unique(stitched, center + (point - 0.5) * cell_size)
    return stitched
