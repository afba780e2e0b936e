"""
Tile loop builder - Closed loops assembled from straight and corner tiles.

Generates:
- Weighted random tile chains grown from the origin
- Breadth-first closure back to the origin
- Pinch-free, edge-disjoint loops on a four-way grid
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from looptrack.curve.smoothing import CurveConfig, smooth_and_resample
from looptrack.generation.candidate import LoopBuilder, Strategy
from looptrack.generation.tiles import PIECE_ORDER, PlacedTile, TilePiece, tiles_to_world
from looptrack.grid.directions import ORIGIN, GridNode, TileDir
from looptrack.grid.geometry import (
    canonical_edge,
    creates_pinch,
    inside_bounds,
    validate_half_extents,
)
from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.scoring.heuristics import LoopQuality, TileQualityConfig, evaluate_tile_loop

logger = logging.getLogger(__name__)

State = Tuple[GridNode, TileDir]


@dataclass
class TileConfig:
    """Configuration for the tile-placement builder."""
    attempt_count: int = 20
    attempt_salt: int = 0x7A3D

    # Grid sizing
    cell_size: float = 6.0
    margin_cells: int = 2
    min_half_cells: int = 4

    # Path length
    min_cells: int = 40
    max_cells: int = 120
    closure_depth: int = 12

    # Piece weights (straight, left, right)
    piece_weights: Tuple[float, float, float] = (0.60, 0.20, 0.20)
    late_piece_weights: Tuple[float, float, float] = (0.80, 0.10, 0.10)
    min_turn_budget: int = 8

    # Start cell is entered through this side
    start_entry: TileDir = TileDir.WEST

    def __post_init__(self):
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if self.min_cells < 4 or self.max_cells < self.min_cells:
            raise ValueError(f"Invalid cell bounds [{self.min_cells}, {self.max_cells}]")
        if len(self.piece_weights) != 3 or len(self.late_piece_weights) != 3:
            raise ValueError("Piece weights need one entry per piece type")
        if self.attempt_count < 1 or self.closure_depth < 1:
            raise ValueError("attempt_count and closure_depth must be >= 1")


class TileLoopBuilder(LoopBuilder):
    """Tile-placement loop builder on a 4-directional grid.

    Each attempt grows a chain of tiles from the origin cell. Pieces are
    picked by weight and accepted when the next cell is inside the grid,
    free, reached over an unused edge and does not pinch the track.
    After min_cells tiles a breadth-first search looks for a short tile
    chain back into the origin; the first loop found is gated and scored.

    Usage:
        builder = TileLoopBuilder(48.0, 48.0)
        result = builder.attempt(Pcg32Stream(seed))
    """

    strategy = Strategy.TILE

    def __init__(
        self,
        half_width: float,
        half_height: float,
        config: TileConfig | None = None,
        quality: TileQualityConfig | None = None,
        curve: CurveConfig | None = None,
    ):
        """Initialize builder for an arena.

        Args:
            half_width: Arena half width in world units
            half_height: Arena half height in world units
            config: Builder configuration
            quality: Quality gates (cell bounds follow the builder config)
            curve: Post-processing configuration

        Raises:
            ValueError: If a half extent is not positive
        """
        validate_half_extents(half_width, half_height)

        self.config = config or TileConfig()
        self.quality = quality or TileQualityConfig(
            min_cells=self.config.min_cells,
            max_cells=self.config.max_cells,
        )
        self.curve = curve or CurveConfig()
        self.attempt_count = self.config.attempt_count
        self.attempt_salt = self.config.attempt_salt

        self.cell_size = self.config.cell_size
        margin = self.cell_size * self.config.margin_cells
        self.max_x = max(
            self.config.min_half_cells,
            math.floor((half_width - margin) / self.cell_size),
        )
        self.max_y = max(
            self.config.min_half_cells,
            math.floor((half_height - margin) / self.cell_size),
        )
        self.max_steps = min(
            self.config.max_cells,
            max(self.config.min_cells + 8, (self.max_x + self.max_y) * 6),
        )

    def attempt(self, stream: Pcg32Stream) -> Optional[Tuple[Tuple[PlacedTile, ...], LoopQuality]]:
        """Grow one tile loop and score it.

        Args:
            stream: RNG stream owned by this attempt

        Returns:
            Tuple of (placed tiles, quality) or None
        """
        tiles = self.grow_loop(stream)
        if tiles is None:
            logger.debug("tile attempt seed=%d: no closure", stream.seed)
            return None

        quality = self.evaluate(tiles)
        if quality is None:
            logger.debug(
                "tile attempt seed=%d: closed with %d tiles, rejected by gates",
                stream.seed, len(tiles),
            )
            return None

        return tuple(tiles), quality

    def evaluate(self, tiles: Sequence[PlacedTile]) -> Optional[LoopQuality]:
        """Gate and score a closed tile chain."""
        return evaluate_tile_loop(
            [tile.cell for tile in tiles],
            [tile.piece.turn_sign for tile in tiles],
            self.quality,
        )

    def grow_loop(self, stream: Pcg32Stream) -> Optional[List[PlacedTile]]:
        """Place tiles from the origin until a closure is found.

        Args:
            stream: RNG stream owned by this attempt

        Returns:
            Tiles in track order (the last tile leads back into the origin),
            or None
        """
        path: List[PlacedTile] = []
        occupied_cells: Set[GridNode] = {ORIGIN}
        occupied_edges = set()
        cell = ORIGIN
        entry = self.config.start_entry

        for step in range(self.max_steps):
            if step >= self.config.min_cells:
                closure = self.find_closure(cell, entry, occupied_cells, occupied_edges)
                if closure is not None:
                    return path + closure

            placed = self._pick_next_tile(cell, entry, stream, occupied_cells, occupied_edges, step)
            if placed is None:
                return None

            occupied_edges.add(canonical_edge(cell, placed.next_cell))
            occupied_cells.add(placed.next_cell)
            path.append(placed)
            cell = placed.next_cell
            entry = placed.next_entry

        return None

    def _pick_next_tile(
        self,
        cell: GridNode,
        entry: TileDir,
        stream: Pcg32Stream,
        occupied_cells: Set[GridNode],
        occupied_edges: set,
        step: int,
    ) -> Optional[PlacedTile]:
        """Try pieces in weighted random order and return the first that fits."""
        turn_budget = max(self.config.min_turn_budget, step // 2)
        if step > turn_budget * 3:
            weights = list(self.config.late_piece_weights)
        else:
            weights = list(self.config.piece_weights)

        for _ in range(len(PIECE_ORDER)):
            if sum(weights) <= 0:
                break
            index = stream.pick_index_weighted(weights)
            weights[index] = 0.0

            tile = PlacedTile(cell, entry, PIECE_ORDER[index])
            target = tile.next_cell

            if not inside_bounds(target, self.max_x, self.max_y):
                continue
            if target in occupied_cells:
                continue
            if canonical_edge(cell, target) in occupied_edges:
                continue
            if creates_pinch(occupied_cells, target, cell):
                continue

            return tile

        return None

    def find_closure(
        self,
        cell: GridNode,
        entry: TileDir,
        occupied_cells: Set[GridNode],
        occupied_edges: set,
    ) -> Optional[List[PlacedTile]]:
        """Breadth-first search for a tile chain back into the origin.

        States are (cell, entry side). The goal is the origin entered
        through the start side. Backpointers map each reached state to
        its predecessor state and the piece placed there.

        Args:
            cell: Cell the next tile goes into
            entry: Side through which that cell is entered
            occupied_cells: Cells already holding tiles
            occupied_edges: Cell-to-cell edges already used

        Returns:
            Tiles from cell up to the origin (exclusive), or None
        """
        goal: State = (ORIGIN, self.config.start_entry)
        root: State = (cell, entry)
        came_from: Dict[State, Tuple[State, TilePiece]] = {}
        visited = {root}
        queue = deque([(root, 0)])

        while queue:
            state, depth = queue.popleft()
            if depth > self.config.closure_depth:
                continue

            if depth > 0 and state == goal:
                return self._reconstruct(came_from, state, root, occupied_cells)

            current_cell, current_entry = state
            for piece in PIECE_ORDER:
                tile = PlacedTile(current_cell, current_entry, piece)
                target = tile.next_cell
                next_state = (target, tile.next_entry)

                if not inside_bounds(target, self.max_x, self.max_y):
                    continue
                if target == ORIGIN:
                    if next_state != goal:
                        continue
                elif target in occupied_cells:
                    continue
                if canonical_edge(current_cell, target) in occupied_edges:
                    continue
                if next_state in visited:
                    continue

                visited.add(next_state)
                came_from[next_state] = (state, piece)
                queue.append((next_state, depth + 1))

        return None

    @staticmethod
    def _reconstruct(
        came_from: Dict[State, Tuple[State, TilePiece]],
        end: State,
        root: State,
        occupied_cells: Set[GridNode],
    ) -> Optional[List[PlacedTile]]:
        """Walk backpointers from end to root.

        Returns:
            Tiles in track order, or None if the chain revisits a cell
        """
        reversed_tiles: List[PlacedTile] = []
        cursor = end
        while cursor != root:
            previous, piece = came_from[cursor]
            reversed_tiles.append(PlacedTile(previous[0], previous[1], piece))
            cursor = previous

        reversed_tiles.reverse()

        cells = [tile.cell for tile in reversed_tiles]
        if len(set(cells)) != len(cells):
            return None
        # Only the root cell may already be occupied (it was claimed by the last step)
        if any(c in occupied_cells for c in cells[1:]):
            return None
        return reversed_tiles

    def world_points(self, tiles) -> np.ndarray:
        """Convert placed tiles into the final resampled polyline."""
        return smooth_and_resample(tiles_to_world(list(tiles), self.cell_size), self.curve)
