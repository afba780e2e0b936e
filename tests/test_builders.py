"""Tests for the looptrack loop builders."""

import pytest
import numpy as np

from looptrack.generation.candidate import Strategy
from looptrack.generation.snapped import SnappedConfig, SnappedLoopBuilder
from looptrack.generation.tile import TileConfig, TileLoopBuilder
from looptrack.generation.tiles import (
    PlacedTile,
    TilePiece,
    local_points,
    resolve_exit,
    tiles_to_world,
)
from looptrack.grid.directions import ORIGIN, TileDir, vec_to_dir8
from looptrack.grid.geometry import canonical_edge, inside_bounds, is_simple_loop
from looptrack.rng.pcg32 import Pcg32Stream

from test_heuristics import JOG_LOOP, JOG_TILES, place


class TestTilePieces:
    """Test tile piece geometry."""

    def test_resolve_exit(self):
        """Test exits relative to the heading."""
        assert resolve_exit(TilePiece.STRAIGHT, TileDir.WEST) == TileDir.EAST
        assert resolve_exit(TilePiece.CORNER_LEFT, TileDir.WEST) == TileDir.NORTH
        assert resolve_exit(TilePiece.CORNER_RIGHT, TileDir.WEST) == TileDir.SOUTH
        assert resolve_exit(TilePiece.CORNER_LEFT, TileDir.SOUTH) == TileDir.WEST

    def test_placed_tile(self):
        """Test the next cell and entry of a placed tile."""
        tile = PlacedTile((2, 3), TileDir.WEST, TilePiece.CORNER_LEFT)

        assert tile.exit == TileDir.NORTH
        assert tile.next_cell == (2, 4)
        assert tile.next_entry == TileDir.SOUTH
        assert tile.get_state()["piece"] == "corner_left"

    def test_local_straight(self):
        """Test a straight runs between opposite edge midpoints."""
        points = local_points(TilePiece.STRAIGHT, TileDir.WEST)

        assert points.shape == (7, 2)
        assert np.allclose(points[0], [0.0, 0.5])
        assert np.allclose(points[-1], [1.0, 0.5])

    def test_local_corner(self):
        """Test a corner is a quarter arc around the shared tile corner."""
        points = local_points(TilePiece.CORNER_LEFT, TileDir.WEST)
        radii = np.linalg.norm(points - np.array([0.0, 1.0]), axis=1)

        assert np.allclose(points[0], [0.0, 0.5])
        assert np.allclose(points[-1], [0.5, 1.0])
        assert np.allclose(radii, 0.5)

    def test_tiles_to_world(self):
        """Test tiles are centered on their scaled cells."""
        tiles = [
            PlacedTile(ORIGIN, TileDir.WEST, TilePiece.STRAIGHT),
            PlacedTile((1, 0), TileDir.WEST, TilePiece.STRAIGHT),
        ]
        points = tiles_to_world(tiles, 6.0)

        assert np.allclose(points[0], [-3.0, 0.0])
        assert np.allclose(points[-1], [9.0, 0.0])
        # Shared edge midpoint appears once
        assert len(points) == 13


class TestSnappedLoopBuilder:
    """Test the random-walk builder."""

    def test_grid_sizing(self):
        """Test cell size and grid extents."""
        builder = SnappedLoopBuilder(32.0, 32.0)

        assert builder.cell_size == 3.5
        assert builder.max_x == 7
        assert builder.max_y == 7
        assert builder.strategy == Strategy.SNAPPED

        wide = SnappedLoopBuilder(100.0, 50.0)
        assert wide.cell_size == pytest.approx(4.0)
        assert wide.max_x == 23
        assert wide.max_y == 10

    def test_invalid_extents(self):
        """Test non-positive extents are rejected."""
        with pytest.raises(ValueError):
            SnappedLoopBuilder(0.0, 32.0)
        with pytest.raises(ValueError):
            SnappedLoopBuilder(32.0, -4.0)

    def test_invalid_config(self):
        """Test inconsistent configs are rejected."""
        with pytest.raises(ValueError):
            SnappedConfig(min_segments=50, max_segments=40)
        with pytest.raises(ValueError):
            SnappedConfig(straight_band=0.9, turn45_band=0.5)

    def test_attempt_deterministic(self):
        """Test an attempt depends only on its stream seed."""
        builder = SnappedLoopBuilder(40.0, 40.0)
        for seed in range(10):
            first = builder.attempt(Pcg32Stream(seed))
            second = builder.attempt(Pcg32Stream(seed))
            assert first == second

    def test_accepted_loops(self, snapped_search):
        """Test accepted loops are closed, simple, bounded and gated."""
        builder = SnappedLoopBuilder(32.0, 32.0)
        assert snapped_search.candidates

        for candidate in snapped_search.candidates:
            result = builder.attempt(Pcg32Stream(candidate.seed))
            assert result is not None
            nodes, quality = result

            assert nodes == candidate.path
            assert quality == candidate.quality
            assert nodes[0] == ORIGIN
            assert nodes[-1] == ORIGIN
            assert is_simple_loop(nodes)
            assert all(inside_bounds(node, builder.max_x, builder.max_y) for node in nodes)
            assert 40 <= quality.segment_count <= 120
            assert quality.segment_count == len(nodes) - 1
            assert quality.turn_count >= 6
            assert quality.has_hairpin and quality.has_chicane
            assert quality.aspect_ratio <= 2.8

    def test_grown_paths(self, snapped_search):
        """Test raw walks stay on unit steps except for the final closure."""
        builder = SnappedLoopBuilder(32.0, 32.0)
        nodes = builder.grow_loop(Pcg32Stream(snapped_search.best.seed))

        assert nodes is not None
        assert tuple(nodes) == snapped_search.best.path
        assert nodes[-1] == ORIGIN
        interior = nodes[:-1]
        assert len(set(interior)) == len(interior)
        for a, b in zip(nodes[:-2], nodes[1:-1]):
            assert vec_to_dir8(b[0] - a[0], b[1] - a[1]) is not None

    def test_evaluate(self):
        """Test the builder gates a hand-built loop with its own config."""
        builder = SnappedLoopBuilder(32.0, 32.0)

        assert builder.evaluate(JOG_LOOP).segment_count == 55
        strict = SnappedLoopBuilder(32.0, 32.0, SnappedConfig(min_segments=60))
        assert strict.evaluate(JOG_LOOP) is None

    def test_world_points(self):
        """Test world conversion of a hand-built loop."""
        builder = SnappedLoopBuilder(32.0, 32.0)
        points = builder.world_points(JOG_LOOP)

        assert points.shape == (512, 2)
        assert np.array_equal(points[0], points[-1])
        assert points.min() >= -0.01
        assert points.max() <= 17 * builder.cell_size + 0.01

    def test_raw_world_points_round_corners(self):
        """Test corners are cut short of the grid nodes."""
        builder = SnappedLoopBuilder(32.0, 32.0)
        raw = np.array(builder.raw_world_points(JOG_LOOP))
        corner = np.array([15.0, 14.0]) * builder.cell_size

        distances = np.linalg.norm(raw - corner, axis=1)
        assert distances.min() > 0.1


class TestTileLoopBuilder:
    """Test the tile-placement builder."""

    def test_grid_sizing(self):
        """Test grid extents and step budget."""
        builder = TileLoopBuilder(60.0, 60.0)

        assert builder.cell_size == 6.0
        assert builder.max_x == 8
        assert builder.max_y == 8
        assert builder.max_steps == 96
        assert builder.strategy == Strategy.TILE

        small = TileLoopBuilder(20.0, 20.0)
        assert small.max_x == 4

    def test_invalid_extents(self):
        """Test non-positive extents are rejected."""
        with pytest.raises(ValueError):
            TileLoopBuilder(-1.0, 10.0)

    def test_invalid_config(self):
        """Test inconsistent configs are rejected."""
        with pytest.raises(ValueError):
            TileConfig(cell_size=0.0)
        with pytest.raises(ValueError):
            TileConfig(piece_weights=(1.0, 1.0))

    def test_attempt_deterministic(self):
        """Test an attempt depends only on its stream seed."""
        builder = TileLoopBuilder(60.0, 60.0)
        for seed in range(10):
            assert builder.attempt(Pcg32Stream(seed)) == builder.attempt(Pcg32Stream(seed))

    def test_accepted_loops(self, tile_search):
        """Test accepted loops are connected, non-overlapping cycles."""
        builder = TileLoopBuilder(60.0, 60.0)
        assert tile_search.candidates

        for candidate in tile_search.candidates:
            result = builder.attempt(Pcg32Stream(candidate.seed))
            assert result is not None
            tiles, quality = result
            cells = [tile.cell for tile in tiles]

            assert tiles == candidate.path
            assert cells[0] == ORIGIN
            assert tiles[0].entry == TileDir.WEST
            assert len(set(cells)) == len(cells)
            assert all(inside_bounds(cell, builder.max_x, builder.max_y) for cell in cells)
            for current, following in zip(tiles, tiles[1:]):
                assert current.next_cell == following.cell
                assert current.next_entry == following.entry
            assert tiles[-1].next_cell == ORIGIN
            assert tiles[-1].next_entry == TileDir.WEST
            assert 40 <= quality.segment_count <= 120
            assert quality.turn_count >= 4
            assert quality.aspect_ratio <= 2.4

    def test_loops_turn(self, tile_search):
        """Test grown loops use corner pieces, not only straights."""
        tiles = tile_search.best.path
        corners = [tile for tile in tiles if tile.piece != TilePiece.STRAIGHT]

        assert len(corners) >= 4

    def test_corner_when_straight_blocked(self):
        """Test the walk turns when the grid edge blocks a straight."""
        builder = TileLoopBuilder(20.0, 20.0)
        row = [(x, 0) for x in range(builder.max_x + 1)]
        occupied = set(row)
        edges = {canonical_edge(a, b) for a, b in zip(row, row[1:])}

        for seed in range(10):
            tile = builder._pick_next_tile(
                row[-1], TileDir.WEST, Pcg32Stream(seed), occupied, edges, len(row) - 1
            )
            assert tile is not None
            assert tile.piece in (TilePiece.CORNER_LEFT, TilePiece.CORNER_RIGHT)

    def test_closure_search(self):
        """Test the closure search finds the missing corner of a loop."""
        builder = TileLoopBuilder(60.0, 60.0)
        tiles = place(JOG_TILES)
        head = tiles[:-3]
        occupied = {ORIGIN} | {tile.next_cell for tile in head}
        edges = {tuple(sorted((tile.cell, tile.next_cell))) for tile in head}

        closure = builder.find_closure(head[-1].next_cell, head[-1].next_entry, occupied, edges)

        assert closure is not None
        assert closure[-1].next_cell == ORIGIN
        assert closure[-1].next_entry == TileDir.WEST
        assert closure[0].cell == head[-1].next_cell
        assert all(tile.cell not in {t.cell for t in head} for tile in closure)

    def test_evaluate(self):
        """Test the builder gates a hand-built tile loop."""
        builder = TileLoopBuilder(60.0, 60.0)
        assert builder.evaluate(place(JOG_TILES)).turn_count == 6

    def test_world_points(self):
        """Test world conversion of a hand-built loop."""
        builder = TileLoopBuilder(60.0, 60.0)
        points = builder.world_points(place(JOG_TILES))

        assert points.shape == (512, 2)
        assert np.array_equal(points[0], points[-1])
