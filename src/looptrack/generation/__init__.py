"""
Generation module - Closed-loop builders and the candidate search driver.

This module contains:
- SnappedLoopBuilder: Random walk on an 8-directional grid
- TileLoopBuilder: Straight/corner tile placement with BFS closure
- TrackSearchDriver: Forked attempts, max-by-score selection, post-processing
"""

from looptrack.generation.candidate import Candidate, LoopBuilder, Strategy, best_candidate
from looptrack.generation.snapped import SnappedConfig, SnappedLoopBuilder
from looptrack.generation.tile import TileConfig, TileLoopBuilder
from looptrack.generation.tiles import TilePiece, PlacedTile
from looptrack.generation.driver import (
    DriverConfig,
    SearchResult,
    TrackSearchDriver,
    generate_track,
)

__all__ = [
    "Candidate",
    "LoopBuilder",
    "Strategy",
    "best_candidate",
    "SnappedConfig",
    "SnappedLoopBuilder",
    "TileConfig",
    "TileLoopBuilder",
    "TilePiece",
    "PlacedTile",
    "DriverConfig",
    "SearchResult",
    "TrackSearchDriver",
    "generate_track",
]
