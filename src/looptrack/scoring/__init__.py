"""
Scoring module - Heuristic quality gates for candidate loops.

This module contains:
- LoopQuality: Derived counts and score of a loop
- evaluate_snapped_loop / evaluate_tile_loop: Per-strategy gates and scores
"""

from looptrack.scoring.heuristics import (
    LoopQuality,
    SnappedQualityConfig,
    TileQualityConfig,
    evaluate_snapped_loop,
    evaluate_tile_loop,
)

__all__ = [
    "LoopQuality",
    "SnappedQualityConfig",
    "TileQualityConfig",
    "evaluate_snapped_loop",
    "evaluate_tile_loop",
]
