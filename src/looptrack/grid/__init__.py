"""
Grid module - Direction vectors and integer geometry.

This module contains:
- Dir8 / TileDir: Octile and four-way directions with turn helpers
- Segment intersection, canonical edges, pinch and bounds tests
"""

from looptrack.grid.directions import (
    Dir8,
    TileDir,
    GridNode,
    ORIGIN,
    DIR8_DELTAS,
)
from looptrack.grid.geometry import (
    canonical_edge,
    segments_intersect,
    intersects_path,
    is_simple_loop,
    creates_pinch,
    inside_bounds,
    validate_half_extents,
)

__all__ = [
    "Dir8",
    "TileDir",
    "GridNode",
    "ORIGIN",
    "DIR8_DELTAS",
    "canonical_edge",
    "segments_intersect",
    "intersects_path",
    "is_simple_loop",
    "creates_pinch",
    "inside_bounds",
    "validate_half_extents",
]
