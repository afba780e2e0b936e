"""
Fallback track - Rounded rectangle for callers whose search came back empty.
"""

import numpy as np

from looptrack.curve.smoothing import resample_closed
from looptrack.grid.geometry import validate_half_extents
from looptrack.track.polyline import TrackPolyline


def rounded_rectangle_points(
    half_width: float,
    half_height: float,
    corner_radius: float,
    arc_steps: int = 18,
) -> np.ndarray:
    """Outline of a rounded rectangle centered on the origin.

    Corners are visited counter-clockwise starting top-right.

    Returns:
        (4 * arc_steps, 2) array
    """
    corners = np.array([
        (half_width - corner_radius, half_height - corner_radius),
        (-half_width + corner_radius, half_height - corner_radius),
        (-half_width + corner_radius, -half_height + corner_radius),
        (half_width - corner_radius, -half_height + corner_radius),
    ])

    outline = []
    sweep = np.linspace(0.0, np.pi / 2, arc_steps)
    for index, corner in enumerate(corners):
        angles = index * np.pi / 2 + sweep
        outline.append(corner + corner_radius * np.column_stack([np.cos(angles), np.sin(angles)]))
    return np.vstack(outline)


def fallback_rounded_rectangle(
    half_width: float,
    half_height: float,
    sample_count: int = 512,
) -> TrackPolyline:
    """Rounded-rectangle track filling 72% x 62% of the arena.

    Args:
        half_width: Arena half width (> 0)
        half_height: Arena half height (> 0)
        sample_count: Points in the returned polyline

    Returns:
        Closed, arc-length uniform TrackPolyline
    """
    validate_half_extents(half_width, half_height)

    w = half_width * 0.72
    h = half_height * 0.62
    radius = min(w, h) * 0.25
    outline = rounded_rectangle_points(w, h, radius)
    return TrackPolyline(resample_closed(outline, sample_count))
