"""
Curve smoothing - Closed-loop corner cutting and arc-length resampling.

Provides:
- Point de-duplication and loop closing
- Chaikin corner-cutting subdivision on closed polylines
- Uniform arc-length resampling of closed polylines
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

DUPLICATE_EPSILON_SQ = 1e-4


@dataclass
class CurveConfig:
    """Post-processing configuration."""
    sample_count: int = 512          # Points in the output polyline
    chaikin_passes: int = 2
    duplicate_epsilon_sq: float = DUPLICATE_EPSILON_SQ

    def __post_init__(self):
        if self.sample_count < 3:
            raise ValueError(f"sample_count must be >= 3, got {self.sample_count}")
        if self.chaikin_passes < 0:
            raise ValueError(f"chaikin_passes must be >= 0, got {self.chaikin_passes}")


def add_unique(
    points: List[np.ndarray],
    point: np.ndarray,
    epsilon_sq: float = DUPLICATE_EPSILON_SQ,
) -> None:
    """Append point unless it coincides with the last point."""
    if not points or float(np.sum((points[-1] - point) ** 2)) > epsilon_sq:
        points.append(point)


def close_polyline(points, epsilon_sq: float = DUPLICATE_EPSILON_SQ) -> np.ndarray:
    """Duplicate the first point at the end unless the loop already closes.

    Args:
        points: (N, 2) array-like of points

    Returns:
        (M, 2) array with first and last points coincident
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) > 2 and float(np.sum((pts[0] - pts[-1]) ** 2)) > epsilon_sq:
        pts = np.vstack([pts, pts[:1]])
    return pts


def chaikin_closed(points, passes: int = 2) -> np.ndarray:
    """Smooth a closed polyline with Chaikin corner cutting.

    Every edge (including the wrap-around edge from the last point
    back to the first) is replaced by its 25% and 75% points.

    Args:
        points: (N, 2) array-like of points
        passes: Number of subdivision passes

    Returns:
        (N * 2**passes, 2) array
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 4:
        return pts.copy()

    for _ in range(passes):
        following = np.roll(pts, -1, axis=0)
        smoothed = np.empty((len(pts) * 2, 2), dtype=np.float64)
        smoothed[0::2] = pts * 0.75 + following * 0.25
        smoothed[1::2] = pts * 0.25 + following * 0.75
        pts = smoothed

    return pts


def resample_closed(points, count: int = 512) -> np.ndarray:
    """Resample a closed polyline at uniform arc-length spacing.

    The polyline is treated as a loop (the last point connects back to
    the first). count - 1 samples are spread evenly over the perimeter
    and the final sample repeats the first, so the result is explicitly
    closed and holds exactly count points.

    Args:
        points: (N, 2) array-like, N >= 3
        count: Number of output points

    Returns:
        (count, 2) array
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        raise ValueError(f"Need at least 3 points to resample, got {len(pts)}")
    if count < 3:
        raise ValueError(f"count must be >= 3, got {count}")

    n = len(pts)
    following = np.roll(pts, -1, axis=0)
    edge_lengths = np.linalg.norm(following - pts, axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(edge_lengths)])
    total = cumulative[-1]

    distances = np.arange(count - 1, dtype=np.float64) / (count - 1) * total

    # First edge whose end lies at or beyond each distance
    edge = np.searchsorted(cumulative[1:], distances, side="left")
    edge = np.clip(edge, 0, n - 1)

    span = np.maximum(cumulative[edge + 1] - cumulative[edge], 1e-6)
    t = np.clip((distances - cumulative[edge]) / span, 0.0, 1.0)

    start = pts[edge]
    end = pts[(edge + 1) % n]
    samples = start + (end - start) * t[:, None]

    return np.vstack([samples, samples[:1]])


def smooth_and_resample(points: Sequence, config: CurveConfig | None = None) -> np.ndarray:
    """Close, smooth and resample a raw world polyline.

    Args:
        points: Raw (N, 2) world points in track order
        config: Post-processing configuration

    Returns:
        (config.sample_count, 2) closed, arc-length uniform polyline
    """
    config = config or CurveConfig()
    closed = close_polyline(points, config.duplicate_epsilon_sq)
    smoothed = chaikin_closed(closed, config.chaikin_passes)
    return resample_closed(smoothed, config.sample_count)
