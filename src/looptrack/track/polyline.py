"""
Track polyline - The closed world-space centerline handed to callers.

Contains:
- Fixed-count closed point list
- Perimeter and per-sample distance lookup
- Start position and heading for the starting grid
"""

import csv
from typing import Tuple

import numpy as np

CLOSURE_EPSILON_SQ = 1e-4


class TrackPolyline:
    """Closed centerline of a generated track.

    The first and last points coincide; consecutive points are spaced
    uniformly by arc length.

    Usage:
        polyline = TrackPolyline(points)
        x, y = polyline.get_position_at_distance(25.0)
    """

    def __init__(self, points, candidate=None, cell_size: float | None = None):
        """Wrap a resampled point array.

        Args:
            points: (N, 2) array-like of world points
            candidate: Candidate the polyline was built from, if any
            cell_size: Grid cell size of the source loop, if any

        Raises:
            ValueError: If the points are not an (N, 2) array with N >= 3
        """
        pts = np.array(points, dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2 or len(pts) < 3:
            raise ValueError(f"Expected an (N, 2) array with N >= 3, got shape {pts.shape}")

        pts.setflags(write=False)
        self._points = pts
        self.candidate = candidate
        self.cell_size = cell_size

        edges = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        self._distances = np.concatenate([[0.0], np.cumsum(edges)])

    @property
    def points(self) -> np.ndarray:
        """Read-only (N, 2) point array."""
        return self._points

    @property
    def sample_count(self) -> int:
        return len(self._points)

    @property
    def length(self) -> float:
        """Perimeter in world units."""
        return float(self._distances[-1])

    @property
    def is_closed(self) -> bool:
        """Check that the last point returns to the first."""
        gap = self._points[-1] - self._points[0]
        return float(np.dot(gap, gap)) <= CLOSURE_EPSILON_SQ

    @property
    def start_position(self) -> Tuple[float, float]:
        return (float(self._points[0, 0]), float(self._points[0, 1]))

    @property
    def start_heading(self) -> float:
        """Heading at the start line in radians (0 = +X)."""
        direction = self._points[1] - self._points[0]
        return float(np.arctan2(direction[1], direction[0]))

    def spacing_spread(self) -> float:
        """Largest minus smallest gap between consecutive points."""
        edges = np.diff(self._distances)
        return float(edges.max() - edges.min())

    def get_position_at_distance(self, distance: float) -> Tuple[float, float]:
        """World position at a distance along the loop (wraps around).

        Args:
            distance: Distance from the start point

        Returns:
            Tuple of (x, y)
        """
        if self.length <= 0:
            return self.start_position

        distance = distance % self.length
        index = int(np.searchsorted(self._distances, distance, side="right")) - 1
        index = min(max(index, 0), len(self._points) - 2)

        span = self._distances[index + 1] - self._distances[index]
        t = 0.0 if span <= 0 else (distance - self._distances[index]) / span
        point = self._points[index] + (self._points[index + 1] - self._points[index]) * t
        return (float(point[0]), float(point[1]))

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (min_x, min_y, max_x, max_y)."""
        lo = self._points.min(axis=0)
        hi = self._points.max(axis=0)
        return (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

    def to_list(self) -> list:
        return [(float(x), float(y)) for x, y in self._points]

    def export_csv(self, output_file) -> None:
        """Write the points to a CSV file with an x,y header row.

        Args:
            output_file: Path of the CSV file to write
        """
        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(["x", "y"])
            for x, y in self._points:
                writer.writerow([f"{x:.6f}", f"{y:.6f}"])

    def get_state(self) -> dict:
        """Get polyline state for serialization."""
        return {
            "sample_count": self.sample_count,
            "length": self.length,
            "is_closed": self.is_closed,
            "start_position": self.start_position,
            "start_heading_deg": float(np.degrees(self.start_heading)),
            "bounds": self.bounds(),
            "cell_size": self.cell_size,
            "candidate": self.candidate.get_state() if self.candidate else None,
        }

    def __len__(self) -> int:
        return self.sample_count

    def __eq__(self, other) -> bool:
        if not isinstance(other, TrackPolyline):
            return NotImplemented
        return np.array_equal(self._points, other._points)

    __hash__ = None
