"""
Snapped loop builder - Random-walk loops on an octile grid.

Generates:
- Closed loops grown step by step from the origin with weighted turning
- Self-intersection free paths (node, edge and segment occupancy)
- Rounded-corner world polylines
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from looptrack.curve.smoothing import CurveConfig, add_unique, smooth_and_resample
from looptrack.generation.candidate import LoopBuilder, Strategy
from looptrack.grid.directions import (
    ORIGIN,
    GridNode,
    dir8_delta,
    dir8_toward,
    offset,
    reverse8,
    turn_left_45,
    turn_left_90,
    turn_right_45,
    turn_right_90,
    vec_to_dir8,
)
from looptrack.grid.geometry import (
    canonical_edge,
    inside_bounds,
    intersects_path,
    validate_half_extents,
)
from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.scoring.heuristics import (
    LoopQuality,
    SnappedQualityConfig,
    evaluate_snapped_loop,
)

logger = logging.getLogger(__name__)


@dataclass
class SnappedConfig:
    """Configuration for the random-walk builder."""
    attempt_count: int = 40
    attempt_salt: int = 0x68F1

    # Path length
    min_segments: int = 40
    max_segments: int = 120
    retries_per_step: int = 12

    # Grid sizing
    cell_scale: float = 0.08          # Cell size as a fraction of the short half extent
    min_cell_size: float = 3.5
    max_cell_size: float = 9.0
    margin_cells: int = 2
    min_half_cells: int = 6

    # Turn probability bands (cumulative)
    straight_band: float = 0.55
    turn45_band: float = 0.75
    turn90_band: float = 0.95
    double_turn_min_step: int = 14

    # World conversion
    corner_radius_factor: float = 0.35

    def __post_init__(self):
        if self.min_segments < 3 or self.max_segments < self.min_segments:
            raise ValueError(
                f"Invalid segment bounds [{self.min_segments}, {self.max_segments}]"
            )
        if not 0.0 <= self.straight_band <= self.turn45_band <= self.turn90_band <= 1.0:
            raise ValueError("Turn bands must be ordered within [0, 1]")
        if self.attempt_count < 1 or self.retries_per_step < 1:
            raise ValueError("attempt_count and retries_per_step must be >= 1")


class SnappedLoopBuilder(LoopBuilder):
    """Random-walk loop builder on an 8-directional grid.

    Each attempt walks from the origin heading east. Every step is drawn
    from fixed probability bands (straight, 45 and 90 degree turns) and
    is accepted only if it stays inside the grid, lands on an unused
    node, reuses no edge and crosses no earlier segment. Once enough
    steps are taken the walk closes as soon as the origin is within
    reach.

    Usage:
        builder = SnappedLoopBuilder(32.0, 32.0)
        result = builder.attempt(Pcg32Stream(seed))
    """

    strategy = Strategy.SNAPPED

    def __init__(
        self,
        half_width: float,
        half_height: float,
        config: SnappedConfig | None = None,
        quality: SnappedQualityConfig | None = None,
        curve: CurveConfig | None = None,
    ):
        """Initialize builder for an arena.

        Args:
            half_width: Arena half width in world units
            half_height: Arena half height in world units
            config: Builder configuration
            quality: Quality gates (segment bounds follow the builder config)
            curve: Post-processing configuration

        Raises:
            ValueError: If a half extent is not positive
        """
        validate_half_extents(half_width, half_height)

        self.config = config or SnappedConfig()
        self.quality = quality or SnappedQualityConfig(
            min_segments=self.config.min_segments,
            max_segments=self.config.max_segments,
        )
        self.curve = curve or CurveConfig()
        self.attempt_count = self.config.attempt_count
        self.attempt_salt = self.config.attempt_salt

        min_half = min(half_width, half_height)
        self.cell_size = float(np.clip(
            min_half * self.config.cell_scale,
            self.config.min_cell_size,
            self.config.max_cell_size,
        ))
        self.max_x = max(
            self.config.min_half_cells,
            math.floor(half_width / self.cell_size) - self.config.margin_cells,
        )
        self.max_y = max(
            self.config.min_half_cells,
            math.floor(half_height / self.cell_size) - self.config.margin_cells,
        )

    def attempt(self, stream: Pcg32Stream) -> Optional[Tuple[Tuple[GridNode, ...], LoopQuality]]:
        """Grow one loop and score it.

        Args:
            stream: RNG stream owned by this attempt

        Returns:
            Tuple of (closed node path, quality) or None
        """
        nodes = self.grow_loop(stream)
        if nodes is None:
            logger.debug("snapped attempt seed=%d: no closure", stream.seed)
            return None

        quality = self.evaluate(nodes)
        if quality is None:
            logger.debug(
                "snapped attempt seed=%d: closed with %d segments, rejected by gates",
                stream.seed, len(nodes) - 1,
            )
            return None

        return tuple(nodes), quality

    def evaluate(self, nodes: Sequence[GridNode]) -> Optional[LoopQuality]:
        return evaluate_snapped_loop(nodes, self.quality)

    def grow_loop(self, stream: Pcg32Stream) -> Optional[List[GridNode]]:
        """Random-walk from the origin until the loop closes.

        Args:
            stream: RNG stream owned by this attempt

        Returns:
            Closed node path (first node equals last), or None
        """
        config = self.config
        nodes: List[GridNode] = [ORIGIN]
        visited = {ORIGIN}
        edges = set()
        direction = 0  # East

        for step in range(config.max_segments):
            current = nodes[-1]
            committed = False

            for _ in range(config.retries_per_step):
                next_dir = self._pick_direction(stream, direction, nodes, step)
                if next_dir == reverse8(direction):
                    continue

                target = offset(current, dir8_delta(next_dir))
                if not inside_bounds(target, self.max_x, self.max_y):
                    continue

                closing = step >= config.min_segments and target == ORIGIN
                if not closing and target in visited:
                    continue

                edge = canonical_edge(current, target)
                if edge in edges or intersects_path(current, target, nodes):
                    continue

                nodes.append(target)
                edges.add(edge)
                visited.add(target)
                direction = next_dir
                committed = True
                break

            if not committed:
                return None

            now = nodes[-1]
            if now == ORIGIN:
                return nodes

            if step >= config.min_segments:
                distance = abs(now[0]) + abs(now[1])
                if 1 <= distance <= 2 and dir8_toward(now, ORIGIN) is not None:
                    closing_edge = canonical_edge(now, ORIGIN)
                    if closing_edge not in edges and not intersects_path(now, ORIGIN, nodes):
                        nodes.append(ORIGIN)
                        return nodes

        return None

    def _pick_direction(
        self,
        stream: Pcg32Stream,
        direction: int,
        nodes: Sequence[GridNode],
        step: int,
    ) -> int:
        """Draw the next heading from the turn probability bands."""
        config = self.config
        roll = stream.next_float01()

        recent_turn = False
        if len(nodes) > 6:
            previous = vec_to_dir8(nodes[-1][0] - nodes[-2][0], nodes[-1][1] - nodes[-2][1])
            older = vec_to_dir8(nodes[-2][0] - nodes[-3][0], nodes[-2][1] - nodes[-3][1])
            recent_turn = previous is not None and older is not None and previous != older

        if roll < config.straight_band:
            return direction

        if roll < config.turn45_band:
            return turn_left_45(direction) if stream.chance(0.5) else turn_right_45(direction)

        if roll < config.turn90_band:
            return turn_left_90(direction) if stream.chance(0.5) else turn_right_90(direction)

        if not recent_turn and step > config.double_turn_min_step:
            if stream.chance(0.5):
                return turn_left_90(turn_left_90(direction))
            return turn_right_90(turn_right_90(direction))

        return turn_left_90(direction) if stream.chance(0.5) else turn_right_90(direction)

    def raw_world_points(self, nodes: Sequence[GridNode]) -> List[np.ndarray]:
        """Scale a node path to world space with rounded corners.

        Every direction change gets a short arc of radius
        corner_radius_factor * cell_size around the grid node; sharper
        turns get more arc points (5 to 9).
        """
        cell = self.cell_size
        radius = cell * self.config.corner_radius_factor
        world = [np.array(node, dtype=np.float64) * cell for node in nodes]
        points: List[np.ndarray] = []

        for i in range(len(world) - 1):
            p0 = world[i]
            p1 = world[i + 1]
            next_dir = _normalized(p1 - p0)
            prev_dir = _normalized(p0 - world[i - 1]) if i > 0 else next_dir
            corner_dot = float(np.dot(prev_dir, next_dir))
            has_corner_in = i > 0 and corner_dot < 0.999

            add_unique(points, p0 - prev_dir * radius if has_corner_in else p0)

            if has_corner_in:
                arc_count = int(round(5.0 + 4.0 * (1.0 - min(1.0, max(0.0, corner_dot)))))
                for k in range(1, arc_count - 1):
                    t = k / (arc_count - 1)
                    bend = _normalized(-prev_dir + (next_dir + prev_dir) * t)
                    add_unique(points, p0 + bend * radius)

            next_has_corner = (
                i < len(world) - 2
                and float(np.dot(next_dir, _normalized(world[i + 2] - p1))) < 0.999
            )
            add_unique(points, p1 - next_dir * radius if next_has_corner else p1)

        return points

    def world_points(self, nodes: Sequence[GridNode]) -> np.ndarray:
        """Convert a closed node path into the final resampled polyline."""
        return smooth_and_resample(self.raw_world_points(nodes), self.curve)


def _normalized(vector: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(vector))
    if length < 1e-12:
        return np.zeros(2)
    return vector / length
