"""
Loop heuristics - Fun-to-race quality gates and scores for grid loops.

Provides:
- Straight run, hairpin and chicane detection
- Bounding-box aspect ratio
- Snapped (octile) loop evaluation
- Tile loop evaluation

Scores are only comparable between candidates of the same strategy.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from looptrack.grid.directions import (
    GridNode,
    is_diagonal,
    normalize_turn,
    step_length,
    vec_to_dir8,
)
from looptrack.grid.geometry import bounding_box, span_aspect_ratio


@dataclass(frozen=True)
class LoopQuality:
    """Derived counts and score of a closed loop."""
    score: float
    segment_count: int         # Grid steps (snapped) or tiles (tile)
    turn_count: int            # Diagonal steps (snapped) or corner tiles (tile)
    long_straights: int
    has_hairpin: bool
    has_chicane: bool
    aspect_ratio: float
    grid_length: float = 0.0   # Path length in cell units

    def get_state(self) -> dict:
        """Get quality record for serialization."""
        return {
            "score": self.score,
            "segments": self.segment_count,
            "turns": self.turn_count,
            "long_straights": self.long_straights,
            "hairpin": self.has_hairpin,
            "chicane": self.has_chicane,
            "aspect_ratio": self.aspect_ratio,
            "grid_length": self.grid_length,
        }


@dataclass
class SnappedQualityConfig:
    """Quality gates and weights for octile loops."""
    min_segments: int = 40
    max_segments: int = 120
    min_diagonals: int = 6
    long_straight_length: int = 8
    min_long_straights: int = 2
    hairpin_window: int = 5
    chicane_window: int = 7
    max_aspect_ratio: float = 2.8

    # Score weights
    segment_weight: float = 0.45
    diagonal_weight: float = 2.0
    long_straight_weight: float = 8.0
    hairpin_bonus: float = 20.0
    chicane_bonus: float = 20.0
    aspect_penalty: float = 4.0


@dataclass
class TileQualityConfig:
    """Quality gates and weights for tile loops."""
    min_cells: int = 40
    max_cells: int = 120
    min_corners: int = 4
    long_straight_length: int = 6
    min_long_straights: int = 2
    max_aspect_ratio: float = 2.4

    # Score weights
    target_corner_fraction: float = 0.35
    corner_weight: float = 1.2
    balance_weight: float = 20.0
    straight_weight: float = 0.3


def count_runs(values: Sequence[int], min_length: int, predicate=None) -> int:
    """Count maximal runs of equal values with at least min_length items.

    Args:
        values: Sequence to scan (not wrapped around)
        min_length: Minimum run length to count
        predicate: Optional filter; only runs whose value passes are counted

    Returns:
        Number of qualifying runs
    """
    runs = 0
    run_length = 0
    previous = None
    for value in values:
        if run_length and value == previous:
            run_length += 1
        else:
            if run_length >= min_length and (predicate is None or predicate(previous)):
                runs += 1
            run_length = 1
            previous = value
    if run_length >= min_length and (predicate is None or predicate(previous)):
        runs += 1
    return runs


def turn_deltas(directions: Sequence[int]) -> List[int]:
    """Signed octile turn between consecutive directions (-4..4)."""
    return [
        normalize_turn(directions[i] - directions[i - 1])
        for i in range(1, len(directions))
    ]


def has_hairpin(changes: Sequence[int], window: int = 5) -> bool:
    """Two 90-degree turns within `window` steps of each other."""
    for i, change in enumerate(changes):
        if abs(change) != 2:
            continue
        for j in range(i + 1, min(len(changes), i + window)):
            if abs(changes[j]) == 2:
                return True
    return False


def has_chicane(changes: Sequence[int], window: int = 7) -> bool:
    """Two opposite-sign turns within `window` steps of each other."""
    for i, change in enumerate(changes):
        if change == 0:
            continue
        for j in range(i + 1, min(len(changes), i + window)):
            if changes[j] != 0 and (changes[j] > 0) != (change > 0):
                return True
    return False


def snapped_aspect_ratio(nodes: Sequence[GridNode]) -> float:
    """Aspect ratio of a node path's bounding box (edge spans)."""
    min_x, min_y, max_x, max_y = bounding_box(nodes)
    return span_aspect_ratio(max_x - min_x, max_y - min_y)


def tile_aspect_ratio(cells: Sequence[GridNode]) -> float:
    """Aspect ratio of a tile set's bounding box (cell counts)."""
    min_x, min_y, max_x, max_y = bounding_box(cells)
    return span_aspect_ratio(max_x - min_x + 1, max_y - min_y + 1)


def evaluate_snapped_loop(
    nodes: Sequence[GridNode],
    config: SnappedQualityConfig | None = None,
) -> Optional[LoopQuality]:
    """Gate and score a closed octile loop.

    Gates: segment count within bounds, every step a unit octile step,
    enough diagonals, enough long straights, at least one hairpin and
    one chicane, bounded aspect ratio.

    Args:
        nodes: Closed node path (first node equals last)
        config: Gates and weights

    Returns:
        LoopQuality, or None if a gate fails
    """
    config = config or SnappedQualityConfig()

    segments = max(0, len(nodes) - 1)
    if segments < config.min_segments or segments > config.max_segments:
        return None
    if nodes[0] != nodes[-1]:
        return None

    directions = []
    diagonals = 0
    grid_length = 0.0
    for i in range(segments):
        direction = vec_to_dir8(
            nodes[i + 1][0] - nodes[i][0],
            nodes[i + 1][1] - nodes[i][1],
        )
        if direction is None:
            return None
        if is_diagonal(direction):
            diagonals += 1
        grid_length += step_length(direction)
        directions.append(direction)

    if diagonals < config.min_diagonals:
        return None

    long_straights = count_runs(directions, config.long_straight_length)
    if long_straights < config.min_long_straights:
        return None

    changes = turn_deltas(directions)
    hairpin = has_hairpin(changes, config.hairpin_window)
    chicane = has_chicane(changes, config.chicane_window)
    if not hairpin or not chicane:
        return None

    aspect = snapped_aspect_ratio(nodes)
    if aspect > config.max_aspect_ratio:
        return None

    score = (
        segments * config.segment_weight
        + diagonals * config.diagonal_weight
        + long_straights * config.long_straight_weight
        + (config.hairpin_bonus if hairpin else 0.0)
        + (config.chicane_bonus if chicane else 0.0)
        - aspect * config.aspect_penalty
    )

    return LoopQuality(
        score=score,
        segment_count=segments,
        turn_count=diagonals,
        long_straights=long_straights,
        has_hairpin=hairpin,
        has_chicane=chicane,
        aspect_ratio=aspect,
        grid_length=grid_length,
    )


def evaluate_tile_loop(
    cells: Sequence[GridNode],
    turn_signs: Sequence[int],
    config: TileQualityConfig | None = None,
) -> Optional[LoopQuality]:
    """Gate and score a closed tile loop.

    Args:
        cells: Cell of every placed tile, in track order
        turn_signs: Per tile +1 (left corner), -1 (right corner) or 0 (straight)
        config: Gates and weights

    Returns:
        LoopQuality, or None if a gate fails
    """
    config = config or TileQualityConfig()

    count = len(cells)
    if count < config.min_cells or count > config.max_cells:
        return None
    if len(turn_signs) != count:
        raise ValueError("turn_signs must have one entry per tile")

    corners = sum(1 for sign in turn_signs if sign != 0)
    straights = count - corners
    long_straights = count_runs(
        turn_signs, config.long_straight_length, predicate=lambda sign: sign == 0
    )
    aspect = tile_aspect_ratio(cells)

    chicane = False
    hairpin = False
    for i in range(1, count):
        previous, current = turn_signs[i - 1], turn_signs[i]
        if previous != 0 and current != 0 and previous != current:
            chicane = True
        if previous != 0 and current == previous:
            hairpin = True

    if corners < config.min_corners:
        return None
    if long_straights < config.min_long_straights:
        return None
    if aspect > config.max_aspect_ratio:
        return None
    if not (chicane or hairpin):
        return None

    balance = 1.0 - abs(corners / max(1, count) - config.target_corner_fraction)
    score = (
        count
        + corners * config.corner_weight
        + balance * config.balance_weight
        + straights * config.straight_weight
    )

    return LoopQuality(
        score=score,
        segment_count=count,
        turn_count=corners,
        long_straights=long_straights,
        has_hairpin=hairpin,
        has_chicane=chicane,
        aspect_ratio=aspect,
        grid_length=float(count),
    )
