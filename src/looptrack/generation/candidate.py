"""
Candidates - Scored loop candidates and the builder interface.

Defines:
- Strategy: which loop builder to run
- Candidate: an immutable, scored grid loop
- LoopBuilder: per-attempt interface shared by both strategies
- best_candidate: max-by-score fold over attempt results
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.scoring.heuristics import LoopQuality


class Strategy(Enum):
    """Loop generation strategies."""
    SNAPPED = "snapped"   # Random walk on an octile grid
    TILE = "tile"         # Straight/corner tiles on a four-way grid

    @classmethod
    def parse(cls, value: "Strategy | str") -> "Strategy":
        """Accept a Strategy or its (case-insensitive) name/value."""
        if isinstance(value, Strategy):
            return value
        key = str(value).strip().lower()
        for strategy in cls:
            if key in (strategy.value, strategy.name.lower()):
                return strategy
        raise ValueError(f"Unknown strategy: {value!r}")


@dataclass(frozen=True)
class Candidate:
    """A closed loop that passed its strategy's quality gates."""
    strategy: Strategy
    attempt: int                 # Attempt index within the search
    seed: int                    # Seed of the attempt's RNG stream
    path: Tuple                  # Grid nodes (snapped) or PlacedTiles (tile)
    quality: LoopQuality

    @property
    def score(self) -> float:
        return self.quality.score

    @property
    def segment_count(self) -> int:
        return self.quality.segment_count

    @property
    def turn_count(self) -> int:
        return self.quality.turn_count

    def get_state(self) -> dict:
        """Get candidate state for serialization."""
        return {
            "strategy": self.strategy.value,
            "attempt": self.attempt,
            "seed": self.seed,
            "length": len(self.path),
            **self.quality.get_state(),
        }


def best_candidate(results: Iterable[Optional[Candidate]]) -> Optional[Candidate]:
    """Fold attempt results into the highest-scoring candidate.

    Results are consumed in attempt order; on equal scores the earlier
    attempt is kept.
    """
    best = None
    for candidate in results:
        if candidate is None:
            continue
        if best is None or candidate.score > best.score:
            best = candidate
    return best


class LoopBuilder:
    """Interface shared by the loop builders.

    A builder is bound to an arena size. Each call to attempt() consumes
    a fresh RNG stream and either returns a scored candidate path or None.
    Builders hold no mutable state between attempts.
    """

    strategy: Strategy
    attempt_count: int = 1
    attempt_salt: int = 0
    cell_size: float = 1.0

    def attempt(self, stream: Pcg32Stream) -> Optional[Tuple[Sequence, LoopQuality]]:
        """Run one generation attempt.

        Returns:
            Tuple of (path, quality) or None if the attempt failed
        """
        raise NotImplementedError

    def evaluate(self, path: Sequence) -> Optional[LoopQuality]:
        """Gate and score a closed path with this builder's quality config."""
        raise NotImplementedError

    def world_points(self, path: Sequence) -> np.ndarray:
        """Convert an accepted path into the final world polyline."""
        raise NotImplementedError
