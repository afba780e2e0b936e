"""
Track search driver - Run forked generation attempts and keep the best loop.

Provides:
- Per-attempt seed forking from (seed, variant, attempt, strategy salt)
- Max-by-score reduction over attempts (optionally on a thread pool)
- Optional external validation of the post-processed polyline
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from looptrack.curve.smoothing import CurveConfig
from looptrack.generation.candidate import (
    Candidate,
    LoopBuilder,
    Strategy,
    best_candidate,
)
from looptrack.generation.snapped import SnappedConfig, SnappedLoopBuilder
from looptrack.generation.tile import TileConfig, TileLoopBuilder
from looptrack.rng.mixing import derive_track_seed, stable_mix
from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.track.polyline import TrackPolyline
from looptrack.track.validation import ValidationResult

logger = logging.getLogger(__name__)

TrackValidator = Callable[[TrackPolyline, int], ValidationResult]


@dataclass
class DriverConfig:
    """Configuration for the candidate search."""
    snapped: SnappedConfig = field(default_factory=SnappedConfig)
    tile: TileConfig = field(default_factory=TileConfig)
    curve: CurveConfig = field(default_factory=CurveConfig)

    # Attempts are independent; >1 runs them on a thread pool
    max_workers: int = 1

    # Passed to the external validator
    racer_count: int = 8

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.racer_count < 0:
            raise ValueError(f"racer_count must be >= 0, got {self.racer_count}")


@dataclass
class SearchResult:
    """Outcome of a candidate search."""
    strategy: Strategy
    seed: int
    variant: int
    track_seed: int
    attempts: int
    candidates: List[Candidate] = field(default_factory=list)
    best: Optional[Candidate] = None
    polyline: Optional[TrackPolyline] = None
    validation: Optional[ValidationResult] = None

    @property
    def found(self) -> bool:
        return self.polyline is not None

    def get_state(self) -> dict:
        """Get search summary for logging."""
        return {
            "strategy": self.strategy.value,
            "seed": self.seed,
            "variant": self.variant,
            "track_seed": self.track_seed,
            "attempts": self.attempts,
            "valid_candidates": len(self.candidates),
            "found": self.found,
            "best": self.best.get_state() if self.best else None,
            "validation": self.validation.get_state() if self.validation else None,
        }


class TrackSearchDriver:
    """Searches for the best closed loop of a strategy.

    The driver only forks seeds and folds results; every random decision
    lives in the builders. Attempt i of (seed, variant) always uses the
    stream seeded with stable_mix(track_seed, variant, i, salt), so runs
    are reproducible and attempts can run in any order or in parallel.

    Usage:
        driver = TrackSearchDriver()
        polyline = driver.generate(32.0, 32.0, seed=1000, variant=0)
        if polyline is None:
            ...  # caller supplies its own fallback track
    """

    def __init__(
        self,
        config: DriverConfig | None = None,
        validator: TrackValidator | None = None,
    ):
        """Initialize driver.

        Args:
            config: Search configuration. Uses defaults if None.
            validator: Optional external validator; a candidate is only
                returned once its polyline passes
        """
        self.config = config or DriverConfig()
        self.validator = validator

    def create_builder(
        self,
        half_width: float,
        half_height: float,
        strategy: Strategy | str = Strategy.SNAPPED,
    ) -> LoopBuilder:
        """Create the loop builder for a strategy and arena size."""
        strategy = Strategy.parse(strategy)
        if strategy is Strategy.SNAPPED:
            return SnappedLoopBuilder(
                half_width, half_height, self.config.snapped, curve=self.config.curve
            )
        return TileLoopBuilder(
            half_width, half_height, self.config.tile, curve=self.config.curve
        )

    @staticmethod
    def attempt_seed(track_seed: int, variant: int, attempt: int, salt: int) -> int:
        return stable_mix(track_seed, variant, attempt, salt)

    def run_attempts(
        self,
        builder: LoopBuilder,
        track_seed: int,
        variant: int,
    ) -> List[Optional[Candidate]]:
        """Run every attempt of a builder.

        Returns:
            One entry per attempt, in attempt order (None for failures)
        """
        def run(attempt: int) -> Optional[Candidate]:
            seed = self.attempt_seed(track_seed, variant, attempt, builder.attempt_salt)
            result = builder.attempt(Pcg32Stream(seed))
            if result is None:
                return None
            path, quality = result
            return Candidate(
                strategy=builder.strategy,
                attempt=attempt,
                seed=seed,
                path=path,
                quality=quality,
            )

        attempts = range(builder.attempt_count)
        if self.config.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                return list(pool.map(run, attempts))
        return [run(attempt) for attempt in attempts]

    def search(
        self,
        half_width: float,
        half_height: float,
        seed: int,
        variant: int = 0,
        strategy: Strategy | str = Strategy.SNAPPED,
    ) -> SearchResult:
        """Search for the best loop and post-process it.

        Args:
            half_width: Arena half width (> 0)
            half_height: Arena half height (> 0)
            seed: Scenario seed
            variant: Track variant index
            strategy: Loop builder to use

        Returns:
            SearchResult; result.polyline is None when every attempt failed

        Raises:
            ValueError: On invalid half extents or an unknown strategy
        """
        builder = self.create_builder(half_width, half_height, strategy)
        track_seed = derive_track_seed(seed, variant)

        results = self.run_attempts(builder, track_seed, variant)
        candidates = [candidate for candidate in results if candidate is not None]

        result = SearchResult(
            strategy=builder.strategy,
            seed=seed,
            variant=variant,
            track_seed=track_seed,
            attempts=len(results),
            candidates=candidates,
        )

        if not candidates:
            logger.info(
                "No %s loop found for seed=%d variant=%d after %d attempts",
                builder.strategy.value, seed, variant, len(results),
            )
            return result

        if self.validator is None:
            best = best_candidate(results)
            result.best = best
            result.polyline = self._post_process(builder, best)
        else:
            best, polyline, validation = self._first_validated(builder, candidates)
            result.best = best
            result.polyline = polyline
            result.validation = validation

        if result.best is not None:
            logger.info(
                "Best %s loop for seed=%d variant=%d: attempt %d, score %.2f, %d segments",
                builder.strategy.value, seed, variant, result.best.attempt,
                result.best.score, result.best.segment_count,
            )
        return result

    def generate(
        self,
        half_width: float,
        half_height: float,
        seed: int,
        variant: int = 0,
        strategy: Strategy | str = Strategy.SNAPPED,
    ) -> Optional[TrackPolyline]:
        """Generate a track polyline, or None if the attempt budget ran out."""
        return self.search(half_width, half_height, seed, variant, strategy).polyline

    def loop_stats(
        self,
        half_width: float,
        half_height: float,
        seed: int,
        variant: int = 0,
        strategy: Strategy | str = Strategy.SNAPPED,
    ) -> Optional[Tuple[int, int]]:
        """Segment and turn counts of the best candidate, without post-processing.

        Returns:
            Tuple of (segments, diagonals or corners), or None
        """
        builder = self.create_builder(half_width, half_height, strategy)
        track_seed = derive_track_seed(seed, variant)
        best = best_candidate(self.run_attempts(builder, track_seed, variant))
        if best is None:
            return None
        return (best.segment_count, best.turn_count)

    def _post_process(self, builder: LoopBuilder, candidate: Candidate) -> TrackPolyline:
        points = builder.world_points(candidate.path)
        return TrackPolyline(points, candidate=candidate, cell_size=builder.cell_size)

    def _first_validated(
        self,
        builder: LoopBuilder,
        candidates: List[Candidate],
    ) -> Tuple[Optional[Candidate], Optional[TrackPolyline], Optional[ValidationResult]]:
        """Validate candidates best-first and return the first that passes."""
        ranked = sorted(candidates, key=lambda c: (-c.score, c.attempt))
        last_validation = None
        for candidate in ranked:
            polyline = self._post_process(builder, candidate)
            validation = self.validator(polyline, self.config.racer_count)
            last_validation = validation
            if validation.passed:
                return candidate, polyline, validation
            logger.debug(
                "Validator rejected attempt %d (score %.1f, band %s): %s",
                candidate.attempt, validation.score, validation.band.value,
                "; ".join(validation.reasons),
            )

        logger.info("Validator rejected all %d candidates", len(ranked))
        return None, None, last_validation


def generate_track(
    half_width: float,
    half_height: float,
    seed: int,
    variant: int = 0,
    strategy: Strategy | str = Strategy.SNAPPED,
    config: DriverConfig | None = None,
) -> Optional[TrackPolyline]:
    """Generate a track polyline with a default driver.

    Returns:
        TrackPolyline with config.curve.sample_count points, or None
    """
    return TrackSearchDriver(config).generate(half_width, half_height, seed, variant, strategy)
