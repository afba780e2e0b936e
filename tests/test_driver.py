"""Tests for the looptrack search driver."""

import pytest
import numpy as np

from looptrack import fallback_rounded_rectangle, generate_track
from looptrack.curve.smoothing import resample_closed
from looptrack.generation.candidate import Candidate, LoopBuilder, Strategy, best_candidate
from looptrack.generation.driver import DriverConfig, TrackSearchDriver
from looptrack.generation.snapped import SnappedConfig, SnappedLoopBuilder
from looptrack.generation.tile import TileLoopBuilder
from looptrack.rng.mixing import derive_track_seed, stable_mix
from looptrack.scoring.heuristics import LoopQuality
from looptrack.track.validation import QualityBand, ValidationResult


def make_quality(score: float) -> LoopQuality:
    return LoopQuality(
        score=score,
        segment_count=50,
        turn_count=8,
        long_straights=2,
        has_hairpin=True,
        has_chicane=True,
        aspect_ratio=1.5,
    )


class ScriptedBuilder(LoopBuilder):
    """Builder whose score is the first float drawn from the attempt stream."""

    strategy = Strategy.SNAPPED
    attempt_count = 12
    attempt_salt = 0x1234
    cell_size = 2.0

    def __init__(self, fail_every: int = 0):
        self.fail_every = fail_every
        self.seen_seeds = []

    def attempt(self, stream):
        self.seen_seeds.append(stream.seed)
        value = stream.next_float01()
        if self.fail_every and stream.seed % self.fail_every == 0:
            return None
        return ((stream.seed,), make_quality(value * 100.0))

    def world_points(self, path):
        scale = 1.0 + (path[0] % 7)
        square = np.array([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]) * scale
        return resample_closed(square, 16)


class ScriptedDriver(TrackSearchDriver):
    """Driver that always runs a given builder."""

    def __init__(self, builder, config=None, validator=None):
        super().__init__(config, validator)
        self.builder = builder

    def create_builder(self, half_width, half_height, strategy=Strategy.SNAPPED):
        return self.builder


class FailingBuilder(ScriptedBuilder):
    def attempt(self, stream):
        return None


class TestBestCandidate:
    """Test the max-by-score fold."""

    def test_highest_score_wins(self):
        """Test the best score is selected and failures are skipped."""
        results = [
            None,
            Candidate(Strategy.SNAPPED, 1, 11, (), make_quality(5.0)),
            Candidate(Strategy.SNAPPED, 2, 12, (), make_quality(9.0)),
            None,
            Candidate(Strategy.SNAPPED, 4, 14, (), make_quality(7.0)),
        ]
        assert best_candidate(results).attempt == 2

    def test_ties_keep_earliest(self):
        """Test equal scores keep the earlier attempt."""
        results = [
            Candidate(Strategy.TILE, 0, 10, (), make_quality(3.0)),
            Candidate(Strategy.TILE, 1, 11, (), make_quality(3.0)),
        ]
        assert best_candidate(results).attempt == 0

    def test_all_failed(self):
        """Test no candidates gives None."""
        assert best_candidate([None, None]) is None
        assert best_candidate([]) is None


class TestDriverWithScriptedBuilder:
    """Test driver mechanics independent of loop generation."""

    def test_attempt_seeds(self):
        """Test each attempt gets the forked seed."""
        builder = ScriptedBuilder()
        driver = ScriptedDriver(builder)
        driver.search(10.0, 10.0, seed=1000, variant=3)

        track_seed = derive_track_seed(1000, 3)
        expected = [stable_mix(track_seed, 3, i, 0x1234) for i in range(12)]
        assert builder.seen_seeds == expected

    def test_selects_best(self):
        """Test the search keeps the highest-scoring attempt."""
        driver = ScriptedDriver(ScriptedBuilder(fail_every=3))
        result = driver.search(10.0, 10.0, seed=42)

        assert result.found
        assert result.attempts == 12
        assert result.best.score == max(c.score for c in result.candidates)
        assert result.polyline.candidate is result.best
        assert result.polyline.cell_size == 2.0
        assert result.polyline.sample_count == 16

    def test_parallel_matches_serial(self):
        """Test thread-pool attempts give the same result as serial ones."""
        serial = ScriptedDriver(ScriptedBuilder()).search(10.0, 10.0, seed=7)
        parallel = ScriptedDriver(
            ScriptedBuilder(), DriverConfig(max_workers=4)
        ).search(10.0, 10.0, seed=7)

        assert [c.seed for c in serial.candidates] == [c.seed for c in parallel.candidates]
        assert serial.best == parallel.best
        assert serial.polyline == parallel.polyline

    def test_exhausted_search(self):
        """Test a search with no valid attempt returns no polyline."""
        driver = ScriptedDriver(FailingBuilder())
        result = driver.search(10.0, 10.0, seed=1)

        assert not result.found
        assert result.best is None
        assert result.candidates == []
        assert driver.generate(10.0, 10.0, seed=1) is None
        assert driver.loop_stats(10.0, 10.0, seed=1) is None

    def test_loop_stats(self):
        """Test stats report the best candidate's counts."""
        driver = ScriptedDriver(ScriptedBuilder())
        assert driver.loop_stats(10.0, 10.0, seed=5) == (50, 8)

    def test_validator_accepts_best(self):
        """Test an always-passing validator keeps the unvalidated choice."""
        calls = []

        def validator(polyline, racer_count):
            calls.append(racer_count)
            return ValidationResult(True, 90.0, QualityBand.GREEN)

        plain = ScriptedDriver(ScriptedBuilder()).search(10.0, 10.0, seed=9)
        validated = ScriptedDriver(ScriptedBuilder(), validator=validator).search(
            10.0, 10.0, seed=9
        )

        assert calls == [8]
        assert validated.best == plain.best
        assert validated.validation.passed

    def test_validator_falls_back_to_next_best(self):
        """Test a rejected best candidate yields the runner-up."""
        rejected = []

        def validator(polyline, racer_count):
            if not rejected:
                rejected.append(polyline.candidate)
                return ValidationResult(False, 20.0, QualityBand.RED, ["too narrow"])
            return ValidationResult(True, 60.0, QualityBand.YELLOW)

        driver = ScriptedDriver(ScriptedBuilder(), validator=validator)
        result = driver.search(10.0, 10.0, seed=9)
        ranked = sorted(result.candidates, key=lambda c: (-c.score, c.attempt))

        assert rejected[0] == ranked[0]
        assert result.best == ranked[1]
        assert result.validation.band == QualityBand.YELLOW

    def test_validator_rejects_all(self):
        """Test no polyline when every candidate fails validation."""
        def validator(polyline, racer_count):
            return ValidationResult(False, 10.0)

        driver = ScriptedDriver(ScriptedBuilder(), validator=validator)
        result = driver.search(10.0, 10.0, seed=9)

        assert not result.found
        assert result.best is None
        assert result.validation is not None
        assert not result.validation.passed

    def test_result_state(self):
        """Test search summaries serialize."""
        result = ScriptedDriver(ScriptedBuilder()).search(10.0, 10.0, seed=3)
        state = result.get_state()

        assert state["strategy"] == "snapped"
        assert state["attempts"] == 12
        assert state["found"] is True
        assert state["best"]["attempt"] == result.best.attempt


class TestTrackSearchDriver:
    """Test the driver with the real builders."""

    def test_create_builder(self):
        """Test builders are picked by strategy name."""
        driver = TrackSearchDriver()

        assert isinstance(driver.create_builder(32.0, 32.0, "snapped"), SnappedLoopBuilder)
        assert isinstance(driver.create_builder(32.0, 32.0, Strategy.TILE), TileLoopBuilder)
        with pytest.raises(ValueError):
            driver.create_builder(32.0, 32.0, "spline")

    def test_invalid_extents(self):
        """Test invalid arenas fail fast."""
        with pytest.raises(ValueError):
            TrackSearchDriver().generate(0.0, 32.0, seed=1)

    def test_invalid_config(self):
        """Test invalid driver configs are rejected."""
        with pytest.raises(ValueError):
            DriverConfig(max_workers=0)

    def test_deterministic(self):
        """Test the same inputs give the same track."""
        config = DriverConfig(snapped=SnappedConfig(attempt_count=10))
        first = TrackSearchDriver(config).search(40.0, 40.0, seed=123, variant=1)
        second = TrackSearchDriver(config).search(40.0, 40.0, seed=123, variant=1)

        assert [c.seed for c in first.candidates] == [c.seed for c in second.candidates]
        assert first.best == second.best
        assert first.polyline == second.polyline

    def test_scenario_seed_1000(self):
        """Test the 32x32 arena, seed 1000, variant 0 scenario exhausts its attempts."""
        driver = TrackSearchDriver()
        result = driver.search(32.0, 32.0, seed=1000, variant=0)

        assert result.attempts == 40
        assert not result.found
        assert result.candidates == []
        assert generate_track(32.0, 32.0, seed=1000, variant=0) is None

        fallback = fallback_rounded_rectangle(32.0, 32.0)
        assert fallback.sample_count == 512
        assert fallback.is_closed

    def test_snapped_track(self, snapped_search):
        """Test a successful random-walk search yields a gated 512-point track."""
        quality = snapped_search.best.quality
        polyline = snapped_search.polyline

        assert polyline.sample_count == 512
        assert polyline.is_closed
        assert polyline.candidate is snapped_search.best
        assert quality.turn_count >= 6
        assert quality.has_hairpin
        assert quality.has_chicane
        assert quality.aspect_ratio <= 2.8
        assert snapped_search.best.score == max(c.score for c in snapped_search.candidates)

        again = generate_track(32.0, 32.0, seed=snapped_search.seed, variant=0)
        assert again == polyline

    def test_tile_strategy(self, tile_search):
        """Test a successful tile search yields a closed 512-point track."""
        quality = tile_search.best.quality

        assert tile_search.strategy == Strategy.TILE
        assert tile_search.attempts == 20
        assert tile_search.polyline.sample_count == 512
        assert tile_search.polyline.is_closed
        assert tile_search.polyline.cell_size == 6.0
        assert 40 <= quality.segment_count <= 120
        assert quality.aspect_ratio <= 2.4

        again = generate_track(60.0, 60.0, seed=tile_search.seed, strategy="tile")
        assert again == tile_search.polyline

    def test_parallel_matches_serial(self):
        """Test real builders give identical results on a thread pool."""
        serial_config = DriverConfig(snapped=SnappedConfig(attempt_count=8))
        parallel_config = DriverConfig(snapped=SnappedConfig(attempt_count=8), max_workers=3)

        serial = TrackSearchDriver(serial_config).search(40.0, 40.0, seed=77)
        parallel = TrackSearchDriver(parallel_config).search(40.0, 40.0, seed=77)

        assert serial.best == parallel.best
        assert serial.polyline == parallel.polyline
