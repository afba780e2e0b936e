"""Shared fixtures: real searches that are known to find a loop."""

import pytest

from looptrack.generation.candidate import Strategy
from looptrack.generation.driver import TrackSearchDriver

# Scenario seeds scanned until a search succeeds
SNAPPED_SEEDS = range(1000, 2000)
TILE_SEEDS = range(500)


def first_found(half_width, half_height, strategy, seeds):
    """Run searches over seeds and return the first that found a loop."""
    driver = TrackSearchDriver()
    for seed in seeds:
        result = driver.search(half_width, half_height, seed, 0, strategy)
        if result.found:
            return result
    return None


@pytest.fixture(scope="session")
def snapped_search():
    """First successful random-walk search in a 32x32 arena."""
    result = first_found(32.0, 32.0, Strategy.SNAPPED, SNAPPED_SEEDS)
    assert result is not None, "no snapped loop found in the scanned seeds"
    return result


@pytest.fixture(scope="session")
def tile_search():
    """First successful tile search in a 60x60 arena."""
    result = first_found(60.0, 60.0, Strategy.TILE, TILE_SEEDS)
    assert result is not None, "no tile loop found in the scanned seeds"
    return result
