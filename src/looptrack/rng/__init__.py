"""
RNG module - Deterministic random streams and seed forking.

This module contains:
- Pcg32Stream: Counter-based 32-bit generator
- stable_mix / fork: Pure seed mixing for reproducible sub-streams
- derive_track_seed: Per-variant root seed
"""

from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.rng.mixing import (
    stable_mix,
    fork,
    derive_track_seed,
    fnv1a32,
    to_int32,
)

__all__ = [
    "Pcg32Stream",
    "stable_mix",
    "fork",
    "derive_track_seed",
    "fnv1a32",
    "to_int32",
]
