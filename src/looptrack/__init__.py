"""
LoopTrack - Deterministic procedural generation of closed racing loops.

This package turns a (seed, variant) pair into a smooth closed track with:
- A portable PCG32 stream and pure seed mixing for reproducible attempts
- Two loop builders: octile random walk and straight/corner tile placement
- Heuristic quality gates favouring straights, hairpins and chicanes
- Chaikin smoothing and uniform arc-length resampling
"""

__version__ = "0.1.0"

from looptrack.generation.candidate import Strategy
from looptrack.generation.driver import DriverConfig, TrackSearchDriver, generate_track
from looptrack.rng.pcg32 import Pcg32Stream
from looptrack.track.polyline import TrackPolyline
from looptrack.track.fallback import fallback_rounded_rectangle

__all__ = [
    "Strategy",
    "DriverConfig",
    "TrackSearchDriver",
    "generate_track",
    "Pcg32Stream",
    "TrackPolyline",
    "fallback_rounded_rectangle",
    "__version__",
]
