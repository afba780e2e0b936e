"""
Curve module - Turn grid loops into smooth world-space polylines.

This module contains:
- chaikin_closed: Closed-loop corner cutting
- resample_closed: Uniform arc-length resampling
- smooth_and_resample: Full post-processing pipeline
"""

from looptrack.curve.smoothing import (
    CurveConfig,
    add_unique,
    close_polyline,
    chaikin_closed,
    resample_closed,
    smooth_and_resample,
)

__all__ = [
    "CurveConfig",
    "add_unique",
    "close_polyline",
    "chaikin_closed",
    "resample_closed",
    "smooth_and_resample",
]
