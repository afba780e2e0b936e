"""
Track module - Generated track output and boundary types.

This module contains:
- TrackPolyline: Closed, arc-length uniform centerline
- ValidationResult / QualityBand: Verdict of an external validator
- fallback_rounded_rectangle: Fallback track for empty searches
"""

from looptrack.track.polyline import TrackPolyline
from looptrack.track.validation import ValidationResult, QualityBand
from looptrack.track.fallback import fallback_rounded_rectangle

__all__ = [
    "TrackPolyline",
    "ValidationResult",
    "QualityBand",
    "fallback_rounded_rectangle",
]
