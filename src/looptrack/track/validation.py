"""
Validation boundary - Verdict types for an external track validator.

The validator itself lives outside this package. It receives a
TrackPolyline and a racer count and answers with a ValidationResult.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class QualityBand(Enum):
    """Coarse quality classification."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def from_score(cls, score: float) -> "QualityBand":
        """Band a 0-100 score (>= 75 green, >= 50 yellow)."""
        if score >= 75.0:
            return cls.GREEN
        if score >= 50.0:
            return cls.YELLOW
        return cls.RED


@dataclass(frozen=True)
class ValidationResult:
    """External validator verdict."""
    passed: bool
    score: float = 0.0                        # 0-100
    band: QualityBand = QualityBand.RED
    reasons: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 0.0 <= self.score <= 100.0:
            raise ValueError(f"score must be within [0, 100], got {self.score}")

    def get_state(self) -> dict:
        return {
            "passed": self.passed,
            "score": self.score,
            "band": self.band.value,
            "reasons": list(self.reasons),
        }
