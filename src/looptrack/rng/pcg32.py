"""
PCG32 stream - Counter-based 32-bit generator for reproducible generation.

Provides:
- Seeding from a signed 32-bit integer
- Raw 32-bit draws
- Unbiased bounded integers (rejection sampling)
- Floats in [0, 1)
- Coin flips and weighted index picks
"""

from typing import Sequence

MASK_32 = 0xFFFFFFFF
MASK_64 = 0xFFFFFFFFFFFFFFFF

PCG_MULTIPLIER = 6364136223846793005
DEFAULT_STREAM = 1442695040888963407


class Pcg32Stream:
    """PCG32 (XSH-RR) random stream.

    A stream is owned by exactly one generation attempt. Two streams
    built from the same seed produce the same sequence on every platform.

    Usage:
        stream = Pcg32Stream(1337)
        value = stream.next_int(0, 10)
    """

    def __init__(self, seed: int):
        """Initialize stream from a seed.

        Args:
            seed: Signed 32-bit seed (wider ints are truncated to 32 bits)
        """
        self.seed = seed

        seed_bits = seed & MASK_32
        initial_state = ((seed_bits << 1) | 1) & MASK_64
        stream = DEFAULT_STREAM ^ (((seed_bits << 33) | 1) & MASK_64)

        self._state = 0
        self._increment = ((stream << 1) | 1) & MASK_64
        self.next_u32()
        self._state = (self._state + initial_state) & MASK_64
        self.next_u32()

    def next_u32(self) -> int:
        """Draw a uniform unsigned 32-bit integer."""
        old_state = self._state
        self._state = (old_state * PCG_MULTIPLIER + self._increment) & MASK_64
        xor_shifted = (((old_state >> 18) ^ old_state) >> 27) & MASK_32
        rotate = old_state >> 59
        return ((xor_shifted >> rotate) | (xor_shifted << ((-rotate) & 31))) & MASK_32

    def next_int(self, min_inclusive: int, max_exclusive: int) -> int:
        """Draw an integer in [min_inclusive, max_exclusive).

        Uses rejection sampling so every value in the range is
        equally likely.

        Args:
            min_inclusive: Lower bound
            max_exclusive: Upper bound, must exceed the lower bound

        Returns:
            Bounded integer

        Raises:
            ValueError: If the range is empty
        """
        if max_exclusive <= min_inclusive:
            raise ValueError(
                f"max_exclusive ({max_exclusive}) must be greater than "
                f"min_inclusive ({min_inclusive})"
            )

        span = (max_exclusive - min_inclusive) & MASK_32
        if span == 0:
            raise ValueError("Range does not fit in 32 bits")

        threshold = ((1 << 32) - span) % span
        while True:
            value = self.next_u32()
            if value >= threshold:
                return min_inclusive + value % span

    def next_float01(self) -> float:
        """Draw a float in [0, 1) with 24 bits of precision."""
        return (self.next_u32() >> 8) * (1.0 / 16777216.0)

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.next_float01() < probability

    def pick_index_weighted(self, weights: Sequence[float]) -> int:
        """Pick an index with probability proportional to its weight.

        Args:
            weights: Non-negative weights

        Returns:
            Selected index

        Raises:
            ValueError: If no weight is positive or a weight is negative
        """
        total = 0.0
        for weight in weights:
            if weight < 0:
                raise ValueError(f"Negative weight: {weight}")
            total += weight

        if total <= 0:
            raise ValueError("At least one weight must be positive")

        roll = self.next_float01() * total
        cumulative = 0.0
        last_positive = 0
        for index, weight in enumerate(weights):
            if weight <= 0:
                continue
            cumulative += weight
            last_positive = index
            if roll < cumulative:
                return index

        # Float round-off at the top of the range
        return last_positive
