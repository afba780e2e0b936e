"""
Seed mixing - Pure integer functions for forking reproducible sub-streams.

All arithmetic wraps to signed 32-bit integers so that results match
across platforms and implementations.
"""

GOLDEN_GAMMA = 0x9E3779B9
MIX_B = 0x85EBCA6B
MIX_C = 0xC2B2AE35
TRACK_SEED_SALT = 0x7F4A7C15


def to_int32(value: int) -> int:
    """Wrap an arbitrary Python int to a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def stable_mix(a: int, b: int, c: int, d: int) -> int:
    """Mix four integers into a child seed.

    Multiply-xor cascade. Same inputs always give the same seed.

    Args:
        a: Parent seed
        b: First salt (usually the variant)
        c: Second salt (usually the attempt index)
        d: Third salt (strategy constant)

    Returns:
        Signed 32-bit child seed
    """
    h = 17
    h = to_int32(h * 31) ^ to_int32(a)
    h = to_int32(h * 31) ^ to_int32(b * GOLDEN_GAMMA)
    h = to_int32(h * 31) ^ to_int32(c * MIX_B)
    h = to_int32(h * 31) ^ to_int32(d * MIX_C)
    h = to_int32(h)
    h ^= h >> 16
    return to_int32(h)


def fork(seed: int, a: int, b: int, c: int) -> int:
    """Fork a child seed from a parent seed and three salts.

    Alias of stable_mix with the seed as the first argument.
    """
    return stable_mix(seed, a, b, c)


def derive_track_seed(seed: int, variant: int) -> int:
    """Derive the root seed of a track variant.

    Args:
        seed: Scenario seed
        variant: Track variant index

    Returns:
        Signed 32-bit track seed
    """
    return to_int32(
        to_int32(seed) ^ to_int32(variant * GOLDEN_GAMMA) ^ TRACK_SEED_SALT
    )


def fnv1a32(text: str) -> int:
    """FNV-1a hash of a string over its UTF-16 code units.

    Args:
        text: Text to hash

    Returns:
        Unsigned 32-bit hash
    """
    data = (text or "").encode("utf-16-le")
    value = 2166136261
    for i in range(0, len(data), 2):
        value ^= data[i] | (data[i + 1] << 8)
        value = (value * 16777619) & 0xFFFFFFFF
    return value
