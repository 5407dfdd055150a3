"""
Seedable Alea PRNG used for reproducible cave generation.

Based on Johannes Baagøe's Alea algorithm. Seeds are strings so a map can be
reproduced from whatever the user typed in.
"""

import time


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


def derive_seed() -> str:
    """Derive a fresh seed string from the clock."""
    return str(time.time_ns() % 1_000_000_007)


class AleaPRNG:
    """Alea PRNG with a string seed."""

    def __init__(self, seed):
        """Initialize with seed string or number."""
        self.seed = str(seed)

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            for char in str(data):
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000
            return _uint32(mash_n) * 2.3283064365386963e-10

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        self.s0 -= mash(self.seed)
        if self.s0 < 0:
            self.s0 += 1
        self.s1 -= mash(self.seed)
        if self.s1 < 0:
            self.s1 += 1
        self.s2 -= mash(self.seed)
        if self.s2 < 0:
            self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def randint(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        if high <= low:
            raise ValueError(f"Empty range [{low}, {high})")
        return low + int(self.random() * (high - low))

    def chance(self, percent: float) -> bool:
        """True with the given percentage probability."""
        return self.randint(0, 100) < percent
