"""Deterministic pseudo-random source for the simulation engine.

Every stochastic decision the engine makes is drawn from a single
:class:`DeterministicRandom` instance in a fixed call order.  With Mulberry32
the same seed and the same sequence of calls always yield the same floats,
independent of wall clock or OS entropy.
"""

from __future__ import annotations

import math

_MASK32 = 0xFFFFFFFF
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply (result kept unsigned)."""
    return (a * b) & _MASK32


class DeterministicRandom:
    """Seeded Mulberry32 generator with the draws the engine needs."""

    __slots__ = ("_seed", "_state")

    def __init__(self, seed: int = 1) -> None:
        self._seed = 0
        self._state = 0
        self.reseed(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reseed(self, seed: int) -> None:
        """Restart the sequence from *seed* (taken modulo 2**32)."""
        self._seed = int(seed) & _MASK32
        self._state = self._seed

    def next(self) -> float:
        """Return the next float in ``[0, 1)``."""
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        a = self._state
        t = _imul(a ^ (a >> 15), 1 | a)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    __call__ = next

    def uniform(self, low: float, high: float) -> float:
        """Float in ``[low, high)``."""
        return low + (high - low) * self.next()

    def integer(self, low: int, high: int) -> int:
        """Integer in ``[low, high]`` inclusive."""
        return math.floor(self.uniform(low, high + 1))

    def approx_normal(self, mean: float = 0.0, stddev: float = 1.0) -> float:
        """Approximately normal draw: six uniforms summed and centred.

        Not a true Gaussian: bounded to ``mean ± 3*stddev``.
        """
        total = 0.0
        for _ in range(6):
            total += self.next()
        return mean + (total - 3.0) * stddev

    def bernoulli(self, probability: float) -> bool:
        return self.next() < probability
