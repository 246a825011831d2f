"""
Deterministic pseudo-random stream and the coordinate -> seed hash behind it.

Cached snapshots were generated with this exact recurrence and hash; keep
the constants fixed.
"""
import math
from typing import Iterator

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


class SeededRandom:
    """
    Linear-congruential stream of floats in [0, 1).

    Calling the instance advances one shared stream; iterating it starts a
    fresh stream from the seed, so the sequence is restartable.
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._state = self.seed

    def __call__(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def __iter__(self) -> Iterator[float]:
        state = self.seed
        while True:
            state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
            yield state / LCG_MODULUS

    def reset(self) -> None:
        self._state = self.seed


def coordinate_seed(lat: float, lng: float) -> float:
    """Fractional hash of (lat, lng) in [0, 1)."""
    s = math.sin(lat * 127.1 + lng * 311.7) * 43758.5453123
    return s - math.floor(s)


def location_seed(lat: float, lng: float) -> int:
    """Integer seed for SeededRandom derived from the raw coordinate."""
    return math.floor(coordinate_seed(lat, lng) * 1e6)
