"""
dicelang/rng.py

Random sources for dice evaluation.

The evaluator only ever calls roll(min, max). Production code uses
SystemRandomSource; tests replay fixed values with SequenceRandomSource.
"""

import random
import threading
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .errors import InvalidRangeError, RandomSourceExhausted


class RandomSource(ABC):
    """Supplier of uniformly distributed integers."""

    @abstractmethod
    def roll(self, low: int, high: int) -> int:
        """
        Return an integer in [low, high].

        Raises:
            InvalidRangeError: If low > high
        """

    @staticmethod
    def _check_range(low: int, high: int) -> None:
        if low > high:
            raise InvalidRangeError(f"Invalid range: {low} > {high}")


class SystemRandomSource(RandomSource):
    """
    Pseudorandom source seeded from OS entropy.

    Accepts an injected generator (random.Random or anything with a
    randint(a, b) method) for seeded, reproducible runs. Calls are
    serialized with a lock so one instance can be shared across threads.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._lock = threading.Lock()

    def roll(self, low: int, high: int) -> int:
        self._check_range(low, high)
        with self._lock:
            return self.rng.randint(low, high)


class SequenceRandomSource(RandomSource):
    """
    Deterministic source replaying a fixed list of values.

    Example:
        >>> source = SequenceRandomSource([1, 6, 3, 2])
        >>> [source.roll(1, 6) for _ in range(4)]
        [1, 6, 3, 2]
    """

    def __init__(self, values: Iterable[int]):
        self.values: List[int] = list(values)
        self._index = 0

    @property
    def remaining(self) -> int:
        return len(self.values) - self._index

    def roll(self, low: int, high: int) -> int:
        self._check_range(low, high)
        if self._index >= len(self.values):
            raise RandomSourceExhausted(
                f"Sequence exhausted after {len(self.values)} values"
            )
        value = self.values[self._index]
        if not low <= value <= high:
            raise InvalidRangeError(
                f"Replayed value {value} outside requested range [{low}, {high}]"
            )
        self._index += 1
        return value


class ConstantRandomSource(RandomSource):
    """Always returns the same value, clamped to the requested range."""

    def __init__(self, value: int):
        self.value = value

    def roll(self, low: int, high: int) -> int:
        self._check_range(low, high)
        return min(max(self.value, low), high)


_default_source: Optional[SystemRandomSource] = None
_default_lock = threading.Lock()


def default_source() -> SystemRandomSource:
    """Process-wide random source, created on first use."""
    global _default_source
    with _default_lock:
        if _default_source is None:
            _default_source = SystemRandomSource()
        return _default_source
