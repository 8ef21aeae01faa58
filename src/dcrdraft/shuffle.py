"""
Input order randomization.

Inputs are shuffled so the order in which the caller listed them (often the
order the wallet handed them out) does not leak to chain observers. Only
inputs are reordered.
"""

from __future__ import annotations

import secrets
from typing import Protocol, TypeVar

from dcrdraft.errors import EntropyUnavailableError

T = TypeVar("T")


class RandomSource(Protocol):
    def randbelow(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        ...


class SystemRandomSource:
    """Randomness from the operating system CSPRNG."""

    def __init__(self) -> None:
        self._rng = secrets.SystemRandom()

    def randbelow(self, n: int) -> int:
        try:
            return self._rng.randrange(n)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailableError(f"System randomness unavailable: {e}") from e


def shuffle_inputs(items: list[T], source: RandomSource | None = None) -> list[T]:
    """
    Fisher-Yates shuffle in place.

    Args:
        items: Sequence to permute
        source: Randomness source, defaults to the system CSPRNG

    Returns:
        The same list, permuted
    """
    if source is None:
        source = SystemRandomSource()
    for i in range(len(items) - 1, 0, -1):
        j = source.randbelow(i + 1)
        items[i], items[j] = items[j], items[i]
    return items
