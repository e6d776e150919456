"""Precomputed table of Fibonacci numbers.

The table holds every F(i) that fits below a limit (the largest value of
the unsigned result type). It is built once, on first access, under a lock
and published as an immutable tuple; reads after that never lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from fibonacci.errors import OutOfRangeError

logger = logging.getLogger(__name__)


def build_table(limit: int) -> tuple[int, ...]:
    """Build the Fibonacci numbers F(0), F(1), ... that are <= limit.

    Uses the same recurrence as the iterative algorithm,
    (a, b) -> (b, a + b), starting from (0, 1).

    Args:
        limit: Largest value allowed in the table.

    Returns:
        Tuple of Fibonacci numbers, indexed by n.
    """
    values: list[int] = []
    a, b = 0, 1
    while a <= limit:
        values.append(a)
        a, b = b, a + b
    return tuple(values)


class FibonacciTable:
    """Lazily built, bounds-checked table of Fibonacci numbers."""

    def __init__(self, limit: int) -> None:
        """Initialize an empty table.

        Args:
            limit: Largest value the table may hold; fixes the bound.
        """
        self.limit = limit
        self._values: tuple[int, ...] | None = None
        self._lock = threading.Lock()

    @property
    def is_built(self) -> bool:
        return self._values is not None

    def values(self) -> tuple[int, ...]:
        """Return the table, building it on first call."""
        values = self._values
        if values is None:
            with self._lock:
                if self._values is None:
                    self._values = build_table(self.limit)
                    logger.debug(
                        "Built Fibonacci table with %d entries (limit=%d)",
                        len(self._values),
                        self.limit,
                    )
                values = self._values
        return values

    @property
    def bound(self) -> int:
        """Number of entries; valid indices are 0..bound-1."""
        return len(self.values())

    def lookup(self, n: int) -> int:
        """Return F(n).

        Raises:
            OutOfRangeError: If n is negative or n >= bound.
        """
        values = self.values()
        if n < 0 or n >= len(values):
            raise OutOfRangeError(n, len(values))
        return values[n]

    def __getitem__(self, n: int) -> int:
        return self.lookup(n)

    def __len__(self) -> int:
        return self.bound

    def __iter__(self) -> Iterator[int]:
        return iter(self.values())

    def __repr__(self) -> str:
        state = f"bound={self.bound}" if self.is_built else "unbuilt"
        return f"<FibonacciTable limit={self.limit} {state}>"
