"""Exceptions raised by the Fibonacci library.

Fixed-width overflow and floating-point precision loss are not errors and
have no exception here; they are part of the unsigned result contract.
"""

from __future__ import annotations


class FibonacciError(Exception):
    """Base class for all errors raised by this package."""


class ArgumentTypeError(FibonacciError, TypeError):
    """Argument is not a non-negative integer of the expected width."""


class OutOfRangeError(FibonacciError, ValueError):
    """Index beyond the bound of the precomputed table.

    Attributes:
        n: The requested index.
        bound: Number of entries in the table (valid indices are 0..bound-1).
    """

    def __init__(self, n: int, bound: int) -> None:
        self.n = n
        self.bound = bound
        super().__init__(
            f"n={n} is out of range for the precomputed table (must be < {bound})"
        )


class UnknownFunctionError(FibonacciError, KeyError):
    """No host function registered under the requested name."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class ConfigError(FibonacciError, ValueError):
    """Malformed benchmark suite configuration."""
