"""Five ways to compute the nth Fibonacci number.

Every function takes an unsigned integer n and returns an unsigned integer
of width UINT_BITS. Results that do not fit wrap around silently, the way
fixed-width unsigned arithmetic does; this is part of the contract and not
an error.

The two power-law variants evaluate Binet's formula, round(phi**n / sqrt 5),
in floating point. They differ only in how phi**n is computed: by n
repeated multiplications, or by square-and-multiply in O(log n) steps.
"""

from __future__ import annotations

import math

from fibonacci.table import FibonacciTable

UINT_BITS = 32
UINT_MAX = (1 << UINT_BITS) - 1

# Float -> unsigned conversion goes through a signed 64-bit integer.
_FLOAT_CONVERT_LIMIT = float(1 << 63)

SQRT5 = math.sqrt(5.0)
PHI = (1.0 + SQRT5) / 2.0

TABLE = FibonacciTable(limit=UINT_MAX)


def wrap(value: int) -> int:
    """Reduce an integer to the unsigned result width."""
    return value & UINT_MAX


def float_to_unsigned(value: float) -> int:
    """Convert a float to the unsigned result type.

    Truncates toward zero and keeps the low UINT_BITS bits. Values that are
    not finite, or whose magnitude is 2**63 or more, convert to 0.
    """
    if not math.isfinite(value) or abs(value) >= _FLOAT_CONVERT_LIMIT:
        return 0
    return wrap(int(value))


def fibonacci_iterative(n: int) -> int:
    """Compute F(n) by iterated summation, O(n) time and O(1) space."""
    a, b = 0, 1
    for _ in range(n):
        a, b = b, wrap(a + b)
    return a


def fibonacci_recursive(n: int) -> int:
    """Compute F(n) straight from the recursive definition.

    No memoization: the running time is exponential in n, so anything much
    above n=30 is impractical, and very large n exhausts the interpreter
    stack (RecursionError).
    """
    if n < 2:
        return n
    return wrap(fibonacci_recursive(n - 1) + fibonacci_recursive(n - 2))


def fibonacci_table(n: int) -> int:
    """Look F(n) up in the precomputed table.

    Raises:
        OutOfRangeError: If n is beyond the table (F(n) would not fit).
    """
    return TABLE.lookup(n)


def power_naive(x: float, n: int) -> float:
    """Compute x**n with n multiplications."""
    result = 1.0
    for _ in range(n):
        result *= x
    return result


def power_fast(x: float, n: int) -> float:
    """Compute x**n by square-and-multiply, O(log n) multiplications.

    Walks the bits of n from least to most significant, multiplying the
    accumulator by the current square whenever the bit is set. Overflow
    produces inf rather than raising.
    """
    result = 1.0
    square = x
    while n:
        if n & 1:
            result *= square
        n >>= 1
        if n:
            square *= square
    return result


def binet(phi_n: float) -> int:
    """Round phi**n / sqrt(5) half-up and convert to the unsigned type."""
    scaled = phi_n / SQRT5
    if not math.isfinite(scaled):
        return 0
    return float_to_unsigned(math.floor(scaled + 0.5))


def fibonacci_power_law_naive(n: int) -> int:
    """Compute F(n) with Binet's formula, powers computed naively."""
    return binet(power_naive(PHI, n))


def fibonacci_power_law(n: int) -> int:
    """Compute F(n) with Binet's formula, powers by fast exponentiation."""
    return binet(power_fast(PHI, n))
