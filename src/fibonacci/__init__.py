"""fibonacci: five ways to compute the nth Fibonacci number.

The functions exported here are the host bindings: each takes exactly one
unsigned integer and returns an unsigned 32-bit result. The unchecked
native implementations live in `fibonacci.algorithms`.
"""

from __future__ import annotations

from fibonacci.binding import (
    HostFunction,
    Registry,
    build_registry,
    create_host_module,
    default_registry,
)
from fibonacci.errors import (
    ArgumentTypeError,
    ConfigError,
    FibonacciError,
    OutOfRangeError,
    UnknownFunctionError,
)

__version__ = "0.1.0"

_registry = default_registry()

fibonacci_iterative = _registry["fibonacci_iterative"].as_callable()
fibonacci_power_law = _registry["fibonacci_power_law"].as_callable()
fibonacci_power_law_naive = _registry["fibonacci_power_law_naive"].as_callable()
fibonacci_recursive = _registry["fibonacci_recursive"].as_callable()
fibonacci_table = _registry["fibonacci_table"].as_callable()

del _registry

__all__ = [
    "ArgumentTypeError",
    "ConfigError",
    "FibonacciError",
    "HostFunction",
    "OutOfRangeError",
    "Registry",
    "UnknownFunctionError",
    "build_registry",
    "create_host_module",
    "default_registry",
    "fibonacci_iterative",
    "fibonacci_power_law",
    "fibonacci_power_law_naive",
    "fibonacci_recursive",
    "fibonacci_table",
]
