"""Host bindings for the Fibonacci algorithms.

A host (the interpreter importing this package, or the command line) calls
each algorithm with a single unsigned integer and gets a single unsigned
integer back. This module provides:

- `coerce_unsigned`: marshals a host value into the native parameter type
- `HostFunction`: one adapter per algorithm (argument and result marshalling)
- `Registry`: an immutable name -> HostFunction mapping, built once
- `create_host_module`: a module object exposing a registry's functions
"""

from __future__ import annotations

import functools
import logging
import operator
import types
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass

from fibonacci import algorithms
from fibonacci.algorithms import UINT_BITS, UINT_MAX
from fibonacci.errors import ArgumentTypeError, UnknownFunctionError

logger = logging.getLogger(__name__)

NativeFunction = Callable[[int], int]

# (exposed name, native function, host docstring)
ALGORITHMS: tuple[tuple[str, NativeFunction, str], ...] = (
    (
        "fibonacci_iterative",
        algorithms.fibonacci_iterative,
        "Computes the nth Fibonacci number using an iterative sum.",
    ),
    (
        "fibonacci_power_law",
        algorithms.fibonacci_power_law,
        "Computes the nth Fibonacci number using the power-law solution to "
        "the difference equation and some tools from libm.",
    ),
    (
        "fibonacci_power_law_naive",
        algorithms.fibonacci_power_law_naive,
        "Computes the nth Fibonacci number using the power-law solution to "
        "the difference equation. Powers are naively computed.",
    ),
    (
        "fibonacci_recursive",
        algorithms.fibonacci_recursive,
        "Computes the nth Fibonacci number using the recursive definition.",
    ),
    (
        "fibonacci_table",
        algorithms.fibonacci_table,
        "Computes the nth Fibonacci number using a precomputed table.",
    ),
)


def coerce_unsigned(value: object) -> int:
    """Convert a host value to an unsigned integer of width UINT_BITS.

    Only integers (objects implementing ``__index__``) are accepted; bools,
    floats and strings are rejected rather than coerced.

    Args:
        value: Value received from the host.

    Returns:
        The value as a plain int in 0..UINT_MAX.

    Raises:
        ArgumentTypeError: If the value is not an integer, is negative, or
            does not fit in UINT_BITS bits.
    """
    if isinstance(value, bool):
        msg = "expected an unsigned integer, got bool"
        raise ArgumentTypeError(msg)
    try:
        n = operator.index(value)  # type: ignore[arg-type]
    except TypeError:
        msg = f"expected an unsigned integer, got {type(value).__name__}"
        raise ArgumentTypeError(msg) from None
    if n < 0:
        msg = f"expected an unsigned integer, got negative value {n}"
        raise ArgumentTypeError(msg)
    if n > UINT_MAX:
        msg = f"value {n} does not fit in an unsigned {UINT_BITS}-bit integer"
        raise ArgumentTypeError(msg)
    return n


@dataclass(frozen=True)
class HostFunction:
    """Adapter exposing a native algorithm to the host.

    Attributes:
        name: Name the host sees.
        native: The algorithm, taking and returning a plain int.
        doc: Docstring shown to the host.
    """

    name: str
    native: NativeFunction
    doc: str

    def __call__(self, *args: object, **kwargs: object) -> int:
        if kwargs:
            msg = f"{self.name}() takes no keyword arguments"
            raise ArgumentTypeError(msg)
        if len(args) != 1:
            msg = f"{self.name}() takes exactly one argument ({len(args)} given)"
            raise ArgumentTypeError(msg)
        n = coerce_unsigned(args[0])
        return self.native(n) & UINT_MAX

    def as_callable(self) -> Callable[..., int]:
        """Return a plain function wrapping this adapter, for module export."""

        def wrapper(*args: object, **kwargs: object) -> int:
            return self(*args, **kwargs)

        wrapper.__name__ = self.name
        wrapper.__qualname__ = self.name
        wrapper.__doc__ = self.doc
        return wrapper


class Registry(Mapping[str, HostFunction]):
    """Immutable mapping of exposed names to host functions."""

    def __init__(self, functions: Iterable[HostFunction]) -> None:
        entries: dict[str, HostFunction] = {}
        for func in functions:
            if func.name in entries:
                msg = f"duplicate host function name: {func.name}"
                raise ValueError(msg)
            entries[func.name] = func
        self._entries = types.MappingProxyType(entries)

    def __getitem__(self, name: str) -> HostFunction:
        try:
            return self._entries[name]
        except KeyError:
            known = ", ".join(sorted(self._entries))
            msg = f"no function named {name!r} (known: {known})"
            raise UnknownFunctionError(msg) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_function(self, name: str) -> HostFunction:
        """Return the host function registered under name.

        Raises:
            UnknownFunctionError: If no such function is registered.
        """
        return self[name]

    def names(self) -> list[str]:
        return sorted(self._entries)

    def call(self, name: str, *args: object, **kwargs: object) -> int:
        """Call a registered function the way the host would."""
        return self[name](*args, **kwargs)

    def __repr__(self) -> str:
        return f"<Registry {self.names()}>"


def build_registry(
    functions: Iterable[tuple[str, NativeFunction, str]] = ALGORITHMS,
) -> Registry:
    """Wrap each (name, native, doc) triple in a HostFunction.

    Args:
        functions: Triples describing the functions to expose.

    Returns:
        A new immutable Registry.
    """
    registry = Registry(HostFunction(name, native, doc) for name, native, doc in functions)
    logger.debug("Registered %d host functions: %s", len(registry), registry.names())
    return registry


@functools.cache
def default_registry() -> Registry:
    """Return the registry of the five algorithms, built on first call."""
    return build_registry(ALGORITHMS)


def create_host_module(registry: Registry, name: str = "fibonacci") -> types.ModuleType:
    """Create a module exposing every function of a registry.

    Args:
        registry: Functions to expose.
        name: Module name.

    Returns:
        A module whose attributes are the registry's host functions.
    """
    module = types.ModuleType(name, "Fibonacci algorithms exposed to the host.")
    for func_name, func in registry.items():
        setattr(module, func_name, func.as_callable())
    module.__all__ = registry.names()  # type: ignore[attr-defined]
    return module
