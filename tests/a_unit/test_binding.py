"""Unit tests for fibonacci.binding and the package-level host functions."""

from __future__ import annotations

import inspect
import types

import pytest

import fibonacci
from fibonacci.algorithms import UINT_MAX
from fibonacci.binding import (
    ALGORITHMS,
    HostFunction,
    Registry,
    build_registry,
    coerce_unsigned,
    create_host_module,
    default_registry,
)
from fibonacci.errors import ArgumentTypeError, OutOfRangeError, UnknownFunctionError

EXPOSED_NAMES = [
    "fibonacci_iterative",
    "fibonacci_power_law",
    "fibonacci_power_law_naive",
    "fibonacci_recursive",
    "fibonacci_table",
]


class IndexLike:
    """Integer-like object, as numpy scalars are."""

    def __init__(self, value: int) -> None:
        self.value = value

    def __index__(self) -> int:
        return self.value


class TestCoerceUnsigned:
    """Tests for coerce_unsigned function."""

    @pytest.mark.parametrize("value", [0, 1, 55, UINT_MAX])
    def test_accepts_unsigned_ints(self, value: int) -> None:
        assert coerce_unsigned(value) == value

    def test_accepts_index_objects(self) -> None:
        assert coerce_unsigned(IndexLike(10)) == 10

    @pytest.mark.parametrize("value", [1.5, 10.0, "3", None, b"1", [1], True, False])
    def test_rejects_non_integers(self, value: object) -> None:
        with pytest.raises(ArgumentTypeError):
            coerce_unsigned(value)

    @pytest.mark.parametrize("value", [-1, -(2**40), UINT_MAX + 1, 2**64])
    def test_rejects_out_of_width(self, value: int) -> None:
        with pytest.raises(ArgumentTypeError):
            coerce_unsigned(value)

    def test_error_is_type_error(self) -> None:
        with pytest.raises(TypeError, match="got float"):
            coerce_unsigned(2.5)

    def test_negative_message(self) -> None:
        with pytest.raises(ArgumentTypeError, match="negative"):
            coerce_unsigned(-3)


class TestHostFunction:
    """Tests for HostFunction adapters."""

    def test_call(self) -> None:
        func = HostFunction("double", lambda n: 2 * n, "Doubles n.")
        assert func(21) == 42

    def test_result_is_wrapped(self) -> None:
        func = HostFunction("big", lambda n: n + UINT_MAX + 1, "")
        assert func(7) == 7

    def test_rejects_bad_argument_before_calling(self) -> None:
        calls = []
        func = HostFunction("spy", lambda n: calls.append(n) or 0, "")
        with pytest.raises(ArgumentTypeError):
            func(-1)
        assert calls == []

    @pytest.mark.parametrize("args", [(), (1, 2)])
    def test_arity(self, args: tuple) -> None:
        func = HostFunction("one", lambda n: n, "")
        with pytest.raises(ArgumentTypeError, match="exactly one argument"):
            func(*args)

    def test_no_keywords(self) -> None:
        func = HostFunction("one", lambda n: n, "")
        with pytest.raises(ArgumentTypeError, match="keyword"):
            func(n=1)

    def test_as_callable(self) -> None:
        func = HostFunction("one", lambda n: n, "Returns n.")
        wrapper = func.as_callable()
        assert wrapper.__name__ == "one"
        assert wrapper.__doc__ == "Returns n."
        assert wrapper(5) == 5

    def test_as_callable_does_not_expose_native(self) -> None:
        wrapper = HostFunction("one", lambda n: n, "").as_callable()
        assert not hasattr(wrapper, "__wrapped__")
        assert inspect.unwrap(wrapper) is wrapper

    def test_exported_functions_unwrap_to_checked_adapter(self) -> None:
        unwrapped = inspect.unwrap(fibonacci.fibonacci_iterative)
        with pytest.raises(ArgumentTypeError, match="negative"):
            unwrapped(-1)


class TestRegistry:
    """Tests for Registry and build_registry."""

    def test_default_names(self) -> None:
        registry = build_registry()
        assert registry.names() == EXPOSED_NAMES
        assert len(registry) == 5
        assert set(registry) == set(EXPOSED_NAMES)

    def test_docstrings(self) -> None:
        registry = build_registry()
        assert registry["fibonacci_table"].doc == (
            "Computes the nth Fibonacci number using a precomputed table."
        )
        assert "naively" in registry["fibonacci_power_law_naive"].doc

    def test_call(self) -> None:
        registry = build_registry()
        for name in EXPOSED_NAMES:
            assert registry.call(name, 10) == 55

    def test_call_table_out_of_range(self) -> None:
        registry = build_registry()
        with pytest.raises(OutOfRangeError):
            registry.call("fibonacci_table", 48)

    def test_unknown_name(self) -> None:
        registry = build_registry()
        with pytest.raises(UnknownFunctionError, match="fibonacci_magic"):
            registry.get_function("fibonacci_magic")
        with pytest.raises(KeyError):
            registry.call("fibonacci_magic", 1)

    def test_mapping_protocol(self) -> None:
        registry = build_registry()
        assert "fibonacci_table" in registry
        assert "fibonacci_magic" not in registry
        assert registry.get("fibonacci_magic") is None

    def test_immutable(self) -> None:
        registry = build_registry()
        with pytest.raises(TypeError):
            registry["fibonacci_new"] = HostFunction("x", lambda n: n, "")  # type: ignore[index]

    def test_duplicate_names(self) -> None:
        func = HostFunction("same", lambda n: n, "")
        with pytest.raises(ValueError, match="duplicate"):
            Registry([func, func])

    def test_custom_functions(self) -> None:
        registry = build_registry([("square", lambda n: n * n, "Squares n.")])
        assert registry.names() == ["square"]
        assert registry.call("square", 12) == 144

    def test_default_registry_is_shared(self) -> None:
        assert default_registry() is default_registry()
        assert default_registry().names() == [name for name, _, _ in sorted(ALGORITHMS)]


class TestHostModule:
    """Tests for create_host_module function."""

    def test_module_contents(self) -> None:
        module = create_host_module(build_registry())
        assert isinstance(module, types.ModuleType)
        assert module.__name__ == "fibonacci"
        assert module.__all__ == EXPOSED_NAMES
        assert module.fibonacci_iterative(10) == 55
        assert "iterative sum" in module.fibonacci_iterative.__doc__

    def test_module_rejects_bad_input(self) -> None:
        module = create_host_module(build_registry(), name="fib_host")
        assert module.__name__ == "fib_host"
        with pytest.raises(ArgumentTypeError):
            module.fibonacci_recursive("10")


class TestPackageExports:
    """The package itself exposes the host functions."""

    def test_scenarios(self) -> None:
        assert fibonacci.fibonacci_iterative(10) == 55
        assert fibonacci.fibonacci_recursive(10) == 55
        assert fibonacci.fibonacci_table(10) == 55
        assert fibonacci.fibonacci_power_law(10) == 55
        assert fibonacci.fibonacci_power_law_naive(20) == 6765

    def test_rejects_negative(self) -> None:
        with pytest.raises(fibonacci.ArgumentTypeError):
            fibonacci.fibonacci_iterative(-1)

    def test_table_bound(self) -> None:
        with pytest.raises(fibonacci.OutOfRangeError):
            fibonacci.fibonacci_table(48)

    def test_errors_share_base(self) -> None:
        for error in (
            fibonacci.ArgumentTypeError,
            fibonacci.OutOfRangeError,
            fibonacci.UnknownFunctionError,
            fibonacci.ConfigError,
        ):
            assert issubclass(error, fibonacci.FibonacciError)
