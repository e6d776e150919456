"""Benchmark suite configuration.

Suites are YAML files listing the cases to time: an index n and the
algorithms to run it on. Top-level keys set the timing parameters shared
by every case.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from fibonacci.errors import ConfigError

DEFAULT_SUITE_PATH = Path(__file__).parent / "benchmark" / "suite.yaml"


@dataclass(frozen=True)
class BenchmarkCase:
    """Configuration for a single benchmark case.

    Attributes:
        name: Case identifier.
        n: Index passed to every algorithm.
        algorithms: Exposed names of the algorithms to time.
        enabled: Whether the case is run.
        inner_loops: Calls per timed sample, overriding the suite value.
    """

    name: str
    n: int
    algorithms: tuple[str, ...]
    enabled: bool = True
    inner_loops: int | None = None


@dataclass
class BenchmarkSuite:
    """Collection of benchmark cases plus timing parameters.

    Attributes:
        name: Suite name.
        cases: Benchmark cases, in file order.
        warmup: Number of discarded warmup samples.
        min_runs: Minimum number of timed samples.
        max_runs: Maximum number of timed samples.
        target_cv: Stop sampling once stddev/mean drops to this value.
        inner_loops: Calls per timed sample.
    """

    name: str
    cases: list[BenchmarkCase] = field(default_factory=list)
    warmup: int = 3
    min_runs: int = 5
    max_runs: int = 50
    target_cv: float = 0.05
    inner_loops: int = 200

    def enabled_cases(self, name: str | None = None) -> list[BenchmarkCase]:
        """Return enabled cases, optionally only the one called name."""
        return [
            case
            for case in self.cases
            if case.enabled and (name is None or case.name == name)
        ]


def _require_int(data: dict, key: str, default: int, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        msg = f"{key!r} must be an integer >= {minimum}, got {value!r}"
        raise ConfigError(msg)
    return value


def _parse_case(
    data: object, index: int, known_algorithms: tuple[str, ...]
) -> BenchmarkCase:
    if not isinstance(data, dict):
        msg = f"benchmark #{index} must be a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    if "name" not in data:
        msg = f"benchmark #{index} has no 'name'"
        raise ConfigError(msg)
    name = str(data["name"])
    if "n" not in data:
        msg = f"benchmark {name!r} has no 'n'"
        raise ConfigError(msg)
    n = _require_int(data, "n", 0, 0)

    algorithms = data.get("algorithms") or list(known_algorithms)
    if isinstance(algorithms, str):
        algorithms = [algorithms]
    if not isinstance(algorithms, list):
        msg = f"benchmark {name!r}: 'algorithms' must be a list"
        raise ConfigError(msg)
    unknown = [a for a in algorithms if a not in known_algorithms]
    if unknown:
        msg = f"benchmark {name!r} names unknown algorithms: {', '.join(map(str, unknown))}"
        raise ConfigError(msg)

    return BenchmarkCase(
        name=name,
        n=n,
        algorithms=tuple(algorithms),
        enabled=bool(data.get("enabled", True)),
        inner_loops=(
            _require_int(data, "inner_loops", 1, 1) if "inner_loops" in data else None
        ),
    )


def parse_suite(data: object, known_algorithms: Iterable[str]) -> BenchmarkSuite:
    """Build a BenchmarkSuite from a decoded YAML document.

    Args:
        data: The decoded document.
        known_algorithms: Names the cases may refer to.

    Returns:
        The suite configuration.

    Raises:
        ConfigError: If the document is malformed.
    """
    if not isinstance(data, dict):
        msg = "suite configuration must be a mapping"
        raise ConfigError(msg)

    known = tuple(known_algorithms)
    raw_cases = data.get("benchmarks") or []
    if not isinstance(raw_cases, list):
        msg = "'benchmarks' must be a list"
        raise ConfigError(msg)

    target_cv = data.get("target_cv", 0.05)
    if isinstance(target_cv, bool) or not isinstance(target_cv, (int, float)) or target_cv <= 0:
        msg = f"'target_cv' must be a positive number, got {target_cv!r}"
        raise ConfigError(msg)

    suite = BenchmarkSuite(
        name=str(data.get("name", "benchmarks")),
        cases=[_parse_case(c, i, known) for i, c in enumerate(raw_cases)],
        warmup=_require_int(data, "warmup", 3, 0),
        min_runs=_require_int(data, "min_runs", 5, 2),
        max_runs=_require_int(data, "max_runs", 50, 2),
        target_cv=float(target_cv),
        inner_loops=_require_int(data, "inner_loops", 200, 1),
    )
    if suite.max_runs < suite.min_runs:
        msg = f"'max_runs' ({suite.max_runs}) is smaller than 'min_runs' ({suite.min_runs})"
        raise ConfigError(msg)
    return suite


def load_suite_config(
    config_path: Path | str, known_algorithms: Iterable[str]
) -> BenchmarkSuite:
    """Load a benchmark suite configuration from YAML.

    Args:
        config_path: Path to the suite file.
        known_algorithms: Names the cases may refer to.

    Returns:
        The suite configuration.

    Raises:
        ConfigError: If the file cannot be parsed or is malformed.
    """
    with Path(config_path).open() as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"cannot parse {config_path}: {e}"
            raise ConfigError(msg) from e
    return parse_suite(data, known_algorithms)
