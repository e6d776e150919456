"""Benchmark orchestration and result checking.

Provides the in-process benchmark runner that:
- Times every algorithm of a case through its host binding
- Keeps sampling until timings are statistically stable
- Records the value each algorithm returned, so disagreements show up
- Checks all algorithms against the reference sequence (`check_agreement`)
"""

from __future__ import annotations

import logging
import math
import platform
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from fibonacci.algorithms import wrap
from fibonacci.benchmark.stats import TimingStats, format_stats, run_until_stable
from fibonacci.binding import Registry
from fibonacci.config import BenchmarkCase, BenchmarkSuite
from fibonacci.errors import FibonacciError

logger = logging.getLogger(__name__)

# Largest n checked per algorithm by `check_agreement`. The table ends at
# index 47 and the power-law variants are only exact while F(n) fits the
# unsigned width; recursion is capped for running time.
DEFAULT_VERIFY_LIMITS: Mapping[str, int] = {
    "fibonacci_recursive": 25,
    "fibonacci_table": 47,
    "fibonacci_power_law_naive": 47,
    "fibonacci_power_law": 47,
}

# Column order of the results table.
ALGORITHM_ORDER = (
    "fibonacci_iterative",
    "fibonacci_recursive",
    "fibonacci_table",
    "fibonacci_power_law_naive",
    "fibonacci_power_law",
)


@dataclass(frozen=True)
class CaseResult:
    """Result of timing one algorithm on one case.

    Attributes:
        case: Case name.
        algorithm: Exposed algorithm name.
        n: Index the algorithm was called with.
        value: Value returned, or None if the call failed.
        stats: Per-call timing statistics.
        error: Error message if the call failed.
    """

    case: str
    algorithm: str
    n: int
    value: int | None
    stats: TimingStats
    error: str | None = None


@dataclass
class Session:
    """Results of a benchmark run.

    Attributes:
        suite: Suite name.
        timestamp: When the run started.
        python: Interpreter the run used (e.g. "CPython 3.12.1").
        results: Results in execution order.
    """

    suite: str
    timestamp: datetime
    python: str
    results: list[CaseResult] = field(default_factory=list)

    def by_case(self) -> dict[str, dict[str, CaseResult]]:
        """Group results as {case: {algorithm: result}}."""
        grouped: dict[str, dict[str, CaseResult]] = {}
        for result in self.results:
            grouped.setdefault(result.case, {})[result.algorithm] = result
        return grouped

    def disagreements(self) -> dict[str, dict[str, int]]:
        """Return cases whose successful results are not all equal."""
        found = {}
        for case, results in self.by_case().items():
            values = {
                algorithm: r.value for algorithm, r in results.items() if r.value is not None
            }
            if len(set(values.values())) > 1:
                found[case] = values
        return found


@dataclass(frozen=True)
class BenchmarkProgress:
    """Progress callback information.

    Attributes:
        case: Current case name.
        algorithm: Current algorithm.
        phase: "checking" or "timing".
    """

    case: str
    algorithm: str
    phase: str


ProgressCallback = Callable[[BenchmarkProgress], None]


def time_call(func: Callable[[int], int], n: int, inner_loops: int) -> float:
    """Call func(n) inner_loops times and return the mean seconds per call."""
    start = time.perf_counter()
    for _ in range(inner_loops):
        func(n)
    return (time.perf_counter() - start) / inner_loops


def _python_description() -> str:
    return f"{platform.python_implementation()} {platform.python_version()}"


@dataclass
class BenchmarkRunner:
    """Main benchmark runner.

    Attributes:
        suite: Benchmark suite configuration.
        registry: Host functions the cases refer to.
        target_cv: Target coefficient of variation (suite value if None).
        min_runs: Minimum number of samples (suite value if None).
        max_runs: Maximum number of samples (suite value if None).
        warmup: Number of warmup samples (suite value if None).
        inner_loops: Calls per sample (case, then suite value if None).
        progress_callback: Optional callback for progress updates.
    """

    suite: BenchmarkSuite
    registry: Registry
    target_cv: float | None = None
    min_runs: int | None = None
    max_runs: int | None = None
    warmup: int | None = None
    inner_loops: int | None = None
    progress_callback: ProgressCallback | None = None

    def _report(self, case: BenchmarkCase, algorithm: str, phase: str) -> None:
        if self.progress_callback:
            self.progress_callback(BenchmarkProgress(case.name, algorithm, phase))

    def _loops_for(self, case: BenchmarkCase) -> int:
        if self.inner_loops is not None:
            return self.inner_loops
        if case.inner_loops is not None:
            return case.inner_loops
        return self.suite.inner_loops

    def run_algorithm(self, case: BenchmarkCase, algorithm: str) -> CaseResult:
        """Time one algorithm on one case.

        A call that raises a library error (e.g. the table bound) or runs out
        of recursion depth is recorded on the result instead of being timed.
        """
        func = self.registry[algorithm]

        self._report(case, algorithm, "checking")
        try:
            value = func(case.n)
        except (FibonacciError, RecursionError) as e:
            logger.warning("%s(%d) failed in case %r: %s", algorithm, case.n, case.name, e)
            return CaseResult(
                case=case.name,
                algorithm=algorithm,
                n=case.n,
                value=None,
                stats=TimingStats.empty(),
                error=str(e),
            )

        self._report(case, algorithm, "timing")
        loops = self._loops_for(case)
        min_runs = self.suite.min_runs if self.min_runs is None else self.min_runs
        max_runs = self.suite.max_runs if self.max_runs is None else self.max_runs
        stats = run_until_stable(
            lambda: time_call(func, case.n, loops),
            min_runs=min_runs,
            max_runs=max(min_runs, max_runs),
            target_cv=self.suite.target_cv if self.target_cv is None else self.target_cv,
            warmup=self.suite.warmup if self.warmup is None else self.warmup,
        )
        logger.debug("%s(%d): %s", algorithm, case.n, format_stats(stats))
        return CaseResult(
            case=case.name, algorithm=algorithm, n=case.n, value=value, stats=stats
        )

    def run_case(self, case: BenchmarkCase) -> list[CaseResult]:
        """Run every algorithm of a case."""
        logger.info("Running case %r (n=%d)", case.name, case.n)
        return [self.run_algorithm(case, algorithm) for algorithm in case.algorithms]

    def run_all(self, case_filter: str | None = None) -> Session:
        """Run all enabled cases of the suite.

        Args:
            case_filter: If provided, only run the case with this name.

        Returns:
            Session with all results.
        """
        session = Session(
            suite=self.suite.name,
            timestamp=datetime.now(),
            python=_python_description(),
        )
        for case in self.suite.enabled_cases(case_filter):
            session.results.extend(self.run_case(case))

        for case, values in session.disagreements().items():
            logger.warning("Algorithms disagree on case %r: %s", case, values)
        return session


@dataclass(frozen=True)
class Mismatch:
    """An algorithm result that differs from the reference sequence.

    Attributes:
        algorithm: Exposed algorithm name.
        n: Index checked.
        expected: Reference value, wrapped to the unsigned width.
        actual: Value returned, or None if the call raised.
        error: Error message if the call raised.
    """

    algorithm: str
    n: int
    expected: int
    actual: int | None
    error: str | None = None


def reference_values(max_n: int) -> list[int]:
    """Return F(0)..F(max_n) wrapped to the unsigned width."""
    values: list[int] = []
    a, b = 0, 1
    for _ in range(max_n + 1):
        values.append(wrap(a))
        a, b = b, a + b
    return values


def check_agreement(
    registry: Registry,
    max_n: int,
    limits: Mapping[str, int] = DEFAULT_VERIFY_LIMITS,
    algorithms: Iterable[str] | None = None,
) -> list[Mismatch]:
    """Compare algorithms with the reference sequence for n in 0..max_n.

    Args:
        registry: Host functions to check.
        max_n: Largest index to check.
        limits: Per-algorithm cap on the largest index checked.
        algorithms: Names to check (all registered names if None).

    Returns:
        Every mismatch found; an empty list means full agreement.
    """
    expected = reference_values(max_n)
    mismatches: list[Mismatch] = []
    for name in algorithms or registry.names():
        func = registry[name]
        top = min(max_n, limits.get(name, max_n))
        logger.debug("Checking %s for n in 0..%d", name, top)
        for n in range(top + 1):
            try:
                actual = func(n)
            except FibonacciError as e:
                mismatches.append(Mismatch(name, n, expected[n], None, str(e)))
                continue
            if actual != expected[n]:
                mismatches.append(Mismatch(name, n, expected[n], actual))
    return mismatches


def speedup(
    session: Session, case: str, baseline: str, candidate: str
) -> float | None:
    """How many times faster candidate ran than baseline on a case.

    Returns None when either result is missing, failed, or has no timing.
    """
    results = session.by_case().get(case, {})
    base = results.get(baseline)
    cand = results.get(candidate)
    if not base or not cand or base.error or cand.error:
        return None
    if base.stats.mean <= 0 or cand.stats.mean <= 0:
        return None
    return base.stats.mean / cand.stats.mean


def _geometric_mean(values: list[float]) -> float:
    """Compute geometric mean of positive values."""
    if not values:
        return 0.0
    return math.exp(sum(math.log(v) for v in values) / len(values))


def format_results_table(session: Session) -> str:
    """Format benchmark results as a table.

    Args:
        session: Session with results.

    Returns:
        Formatted table string: mean microseconds per call for each case and
        algorithm, then the fast/naive power-law speedups.
    """
    grouped = session.by_case()
    present = {r.algorithm for r in session.results}
    columns = [a for a in ALGORITHM_ORDER if a in present]
    columns += sorted(present - set(columns))
    short = {a: a.removeprefix("fibonacci_") for a in columns}
    width = max([15, *(len(s) + 1 for s in short.values())])

    lines = [
        "=" * 80,
        f"BENCHMARK RESULTS: {session.suite} ({session.python})",
        "=" * 80,
        "\nMean time per call (us):",
    ]
    header = f"{'Case':<16}{'n':>8}" + "".join(f"{short[a]:>{width}}" for a in columns)
    lines.append(header)
    lines.append("-" * len(header))

    for case, results in grouped.items():
        n = next(iter(results.values())).n
        row = f"{case:<16}{n:>8}"
        for algorithm in columns:
            result = results.get(algorithm)
            if result is None:
                cell = "-"
            elif result.error:
                cell = "error"
            else:
                cell = f"{result.stats.mean * 1e6:.3f}"
            row += f"{cell:>{width}}"
        lines.append(row)

    ratios = []
    speedup_lines = []
    for case in grouped:
        ratio = speedup(session, case, "fibonacci_power_law_naive", "fibonacci_power_law")
        if ratio is not None:
            ratios.append(ratio)
            speedup_lines.append(f"  {case:<16} {ratio:>8.2f}x")
    if speedup_lines:
        lines.append("\nFast vs naive power law (speedup, >1 means fast is faster):")
        lines.extend(speedup_lines)
        lines.append(f"  {'GEOM. MEAN':<16} {_geometric_mean(ratios):>8.2f}x")

    disagreements = session.disagreements()
    if disagreements:
        lines.append("\nDISAGREEMENTS:")
        for case, values in disagreements.items():
            lines.append(f"  {case}: {values}")

    errors = [r for r in session.results if r.error]
    if errors:
        lines.append("\nErrors:")
        for r in errors:
            lines.append(f"  {r.case}/{r.algorithm}: {r.error}")

    return "\n".join(lines)
