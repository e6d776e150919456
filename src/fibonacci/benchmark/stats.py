"""Timing statistics for benchmark samples.

Samples are per-call durations in seconds. The helpers here summarize them
(mean, median, spread), drop IQR outliers, compute a 95% confidence
interval for the mean, and keep sampling until the coefficient of
variation falls below a target.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

# Two-tailed 95% critical values of Student's t, keyed by sample size.
_T_95 = (
    (2, 12.706),
    (3, 4.303),
    (4, 3.182),
    (5, 2.776),
    (6, 2.571),
    (7, 2.447),
    (8, 2.365),
    (9, 2.306),
    (10, 2.262),
    (15, 2.145),
    (20, 2.093),
    (30, 2.045),
    (50, 2.009),
    (100, 1.984),
)
_Z_95 = 1.96

_UNITS = {"s": 1.0, "ms": 1e3, "us": 1e6, "ns": 1e9}


@dataclass(frozen=True)
class TimingStats:
    """Summary of timing samples.

    Attributes:
        samples: Raw samples, in seconds, in collection order.
        mean: Mean of the retained samples.
        median: Median of the retained samples.
        stddev: Sample standard deviation of the retained samples.
        cv: Coefficient of variation (stddev / mean).
        min: Smallest retained sample.
        max: Largest retained sample.
        iqr: Interquartile range of the retained samples.
        outliers: Samples excluded as outliers.
        confidence_95: 95% confidence interval for the mean.
        runs_to_stable: Samples taken before sampling stopped.
    """

    samples: tuple[float, ...]
    mean: float
    median: float
    stddev: float
    cv: float
    min: float
    max: float
    iqr: float
    outliers: tuple[float, ...] = field(default_factory=tuple)
    confidence_95: tuple[float, float] = (0.0, 0.0)
    runs_to_stable: int = 0

    @classmethod
    def empty(cls) -> TimingStats:
        return cls(
            samples=(),
            mean=0.0,
            median=0.0,
            stddev=0.0,
            cv=0.0,
            min=0.0,
            max=0.0,
            iqr=0.0,
        )


def compute_quartiles(data: Sequence[float]) -> tuple[float, float, float]:
    """Compute Q1, Q2 (median) and Q3.

    Q1 and Q3 are the medians of the lower and upper halves, excluding the
    middle element for odd lengths. With fewer than 4 values all three
    quartiles are the median.
    """
    if len(data) < 4:
        median = statistics.median(data)
        return median, median, median

    ordered = sorted(data)
    half = len(ordered) // 2
    lower = ordered[:half]
    upper = ordered[half + len(ordered) % 2 :]
    return statistics.median(lower), statistics.median(ordered), statistics.median(upper)


def detect_outliers(data: Sequence[float], factor: float = 1.5) -> list[float]:
    """Return values outside [Q1 - factor*IQR, Q3 + factor*IQR].

    Needs at least 4 values; smaller samples have no outliers.
    """
    if len(data) < 4:
        return []
    q1, _, q3 = compute_quartiles(data)
    spread = factor * (q3 - q1)
    return [x for x in data if x < q1 - spread or x > q3 + spread]


def _t_critical(n: int) -> float:
    for size, t in _T_95:
        if n <= size:
            return t
    return _Z_95


def compute_confidence_interval(data: Sequence[float]) -> tuple[float, float]:
    """Compute the 95% confidence interval for the mean.

    Uses Student's t for small samples and the normal approximation from
    100 samples on.
    """
    if len(data) < 2:
        value = data[0] if data else 0.0
        return value, value

    mean = statistics.mean(data)
    margin = _t_critical(len(data)) * statistics.stdev(data) / math.sqrt(len(data))
    return mean - margin, mean + margin


def compute_stats(
    samples: Sequence[float], remove_outliers: bool = True, runs_to_stable: int = 0
) -> TimingStats:
    """Summarize timing samples.

    Args:
        samples: Per-call durations in seconds.
        remove_outliers: Exclude IQR outliers from the summary values.
        runs_to_stable: Number of samples taken before stopping.

    Returns:
        TimingStats; all zeros for an empty input.
    """
    if not samples:
        return TimingStats.empty()

    outliers = detect_outliers(samples)
    retained = list(samples)
    if remove_outliers and outliers:
        excluded = set(outliers)
        kept = [x for x in samples if x not in excluded]
        if len(kept) >= 2:
            retained = kept

    mean = statistics.mean(retained)
    stddev = statistics.stdev(retained) if len(retained) > 1 else 0.0
    q1, median, q3 = compute_quartiles(retained)

    return TimingStats(
        samples=tuple(samples),
        mean=mean,
        median=median,
        stddev=stddev,
        cv=stddev / mean if mean > 0 else 0.0,
        min=min(retained),
        max=max(retained),
        iqr=q3 - q1,
        outliers=tuple(outliers),
        confidence_95=compute_confidence_interval(retained),
        runs_to_stable=runs_to_stable,
    )


def _cv(samples: Sequence[float]) -> float | None:
    if len(samples) < 2:
        return None
    mean = statistics.mean(samples)
    if mean <= 0:
        return None
    return statistics.stdev(samples) / mean


def run_until_stable(
    sample: Callable[[], float],
    min_runs: int = 5,
    max_runs: int = 50,
    target_cv: float = 0.05,
    warmup: int = 3,
    batch_size: int = 5,
) -> TimingStats:
    """Take samples until their coefficient of variation reaches target_cv.

    Runs `warmup` discarded samples, then `min_runs` timed ones, then adds
    batches of `batch_size` until the CV is at most `target_cv` or
    `max_runs` samples have been taken.

    Args:
        sample: Callable returning one timing sample in seconds.
        min_runs: Samples taken before the CV is first checked.
        max_runs: Upper bound on timed samples.
        target_cv: CV at which sampling stops.
        warmup: Discarded samples taken first.
        batch_size: Samples added between CV checks.

    Returns:
        TimingStats over all timed samples.
    """
    for _ in range(warmup):
        sample()

    samples = [sample() for _ in range(min_runs)]
    while len(samples) < max_runs:
        cv = _cv(samples)
        if cv is not None and cv <= target_cv:
            break
        for _ in range(min(batch_size, max_runs - len(samples))):
            samples.append(sample())

    return compute_stats(samples, runs_to_stable=len(samples))


def format_stats(stats: TimingStats, unit: str = "us") -> str:
    """Format stats like "12.345us +/- 0.210us (CV=1.70%, 15 runs)".

    Args:
        stats: Statistics to format.
        unit: One of "s", "ms", "us", "ns".
    """
    scale = _UNITS[unit]
    return (
        f"{stats.mean * scale:.3f}{unit} +/- {stats.stddev * scale:.3f}{unit} "
        f"(CV={stats.cv * 100:.2f}%, {len(stats.samples)} runs)"
    )
