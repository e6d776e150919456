"""In-process benchmarks for the Fibonacci algorithms.

This package times the algorithms through their host bindings with:
- Adaptive sample counts targeting a coefficient of variation
- IQR outlier removal and 95% confidence intervals
- A cross-check of every result against the reference sequence
"""

from __future__ import annotations

from fibonacci.benchmark.runner import (
    BenchmarkProgress,
    BenchmarkRunner,
    CaseResult,
    Mismatch,
    Session,
    check_agreement,
    format_results_table,
    speedup,
)
from fibonacci.benchmark.stats import TimingStats, compute_stats, run_until_stable

__all__ = [
    "BenchmarkProgress",
    "BenchmarkRunner",
    "CaseResult",
    "Mismatch",
    "Session",
    "TimingStats",
    "check_agreement",
    "compute_stats",
    "format_results_table",
    "run_until_stable",
    "speedup",
]
