"""Command-line interface.

Provides the `fibonacci` command with subcommands for:
- Listing the exposed algorithms
- Calling one algorithm
- Verifying every algorithm against the reference sequence
- Benchmarking the algorithms from a YAML suite
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from fibonacci import __version__
from fibonacci.benchmark.runner import (
    DEFAULT_VERIFY_LIMITS,
    BenchmarkProgress,
    BenchmarkRunner,
    check_agreement,
    format_results_table,
)
from fibonacci.binding import Registry, default_registry
from fibonacci.config import DEFAULT_SUITE_PATH, load_suite_config
from fibonacci.errors import FibonacciError

logger = logging.getLogger("fibonacci")


def setup_logging(verbose: bool = False) -> None:
    """Send package log records to stderr (DEBUG if verbose, else INFO)."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    # Replace handlers from a previous call rather than stacking them.
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def cmd_list(args: argparse.Namespace, registry: Registry) -> int:
    """List exposed algorithms."""
    width = max(len(name) for name in registry)
    for name in registry.names():
        print(f"{name:<{width}}  {registry[name].doc}")
    return 0


def cmd_call(args: argparse.Namespace, registry: Registry) -> int:
    """Call one algorithm and print its result."""
    name = args.name if args.name in registry else f"fibonacci_{args.name}"
    print(registry.call(name, args.n))
    return 0


def cmd_verify(args: argparse.Namespace, registry: Registry) -> int:
    """Check every algorithm against the reference sequence."""
    limits = {**DEFAULT_VERIFY_LIMITS, "fibonacci_recursive": args.recursive_max_n}
    mismatches = check_agreement(registry, args.max_n, limits=limits)

    width = max(len(name) for name in registry)
    for name in registry.names():
        top = min(args.max_n, limits.get(name, args.max_n))
        failed = sum(1 for m in mismatches if m.algorithm == name)
        status = "ok" if not failed else f"{failed} mismatch(es)"
        print(f"{name:<{width}} n=0..{top:<6} {status}")

    if not mismatches:
        return 0

    print()
    print("Mismatches:")
    for m in mismatches:
        actual = m.error if m.error else m.actual
        print(f"  {m.algorithm}({m.n}): expected {m.expected}, got {actual}")
    return 1


def cmd_benchmark(args: argparse.Namespace, registry: Registry) -> int:
    """Run benchmarks."""
    suite_path = Path(args.suite) if args.suite else DEFAULT_SUITE_PATH

    if not suite_path.exists():
        print(f"Error: Suite configuration not found: {suite_path}")
        return 1

    suite = load_suite_config(suite_path, registry.names())
    cases = suite.enabled_cases(args.case)
    if not cases:
        print(f"Error: no enabled benchmark case matches {args.case!r}")
        return 1

    def progress(p: BenchmarkProgress) -> None:
        print(f"  [{p.case}] {p.algorithm} {p.phase}...".ljust(70), end="\r", flush=True)

    runner = BenchmarkRunner(
        suite=suite,
        registry=registry,
        target_cv=args.cv_target,
        min_runs=args.min_runs,
        max_runs=args.max_runs,
        warmup=args.warmup,
        inner_loops=args.inner_loops,
        progress_callback=progress if not args.quiet else None,
    )

    print(f"Running suite {suite.name!r}: {', '.join(c.name for c in cases)}")
    session = runner.run_all(case_filter=args.case)

    # Clear progress line
    print(" " * 70, end="\r")
    print(format_results_table(session))
    return 1 if session.disagreements() else 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="fibonacci",
        description="Compute Fibonacci numbers with five alternative algorithms",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", help="List the exposed algorithms")
    list_parser.set_defaults(func=cmd_list)

    call_parser = subparsers.add_parser("call", help="Compute F(n) with one algorithm")
    call_parser.add_argument(
        "name",
        help="Algorithm name, with or without the 'fibonacci_' prefix",
    )
    call_parser.add_argument("n", type=int, help="Index in the sequence")
    call_parser.set_defaults(func=cmd_call)

    verify_parser = subparsers.add_parser(
        "verify", help="Check all algorithms against the reference sequence"
    )
    verify_parser.add_argument(
        "--max-n",
        type=int,
        default=93,
        help="Largest index to check (default: 93)",
    )
    verify_parser.add_argument(
        "--recursive-max-n",
        type=int,
        default=25,
        help="Largest index to check with the recursive algorithm (default: 25)",
    )
    verify_parser.set_defaults(func=cmd_verify)

    bench_parser = subparsers.add_parser("benchmark", help="Run benchmarks")
    bench_parser.add_argument(
        "--suite",
        help="Path to suite.yaml configuration (default: bundled suite)",
    )
    bench_parser.add_argument(
        "--case",
        help="Run only the specified case",
    )
    bench_parser.add_argument(
        "--cv-target",
        type=float,
        help="Target coefficient of variation (default: from suite)",
    )
    bench_parser.add_argument(
        "--min-runs",
        type=int,
        help="Minimum number of timed samples (default: from suite)",
    )
    bench_parser.add_argument(
        "--max-runs",
        type=int,
        help="Maximum number of timed samples (default: from suite)",
    )
    bench_parser.add_argument(
        "--warmup",
        type=int,
        help="Number of warmup samples (default: from suite)",
    )
    bench_parser.add_argument(
        "--inner-loops",
        type=int,
        help="Calls per timed sample (default: from suite)",
    )
    bench_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    bench_parser.set_defaults(func=cmd_benchmark)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args, default_registry())
    except FibonacciError as e:
        logger.debug("Command %r failed", args.command, exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
