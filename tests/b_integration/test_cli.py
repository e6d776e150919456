"""Integration tests for the `fibonacci` command line."""

from __future__ import annotations

from pathlib import Path

import pytest

from fibonacci import __version__
from fibonacci.binding import default_registry
from fibonacci.cli import create_parser, main

QUICK_SUITE = """\
name: cli-quick
warmup: 0
min_runs: 2
max_runs: 2
inner_loops: 1
benchmarks:
  - name: twenty
    n: 20
    algorithms: [fibonacci_iterative, fibonacci_power_law_naive, fibonacci_power_law]
  - name: skipped
    n: 5
    enabled: false
"""


@pytest.fixture
def suite_file(tmp_path: Path) -> Path:
    path = tmp_path / "suite.yaml"
    path.write_text(QUICK_SUITE)
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys) -> None:
        assert main([]) == 0
        assert "usage: fibonacci" in capsys.readouterr().out

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_call_requires_integer(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["call", "iterative", "ten"])


class TestList:
    """Tests for `fibonacci list`."""

    def test_lists_all_algorithms(self, capsys) -> None:
        assert main(["list"]) == 0
        out = capsys.readouterr().out

        for name in (
            "fibonacci_iterative",
            "fibonacci_power_law",
            "fibonacci_power_law_naive",
            "fibonacci_recursive",
            "fibonacci_table",
        ):
            assert name in out
        assert "precomputed table" in out


class TestCall:
    """Tests for `fibonacci call`."""

    @pytest.mark.parametrize(
        ("name", "n", "expected"),
        [
            ("iterative", "10", "55"),
            ("fibonacci_recursive", "10", "55"),
            ("table", "10", "55"),
            ("power_law", "10", "55"),
            ("power_law_naive", "20", "6765"),
            ("iterative", "48", str(4807526976 % 2**32)),
        ],
    )
    def test_results(self, capsys, name: str, n: str, expected: str) -> None:
        assert main(["call", name, n]) == 0
        assert capsys.readouterr().out.strip() == expected

    def test_table_out_of_range(self, capsys) -> None:
        assert main(["call", "table", "48"]) == 1
        out = capsys.readouterr().out
        assert out.startswith("Error:")
        assert "out of range" in out

    def test_negative_rejected(self, capsys) -> None:
        assert main(["call", "iterative", "-1"]) == 1
        assert "negative" in capsys.readouterr().out

    def test_too_wide_rejected(self, capsys) -> None:
        assert main(["call", "iterative", str(2**32)]) == 1
        assert "32-bit" in capsys.readouterr().out

    def test_unknown_algorithm(self, capsys) -> None:
        assert main(["call", "magic", "3"]) == 1
        assert "fibonacci_magic" in capsys.readouterr().out


class TestVerify:
    """Tests for `fibonacci verify`."""

    def test_all_agree(self, capsys) -> None:
        assert main(["verify", "--max-n", "60", "--recursive-max-n", "15"]) == 0
        out = capsys.readouterr().out

        assert "fibonacci_recursive" in out
        assert "n=0..15" in out
        assert "n=0..47" in out
        assert "n=0..60" in out
        assert "mismatch" not in out

    def test_columns_fit_registry_names(self, capsys) -> None:
        assert main(["verify", "--max-n", "10", "--recursive-max-n", "5"]) == 0
        lines = capsys.readouterr().out.splitlines()

        longest = max(len(name) for name in default_registry())
        assert len(lines) == 5
        assert {line.index(" n=0..") for line in lines} == {longest}


class TestBenchmark:
    """Tests for `fibonacci benchmark`."""

    def test_run_suite(self, capsys, suite_file: Path) -> None:
        assert main(["benchmark", "--suite", str(suite_file), "--quiet"]) == 0
        out = capsys.readouterr().out

        assert "Running suite 'cli-quick': twenty" in out
        assert "BENCHMARK RESULTS: cli-quick" in out
        assert "Fast vs naive power law" in out
        assert "skipped" not in out.split("BENCHMARK RESULTS")[1]

    def test_overrides(self, capsys, suite_file: Path) -> None:
        argv = [
            "benchmark",
            "--suite",
            str(suite_file),
            "--case",
            "twenty",
            "--min-runs",
            "3",
            "--max-runs",
            "3",
            "--warmup",
            "1",
            "--inner-loops",
            "2",
            "--cv-target",
            "0.5",
        ]
        assert main(argv) == 0
        assert "twenty" in capsys.readouterr().out

    def test_bundled_suite_agrees(self, capsys) -> None:
        argv = [
            "benchmark",
            "--quiet",
            "--min-runs",
            "2",
            "--max-runs",
            "2",
            "--warmup",
            "0",
            "--inner-loops",
            "1",
        ]
        assert main(argv) == 0
        out = capsys.readouterr().out

        assert "Running suite 'fibonacci'" in out
        assert "large-exponent" in out
        assert "DISAGREEMENTS" not in out

    def test_recursion_limit_does_not_abort(self, capsys, tmp_path: Path) -> None:
        path = tmp_path / "deep.yaml"
        path.write_text(
            "warmup: 0\nmin_runs: 2\nmax_runs: 2\ninner_loops: 1\n"
            "benchmarks:\n"
            "  - name: deep\n"
            "    n: 5000\n"
            "    algorithms: [fibonacci_iterative, fibonacci_recursive]\n"
        )

        assert main(["benchmark", "--suite", str(path), "--quiet"]) == 0
        out = capsys.readouterr().out
        assert "deep/fibonacci_recursive" in out
        assert "recursion" in out

    def test_missing_suite(self, capsys, tmp_path: Path) -> None:
        assert main(["benchmark", "--suite", str(tmp_path / "nope.yaml")]) == 1
        assert "Suite configuration not found" in capsys.readouterr().out

    def test_unknown_case(self, capsys, suite_file: Path) -> None:
        assert main(["benchmark", "--suite", str(suite_file), "--case", "skipped"]) == 1
        assert "no enabled benchmark case" in capsys.readouterr().out

    def test_malformed_suite(self, capsys, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("benchmarks:\n  - name: x\n    n: 1\n    algorithms: [nope]\n")

        assert main(["benchmark", "--suite", str(path)]) == 1
        assert "nope" in capsys.readouterr().out
