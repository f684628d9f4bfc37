"""
Tests for the EventPath command-line interface.

Tests cover argument parsing, output modes, grouping, visualization
flags, exit codes, error handling, and end-to-end CLI invocation.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent.parent / "fixtures"
HISTORIES = FIXTURES / "histories"
PATTERNS = FIXTURES / "patterns"

ABANDONED_CART = str(HISTORIES / "abandoned_cart.csv")
PURCHASE = str(HISTORIES / "purchase.csv")
MULTI_USER = str(HISTORIES / "multi_user.csv")
EMPTY = str(HISTORIES / "empty.csv")
BAD_HEADER = str(HISTORIES / "bad_header.csv")

ABANDON_PAT = str(PATTERNS / "abandon.pat")
ANY_PAT = str(PATTERNS / "any.pat")
CHURN_PAT = str(PATTERNS / "churn.pat")
INVALID_PAT = str(PATTERNS / "invalid.pat")


def _run_cli(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    """Run the EventPath CLI as a subprocess."""
    cmd = [sys.executable, "-m", "eventpath", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# Tests: Required Arguments
# ---------------------------------------------------------------------------


class TestRequiredArguments:
    """Test that required arguments are enforced."""

    def test_missing_pattern_file(self) -> None:
        """Missing -p flag exits with code 2."""
        result = _run_cli("-H", ABANDONED_CART)
        assert result.returncode == 2

    def test_missing_history_file(self) -> None:
        """Missing -H flag exits with code 2."""
        result = _run_cli("-p", ABANDON_PAT)
        assert result.returncode == 2

    def test_no_arguments(self) -> None:
        result = _run_cli()
        assert result.returncode == 2

    def test_unknown_group_attribute(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", MULTI_USER, "-g", "colour")
        assert result.returncode == 2


# ---------------------------------------------------------------------------
# Tests: Error Handling
# ---------------------------------------------------------------------------


class TestErrorHandling:
    """Test error handling for invalid inputs."""

    def test_nonexistent_history_file(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", "/nonexistent/history.csv")
        assert result.returncode == 2
        assert "History file not found" in result.stderr

    def test_nonexistent_pattern_file(self) -> None:
        result = _run_cli("-p", "/nonexistent/pattern.pat", "-H", ABANDONED_CART)
        assert result.returncode == 2
        assert "Pattern file not found" in result.stderr

    def test_invalid_pattern_syntax(self) -> None:
        result = _run_cli("-p", INVALID_PAT, "-H", ABANDONED_CART)
        assert result.returncode == 2
        assert "Error:" in result.stderr
        assert "Syntax error" in result.stderr

    def test_invalid_history_header(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", BAD_HEADER)
        assert result.returncode == 2
        assert "favourite_colour" in result.stderr

    def test_invalid_repeat_bounds(self, tmp_path: Path) -> None:
        pat = tmp_path / "bad.pat"
        pat.write_text("add_item{5,2}\n")
        result = _run_cli("-p", str(pat), "-H", ABANDONED_CART)
        assert result.returncode == 2
        assert "exceeds" in result.stderr


# ---------------------------------------------------------------------------
# Tests: Version
# ---------------------------------------------------------------------------


class TestVersion:
    """Test --version flag."""

    def test_version_prints_and_exits(self) -> None:
        result = _run_cli("--version")
        assert result.returncode == 0
        assert "eventpath 0.1.0" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Exit Codes
# ---------------------------------------------------------------------------


class TestExitCodes:
    """Test that the exit code reflects the verdict."""

    def test_matched_exits_zero(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART)
        assert result.returncode == 0

    def test_not_matched_exits_one(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", PURCHASE)
        assert result.returncode == 1

    def test_churn_on_purchase(self) -> None:
        result = _run_cli("-p", CHURN_PAT, "-H", PURCHASE)
        assert result.returncode == 0

    def test_any_on_empty_history(self) -> None:
        result = _run_cli("-p", ANY_PAT, "-H", EMPTY)
        assert result.returncode == 0

    def test_abandon_on_empty_history(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", EMPTY)
        assert result.returncode == 1


# ---------------------------------------------------------------------------
# Tests: Output Modes
# ---------------------------------------------------------------------------


class TestOutputModes:
    """Test -o and -d output levels."""

    def test_silent_no_stdout(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "-o", "silent")
        assert result.returncode == 0
        assert result.stdout == ""

    def test_normal_shows_verdict(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART)
        assert (
            "MATCHED: Pattern matches alice-2024-05-01 (3 events consumed)"
            in result.stdout
        )
        assert "[INFO]" not in result.stdout

    def test_label_falls_back_to_file_stem(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", PURCHASE)
        assert "NOT MATCHED: Pattern does not match purchase" in result.stdout

    def test_verbose_shows_more(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "-o", "verbose")
        assert "[INFO] Loaded 3 events" in result.stdout
        assert "[EVENT] #0 (consumed)" in result.stdout
        assert "=== Statistics ===" in result.stdout
        assert "[STEP]" not in result.stdout

    def test_debug_traces_steps(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "-d", "3")
        assert "[STEP]" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Grouping
# ---------------------------------------------------------------------------


class TestGroupBy:
    """Test matching per-key histories."""

    def test_group_by_user(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", MULTI_USER, "-g", "user_name")
        assert result.returncode == 1
        assert "MATCHED: Pattern matches alice (3 events consumed)" in result.stdout
        assert "NOT MATCHED: Pattern does not match bob" in result.stdout
        assert "NOT MATCHED: Pattern does not match carol" in result.stdout

    def test_all_groups_match(self) -> None:
        result = _run_cli("-p", ANY_PAT, "-H", MULTI_USER, "-g", "session_id")
        assert result.returncode == 0
        assert result.stdout.count("MATCHED: Pattern matches") == 3

    def test_empty_grouped_input(self) -> None:
        result = _run_cli("-p", ANY_PAT, "-H", EMPTY, "-g", "user_name")
        assert result.returncode == 1


# ---------------------------------------------------------------------------
# Tests: --simplify
# ---------------------------------------------------------------------------


class TestSimplify:
    """Test --simplify flag."""

    def test_simplified_pattern_logged(self, tmp_path: Path) -> None:
        pat = tmp_path / "redundant.pat"
        pat.write_text("any >> add_item{1,1} >> any\n")
        result = _run_cli(
            "-p", str(pat), "-H", ABANDONED_CART, "--simplify", "-o", "verbose",
        )
        assert result.returncode == 0
        assert "Simplified pattern: add_item" in result.stdout


# ---------------------------------------------------------------------------
# Tests: --stats
# ---------------------------------------------------------------------------


class TestStatsFlag:
    """Test --stats flag."""

    def test_stats_printed(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "--stats")
        assert "=== Statistics (alice-2024-05-01) ===" in result.stdout
        assert "Events Total: 3" in result.stdout
        assert "Events Consumed: 3" in result.stdout
        assert "Pattern Nodes: 4" in result.stdout

    def test_stats_per_group(self) -> None:
        result = _run_cli(
            "-p", ABANDON_PAT, "-H", MULTI_USER, "-g", "user_name", "--stats",
        )
        for key in ("alice", "bob", "carol"):
            assert f"=== Statistics ({key}) ===" in result.stdout


# ---------------------------------------------------------------------------
# Tests: --visualize-ascii
# ---------------------------------------------------------------------------


class TestVisualizeAscii:
    """Test --visualize-ascii flag."""

    def test_tree_and_timeline_printed(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "--visualize-ascii")
        assert result.returncode == 0
        assert "=== History Pattern ===" in result.stdout
        assert "repeat 1..inf" in result.stdout
        assert "--- alice-2024-05-01 ---" in result.stdout
        assert "(matched, 3 of 3 events consumed)" in result.stdout

    def test_timeline_per_group(self) -> None:
        result = _run_cli(
            "-p", ABANDON_PAT, "-H", MULTI_USER, "-g", "user_name", "--visualize-ascii",
        )
        assert "--- bob ---" in result.stdout
        assert "(not matched, stopped after 2 of 2 events)" in result.stdout


# ---------------------------------------------------------------------------
# Tests: --visualize
# ---------------------------------------------------------------------------


class TestVisualizeDot:
    """Test --visualize flag."""

    def test_visualize_stdout(self) -> None:
        result = _run_cli("-p", ABANDON_PAT, "-H", ABANDONED_CART, "--visualize")
        assert result.returncode == 0
        assert "digraph HistoryPattern {" in result.stdout

    def test_visualize_to_dot_file(self, tmp_path: Path) -> None:
        out = tmp_path / "pattern.dot"
        result = _run_cli(
            "-p", ABANDON_PAT, "-H", ABANDONED_CART, "--visualize", str(out),
        )
        assert result.returncode == 0
        assert out.exists()
        assert out.read_text().startswith("digraph HistoryPattern {")

    def test_visualize_image_or_fallback(self, tmp_path: Path) -> None:
        """Image output falls back to a .dot file when Graphviz is missing."""
        out = tmp_path / "pattern.png"
        result = _run_cli(
            "-p", ABANDON_PAT, "-H", ABANDONED_CART, "--visualize", str(out),
        )
        assert result.returncode == 0
        assert out.exists() or out.with_suffix(".dot").exists()


# ---------------------------------------------------------------------------
# Tests: Combined Flags
# ---------------------------------------------------------------------------


class TestCombinedFlags:
    """Test combinations of flags."""

    def test_ascii_and_stats(self) -> None:
        result = _run_cli(
            "-p", CHURN_PAT, "-H", PURCHASE, "--visualize-ascii", "--stats",
        )
        assert result.returncode == 0
        assert "=== History Pattern ===" in result.stdout
        assert "=== Statistics (purchase) ===" in result.stdout

    @pytest.mark.parametrize("output", ["normal", "verbose"])
    def test_stats_printed_once(self, output: str) -> None:
        result = _run_cli(
            "-p", ABANDON_PAT, "-H", ABANDONED_CART, "--stats", "-o", output,
        )
        assert result.stdout.count("=== Statistics") == 1
