"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(command: str, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m src.delivery')
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m src.delivery {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "mathfeed" in stdout.lower()
        assert "practice" in stdout

    def test_practice_help(self):
        code, stdout, stderr = run_cli_command("practice --help")

        assert code == 0, f"Help failed: {stderr}"
        assert "--topic" in stdout


class TestCLICommands:
    """Test non-interactive commands."""

    def test_topics(self):
        code, stdout, stderr = run_cli_command("topics")

        assert code == 0, f"topics failed: {stderr}"
        assert "Stochastik" in stdout

    def test_score_formal(self):
        code, stdout, stderr = run_cli_command(
            "score --difficulty 3 --hints 1 --seconds 60 --streak 5"
        )

        assert code == 0, f"score failed: {stderr}"
        assert "32" in stdout

    def test_practice_without_topics(self):
        code, stdout, stderr = run_cli_command("practice")

        assert code == 1
        assert "No topics selected" in stdout
