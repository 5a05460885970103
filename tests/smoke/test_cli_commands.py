"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.
Each test gets its own SQLite state file.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli(tmp_path):
    """
    Return a runner for CLI commands against a fresh state database.

    The runner takes the arguments after 'python -m cognitive_os.cli' and
    returns (exit_code, stdout, stderr).
    """
    env = {
        **os.environ,
        "COGOS_DATABASE_URL": f"sqlite:///{tmp_path / 'state.db'}",
        "COGOS_LOG_LEVEL": "WARNING",
        "COLUMNS": "200",
    }

    def run(*args: str, timeout: int = 30) -> tuple[int, str, str]:
        result = subprocess.run(
            [sys.executable, "-m", "cognitive_os.cli", *args],
            cwd=PROJECT_ROOT,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr

    return run


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, cli):
        code, stdout, stderr = cli("--help")

        assert code == 0, f"Help failed: {stderr}"
        for command in ("plan", "skills", "record", "history", "clear-history"):
            assert command in stdout

    def test_record_help(self, cli):
        code, stdout, stderr = cli("record", "--help")

        assert code == 0, f"Record help failed: {stderr}"
        assert "--outcomes" in stdout
        assert "--minutes" in stdout


class TestCLICatalog:
    """Test read-only catalog and rating commands."""

    def test_modules(self, cli):
        code, stdout, stderr = cli("modules")

        assert code == 0, f"Modules failed: {stderr}"
        assert "Symbol Memory" in stdout
        assert "psychoacoustic_wizard" in stdout

    def test_skills(self, cli):
        code, stdout, stderr = cli("skills")

        assert code == 0, f"Skills failed: {stderr}"
        assert "Visual Working Memory" in stdout
        assert "1500" in stdout

    def test_skills_weakest_by_category(self, cli):
        code, stdout, stderr = cli("skills", "--weakest", "19", "--category", "auditory")

        assert code == 0, f"Skills failed: {stderr}"
        assert "Pitch Discrimination" in stdout
        assert "Visual Working Memory" not in stdout

    def test_profile(self, cli):
        code, stdout, stderr = cli("profile")

        assert code == 0, f"Profile failed: {stderr}"
        assert "Cognitive Profile" in stdout
        assert "auditory" in stdout


class TestCLIPlan:
    """Test plan command."""

    def test_plan_text(self, cli):
        code, stdout, stderr = cli("plan", "--seed", "1")

        assert code == 0, f"Plan failed: {stderr}"
        assert "Training Plan" in stdout
        assert "Symbol Memory" in stdout

    def test_plan_json(self, cli):
        code, stdout, stderr = cli("plan", "--minutes", "30", "--seed", "1", "--json")

        assert code == 0, f"Plan failed: {stderr}"
        plan = json.loads(stdout)
        assert plan["duration"] == 30
        assert sum(m["duration"] for m in plan["recommended_modules"]) == pytest.approx(30)

    def test_plan_rejects_zero_minutes(self, cli):
        code, stdout, stderr = cli("plan", "--minutes", "0")

        assert code == 1


class TestCLIRecording:
    """Test record, history and stats against the same database."""

    def test_record_then_query(self, cli):
        code, stdout, stderr = cli("record", "symbol_memory", "--outcomes", "1101", "--level", "5")
        assert code == 0, f"Record failed: {stderr}"
        assert "Session recorded" in stdout
        assert "Rating Changes" in stdout

        code, stdout, stderr = cli("history")
        assert code == 0, f"History failed: {stderr}"
        assert "symbol_memory" in stdout

        code, stdout, stderr = cli("stats", "symbol_memory")
        assert code == 0, f"Stats failed: {stderr}"
        assert "75%" in stdout

    def test_record_keeps_session_length(self, cli):
        code, stdout, stderr = cli("record", "morph_matrix", "--outcomes", "101", "--minutes", "5")
        assert code == 0, f"Record failed: {stderr}"
        assert "5.0 min" in stdout

        code, stdout, stderr = cli("history")
        assert code == 0, f"History failed: {stderr}"
        assert "300s" in stdout

    def test_recorded_module_leaves_plan(self, cli):
        cli("record", "symbol_memory", "--outcomes", "0000")

        code, stdout, stderr = cli("plan", "--json", "--seed", "3")

        assert code == 0, f"Plan failed: {stderr}"
        plan = json.loads(stdout)
        assert "symbol_memory" not in [m["module_id"] for m in plan["recommended_modules"]]

    def test_record_rejects_bad_outcomes(self, cli):
        code, stdout, stderr = cli("record", "symbol_memory", "--outcomes", "12")

        assert code != 0

    def test_record_rejects_conflicting_difficulty(self, cli):
        code, stdout, stderr = cli(
            "record", "symbol_memory", "--outcomes", "1", "--level", "5", "--difficulty", "1500"
        )

        assert code == 1

    def test_record_rejects_off_scale_difficulty(self, cli):
        code, stdout, stderr = cli("record", "symbol_memory", "--outcomes", "1", "--difficulty", "3000")

        assert code == 1

    def test_empty_history(self, cli):
        code, stdout, stderr = cli("history")

        assert code == 0
        assert "No sessions recorded" in stdout


class TestCLIReset:
    """Test destructive commands with --yes."""

    def test_reset(self, cli):
        cli("record", "music_theory", "--outcomes", "111")

        code, stdout, stderr = cli("reset", "--yes")

        assert code == 0, f"Reset failed: {stderr}"
        assert "reset" in stdout

    def test_clear_history(self, cli):
        cli("record", "music_theory", "--outcomes", "111")

        code, stdout, stderr = cli("clear-history", "--yes")
        assert code == 0, f"Clear failed: {stderr}"

        code, stdout, stderr = cli("history")
        assert "No sessions recorded" in stdout
