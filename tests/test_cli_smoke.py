"""
Smoke tests for the liftlog CLI.

Each command runs in its own invocation, like separate shell commands,
so these also check that state survives between processes:
- Programs are seeded on first use
- A workout can be started, progressed, paused and finished
- Errors exit with code 1 and leave the stored workout alone
"""

import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from liftlog.cli.main import app
from liftlog.io.local_store import LocalStore
from liftlog.io.session_store import SessionStateStore
from liftlog.io.weight_memory import WeightMemory

runner = CliRunner()

# Nothing listens on the discard port, so uploads fail fast.
UNREACHABLE_API = {"LIFTLOG_API_URL": "http://127.0.0.1:9/api"}


@pytest.fixture
def data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _run(data_dir: Path, *args: str, **kwargs):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)], **kwargs)


def _stored(data_dir: Path):
    return SessionStateStore(LocalStore(data_dir)).load_session()


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "liftlog" in result.output or "workout" in result.output.lower()

    def test_programs_seeds_defaults(self, data_dir):
        result = _run(data_dir, "programs")
        assert result.exit_code == 0
        assert "Push Day" in result.output
        assert "Leg Day" in result.output
        assert (data_dir / "programs.json").exists()

    def test_status_without_workout(self, data_dir):
        result = _run(data_dir, "status")
        assert result.exit_code == 0
        assert "No active workout" in result.output

    def test_undecodable_snapshot_is_not_fatal(self, data_dir):
        (data_dir / "active-workout.json").write_bytes(b"\xff\xfe{garbage")
        (data_dir / "exercise-weights.json").write_bytes(b"\xff\xfe{garbage")
        result = _run(data_dir, "status")
        assert result.exit_code == 0
        assert "No active workout" in result.output

        result = _run(data_dir, "start", "push")
        assert result.exit_code == 0
        assert _stored(data_dir).program_id == "push"

    def test_start_unknown_program(self, data_dir):
        result = _run(data_dir, "start", "cardio")
        assert result.exit_code == 1
        assert "Program not found" in result.output
        assert _stored(data_dir) is None

    def test_complete_without_workout(self, data_dir):
        result = _run(data_dir, "complete")
        assert result.exit_code == 1
        assert "No active workout" in result.output

    def test_start_and_complete_set(self, data_dir):
        result = _run(data_dir, "start", "push")
        assert result.exit_code == 0
        assert "Started Push Day" in result.output

        result = _run(data_dir, "complete", "--weight", "100", "--reps", "8")
        assert result.exit_code == 0
        assert "Set done" in result.output

        session = _stored(data_dir)
        first = session.exercises[0].sets[0]
        assert first.completed and first.weight == 100 and first.actual_reps == 8
        assert session.resting is True
        assert session.rest_duration_ms == 75000
        assert WeightMemory(LocalStore(data_dir)).get_last_weight("push-1") == 100

    def test_complete_reuses_last_weight(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete", "--weight", "95")
        result = _run(data_dir, "complete")
        assert result.exit_code == 0
        assert _stored(data_dir).exercises[0].sets[1].weight == 95

        result = _run(data_dir, "complete", "--no-weight")
        assert result.exit_code == 0
        assert _stored(data_dir).exercises[0].sets[2].weight is None

    def test_complete_specific_set(self, data_dir):
        _run(data_dir, "start", "pull")
        result = _run(data_dir, "complete", "--exercise", "2", "--set", "3")
        assert result.exit_code == 0
        session = _stored(data_dir)
        assert session.exercises[1].sets[2].completed
        assert session.current_exercise_index == 0

    def test_complete_out_of_range(self, data_dir):
        _run(data_dir, "start", "push")
        result = _run(data_dir, "complete", "--exercise", "99")
        assert result.exit_code == 1
        assert _stored(data_dir).completed_sets == 0

    def test_rest_controls(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete")

        result = _run(data_dir, "extend-rest", "15")
        assert result.exit_code == 0
        assert _stored(data_dir).rest_duration_ms == 90000

        result = _run(data_dir, "skip-rest")
        assert result.exit_code == 0
        assert _stored(data_dir).resting is False

        result = _run(data_dir, "extend-rest")
        assert result.exit_code == 0
        assert "Not resting" in result.output

    def test_pause_toggles(self, data_dir):
        _run(data_dir, "start", "legs")
        result = _run(data_dir, "pause")
        assert result.exit_code == 0
        assert "paused" in result.output
        assert _stored(data_dir).paused is True

        result = _run(data_dir, "pause")
        assert "resumed" in result.output
        assert _stored(data_dir).paused is False

    def test_status_json(self, data_dir):
        _run(data_dir, "start", "push")
        result = _run(data_dir, "status", "--json")
        assert result.exit_code == 0
        assert '"program_id": "push"' in result.output
        assert '"elapsed_ms"' in result.output

    def test_reset_declined(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete")
        result = _run(data_dir, "reset", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert _stored(data_dir).completed_sets == 1

    def test_reset_confirmed(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete")
        result = _run(data_dir, "reset", "--yes")
        assert result.exit_code == 0
        assert _stored(data_dir).completed_sets == 0

    def test_finish_locally(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete", "--weight", "100")
        result = _run(data_dir, "finish", "--yes", "--no-upload")
        assert result.exit_code == 0
        assert "Workout finished." in result.output
        assert _stored(data_dir) is None

        result = _run(data_dir, "status")
        assert "No active workout" in result.output

    def test_finish_json(self, data_dir):
        _run(data_dir, "start", "push")
        result = _run(data_dir, "finish", "--yes", "--no-upload", "--json")
        assert result.exit_code == 0
        assert '"programName": "Push Day"' in result.output
        assert '"type": "strength"' in result.output

    def test_failed_upload_keeps_workout(self, data_dir):
        _run(data_dir, "start", "push")
        _run(data_dir, "complete")
        result = _run(data_dir, "finish", "--yes", env=UNREACHABLE_API)
        assert result.exit_code == 1
        assert "still active" in result.output
        assert _stored(data_dir).completed_sets == 1

    def test_history_unreachable(self, data_dir):
        result = _run(data_dir, "history", env=UNREACHABLE_API)
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_weights(self, data_dir):
        result = _run(data_dir, "weights")
        assert "No weights remembered" in result.output

        _run(data_dir, "start", "push")
        _run(data_dir, "complete", "--weight", "135")
        result = _run(data_dir, "weights")
        assert result.exit_code == 0
        assert "Bench Press" in result.output
        assert "135 lbs" in result.output

    def test_weight_unit_from_config(self, data_dir):
        (data_dir / "config.yaml").write_text("weight_unit: kg\n")
        _run(data_dir, "start", "push")
        _run(data_dir, "complete", "--weight", "60")
        result = _run(data_dir, "weights")
        assert "60 kg" in result.output

    def test_menu_quit(self):
        result = runner.invoke(app, [], input="0\n")
        assert result.exit_code == 0
        assert "liftlog" in result.output
