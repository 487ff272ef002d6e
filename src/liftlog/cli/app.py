"""Shared Typer app object, shared option types, and engine factory."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config_loader import Settings, load_settings
from ..core.session_engine import SessionEngine
from ..core.timers import TimerDriver
from ..io.local_store import LocalStore
from ..io.program_catalog import ProgramCatalog
from ..io.session_store import SessionStateStore
from ..io.weight_memory import WeightMemory
from ..io.workout_api import WorkoutApiClient

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        "-D",
        help="Directory for local state (default: $LIFTLOG_HOME or ~/.liftlog)",
    ),
]

# Shared --yes option for commands gated on confirmation
YesOption = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
]

app = typer.Typer(
    name="liftlog",
    help="Live workout tracker: sets, rest timers and resumable sessions.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_settings(data_dir: Path | None) -> Settings:
    """Load settings, honouring an explicit --data-dir."""
    return load_settings(data_dir)


def get_engine(settings: Settings, driver: TimerDriver | None = None) -> SessionEngine:
    """Wire the engine to the file-backed stores under settings.data_dir."""
    store = LocalStore(settings.data_dir)
    return SessionEngine(
        catalog=ProgramCatalog(store, user_programs_dir=settings.user_programs_dir),
        session_store=SessionStateStore(store),
        weight_memory=WeightMemory(store),
        driver=driver,
    )


def get_api_client(settings: Settings) -> WorkoutApiClient:
    """Client for the workout REST API configured in settings."""
    return WorkoutApiClient(settings.api_base_url, timeout=settings.api_timeout_seconds)
