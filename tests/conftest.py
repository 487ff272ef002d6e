"""Shared fixtures: a controllable clock and file-backed stores in tmp_path."""

from datetime import datetime, timedelta, timezone

import pytest

from liftlog.core.models import ExerciseSpec, Program
from liftlog.core.session_engine import SessionEngine
from liftlog.core.timers import TimerDriver
from liftlog.io.local_store import LocalStore
from liftlog.io.program_catalog import ProgramCatalog
from liftlog.io.session_store import SessionStateStore
from liftlog.io.weight_memory import WeightMemory

T0 = datetime(2026, 3, 2, 10, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


def make_program(
    program_id: str = "push",
    name: str = "push",
    display_name: str = "Push Day",
    sets: tuple[int, ...] = (2,),
    rest: int = 75,
) -> Program:
    """Program with one exercise per entry in sets, all sharing one rest interval."""
    return Program(
        program_id=program_id,
        name=name,
        display_name=display_name,
        exercises=[
            ExerciseSpec(
                exercise_id=f"{program_id}-{i + 1}",
                name=f"Exercise {chr(ord('A') + i)}",
                target_sets=n,
                target_reps=10,
                rest_seconds=rest,
            )
            for i, n in enumerate(sets)
        ],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "data")


@pytest.fixture
def catalog(store) -> ProgramCatalog:
    return ProgramCatalog(store)


@pytest.fixture
def engine(store, catalog, clock) -> SessionEngine:
    """Engine over an empty catalog with a manually ticked driver."""
    return SessionEngine(
        catalog=catalog,
        session_store=SessionStateStore(store),
        weight_memory=WeightMemory(store),
        driver=TimerDriver(clock=clock, autostart=False),
        clock=clock,
    )
