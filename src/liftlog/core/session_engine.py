"""
Live session engine.

SessionEngine runs each transition as one read-modify-persist cycle:
load the stored session, apply a pure function from transitions.py, save
the result, then arm or disarm timers to match the new state.  The
store, not this object, is the source of truth, so a fresh engine (a new
CLI process) picks up exactly where the last one stopped.

Lifecycle:
    Idle --start--> Active <--> {Resting, Paused, Paused+Resting}
    Active --finish--> Idle          (session cleared after a successful save)
    Active --reset---> Active        (old session discarded, fresh one stored)
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from . import transitions
from .clock import Clock, utc_now
from .config import DEFAULT_REST_EXTENSION_SECONDS
from .errors import NoActiveSession, PersistenceUnavailable, ProgramNotFound
from .models import CompletionRecord, ExerciseProgress, ExerciseSpec, Program, Session
from .timers import TimerDriver

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]
SaveRecord = Callable[[CompletionRecord], object]


class ProgramSource(Protocol):
    def find_program(self, ref: str) -> Program | None: ...
    def seed_defaults(self) -> int: ...


class SessionStore(Protocol):
    def load_session(self) -> Session | None: ...
    def save_session(self, session: Session) -> None: ...
    def clear_session(self) -> None: ...


class WeightStore(Protocol):
    def get_last_weight(self, exercise_id: str) -> float | None: ...
    def set_last_weight(self, exercise_id: str, weight: float) -> None: ...


@dataclass
class ExerciseView:
    """One exercise as the presentation layer sees it."""

    index: int
    spec: ExerciseSpec | None
    progress: ExerciseProgress
    is_current: bool
    suggested_weight: float | None

    @property
    def name(self) -> str:
        return self.spec.name if self.spec is not None else self.progress.exercise_id

    @property
    def completed_count(self) -> int:
        return self.progress.completed_count

    @property
    def actionable_set(self) -> int | None:
        """Index of the set the user should do next, or None when done."""
        return self.progress.next_incomplete_set()


@dataclass
class SessionSnapshot:
    """Read-only view of the active session for rendering."""

    session: Session
    program: Program
    elapsed_ms: int
    rest_remaining_ms: int | None
    exercises: list[ExerciseView] = field(default_factory=list)

    @property
    def current(self) -> ExerciseView | None:
        for view in self.exercises:
            if view.is_current:
                return view
        return None


class SessionEngine:
    """
    The live-session state machine.

    All public transitions are serialised by a re-entrant lock so the rest
    countdown thread cannot interleave with a user-initiated transition.
    """

    def __init__(
        self,
        catalog: ProgramSource,
        session_store: SessionStore,
        weight_memory: WeightStore,
        driver: TimerDriver | None = None,
        clock: Clock = utc_now,
    ):
        self.catalog = catalog
        self.session_store = session_store
        self.weight_memory = weight_memory
        self.clock = clock
        self.driver = driver if driver is not None else TimerDriver(clock=clock, autostart=False)
        self.driver.on_rest_expired = self._on_rest_expired
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def initialize(self) -> Session | None:
        """Seed default programs into an empty catalog, then resume."""
        added = self.catalog.seed_defaults()
        if added:
            logger.info("Initialized %d default programs", added)
        return self.resume_session()

    def resume_session(self) -> Session | None:
        """
        Re-attach to the persisted session, if any.

        A session whose program no longer exists is left in the store but
        reported as absent.  When not paused, the workout clock is re-armed
        and a running rest period is either re-armed for its remaining time
        or expired immediately if it ran out while nobody was watching.

        Returns:
            The (possibly updated) session, or None
        """
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                return None
            program = self.catalog.find_program(session.program_id)
            if program is None:
                logger.warning("Stored session refers to missing program %s", session.program_id)
                return None
            if session.paused:
                self.driver.stop_all()
                return session
            self.driver.start_workout_clock(session.start_time)
            return self._reconcile_rest(session)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_session(self, program_ref: str) -> Session:
        """
        Start a new session, replacing any stored one.

        Raises:
            ProgramNotFound: If program_ref matches no program
        """
        with self._lock:
            program = self.catalog.find_program(program_ref)
            if program is None:
                raise ProgramNotFound(program_ref)
            self.driver.stop_all()
            session = transitions.create_session(program, self.clock())
            self.session_store.save_session(session)
            self.driver.start_workout_clock(session.start_time)
            logger.info("Started %s", program.display_name)
            return session

    def complete_set(
        self,
        exercise_index: int | None = None,
        set_index: int | None = None,
        weight: float | None = None,
        actual_reps: int | None = None,
    ) -> Session:
        """
        Complete a set; defaults to the current exercise's next set.

        The weight is remembered for the exercise on a best-effort basis.

        Raises:
            NoActiveSession: If no session is stored
            ProgramNotFound: If the session's program is gone
            IndexError: If the indices are out of range, or the session has
                no incomplete set to default to
        """
        with self._lock:
            session, program = self._load_active()
            if exercise_index is None:
                exercise_index = session.current_exercise_index
            if set_index is None:
                if not 0 <= exercise_index < len(session.exercises):
                    raise IndexError(f"Exercise index {exercise_index} out of range")
                next_set = session.exercises[exercise_index].next_incomplete_set()
                if next_set is None:
                    raise IndexError("All sets of this exercise are already completed")
                set_index = next_set

            updated = transitions.complete_set(
                session, program, exercise_index, set_index, self.clock(),
                weight=weight, actual_reps=actual_reps,
            )
            if updated is session:
                logger.debug("Set %d/%d already completed", exercise_index, set_index)
                return session

            self.session_store.save_session(updated)
            if weight is not None:
                self._remember_weight(updated.exercises[exercise_index].exercise_id, weight)
            self._sync_rest_timer(updated)
            return updated

    def begin_rest(self, seconds: int) -> Session:
        """
        Start a rest period of the given length now.

        Raises:
            NoActiveSession: If no session is stored
        """
        with self._lock:
            session, _ = self._load_active()
            updated = transitions.begin_rest(session, seconds, self.clock())
            self.session_store.save_session(updated)
            self._sync_rest_timer(updated)
            return updated

    def expire_rest(self) -> Session:
        """
        End the current rest period.

        Raises:
            NoActiveSession: If no session is stored
        """
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                raise NoActiveSession()
            self.driver.stop_rest_countdown()
            updated = transitions.expire_rest(session)
            self.session_store.save_session(updated)
            return updated

    def skip_rest(self) -> Session:
        """User-initiated end of the rest period."""
        return self.expire_rest()

    def extend_rest(self, extra_seconds: int = DEFAULT_REST_EXTENSION_SECONDS) -> Session:
        """
        Add time to the running rest period; no-op when not resting.

        Raises:
            NoActiveSession: If no session is stored
        """
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                raise NoActiveSession()
            if not session.resting:
                return session
            updated = transitions.extend_rest(session, extra_seconds)
            self.session_store.save_session(updated)
            self.driver.extend_rest(extra_seconds * 1000)
            return updated

    def toggle_pause(self) -> Session:
        """
        Pause or resume the session.

        Pausing disarms both timers but keeps the rest anchor.  Resuming
        re-arms the workout clock and reconciles the rest period against
        the wall clock, exactly as on startup.

        Raises:
            NoActiveSession: If no session is stored
        """
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                raise NoActiveSession()
            updated = transitions.toggle_pause(session)
            self.session_store.save_session(updated)
            if updated.paused:
                self.driver.stop_all()
                logger.info("Workout paused")
                return updated
            self.driver.start_workout_clock(updated.start_time)
            logger.info("Workout resumed")
            return self._reconcile_rest(updated)

    def reset_session(self, confirm: Confirm, program_ref: str | None = None) -> Session | None:
        """
        Discard the current session and start over.

        Args:
            confirm: Asked before anything is discarded; False cancels
            program_ref: Program to restart; defaults to the current one

        Returns:
            The fresh session, or None if the user declined

        Raises:
            NoActiveSession: If no session is stored and no program is given
            ProgramNotFound: If the program does not exist
        """
        with self._lock:
            if program_ref is None:
                session = self.session_store.load_session()
                if session is None:
                    raise NoActiveSession("No active workout to reset.")
                program_ref = session.program_id
            if not confirm("Reset this workout? All progress will be lost."):
                return None
            self.driver.stop_all()
            return self.start_session(program_ref)

    def build_completion_record(self) -> CompletionRecord:
        """
        Summarise the active session without changing anything.

        Raises:
            NoActiveSession: If no session is stored
            ProgramNotFound: If the session's program is gone
        """
        with self._lock:
            session, program = self._load_active()
            return transitions.build_completion_record(session, program, self.clock())

    def finish_session(self, confirm: Confirm, save: SaveRecord | None = None) -> CompletionRecord | None:
        """
        Finish the session.

        The record is built, handed to save, and only when save returns are
        the timers disarmed and the session cleared.  If save raises, the
        session stays stored and resumable.

        Args:
            confirm: Asked first; False cancels
            save: Persists the record externally; None skips that step

        Returns:
            The completion record, or None if the user declined

        Raises:
            NoActiveSession: If no session is stored
            ProgramNotFound: If the session's program is gone
            PersistenceUnavailable: If save fails
        """
        with self._lock:
            session, program = self._load_active()
            if not confirm("Finish this workout?"):
                return None
            record = transitions.build_completion_record(session, program, self.clock())
            if save is not None:
                try:
                    save(record)
                except PersistenceUnavailable:
                    raise
                except Exception as e:
                    raise PersistenceUnavailable(f"Could not save workout: {e}") from e
            self.driver.stop_all()
            self.session_store.clear_session()
            logger.info(
                "Finished %s: %d min, %d/%d sets",
                record.program_name, record.duration_minutes,
                record.completed_sets, record.total_sets,
            )
            return record

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def current_session(self) -> Session | None:
        return self.session_store.load_session()

    def snapshot(self) -> SessionSnapshot | None:
        """
        Build a rendering snapshot of the active session.

        Returns:
            SessionSnapshot, or None if there is no usable session
        """
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                return None
            program = self.catalog.find_program(session.program_id)
            if program is None:
                return None
            now = self.clock()
            views = []
            for idx, progress in enumerate(session.exercises):
                spec = program.get_exercise(progress.exercise_id)
                views.append(
                    ExerciseView(
                        index=idx,
                        spec=spec,
                        progress=progress,
                        is_current=idx == session.current_exercise_index,
                        suggested_weight=self._suggested_weight(progress.exercise_id),
                    )
                )
            remaining = transitions.rest_remaining_ms(session, now)
            return SessionSnapshot(
                session=session,
                program=program,
                elapsed_ms=transitions.workout_elapsed_ms(session, now),
                rest_remaining_ms=max(0, remaining) if remaining is not None else None,
                exercises=views,
            )

    def shutdown(self) -> None:
        """Cancel every live timer (process exit, navigation away)."""
        self.driver.stop_all()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_active(self) -> tuple[Session, Program]:
        session = self.session_store.load_session()
        if session is None:
            raise NoActiveSession()
        program = self.catalog.find_program(session.program_id)
        if program is None:
            raise ProgramNotFound(session.program_id)
        return session, program

    def _reconcile_rest(self, session: Session) -> Session:
        """Re-arm a rest period that still has time left; expire one that doesn't."""
        remaining = transitions.rest_remaining_ms(session, self.clock())
        if remaining is None:
            self.driver.stop_rest_countdown()
            return session
        if remaining > 0:
            end = transitions.rest_end_time(session)
            if end is not None:
                self.driver.start_rest_countdown(end)
            return session
        logger.debug("Rest ran out %d ms ago; expiring", -remaining)
        self.driver.stop_rest_countdown()
        updated = transitions.expire_rest(session)
        self.session_store.save_session(updated)
        return updated

    def _sync_rest_timer(self, session: Session) -> None:
        if session.resting and not session.paused:
            end = transitions.rest_end_time(session)
            if end is not None:
                self.driver.start_rest_countdown(end)
                return
        self.driver.stop_rest_countdown()

    def _on_rest_expired(self) -> None:
        """Timer-originated expiry: stale or orphaned callbacks are dropped."""
        with self._lock:
            session = self.session_store.load_session()
            if session is None:
                logger.debug("Rest expired with no active session; ignoring")
                return
            remaining = transitions.rest_remaining_ms(session, self.clock())
            if session.paused or remaining is None or remaining > 0:
                logger.debug("Ignoring stale rest expiry")
                return
            self.session_store.save_session(transitions.expire_rest(session))

    def _remember_weight(self, exercise_id: str, weight: float) -> None:
        try:
            self.weight_memory.set_last_weight(exercise_id, weight)
        except Exception as e:
            logger.warning("Could not remember weight for %s: %s", exercise_id, e)

    def _suggested_weight(self, exercise_id: str) -> float | None:
        try:
            return self.weight_memory.get_last_weight(exercise_id)
        except Exception as e:
            logger.warning("Could not read weight for %s: %s", exercise_id, e)
            return None
