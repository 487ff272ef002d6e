"""
Pure session transitions.

Every function here takes a Session (plus the current time where it
matters) and returns a new Session; inputs are never mutated and nothing
is persisted.  SessionEngine wires these to the stores and the timer
driver.

Advancement rules:
- Completing a set moves the exercise's current-set pointer to its
  lowest-numbered incomplete set and starts that exercise's rest period.
  The exercise's last set starts no rest and leaves a running one alone.
- When an exercise has no incomplete sets left, the current-exercise
  pointer moves forward to the next exercise with work remaining.  It
  never moves backwards.
"""

import copy
from datetime import datetime, timedelta

from .clock import elapsed_ms, parse_timestamp, remaining_ms, to_timestamp, whole_minutes
from .config import WORKOUT_TYPE_STRENGTH
from .models import (
    CompletionRecord,
    ExerciseProgress,
    ExerciseSummary,
    Program,
    Session,
    SetRecord,
    SetSummary,
)


def create_session(program: Program, now: datetime) -> Session:
    """
    Build a fresh session for a program.

    One ExerciseProgress per spec, in program order, each holding exactly
    target_sets incomplete sets numbered from 1.

    Args:
        program: Program to train
        now: Session start time

    Returns:
        New Session at exercise 0, not resting, not paused
    """
    return Session(
        program_id=program.program_id,
        program_name=program.display_name,
        start_time=to_timestamp(now),
        exercises=[
            ExerciseProgress(
                exercise_id=spec.exercise_id,
                sets=[SetRecord(set_number=i + 1) for i in range(spec.target_sets)],
                current_set=0,
            )
            for spec in program.exercises
        ],
        current_exercise_index=0,
        resting=False,
        paused=False,
    )


def begin_rest(session: Session, seconds: int, now: datetime) -> Session:
    """Anchor a rest period of the given length at now."""
    if seconds < 0:
        raise ValueError("rest seconds must be non-negative")
    updated = copy.deepcopy(session)
    updated.resting = True
    updated.rest_start_time = to_timestamp(now)
    updated.rest_duration_ms = seconds * 1000
    return updated


def expire_rest(session: Session) -> Session:
    """Leave the resting state and drop the rest anchor."""
    updated = copy.deepcopy(session)
    updated.resting = False
    updated.rest_start_time = None
    updated.rest_duration_ms = None
    return updated


def extend_rest(session: Session, extra_seconds: int) -> Session:
    """Lengthen the running rest period; no-op when not resting."""
    if not session.resting or session.rest_duration_ms is None:
        return session
    updated = copy.deepcopy(session)
    updated.rest_duration_ms = max(0, session.rest_duration_ms + extra_seconds * 1000)
    return updated


def toggle_pause(session: Session) -> Session:
    """
    Flip the paused flag.

    Timestamps are left untouched, including the rest anchor, so that the
    remaining rest can be recomputed when the session is resumed.
    """
    updated = copy.deepcopy(session)
    updated.paused = not session.paused
    return updated


def rest_remaining_ms(session: Session, now: datetime) -> int | None:
    """
    Signed remaining rest in milliseconds, or None when not resting.

    Always restDuration - (now - restStart); time spent paused is not
    excluded.
    """
    if not session.resting or session.rest_start_time is None or session.rest_duration_ms is None:
        return None
    return remaining_ms(now, session.rest_start_time, session.rest_duration_ms)


def rest_end_time(session: Session) -> datetime | None:
    """Absolute end of the running rest period, or None."""
    if not session.resting or session.rest_start_time is None or session.rest_duration_ms is None:
        return None
    return parse_timestamp(session.rest_start_time) + timedelta(milliseconds=session.rest_duration_ms)


def workout_elapsed_ms(session: Session, now: datetime) -> int:
    """Milliseconds since the session started."""
    return elapsed_ms(now, session.start_time)


def complete_set(
    session: Session,
    program: Program,
    exercise_index: int,
    set_index: int,
    now: datetime,
    weight: float | None = None,
    actual_reps: int | None = None,
) -> Session:
    """
    Mark a set completed and advance the session.

    When the same exercise still has an incomplete set, the running rest
    period (if any) is replaced by a fresh one of the exercise's rest
    interval, or simply ended when that interval is zero.  Completing the
    exercise's last set leaves the rest state as it was, so a rest that is
    already counting down keeps running.

    Completing an already completed set returns the session unchanged, so
    completion time and load are written exactly once.

    Args:
        session: Current session
        program: Program the session was built from
        exercise_index: 0-based exercise index
        set_index: 0-based set index within the exercise
        now: Completion time
        weight: Recorded load, if any
        actual_reps: Recorded rep count, if any

    Returns:
        Updated Session

    Raises:
        IndexError: If either index is out of range
    """
    if not 0 <= exercise_index < len(session.exercises):
        raise IndexError(
            f"Exercise index {exercise_index} out of range (0-{len(session.exercises) - 1})"
        )
    progress = session.exercises[exercise_index]
    if not 0 <= set_index < len(progress.sets):
        raise IndexError(
            f"Set index {set_index} out of range (0-{len(progress.sets) - 1})"
        )
    if progress.sets[set_index].completed:
        return session

    updated = copy.deepcopy(session)
    progress = updated.exercises[exercise_index]
    record = progress.sets[set_index]
    record.completed = True
    record.completed_at = to_timestamp(now)
    record.weight = weight
    record.actual_reps = actual_reps

    next_set = progress.next_incomplete_set()
    if next_set is not None:
        progress.current_set = next_set
        spec = program.get_exercise(progress.exercise_id)
        rest_seconds = spec.rest_seconds if spec is not None else 0
        updated = expire_rest(updated)
        if rest_seconds > 0:
            updated = begin_rest(updated, rest_seconds, now)
        return updated

    progress.current_set = len(progress.sets)
    for idx in range(exercise_index + 1, len(updated.exercises)):
        if not updated.exercises[idx].is_complete:
            if idx > updated.current_exercise_index:
                updated.current_exercise_index = idx
            break
    return updated


def exercise_elapsed_ms(progress: ExerciseProgress) -> int | None:
    """
    Time between the first and last completed set of an exercise.

    One completed set yields 0; no completed set with a timestamp yields None.
    """
    stamps = [
        parse_timestamp(s.completed_at)
        for s in progress.sets
        if s.completed and s.completed_at
    ]
    if not stamps:
        return None
    return max(0, elapsed_ms(max(stamps), min(stamps)))


def notes_summary(session: Session, duration_minutes: int) -> str:
    """One-line human summary stored with the completion record."""
    started = parse_timestamp(session.start_time).astimezone().strftime("%H:%M:%S")
    return (
        f"Live workout - {started} | {session.program_name} | "
        f"Duration: {duration_minutes} min | "
        f"Sets: {session.completed_sets}/{session.total_sets}"
    )


def build_completion_record(session: Session, program: Program, now: datetime) -> CompletionRecord:
    """
    Summarise a session into a CompletionRecord.

    Names, notes and target reps are resolved from the program spec; the
    date is the session's local start date.

    Args:
        session: Session being finished
        program: Program the session was built from
        now: Finish time

    Returns:
        CompletionRecord ready for the persistence service
    """
    duration_minutes = whole_minutes(workout_elapsed_ms(session, now))

    exercises: list[ExerciseSummary] = []
    for idx, progress in enumerate(session.exercises):
        spec = program.get_exercise(progress.exercise_id)
        exercises.append(
            ExerciseSummary(
                exercise_id=progress.exercise_id,
                name=spec.name if spec is not None else f"Exercise {idx + 1}",
                notes=spec.notes if spec is not None else None,
                elapsed_ms=exercise_elapsed_ms(progress),
                sets=[
                    SetSummary(
                        set_number=s.set_number,
                        weight=s.weight,
                        reps=spec.target_reps if spec is not None else None,
                        completed=s.completed,
                        completed_at=s.completed_at,
                        actual_reps=s.actual_reps,
                    )
                    for s in progress.sets
                ],
            )
        )

    return CompletionRecord(
        date=parse_timestamp(session.start_time).astimezone().date().isoformat(),
        type=WORKOUT_TYPE_STRENGTH,
        duration_minutes=duration_minutes,
        program_name=session.program_name,
        notes=notes_summary(session, duration_minutes),
        exercises=exercises,
    )
