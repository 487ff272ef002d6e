"""
JSON serialization for liftlog data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Local
stores use snake_case keys; the external workout API expects camelCase,
produced by completion_record_to_payload().
"""

import json
from typing import Any

from ..core.clock import parse_timestamp
from ..core.models import (
    CompletionRecord,
    ExerciseProgress,
    ExerciseSpec,
    Program,
    Reps,
    Session,
    SetRecord,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_timestamp(value: Any, name: str) -> str:
    """
    Validate an ISO 8601 timestamp string.

    Args:
        value: Value to validate
        name: Field name for error message

    Returns:
        The timestamp string unchanged

    Raises:
        ValidationError: If value is not a parseable timestamp
    """
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a timestamp string, got {value!r}")
    try:
        parse_timestamp(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}") from e
    return value


def validate_reps(value: Any) -> Reps:
    """
    Validate target reps: a non-negative int or a non-empty range string.

    Raises:
        ValidationError: If reps are neither
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid reps: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValidationError(f"reps must be non-negative, got {value}")
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        return int(text) if text.isdigit() else text
    raise ValidationError(f"Invalid reps: {value!r}")


def _require(data: dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise ValidationError(f"{context} missing field '{key}'")
    return data[key]


def _optional_float(value: Any, name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e


# =============================================================================
# Programs
# =============================================================================


def exercise_spec_to_dict(spec: ExerciseSpec) -> dict[str, Any]:
    """Convert ExerciseSpec to JSON-compatible dict."""
    d: dict[str, Any] = {
        "exercise_id": spec.exercise_id,
        "name": spec.name,
        "target_sets": spec.target_sets,
        "target_reps": spec.target_reps,
        "rest_seconds": spec.rest_seconds,
    }
    if spec.notes:
        d["notes"] = spec.notes
    return d


def dict_to_exercise_spec(data: dict[str, Any]) -> ExerciseSpec:
    """
    Convert dict to ExerciseSpec.

    Raises:
        ValidationError: If data is invalid
    """
    ctx = "Exercise"
    try:
        return ExerciseSpec(
            exercise_id=str(_require(data, "exercise_id", ctx)),
            name=str(_require(data, "name", ctx)),
            target_sets=int(_require(data, "target_sets", ctx)),
            target_reps=validate_reps(_require(data, "target_reps", ctx)),
            rest_seconds=int(data.get("rest_seconds", 0)),
            notes=str(data["notes"]) if data.get("notes") else None,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid exercise {data.get('exercise_id')!r}: {e}") from e


def program_to_dict(program: Program) -> dict[str, Any]:
    """Convert Program to JSON-compatible dict."""
    return {
        "program_id": program.program_id,
        "name": program.name,
        "display_name": program.display_name,
        "exercises": [exercise_spec_to_dict(s) for s in program.exercises],
        "created_at": program.created_at,
    }


def dict_to_program(data: dict[str, Any]) -> Program:
    """
    Convert dict to Program.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Program must be an object, got {type(data).__name__}")
    ctx = "Program"
    raw_exercises = _require(data, "exercises", ctx)
    if not isinstance(raw_exercises, list):
        raise ValidationError("Program exercises must be a list")

    program_id = str(_require(data, "program_id", ctx))
    name = str(data.get("name") or program_id)
    try:
        return Program(
            program_id=program_id,
            name=name,
            display_name=str(data.get("display_name") or name),
            exercises=[dict_to_exercise_spec(e) for e in raw_exercises],
            created_at=str(data.get("created_at", "")),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid program {program_id!r}: {e}") from e


# =============================================================================
# Sessions
# =============================================================================


def set_record_to_dict(record: SetRecord) -> dict[str, Any]:
    """Convert SetRecord to JSON-compatible dict."""
    return {
        "set_number": record.set_number,
        "completed": record.completed,
        "completed_at": record.completed_at,
        "weight": record.weight,
        "actual_reps": record.actual_reps,
    }


def dict_to_set_record(data: dict[str, Any]) -> SetRecord:
    """
    Convert dict to SetRecord.

    Raises:
        ValidationError: If data is invalid
    """
    completed_at = data.get("completed_at")
    if completed_at is not None:
        validate_timestamp(completed_at, "completed_at")
    actual_reps = data.get("actual_reps")
    try:
        return SetRecord(
            set_number=int(_require(data, "set_number", "Set")),
            completed=bool(data.get("completed", False)),
            completed_at=completed_at,
            weight=_optional_float(data.get("weight"), "weight"),
            actual_reps=int(actual_reps) if actual_reps is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid set: {e}") from e


def exercise_progress_to_dict(progress: ExerciseProgress) -> dict[str, Any]:
    """Convert ExerciseProgress to JSON-compatible dict."""
    return {
        "exercise_id": progress.exercise_id,
        "sets": [set_record_to_dict(s) for s in progress.sets],
        "current_set": progress.current_set,
    }


def dict_to_exercise_progress(data: dict[str, Any]) -> ExerciseProgress:
    """
    Convert dict to ExerciseProgress.

    Raises:
        ValidationError: If data is invalid
    """
    raw_sets = _require(data, "sets", "Exercise progress")
    if not isinstance(raw_sets, list):
        raise ValidationError("Exercise progress sets must be a list")
    try:
        current_set = int(data.get("current_set", 0))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid current_set: {e}") from e
    return ExerciseProgress(
        exercise_id=str(_require(data, "exercise_id", "Exercise progress")),
        sets=[dict_to_set_record(s) for s in raw_sets],
        current_set=current_set,
    )


def session_to_dict(session: Session) -> dict[str, Any]:
    """
    Convert Session to JSON-compatible dict.

    Rest fields are always written (null when not resting) so a snapshot
    reads back field for field.
    """
    return {
        "program_id": session.program_id,
        "program_name": session.program_name,
        "start_time": session.start_time,
        "exercises": [exercise_progress_to_dict(e) for e in session.exercises],
        "current_exercise_index": session.current_exercise_index,
        "resting": session.resting,
        "rest_start_time": session.rest_start_time,
        "rest_duration_ms": session.rest_duration_ms,
        "paused": session.paused,
    }


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert dict to Session.

    Args:
        data: Dict representation

    Returns:
        Session instance

    Raises:
        ValidationError: If data is invalid or breaks a session invariant
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Session must be an object, got {type(data).__name__}")
    ctx = "Session"
    raw_exercises = _require(data, "exercises", ctx)
    if not isinstance(raw_exercises, list):
        raise ValidationError("Session exercises must be a list")

    rest_start = data.get("rest_start_time")
    if rest_start is not None:
        validate_timestamp(rest_start, "rest_start_time")
    rest_duration = data.get("rest_duration_ms")

    try:
        return Session(
            program_id=str(_require(data, "program_id", ctx)),
            program_name=str(data.get("program_name", "")),
            start_time=validate_timestamp(_require(data, "start_time", ctx), "start_time"),
            exercises=[dict_to_exercise_progress(e) for e in raw_exercises],
            current_exercise_index=int(data.get("current_exercise_index", 0)),
            resting=bool(data.get("resting", False)),
            rest_start_time=rest_start,
            rest_duration_ms=int(rest_duration) if rest_duration is not None else None,
            paused=bool(data.get("paused", False)),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid session: {e}") from e


def session_to_json(session: Session) -> str:
    """Convert Session to a JSON string."""
    return json.dumps(session_to_dict(session), indent=2)


def session_from_json(text: str) -> Session:
    """
    Parse a JSON string into a Session.

    Raises:
        ValidationError: If the text is not valid JSON or not a valid session
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Session snapshot is not valid JSON: {e}") from e
    return dict_to_session(data)


# =============================================================================
# Completion records
# =============================================================================


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def completion_record_to_payload(record: CompletionRecord) -> dict[str, Any]:
    """
    Convert CompletionRecord to the workout API creation payload.

    Keys are camelCase; optional values that are unset are omitted.
    """
    return {
        "date": record.date,
        "type": record.type,
        "durationMinutes": record.duration_minutes,
        "programName": record.program_name,
        "notes": record.notes,
        "exercises": [
            _drop_none({
                "exerciseId": ex.exercise_id,
                "name": ex.name,
                "notes": ex.notes,
                "elapsedMs": ex.elapsed_ms,
                "sets": [
                    _drop_none({
                        "setNumber": s.set_number,
                        "weight": s.weight,
                        "reps": s.reps,
                        "actualReps": s.actual_reps,
                        "completed": s.completed,
                        "completedAt": s.completed_at,
                    })
                    for s in ex.sets
                ],
            })
            for ex in record.exercises
        ],
    }
