"""
Data models for liftlog.

Programs are static prescriptions; a Session is the mutable record of one
live workout built from a Program.  All timestamps are ISO 8601 strings in
UTC (see clock.py) so that snapshots round-trip through JSON unchanged.
"""

from dataclasses import dataclass, field

# Target reps are either a fixed count or a textual range such as "8-12".
Reps = int | str


@dataclass(frozen=True)
class ExerciseSpec:
    """
    One exercise prescription inside a Program.
    """

    exercise_id: str
    name: str
    target_sets: int
    target_reps: Reps
    rest_seconds: int
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate the prescription."""
        if not self.exercise_id:
            raise ValueError("exercise_id must be a non-empty string")
        if self.target_sets <= 0:
            raise ValueError("target_sets must be positive")
        if self.rest_seconds < 0:
            raise ValueError("rest_seconds must be non-negative")
        if isinstance(self.target_reps, int) and self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")


@dataclass(frozen=True)
class Program:
    """
    An ordered list of exercise specs.

    Exercise order defines traversal order during a session.
    """

    program_id: str
    name: str  # short name used on the command line, e.g. "push"
    display_name: str
    exercises: list[ExerciseSpec] = field(default_factory=list)
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.program_id:
            raise ValueError("program_id must be a non-empty string")

    def get_exercise(self, exercise_id: str) -> ExerciseSpec | None:
        """Return the spec with the given id, or None."""
        for spec in self.exercises:
            if spec.exercise_id == exercise_id:
                return spec
        return None


@dataclass
class SetRecord:
    """
    Progress of one set.

    completed_at and weight are written once, when the set is completed.
    """

    set_number: int  # 1-based
    completed: bool = False
    completed_at: str | None = None
    weight: float | None = None
    actual_reps: int | None = None

    def __post_init__(self) -> None:
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.weight is not None and self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.actual_reps is not None and self.actual_reps < 0:
            raise ValueError("actual_reps must be non-negative")


@dataclass
class ExerciseProgress:
    """
    Set-by-set progress for one ExerciseSpec.

    The sets list is sized to the spec's target_sets when the session is
    created and never resized.
    """

    exercise_id: str
    sets: list[SetRecord] = field(default_factory=list)
    current_set: int = 0  # may equal len(sets) once everything is done

    def next_incomplete_set(self) -> int | None:
        """Return the index of the lowest-numbered incomplete set, or None."""
        for i, s in enumerate(self.sets):
            if not s.completed:
                return i
        return None

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.sets if s.completed)

    @property
    def is_complete(self) -> bool:
        return all(s.completed for s in self.sets)


@dataclass
class Session:
    """
    The single live workout.

    When resting, rest_start_time and rest_duration_ms anchor the rest
    period in absolute time; remaining rest is always derived from them.
    """

    program_id: str
    program_name: str  # captured at creation; later renames don't apply
    start_time: str
    exercises: list[ExerciseProgress] = field(default_factory=list)
    current_exercise_index: int = 0
    resting: bool = False
    rest_start_time: str | None = None
    rest_duration_ms: int | None = None
    paused: bool = False

    def __post_init__(self) -> None:
        """Validate the rest-period invariant."""
        anchored = self.rest_start_time is not None and self.rest_duration_ms is not None
        cleared = self.rest_start_time is None and self.rest_duration_ms is None
        if self.resting and not anchored:
            raise ValueError("resting session requires rest_start_time and rest_duration_ms")
        if not self.resting and not cleared:
            raise ValueError("rest_start_time/rest_duration_ms set on a non-resting session")
        if self.rest_duration_ms is not None and self.rest_duration_ms < 0:
            raise ValueError("rest_duration_ms must be non-negative")
        if self.current_exercise_index < 0:
            raise ValueError("current_exercise_index must be non-negative")

    @property
    def completed_sets(self) -> int:
        return sum(ex.completed_count for ex in self.exercises)

    @property
    def total_sets(self) -> int:
        return sum(len(ex.sets) for ex in self.exercises)

    @property
    def is_complete(self) -> bool:
        return all(ex.is_complete for ex in self.exercises)


@dataclass
class SetSummary:
    """Per-set detail in a completion record."""

    set_number: int
    weight: float | None
    reps: Reps | None  # target reps from the program spec
    completed: bool
    completed_at: str | None
    actual_reps: int | None = None


@dataclass
class ExerciseSummary:
    """Per-exercise breakdown in a completion record."""

    exercise_id: str
    name: str
    notes: str | None
    elapsed_ms: int | None  # None when no completed set carries a timestamp
    sets: list[SetSummary] = field(default_factory=list)


@dataclass
class CompletionRecord:
    """
    Structured record of a finished session.

    Handed to the external persistence service as a creation payload.
    """

    date: str  # ISO format: YYYY-MM-DD
    type: str
    duration_minutes: int
    program_name: str
    notes: str
    exercises: list[ExerciseSummary] = field(default_factory=list)

    @property
    def completed_sets(self) -> int:
        return sum(1 for ex in self.exercises for s in ex.sets if s.completed)

    @property
    def total_sets(self) -> int:
        return sum(len(ex.sets) for ex in self.exercises)
