"""
Error taxonomy for the live session engine.

Caller-facing errors are raised from SessionEngine; the CLI turns them
into a red message and exit code 1.
"""


class LiftlogError(Exception):
    """Base class for errors surfaced to the caller."""


class ProgramNotFound(LiftlogError):
    """A program identifier has no catalog entry."""

    def __init__(self, program_ref: str):
        super().__init__(f"Program not found: {program_ref}")
        self.program_ref = program_ref


class NoActiveSession(LiftlogError):
    """A mutating operation was invoked while no session is stored."""

    def __init__(self, message: str = "No active workout. Start one with 'liftlog start'."):
        super().__init__(message)


class PersistenceUnavailable(LiftlogError):
    """The external completion-record save failed."""
