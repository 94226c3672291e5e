"""
Custom exception hierarchy for parity validation runs.

This module defines domain-specific exceptions raised while configuring,
spawning and driving the reference interpreter, so that callers can
distinguish failures that abort a run from failures that only degrade it.
"""

from typing import Any, Optional, Sequence


class ParityError(Exception):
    """
    Base exception for all parity-validation errors.
    """

    pass


class ConfigurationError(ParityError):
    """
    Raised when a required setting (interpreter binary, game image, option
    value) is missing or invalid before a run starts.

    Aborts the affected run before any command is sent.
    """

    pass


class InterpreterUnavailable(ParityError):
    """
    Raised when the reference interpreter cannot be located or spawned.

    The validator treats this as a signal to degrade to
    implementation-only mode rather than failing the run.
    """

    pass


class CommandTimeout(ParityError):
    """
    Raised when the reference interpreter does not print its input prompt
    within the per-command window.

    Absorbed by the recorder: the partial output is kept and the entry is
    recorded with a formatted error marker.
    """

    def __init__(
        self,
        command: str,
        timeout: float,
        partial_output: str = "",
        message: Optional[str] = None,
    ):
        self.command = command
        self.timeout = timeout
        self.partial_output = partial_output
        super().__init__(
            message or f"No prompt within {timeout:.2f}s after command {command!r}"
        )


class ProcessTermination(ParityError):
    """
    Raised when the reference process exits unexpectedly mid-session.

    Carries whatever was captured before the exit so that callers can still
    compare the partial transcript.
    """

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        partial_output: str = "",
        entries: Optional[Sequence[Any]] = None,
    ):
        self.exit_code = exit_code
        self.partial_output = partial_output
        self.entries = tuple(entries or ())
        super().__init__(message)


class SequenceParseError(ParityError):
    """
    Raised when a command-sequence file cannot be parsed.
    """

    pass
