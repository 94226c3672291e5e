"""
Recorder interface shared by the implementation and reference adapters.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from transcript_parity.domain.transcript import Transcript

ERROR_MARKER = "[Error: {message}]"


def format_error(message) -> str:
    """Render an error as it appears inside a transcript entry."""
    return ERROR_MARKER.format(message=message)


def transcript_id(prefix: str, seed: Optional[int] = None, when: Optional[datetime] = None) -> str:
    """Build a transcript id such as "impl-2024-05-01T10:00:00-seed12345"."""
    stamp = (when or datetime.now()).isoformat(timespec="seconds")
    if seed is None:
        return f"{prefix}-{stamp}"
    return f"{prefix}-{stamp}-seed{seed}"


class GameRecorder(ABC):
    """
    Drives one implementation through a command list and records a transcript.

    Entry 0 of every transcript is the startup output (command ""); entry
    i >= 1 holds the output of commands[i - 1].
    """

    source: str = ""

    @abstractmethod
    def record(self, commands: Sequence[str], seed: Optional[int] = None) -> Transcript:
        """
        Record a session.

        Args:
            commands: Literal commands to issue, in order
            seed: Pseudo-random seed for the session, if supported

        Returns:
            Transcript of the session
        """

    def is_available(self) -> bool:
        """Whether the implementation can be started at all."""
        return True

    def check_configuration(self) -> None:
        """
        Validate required settings before any command is sent.

        Raises:
            ConfigurationError: If a required setting is missing
        """
