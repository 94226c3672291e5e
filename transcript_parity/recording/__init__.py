"""Capture adapters for the implementation under test and the reference interpreter."""

from transcript_parity.recording.base import GameRecorder, format_error
from transcript_parity.recording.engine_recorder import EngineRecorder
from transcript_parity.recording.reference_recorder import ReferenceRecorder
from transcript_parity.recording.session import ReferenceSession, SessionState
from transcript_parity.recording.transport import ProcessTransport, SubprocessTransport

__all__ = [
    "GameRecorder",
    "EngineRecorder",
    "ReferenceRecorder",
    "ReferenceSession",
    "SessionState",
    "ProcessTransport",
    "SubprocessTransport",
    "format_error",
]
