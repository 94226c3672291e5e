"""
Transcript Parity Test Harness

Builders for transcripts, scripted recorders and engines used to exercise
the comparator and the multi-seed validator without a real interpreter.
"""

__version__ = "1.0"
__all__ = [
    "EchoEngine",
    "ScriptedRecorder",
    "make_transcript",
]
