"""Domain models for transcripts and comparison results."""

from transcript_parity.domain.comparison import (
    ClassifiedDifference,
    ComparisonReport,
    Difference,
    DifferenceType,
    Severity,
    SeveritySummary,
)
from transcript_parity.domain.transcript import CommandSequence, Transcript, TranscriptEntry

__all__ = [
    "Transcript",
    "TranscriptEntry",
    "CommandSequence",
    "Difference",
    "ClassifiedDifference",
    "DifferenceType",
    "Severity",
    "SeveritySummary",
    "ComparisonReport",
]
