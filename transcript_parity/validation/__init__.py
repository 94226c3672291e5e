"""Multi-seed and extended-sequence validation."""

from transcript_parity.validation.sequences import SequenceLoader
from transcript_parity.validation.validator import (
    ExtendedSequenceResult,
    ParityResults,
    ParityValidator,
    SeedResult,
    extend_commands,
    generate_summary,
)

__all__ = [
    "ExtendedSequenceResult",
    "ParityResults",
    "ParityValidator",
    "SeedResult",
    "SequenceLoader",
    "extend_commands",
    "generate_summary",
]
