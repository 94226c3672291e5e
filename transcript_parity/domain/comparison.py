"""
Comparison result models.

Differences, their classification, and the per-transcript-pair report the
comparator assembles. Every model here is derived data: it is recomputed on
each comparison and never mutated afterwards.
"""

from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict, Tuple


class Severity(Enum):
    """Coarse severity of a single difference."""

    FORMATTING = "formatting"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class DifferenceType(Enum):
    """Root-cause classification of a single difference."""

    RNG_DIFFERENCE = "RNG_DIFFERENCE"
    STATE_DIVERGENCE = "STATE_DIVERGENCE"
    LOGIC_DIFFERENCE = "LOGIC_DIFFERENCE"


MISSING_ENTRY = "<missing entry>"


@dataclass(frozen=True)
class Difference:
    """
    A divergence between two aligned transcript entries.

    Attributes:
        command_index: Position of the entry in both transcripts
        command: Command that produced the outputs
        expected: Output from transcript A
        actual: Output from transcript B
        severity: Severity classification
        reason: Human-readable explanation
        similarity: Similarity score (0-1) of the compared bodies
        category: Coarse command category ("navigation", "inventory", ...)
    """

    command_index: int
    command: str
    expected: str
    actual: str
    severity: Severity
    reason: str
    similarity: float
    category: str

    @property
    def is_unmatched(self) -> bool:
        return self.expected == MISSING_ENTRY or self.actual == MISSING_ENTRY

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class ClassifiedDifference(Difference):
    """A difference together with its root-cause classification."""

    classification: DifferenceType

    @classmethod
    def from_difference(
        cls, difference: Difference, classification: DifferenceType, reason: str
    ) -> "ClassifiedDifference":
        return cls(
            command_index=difference.command_index,
            command=difference.command,
            expected=difference.expected,
            actual=difference.actual,
            severity=difference.severity,
            reason=reason,
            similarity=difference.similarity,
            category=difference.category,
            classification=classification,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["classification"] = self.classification.value
        return data


@dataclass(frozen=True)
class SeveritySummary:
    """Difference counts per severity."""

    critical: int = 0
    major: int = 0
    minor: int = 0
    formatting: int = 0

    @classmethod
    def from_differences(cls, differences) -> "SeveritySummary":
        counts = {severity: 0 for severity in Severity}
        for difference in differences:
            counts[difference.severity] += 1
        return cls(
            critical=counts[Severity.CRITICAL],
            major=counts[Severity.MAJOR],
            minor=counts[Severity.MINOR],
            formatting=counts[Severity.FORMATTING],
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def percentage(part: int, total: int) -> float:
    """Return part/total as a percentage; an empty total counts as full parity."""
    if total <= 0:
        return 100.0
    return part / total * 100.0


@dataclass(frozen=True)
class ComparisonReport:
    """
    Structured result of comparing two transcripts.

    parity_score counts exact matches only; logic_parity_percentage only
    counts LOGIC_DIFFERENCE entries against parity and is the figure that
    gates pass/fail. An unclassified report (classified=False) counts every
    behavioral difference as a logic difference.
    """

    transcript_a: str
    transcript_b: str
    total_commands: int
    exact_matches: int
    close_matches: int
    behavioral_differences: int
    status_bar_differences: int
    differences: Tuple[Difference, ...] = ()
    classified_differences: Tuple[ClassifiedDifference, ...] = ()
    parity_score: float = 100.0
    logic_parity_percentage: float = 100.0
    severity_summary: SeveritySummary = field(default_factory=SeveritySummary)
    classified: bool = True

    def _count(self, difference_type: DifferenceType) -> int:
        return sum(
            1 for d in self.classified_differences if d.classification is difference_type
        )

    @property
    def rng_differences(self) -> int:
        return self._count(DifferenceType.RNG_DIFFERENCE)

    @property
    def state_divergences(self) -> int:
        return self._count(DifferenceType.STATE_DIVERGENCE)

    @property
    def logic_differences(self) -> int:
        if not self.classified:
            return len(self.differences)
        return self._count(DifferenceType.LOGIC_DIFFERENCE)

    @property
    def total_differences(self) -> int:
        return len(self.classified_differences)

    @property
    def matching_responses(self) -> int:
        """Entries that count as matching: exact, close, or same-pool RNG variation."""
        return self.exact_matches + self.close_matches + self.rng_differences

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript_a": self.transcript_a,
            "transcript_b": self.transcript_b,
            "total_commands": self.total_commands,
            "exact_matches": self.exact_matches,
            "close_matches": self.close_matches,
            "behavioral_differences": self.behavioral_differences,
            "status_bar_differences": self.status_bar_differences,
            "rng_differences": self.rng_differences,
            "state_divergences": self.state_divergences,
            "logic_differences": self.logic_differences,
            "parity_score": self.parity_score,
            "logic_parity_percentage": self.logic_parity_percentage,
            "classified": self.classified,
            "severity_summary": self.severity_summary.to_dict(),
            "differences": [d.to_dict() for d in self.differences],
            "classified_differences": [d.to_dict() for d in self.classified_differences],
        }
