"""
Transcript Comparator - Align two transcripts and build a comparison report

Entries are compared strictly by position: entry i of A against entry i of
B. No re-synchronization is attempted after a divergence; entries beyond
the shorter transcript are reported as unmatched, critical differences.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from transcript_parity.domain.comparison import (
    MISSING_ENTRY,
    ClassifiedDifference,
    ComparisonReport,
    Difference,
    DifferenceType,
    Severity,
    SeveritySummary,
    percentage,
)
from transcript_parity.domain.transcript import Transcript, TranscriptEntry
from transcript_parity.comparison.classifier import (
    DifferenceClassifier,
    SeverityOptions,
    classify_severity,
    matches_known_variation,
)
from transcript_parity.comparison.extractor import ExtractedMessage, MessageExtractor
from transcript_parity.comparison.normalizer import OutputNormalizer
from transcript_parity.comparison.profile import GameProfile, canonical_message, default_profile
from transcript_parity.comparison.similarity import similarity as text_similarity

logger = logging.getLogger(__name__)

UNMATCHED_CATEGORY = "transcript structure"
UNMATCHED_REASON = "Entry has no counterpart in the other transcript"

DIRECTIONS = {
    "north", "south", "east", "west", "up", "down",
    "n", "s", "e", "w", "u", "d",
    "ne", "nw", "se", "sw", "northeast", "northwest", "southeast", "southwest",
}

EXACT = "exact"
CLOSE = "close"

# Divergence types after which later differences count as downstream drift
_DIVERGENCE_TRIGGERS = (DifferenceType.RNG_DIFFERENCE, DifferenceType.STATE_DIVERGENCE)


@dataclass(frozen=True)
class ComparisonOptions:
    """
    Comparator configuration. Immutable once constructed.

    Attributes:
        normalize_whitespace: Canonicalize whitespace before comparing
        strip_status_bar: Remove status lines
        strip_game_header: Remove startup banner lines
        normalize_line_wrapping: Rejoin hard-wrapped lines
        ignore_case_in_messages: Compare bodies case-insensitively
        tolerance_threshold: Similarity at or above which a pair is a close match
        known_variations: Substrings forcing a pair to count as a close match
        use_message_extraction: Compare action responses rather than full output
        track_difference_types: Classify differences (otherwise all count as logic)
    """

    normalize_whitespace: bool = True
    strip_status_bar: bool = True
    strip_game_header: bool = True
    normalize_line_wrapping: bool = True
    ignore_case_in_messages: bool = False
    tolerance_threshold: float = 0.95
    known_variations: Tuple[str, ...] = field(default_factory=tuple)
    use_message_extraction: bool = True
    track_difference_types: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "known_variations", tuple(self.known_variations))
        if not 0.0 <= self.tolerance_threshold <= 1.0:
            raise ValueError(
                f"tolerance_threshold must be within [0, 1], got {self.tolerance_threshold}"
            )

    @property
    def severity_options(self) -> SeverityOptions:
        return SeverityOptions(
            known_variations=self.known_variations,
            ignore_case=self.ignore_case_in_messages,
        )


def categorize(command: str) -> str:
    """Coarse category of a command, used to group differences in reports."""
    cmd = command.strip().lower()

    if cmd in ("look", "l"):
        return "room description"
    if cmd in ("inventory", "i"):
        return "inventory"
    if cmd.startswith("examine") or cmd.startswith("x "):
        return "object examination"
    if cmd.startswith(("take", "get", "drop", "put")):
        return "object manipulation"
    if cmd in DIRECTIONS or cmd.startswith(("go ", "walk ")):
        return "navigation"
    if cmd.startswith(("attack", "kill")):
        return "combat"
    if cmd.startswith(("open", "close")):
        return "container interaction"
    return "general"


@dataclass(frozen=True)
class _PreparedPair:
    """Both sides of one aligned entry pair, ready for comparison."""

    index: int
    command: str
    body_a: str
    body_b: str
    status_a: str
    status_b: str

    @property
    def status_differs(self) -> bool:
        return canonical_message(self.status_a) != canonical_message(self.status_b)


class TranscriptComparator:
    """
    Compare transcripts entry by entry.

    Responsibilities:
    - Normalize and extract both sides of each aligned pair
    - Count exact and close matches
    - Record behavioral differences with a severity
    - Classify differences as RNG / state drift / logic (compare_and_classify)
    """

    def __init__(
        self,
        options: Optional[ComparisonOptions] = None,
        profile: Optional[GameProfile] = None,
        classifier: Optional[DifferenceClassifier] = None,
    ):
        self.options = options or ComparisonOptions()
        self.profile = profile or default_profile()
        self.extractor = MessageExtractor(self.profile)
        self.classifier = classifier or DifferenceClassifier(
            self.profile, ignore_case=self.options.ignore_case_in_messages
        )

    # ------------------------------------------------------------------
    # Per-entry preparation
    # ------------------------------------------------------------------

    def extract(self, entry: TranscriptEntry) -> ExtractedMessage:
        """Split an entry's raw output according to the configured options."""
        opts = self.options
        output = entry.output.replace("\r\n", "\n").replace("\r", "\n")

        if opts.use_message_extraction:
            return self.extractor.extract(
                output, entry.command, strip_header=opts.strip_game_header
            )

        status_segment = ""
        text = output
        if opts.strip_status_bar:
            status_segment, text = self.extractor.split_status(text)
        if opts.strip_game_header:
            text = OutputNormalizer.strip_game_header(text, self.profile.header_patterns)
        return ExtractedMessage(
            response=OutputNormalizer.strip_prompt(text),
            status_segment=status_segment,
            room_description=None,
            is_movement=self.profile.is_movement_command(entry.command),
            original_output=entry.output,
        )

    def prepare_body(self, text: str) -> str:
        """Apply the configured text normalizations to a response body."""
        if self.options.normalize_line_wrapping:
            text = OutputNormalizer.normalize_line_wrapping(text)
        if self.options.normalize_whitespace:
            text = OutputNormalizer.normalize_output(text)
        return text

    def _prepare_pair(self, entry_a: TranscriptEntry, entry_b: TranscriptEntry) -> _PreparedPair:
        extracted_a = self.extract(entry_a)
        extracted_b = self.extract(entry_b)
        return _PreparedPair(
            index=entry_a.index,
            command=entry_a.command or entry_b.command,
            body_a=self.prepare_body(extracted_a.response),
            body_b=self.prepare_body(extracted_b.response),
            status_a=extracted_a.status_segment,
            status_b=extracted_b.status_segment,
        )

    def _bodies_equal(self, pair: _PreparedPair) -> bool:
        if self.options.ignore_case_in_messages:
            return pair.body_a.casefold() == pair.body_b.casefold()
        return pair.body_a == pair.body_b

    def _similarity(self, pair: _PreparedPair) -> float:
        if self.options.ignore_case_in_messages:
            return text_similarity(pair.body_a.casefold(), pair.body_b.casefold())
        return text_similarity(pair.body_a, pair.body_b)

    @staticmethod
    def _unmatched_difference(
        index: int,
        entry_a: Optional[TranscriptEntry],
        entry_b: Optional[TranscriptEntry],
    ) -> Difference:
        present = entry_a or entry_b
        return Difference(
            command_index=index,
            command=present.command if present else "",
            expected=entry_a.output if entry_a else MISSING_ENTRY,
            actual=entry_b.output if entry_b else MISSING_ENTRY,
            severity=Severity.CRITICAL,
            reason=UNMATCHED_REASON,
            similarity=0.0,
            category=UNMATCHED_CATEGORY,
        )

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _walk(self, transcript_a: Transcript, transcript_b: Transcript):
        """
        Walk both transcripts by position.

        Yields (pair, match, difference) tuples in entry order, where match
        is EXACT, CLOSE or None. difference is set only when match is None;
        pair is None for unmatched entries.
        """
        entries_a = transcript_a.entries
        entries_b = transcript_b.entries
        aligned = min(len(entries_a), len(entries_b))

        for i in range(aligned):
            pair = self._prepare_pair(entries_a[i], entries_b[i])

            if self._bodies_equal(pair):
                yield pair, EXACT, None
                continue

            score = self._similarity(pair)
            if score >= self.options.tolerance_threshold or matches_known_variation(
                pair.body_a, pair.body_b, self.options.known_variations
            ):
                yield pair, CLOSE, None
                continue

            difference = Difference(
                command_index=i,
                command=pair.command,
                expected=entries_a[i].output,
                actual=entries_b[i].output,
                severity=classify_severity(
                    pair.body_a, pair.body_b, score, self.options.severity_options
                ),
                reason=f"Responses differ (similarity {score:.2f})",
                similarity=score,
                category=categorize(pair.command),
            )
            yield pair, None, difference

        for i in range(aligned, max(len(entries_a), len(entries_b))):
            entry_a = entries_a[i] if i < len(entries_a) else None
            entry_b = entries_b[i] if i < len(entries_b) else None
            yield None, None, self._unmatched_difference(i, entry_a, entry_b)

    def compare(self, transcript_a: Transcript, transcript_b: Transcript) -> ComparisonReport:
        """
        Compare two transcripts without classifying differences.

        Args:
            transcript_a: Expected transcript (usually the reference)
            transcript_b: Actual transcript (usually the implementation)

        Returns:
            ComparisonReport with match counts, differences and parity score
        """
        return self._build_report(transcript_a, transcript_b, classify=False)

    def compare_and_classify(
        self, transcript_a: Transcript, transcript_b: Transcript
    ) -> ComparisonReport:
        """
        Compare two transcripts and classify every difference.

        A running divergence flag is carried forward through the transcript:
        once an RNG or state divergence has been seen, later unexplained
        differences are reported as state divergence.

        Args:
            transcript_a: Expected transcript (usually the reference)
            transcript_b: Actual transcript (usually the implementation)

        Returns:
            ComparisonReport including classified differences and the logic
            parity percentage
        """
        return self._build_report(transcript_a, transcript_b, classify=True)

    def _build_report(
        self, transcript_a: Transcript, transcript_b: Transcript, classify: bool
    ) -> ComparisonReport:
        exact_matches = 0
        close_matches = 0
        status_bar_differences = 0
        total_commands = 0
        differences: List[Difference] = []
        classified: List[ClassifiedDifference] = []
        divergence_seen = False

        for pair, match, difference in self._walk(transcript_a, transcript_b):
            total_commands += 1

            if match is not None and pair.status_differs:
                status_bar_differences += 1
            if match == EXACT:
                exact_matches += 1
                continue
            if match == CLOSE:
                close_matches += 1
                continue

            differences.append(difference)
            if not classify:
                continue

            if not self.options.track_difference_types:
                item = ClassifiedDifference.from_difference(
                    difference, DifferenceType.LOGIC_DIFFERENCE, difference.reason
                )
            elif pair is None:
                item = self.classifier.classify_difference(difference, divergence_seen)
            else:
                item = self.classifier.classify_difference(
                    difference, divergence_seen, pair.body_a, pair.body_b
                )

            classified.append(item)
            if item.classification in _DIVERGENCE_TRIGGERS:
                divergence_seen = True

        if classify:
            logic_differences = sum(
                1 for d in classified if d.classification is DifferenceType.LOGIC_DIFFERENCE
            )
        else:
            logic_differences = len(differences)

        report = ComparisonReport(
            transcript_a=transcript_a.id,
            transcript_b=transcript_b.id,
            total_commands=total_commands,
            exact_matches=exact_matches,
            close_matches=close_matches,
            behavioral_differences=len(differences),
            status_bar_differences=status_bar_differences,
            differences=tuple(differences),
            classified_differences=tuple(classified),
            parity_score=percentage(exact_matches, total_commands),
            logic_parity_percentage=percentage(total_commands - logic_differences, total_commands),
            severity_summary=SeveritySummary.from_differences(differences),
            classified=classify,
        )

        logger.info(
            f"Compared {transcript_a.id} vs {transcript_b.id}: "
            f"{exact_matches} exact, {close_matches} close, "
            f"{len(differences)} differences of {total_commands} entries"
        )
        return report
