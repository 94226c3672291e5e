"""
Unit tests for transcript comparison (transcript_parity/comparison/comparator.py)

Covers:
- Exact and close matches, tolerance and known variations
- Status bar isolation
- Unmatched entries for transcripts of unequal length
- Classification with the running divergence flag
- Option handling (case, extraction, classification on/off)
"""

import dataclasses

import pytest

from tests.comparison.transcript_factory import make_transcript
from transcript_parity.comparison.comparator import (
    UNMATCHED_CATEGORY,
    ComparisonOptions,
    TranscriptComparator,
    categorize,
)
from transcript_parity.domain.comparison import MISSING_ENTRY, DifferenceType, Severity


class TestComparisonOptions:
    """Tests for comparator option validation."""

    def test_defaults(self):
        """Test default option values."""
        options = ComparisonOptions()
        assert options.tolerance_threshold == 0.95
        assert options.use_message_extraction
        assert options.track_difference_types
        assert not options.ignore_case_in_messages

    @pytest.mark.parametrize("tolerance", [-0.1, 1.5])
    def test_tolerance_out_of_range(self, tolerance):
        """Test that a tolerance outside [0, 1] is rejected."""
        with pytest.raises(ValueError):
            ComparisonOptions(tolerance_threshold=tolerance)

    def test_immutable(self):
        """Test that options cannot be changed after construction."""
        options = ComparisonOptions()
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.tolerance_threshold = 0.5


class TestCategorize:
    """Tests for command categories."""

    @pytest.mark.parametrize(
        "command,category",
        [
            ("look", "room description"),
            ("i", "inventory"),
            ("examine leaflet", "object examination"),
            ("take lamp", "object manipulation"),
            ("n", "navigation"),
            ("go north", "navigation"),
            ("kill troll with sword", "combat"),
            ("open mailbox", "container interaction"),
            ("xyzzy", "general"),
        ],
    )
    def test_categories(self, command, category):
        """Test the category assigned to each kind of command."""
        assert categorize(command) == category


class TestCompare:
    """Tests for TranscriptComparator.compare."""

    def setup_method(self):
        self.comparator = TranscriptComparator()

    def test_identical_transcripts(self):
        """Test that identical transcripts are all exact matches."""
        pairs = [("", "West of House"), ("open mailbox", "Opening the small mailbox reveals a leaflet.")]
        report = self.comparator.compare(make_transcript(pairs, "a"), make_transcript(pairs, "b"))
        assert report.total_commands == 2
        assert report.exact_matches == 2
        assert report.differences == ()
        assert report.parity_score == 100.0
        assert report.transcript_a == "a"
        assert report.transcript_b == "b"

    def test_whitespace_and_wrapping_ignored(self):
        """Test that wrapping and spacing differences still match exactly."""
        a = make_transcript([("read leaflet", "ZORK is a game of adventure,\ndanger, and low cunning.")])
        b = make_transcript([("read leaflet", "ZORK is a game of   adventure, danger,\nand low cunning.  ")])
        report = self.comparator.compare(a, b)
        assert report.exact_matches == 1

    def test_close_match_within_tolerance(self):
        """Test that near-identical bodies count as close matches."""
        a = make_transcript([("look", "You are in a dark room with a lamp.")])
        b = make_transcript([("look", "You are in a dark room with a lamp!")])
        report = self.comparator.compare(a, b)
        assert report.close_matches == 1
        assert report.behavioral_differences == 0
        assert report.parity_score == 0.0

    def test_known_variation_forces_close_match(self):
        """Test that a known variation counts as a close match."""
        comparator = TranscriptComparator(ComparisonOptions(known_variations=("thief",)))
        a = make_transcript([("wait", "The thief stabs you.")])
        b = make_transcript([("wait", "The thief misses.")])
        report = comparator.compare(a, b)
        assert report.close_matches == 1
        assert report.differences == ()

    def test_difference_details(self):
        """Test the fields recorded for a behavioral difference."""
        a = make_transcript([("open mailbox", "Opening the small mailbox reveals a leaflet.")])
        b = make_transcript([("open mailbox", "The mailbox is locked.")])
        report = self.comparator.compare(a, b)
        assert report.behavioral_differences == 1
        difference = report.differences[0]
        assert difference.command_index == 0
        assert difference.command == "open mailbox"
        assert difference.expected == "Opening the small mailbox reveals a leaflet."
        assert difference.actual == "The mailbox is locked."
        assert difference.category == "container interaction"
        assert difference.severity is Severity.CRITICAL
        assert 0.0 <= difference.similarity < 0.95
        assert report.severity_summary.critical == 1
        assert report.classified_differences == ()

    def test_unclassified_logic_parity_consistent(self):
        """Test that an unclassified report counts every difference as logic."""
        a = make_transcript([("", "West of House"), ("open door", "The door is locked.")])
        b = make_transcript([("", "West of House"), ("open door", "You open the door.")])
        report = self.comparator.compare(a, b)
        data = report.to_dict()

        assert not report.classified
        assert report.logic_differences == 1
        assert report.logic_parity_percentage == 50.0
        assert report.logic_parity_percentage == (
            100.0 * (report.total_commands - report.logic_differences) / report.total_commands
        )
        assert data["logic_differences"] == 1
        assert data["logic_parity_percentage"] == 50.0

    def test_status_bar_differences_counted_separately(self):
        """Test that status-only differences are exact matches with a status count."""
        a = make_transcript([("take lamp", "West of House      Score: 0      Moves: 1\n\nTaken.")])
        b = make_transcript([("take lamp", "West of House  Score: 10  Moves: 5\n\nTaken.")])
        report = self.comparator.compare(a, b)
        assert report.exact_matches == 1
        assert report.behavioral_differences == 0
        assert report.status_bar_differences == 1

    def test_status_bar_differences_on_close_matches(self):
        """Test that close matches with different status segments are counted too."""
        a = make_transcript([("look", "Kitchen  Score: 10  Moves: 5\nThe kitchen is quite dusty.")])
        b = make_transcript([("look", "Kitchen  Score: 15  Moves: 9\nThe kitchen is quite dusty!")])
        report = self.comparator.compare(a, b)
        assert report.close_matches == 1
        assert report.status_bar_differences == 1

    def test_status_padding_is_not_a_status_difference(self):
        """Test that status lines differing only in padding are equal."""
        a = make_transcript([("take lamp", "Kitchen      Score: 10      Moves: 5\nTaken.")])
        b = make_transcript([("take lamp", "Kitchen  Score: 10  Moves: 5\nTaken.")])
        assert self.comparator.compare(a, b).status_bar_differences == 0

    def test_status_bar_compared_without_stripping(self):
        """Test that status lines count as body text when nothing strips them."""
        comparator = TranscriptComparator(
            ComparisonOptions(use_message_extraction=False, strip_status_bar=False)
        )
        a = make_transcript([("take lamp", "West of House  Score: 0  Moves: 1\nTaken.")])
        b = make_transcript([("take lamp", "West of House  Score: 350  Moves: 123\nTaken.")])
        assert comparator.compare(a, b).behavioral_differences == 1

    def test_status_bar_stripped_without_extraction(self):
        """Test status stripping when message extraction is disabled."""
        comparator = TranscriptComparator(ComparisonOptions(use_message_extraction=False))
        a = make_transcript([("take lamp", "West of House  Score: 0  Moves: 1\nTaken.")])
        b = make_transcript([("take lamp", "West of House  Score: 350  Moves: 123\nTaken.")])
        report = comparator.compare(a, b)
        assert report.exact_matches == 1
        assert report.status_bar_differences == 1

    def test_ignore_case(self):
        """Test case-insensitive comparison."""
        a = make_transcript([("take lamp", "Taken.")])
        b = make_transcript([("take lamp", "TAKEN.")])
        assert self.comparator.compare(a, b).behavioral_differences == 1

        comparator = TranscriptComparator(ComparisonOptions(ignore_case_in_messages=True))
        assert comparator.compare(a, b).exact_matches == 1

    def test_unequal_lengths(self):
        """Test that extra entries are reported as critical unmatched differences."""
        a = make_transcript([("", "West of House"), ("look", "Dark."), ("wait", "Time passes.")])
        b = make_transcript([("", "West of House")])
        report = self.comparator.compare(a, b)

        assert report.total_commands == 3
        assert report.exact_matches == 1
        assert report.behavioral_differences == 2
        assert round(report.parity_score) == 33

        first, second = report.differences
        assert first.command_index == 1
        assert first.expected == "Dark."
        assert first.actual == MISSING_ENTRY
        assert second.command == "wait"
        assert second.category == UNMATCHED_CATEGORY
        assert all(d.severity is Severity.CRITICAL for d in report.differences)

    def test_shorter_first_transcript(self):
        """Test that entries missing from transcript A are reported too."""
        a = make_transcript([])
        b = make_transcript([("", "West of House")])
        report = self.comparator.compare(a, b)
        assert report.total_commands == 1
        assert report.differences[0].expected == MISSING_ENTRY
        assert report.differences[0].actual == "West of House"

    def test_empty_transcripts(self):
        """Test that two empty transcripts are at full parity."""
        report = self.comparator.compare(make_transcript([]), make_transcript([]))
        assert report.total_commands == 0
        assert report.parity_score == 100.0


class TestCompareAndClassify:
    """Tests for TranscriptComparator.compare_and_classify."""

    def setup_method(self):
        self.comparator = TranscriptComparator()

    def test_rng_difference_counts_as_matching(self):
        """Test that a same-pool pair is an RNG difference and matching."""
        a = make_transcript([("jump", "Very good. Now you can go to the second grade.")])
        b = make_transcript([("jump", "Are you enjoying yourself?")])
        report = self.comparator.compare_and_classify(a, b)
        assert report.rng_differences == 1
        assert report.logic_differences == 0
        assert report.matching_responses == 1
        assert report.logic_parity_percentage == 100.0

    def test_divergence_flag(self):
        """Test that differences after an RNG difference become state divergence."""
        a = make_transcript([
            ("read leaflet", "WELCOME TO ZORK!"),
            ("jump", "Wheeeeeeeeee!!!!!"),
            ("hello", "Hello."),
            ("open mailbox", "Opening the small mailbox reveals a leaflet."),
        ])
        b = make_transcript([
            ("read leaflet", "The leaflet is blank."),
            ("jump", "Do you expect me to applaud?"),
            ("hello", "Good day."),
            ("open mailbox", "The mailbox is locked."),
        ])
        report = self.comparator.compare_and_classify(a, b)

        kinds = [d.classification for d in report.classified_differences]
        assert kinds == [
            DifferenceType.LOGIC_DIFFERENCE,
            DifferenceType.RNG_DIFFERENCE,
            DifferenceType.RNG_DIFFERENCE,
            DifferenceType.STATE_DIVERGENCE,
        ]
        assert report.total_commands == 4
        assert report.logic_parity_percentage == 75.0

    def test_logic_difference_does_not_arm_divergence(self):
        """Test that a logic difference leaves later differences as logic."""
        a = make_transcript([("take lamp", "Taken."), ("drop lamp", "Dropped.")])
        b = make_transcript([("take lamp", "What lamp?"), ("drop lamp", "You have no lamp!")])
        report = self.comparator.compare_and_classify(a, b)
        assert report.logic_differences == 2
        assert report.state_divergences == 0

    def test_unmatched_entries_classified(self):
        """Test that missing entries are logic differences before any divergence."""
        a = make_transcript([("", "West of House"), ("look", "Dark."), ("wait", "Time passes.")])
        b = make_transcript([("", "West of House")])
        report = self.comparator.compare_and_classify(a, b)
        assert report.logic_differences == 2
        assert report.rng_differences == 0
        assert round(report.logic_parity_percentage, 2) == 33.33

    def test_unmatched_entries_after_divergence(self):
        """Test that missing entries after an RNG difference are state divergence."""
        a = make_transcript([("hello", "Hello."), ("look", "Dark.")])
        b = make_transcript([("hello", "Good day.")])
        report = self.comparator.compare_and_classify(a, b)
        kinds = [d.classification for d in report.classified_differences]
        assert kinds == [DifferenceType.RNG_DIFFERENCE, DifferenceType.STATE_DIVERGENCE]

    def test_classification_disabled(self):
        """Test that every difference is logic when type tracking is off."""
        comparator = TranscriptComparator(ComparisonOptions(track_difference_types=False))
        a = make_transcript([("hello", "Hello.")])
        b = make_transcript([("hello", "Good day.")])
        report = comparator.compare_and_classify(a, b)
        assert report.logic_differences == 1
        assert report.rng_differences == 0

    def test_to_dict(self):
        """Test report serialization."""
        a = make_transcript([("hello", "Hello.")])
        b = make_transcript([("hello", "Good day.")])
        data = self.comparator.compare_and_classify(a, b).to_dict()
        assert data["rng_differences"] == 1
        assert data["classified_differences"][0]["classification"] == "RNG_DIFFERENCE"
        assert data["differences"][0]["severity"] == "critical"
