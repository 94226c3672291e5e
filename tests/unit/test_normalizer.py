"""
Unit tests for output normalization (transcript_parity/comparison/normalizer.py)

Covers:
- Status bar detection and removal
- Line-wrap rejoining
- Whitespace canonicalization and its idempotence
- Banner and prompt removal
"""

import pytest

from transcript_parity.comparison.normalizer import (
    OutputNormalizer,
    normalize_line_wrapping,
    normalize_output,
    strip_status_bar,
)
from transcript_parity.comparison.profile import default_profile


class TestStripStatusBar:
    """Tests for status bar removal."""

    def test_removes_padded_status_line(self):
        """Test that a padded location/score/moves line is removed."""
        text = "West of House                       Score: 0        Moves: 1\nTaken."
        assert strip_status_bar(text) == "Taken."

    def test_removes_negative_score(self):
        """Test that a negative score still matches the status layout."""
        text = "Troll Room   Score: -10   Moves: 42\nThe troll swings his axe."
        assert strip_status_bar(text) == "The troll swings his axe."

    def test_keeps_prose_mentioning_score(self):
        """Test that sentences about the score are not treated as status lines."""
        text = "Your score is 10 (total of 350 points), in 5 moves."
        assert strip_status_bar(text) == text

    def test_identity_when_nothing_matches(self):
        """Test that text without a status line comes back unchanged."""
        text = "Nothing here.\n\nReally nothing."
        assert strip_status_bar(text) is text

    def test_is_status_bar(self):
        """Test the single-line predicate."""
        assert OutputNormalizer.is_status_bar("Kitchen   Score: 10   Moves: 7")
        assert not OutputNormalizer.is_status_bar("Kitchen")


class TestNormalizeLineWrapping:
    """Tests for rejoining hard-wrapped lines."""

    def test_joins_wrapped_sentence(self):
        """Test that a sentence wrapped over three lines is rejoined."""
        text = "This is a\nvery long\nsentence that wraps.\nNext one."
        assert normalize_line_wrapping(text) == (
            "This is a very long sentence that wraps.\nNext one."
        )

    def test_keeps_complete_sentences_apart(self):
        """Test that lines ending in terminal punctuation are not joined."""
        text = "Line one.\nLine two!\nLine three?"
        assert normalize_line_wrapping(text) == text

    def test_preserves_paragraph_breaks(self):
        """Test that blank lines survive and end the current line."""
        text = "First para\n\nSecond para."
        assert normalize_line_wrapping(text) == "First para\n\nSecond para."

    def test_trailing_spaces_do_not_hide_terminator(self):
        """Test that a terminator followed by spaces still closes the line."""
        assert normalize_line_wrapping("Ends with period.   \nNext") == "Ends with period.\nNext"

    def test_closing_quote_is_terminal(self):
        """Test that a closing quotation mark ends the logical line."""
        text = 'The sign says "Keep out."\nYou ignore it.'
        assert normalize_line_wrapping(text) == text

    def test_custom_terminators(self):
        """Test that terminators are configurable."""
        text = "Inventory:\nA lamp."
        assert OutputNormalizer.normalize_line_wrapping(text, (":", ".")) == text
        assert OutputNormalizer.normalize_line_wrapping(text, (".",)) == "Inventory: A lamp."


class TestNormalizeOutput:
    """Tests for whitespace canonicalization."""

    def test_collapses_horizontal_whitespace(self):
        """Test that spaces and tabs collapse and lines are trimmed."""
        assert normalize_output("Hello   world\r\nSecond\tline  ") == "Hello world\nSecond line"

    def test_collapses_blank_line_runs(self):
        """Test that several blank lines become a single one."""
        assert normalize_output("a\n\n\n\nb") == "a\n\nb"

    def test_strips_leading_and_trailing_blank_lines(self):
        """Test that the result has no blank lines at either end."""
        assert normalize_output("\n\n  Taken.  \n\n") == "Taken."

    def test_empty_input(self):
        """Test that empty input stays empty."""
        assert normalize_output("") == ""

    @pytest.mark.parametrize(
        "text",
        [
            "Hello   world\r\nSecond\tline  ",
            "\n\n a \n\n\n b \r\r c",
            "   ",
            "West of House\n\nYou are standing in an open field.",
        ],
    )
    def test_idempotent(self, text):
        """Test that normalizing twice equals normalizing once."""
        once = normalize_output(text)
        assert normalize_output(once) == once


class TestStripGameHeader:
    """Tests for banner removal."""

    def test_removes_banner_lines(self):
        """Test that title, copyright and release lines are removed."""
        text = (
            "ZORK I: The Great Underground Empire\n"
            "Copyright (c) 1981, 1982, 1983 Infocom, Inc. All rights reserved.\n"
            "ZORK is a registered trademark of Infocom, Inc.\n"
            "Revision 88 / Serial number 840726\n"
            "\n"
            "West of House\n"
            "You are standing in an open field."
        )
        result = OutputNormalizer.strip_game_header(text, default_profile().header_patterns)
        assert result == "West of House\nYou are standing in an open field."

    def test_no_patterns_is_identity(self):
        """Test that an empty pattern list leaves text unchanged."""
        text = "\nZORK I: The Great Underground Empire"
        assert OutputNormalizer.strip_game_header(text, ()) == text


class TestStripPrompt:
    """Tests for prompt removal."""

    def test_trailing_prompt(self):
        """Test that a prompt at the end is removed."""
        assert OutputNormalizer.strip_prompt("Taken.\n>") == "Taken."

    def test_prompt_lines(self):
        """Test that prompts on their own lines are removed."""
        assert OutputNormalizer.strip_prompt(">\nTaken.\n> ") == "Taken."

    def test_keeps_inline_angle_brackets(self):
        """Test that a ">" inside a sentence is kept."""
        assert OutputNormalizer.strip_prompt("Type >help for help.") == "Type >help for help."

    def test_strip_ansi(self):
        """Test that ANSI escape sequences are removed."""
        assert OutputNormalizer.strip_ansi("\x1b[1mWest of House\x1b[0m") == "West of House"
