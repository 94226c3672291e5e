"""
Unit tests for command-sequence files (transcript_parity/validation/sequences.py)
"""

from pathlib import Path

import pytest

from transcript_parity.exceptions import SequenceParseError
from transcript_parity.validation.sequences import MAX_COMMAND_LENGTH, SequenceLoader

SEQUENCES_DIR = Path(__file__).resolve().parents[2] / "sequences"


class TestParse:
    """Tests for SequenceLoader.parse."""

    def setup_method(self):
        self.loader = SequenceLoader()

    def test_directives_comments_and_commands(self):
        """Test a sequence with headers, comments and blank lines."""
        text = (
            "# Mailbox\n"
            "name: Mailbox and leaflet\n"
            "description: Open the mailbox and read the leaflet\n"
            "\n"
            "open mailbox\n"
            "  take leaflet  \n"
            "read leaflet\n"
        )
        sequence = self.loader.parse(text, "mailbox")
        assert sequence.id == "mailbox"
        assert sequence.name == "Mailbox and leaflet"
        assert sequence.description == "Open the mailbox and read the leaflet"
        assert sequence.commands == ("open mailbox", "take leaflet", "read leaflet")

    def test_name_defaults_to_id(self):
        """Test that a sequence without a name uses its id."""
        assert self.loader.parse("look\n", "basic").name == "basic"

    def test_directive_after_commands_is_a_command(self):
        """Test that directives are only recognised before the first command."""
        sequence = self.loader.parse("look\nname: sailor\n", "s")
        assert sequence.commands == ("look", "name: sailor")

    @pytest.mark.parametrize(
        "text,message",
        [
            ("", "no commands"),
            ("# only a comment\n", "no commands"),
            ("name:\nlook\n", "empty 'name'"),
            ("name: a\nname: b\nlook\n", "duplicate 'name'"),
            ("x" * (MAX_COMMAND_LENGTH + 1), "longer than"),
        ],
    )
    def test_invalid(self, text, message):
        """Test that malformed sequences raise SequenceParseError."""
        with pytest.raises(SequenceParseError, match=message):
            self.loader.parse(text, "bad")


class TestLoadDirectory:
    """Tests for loading sequence files from disk."""

    def test_sorted_and_filtered(self, tmp_path):
        """Test that only sequence files are loaded, in name order."""
        (tmp_path / "b.txt").write_text("look\n", encoding="utf-8")
        (tmp_path / "a.seq").write_text("inventory\n", encoding="utf-8")
        (tmp_path / "notes.md").write_text("not a sequence\n", encoding="utf-8")

        sequences = SequenceLoader().load_directory(tmp_path)
        assert [s.id for s in sequences] == ["a", "b"]

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory raises SequenceParseError."""
        with pytest.raises(SequenceParseError, match="not found"):
            SequenceLoader().load_directory(tmp_path / "missing")

    def test_bundled_sequences(self):
        """Test that the sample sequences shipped with the project parse."""
        sequences = SequenceLoader().load_directory(SEQUENCES_DIR)
        assert len(sequences) >= 2
        assert all(len(s) > 0 for s in sequences)
