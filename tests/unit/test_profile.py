"""
Unit tests for game profiles (transcript_parity/comparison/profile.py)
"""

import pytest

from transcript_parity.comparison.profile import (
    GameProfile,
    RngPool,
    canonical_message,
    default_profile,
    load_profile,
)
from transcript_parity.exceptions import ConfigurationError


class TestDefaultProfile:
    """Tests for the bundled Zork I profile."""

    def test_pools_loaded(self):
        """Test that all five pools are present in file order."""
        names = [pool.name for pool in default_profile().rng_pools]
        assert names == ["YUKS", "HO_HUM", "HELLOS", "WHEEEEE", "JUMPLOSS"]

    def test_default_profile_is_cached(self):
        """Test that the bundled profile is loaded once."""
        assert default_profile() is default_profile()

    def test_known_variations(self):
        """Test the default acceptable variations."""
        assert "combat outcome" in default_profile().known_variations

    @pytest.mark.parametrize("command", ["n", "North", "go north", "walk west", "climb", "in"])
    def test_movement_commands(self, command):
        """Test commands that move the player."""
        assert default_profile().is_movement_command(command)

    @pytest.mark.parametrize("command", ["", "go", "take lamp", "climb tree", "go lamp", "look"])
    def test_non_movement_commands(self, command):
        """Test commands that do not move the player."""
        assert not default_profile().is_movement_command(command)


class TestRngPool:
    """Tests for pool membership."""

    def test_literal_match_collapses_whitespace(self):
        """Test that whitespace differences do not affect membership."""
        pool = RngPool("YUKS", ("A valiant attempt.",))
        assert pool.matches("  A  valiant\nattempt. ")

    def test_object_placeholder(self):
        """Test that {object} matches any object name."""
        pool = RngPool("HO_HUM", ("{object} has no effect.",))
        assert pool.matches("The brass lantern has no effect.")
        assert not pool.matches("has no effect.")

    def test_no_substring_match(self):
        """Test that a pool entry embedded in longer text is not a member."""
        pool = RngPool("YUKS", ("A valiant attempt.",))
        assert not pool.matches("A valiant attempt. The troll laughs.")

    def test_ignore_case(self):
        """Test case-insensitive membership."""
        pool = RngPool("YUKS", ("A valiant attempt.",))
        assert not pool.matches("a valiant attempt.")
        assert pool.matches("a valiant attempt.", ignore_case=True)

    def test_empty_text(self):
        """Test that empty text is never a member."""
        assert not RngPool("YUKS", ("A valiant attempt.",)).matches("   ")

    def test_canonical_message(self):
        """Test whitespace canonicalization."""
        assert canonical_message(" a \t b\n c ") == "a b c"


class TestLoadProfile:
    """Tests for loading and validating profile files."""

    def test_custom_profile(self, tmp_path):
        """Test loading a minimal profile from disk."""
        path = tmp_path / "custom.yaml"
        path.write_text(
            "name: custom\n"
            "rng_pools:\n"
            "  GREETINGS:\n"
            "    - 'Hi.'\n"
            "    - 'Hey.'\n",
            encoding="utf-8",
        )
        profile = load_profile(path)
        assert profile.name == "custom"
        assert profile.pool("GREETINGS").entries == ("Hi.", "Hey.")
        assert profile.pool("YUKS") is None
        assert profile.header_patterns == ()

    def test_missing_file(self, tmp_path):
        """Test that a missing profile raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_profile(tmp_path / "missing.yaml")

    def test_schema_violation(self, tmp_path):
        """Test that a profile without pools fails validation."""
        path = tmp_path / "bad.yaml"
        path.write_text("name: bad\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_profile(path)

    def test_invalid_yaml(self, tmp_path):
        """Test that unparsable YAML raises ConfigurationError."""
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_profile(path)

    def test_invalid_header_pattern(self):
        """Test that a bad banner regex raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="header pattern"):
            GameProfile.from_dict(
                {"name": "x", "rng_pools": {}, "header_patterns": ["(unclosed"]}
            )
