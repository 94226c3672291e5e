"""
Unit tests for edit-distance similarity (transcript_parity/comparison/similarity.py)
"""

import pytest

from transcript_parity.comparison.similarity import levenshtein_distance, similarity


class TestLevenshteinDistance:
    """Tests for the edit distance."""

    def test_classic_example(self):
        """Test the kitten/sitting distance."""
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_empty_strings(self):
        """Test distances involving empty strings."""
        assert levenshtein_distance("", "") == 0
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "abcd") == 4

    def test_symmetric(self):
        """Test that argument order does not matter."""
        assert levenshtein_distance("Taken.", "Dropped.") == levenshtein_distance("Dropped.", "Taken.")


class TestSimilarity:
    """Tests for the normalized similarity score."""

    def test_identical(self):
        """Test that identical strings score 1.0."""
        assert similarity("Taken.", "Taken.") == 1.0
        assert similarity("", "") == 1.0

    def test_one_side_empty(self):
        """Test that an empty side scores 0.0."""
        assert similarity("Taken.", "") == 0.0
        assert similarity("", "Taken.") == 0.0

    def test_normalized_by_longer_string(self):
        """Test that the distance is divided by the longer length."""
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    @pytest.mark.parametrize(
        "a,b",
        [
            ("A valiant attempt.", "What a concept!"),
            ("Hello.", "Good day."),
            ("You are in a dark room.", "You are in a dark room!"),
        ],
    )
    def test_within_unit_interval(self, a, b):
        """Test that scores stay within [0, 1] and are symmetric."""
        score = similarity(a, b)
        assert 0.0 <= score <= 1.0
        assert score == similarity(b, a)
