"""Normalization, extraction, scoring, classification and comparison of transcripts."""

from transcript_parity.comparison.classifier import DifferenceClassifier, SeverityOptions, classify_severity
from transcript_parity.comparison.comparator import ComparisonOptions, TranscriptComparator, categorize
from transcript_parity.comparison.diff_reporter import DiffReporter
from transcript_parity.comparison.extractor import ExtractedMessage, MessageExtractor
from transcript_parity.comparison.normalizer import (
    OutputNormalizer,
    normalize_line_wrapping,
    normalize_output,
    strip_status_bar,
)
from transcript_parity.comparison.profile import GameProfile, RngPool, default_profile, load_profile
from transcript_parity.comparison.similarity import levenshtein_distance, similarity

__all__ = [
    "ComparisonOptions",
    "DiffReporter",
    "DifferenceClassifier",
    "ExtractedMessage",
    "GameProfile",
    "MessageExtractor",
    "OutputNormalizer",
    "RngPool",
    "SeverityOptions",
    "TranscriptComparator",
    "categorize",
    "classify_severity",
    "default_profile",
    "levenshtein_distance",
    "load_profile",
    "normalize_line_wrapping",
    "normalize_output",
    "similarity",
    "strip_status_bar",
]
