"""
Difference Classifier - Attribute a divergence to RNG, state drift or logic

Given two response bodies known to differ, decide whether the difference is
harmless randomness (both responses drawn from the same RNG pool), drift
caused by an earlier divergence, or a genuine logic difference. Anything
that cannot be attributed is reported as a logic difference.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from transcript_parity.domain.comparison import (
    MISSING_ENTRY,
    ClassifiedDifference,
    Difference,
    DifferenceType,
    Severity,
)
from transcript_parity.comparison.normalizer import normalize_output
from transcript_parity.comparison.profile import GameProfile, RngPool, default_profile

logger = logging.getLogger(__name__)

RNG_REASON = "Both outputs are from the {pool} RNG pool"
STATE_REASON = "Game states have diverged due to accumulated RNG effects"
LOGIC_REASON = "Difference cannot be attributed to RNG or state divergence"


@dataclass(frozen=True)
class SeverityOptions:
    """
    Thresholds for the severity axis.

    Attributes:
        minor_threshold: Similarity at or above which a difference is minor
        major_threshold: Similarity at or above which a difference is major
        known_variations: Substrings marking an accepted variation (minor)
        ignore_case: Treat case-only differences as formatting
    """

    minor_threshold: float = 0.85
    major_threshold: float = 0.7
    known_variations: Tuple[str, ...] = ()
    ignore_case: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "known_variations", tuple(self.known_variations))


def matches_known_variation(
    expected: str, actual: str, known_variations: Sequence[str]
) -> bool:
    """True if either text contains one of the accepted-variation substrings."""
    return any(
        variation in expected or variation in actual
        for variation in known_variations
        if variation
    )


def classify_severity(
    expected: str,
    actual: str,
    similarity: float,
    options: Optional[SeverityOptions] = None,
) -> Severity:
    """
    Severity of a single difference.

    - FORMATTING: whitespace normalization alone reconciles the texts
      (or case folding, when ignore_case is set)
    - MINOR: similarity >= minor_threshold, or a known variation
    - MAJOR: similarity >= major_threshold
    - CRITICAL: anything else, including unmatched entries

    Args:
        expected: Output from the first transcript
        actual: Output from the second transcript
        similarity: Similarity score of the compared bodies
        options: Thresholds (defaults: 0.85 / 0.7)

    Returns:
        Severity
    """
    opts = options or SeverityOptions()

    if expected == MISSING_ENTRY or actual == MISSING_ENTRY:
        return Severity.CRITICAL

    normalized_expected = normalize_output(expected)
    normalized_actual = normalize_output(actual)
    if normalized_expected == normalized_actual:
        return Severity.FORMATTING
    if opts.ignore_case and normalized_expected.casefold() == normalized_actual.casefold():
        return Severity.FORMATTING

    if similarity >= opts.minor_threshold:
        return Severity.MINOR
    if matches_known_variation(expected, actual, opts.known_variations):
        return Severity.MINOR
    if similarity >= opts.major_threshold:
        return Severity.MAJOR
    return Severity.CRITICAL


class DifferenceClassifier:
    """
    Classify differences against the RNG pools of a game profile.

    The profile is injected and never modified, so independently configured
    classifiers can coexist in one process.
    """

    def __init__(self, profile: Optional[GameProfile] = None, ignore_case: bool = False):
        self.profile = profile or default_profile()
        self.ignore_case = ignore_case

    @property
    def pools(self) -> Tuple[RngPool, ...]:
        return self.profile.rng_pools

    def is_pool_message(self, text: str, pool: RngPool) -> bool:
        """True if text is an entry of the given pool (object names allowed)."""
        return pool.matches(text, ignore_case=self.ignore_case)

    def is_rng_pool_message(self, text: str) -> bool:
        """True if text is an entry of any configured pool."""
        return self.pool_for(text) is not None

    def pool_for(self, text: str) -> Optional[RngPool]:
        """First configured pool containing text, or None."""
        for pool in self.pools:
            if self.is_pool_message(text, pool):
                return pool
        return None

    def shared_pool(self, a: str, b: str) -> Optional[RngPool]:
        """A pool that contains both texts, or None."""
        for pool in self.pools:
            if self.is_pool_message(a, pool) and self.is_pool_message(b, pool):
                return pool
        return None

    def are_both_from_same_rng_pool(self, a: str, b: str) -> bool:
        """True only when one pool contains both texts; cross-pool pairs are False."""
        return self.shared_pool(a, b) is not None

    def classify_with_reason(
        self, a: str, b: str, prior_divergence: bool
    ) -> Tuple[DifferenceType, str]:
        """Classification plus a human-readable reason."""
        pool = self.shared_pool(a, b)
        if pool is not None:
            return DifferenceType.RNG_DIFFERENCE, RNG_REASON.format(pool=pool.name)
        if prior_divergence:
            return DifferenceType.STATE_DIVERGENCE, STATE_REASON
        return DifferenceType.LOGIC_DIFFERENCE, LOGIC_REASON

    def classify(self, a: str, b: str, prior_divergence: bool) -> DifferenceType:
        """
        Classify two differing response bodies.

        1. Both from the same RNG pool -> RNG_DIFFERENCE
        2. An earlier divergence occurred -> STATE_DIVERGENCE
        3. Otherwise -> LOGIC_DIFFERENCE
        """
        classification, _ = self.classify_with_reason(a, b, prior_divergence)
        return classification

    def classify_difference(
        self,
        difference: Difference,
        prior_divergence: bool,
        a: Optional[str] = None,
        b: Optional[str] = None,
    ) -> ClassifiedDifference:
        """
        Attach a classification to a difference.

        Args:
            difference: The difference to classify
            prior_divergence: Whether an earlier entry already diverged
            a: Extracted body of the expected output (defaults to difference.expected)
            b: Extracted body of the actual output (defaults to difference.actual)

        Returns:
            ClassifiedDifference whose reason names the pool or the cause
        """
        body_a = difference.expected if a is None else a
        body_b = difference.actual if b is None else b

        if difference.is_unmatched:
            # A missing entry is never an RNG variant
            if prior_divergence:
                classification, reason = DifferenceType.STATE_DIVERGENCE, STATE_REASON
            else:
                classification, reason = DifferenceType.LOGIC_DIFFERENCE, LOGIC_REASON
        else:
            classification, reason = self.classify_with_reason(body_a, body_b, prior_divergence)

        logger.debug(
            f"Entry {difference.command_index} ({difference.command!r}) "
            f"classified as {classification.value}: {reason}"
        )
        return ClassifiedDifference.from_difference(difference, classification, reason)
