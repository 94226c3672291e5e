"""
Output Normalizer - Strip non-semantic formatting noise from raw turn output

Both implementations render the same response with different line widths,
padding and status lines; everything here removes that noise so that only
the response text is compared.
"""

import logging
import re
from typing import Iterable, Pattern, Sequence

logger = logging.getLogger(__name__)

# "West of House                       Score: 0        Moves: 1"
STATUS_BAR_PATTERN = re.compile(
    r"^\s*\S.*\s+Score:\s*-?\d+\s+Moves:\s*\d+\s*$", re.IGNORECASE
)

# Room label, signed score, move count
STATUS_BAR_FIELDS_PATTERN = re.compile(
    r"^\s*(?P<location>\S.*?)\s+Score:\s*(?P<score>-?\d+)\s+Moves:\s*(?P<moves>\d+)\s*$",
    re.IGNORECASE,
)

PROMPT_LINE_PATTERN = re.compile(r"^>\s*$")
TRAILING_PROMPT_PATTERN = re.compile(r"(^|\n)\s*>\s*$")

HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]+")

SENTENCE_TERMINATORS = (".", "!", "?", '"', "'", "”", "’")


class OutputNormalizer:
    """
    Normalize raw turn output for comparison.

    Responsibilities:
    - Remove the persistent status line (location / score / moves)
    - Rejoin lines hard-wrapped by a fixed-width renderer
    - Canonicalize line endings, spacing and blank lines
    - Remove game banners and input prompts
    """

    @staticmethod
    def is_status_bar(line: str) -> bool:
        """Return True if the line has the two-field status bar layout."""
        return bool(STATUS_BAR_PATTERN.match(line))

    @staticmethod
    def strip_status_bar(text: str) -> str:
        """
        Remove status bar lines.

        Only lines with the exact layout (location label, Score field,
        Moves field) are removed; prose mentioning a score is kept.

        Args:
            text: Raw output

        Returns:
            Output without status bar lines (unchanged if none matched)
        """
        lines = text.split("\n")
        kept = [line for line in lines if not STATUS_BAR_PATTERN.match(line)]
        if len(kept) == len(lines):
            return text
        return "\n".join(kept)

    @staticmethod
    def normalize_line_wrapping(
        text: str, terminators: Sequence[str] = SENTENCE_TERMINATORS
    ) -> str:
        """
        Rejoin lines that were wrapped mid-sentence.

        Rules:
        - Blank lines are paragraph breaks and are preserved
        - A line whose trimmed text ends in sentence-terminal punctuation
          closes the logical line
        - Any other line is joined to the next one with a single space,
          so runs of wrapped lines collapse into one

        Args:
            text: Output text
            terminators: Characters that end a sentence

        Returns:
            Text with wrapped lines rejoined
        """
        terminal = tuple(terminators)
        result = []
        current = ""

        for line in text.split("\n"):
            trimmed = line.strip()

            if not trimmed:
                if current:
                    result.append(current)
                    current = ""
                result.append("")
                continue

            if not current:
                current = trimmed
            elif current.endswith(terminal):
                result.append(current)
                current = trimmed
            else:
                current = f"{current} {trimmed}"

        if current:
            result.append(current)

        return "\n".join(result)

    @staticmethod
    def normalize_output(text: str) -> str:
        """
        Canonicalize output text.

        - Line endings become "\\n"
        - Runs of horizontal whitespace become a single space
        - Each line is trimmed
        - Two or more consecutive blank lines collapse to one
        - Leading and trailing blank lines are removed

        Idempotent: normalize_output(normalize_output(s)) == normalize_output(s).
        """
        if not text:
            return ""

        text = text.replace("\r\n", "\n").replace("\r", "\n")

        result = []
        previous_blank = False
        for line in text.split("\n"):
            line = HORIZONTAL_WHITESPACE.sub(" ", line).strip()
            if not line:
                if previous_blank:
                    continue
                previous_blank = True
            else:
                previous_blank = False
            result.append(line)

        return "\n".join(result).strip("\n")

    @staticmethod
    def strip_game_header(text: str, patterns: Iterable[Pattern]) -> str:
        """
        Remove banner lines (title, copyright, release) from output.

        Args:
            text: Output text
            patterns: Compiled per-line patterns identifying banner lines

        Returns:
            Output without banner lines or the blank lines they leave at the top
        """
        compiled = list(patterns)
        if not compiled:
            return text

        kept = [
            line for line in text.split("\n")
            if not any(pattern.search(line) for pattern in compiled)
        ]
        while kept and not kept[0].strip():
            kept.pop(0)
        return "\n".join(kept)

    @staticmethod
    def strip_prompt(text: str) -> str:
        """Remove input prompts on their own lines and a trailing prompt."""
        lines = [line for line in text.split("\n") if not PROMPT_LINE_PATTERN.match(line)]
        result = "\n".join(lines)
        result = TRAILING_PROMPT_PATTERN.sub("", result)
        return result.strip()

    @staticmethod
    def strip_ansi(text: str) -> str:
        """Remove ANSI colour/formatting escape sequences."""
        return re.sub(r"\x1b\[[0-9;]*[A-Za-z]", "", text)


# Module-level convenience functions
def strip_status_bar(text: str) -> str:
    """Remove status bar lines."""
    return OutputNormalizer.strip_status_bar(text)


def normalize_line_wrapping(text: str) -> str:
    """Rejoin hard-wrapped lines."""
    return OutputNormalizer.normalize_line_wrapping(text)


def normalize_output(text: str) -> str:
    """Canonicalize whitespace and line endings."""
    return OutputNormalizer.normalize_output(text)
