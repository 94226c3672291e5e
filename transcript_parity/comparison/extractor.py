"""
Message Extractor - Isolate the action response from a full turn output

A turn's output can carry a status line, startup banner, input prompt, an
echo of the command and, for some actions, a re-printed room block ahead
of the actual response.
Comparing only the response keeps layout differences between two
implementations from showing up as behavioral differences.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from transcript_parity.comparison.normalizer import OutputNormalizer, STATUS_BAR_PATTERN
from transcript_parity.comparison.profile import GameProfile, default_profile

logger = logging.getLogger(__name__)

ROOM_NAME_MAX_LENGTH = 50
_CAPITALIZED = re.compile(r"^[A-Z]")


@dataclass(frozen=True)
class ExtractedMessage:
    """
    One turn's output split into its parts.

    Attributes:
        response: The action response body
        status_segment: Status line(s) removed from the output ("" if none)
        room_description: Room block separated from the response, if any
        is_movement: Whether the command was a movement command
        original_output: Raw output as captured
    """

    response: str
    status_segment: str
    room_description: Optional[str]
    is_movement: bool
    original_output: str


def strip_command_echo(text: str, command: str) -> str:
    """Drop a leading line that repeats the command (optionally after a ">" prompt)."""
    if not command.strip():
        return text
    lines = text.split("\n")
    for i, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed:
            continue
        if trimmed.lstrip(">").strip() == command.strip():
            return "\n".join(lines[:i] + lines[i + 1:])
        break
    return text


def is_room_name_line(line: str) -> bool:
    """
    Heuristic: short, capitalized, title-like line without closing punctuation.
    """
    trimmed = line.strip()
    if not trimmed or len(trimmed) > ROOM_NAME_MAX_LENGTH:
        return False
    if trimmed[-1] in ".!?":
        return False
    if not _CAPITALIZED.match(trimmed):
        return False

    words = trimmed.split()
    capitalized = [w for w in words if _CAPITALIZED.match(w)]
    return len(capitalized) >= len(words) / 2


class MessageExtractor:
    """Split turn output into status segment, room block and response."""

    def __init__(self, profile: Optional[GameProfile] = None):
        self.profile = profile or default_profile()

    def split_status(self, output: str) -> Tuple[str, str]:
        """Return (status_segment, remaining_text)."""
        status_lines: List[str] = []
        body_lines: List[str] = []
        for line in output.split("\n"):
            if STATUS_BAR_PATTERN.match(line):
                status_lines.append(line.strip())
            else:
                body_lines.append(line)
        return "\n".join(status_lines), "\n".join(body_lines)

    def extract(
        self, output: str, command: str, strip_header: bool = True
    ) -> ExtractedMessage:
        """
        Extract the action response from a turn's output.

        Status lines are split out first, so two outputs that differ only
        in their status segment always yield the same response.

        Args:
            output: Raw output for one command
            command: The command that produced it
            strip_header: Remove startup banner lines

        Returns:
            ExtractedMessage
        """
        is_movement = self.profile.is_movement_command(command)

        status_segment, text = self.split_status(output.replace("\r\n", "\n"))
        if strip_header:
            text = OutputNormalizer.strip_game_header(text, self.profile.header_patterns)
        text = OutputNormalizer.strip_prompt(text)
        text = strip_command_echo(text, command)

        room_description = None
        if not is_movement:
            room_description, text = self._separate_room_block(text)

        return ExtractedMessage(
            response=text.strip(),
            status_segment=status_segment,
            room_description=room_description,
            is_movement=is_movement,
            original_output=output,
        )

    @staticmethod
    def _separate_room_block(text: str) -> Tuple[Optional[str], str]:
        """
        Split a leading room block (name line up to the first blank line)
        from the response that follows it.

        When the output is nothing but the room block (e.g. "look") the block
        is the response.
        """
        room_lines: List[str] = []
        response_lines: List[str] = []
        found_room_name = False
        in_room_block = False

        for line in text.split("\n"):
            trimmed = line.strip()

            if not found_room_name and not response_lines and not trimmed:
                continue

            if not found_room_name and not response_lines and is_room_name_line(trimmed):
                found_room_name = True
                in_room_block = True
                room_lines.append(line)
                continue

            if in_room_block:
                if not trimmed:
                    in_room_block = False
                    continue
                room_lines.append(line)
                continue

            response_lines.append(line)

        response = "\n".join(response_lines).strip()
        room_block = "\n".join(room_lines).strip()

        if response:
            return (room_block or None), response
        return None, room_block
