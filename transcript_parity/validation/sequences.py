"""
Command-sequence files.

Format (one command per line):

    # Comments start with "#"
    name: Mailbox and leaflet
    description: Open the mailbox and read the leaflet
    open mailbox
    take leaflet
    read leaflet

"name:" and "description:" directives are only recognised before the first
command; blank lines are ignored.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Union

from transcript_parity.domain.transcript import CommandSequence
from transcript_parity.exceptions import SequenceParseError

logger = logging.getLogger(__name__)

SEQUENCE_SUFFIXES = (".txt", ".seq")
DIRECTIVE_PATTERN = re.compile(r"^(?P<key>name|description)\s*:\s*(?P<value>.*)$", re.IGNORECASE)
MAX_COMMAND_LENGTH = 200


class SequenceLoader:
    """Load CommandSequence objects from text files."""

    def parse(self, text: str, sequence_id: str) -> CommandSequence:
        """
        Parse sequence text.

        Args:
            text: File contents
            sequence_id: Identifier (usually the file stem)

        Returns:
            CommandSequence

        Raises:
            SequenceParseError: On a malformed directive or an empty sequence
        """
        headers: Dict[str, str] = {}
        commands: List[str] = []

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            directive = DIRECTIVE_PATTERN.match(line)
            if directive and not commands:
                key = directive.group("key").lower()
                value = directive.group("value").strip()
                if not value:
                    raise SequenceParseError(
                        f"{sequence_id}:{line_number}: empty '{key}' directive"
                    )
                if key in headers:
                    raise SequenceParseError(
                        f"{sequence_id}:{line_number}: duplicate '{key}' directive"
                    )
                headers[key] = value
                continue

            if len(line) > MAX_COMMAND_LENGTH:
                raise SequenceParseError(
                    f"{sequence_id}:{line_number}: command longer than {MAX_COMMAND_LENGTH} characters"
                )
            commands.append(line)

        if not commands:
            raise SequenceParseError(f"{sequence_id}: sequence contains no commands")

        return CommandSequence(
            id=sequence_id,
            name=headers.get("name", sequence_id),
            commands=tuple(commands),
            description=headers.get("description", ""),
        )

    def load_file(self, path: Union[str, Path]) -> CommandSequence:
        """
        Load one sequence file.

        Raises:
            SequenceParseError: If the file cannot be read or parsed
        """
        file_path = Path(path)
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SequenceParseError(f"Cannot read sequence file {file_path}: {e}") from e

        sequence = self.parse(text, file_path.stem)
        logger.debug(f"Loaded sequence '{sequence.name}' ({len(sequence)} commands) from {file_path}")
        return sequence

    def load_directory(self, path: Union[str, Path]) -> List[CommandSequence]:
        """
        Load every sequence file in a directory, sorted by file name.

        Raises:
            SequenceParseError: If the directory is missing or any file is invalid
        """
        directory = Path(path)
        if not directory.is_dir():
            raise SequenceParseError(f"Sequence directory not found: {directory}")

        files = sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in SEQUENCE_SUFFIXES
        )
        sequences = [self.load_file(p) for p in files]
        logger.info(f"Loaded {len(sequences)} command sequences from {directory}")
        return sequences
