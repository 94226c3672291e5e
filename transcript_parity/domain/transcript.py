"""
Transcript domain model.

A transcript is the immutable record of one play session: the ordered
command/output pairs captured from a single implementation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

IMPLEMENTATION_SOURCE = "implementation"
REFERENCE_SOURCE = "reference"


@dataclass(frozen=True)
class TranscriptEntry:
    """
    One command and the output it produced.

    Attributes:
        index: Zero-based position in the transcript (0 is the startup banner)
        command: Command that was issued ("" for the startup banner)
        output: Raw output text as captured
        turn_number: Game turn after this command
        timestamp: Capture time as a Unix timestamp, if recorded
    """

    index: int
    command: str
    output: str
    turn_number: int
    timestamp: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "command": self.command,
            "output": self.output,
            "turn_number": self.turn_number,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptEntry":
        return cls(
            index=int(data["index"]),
            command=data.get("command", ""),
            output=data.get("output", ""),
            turn_number=int(data.get("turn_number", data["index"])),
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class Transcript:
    """
    Immutable recording of one session.

    Entry order is command order; the comparator aligns two transcripts
    strictly by position.

    Attributes:
        id: Unique transcript identifier
        source: Which implementation produced it ("implementation" or "reference")
        start_time: When recording started
        end_time: When recording ended
        entries: Ordered command/output entries
        metadata: Opaque recorder metadata (seed, interpreter path, ...)
    """

    id: str
    source: str
    start_time: datetime
    end_time: datetime
    entries: Tuple[TranscriptEntry, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze caller-supplied containers
        object.__setattr__(self, "entries", tuple(self.entries))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def commands(self) -> Tuple[str, ...]:
        return tuple(entry.command for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "entries": [entry.to_dict() for entry in self.entries],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transcript":
        return cls(
            id=data["id"],
            source=data["source"],
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(data["end_time"]),
            entries=tuple(TranscriptEntry.from_dict(e) for e in data.get("entries", [])),
            metadata=data.get("metadata", {}),
        )

    @classmethod
    def from_outputs(
        cls,
        transcript_id: str,
        source: str,
        pairs: Iterable[Tuple[str, str]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Transcript":
        """Build a transcript from (command, output) pairs, numbering turns by position."""
        now = datetime.now()
        entries = tuple(
            TranscriptEntry(index=i, command=command, output=output, turn_number=i)
            for i, (command, output) in enumerate(pairs)
        )
        return cls(
            id=transcript_id,
            source=source,
            start_time=now,
            end_time=now,
            entries=entries,
            metadata=metadata or {},
        )


@dataclass(frozen=True)
class CommandSequence:
    """A named, ordered list of literal commands."""

    id: str
    name: str
    commands: Tuple[str, ...]
    description: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __len__(self) -> int:
        return len(self.commands)
