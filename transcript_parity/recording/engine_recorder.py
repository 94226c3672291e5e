"""
In-process recorder for the implementation under test.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from transcript_parity.domain.transcript import IMPLEMENTATION_SOURCE, Transcript, TranscriptEntry
from transcript_parity.utils.logger import truncate_output
from transcript_parity.recording.base import GameRecorder, format_error, transcript_id

logger = logging.getLogger(__name__)


class EngineRecorder(GameRecorder):
    """
    Record a transcript from an engine running in this process.

    The factory is called once per recording with the seed (or None) and
    must return a fresh engine exposing:

    - start() -> str: startup output (banner and opening room)
    - execute(command) -> str: output for one command
    - turn_number (optional attribute): current game turn

    An exception raised by execute() is recorded as an "[Error: ...]" entry
    and the session continues with the next command.
    """

    source = IMPLEMENTATION_SOURCE

    def __init__(self, engine_factory: Callable[[Optional[int]], Any], id_prefix: str = "impl"):
        self.engine_factory = engine_factory
        self.id_prefix = id_prefix

    def record(self, commands: Sequence[str], seed: Optional[int] = None) -> Transcript:
        start_time = datetime.now()
        engine = self.engine_factory(seed)

        entries: List[TranscriptEntry] = [
            TranscriptEntry(
                index=0,
                command="",
                output=engine.start(),
                turn_number=0,
                timestamp=time.time(),
            )
        ]

        for index, command in enumerate(commands, start=1):
            try:
                output = engine.execute(command)
            except Exception as e:
                logger.warning(f"Engine raised on command {command!r}: {e}")
                output = format_error(e)

            entries.append(
                TranscriptEntry(
                    index=index,
                    command=command,
                    output=output,
                    turn_number=getattr(engine, "turn_number", index),
                    timestamp=time.time(),
                )
            )
            logger.debug(f"[{index}] {command!r} -> {truncate_output(output)}")

        metadata = {"seed": seed, "command_count": len(commands)}
        return Transcript(
            id=transcript_id(self.id_prefix, seed, start_time),
            source=self.source,
            start_time=start_time,
            end_time=datetime.now(),
            entries=tuple(entries),
            metadata=metadata,
        )
