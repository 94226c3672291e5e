"""
Subprocess recorder for the reference interpreter.

Spawns one interpreter per recording, records the startup output as entry 0
and one entry per command, and always reaps the process before returning.
"""

import logging
import os
import shutil
import time
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from transcript_parity.config.settings import ReferenceConfig
from transcript_parity.domain.transcript import REFERENCE_SOURCE, Transcript, TranscriptEntry
from transcript_parity.exceptions import CommandTimeout, ConfigurationError, ProcessTermination
from transcript_parity.utils.logger import get_logger, truncate_output
from transcript_parity.recording.base import GameRecorder, format_error, transcript_id
from transcript_parity.recording.session import ReferenceSession
from transcript_parity.recording.transport import ProcessTransport, SubprocessTransport

logger = logging.getLogger(__name__)
structured_logger = get_logger(__name__)


def _with_error(partial_output: str, message: str) -> str:
    marker = format_error(message)
    return f"{partial_output}\n{marker}" if partial_output else marker


class ReferenceRecorder(GameRecorder):
    """
    Record transcripts from the reference interpreter.

    Per-command timeouts are absorbed: the entry keeps the partial output
    followed by an "[Error: ...]" marker and recording continues. An
    unexpected exit raises ProcessTermination carrying the entries captured
    so far (including the interrupted one).
    """

    source = REFERENCE_SOURCE

    def __init__(
        self,
        config: ReferenceConfig,
        transport_factory: Optional[Callable[[List[str]], ProcessTransport]] = None,
        clock: Callable[[], float] = time.monotonic,
        id_prefix: str = "ref",
    ):
        self.config = config
        self.transport_factory = transport_factory or SubprocessTransport
        self.clock = clock
        self.id_prefix = id_prefix

    def check_configuration(self) -> None:
        if not self.config.interpreter_path:
            raise ConfigurationError("Reference interpreter path is not configured")
        if not self.config.game_file_path:
            raise ConfigurationError("Reference game file path is not configured")

    def is_available(self) -> bool:
        interpreter = self.config.interpreter_path
        if not interpreter:
            return False
        found = os.path.isfile(interpreter) or shutil.which(interpreter) is not None
        return found and os.path.isfile(self.config.game_file_path)

    def open_session(self, seed: Optional[int] = None) -> ReferenceSession:
        """Build (but do not start) a session for one recording."""
        transport = self.transport_factory(self.config.build_argv(seed))
        return ReferenceSession(
            transport,
            timeout=self.config.timeout,
            quit_commands=self.config.quit_commands,
            grace_period=self.config.grace_period,
            termination_deadline=self.config.termination_deadline,
            clock=self.clock,
        )

    def record(self, commands: Sequence[str], seed: Optional[int] = None) -> Transcript:
        """
        Record a session against the reference interpreter.

        Raises:
            ConfigurationError: Interpreter or game path missing (nothing is spawned)
            InterpreterUnavailable: The interpreter could not be spawned
            ProcessTermination: The interpreter exited mid-session
        """
        self.check_configuration()

        start_time = datetime.now()
        session = self.open_session(seed)
        entries: List[TranscriptEntry] = []

        def capture(index: int, command: str, step: Callable[[], str]) -> None:
            try:
                output = step()
            except CommandTimeout as e:
                output = _with_error(e.partial_output, str(e))
            except ProcessTermination as e:
                entries.append(self._entry(index, command, _with_error(e.partial_output, str(e))))
                raise
            entries.append(self._entry(index, command, output))
            logger.debug(f"[{index}] {command!r} -> {truncate_output(output)}")

        try:
            capture(0, "", session.start)
            for index, command in enumerate(commands, start=1):
                capture(index, command, lambda: session.send(command))
        except ProcessTermination as e:
            structured_logger.error(
                "Reference interpreter exited mid-session",
                operation="record",
                context={"seed": seed, "entries_captured": len(entries)},
                error=str(e),
            )
            raise ProcessTermination(
                str(e),
                exit_code=e.exit_code,
                partial_output=e.partial_output,
                entries=entries,
            ) from e
        finally:
            session.close()

        return Transcript(
            id=transcript_id(self.id_prefix, seed, start_time),
            source=self.source,
            start_time=start_time,
            end_time=datetime.now(),
            entries=tuple(entries),
            metadata={
                "seed": seed,
                "interpreter_path": self.config.interpreter_path,
                "game_file_path": self.config.game_file_path,
                "exit_code": session.exit_code,
            },
        )

    @staticmethod
    def _entry(index: int, command: str, output: str) -> TranscriptEntry:
        return TranscriptEntry(
            index=index,
            command=command,
            output=output,
            turn_number=index,
            timestamp=time.time(),
        )
