"""
Reference interpreter session - explicit lifecycle state machine

    STARTING -> AWAITING_PROMPT -> READY
    READY -> SENDING_COMMAND -> AWAITING_RESPONSE -> READY
    AWAITING_PROMPT | AWAITING_RESPONSE -> RESYNCING        (timeout)
    RESYNCING -> READY                                      (stray prompt drained)
    (any) -> TERMINATING -> TERMINATED

Every blocking read is bounded by the per-command timeout measured on an
injected clock. After a timeout the late output of the timed-out command is
drained up to its prompt before the next command is written, so each output
stays attached to the command that produced it. Shutdown escalates quit
command -> terminate -> kill within a hard deadline, so a session never
leaves an orphaned process behind.
"""

import logging
import re
import time
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from transcript_parity.exceptions import CommandTimeout, ProcessTermination
from transcript_parity.utils.logger import get_logger, truncate_output
from transcript_parity.recording.transport import ProcessTransport

logger = logging.getLogger(__name__)
structured_logger = get_logger(__name__)

DEFAULT_PROMPT_PATTERN = re.compile(r"(^|\n)>\s*$")
ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
DEFAULT_POLL_INTERVAL = 0.05


class SessionState(Enum):
    """Lifecycle states of a reference session."""

    STARTING = "starting"
    AWAITING_PROMPT = "awaiting_prompt"
    READY = "ready"
    RESYNCING = "resyncing"
    SENDING_COMMAND = "sending_command"
    AWAITING_RESPONSE = "awaiting_response"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


def clean_output(raw: str, prompt_pattern=DEFAULT_PROMPT_PATTERN) -> str:
    """Strip ANSI escapes and the trailing prompt; normalize line endings."""
    text = ANSI_ESCAPE.sub("", raw)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = prompt_pattern.sub("", text)
    return text.strip()


class ReferenceSession:
    """
    One running reference interpreter, driven over a ProcessTransport.

    Usage:
        with ReferenceSession(transport, timeout=5.0) as session:
            banner = session.start()
            output = session.send("open mailbox")
    """

    def __init__(
        self,
        transport: ProcessTransport,
        timeout: float = 5.0,
        quit_commands: Sequence[str] = ("quit", "y"),
        grace_period: float = 0.5,
        termination_deadline: float = 2.0,
        prompt_pattern=DEFAULT_PROMPT_PATTERN,
        clock: Callable[[], float] = time.monotonic,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        resync_timeout: Optional[float] = None,
    ):
        self.transport = transport
        self.timeout = timeout
        self.resync_timeout = timeout if resync_timeout is None else resync_timeout
        self.quit_commands = tuple(quit_commands)
        self.grace_period = grace_period
        self.termination_deadline = termination_deadline
        self.prompt_pattern = prompt_pattern
        self.clock = clock
        self.poll_interval = poll_interval

        self.state = SessionState.STARTING
        self.transitions: List[Tuple[SessionState, SessionState]] = []
        self.shutdown_steps: List[str] = []
        self.exit_code: Optional[int] = None
        self.discarded_output: List[str] = []
        self._started = False
        self._stray_command: Optional[str] = None
        self._stray_buffer = ""

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        self.transitions.append((self.state, new_state))
        logger.debug(f"Session {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise RuntimeError(
                f"Session is {self.state.value}; expected one of: {expected}"
            )

    @property
    def is_terminated(self) -> bool:
        return self.state is SessionState.TERMINATED

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    def start(self) -> str:
        """
        Spawn the interpreter and wait for its first prompt.

        Returns:
            Startup output (banner and opening room), prompt removed

        Raises:
            InterpreterUnavailable: If the process cannot be spawned
            CommandTimeout: If no prompt appears in time (session stays usable)
            ProcessTermination: If the process exits before its first prompt
        """
        self._require(SessionState.STARTING)
        try:
            self.transport.start()
        except Exception:
            self._transition(SessionState.TERMINATED)
            raise
        self._started = True

        self._transition(SessionState.AWAITING_PROMPT)
        return self._await_prompt(command="")

    def send(self, command: str) -> str:
        """
        Send one command and wait for the next prompt.

        Args:
            command: Command line, without trailing newline

        Returns:
            The command's output, prompt removed

        Raises:
            CommandTimeout: No prompt within the timeout (carries partial
                output), or the previous command's prompt never arrived and
                this command was not written
            ProcessTermination: The process exited; the session is reaped first
        """
        self._require(SessionState.READY, SessionState.RESYNCING)
        if self.state is SessionState.RESYNCING:
            self._resync(command)

        self._transition(SessionState.SENDING_COMMAND)
        try:
            self.transport.write(command + "\n")
        except OSError as e:
            self.close()
            raise ProcessTermination(
                f"Reference process closed its input before {command!r}: {e}",
                exit_code=self.exit_code,
            ) from e

        self._transition(SessionState.AWAITING_RESPONSE)
        return self._await_prompt(command)

    def _read_until_prompt(self, buffer: str, timeout: float, command: str) -> Tuple[str, bool]:
        """Append chunks to buffer until a prompt shows up; False on timeout."""
        deadline = self.clock() + timeout

        while not self.prompt_pattern.search(buffer):
            remaining = deadline - self.clock()
            if remaining <= 0:
                return buffer, False

            chunk = self.transport.read(min(remaining, self.poll_interval))
            if chunk is None:
                partial = clean_output(buffer, self.prompt_pattern)
                self.close()
                raise ProcessTermination(
                    f"Reference process exited while awaiting output for {command!r}",
                    exit_code=self.exit_code,
                    partial_output=partial,
                )
            buffer += chunk

        return buffer, True

    def _await_prompt(self, command: str) -> str:
        buffer, prompted = self._read_until_prompt("", self.timeout, command)
        if prompted:
            self._transition(SessionState.READY)
            return clean_output(buffer, self.prompt_pattern)

        self._stray_command = command
        self._stray_buffer = buffer
        self._transition(SessionState.RESYNCING)
        partial = clean_output(buffer, self.prompt_pattern)
        structured_logger.warning(
            "Reference interpreter timed out",
            operation="await_prompt",
            context={"command": command, "partial_output": truncate_output(partial)},
        )
        raise CommandTimeout(command, self.timeout, partial)

    def _resync(self, command: str) -> None:
        """
        Drain the late output of a timed-out command up to its prompt.

        The drained text is discarded (kept in discarded_output for
        inspection). If the prompt still does not arrive, command is not
        written and the session stays in RESYNCING.
        """
        stray = self._stray_command
        buffer, prompted = self._read_until_prompt(self._stray_buffer, self.resync_timeout, stray)
        if not prompted:
            self._stray_buffer = buffer
            raise CommandTimeout(
                command,
                self.resync_timeout,
                message=(
                    f"Interpreter still busy with {stray!r} after "
                    f"{self.resync_timeout:.2f}s; {command!r} was not sent"
                ),
            )

        late = clean_output(buffer, self.prompt_pattern)
        self.discarded_output.append(late)
        structured_logger.warning(
            "Discarded late output of timed-out command",
            operation="resync",
            context={"command": stray, "late_output": truncate_output(late)},
        )
        self._stray_command = None
        self._stray_buffer = ""
        self._transition(SessionState.READY)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def close(self) -> Optional[int]:
        """
        Reap the interpreter: quit command, then terminate, then kill.

        Idempotent. Returns the exit code (None if the process never started
        or could not be confirmed dead within the deadline).
        """
        if self.state is SessionState.TERMINATED:
            return self.exit_code

        self._transition(SessionState.TERMINATING)
        if not self._started:
            self._transition(SessionState.TERMINATED)
            return None

        hard_deadline = self.clock() + self.termination_deadline

        def remaining(limit: Optional[float] = None) -> float:
            left = max(hard_deadline - self.clock(), 0.0)
            return left if limit is None else min(limit, left)

        exit_code = self.transport.poll()
        if exit_code is None:
            self.shutdown_steps.append("quit")
            try:
                for quit_command in self.quit_commands:
                    self.transport.write(quit_command + "\n")
            except OSError as e:
                logger.debug(f"Could not send quit command: {e}")
            self.transport.close_stdin()
            exit_code = self.transport.wait(remaining(self.grace_period))

        if exit_code is None:
            self.shutdown_steps.append("terminate")
            self.transport.terminate()
            exit_code = self.transport.wait(remaining(self.grace_period))

        if exit_code is None:
            self.shutdown_steps.append("kill")
            self.transport.kill()
            exit_code = self.transport.wait(max(remaining(), self.poll_interval))

        if exit_code is None:
            logger.error("Reference process did not exit before the termination deadline")
        else:
            self.transport.close_stdin()

        self.exit_code = exit_code
        self._transition(SessionState.TERMINATED)
        return exit_code

    def __enter__(self) -> "ReferenceSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
