"""
Process transports for the reference interpreter.

ProcessTransport is the seam between the session state machine and the
operating system; tests drive the session through an in-memory transport.
"""

import codecs
import logging
import os
import queue
import subprocess
import threading
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import psutil

from transcript_parity.exceptions import InterpreterUnavailable

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class ProcessTransport(ABC):
    """Line-oriented access to one child process."""

    @abstractmethod
    def start(self) -> None:
        """Spawn the process. Raises InterpreterUnavailable on failure."""

    @abstractmethod
    def write(self, text: str) -> None:
        """Write text to the process's standard input."""

    @abstractmethod
    def read(self, timeout: float) -> Optional[str]:
        """
        Read available output.

        Returns:
            A chunk of output, "" if nothing arrived within timeout, or None
            once the output stream has closed
        """

    @abstractmethod
    def close_stdin(self) -> None:
        """Close the process's standard input."""

    @abstractmethod
    def poll(self) -> Optional[int]:
        """Exit code if the process has exited, otherwise None."""

    @abstractmethod
    def wait(self, timeout: float) -> Optional[int]:
        """Wait up to timeout seconds; exit code, or None if still running."""

    @abstractmethod
    def terminate(self) -> None:
        """Ask the process (and its children) to exit."""

    @abstractmethod
    def kill(self) -> None:
        """Forcefully kill the process (and its children)."""


class SubprocessTransport(ProcessTransport):
    """
    ProcessTransport backed by subprocess.Popen.

    stdout and stderr are merged and drained by a daemon reader thread into
    a queue, so reads can be bounded by a timeout on every platform.
    """

    def __init__(self, argv: Sequence[str], cwd: Optional[str] = None):
        self.argv: List[str] = list(argv)
        self.cwd = cwd
        self._process: Optional[subprocess.Popen] = None
        self._chunks: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None
        self._eof = False
        # Chunks may split a multi-byte character
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def start(self) -> None:
        try:
            self._process = subprocess.Popen(  # noqa: S603 - argv comes from validated config
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
                bufsize=0,
            )
        except OSError as e:
            raise InterpreterUnavailable(f"Cannot start {self.argv[0]}: {e}") from e

        self._reader = threading.Thread(
            target=self._drain, name=f"reader-{self._process.pid}", daemon=True
        )
        self._reader.start()
        logger.debug(f"Started {' '.join(self.argv)} (pid={self._process.pid})")

    def _drain(self) -> None:
        fd = self._process.stdout.fileno()
        try:
            while True:
                chunk = os.read(fd, READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._chunks.put(chunk)
        except OSError as e:
            logger.debug(f"Reader for pid={self._process.pid} stopped: {e}")
        finally:
            self._chunks.put(None)

    def write(self, text: str) -> None:
        if self._process is None or self._process.stdin is None:
            raise BrokenPipeError("Process not started")
        self._process.stdin.write(text.encode("utf-8"))
        self._process.stdin.flush()

    def read(self, timeout: float) -> Optional[str]:
        if self._eof:
            return None
        try:
            chunk = self._chunks.get(timeout=max(timeout, 0.0))
        except queue.Empty:
            return ""
        if chunk is None:
            self._eof = True
            tail = self._decoder.decode(b"", final=True)
            if tail:
                logger.debug(f"Incomplete UTF-8 sequence at EOF of pid={self.pid}")
                return tail
            return None
        return self._decoder.decode(chunk)

    def close_stdin(self) -> None:
        if self._process is not None and self._process.stdin is not None:
            try:
                self._process.stdin.close()
            except OSError as e:
                logger.debug(f"Closing stdin of pid={self._process.pid} failed: {e}")

    def poll(self) -> Optional[int]:
        return self._process.poll() if self._process else None

    def wait(self, timeout: float) -> Optional[int]:
        if self._process is None:
            return None
        try:
            return self._process.wait(timeout=max(timeout, 0.0))
        except subprocess.TimeoutExpired:
            return None

    def terminate(self) -> None:
        self._signal_tree(force=False)

    def kill(self) -> None:
        self._signal_tree(force=True)

    def _signal_tree(self, force: bool) -> None:
        """Send SIGTERM (or SIGKILL) to the process and all of its descendants."""
        if self._process is None:
            return
        try:
            parent = psutil.Process(self._process.pid)
            targets = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            return

        for proc in targets:
            try:
                if force:
                    proc.kill()
                else:
                    proc.terminate()
            except psutil.NoSuchProcess:
                continue
