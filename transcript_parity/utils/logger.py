"""
Structured logging utility for parity runs.

Provides JSON-formatted log lines with transcript-text truncation, context
injection (seed, transcript id, command index) and operation timing.
"""

import json
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Optional

DEFAULT_TRUNCATE_LENGTH = 80


def truncate_output(text: Optional[str], limit: int = DEFAULT_TRUNCATE_LENGTH) -> str:
    """
    Shorten transcript text for log lines.

    Newlines are shown as "\\n" so one entry stays on one log line.

    Args:
        text: Output text (may be None)
        limit: Maximum number of characters kept

    Returns:
        Single-line, possibly truncated text

    Example:
        >>> truncate_output("You are in an open field.\\nThere is a mailbox here.", 20)
        'You are in an open f... (+31 chars)'
    """
    if not text:
        return ""

    single_line = text.replace("\r", "").replace("\n", "\\n")
    if len(single_line) <= limit:
        return single_line
    return f"{single_line[:limit]}... (+{len(single_line) - limit} chars)"


class StructuredLogger:
    """
    JSON-formatted logger with context injection and operation timing.

    Records go through the standard logging hierarchy; handlers and levels
    are configured by the application (see scripts/run_parity_validation.py).
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__ from calling module)
        """
        self.logger = logging.getLogger(name)

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Human-readable message
            operation: Operation name (e.g., "run_with_seed", "send_command")
            context: Context dict with seed, transcript_id, command, etc.
            duration_ms: Operation duration in milliseconds
            error: Error message if applicable

        Returns:
            JSON-formatted log string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "message": message,
        }

        if operation:
            log_entry["operation"] = operation

        if context:
            log_entry["context"] = context

        if duration_ms is not None:
            log_entry["duration_ms"] = round(duration_ms, 2)

        if error:
            log_entry["error"] = error

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def debug(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_log("DEBUG", message, operation, context))

    def info(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log info message."""
        self.logger.info(self._format_log("INFO", message, operation, context, duration_ms))

    def warning(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        """Log warning message."""
        self.logger.warning(
            self._format_log("WARNING", message, operation, context, error=error)
        )

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log error message."""
        self.logger.error(
            self._format_log("ERROR", message, operation, context, duration_ms, error)
        )


def log_operation(operation_name: str):
    """
    Decorator to log operation start, duration, and completion.

    A "seed" keyword or a leading int positional argument (after self) is
    added to the log context.

    Usage:
        @log_operation("run_with_seed")
        def run_with_seed(self, seed):
            ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)

            context: Dict[str, Any] = {"function": func.__name__}
            if "seed" in kwargs:
                context["seed"] = kwargs["seed"]
            elif len(args) > 1 and isinstance(args[1], int):
                context["seed"] = args[1]

            logger.debug(f"Starting {operation_name}", operation=operation_name, context=context)

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(
                    f"Failed {operation_name}",
                    operation=operation_name,
                    context=context,
                    error=str(e),
                    duration_ms=duration_ms,
                )
                raise

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                f"Completed {operation_name}",
                operation=operation_name,
                context=context,
                duration_ms=duration_ms,
            )
            return result

        return wrapper

    return decorator


def get_logger(name: str) -> StructuredLogger:
    """
    Factory function to get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
