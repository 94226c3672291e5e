"""Shared utilities."""

from transcript_parity.utils.logger import StructuredLogger, get_logger, log_operation, truncate_output

__all__ = ["StructuredLogger", "get_logger", "log_operation", "truncate_output"]
