"""Observability - structured logging."""

from .logger import (
    TRACE,
    VERBOSE,
    LogContext,
    clear_all_context,
    configure_logging,
    get_log_level,
)

__all__ = [
    "TRACE",
    "VERBOSE",
    "LogContext",
    "clear_all_context",
    "configure_logging",
    "get_log_level",
]
