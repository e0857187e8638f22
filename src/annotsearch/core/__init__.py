"""Core services and utilities for annotsearch."""

from .logging import (
    LogContext,
    get_logger,
    log_database_query,
    log_exception,
    setup_logging,
)

__all__ = [
    "LogContext",
    "get_logger",
    "log_database_query",
    "log_exception",
    "setup_logging",
]
