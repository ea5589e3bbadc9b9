"""
Common utilities shared by the stats verifier, its CLI and the error server.

Includes environment-driven configuration, Go-style duration handling and
the structured JSON logging infrastructure.
"""

from .config import Config, config
from .durations import format_duration, parse_duration
from .logging import (
    ErrorHandler,
    LogCategory,
    LogLevel,
    StructuredLogger,
    create_error_handler,
    get_logger,
    setup_logging,
)

__all__ = [
    "Config",
    "config",
    "format_duration",
    "parse_duration",
    "ErrorHandler",
    "LogCategory",
    "LogLevel",
    "StructuredLogger",
    "create_error_handler",
    "get_logger",
    "setup_logging",
]
