"""
Error handling and logging infrastructure with structured JSON logs
Provides the logging system shared by the stats verifier, its CLI and the error server
"""

import os
import sys
import json
import logging
import traceback
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from enum import Enum
import ulid
from contextlib import contextmanager


class LogLevel(Enum):
    """Standard log levels with numeric values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogCategory(Enum):
    """Log categories for structured logging"""
    CLUSTER = "cluster"
    BIGQUERY = "bigquery"
    POLLING = "polling"
    VERIFICATION = "verification"
    SERVER = "server"
    SYSTEM = "system"
    CLI = "cli"


@dataclass
class LogEntry:
    """Structured log entry for JSON logging"""
    timestamp: str
    level: str
    category: str
    message: str
    run_id: Optional[str] = None
    case: Optional[str] = None
    attempt: Optional[int] = None
    duration_ms: Optional[int] = None
    error_type: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    correlation_id: Optional[str] = None

    def to_json(self) -> str:
        """Convert log entry to JSON string"""
        # Remove None values for cleaner JSON
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, separators=(',', ':'), default=str)


class StructuredLogger:
    """Structured logger with JSON output and correlation tracking"""

    def __init__(self, name: str = "stats_verifier",
                 level: LogLevel = LogLevel.INFO,
                 output_file: Optional[str] = None,
                 console_output: bool = True,
                 correlation_id: Optional[str] = None):
        self.name = name
        self.level = level
        self.correlation_id = correlation_id or str(ulid.new())

        # Set up Python logger
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.value)

        # Clear any existing handlers
        self.logger.handlers = []

        # Console handler for structured output
        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level.value)
            console_handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(console_handler)

        # File handler if specified
        if output_file:
            file_handler = logging.FileHandler(output_file)
            file_handler.setLevel(level.value)
            file_handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(file_handler)

    def _create_log_entry(self, level: str, category: LogCategory, message: str,
                         **kwargs) -> LogEntry:
        """Create structured log entry"""
        return LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            category=category.value,
            message=message,
            correlation_id=self.correlation_id,
            **kwargs
        )

    @staticmethod
    def _error_fields(error: Optional[Exception]) -> Dict[str, Any]:
        if error is None:
            return {}
        error_type = type(error).__name__
        details = {
            "exception_message": str(error),
            "exception_type": error_type,
        }
        if error.__traceback__ is not None:
            details["traceback"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        return {"error_type": error_type, "error_details": details}

    def debug(self, message: str, category: LogCategory = LogCategory.SYSTEM, **kwargs):
        """Log debug message"""
        if self.level.value <= LogLevel.DEBUG.value:
            entry = self._create_log_entry("DEBUG", category, message, **kwargs)
            self.logger.debug(entry.to_json())

    def info(self, message: str, category: LogCategory = LogCategory.SYSTEM, **kwargs):
        """Log info message"""
        if self.level.value <= LogLevel.INFO.value:
            entry = self._create_log_entry("INFO", category, message, **kwargs)
            self.logger.info(entry.to_json())

    def warning(self, message: str, category: LogCategory = LogCategory.SYSTEM,
                error: Optional[Exception] = None, **kwargs):
        """Log warning message with optional exception details"""
        if self.level.value <= LogLevel.WARNING.value:
            entry = self._create_log_entry("WARNING", category, message,
                                         **self._error_fields(error), **kwargs)
            self.logger.warning(entry.to_json())

    def error(self, message: str, category: LogCategory = LogCategory.SYSTEM,
             error: Optional[Exception] = None, **kwargs):
        """Log error message with optional exception details"""
        entry = self._create_log_entry("ERROR", category, message,
                                     **self._error_fields(error), **kwargs)
        self.logger.error(entry.to_json())

    def critical(self, message: str, category: LogCategory = LogCategory.SYSTEM,
                error: Optional[Exception] = None, **kwargs):
        """Log critical message"""
        entry = self._create_log_entry("CRITICAL", category, message,
                                     **self._error_fields(error), **kwargs)
        self.logger.critical(entry.to_json())

    def log_case_start(self, run_id: str, case: str, metadata: Optional[Dict[str, Any]] = None):
        """Log the start of a verification case"""
        self.info(
            f"Starting verification case {case}",
            category=LogCategory.VERIFICATION,
            run_id=run_id,
            case=case,
            metadata=metadata or {}
        )

    def log_case_result(self, run_id: str, case: str, status: str, message: str,
                        attempts: int, duration_ms: int):
        """Log the outcome of a verification case"""
        level_method = self.error if status == "failed" else self.info
        level_method(
            message,
            category=LogCategory.VERIFICATION,
            run_id=run_id,
            case=case,
            attempt=attempts or None,
            duration_ms=duration_ms,
            metadata={"status": status}
        )

    def log_poll_attempt(self, case: str, attempt: int, error: Optional[Exception],
                         next_wait_s: Optional[float] = None):
        """Log a failed poll attempt that is about to be retried"""
        reason = f"failed with error: {error}" if error else "condition not yet satisfied"
        self.warning(
            f"{case} attempt {attempt} {reason}; retrying...",
            category=LogCategory.POLLING,
            case=case,
            attempt=attempt,
            metadata={"next_wait_s": next_wait_s},
        )

    def log_bigquery_operation(self, operation: str, table_name: str,
                              rows_read: int, duration_ms: int,
                              success: bool = True, error: Optional[Exception] = None):
        """Log BigQuery operations"""
        level_method = self.info if success else self.error
        message = f"BigQuery {operation} on {table_name}: {rows_read} rows in {duration_ms}ms"

        kwargs = {"error": error} if not success else {}
        level_method(
            message,
            category=LogCategory.BIGQUERY,
            duration_ms=duration_ms,
            metadata={
                "operation": operation,
                "table_name": table_name,
                "rows_read": rows_read,
                "success": success
            },
            **kwargs
        )

    @contextmanager
    def operation_context(self, operation_name: str, run_id: Optional[str] = None,
                         case: Optional[str] = None):
        """Context manager for tracking operation duration and outcomes"""
        start_time = datetime.now(timezone.utc)
        op_run_id = run_id or str(ulid.new())

        self.debug(
            f"Starting operation: {operation_name}",
            category=LogCategory.SYSTEM,
            run_id=op_run_id,
            case=case,
            metadata={"operation": operation_name, "status": "started"}
        )

        try:
            yield op_run_id
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)

            self.debug(
                f"Operation completed: {operation_name}",
                category=LogCategory.SYSTEM,
                run_id=op_run_id,
                case=case,
                duration_ms=duration_ms,
                metadata={"operation": operation_name, "status": "completed"}
            )

        except Exception as e:
            duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)

            self.debug(
                f"Operation failed: {operation_name}: {e}",
                category=LogCategory.SYSTEM,
                run_id=op_run_id,
                case=case,
                duration_ms=duration_ms,
                metadata={"operation": operation_name, "status": "failed",
                          "error_type": type(e).__name__}
            )
            raise


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logs"""

    def format(self, record):
        # The message should already be JSON from StructuredLogger
        return record.getMessage()


class ErrorHandler:
    """Centralized error handling with categorization and reporting"""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def handle_cluster_error(self, case: str, operation: str, error: Exception,
                             namespace: Optional[str] = None):
        """Handle Kubernetes API errors"""
        self.logger.error(
            f"Cluster error during {operation}",
            category=LogCategory.CLUSTER,
            case=case,
            error=error,
            metadata={
                "operation": operation,
                "namespace": namespace,
                "error_location": "cluster"
            }
        )

    def handle_bigquery_error(self, case: str, operation: str, table_name: str,
                             error: Exception):
        """Handle BigQuery operation errors"""
        self.logger.error(
            f"BigQuery error during {operation} on {table_name}",
            category=LogCategory.BIGQUERY,
            case=case,
            error=error,
            metadata={
                "operation": operation,
                "table_name": table_name,
                "error_location": "bigquery"
            }
        )

    def handle_system_error(self, run_id: str, component: str, error: Exception,
                           context: Optional[Dict[str, Any]] = None):
        """Handle system/infrastructure errors"""
        self.logger.error(
            f"System error in {component}",
            category=LogCategory.SYSTEM,
            run_id=run_id,
            error=error,
            metadata={
                "component": component,
                "context": context or {},
                "error_location": "system"
            }
        )


_LEVEL_MAP = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
    "CRITICAL": LogLevel.CRITICAL
}

# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "stats_verifier") -> StructuredLogger:
    """Get or create global logger instance"""
    global _global_logger

    if _global_logger is None:
        # Configure from environment
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_file = os.getenv("LOG_FILE")
        console_output = os.getenv("LOG_CONSOLE", "true").lower() == "true"

        _global_logger = StructuredLogger(
            name=name,
            level=_LEVEL_MAP.get(log_level, LogLevel.INFO),
            output_file=log_file,
            console_output=console_output
        )

    return _global_logger


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None,
                 console_output: bool = True) -> StructuredLogger:
    """Setup structured logging for the application"""
    global _global_logger

    _global_logger = StructuredLogger(
        name="stats_verifier",
        level=_LEVEL_MAP.get(log_level.upper(), LogLevel.INFO),
        output_file=log_file,
        console_output=console_output
    )

    return _global_logger


def create_error_handler(logger: Optional[StructuredLogger] = None) -> ErrorHandler:
    """Create error handler with logger"""
    if logger is None:
        logger = get_logger()
    return ErrorHandler(logger)


def log_cli_command(command: str, args: Dict[str, Any]):
    """Log CLI command execution"""
    logger = get_logger()
    logger.info(
        f"CLI command executed: {command}",
        category=LogCategory.CLI,
        metadata={
            "command": command,
            "arguments": args
        }
    )


def log_configuration(config: Dict[str, Any]):
    """Log application configuration at startup"""
    logger = get_logger()
    logger.info(
        "Application configuration loaded",
        category=LogCategory.SYSTEM,
        metadata={"configuration": config}
    )
