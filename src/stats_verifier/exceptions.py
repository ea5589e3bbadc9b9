"""Exception hierarchy for the stats verifier."""

from typing import List, Optional


class VerificationError(Exception):
    """Base exception for every failure the harness can report."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class BigQuerySpecError(VerificationError):
    """Raised when a BigQuery spec string cannot be parsed.

    ``reason`` is ``"prefix"`` when the scheme is missing and ``"structure"``
    when the ``project.dataset.table`` part is malformed.
    """

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class ClusterAPIError(VerificationError):
    """Raised when a call to the Kubernetes API fails."""


class ConfigMapNotFoundError(VerificationError):
    """Raised when the cluster ConfigMap cannot be fetched."""


class BigQueryConnectionError(VerificationError):
    """Raised when the BigQuery client cannot be created or a query fails."""


class QueryResultError(VerificationError):
    """Raised when a query row does not have the expected shape."""


class PodLogError(VerificationError):
    """Raised when stats-emitter pods or their logs cannot be retrieved."""


class LogVerificationError(VerificationError):
    """Raised when the gathered logs lack the success marker."""


class ExtensionMismatchError(VerificationError):
    """Raised when BigQuery results do not match the expected extensions."""

    def __init__(self, message: str, mismatches: List[str], extensions: List[str]):
        super().__init__(message)
        self.mismatches = mismatches
        self.extensions = extensions


class PollTimeoutError(VerificationError):
    """Raised when a polled condition is not satisfied before the timeout."""

    def __init__(self, message: str, attempts: int, timeout: float,
                 last_error: Optional[Exception] = None):
        super().__init__(message, original_error=last_error)
        self.attempts = attempts
        self.timeout = timeout
        self.last_error = last_error
