"""
Integration harness for the Tectonic stats pipeline.

Confirms that the stats emitter running in a cluster reported successfully
and that the extensions it reported are visible in the BigQuery analytics
table.
"""

from .bigquery_verifier import BigQueryVerifier
from .cluster_config import ClusterConfigReader
from .config import BigQuerySpec, BigQuerySpecParser, HarnessSettings, parse_bigquery_spec
from .exceptions import (
    BigQueryConnectionError,
    BigQuerySpecError,
    ClusterAPIError,
    ConfigMapNotFoundError,
    ExtensionMismatchError,
    LogVerificationError,
    PodLogError,
    PollTimeoutError,
    QueryResultError,
    VerificationError,
)
from .log_verifier import LogVerifier
from .polling import PollRunner, PollStrategy
from .suite import CaseResult, CaseStatus, VerificationSuite, suite_passed

__version__ = "1.0.0"

__all__ = [
    "BigQueryVerifier",
    "ClusterConfigReader",
    "BigQuerySpec",
    "BigQuerySpecParser",
    "HarnessSettings",
    "parse_bigquery_spec",
    "BigQueryConnectionError",
    "BigQuerySpecError",
    "ClusterAPIError",
    "ConfigMapNotFoundError",
    "ExtensionMismatchError",
    "LogVerificationError",
    "PodLogError",
    "PollTimeoutError",
    "QueryResultError",
    "VerificationError",
    "LogVerifier",
    "PollRunner",
    "PollStrategy",
    "CaseResult",
    "CaseStatus",
    "VerificationSuite",
    "suite_passed",
]
