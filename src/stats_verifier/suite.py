"""
Verification suite for the Tectonic stats pipeline.

Runs two independent cases, each under its own poll loop:

- StatsEmitterLogs: the stats-emitter pods logged a successful report.
- BigQueryData: the reported extensions for this cluster reached BigQuery.
  Skipped when no BigQuery spec is configured.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import ulid

from common.durations import format_duration
from common.logging import (
    ErrorHandler,
    LogCategory,
    StructuredLogger,
    create_error_handler,
    get_logger,
)

from .bigquery_verifier import BigQueryVerifier
from .cluster_config import ClusterConfigReader
from .config.bigquery_spec import BigQuerySpec, BigQuerySpecParser
from .config.settings import HarnessSettings
from .connections.bigquery_connection import BigQueryConnection
from .connections.cluster_client import ClusterClient
from .exceptions import (
    BigQueryConnectionError,
    BigQuerySpecError,
    ConfigMapNotFoundError,
    PodLogError,
    PollTimeoutError,
)
from .log_verifier import LogVerifier
from .polling import PollRunner, PollStrategy

STATS_EMITTER_LOGS_CASE = "StatsEmitterLogs"
BIGQUERY_DATA_CASE = "BigQueryData"


class CaseStatus(Enum):
    """Outcome of a single verification case"""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CaseResult:
    """Result of a single verification case"""
    name: str
    status: CaseStatus
    message: str
    attempts: int = 0
    duration_ms: int = 0

    @property
    def failed(self) -> bool:
        return self.status is CaseStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "attempts": self.attempts,
            "duration_ms": self.duration_ms,
        }


ClusterClientFactory = Callable[[HarnessSettings], ClusterClient]
BigQueryConnectionFactory = Callable[[BigQuerySpec, HarnessSettings], BigQueryConnection]


def default_cluster_client(settings: HarnessSettings) -> ClusterClient:
    return ClusterClient(kubeconfig=settings.kubeconfig)


def default_bigquery_connection(spec: BigQuerySpec,
                                settings: HarnessSettings) -> BigQueryConnection:
    # This assumes a service account that owns the dataset, with its key
    # file named by GOOGLE_APPLICATION_CREDENTIALS.
    return BigQueryConnection(
        project_id=spec.project, credentials_path=settings.credentials_path
    )


class VerificationSuite:
    """Runs the stats pipeline verification cases sequentially."""

    def __init__(
        self,
        settings: HarnessSettings,
        cluster_client_factory: ClusterClientFactory = default_cluster_client,
        bigquery_connection_factory: BigQueryConnectionFactory = default_bigquery_connection,
        structured_logger: Optional[StructuredLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.cluster_client_factory = cluster_client_factory
        self.bigquery_connection_factory = bigquery_connection_factory
        self.slog = structured_logger or get_logger()
        self.error_handler: ErrorHandler = create_error_handler(self.slog)
        self.spec_parser = BigQuerySpecParser(settings.bigquery_scheme)
        self.run_id = str(ulid.new())
        self._sleep = sleep

    def _poll_runner(self, interval: float) -> PollRunner:
        strategy = PollStrategy(interval=interval, timeout=self.settings.timeout)
        return PollRunner(strategy, self.slog, sleep=self._sleep)

    def check_stats_emitter_logs(self) -> bool:
        """One attempt at finding the success marker in the emitter logs."""
        with self.slog.operation_context("stats_emitter_logs", self.run_id,
                                         STATS_EMITTER_LOGS_CASE):
            client = self.cluster_client_factory(self.settings)
            try:
                LogVerifier(
                    client,
                    namespace=self.settings.namespace,
                    pod_prefix=self.settings.pod_prefix,
                    marker=self.settings.success_marker,
                ).verify()
            except PodLogError as e:
                self.error_handler.handle_cluster_error(
                    STATS_EMITTER_LOGS_CASE, "gather_logs", e, self.settings.namespace
                )
                raise
            finally:
                client.close()
        return True

    def check_bigquery_data(self, spec: BigQuerySpec) -> bool:
        """One attempt at verifying this cluster's extensions in BigQuery."""
        with self.slog.operation_context("bigquery_data", self.run_id, BIGQUERY_DATA_CASE):
            client = self.cluster_client_factory(self.settings)
            try:
                config_data = ClusterConfigReader(
                    client,
                    namespace=self.settings.namespace,
                    name=self.settings.config_map_name,
                ).read()
            except ConfigMapNotFoundError as e:
                self.error_handler.handle_cluster_error(
                    BIGQUERY_DATA_CASE, "read_config_map", e, self.settings.namespace
                )
                raise
            finally:
                client.close()

            connection = self.bigquery_connection_factory(spec, self.settings)
            try:
                BigQueryVerifier(connection, spec, structured_logger=self.slog).verify(
                    config_data
                )
            except BigQueryConnectionError as e:
                self.error_handler.handle_bigquery_error(
                    BIGQUERY_DATA_CASE, "query_extensions", spec.table_ref, e
                )
                raise
            finally:
                connection.close()
        return True

    def _finish(self, name: str, status: CaseStatus, message: str,
                attempts: int, start_time: float) -> CaseResult:
        result = CaseResult(
            name=name,
            status=status,
            message=message,
            attempts=attempts,
            duration_ms=int((time.time() - start_time) * 1000),
        )
        self.slog.log_case_result(
            self.run_id, name, status.value, message, attempts, result.duration_ms
        )
        return result

    def run_stats_emitter_logs(self) -> CaseResult:
        start_time = time.time()
        self.slog.log_case_start(self.run_id, STATS_EMITTER_LOGS_CASE,
                                 {"namespace": self.settings.namespace,
                                  "pod_prefix": self.settings.pod_prefix})
        try:
            attempts = self._poll_runner(self.settings.log_poll_interval).run(
                self.check_stats_emitter_logs, STATS_EMITTER_LOGS_CASE
            )
        except PollTimeoutError as e:
            return self._finish(
                STATS_EMITTER_LOGS_CASE,
                CaseStatus.FAILED,
                "Failed to verify stats-emitter success in logs in "
                f"{format_duration(self.settings.timeout)}. Last error: {e.last_error}",
                e.attempts,
                start_time,
            )

        return self._finish(
            STATS_EMITTER_LOGS_CASE,
            CaseStatus.PASSED,
            "Successfully verified stats-emitter success in logs.",
            attempts,
            start_time,
        )

    def run_bigquery_data(self) -> CaseResult:
        start_time = time.time()
        if not self.settings.bigquery_enabled:
            return self._finish(
                BIGQUERY_DATA_CASE,
                CaseStatus.SKIPPED,
                "skipping because no BigQuery spec is defined",
                0,
                start_time,
            )

        self.slog.log_case_start(self.run_id, BIGQUERY_DATA_CASE,
                                 {"bigquery_spec": self.settings.bigquery_spec})
        try:
            spec = self.spec_parser.parse(self.settings.bigquery_spec)
        except BigQuerySpecError as e:
            self.slog.error(f"failed to parse BigQuery spec: {e}",
                            category=LogCategory.VERIFICATION,
                            case=BIGQUERY_DATA_CASE, error=e)
            return self._finish(
                BIGQUERY_DATA_CASE,
                CaseStatus.FAILED,
                f"failed to parse BigQuery spec: {e}",
                0,
                start_time,
            )

        try:
            attempts = self._poll_runner(self.settings.bigquery_poll_interval).run(
                lambda: self.check_bigquery_data(spec), BIGQUERY_DATA_CASE)
        except PollTimeoutError as e:
            return self._finish(
                BIGQUERY_DATA_CASE,
                CaseStatus.FAILED,
                "Failed to verify stats-emitter data in BigQuery in "
                f"{format_duration(self.settings.timeout)}. Last error: {e.last_error}",
                e.attempts,
                start_time,
            )

        return self._finish(
            BIGQUERY_DATA_CASE,
            CaseStatus.PASSED,
            "Successfully verified stats-emitter data in BigQuery.",
            attempts,
            start_time,
        )

    def run(self) -> List[CaseResult]:
        """Run every case in order and return their results."""
        return [self.run_stats_emitter_logs(), self.run_bigquery_data()]


def suite_passed(results: List[CaseResult]) -> bool:
    """True when no case failed; skipped cases do not count as failures."""
    return not any(result.failed for result in results)
