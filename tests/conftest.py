"""
Shared pytest fixtures and configuration for the stats verifier tests.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

import pytest

from common.logging import StructuredLogger
from stats_verifier.config.settings import HarnessSettings
from stats_verifier.connections.cluster_client import LogResponse, PodInfo
from stats_verifier.exceptions import ClusterAPIError

# Test configuration
TEST_CONFIG = {
    "cluster_id": "8f3a51d2-7b4e-4c1f-9a0e-0d5b2c6e1f77",
    "account_id": "account-1234",
    "bigquery_spec": "bigquery://tectonic-test.stats.reports",
    "kubeconfig": "/tmp/kubeconfig-test",
    "credentials": "/tmp/service-account-test.json",
}


class FakeClusterClient:
    """In-memory stand-in for ClusterClient."""

    def __init__(
        self,
        pods: Optional[List[PodInfo]] = None,
        logs: Optional[Dict[str, Union[LogResponse, Exception]]] = None,
        config_map: Union[Dict[str, str], Exception, None] = None,
        list_error: Optional[Exception] = None,
    ) -> None:
        self.pods = list(pods or [])
        self.logs = dict(logs or {})
        self.config_map = config_map
        self.list_error = list_error
        self.calls: List[tuple] = []
        self.closed = False

    def list_pods(self, namespace: str) -> List[PodInfo]:
        self.calls.append(("list_pods", namespace))
        if self.list_error is not None:
            raise self.list_error
        return list(self.pods)

    def get_pod_logs(self, namespace: str, pod_name: str, container: str) -> LogResponse:
        self.calls.append(("get_pod_logs", namespace, pod_name, container))
        result = self.logs[pod_name]
        if isinstance(result, Exception):
            raise result
        return result

    def get_config_map(self, namespace: str, name: str) -> Dict[str, str]:
        self.calls.append(("get_config_map", namespace, name))
        if isinstance(self.config_map, Exception):
            raise self.config_map
        if self.config_map is None:
            raise ClusterAPIError(f'configmaps "{name}" not found')
        return dict(self.config_map)

    def close(self) -> None:
        self.closed = True


class FakeBigQueryConnection:
    """Minimal BigQuery connection stub returning canned row sets."""

    def __init__(self, responses: List[Union[Iterable[Any], Exception]]) -> None:
        self._responses = list(responses)
        self.queries: List[Dict[str, Any]] = []
        self.closed = False

    def execute_query(self, query: str, job_config=None, timeout: float = 30.0):
        self.queries.append({"query": query, "job_config": job_config, "timeout": timeout})
        if not self._responses:
            raise AssertionError("No more fake responses configured")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return iter(response)

    def close(self) -> None:
        self.closed = True


def extension_row(name: Any, value: Any) -> Dict[str, Any]:
    """Result row shaped like the grouped extensions query output."""
    return {"extensions_name": name, "extensions_value": value}


@pytest.fixture
def test_config():
    """Provide test configuration."""
    return TEST_CONFIG


@pytest.fixture
def quiet_logger():
    """Structured logger that writes nowhere."""
    return StructuredLogger(name="stats_verifier_tests", console_output=False)


@pytest.fixture
def fast_settings():
    """Harness settings with intervals small enough for unit tests."""
    return HarnessSettings(
        bigquery_spec=TEST_CONFIG["bigquery_spec"],
        timeout=0.2,
        log_poll_interval=0.01,
        bigquery_poll_interval=0.01,
    )


@pytest.fixture
def emitter_pod():
    return PodInfo(name="tectonic-stats-emitter-6c9f7d-x2k4p", containers=("stats-emitter", "sidecar"))


@pytest.fixture
def config_map_data():
    """Data section of a tectonic-config ConfigMap."""
    return {
        "clusterID": TEST_CONFIG["cluster_id"],
        "accountID": TEST_CONFIG["account_id"],
        "installerPlatform": "aws",
    }


@pytest.fixture
def matching_rows():
    """Rows satisfying every expectation built from config_map_data."""
    return [
        extension_row("accountID", TEST_CONFIG["account_id"]),
        extension_row("certificatesStrategy", "installerGeneratedCA"),
        extension_row("installerPlatform", "aws"),
        extension_row("tectonicUpdaterEnabled", "true"),
    ]


@pytest.fixture
def make_cluster_client():
    """Factory for fake cluster clients."""
    return FakeClusterClient


@pytest.fixture
def make_bigquery_connection():
    """Factory for fake BigQuery connections."""
    return FakeBigQueryConnection


@pytest.fixture
def row():
    """Factory for extension result rows."""
    return extension_row
