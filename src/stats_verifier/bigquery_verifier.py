"""
BigQuery verification of stats-emitter data.

Finds the cluster ID in the Tectonic ConfigMap and uses it, along with a
parsed BigQuery spec, to query the analytics table for the extensions the
stats pipeline reported for that cluster.
"""

import logging
import time
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from google.cloud import bigquery

from common.logging import StructuredLogger, get_logger

from .config.bigquery_spec import BigQuerySpec
from .constants import (
    CLUSTER_ID_KEY,
    EXTENSIONS_NAME_KEY,
    EXTENSIONS_VALUE_KEY,
    TRACKED_EXTENSIONS,
)
from .exceptions import ExtensionMismatchError, QueryResultError, VerificationError

logger = logging.getLogger(__name__)

EXTENSIONS_QUERY = """SELECT
  extensions.name AS {name_key},
  extensions.value AS {value_key}
FROM
  `{table_ref}`,
  UNNEST(extensions) AS extensions
WHERE
  clusterID = @cluster_id
GROUP BY
  {name_key},
  {value_key}"""


def build_query(spec: BigQuerySpec) -> str:
    """Render the grouped extensions query for a table."""
    return EXTENSIONS_QUERY.format(
        table_ref=spec.table_ref,
        name_key=EXTENSIONS_NAME_KEY,
        value_key=EXTENSIONS_VALUE_KEY,
    )


def build_expectations(
    config_data: Mapping[str, str],
    extensions: Sequence[str] = TRACKED_EXTENSIONS,
) -> Dict[str, Optional[str]]:
    """Map each tracked extension to its ConfigMap value, or None for presence-only."""
    # Some extensions are not in the ConfigMap and so have no expected value;
    # those only need to be present in BigQuery.
    return {name: config_data.get(name) for name in extensions}


def _row_value(row: Any, key: str) -> Any:
    if hasattr(row, "get"):
        return row.get(key)
    return getattr(row, key, None)


def collect_results(rows: Iterable[Any]) -> Dict[str, str]:
    """
    Stream result rows into an extension name -> value mapping.

    The cursor is consumed exactly once; the last value seen for a
    duplicate name wins.

    Raises:
        QueryResultError: If a name or value column is not a string
    """
    found: Dict[str, str] = {}
    for row in rows:
        name = _row_value(row, EXTENSIONS_NAME_KEY)
        if not isinstance(name, str):
            raise QueryResultError("expected extension name to be a string")
        value = _row_value(row, EXTENSIONS_VALUE_KEY)
        if not isinstance(value, str):
            raise QueryResultError("expected extension value to be a string")
        found[name] = value
    return found


def compare_extensions(
    expected: Mapping[str, Optional[str]],
    found: Mapping[str, str],
) -> Dict[str, str]:
    """Map each violated extension to a failure message, in expectation order."""
    wrong: Dict[str, str] = {}
    for name, expected_value in expected.items():
        if expected_value is None:
            if name not in found:
                wrong[name] = f'did not find extension "{name}"'
            continue

        # A missing extension reads as the empty string.
        found_value = found.get(name, "")
        if found_value != expected_value:
            wrong[name] = (
                f'expected extension "{name}" to be "{expected_value}", '
                f'got "{found_value}"'
            )
    return wrong


class BigQueryVerifier:
    """Checks that the stats extensions for a cluster have landed in BigQuery."""

    def __init__(
        self,
        connection,
        spec: BigQuerySpec,
        extensions: Sequence[str] = TRACKED_EXTENSIONS,
        structured_logger: Optional[StructuredLogger] = None,
        query_timeout: float = 30.0,
    ):
        self.connection = connection
        self.spec = spec
        self.extensions = tuple(extensions)
        self.slog = structured_logger or get_logger()
        self.query_timeout = query_timeout

    def fetch_extensions(self, cluster_id: str) -> Dict[str, str]:
        """Run the grouped query for one cluster and collect its rows."""
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("cluster_id", "STRING", cluster_id)
            ]
        )

        start_time = time.time()
        rows = self.connection.execute_query(
            build_query(self.spec), job_config=job_config, timeout=self.query_timeout
        )
        found = collect_results(rows)

        self.slog.log_bigquery_operation(
            operation="query_extensions",
            table_name=self.spec.table_ref,
            rows_read=len(found),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return found

    def verify(self, config_data: Mapping[str, str]) -> Dict[str, str]:
        """
        Verify the extensions reported for the cluster described by config_data.

        Args:
            config_data: Data section of the cluster ConfigMap

        Returns:
            The observed extension name -> value mapping

        Raises:
            VerificationError: If the cluster ID is missing from the ConfigMap
            QueryResultError: If a result row has an unexpected shape
            ExtensionMismatchError: If any tracked extension is missing or wrong
        """
        cluster_id = config_data.get(CLUSTER_ID_KEY)
        if cluster_id is None:
            raise VerificationError("failed to find cluster ID in ConfigMap")

        expected = build_expectations(config_data, self.extensions)
        found = self.fetch_extensions(cluster_id)

        wrong = compare_extensions(expected, found)
        if wrong:
            raise ExtensionMismatchError(
                "failed to find extensions in BigQuery results: "
                + "; ".join(wrong.values()),
                mismatches=list(wrong.values()),
                extensions=list(wrong),
            )

        logger.info(
            "All tracked extensions found in BigQuery",
            extra={"cluster_id": cluster_id, "table_ref": self.spec.table_ref},
        )
        return found
