"""
BigQuery Connection and Authentication Manager

Creates the BigQuery client used by the verifier, authenticating with a
service-account file when one is configured and with Application Default
Credentials otherwise.
"""

import logging
import os
import time
from typing import Any, Optional

from google.api_core import exceptions as api_exceptions
from google.auth import default
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import bigquery

from ..exceptions import BigQueryConnectionError

logger = logging.getLogger(__name__)


class BigQueryConnection:
    """Manages one BigQuery client for a single verification attempt."""

    def __init__(
        self,
        project_id: str,
        credentials_path: Optional[str] = None,
        location: Optional[str] = None,
    ):
        """
        Initialize BigQuery connection.

        Args:
            project_id: Google Cloud project ID the queries are billed to
            credentials_path: Path to service account credentials
            location: BigQuery location; None lets the service decide
        """
        if not project_id:
            raise ValueError("Google Cloud project ID must be provided")

        self.project_id = project_id
        self.credentials_path = credentials_path or os.getenv(
            "GOOGLE_APPLICATION_CREDENTIALS"
        )
        self.location = location
        self._client: Optional[bigquery.Client] = None

        logger.debug(f"Initializing BigQuery connection to project: {self.project_id}")

    @property
    def client(self) -> bigquery.Client:
        """Get BigQuery client, creating if necessary."""
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> bigquery.Client:
        """Create and authenticate BigQuery client."""
        try:
            if self.credentials_path and os.path.exists(self.credentials_path):
                logger.info(
                    f"Using service account credentials from: {self.credentials_path}"
                )
                return bigquery.Client.from_service_account_json(
                    self.credentials_path, project=self.project_id, location=self.location
                )

            logger.info("Using Application Default Credentials")
            credentials, _ = default()
            return bigquery.Client(
                credentials=credentials, project=self.project_id, location=self.location
            )

        except DefaultCredentialsError as e:
            logger.error("Failed to authenticate with Google Cloud")
            raise BigQueryConnectionError(
                "failed to create BigQuery client: set GOOGLE_APPLICATION_CREDENTIALS "
                "or configure Application Default Credentials",
                e,
            ) from e
        except Exception as e:
            logger.error(f"Failed to create BigQuery client: {e}")
            raise BigQueryConnectionError(f"failed to create BigQuery client: {e}", e) from e

    def execute_query(
        self,
        query: str,
        job_config: Optional[bigquery.QueryJobConfig] = None,
        timeout: float = 30.0,
    ) -> Any:
        """
        Execute a BigQuery query once.

        Args:
            query: SQL query to execute
            job_config: Query job configuration
            timeout: Query timeout in seconds

        Returns:
            Query results iterator

        Raises:
            BigQueryConnectionError: If the query cannot be run or read
        """
        start_time = time.time()
        try:
            logger.debug(f"Executing query: {query[:100]}...")
            query_job = self.client.query(query, job_config=job_config)
            results = query_job.result(timeout=timeout)
        except BigQueryConnectionError:
            raise
        except (api_exceptions.GoogleAPIError, TimeoutError) as e:
            raise BigQueryConnectionError(f"failed to read query results: {e}", e) from e

        logger.debug(
            "Query completed",
            extra={
                "project_id": self.project_id,
                "elapsed_ms": (time.time() - start_time) * 1000,
            },
        )
        return results

    def close(self) -> None:
        """Release the underlying client's HTTP session."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - release the client."""
        self.close()

    def __repr__(self) -> str:
        return (
            f"BigQueryConnection(project='{self.project_id}', "
            f"client_created={self._client is not None})"
        )
