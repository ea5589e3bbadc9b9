"""Clients for the external services the verifier consumes."""

from .bigquery_connection import BigQueryConnection
from .cluster_client import ClusterClient, LogResponse, PodInfo

__all__ = ["BigQueryConnection", "ClusterClient", "LogResponse", "PodInfo"]
