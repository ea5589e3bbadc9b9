"""Configuration objects for the stats verifier."""

from .bigquery_spec import BigQuerySpec, BigQuerySpecParser, parse_bigquery_spec
from .settings import HarnessSettings

__all__ = [
    "BigQuerySpec",
    "BigQuerySpecParser",
    "HarnessSettings",
    "parse_bigquery_spec",
]
