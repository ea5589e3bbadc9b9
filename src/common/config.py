"""
Configuration management for the Tectonic stats verifier and error server.

This module handles loading configuration from environment variables
and provides a centralized configuration interface for all components.
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Configuration class for the verifier harness and error server."""

    # Kubernetes access
    KUBECONFIG: Optional[str] = os.getenv("KUBECONFIG") or None

    # Google Cloud Configuration
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = (
        os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None
    )

    # Harness defaults
    STATS_BIGQUERY_SPEC: str = os.getenv("STATS_BIGQUERY_SPEC", "")
    STATS_TIMEOUT: str = os.getenv("STATS_TIMEOUT", "1m")

    # Error server
    ERROR_SERVER_ADDR: str = os.getenv("ERROR_SERVER_ADDR", "0.0.0.0:8080")

    # Application Configuration
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def as_dict(cls) -> dict:
        """Snapshot of the loaded configuration, safe for logging."""
        return {
            "kubeconfig": cls.KUBECONFIG,
            "credentials_configured": cls.GOOGLE_APPLICATION_CREDENTIALS is not None,
            "bigquery_spec": cls.STATS_BIGQUERY_SPEC,
            "timeout": cls.STATS_TIMEOUT,
            "error_server_addr": cls.ERROR_SERVER_ADDR,
            "environment": cls.ENVIRONMENT,
        }


# Global configuration instance
config = Config()
