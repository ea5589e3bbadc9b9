"""
Harness settings.

Everything the verification suite depends on (flags, constants and
credential locations) is carried by one immutable object instead of
module-level globals, so tests can shrink intervals and timeouts freely.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from common.config import Config
from common.durations import parse_duration

from ..constants import (
    BIGQUERY_POLL_INTERVAL_S,
    BIGQUERY_SCHEME,
    DEFAULT_TIMEOUT_S,
    LOG_POLL_INTERVAL_S,
    STATS_EMITTER_POD_PREFIX,
    SUCCESS_MARKER,
    TECTONIC_CONFIG_NAME,
    TECTONIC_SYSTEM_NAMESPACE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HarnessSettings:
    """Immutable configuration for one verification run."""

    bigquery_spec: str = ""
    timeout: float = DEFAULT_TIMEOUT_S
    log_poll_interval: float = LOG_POLL_INTERVAL_S
    bigquery_poll_interval: float = BIGQUERY_POLL_INTERVAL_S
    namespace: str = TECTONIC_SYSTEM_NAMESPACE
    config_map_name: str = TECTONIC_CONFIG_NAME
    pod_prefix: str = STATS_EMITTER_POD_PREFIX
    success_marker: str = SUCCESS_MARKER
    bigquery_scheme: str = BIGQUERY_SCHEME
    kubeconfig: Optional[str] = None
    credentials_path: Optional[str] = None

    def __post_init__(self):
        """Validate durations after initialization."""
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.log_poll_interval <= 0 or self.bigquery_poll_interval <= 0:
            raise ValueError("poll intervals must be positive")

    @property
    def bigquery_enabled(self) -> bool:
        return bool(self.bigquery_spec)

    def with_overrides(self, **changes) -> "HarnessSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_environment(cls, bigquery_spec: Optional[str] = None,
                         timeout: Union[str, float, None] = None) -> "HarnessSettings":
        """
        Build settings from explicit values falling back to the environment.

        Args:
            bigquery_spec: Spec string; defaults to STATS_BIGQUERY_SPEC
            timeout: Go-style duration or seconds; defaults to STATS_TIMEOUT

        Raises:
            ValueError: If the timeout cannot be parsed
        """
        spec = Config.STATS_BIGQUERY_SPEC if bigquery_spec is None else bigquery_spec
        if timeout is None:
            timeout = Config.STATS_TIMEOUT
        timeout_s = parse_duration(timeout) if isinstance(timeout, str) else float(timeout)

        settings = cls(
            bigquery_spec=spec,
            timeout=timeout_s,
            kubeconfig=Config.KUBECONFIG,
            credentials_path=Config.GOOGLE_APPLICATION_CREDENTIALS,
        )
        logger.info(
            "Harness settings loaded",
            extra={
                "bigquery_enabled": settings.bigquery_enabled,
                "timeout_s": settings.timeout,
            },
        )
        return settings
