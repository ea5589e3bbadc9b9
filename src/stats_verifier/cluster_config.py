"""Reads the Tectonic cluster configuration from its ConfigMap."""

import logging
from typing import Dict

from .constants import TECTONIC_CONFIG_NAME, TECTONIC_SYSTEM_NAMESPACE
from .exceptions import ClusterAPIError, ConfigMapNotFoundError

logger = logging.getLogger(__name__)


class ClusterConfigReader:
    """Fetches one named ConfigMap and exposes its data mapping."""

    def __init__(self, client, namespace: str = TECTONIC_SYSTEM_NAMESPACE,
                 name: str = TECTONIC_CONFIG_NAME):
        self.client = client
        self.namespace = namespace
        self.name = name

    def read(self) -> Dict[str, str]:
        """
        Fetch the ConfigMap's data.

        Raises:
            ConfigMapNotFoundError: If the API call fails for any reason
        """
        try:
            data = self.client.get_config_map(self.namespace, self.name)
        except ClusterAPIError as e:
            raise ConfigMapNotFoundError(
                f'failed to find ConfigMap "{self.name}": {e}', e
            ) from e

        logger.debug(
            "Read cluster ConfigMap",
            extra={"namespace": self.namespace, "config_map": self.name, "keys": sorted(data)},
        )
        return dict(data)
