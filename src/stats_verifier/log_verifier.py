"""Verifies that the stats emitter reported success in its logs."""

import logging

from .constants import (
    STATS_EMITTER_POD_PREFIX,
    SUCCESS_MARKER,
    TECTONIC_SYSTEM_NAMESPACE,
)
from .exceptions import ClusterAPIError, LogVerificationError, PodLogError

logger = logging.getLogger(__name__)


class LogVerifier:
    """Gathers stats-emitter pod logs and checks them for the success marker."""

    def __init__(self, client, namespace: str = TECTONIC_SYSTEM_NAMESPACE,
                 pod_prefix: str = STATS_EMITTER_POD_PREFIX,
                 marker: str = SUCCESS_MARKER):
        self.client = client
        self.namespace = namespace
        self.pod_prefix = pod_prefix
        self.marker = marker

    def gather_logs(self) -> bytes:
        """
        Concatenate the first-container logs of every matching pod.

        Returns:
            The logs of all matching pods, in pod list order

        Raises:
            PodLogError: If no pod matches, a pod has no containers, or a
                log request errors or returns a non-2xx status
        """
        try:
            pods = self.client.list_pods(self.namespace)
        except ClusterAPIError as e:
            raise PodLogError(f"could not list pods: {e}", e) from e

        all_logs = bytearray()
        found = False
        for pod in pods:
            if not pod.name.startswith(self.pod_prefix):
                continue
            found = True

            if not pod.containers:
                raise PodLogError(f"{pod.name} pod has no containers")

            try:
                response = self.client.get_pod_logs(
                    self.namespace, pod.name, pod.containers[0]
                )
            except ClusterAPIError as e:
                raise PodLogError(f"failed to get pod logs: {e}", e) from e

            if not response.is_success:
                raise PodLogError(
                    f"expected 200 from log response, got {response.status_code}"
                )

            all_logs.extend(response.content)

        if not found:
            raise PodLogError(
                f'failed to find pods with prefix "{self.pod_prefix}" '
                f'in namespace "{self.namespace}"'
            )
        return bytes(all_logs)

    def verify(self) -> None:
        """
        Raise unless the gathered logs contain the success marker.

        Raises:
            PodLogError: If logs could not be gathered
            LogVerificationError: If the marker is missing
        """
        try:
            logs = self.gather_logs()
        except PodLogError as e:
            raise PodLogError(
                f"failed to gather logs for {self.namespace}/{self.pod_prefix}, {e}", e
            ) from e

        if self.marker.encode("utf-8") not in logs:
            raise LogVerificationError(f'expected logs to contain "{self.marker}"')

        logger.info(
            "Found success marker in stats-emitter logs",
            extra={"namespace": self.namespace, "pod_prefix": self.pod_prefix},
        )
