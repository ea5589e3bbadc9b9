"""
Kubernetes API access for the stats verifier.

Wraps the async kr8s client behind a small synchronous facade exposing just
the three calls the harness needs: list pods, fetch pod logs and read a
ConfigMap. Calls are driven to completion on a private event loop.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
import kr8s
import kr8s.asyncio
from kr8s.asyncio.objects import ConfigMap

from ..exceptions import ClusterAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PodInfo:
    """The parts of a Pod the log verifier cares about."""

    name: str
    containers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LogResponse:
    """Raw result of a pod log request."""

    status_code: int
    content: bytes

    @property
    def is_success(self) -> bool:
        return self.status_code // 100 == 2


class ClusterClient:
    """
    Synchronous Kubernetes client built on kr8s.

    The kubeconfig path is taken from the ``kubeconfig`` argument. When it is
    empty, kr8s resolves credentials itself (KUBECONFIG, ~/.kube/config or the
    in-cluster service account).
    """

    def __init__(self, kubeconfig: Optional[str] = None):
        self.kubeconfig = kubeconfig or None
        self.client_id = str(uuid.uuid4())
        self._loop = asyncio.new_event_loop()

    async def _api(self):
        try:
            return await kr8s.asyncio.api(kubeconfig=self.kubeconfig)
        except Exception as e:
            raise ClusterAPIError(
                f"failed to get Kubernetes cluster config: {e}", e
            ) from e

    def _run(self, operation: str, coro) -> Any:
        start_time = time.time()
        try:
            result = self._loop.run_until_complete(coro)
        except ClusterAPIError:
            raise
        except kr8s.NotFoundError as e:
            raise ClusterAPIError(f"{operation}: not found: {e}", e) from e
        except (kr8s.ServerError, httpx.HTTPError) as e:
            raise ClusterAPIError(f"{operation}: {e}", e) from e

        logger.debug(
            "Kubernetes API call completed",
            extra={
                "client_id": self.client_id,
                "operation": operation,
                "elapsed_ms": (time.time() - start_time) * 1000,
            },
        )
        return result

    def list_pods(self, namespace: str) -> List[PodInfo]:
        """List every pod in a namespace, in API order."""
        return self._run("could not list pods", self._list_pods(namespace))

    async def _list_pods(self, namespace: str) -> List[PodInfo]:
        api = await self._api()
        pods = []
        async for pod in api.get("pods", namespace=namespace):
            containers = pod.raw.get("spec", {}).get("containers") or []
            pods.append(
                PodInfo(
                    name=pod.name,
                    containers=tuple(c.get("name", "") for c in containers),
                )
            )
        return pods

    def get_pod_logs(self, namespace: str, pod_name: str, container: str) -> LogResponse:
        """Fetch the logs of one container, keeping the HTTP status code."""
        return self._run(
            "failed to get pod logs",
            self._get_pod_logs(namespace, pod_name, container),
        )

    async def _get_pod_logs(self, namespace: str, pod_name: str,
                            container: str) -> LogResponse:
        api = await self._api()
        async with api.call_api(
            "GET",
            version="v1",
            namespace=namespace,
            url=f"pods/{pod_name}/log",
            params={"container": container},
            raise_for_status=False,
        ) as response:
            return LogResponse(status_code=response.status_code, content=response.content)

    def get_config_map(self, namespace: str, name: str) -> Dict[str, str]:
        """Return the data section of a ConfigMap."""
        return self._run(
            f"failed to get ConfigMap {namespace}/{name}",
            self._get_config_map(namespace, name),
        )

    async def _get_config_map(self, namespace: str, name: str) -> Dict[str, str]:
        api = await self._api()
        config_map = await ConfigMap.get(name, namespace=namespace, api=api)
        data = config_map.raw.get("data") or {}
        return {str(key): str(value) for key, value in data.items()}

    def close(self) -> None:
        """Close the event loop backing this client."""
        if not self._loop.is_closed():
            self._loop.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return (
            f"ClusterClient(client_id='{self.client_id[:8]}...', "
            f"kubeconfig={self.kubeconfig!r})"
        )
