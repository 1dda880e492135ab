import base64
from typing import Any

from kubernetes.client import ApiException

from .logger import logger


class KubernetesSecretStore:
    def __init__(self, core_v1: Any):
        self.core_v1 = core_v1

    def get_secret(self, name: str, namespace: str) -> dict[str, bytes] | None:
        """
        Returns the decoded secret data, or None if the secret does not exist.
        """
        try:
            secret = self.core_v1.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"Secret {namespace}/{name} not found")
                return None
            raise

        # The API returns base64 encoded values
        return {
            key: base64.b64decode(value) for key, value in (secret.data or {}).items()
        }


class KubernetesNodeStore:
    def __init__(self, core_v1: Any):
        self.core_v1 = core_v1

    def get_node(self, name: str, timeout: float | None = None) -> Any:
        return self.core_v1.read_node(name=name, **_timeout_kwargs(timeout))

    def update_node_status(self, node: Any, timeout: float | None = None) -> Any:
        return self.core_v1.replace_node_status(
            name=node.metadata.name, body=node, **_timeout_kwargs(timeout)
        )


def _timeout_kwargs(timeout: float | None) -> dict[str, float]:
    # Bounds the whole HTTP request, not just the connect phase
    if timeout is None:
        return {}
    return {"_request_timeout": timeout}
