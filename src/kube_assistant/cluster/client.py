"""Kubernetes API handles and error translation."""

import functools
import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..core.exceptions import ClusterError
from ..core.logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class KubeApis:
    """The typed API groups the assistant talks to."""

    core: client.CoreV1Api
    apps: client.AppsV1Api
    networking: client.NetworkingV1Api
    autoscaling: client.AutoscalingV1Api
    batch: client.BatchV1Api
    custom: client.CustomObjectsApi

    @classmethod
    def from_config(cls, kubeconfig: Optional[str] = None) -> "KubeApis":
        """Load credentials and build the API groups.

        Uses the in-cluster service account when running inside a pod,
        otherwise the local kubeconfig (``kubeconfig`` or ``$KUBECONFIG``).
        """
        if os.getenv("KUBERNETES_SERVICE_HOST"):
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
        else:
            config.load_kube_config(config_file=kubeconfig)
            logger.info("Loaded Kubernetes configuration from kubeconfig")

        return cls(
            core=client.CoreV1Api(),
            apps=client.AppsV1Api(),
            networking=client.NetworkingV1Api(),
            autoscaling=client.AutoscalingV1Api(),
            batch=client.BatchV1Api(),
            custom=client.CustomObjectsApi(),
        )


def describe_api_exception(exc: ApiException) -> str:
    """Extract the server's message from an ``ApiException``, falling back to status and reason."""
    if exc.body:
        try:
            payload = json.loads(exc.body)
        except (TypeError, ValueError):
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
    return f"{exc.status} {exc.reason}"


def translate_api_errors(func: F) -> F:
    """Re-raise ``ApiException`` from the wrapped call as ``ClusterError``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ApiException as exc:
            message = describe_api_exception(exc)
            logger.warning(f"Kubernetes API call {func.__name__} failed: {message}")
            raise ClusterError(message, status=exc.status) from exc

    return wrapper  # type: ignore[return-value]
