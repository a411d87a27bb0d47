"""Write side of the cluster capability surface.

Only the command builder holds a ``ClusterWriter``, and only after the user
has confirmed the operation.
"""

from datetime import datetime, timezone

from .client import KubeApis, translate_api_errors
from ..core.logger import get_logger

logger = get_logger(__name__)

RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


class ClusterWriter:
    """Mutating operations. Each returns a one-line confirmation."""

    def __init__(self, apis: KubeApis):
        self._apis = apis

    @translate_api_errors
    def delete_pod(self, name: str, namespace: str) -> str:
        self._apis.core.delete_namespaced_pod(name, namespace)
        logger.info(f"Deleted pod {namespace}/{name}")
        return f"Pod {name} deleted from {namespace}"

    @translate_api_errors
    def delete_deployment(self, name: str, namespace: str) -> str:
        self._apis.apps.delete_namespaced_deployment(name, namespace)
        logger.info(f"Deleted deployment {namespace}/{name}")
        return f"Deployment {name} deleted from {namespace}"

    @translate_api_errors
    def delete_service(self, name: str, namespace: str) -> str:
        self._apis.core.delete_namespaced_service(name, namespace)
        logger.info(f"Deleted service {namespace}/{name}")
        return f"Service {name} deleted from {namespace}"

    @translate_api_errors
    def delete_configmap(self, name: str, namespace: str) -> str:
        self._apis.core.delete_namespaced_config_map(name, namespace)
        logger.info(f"Deleted configmap {namespace}/{name}")
        return f"ConfigMap {name} deleted from {namespace}"

    @translate_api_errors
    def delete_job(self, name: str, namespace: str) -> str:
        """Delete a job; its pods are garbage collected in the background."""
        self._apis.batch.delete_namespaced_job(name, namespace, propagation_policy="Background")
        logger.info(f"Deleted job {namespace}/{name}")
        return f"Job {name} deleted from {namespace}"

    @translate_api_errors
    def restart_deployment(self, name: str, namespace: str) -> str:
        """Equivalent of ``kubectl rollout restart``: bump the pod template annotation."""
        patch = {
            "spec": {
                "template": {
                    "metadata": {
                        "annotations": {RESTARTED_AT_ANNOTATION: datetime.now(timezone.utc).isoformat()},
                    }
                }
            }
        }
        # A dict body is sent as a strategic merge patch.
        self._apis.apps.patch_namespaced_deployment(name, namespace, patch)
        logger.info(f"Restarted deployment {namespace}/{name}")
        return f"Deployment {name} restarted in {namespace}"

    @translate_api_errors
    def scale_deployment(self, name: str, namespace: str, replicas: int) -> str:
        self._apis.apps.patch_namespaced_deployment(name, namespace, {"spec": {"replicas": replicas}})
        logger.info(f"Scaled deployment {namespace}/{name} to {replicas}")
        return f"Deployment {name} scaled to {replicas} replicas in {namespace}"
