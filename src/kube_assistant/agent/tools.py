"""Read-only tools offered to the diagnostic agent.

The tool set is closed: ``ToolName`` enumerates it, and the registry built by
``build_read_registry`` must match it exactly. Every tool goes through a
``ClusterReader``, so the agent has no way to reach a write operation.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import Field

from ..cluster import formatting
from ..cluster.reader import ClusterReader
from ..core.exceptions import ToolRegistrationError
from ..core.logger import get_logger
from ..llm.openai_api import OpenAIToolRegistry

logger = get_logger(__name__)


class ToolName(str, Enum):
    GET_PODS = "get_pods"
    DESCRIBE_POD = "describe_pod"
    GET_POD_LOGS = "get_pod_logs"
    GET_PREVIOUS_POD_LOGS = "get_previous_pod_logs"
    GET_EVENTS = "get_events"
    GET_DEPLOYMENTS = "get_deployments"
    GET_POD_METRICS = "get_pod_metrics"
    GET_NAMESPACES = "get_namespaces"
    GET_SERVICES = "get_services"
    GET_CONFIGMAPS = "get_configmaps"
    DESCRIBE_CONFIGMAP = "describe_configmap"
    GET_INGRESSES = "get_ingresses"
    GET_HPAS = "get_hpas"
    GET_NODES = "get_nodes"
    GET_JOBS = "get_jobs"
    GET_STATEFULSETS = "get_statefulsets"
    GET_ROLLOUT_STATUS = "get_rollout_status"


NamespaceFilter = Annotated[
    Optional[str], Field(description="The namespace to query. Leave empty for all namespaces.")
]
PodName = Annotated[str, Field(description="The name of the pod")]
PodNamespace = Annotated[str, Field(description="The namespace of the pod")]
TailLines = Annotated[int, Field(description="Number of lines to return from the end (default 100)", ge=1)]
ContainerName = Annotated[
    Optional[str], Field(description="Container name if pod has multiple containers (optional)")
]


def _scope(namespace: Optional[str]) -> Optional[str]:
    # An empty string from the model means "all namespaces".
    return namespace or None


class ReadTools:
    """Bound tool implementations. Results are plain text for the model."""

    def __init__(self, reader: ClusterReader):
        self.reader = reader

    def get_pods(self, namespace: NamespaceFilter = None) -> str:
        """List all pods in a namespace or all namespaces.
        Use this to see the state of pods, their status, and restart counts.
        """
        return formatting.format_pods(self.reader.get_pods(_scope(namespace)), qualify=True)

    def describe_pod(self, name: PodName, namespace: PodNamespace) -> str:
        """Get detailed information about a specific pod including container specs,
        resource limits, and current state. Essential for diagnosing OOMKills, CrashLoops, etc.
        """
        return self.reader.describe_pod(name, namespace)

    def get_pod_logs(
        self,
        name: PodName,
        namespace: PodNamespace,
        tail_lines: TailLines = 100,
        container: ContainerName = None,
    ) -> str:
        """Get the logs from a pod. Use this to see error messages, exceptions, and application output."""
        return self.reader.get_pod_logs(name, namespace, tail_lines=tail_lines, container=container)

    def get_previous_pod_logs(
        self,
        name: PodName,
        namespace: PodNamespace,
        tail_lines: TailLines = 100,
        container: ContainerName = None,
    ) -> str:
        """Get logs from the previous instance of a pod (before it crashed/restarted).
        Very useful for crash analysis.
        """
        return self.reader.get_previous_pod_logs(name, namespace, tail_lines=tail_lines, container=container)

    def get_events(self, namespace: NamespaceFilter = None) -> str:
        """Get recent Kubernetes events. Events show warnings, errors, OOMKills, scheduling issues, etc.
        This is usually the first thing to check.
        """
        return formatting.format_events(self.reader.get_events(_scope(namespace)))

    def get_deployments(self, namespace: NamespaceFilter = None) -> str:
        """List deployments to see replica counts and availability status."""
        return formatting.format_deployments(self.reader.get_deployments(_scope(namespace)), qualify=True)

    def get_pod_metrics(self, namespace: NamespaceFilter = None) -> str:
        """Get current CPU and memory usage for pods. Useful to check if pods are near their limits."""
        return formatting.format_metrics(self.reader.get_pod_metrics(_scope(namespace)), qualify=True)

    def get_namespaces(self) -> str:
        """List all namespaces in the cluster."""
        namespaces = self.reader.get_namespaces()
        return "\n".join(namespaces) if namespaces else "No namespaces found"

    def get_services(self, namespace: NamespaceFilter = None) -> str:
        """List Kubernetes services. Shows service type, cluster IP, and exposed ports."""
        return formatting.format_services(self.reader.get_services(_scope(namespace)), qualify=True)

    def get_configmaps(self, namespace: NamespaceFilter = None) -> str:
        """List ConfigMaps. Useful to see application configuration."""
        return formatting.format_configmaps(self.reader.get_configmaps(_scope(namespace)), qualify=True)

    def describe_configmap(
        self,
        name: Annotated[str, Field(description="The name of the configmap")],
        namespace: Annotated[str, Field(description="The namespace of the configmap")],
    ) -> str:
        """Get the content of a specific ConfigMap. Shows all keys and their values."""
        return self.reader.describe_configmap(name, namespace)

    def get_ingresses(self, namespace: NamespaceFilter = None) -> str:
        """List Ingress resources. Shows hosts, paths, and routing rules."""
        return formatting.format_ingresses(self.reader.get_ingresses(_scope(namespace)), qualify=True)

    def get_hpas(self, namespace: NamespaceFilter = None) -> str:
        """List HorizontalPodAutoscalers. Shows min/max replicas, current replicas, and scaling targets."""
        return formatting.format_hpas(self.reader.get_hpas(_scope(namespace)), qualify=True)

    def get_nodes(self) -> str:
        """List cluster nodes with readiness, roles and kubelet version. Useful for scheduling and capacity issues."""
        return formatting.format_nodes(self.reader.get_nodes())

    def get_jobs(self, namespace: NamespaceFilter = None) -> str:
        """List Jobs with completions and status. Useful for failed batch work or migrations."""
        return formatting.format_jobs(self.reader.get_jobs(_scope(namespace)), qualify=True)

    def get_statefulsets(self, namespace: NamespaceFilter = None) -> str:
        """List StatefulSets with ready replica counts."""
        return formatting.format_statefulsets(self.reader.get_statefulsets(_scope(namespace)), qualify=True)

    def get_rollout_status(
        self,
        name: Annotated[str, Field(description="The name of the deployment")],
        namespace: Annotated[str, Field(description="The namespace of the deployment")],
    ) -> str:
        """Get the rollout status of a deployment: ready, updated and available replicas plus its conditions."""
        return self.reader.get_rollout_status(name, namespace)


def build_read_registry(reader: ClusterReader) -> OpenAIToolRegistry:
    """Register every read tool against ``reader``.

    Raises:
        ToolRegistrationError: If the registered set drifts from ``ToolName``.
    """
    tools = ReadTools(reader)
    registry = OpenAIToolRegistry()
    for tool_name in ToolName:
        registry.register(getattr(tools, tool_name.value))

    registered = set(registry.tools)
    expected = {tool_name.value for tool_name in ToolName}
    if registered != expected:
        raise ToolRegistrationError(f"Read tool set mismatch: {sorted(registered ^ expected)}")

    logger.info(f"Registered {len(registered)} read-only tools")
    return registry
