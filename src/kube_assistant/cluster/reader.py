"""Read side of the cluster capability surface.

Everything here is a GET/LIST against the API server. The reader is the only
cluster handle the agent loop is given, so nothing in this module may change
cluster state.
"""

from typing import Any, Dict, List, Optional

from kubernetes.client.rest import ApiException

from .client import KubeApis, translate_api_errors
from .models import (
    ConfigMapInfo,
    ContainerInfo,
    CronJobInfo,
    DaemonSetInfo,
    DeploymentInfo,
    EndpointsInfo,
    EventInfo,
    HPAInfo,
    IngressInfo,
    JobInfo,
    NodeInfo,
    PodInfo,
    PodMetrics,
    PVCInfo,
    ReplicaSetInfo,
    RevisionInfo,
    SecretInfo,
    ServiceInfo,
    StatefulSetInfo,
)
from .utils import get_age, parse_cpu, parse_memory
from ..core.logger import get_logger

logger = get_logger(__name__)

EVENT_LIMIT = 50
CONFIGMAP_PREVIEW_CHARS = 200
ENDPOINT_ADDRESS_LIMIT = 5
ROLLOUT_HISTORY_LIMIT = 10
REVISION_ANNOTATION = "deployment.kubernetes.io/revision"
NODE_ROLE_PREFIX = "node-role.kubernetes.io/"
METRICS_GROUP = "metrics.k8s.io"
METRICS_VERSION = "v1beta1"

NO_PREVIOUS_LOGS = "No previous logs available (pod may not have crashed)"


def _name(obj: Any) -> str:
    return obj.metadata.name or "unknown"


def _namespace(obj: Any) -> str:
    return obj.metadata.namespace or "unknown"


class ClusterReader:
    """Read-only queries against the cluster.

    Every ``namespace`` argument is optional; ``None`` (or an empty string)
    lists across all namespaces. API failures surface as ``ClusterError``
    except where a method documents a fallback.
    """

    def __init__(self, apis: KubeApis):
        self._apis = apis

    @translate_api_errors
    def get_pods(self, namespace: Optional[str] = None) -> List[PodInfo]:
        core = self._apis.core
        response = core.list_namespaced_pod(namespace) if namespace else core.list_pod_for_all_namespaces()

        pods = []
        for pod in response.items:
            statuses = pod.status.container_statuses or []
            pods.append(
                PodInfo(
                    name=_name(pod),
                    namespace=_namespace(pod),
                    status=pod.status.phase or "unknown",
                    restarts=sum(cs.restart_count or 0 for cs in statuses),
                    age=get_age(pod.metadata.creation_timestamp),
                    containers=[
                        ContainerInfo(name=cs.name, ready=bool(cs.ready), restart_count=cs.restart_count or 0)
                        for cs in statuses
                    ],
                )
            )
        return pods

    @translate_api_errors
    def describe_pod(self, name: str, namespace: str) -> str:
        pod = self._apis.core.read_namespaced_pod(name, namespace)
        status = pod.status
        spec = pod.spec

        lines = [f"Pod: {name}", f"Namespace: {namespace}", f"Status: {status.phase}", f"Node: {spec.node_name}", ""]

        lines.append("=== Containers ===")
        for container in spec.containers or []:
            requests = (container.resources.requests if container.resources else None) or {}
            limits = (container.resources.limits if container.resources else None) or {}
            lines.extend(
                [
                    "",
                    f"{container.name}:",
                    f"  Image: {container.image}",
                    "  Resources:",
                    f"    Requests: CPU={requests.get('cpu', 'none')}, Memory={requests.get('memory', 'none')}",
                    f"    Limits: CPU={limits.get('cpu', 'none')}, Memory={limits.get('memory', 'none')}",
                ]
            )

        lines.append("")
        lines.append("=== Container Statuses ===")
        for cs in status.container_statuses or []:
            lines.extend(["", f"{cs.name}:", f"  Ready: {cs.ready}", f"  Restarts: {cs.restart_count}"])
            state = cs.state
            if state and state.waiting:
                lines.append(f"  State: Waiting ({state.waiting.reason})")
                lines.append(f"  Message: {state.waiting.message or 'none'}")
            if state and state.terminated:
                lines.append(f"  State: Terminated ({state.terminated.reason})")
                lines.append(f"  Exit Code: {state.terminated.exit_code}")
            last = cs.last_state
            if last and last.terminated:
                lines.append(f"  Last State: Terminated ({last.terminated.reason})")
                lines.append(f"  Last Exit Code: {last.terminated.exit_code}")

        return "\n".join(lines) + "\n"

    @translate_api_errors
    def get_pod_logs(self, name: str, namespace: str, tail_lines: int = 100, container: Optional[str] = None) -> str:
        logs = self._apis.core.read_namespaced_pod_log(
            name, namespace, container=container, previous=False, tail_lines=tail_lines
        )
        return logs or "No logs available"

    def get_previous_pod_logs(
        self, name: str, namespace: str, tail_lines: int = 100, container: Optional[str] = None
    ) -> str:
        """Logs of the previous container instance; a pod that never restarted has none."""
        try:
            logs = self._apis.core.read_namespaced_pod_log(
                name, namespace, container=container, previous=True, tail_lines=tail_lines
            )
        except ApiException as exc:
            logger.debug(f"No previous logs for {namespace}/{name}: {exc.status} {exc.reason}")
            return NO_PREVIOUS_LOGS
        return logs or "No previous logs available"

    @translate_api_errors
    def get_events(self, namespace: Optional[str] = None) -> List[EventInfo]:
        """Newest events first, capped at ``EVENT_LIMIT``."""
        core = self._apis.core
        response = core.list_namespaced_event(namespace) if namespace else core.list_event_for_all_namespaces()

        def sort_key(event: Any) -> float:
            return event.last_timestamp.timestamp() if event.last_timestamp else 0.0

        events = sorted(response.items, key=sort_key, reverse=True)[:EVENT_LIMIT]
        return [
            EventInfo(
                type=event.type or "Normal",
                reason=event.reason or "unknown",
                message=event.message or "",
                involved_object=f"{event.involved_object.kind}/{event.involved_object.name}",
                count=event.count or 1,
                last_timestamp=event.last_timestamp.isoformat() if event.last_timestamp else "unknown",
            )
            for event in events
        ]

    @translate_api_errors
    def get_deployments(self, namespace: Optional[str] = None) -> List[DeploymentInfo]:
        apps = self._apis.apps
        response = (
            apps.list_namespaced_deployment(namespace) if namespace else apps.list_deployment_for_all_namespaces()
        )
        return [
            DeploymentInfo(
                name=_name(dep),
                namespace=_namespace(dep),
                replicas=f"{dep.status.ready_replicas or 0}/{dep.spec.replicas or 0}",
                available=dep.status.available_replicas or 0,
            )
            for dep in response.items
        ]

    def get_pod_metrics(self, namespace: Optional[str] = None) -> List[PodMetrics]:
        """CPU and memory usage from metrics-server. Empty when metrics are unavailable."""
        custom = self._apis.custom
        try:
            if namespace:
                body = custom.list_namespaced_custom_object(METRICS_GROUP, METRICS_VERSION, namespace, "pods")
            else:
                body = custom.list_cluster_custom_object(METRICS_GROUP, METRICS_VERSION, "pods")
        except ApiException as exc:
            logger.warning(f"Pod metrics unavailable: {exc.status} {exc.reason}")
            return []

        metrics = []
        for item in body.get("items", []):
            containers = item.get("containers", [])
            cpu = sum(parse_cpu(c["usage"]["cpu"]) for c in containers)
            memory = sum(parse_memory(c["usage"]["memory"]) for c in containers)
            metrics.append(
                PodMetrics(
                    name=item["metadata"]["name"],
                    namespace=item["metadata"]["namespace"],
                    cpu=f"{round(cpu)}m",
                    memory=f"{round(memory)}Mi",
                )
            )
        return metrics

    @translate_api_errors
    def get_namespaces(self) -> List[str]:
        return [_name(ns) for ns in self._apis.core.list_namespace().items]

    @translate_api_errors
    def get_services(self, namespace: Optional[str] = None) -> List[ServiceInfo]:
        core = self._apis.core
        response = core.list_namespaced_service(namespace) if namespace else core.list_service_for_all_namespaces()
        return [
            ServiceInfo(
                name=_name(svc),
                namespace=_namespace(svc),
                type=svc.spec.type or "ClusterIP",
                cluster_ip=svc.spec.cluster_ip or "None",
                ports=", ".join(f"{p.port}/{p.protocol}" for p in svc.spec.ports or []) or "none",
            )
            for svc in response.items
        ]

    @translate_api_errors
    def get_configmaps(self, namespace: Optional[str] = None) -> List[ConfigMapInfo]:
        core = self._apis.core
        response = (
            core.list_namespaced_config_map(namespace) if namespace else core.list_config_map_for_all_namespaces()
        )
        return [
            ConfigMapInfo(name=_name(cm), namespace=_namespace(cm), data_keys=list((cm.data or {}).keys()))
            for cm in response.items
        ]

    @translate_api_errors
    def describe_configmap(self, name: str, namespace: str) -> str:
        cm = self._apis.core.read_namespaced_config_map(name, namespace)

        lines = [f"ConfigMap: {name}", f"Namespace: {namespace}", "", "=== Data Keys ==="]
        for key, value in (cm.data or {}).items():
            preview = f"{value[:CONFIGMAP_PREVIEW_CHARS]}..." if len(value) > CONFIGMAP_PREVIEW_CHARS else value
            lines.extend(["", f"{key}:", preview])
        return "\n".join(lines) + "\n"

    @translate_api_errors
    def get_ingresses(self, namespace: Optional[str] = None) -> List[IngressInfo]:
        net = self._apis.networking
        response = net.list_namespaced_ingress(namespace) if namespace else net.list_ingress_for_all_namespaces()

        ingresses = []
        for ing in response.items:
            rules = ing.spec.rules or []
            paths = [
                f"{rule.host or '*'}{path.path}" for rule in rules if rule.http for path in rule.http.paths or []
            ]
            ingresses.append(
                IngressInfo(
                    name=_name(ing),
                    namespace=_namespace(ing),
                    hosts=[rule.host or "*" for rule in rules],
                    paths=", ".join(paths) or "none",
                )
            )
        return ingresses

    @translate_api_errors
    def get_hpas(self, namespace: Optional[str] = None) -> List[HPAInfo]:
        autoscaling = self._apis.autoscaling
        if namespace:
            response = autoscaling.list_namespaced_horizontal_pod_autoscaler(namespace)
        else:
            response = autoscaling.list_horizontal_pod_autoscaler_for_all_namespaces()
        return [
            HPAInfo(
                name=_name(hpa),
                namespace=_namespace(hpa),
                target=hpa.spec.scale_target_ref.name if hpa.spec.scale_target_ref else "unknown",
                min_replicas=hpa.spec.min_replicas or 1,
                max_replicas=hpa.spec.max_replicas or 1,
                current_replicas=hpa.status.current_replicas or 0,
            )
            for hpa in response.items
        ]

    @translate_api_errors
    def get_secrets(self, namespace: Optional[str] = None) -> List[SecretInfo]:
        """Secret names, types and key counts. Values are never read out."""
        core = self._apis.core
        response = core.list_namespaced_secret(namespace) if namespace else core.list_secret_for_all_namespaces()
        return [
            SecretInfo(
                name=_name(secret),
                namespace=_namespace(secret),
                type=secret.type or "Opaque",
                data_keys=len(secret.data or {}),
            )
            for secret in response.items
        ]

    @translate_api_errors
    def get_replicasets(self, namespace: Optional[str] = None) -> List[ReplicaSetInfo]:
        apps = self._apis.apps
        response = (
            apps.list_namespaced_replica_set(namespace) if namespace else apps.list_replica_set_for_all_namespaces()
        )
        return [
            ReplicaSetInfo(
                name=_name(rs),
                namespace=_namespace(rs),
                replicas=f"{rs.status.ready_replicas or 0}/{rs.spec.replicas or 0}",
                age=get_age(rs.metadata.creation_timestamp),
            )
            for rs in response.items
        ]

    @translate_api_errors
    def get_statefulsets(self, namespace: Optional[str] = None) -> List[StatefulSetInfo]:
        apps = self._apis.apps
        response = (
            apps.list_namespaced_stateful_set(namespace) if namespace else apps.list_stateful_set_for_all_namespaces()
        )
        return [
            StatefulSetInfo(
                name=_name(ss),
                namespace=_namespace(ss),
                replicas=f"{ss.status.ready_replicas or 0}/{ss.spec.replicas or 0}",
                age=get_age(ss.metadata.creation_timestamp),
            )
            for ss in response.items
        ]

    @translate_api_errors
    def get_daemonsets(self, namespace: Optional[str] = None) -> List[DaemonSetInfo]:
        apps = self._apis.apps
        response = (
            apps.list_namespaced_daemon_set(namespace) if namespace else apps.list_daemon_set_for_all_namespaces()
        )
        return [
            DaemonSetInfo(
                name=_name(ds),
                namespace=_namespace(ds),
                desired=ds.status.desired_number_scheduled or 0,
                ready=ds.status.number_ready or 0,
                age=get_age(ds.metadata.creation_timestamp),
            )
            for ds in response.items
        ]

    @translate_api_errors
    def get_jobs(self, namespace: Optional[str] = None) -> List[JobInfo]:
        batch = self._apis.batch
        response = batch.list_namespaced_job(namespace) if namespace else batch.list_job_for_all_namespaces()

        jobs = []
        for job in response.items:
            conditions = job.status.conditions or []
            if conditions:
                status = conditions[0].type
            else:
                status = "Running" if job.status.active else "Unknown"
            jobs.append(
                JobInfo(
                    name=_name(job),
                    namespace=_namespace(job),
                    completions=f"{job.status.succeeded or 0}/{job.spec.completions or 1}",
                    status=status,
                    age=get_age(job.metadata.creation_timestamp),
                )
            )
        return jobs

    @translate_api_errors
    def get_cronjobs(self, namespace: Optional[str] = None) -> List[CronJobInfo]:
        batch = self._apis.batch
        response = (
            batch.list_namespaced_cron_job(namespace) if namespace else batch.list_cron_job_for_all_namespaces()
        )
        return [
            CronJobInfo(
                name=_name(cj),
                namespace=_namespace(cj),
                schedule=cj.spec.schedule or "unknown",
                last_schedule=(
                    f"{get_age(cj.status.last_schedule_time)} ago" if cj.status.last_schedule_time else "Never"
                ),
                active=len(cj.status.active or []),
            )
            for cj in response.items
        ]

    @translate_api_errors
    def get_nodes(self) -> List[NodeInfo]:
        nodes = []
        for node in self._apis.core.list_node().items:
            ready = next((c for c in node.status.conditions or [] if c.type == "Ready"), None)
            labels: Dict[str, str] = node.metadata.labels or {}
            roles = [label[len(NODE_ROLE_PREFIX) :] for label in labels if label.startswith(NODE_ROLE_PREFIX)]
            nodes.append(
                NodeInfo(
                    name=_name(node),
                    status="Ready" if ready is not None and ready.status == "True" else "NotReady",
                    roles=",".join(roles) or "none",
                    age=get_age(node.metadata.creation_timestamp),
                    version=node.status.node_info.kubelet_version if node.status.node_info else "unknown",
                )
            )
        return nodes

    @translate_api_errors
    def get_pvcs(self, namespace: Optional[str] = None) -> List[PVCInfo]:
        core = self._apis.core
        if namespace:
            response = core.list_namespaced_persistent_volume_claim(namespace)
        else:
            response = core.list_persistent_volume_claim_for_all_namespaces()
        return [
            PVCInfo(
                name=_name(pvc),
                namespace=_namespace(pvc),
                status=pvc.status.phase or "unknown",
                volume=pvc.spec.volume_name or "none",
                capacity=(pvc.status.capacity or {}).get("storage", "unknown"),
                storage_class=pvc.spec.storage_class_name or "default",
            )
            for pvc in response.items
        ]

    @translate_api_errors
    def get_endpoints(self, namespace: Optional[str] = None) -> List[EndpointsInfo]:
        core = self._apis.core
        response = (
            core.list_namespaced_endpoints(namespace) if namespace else core.list_endpoints_for_all_namespaces()
        )

        endpoints = []
        for ep in response.items:
            addresses = [addr.ip for subset in ep.subsets or [] for addr in subset.addresses or []]
            if addresses:
                shown = ", ".join(addresses[:ENDPOINT_ADDRESS_LIMIT])
                if len(addresses) > ENDPOINT_ADDRESS_LIMIT:
                    shown += "..."
            else:
                shown = "none"
            endpoints.append(EndpointsInfo(name=_name(ep), namespace=_namespace(ep), endpoints=shown))
        return endpoints

    @translate_api_errors
    def get_rollout_status(self, name: str, namespace: str) -> str:
        dep = self._apis.apps.read_namespaced_deployment(name, namespace)
        status = dep.status

        lines = [
            f"Deployment: {name}",
            f"Namespace: {namespace}",
            f"Replicas: {status.ready_replicas or 0}/{dep.spec.replicas or 0} ready",
            f"Updated: {status.updated_replicas or 0}",
            f"Available: {status.available_replicas or 0}",
            "",
            "Conditions:",
        ]
        for condition in status.conditions or []:
            lines.append(f"  {condition.type}: {condition.status} - {condition.message or ''}")
        return "\n".join(lines) + "\n"

    @translate_api_errors
    def get_rollout_history(self, name: str, namespace: str) -> List[RevisionInfo]:
        """Revisions of a deployment, newest first, from the ReplicaSets it owns."""
        response = self._apis.apps.list_namespaced_replica_set(namespace)

        def revision_of(rs: Any) -> int:
            raw = (rs.metadata.annotations or {}).get(REVISION_ANNOTATION, "0")
            try:
                return int(raw)
            except ValueError:
                return 0

        owned = [
            rs for rs in response.items if any(owner.name == name for owner in rs.metadata.owner_references or [])
        ]
        owned.sort(key=revision_of, reverse=True)

        history = []
        for rs in owned[:ROLLOUT_HISTORY_LIMIT]:
            template_spec = rs.spec.template.spec if rs.spec.template else None
            containers = template_spec.containers if template_spec else []
            image = containers[0].image if containers else "unknown"
            history.append(
                RevisionInfo(
                    revision=(rs.metadata.annotations or {}).get(REVISION_ANNOTATION, "?"),
                    image=image.split("/")[-1],
                    age=get_age(rs.metadata.creation_timestamp),
                    replica_set=_name(rs),
                )
            )
        return history
