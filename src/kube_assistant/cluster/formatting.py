"""Plain-text rendering of cluster records.

Shared by the model's read tools (namespace-qualified names, since those
calls may span every namespace) and the command builder (bare names, the
namespace was picked explicitly).
"""

from typing import Callable, Optional, Sequence, TypeVar

from .models import (
    ClusterRecord,
    ConfigMapInfo,
    CronJobInfo,
    DaemonSetInfo,
    DeploymentInfo,
    EndpointsInfo,
    EventInfo,
    HPAInfo,
    IngressInfo,
    JobInfo,
    NamespacedRecord,
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

R = TypeVar("R")

NO_METRICS = "No metrics available (metrics-server may not be installed)"


def render_lines(records: Sequence[R], empty_message: str, render: Callable[[R], str]) -> str:
    """One line per record, or ``empty_message`` when there are none."""
    if not records:
        return empty_message
    return "\n".join(render(record) for record in records)


def _label(record: ClusterRecord, qualify: bool) -> str:
    if qualify and isinstance(record, NamespacedRecord):
        return record.qualified_name
    return record.name


def format_pods(pods: Sequence[PodInfo], qualify: bool = False) -> str:
    return render_lines(
        pods,
        "No pods found",
        lambda p: f"{_label(p, qualify)} | Status: {p.status} | Restarts: {p.restarts} | Age: {p.age}",
    )


def format_events(events: Sequence[EventInfo], limit: Optional[int] = None, with_count: bool = True) -> str:
    """Render events; ``with_count`` appends occurrence count and timestamp."""
    shown = events[:limit] if limit is not None else events

    def render(e: EventInfo) -> str:
        line = f"[{e.type}] {e.reason} on {e.involved_object}: {e.message}"
        if with_count:
            line += f" (x{e.count}, {e.last_timestamp})"
        return line

    return render_lines(shown, "No recent events", render)


def format_deployments(deployments: Sequence[DeploymentInfo], qualify: bool = False) -> str:
    return render_lines(
        deployments,
        "No deployments found",
        lambda d: f"{_label(d, qualify)} | Replicas: {d.replicas} | Available: {d.available}",
    )


def format_metrics(metrics: Sequence[PodMetrics], qualify: bool = False) -> str:
    return render_lines(metrics, NO_METRICS, lambda m: f"{_label(m, qualify)} | CPU: {m.cpu} | Memory: {m.memory}")


def format_services(services: Sequence[ServiceInfo], qualify: bool = False) -> str:
    return render_lines(
        services,
        "No services found",
        lambda s: f"{_label(s, qualify)} | Type: {s.type} | ClusterIP: {s.cluster_ip} | Ports: {s.ports}",
    )


def format_configmaps(configmaps: Sequence[ConfigMapInfo], qualify: bool = False) -> str:
    return render_lines(
        configmaps,
        "No configmaps found",
        lambda c: f"{_label(c, qualify)} | Keys: {', '.join(c.data_keys) or 'none'}",
    )


def format_ingresses(ingresses: Sequence[IngressInfo], qualify: bool = False) -> str:
    return render_lines(
        ingresses,
        "No ingresses found",
        lambda i: f"{_label(i, qualify)} | Hosts: {', '.join(i.hosts)} | Paths: {i.paths}",
    )


def format_hpas(hpas: Sequence[HPAInfo], qualify: bool = False) -> str:
    return render_lines(
        hpas,
        "No HPAs found",
        lambda h: (
            f"{_label(h, qualify)} | Target: {h.target} | "
            f"Replicas: {h.current_replicas}/{h.min_replicas}-{h.max_replicas}"
        ),
    )


def format_secrets(secrets: Sequence[SecretInfo], qualify: bool = False) -> str:
    return render_lines(
        secrets, "No secrets found", lambda s: f"{_label(s, qualify)} | Type: {s.type} | Keys: {s.data_keys}"
    )


def format_replicasets(replicasets: Sequence[ReplicaSetInfo], qualify: bool = False) -> str:
    return render_lines(
        replicasets,
        "No replicasets found",
        lambda r: f"{_label(r, qualify)} | Replicas: {r.replicas} | Age: {r.age}",
    )


def format_statefulsets(statefulsets: Sequence[StatefulSetInfo], qualify: bool = False) -> str:
    return render_lines(
        statefulsets,
        "No statefulsets found",
        lambda s: f"{_label(s, qualify)} | Replicas: {s.replicas} | Age: {s.age}",
    )


def format_daemonsets(daemonsets: Sequence[DaemonSetInfo], qualify: bool = False) -> str:
    return render_lines(
        daemonsets,
        "No daemonsets found",
        lambda d: f"{_label(d, qualify)} | Desired: {d.desired} | Ready: {d.ready} | Age: {d.age}",
    )


def format_jobs(jobs: Sequence[JobInfo], qualify: bool = False) -> str:
    return render_lines(
        jobs,
        "No jobs found",
        lambda j: f"{_label(j, qualify)} | Completions: {j.completions} | Status: {j.status} | Age: {j.age}",
    )


def format_cronjobs(cronjobs: Sequence[CronJobInfo], qualify: bool = False) -> str:
    return render_lines(
        cronjobs,
        "No cronjobs found",
        lambda c: (
            f"{_label(c, qualify)} | Schedule: {c.schedule} | Last: {c.last_schedule} | Active: {c.active}"
        ),
    )


def format_nodes(nodes: Sequence[NodeInfo]) -> str:
    return render_lines(
        nodes,
        "No nodes found",
        lambda n: f"{n.name} | {n.status} | Roles: {n.roles} | Version: {n.version} | Age: {n.age}",
    )


def format_pvcs(pvcs: Sequence[PVCInfo], qualify: bool = False) -> str:
    return render_lines(
        pvcs,
        "No PVCs found",
        lambda p: f"{_label(p, qualify)} | {p.status} | {p.capacity} | StorageClass: {p.storage_class}",
    )


def format_endpoints(endpoints: Sequence[EndpointsInfo], qualify: bool = False) -> str:
    return render_lines(
        endpoints, "No endpoints found", lambda e: f"{_label(e, qualify)} | Endpoints: {e.endpoints}"
    )


def format_rollout_history(deployment: str, revisions: Sequence[RevisionInfo]) -> str:
    if not revisions:
        return f"No revision history found for deployment {deployment}"
    lines = [f"Rollout History for {deployment}:", ""]
    lines.extend(f"Revision {r.revision}: {r.image} ({r.age} ago)" for r in revisions)
    return "\n".join(lines) + "\n"
