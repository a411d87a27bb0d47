"""Stand-ins for the Kubernetes client's response objects.

The reader only touches attributes, so ``SimpleNamespace`` trees are enough.
"""

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace as NS
from typing import Any, Dict, Optional, Sequence

from kubernetes.client.rest import ApiException


def ago(**delta: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(**delta)


def listing(*items: Any) -> NS:
    return NS(items=list(items))


def meta(name: str, namespace: Optional[str] = "prod", created: Optional[datetime] = None, **extra: Any) -> NS:
    return NS(name=name, namespace=namespace, creation_timestamp=created or ago(hours=2), **extra)


def pod(name: str, namespace: str = "prod", phase: str = "Running", restarts: int = 0) -> NS:
    status = NS(name="app", ready=phase == "Running", restart_count=restarts)
    return NS(metadata=meta(name, namespace), status=NS(phase=phase, container_statuses=[status]))


def deployment(name: str, namespace: str = "prod", replicas: int = 3, ready: int = 3) -> NS:
    return NS(
        metadata=meta(name, namespace),
        spec=NS(replicas=replicas),
        status=NS(
            ready_replicas=ready,
            available_replicas=ready,
            updated_replicas=ready,
            conditions=[NS(type="Available", status="True", message="Deployment has minimum availability.")],
        ),
    )


def event(
    reason: str, message: str, when: datetime, kind: str = "Pod", name: str = "api-1", type_: str = "Warning"
) -> NS:
    return NS(
        type=type_,
        reason=reason,
        message=message,
        involved_object=NS(kind=kind, name=name),
        count=3,
        last_timestamp=when,
    )


def configmap(name: str, data: Dict[str, str], namespace: str = "prod") -> NS:
    return NS(metadata=meta(name, namespace), data=data)


def service(name: str, namespace: str = "prod") -> NS:
    return NS(
        metadata=meta(name, namespace),
        spec=NS(type="ClusterIP", cluster_ip="10.0.0.12", ports=[NS(port=80, protocol="TCP")]),
    )


def node(name: str, ready: bool = True, roles: Sequence[str] = ()) -> NS:
    labels = {f"node-role.kubernetes.io/{role}": "" for role in roles}
    labels["kubernetes.io/hostname"] = name
    return NS(
        metadata=meta(name, None, created=ago(days=30), labels=labels),
        status=NS(
            conditions=[NS(type="Ready", status="True" if ready else "False")],
            node_info=NS(kubelet_version="v1.29.3"),
        ),
    )


def job(name: str, namespace: str = "prod", succeeded: int = 1, condition: Optional[str] = "Complete") -> NS:
    return NS(
        metadata=meta(name, namespace),
        spec=NS(completions=1),
        status=NS(
            succeeded=succeeded,
            active=None if condition else 1,
            conditions=[NS(type=condition)] if condition else None,
        ),
    )


def replica_set(name: str, owner: str, revision: str, image: str, namespace: str = "prod") -> NS:
    return NS(
        metadata=meta(
            name,
            namespace,
            annotations={"deployment.kubernetes.io/revision": revision},
            owner_references=[NS(kind="Deployment", name=owner)],
        ),
        spec=NS(replicas=1, template=NS(spec=NS(containers=[NS(image=image)]))),
        status=NS(ready_replicas=1),
    )


def api_error(status: int, reason: str, message: Optional[str] = None) -> ApiException:
    exc = ApiException(status=status, reason=reason)
    if message is not None:
        exc.body = json.dumps({"kind": "Status", "message": message})
    return exc
