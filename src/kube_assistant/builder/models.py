"""Vocabulary and session record of the interactive command builder."""

from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import InvalidSelectionError

# Slack caps option values at 150 characters; longer names are sent as a
# reference into the session's candidate list instead.
OPTION_VALUE_LIMIT = 150
CANDIDATE_REF_PREFIX = "#"


def candidate_value(index: int, name: str) -> str:
    """Option value for the ``index``-th resource-name candidate."""
    if len(name) <= OPTION_VALUE_LIMIT:
        return name
    return f"{CANDIDATE_REF_PREFIX}{index}"
class Action(str, Enum):
    """kubectl-style verbs offered in the builder. The last three mutate the cluster."""

    GET = "get"
    LOGS = "logs"
    LOGS_PREVIOUS = "logs-previous"
    DESCRIBE = "describe"
    TOP = "top"
    EVENTS = "events"
    ROLLOUT_STATUS = "rollout-status"
    ROLLOUT_HISTORY = "rollout-history"
    DELETE = "delete"
    RESTART = "restart"
    SCALE = "scale"

    @property
    def is_write(self) -> bool:
        return self in _WRITE_ACTIONS

    @property
    def label(self) -> str:
        text = f"{self.value} - {_ACTION_DESCRIPTIONS[self]}"
        return f"[WRITE] {text}" if self.is_write else text


_WRITE_ACTIONS = frozenset({Action.DELETE, Action.RESTART, Action.SCALE})

_ACTION_DESCRIPTIONS = {
    Action.GET: "List resources",
    Action.LOGS: "View pod logs",
    Action.LOGS_PREVIOUS: "View previous pod logs (crashed)",
    Action.DESCRIBE: "Resource details",
    Action.TOP: "CPU/Memory metrics",
    Action.EVENTS: "K8s events",
    Action.ROLLOUT_STATUS: "Deployment rollout status",
    Action.ROLLOUT_HISTORY: "Deployment revision history",
    Action.DELETE: "Delete a resource",
    Action.RESTART: "Restart a deployment",
    Action.SCALE: "Scale a deployment",
}


class ResourceType(str, Enum):
    PODS = "pods"
    DEPLOYMENTS = "deployments"
    SERVICES = "services"
    CONFIGMAPS = "configmaps"
    INGRESSES = "ingresses"
    HPA = "hpa"
    SECRETS = "secrets"
    REPLICASETS = "replicasets"
    STATEFULSETS = "statefulsets"
    DAEMONSETS = "daemonsets"
    JOBS = "jobs"
    CRONJOBS = "cronjobs"
    NODES = "nodes"
    PVC = "pvc"
    ENDPOINTS = "endpoints"

    @property
    def cluster_scoped(self) -> bool:
        return self is ResourceType.NODES


class SessionKey(NamedTuple):
    """A builder session lives in one channel, anchored on the builder message."""

    channel: str
    anchor_ts: str


class CommandBuilderSession(BaseModel):
    """Selections made so far for one builder message.

    ``pending_confirmation`` only records that the execute button carries a
    confirm dialog; the dialog itself is the gate.
    """

    model_config = ConfigDict(validate_assignment=True)

    action: Optional[Action] = None
    namespace: Optional[str] = None
    resource_type: Optional[ResourceType] = None
    resource_name: Optional[str] = None
    scale_replicas: Optional[int] = Field(default=None, ge=0)
    pending_confirmation: bool = False
    # Names offered in the last rendered name selector, in option order.
    candidates: List[str] = Field(default_factory=list)

    @property
    def is_write(self) -> bool:
        return self.action is not None and self.action.is_write

    def resolve_candidate(self, value: str) -> str:
        """Map a name-selector option value back to the resource name it stands for.

        Raises:
            InvalidSelectionError: If ``value`` refers to a candidate that is no longer listed.
        """
        if not value.startswith(CANDIDATE_REF_PREFIX):
            return value
        index = value[len(CANDIDATE_REF_PREFIX):]
        if not index.isdigit() or int(index) >= len(self.candidates):
            raise InvalidSelectionError("That resource is no longer listed. Please pick it again.")
        return self.candidates[int(index)]

    def preview(self) -> str:
        """kubectl-style rendering of the selections, with ``?`` for a missing replica count."""
        replicas = "?" if self.scale_replicas is None else str(self.scale_replicas)
        parts = ["kubectl"]
        if self.action is Action.RESTART:
            parts.append("rollout restart")
        elif self.action is Action.SCALE:
            parts.append(f"scale --replicas={replicas}")
        elif self.action is not None:
            parts.append(self.action.value)
        if self.resource_type is not None:
            parts.append(self.resource_type.value)
        if self.resource_name:
            parts.append(self.resource_name)
        if self.namespace:
            parts.append(f"-n {self.namespace}")
        return " ".join(parts)

    def command_literal(self) -> str:
        """The command as it is reported after execution."""
        if self.action is Action.RESTART:
            return f"kubectl rollout restart deployment {self.resource_name} -n {self.namespace}"
        if self.action is Action.SCALE:
            return (
                f"kubectl scale deployment {self.resource_name} "
                f"--replicas={self.scale_replicas} -n {self.namespace}"
            )
        parts = ["kubectl"]
        if self.action is not None:
            parts.append(self.action.value)
        if self.resource_type is not None:
            parts.append(self.resource_type.value)
        if self.resource_name:
            parts.append(self.resource_name)
        parts.append(f"-n {self.namespace}")
        return " ".join(parts)
