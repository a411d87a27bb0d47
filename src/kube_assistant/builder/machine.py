"""State machine behind the interactive command builder.

Selections arrive as independent events, in any order, and each one updates
a single field of the session. Nothing touches the cluster until ``execute``,
which only runs once action, namespace and resource type are all set (and a
replica count, for scale). Mutating actions reach ``execute`` only after the
chat platform's confirm dialog has been accepted.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from .models import Action, CommandBuilderSession, ResourceType, SessionKey
from .store import SessionStore
from ..cluster import formatting
from ..cluster.models import ClusterRecord
from ..cluster.reader import ClusterReader
from ..cluster.writer import ClusterWriter
from ..core.exceptions import (
    CommandBuilderError,
    IncompleteCommandError,
    InvalidSelectionError,
    KubeAssistantError,
)
from ..core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FALLBACK_NAMESPACES = ("services-prod", "services-preprod", "argocd")
OUTPUT_LIMIT = 2900
TRUNCATION_MARKER = "...\n\n_[Output truncated]_"
CANDIDATE_LIMIT = 100
LOG_TAIL_LINES = 100
EVENTS_SHOWN = 20

MISSING_SELECTION = "Please select at least an action, namespace, and resource type."
MISSING_REPLICAS = "Please enter the number of replicas for scale operation."

Fetcher = Callable[[ClusterReader, Optional[str]], Sequence[ClusterRecord]]

_FETCHERS: Dict[ResourceType, Fetcher] = {
    ResourceType.PODS: ClusterReader.get_pods,
    ResourceType.DEPLOYMENTS: ClusterReader.get_deployments,
    ResourceType.SERVICES: ClusterReader.get_services,
    ResourceType.CONFIGMAPS: ClusterReader.get_configmaps,
    ResourceType.INGRESSES: ClusterReader.get_ingresses,
    ResourceType.HPA: ClusterReader.get_hpas,
    ResourceType.SECRETS: ClusterReader.get_secrets,
    ResourceType.REPLICASETS: ClusterReader.get_replicasets,
    ResourceType.STATEFULSETS: ClusterReader.get_statefulsets,
    ResourceType.DAEMONSETS: ClusterReader.get_daemonsets,
    ResourceType.JOBS: ClusterReader.get_jobs,
    ResourceType.CRONJOBS: ClusterReader.get_cronjobs,
    ResourceType.NODES: lambda reader, _namespace: reader.get_nodes(),
    ResourceType.PVC: ClusterReader.get_pvcs,
    ResourceType.ENDPOINTS: ClusterReader.get_endpoints,
}

_FORMATTERS: Dict[ResourceType, Callable[..., str]] = {
    ResourceType.PODS: formatting.format_pods,
    ResourceType.DEPLOYMENTS: formatting.format_deployments,
    ResourceType.SERVICES: formatting.format_services,
    ResourceType.CONFIGMAPS: formatting.format_configmaps,
    ResourceType.INGRESSES: formatting.format_ingresses,
    ResourceType.HPA: formatting.format_hpas,
    ResourceType.SECRETS: formatting.format_secrets,
    ResourceType.REPLICASETS: formatting.format_replicasets,
    ResourceType.STATEFULSETS: formatting.format_statefulsets,
    ResourceType.DAEMONSETS: formatting.format_daemonsets,
    ResourceType.JOBS: formatting.format_jobs,
    ResourceType.CRONJOBS: formatting.format_cronjobs,
    ResourceType.NODES: formatting.format_nodes,
    ResourceType.PVC: formatting.format_pvcs,
    ResourceType.ENDPOINTS: formatting.format_endpoints,
}

_DESCRIBERS: Dict[ResourceType, Callable[[ClusterReader, str, str], str]] = {
    ResourceType.PODS: ClusterReader.describe_pod,
    ResourceType.CONFIGMAPS: ClusterReader.describe_configmap,
}

_DELETERS: Dict[ResourceType, Callable[[ClusterWriter, str, str], str]] = {
    ResourceType.PODS: ClusterWriter.delete_pod,
    ResourceType.DEPLOYMENTS: ClusterWriter.delete_deployment,
    ResourceType.SERVICES: ClusterWriter.delete_service,
    ResourceType.CONFIGMAPS: ClusterWriter.delete_configmap,
    ResourceType.JOBS: ClusterWriter.delete_job,
}


class CommandOutcome(BaseModel):
    """Result of an executed command, ready to be posted.

    Attributes:
        command: kubectl-style literal of what was run.
        output: Cluster output or a rejection/error line, already truncated.
        session: The selections that were executed.
    """

    model_config = ConfigDict(frozen=True)

    command: str
    output: str
    session: CommandBuilderSession

    @property
    def is_write(self) -> bool:
        return self.session.is_write


def truncate_output(output: str, limit: int = OUTPUT_LIMIT) -> str:
    if len(output) <= limit:
        return output
    return output[:limit] + TRUNCATION_MARKER


class CommandBuilder:
    """
    Applies builder events to sessions and executes completed commands.

    The builder is the only holder of a ``ClusterWriter``. Cluster calls are
    blocking and run in a worker thread.
    """

    def __init__(
        self,
        reader: ClusterReader,
        writer: ClusterWriter,
        store: Optional[SessionStore] = None,
        fallback_namespaces: Sequence[str] = DEFAULT_FALLBACK_NAMESPACES,
    ):
        self.reader = reader
        self.writer = writer
        self.store = store if store is not None else SessionStore()
        self.fallback_namespaces = list(fallback_namespaces)

        self._handlers: Dict[Action, Callable[[CommandBuilderSession], str]] = {
            Action.GET: self._get,
            Action.LOGS: self._logs,
            Action.LOGS_PREVIOUS: self._logs_previous,
            Action.DESCRIBE: self._describe,
            Action.TOP: self._top,
            Action.EVENTS: self._events,
            Action.ROLLOUT_STATUS: self._rollout_status,
            Action.ROLLOUT_HISTORY: self._rollout_history,
            Action.DELETE: self._delete,
            Action.RESTART: self._restart,
            Action.SCALE: self._scale,
        }
        missing = set(Action) - set(self._handlers)
        if missing or set(_FETCHERS) != set(ResourceType) or set(_FORMATTERS) != set(ResourceType):
            raise CommandBuilderError(f"Command dispatch tables are incomplete (actions missing: {missing})")

    def open(self, key: SessionKey) -> CommandBuilderSession:
        """Session for a freshly posted builder message."""
        return self.store.get_or_create(key)

    def select_action(self, key: SessionKey, value: str) -> CommandBuilderSession:
        action = self._parse(Action, value, "action")
        session = self.store.get_or_create(key)
        session.action = action
        session.pending_confirmation = action.is_write
        if action is not Action.SCALE:
            session.scale_replicas = None
        return session

    def select_namespace(self, key: SessionKey, value: str) -> CommandBuilderSession:
        if not value:
            raise InvalidSelectionError("Namespace must not be empty.")
        session = self.store.get_or_create(key)
        session.namespace = value
        session.resource_name = None
        return session

    def select_resource_type(self, key: SessionKey, value: str) -> CommandBuilderSession:
        resource_type = self._parse(ResourceType, value, "resource type")
        session = self.store.get_or_create(key)
        session.resource_type = resource_type
        session.resource_name = None
        return session

    def select_resource_name(self, key: SessionKey, value: str) -> CommandBuilderSession:
        """Record the chosen name; ``value`` is an option value from the last rendered name selector."""
        session = self.store.get_or_create(key)
        session.resource_name = session.resolve_candidate(value) if value else None
        return session

    def set_replicas(self, key: SessionKey, value: Union[int, str, None]) -> CommandBuilderSession:
        session = self.store.get_or_create(key)
        session.scale_replicas = self._parse_replicas(value)
        return session

    def cancel(self, key: SessionKey) -> bool:
        """Drop the session. Returns False if there was none."""
        return self.store.pop(key) is not None

    async def list_namespaces(self) -> List[str]:
        try:
            return await asyncio.to_thread(self.reader.get_namespaces)
        except Exception as exc:
            logger.warning(f"Could not list namespaces, using fallback list: {exc}")
            return list(self.fallback_namespaces)

    async def resource_candidates(self, session: CommandBuilderSession) -> List[str]:
        """Names offered for the resource-name selector, once namespace and type are both chosen.

        The list is remembered on the session so a selected option can be mapped back to its name.
        """
        session.candidates = []
        if not session.namespace or session.resource_type is None:
            return []
        fetch = _FETCHERS[session.resource_type]
        scope = None if session.resource_type.cluster_scoped else session.namespace
        try:
            records = await asyncio.to_thread(fetch, self.reader, scope)
        except Exception as exc:
            logger.warning(f"Could not list {session.resource_type.value} in {session.namespace}: {exc}")
            return []
        session.candidates = [record.name for record in records][:CANDIDATE_LIMIT]
        return list(session.candidates)

    async def execute(self, key: SessionKey, replicas: Union[int, str, None] = None) -> CommandOutcome:
        """
        Run the command described by the session under ``key``.

        The session is removed before the cluster is called, so a redelivered
        execute event finds nothing and is rejected.

        Args:
            key: Builder session to execute.
            replicas: Replica count submitted together with the execute event.

        Returns:
            The command literal and its (possibly truncated) output.

        Raises:
            IncompleteCommandError: If a required selection is missing. The
                session is left untouched and no cluster call is made.
            InvalidSelectionError: If ``replicas`` is not a non-negative integer.
        """
        session = self.store.get(key)
        if session is None or session.action is None or not session.namespace or session.resource_type is None:
            raise IncompleteCommandError(MISSING_SELECTION)

        if replicas is not None and replicas != "":
            session.scale_replicas = self._parse_replicas(replicas)
        if session.action is Action.SCALE and session.scale_replicas is None:
            raise IncompleteCommandError(MISSING_REPLICAS)

        self.store.pop(key)
        command = session.command_literal()
        if session.is_write:
            logger.warning(f"Executing WRITE command: {command}")
        else:
            logger.info(f"Executing builder command: {command}")

        try:
            output = await asyncio.to_thread(self._handlers[session.action], session)
        except KubeAssistantError as exc:
            output = f"Error: {exc}"
        except Exception as exc:
            logger.error(f"Builder command failed: {command}", exc_info=True)
            output = f"Error: {exc}"

        return CommandOutcome(command=command, output=truncate_output(output), session=session)

    def _get(self, session: CommandBuilderSession) -> str:
        resource_type = session.resource_type
        records = _FETCHERS[resource_type](self.reader, session.namespace)
        return _FORMATTERS[resource_type](records)

    def _logs(self, session: CommandBuilderSession) -> str:
        if not session.resource_name:
            return "Pod name required for logs"
        if session.resource_type is not ResourceType.PODS:
            return "Logs only work with pods"
        return self.reader.get_pod_logs(session.resource_name, session.namespace, tail_lines=LOG_TAIL_LINES)

    def _logs_previous(self, session: CommandBuilderSession) -> str:
        if not session.resource_name:
            return "Pod name required for previous logs"
        if session.resource_type is not ResourceType.PODS:
            return "Previous logs only work with pods"
        return self.reader.get_previous_pod_logs(
            session.resource_name, session.namespace, tail_lines=LOG_TAIL_LINES
        )

    def _describe(self, session: CommandBuilderSession) -> str:
        if not session.resource_name:
            return "Resource name required"
        describe = _DESCRIBERS.get(session.resource_type)
        if describe is None:
            return f"Describe not supported for: {session.resource_type.value}"
        return describe(self.reader, session.resource_name, session.namespace)

    def _top(self, session: CommandBuilderSession) -> str:
        return formatting.format_metrics(self.reader.get_pod_metrics(session.namespace))

    def _events(self, session: CommandBuilderSession) -> str:
        events = self.reader.get_events(session.namespace)
        return formatting.format_events(events, limit=EVENTS_SHOWN, with_count=False)

    def _rollout_status(self, session: CommandBuilderSession) -> str:
        rejection = self._require_deployment(session, "Rollout status")
        if rejection:
            return rejection
        return self.reader.get_rollout_status(session.resource_name, session.namespace)

    def _rollout_history(self, session: CommandBuilderSession) -> str:
        rejection = self._require_deployment(session, "Rollout history")
        if rejection:
            return rejection
        revisions = self.reader.get_rollout_history(session.resource_name, session.namespace)
        return formatting.format_rollout_history(session.resource_name, revisions)

    def _delete(self, session: CommandBuilderSession) -> str:
        if not session.resource_name:
            return "Resource name required for delete"
        delete = _DELETERS.get(session.resource_type)
        if delete is None:
            return f"Delete not supported for: {session.resource_type.value}"
        return delete(self.writer, session.resource_name, session.namespace)

    def _restart(self, session: CommandBuilderSession) -> str:
        rejection = self._require_deployment(session, "Restart", verb="restart")
        if rejection:
            return rejection
        return self.writer.restart_deployment(session.resource_name, session.namespace)

    def _scale(self, session: CommandBuilderSession) -> str:
        rejection = self._require_deployment(session, "Scale", verb="scale")
        if rejection:
            return rejection
        return self.writer.scale_deployment(session.resource_name, session.namespace, session.scale_replicas)

    @staticmethod
    def _require_deployment(session: CommandBuilderSession, operation: str, verb: str = "") -> Optional[str]:
        if not session.resource_name:
            return f"Deployment name required for {verb}" if verb else "Deployment name required"
        if session.resource_type is not ResourceType.DEPLOYMENTS:
            return f"{operation} only works with deployments"
        return None

    @staticmethod
    def _parse(enum_type, value: str, what: str):
        try:
            return enum_type(value)
        except ValueError:
            raise InvalidSelectionError(f"Unknown {what}: {value!r}") from None

    @staticmethod
    def _parse_replicas(value: Union[int, str, None]) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            replicas = int(value)
        except (TypeError, ValueError):
            raise InvalidSelectionError(f"Replica count must be a whole number, got {value!r}") from None
        if replicas < 0:
            raise InvalidSelectionError("Replica count must not be negative.")
        return replicas
