"""Lightweight records returned by the read side of the cluster surface."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClusterRecord(BaseModel):
    """Base for every record: immutable, identified by name."""

    model_config = ConfigDict(frozen=True)

    name: str


class NamespacedRecord(ClusterRecord):
    """Record of a namespaced object."""

    namespace: str

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}/{self.name}"


class ContainerInfo(BaseModel):
    name: str
    ready: bool
    restart_count: int


class PodInfo(NamespacedRecord):
    status: str
    restarts: int
    age: str
    containers: List[ContainerInfo] = Field(default_factory=list)


class EventInfo(BaseModel):
    type: str
    reason: str
    message: str
    involved_object: str
    count: int
    last_timestamp: str


class DeploymentInfo(NamespacedRecord):
    replicas: str
    available: int


class PodMetrics(NamespacedRecord):
    cpu: str
    memory: str


class ServiceInfo(NamespacedRecord):
    type: str
    cluster_ip: str
    ports: str


class ConfigMapInfo(NamespacedRecord):
    data_keys: List[str] = Field(default_factory=list)


class IngressInfo(NamespacedRecord):
    hosts: List[str] = Field(default_factory=list)
    paths: str


class HPAInfo(NamespacedRecord):
    target: str
    min_replicas: int
    max_replicas: int
    current_replicas: int


class ReplicaSetInfo(NamespacedRecord):
    replicas: str
    age: str


class StatefulSetInfo(NamespacedRecord):
    replicas: str
    age: str


class DaemonSetInfo(NamespacedRecord):
    desired: int
    ready: int
    age: str


class JobInfo(NamespacedRecord):
    completions: str
    status: str
    age: str


class CronJobInfo(NamespacedRecord):
    schedule: str
    last_schedule: str
    active: int


class NodeInfo(ClusterRecord):
    status: str
    roles: str
    age: str
    version: str


class PVCInfo(NamespacedRecord):
    status: str
    volume: str
    capacity: str
    storage_class: str


class EndpointsInfo(NamespacedRecord):
    endpoints: str


class SecretInfo(NamespacedRecord):
    """Secret metadata only. Secret values never leave the reader."""

    type: str
    data_keys: int


class RevisionInfo(BaseModel):
    revision: str
    image: str
    age: str
    replica_set: Optional[str] = None
