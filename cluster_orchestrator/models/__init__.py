"""Data models for cluster manifests and lifecycle state."""

from cluster_orchestrator.models.cluster import (
    ClusterRecord,
    ClusterResource,
    ClusterSpec,
    ClusterState,
    UpdateState,
    is_ready_to_update,
)
from cluster_orchestrator.models.instance import (
    DataNodesSpec,
    ExecNodesSpec,
    HttpProxiesSpec,
    InstanceSpec,
    LocationSpec,
    LoggerSpec,
    MastersSpec,
    RpcProxiesSpec,
    UISpec,
    VolumeMountSpec,
)

__all__ = [
    "ClusterRecord",
    "ClusterResource",
    "ClusterSpec",
    "ClusterState",
    "UpdateState",
    "is_ready_to_update",
    "DataNodesSpec",
    "ExecNodesSpec",
    "HttpProxiesSpec",
    "InstanceSpec",
    "LocationSpec",
    "LoggerSpec",
    "MastersSpec",
    "RpcProxiesSpec",
    "UISpec",
    "VolumeMountSpec",
]
