"""Cluster components and the factory building them from a manifest."""

from graphlib import CycleError, TopologicalSorter

from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.controller_agent import ControllerAgent
from cluster_orchestrator.components.data_node import DataNode
from cluster_orchestrator.components.discovery import Discovery
from cluster_orchestrator.components.exec_node import ExecNode
from cluster_orchestrator.components.http_proxy import HttpProxy
from cluster_orchestrator.components.master import PrimaryMaster
from cluster_orchestrator.components.rpc_proxy import RpcProxy
from cluster_orchestrator.components.scheduler import Scheduler
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.components.status import (
    Action,
    ComponentStatus,
    Decision,
    SyncStatus,
    is_running_status,
)
from cluster_orchestrator.components.ui import UI
from cluster_orchestrator.configgen import ConfigGenerator
from cluster_orchestrator.exceptions import InvariantViolation

__all__ = [
    "Action",
    "ClusterView",
    "Component",
    "ComponentStatus",
    "ControllerAgent",
    "DataNode",
    "Decision",
    "Discovery",
    "ExecNode",
    "HttpProxy",
    "PrimaryMaster",
    "RpcProxy",
    "Scheduler",
    "Server",
    "SyncStatus",
    "UI",
    "build_components",
    "is_running_status",
    "topological_order",
]


def topological_order(components: list[Component]) -> list[Component]:
    """Order components so that every dependency precedes its dependents.

    Components without a mutual dependency keep their relative order.

    Raises:
        InvariantViolation: If the dependency graph has a cycle
    """
    by_name = {component.get_name(): component for component in components}
    sorter = TopologicalSorter()
    for component in components:
        sorter.add(
            component.get_name(),
            *(dep.get_name() for dep in component.dependencies if dep.get_name() in by_name),
        )
    try:
        sorter.prepare()
    except CycleError as e:
        raise InvariantViolation("Component dependency cycle", str(e.args[1]))

    position = {component.get_name(): i for i, component in enumerate(components)}
    ordered = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=position.__getitem__)
        ordered.extend(by_name[name] for name in ready)
        sorter.done(*ready)
    return ordered


def build_components(
    view: ClusterView, accessor: ResourceAccessor, cfgen: ConfigGenerator | None = None
) -> list[Component]:
    """Construct every component the manifest declares, dependencies first."""
    spec = view.resource.spec
    cfgen = cfgen or ConfigGenerator(view.resource)

    discovery = Discovery(view, accessor, cfgen)
    master = PrimaryMaster(view, accessor, cfgen)
    components: list[Component] = [discovery, master]

    http_proxies = [HttpProxy(view, accessor, cfgen, p, master) for p in spec.http_proxies]
    rpc_proxies = [RpcProxy(view, accessor, cfgen, p, master) for p in spec.rpc_proxies]
    data_nodes = [DataNode(view, accessor, cfgen, n, master) for n in spec.data_nodes]
    exec_nodes = [ExecNode(view, accessor, cfgen, n, master) for n in spec.exec_nodes]
    components.extend([*http_proxies, *rpc_proxies, *data_nodes, *exec_nodes])

    if spec.schedulers is not None:
        components.append(Scheduler(view, accessor, cfgen, master, exec_nodes))
    if spec.controller_agents is not None:
        components.append(ControllerAgent(view, accessor, cfgen, master, exec_nodes))
    if spec.ui is not None:
        default_proxy = next(
            (p for p in http_proxies if p.role == "default"),
            http_proxies[0] if http_proxies else None,
        )
        components.append(UI(view, accessor, cfgen, master, default_proxy))

    return topological_order(components)
