"""Controller agent component."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator


class ControllerAgent(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        master: Component,
        exec_nodes: list[Component],
    ):
        labeller = view.labeller(consts.CONTROLLER_AGENT_LABEL, "ControllerAgent")
        server = Server(
            labeller,
            accessor,
            view.resource,
            view.resource.spec.controller_agents,
            "/usr/bin/ytserver-controller-agent",
            "ytserver-controller-agent.yaml",
            consts.CONTROLLER_AGENT_STATEFULSET,
            consts.CONTROLLER_AGENT_SERVICE,
            cfgen.get_controller_agent_config,
        )
        super().__init__(view, server, [master, *exec_nodes])
