"""Scheduler component."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator


class Scheduler(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        master: Component,
        exec_nodes: list[Component],
    ):
        labeller = view.labeller(consts.SCHEDULER_LABEL, "Scheduler")
        server = Server(
            labeller,
            accessor,
            view.resource,
            view.resource.spec.schedulers,
            "/usr/bin/ytserver-scheduler",
            "ytserver-scheduler.yaml",
            consts.SCHEDULER_STATEFULSET,
            consts.SCHEDULER_SERVICE,
            cfgen.get_scheduler_config,
        )
        super().__init__(view, server, [master, *exec_nodes])
