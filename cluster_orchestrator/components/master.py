"""Primary master component."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator


class PrimaryMaster(Component):
    """Master cell; every other role except discovery depends on it."""

    updatable = False

    def __init__(self, view: ClusterView, accessor: ResourceAccessor, cfgen: ConfigGenerator):
        labeller = view.labeller(consts.MASTER_LABEL, "PrimaryMaster")
        server = Server(
            labeller,
            accessor,
            view.resource,
            view.resource.spec.primary_masters,
            "/usr/bin/ytserver-master",
            "ytserver-master.yaml",
            consts.MASTER_STATEFULSET,
            consts.MASTER_SERVICE,
            cfgen.get_master_config,
        )
        super().__init__(view, server)
