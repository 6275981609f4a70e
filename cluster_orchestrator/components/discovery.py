"""Discovery service component."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator


class Discovery(Component):
    # Restarting discovery disturbs every role, so it only joins full updates.
    updatable = False

    def __init__(self, view: ClusterView, accessor: ResourceAccessor, cfgen: ConfigGenerator):
        labeller = view.labeller(consts.DISCOVERY_LABEL, "Discovery")
        server = Server(
            labeller,
            accessor,
            view.resource,
            view.resource.spec.discovery,
            "/usr/bin/ytserver-discovery",
            "ytserver-discovery.yaml",
            consts.DISCOVERY_STATEFULSET,
            consts.DISCOVERY_SERVICE,
            cfgen.get_discovery_config,
        )
        super().__init__(view, server)
