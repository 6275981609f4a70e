"""Data node component, one per node group."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator
from cluster_orchestrator.models.instance import DataNodesSpec


class DataNode(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        spec: DataNodesSpec,
        master: Component,
    ):
        labeller = view.labeller(consts.DATA_NODE_LABEL, "DataNode", spec.name)
        server = Server(
            labeller,
            accessor,
            view.resource,
            spec,
            "/usr/bin/ytserver-node",
            "ytserver-data-node.yaml",
            consts.DATA_NODE_STATEFULSET,
            consts.DATA_NODE_SERVICE,
            lambda: cfgen.get_data_node_config(spec.name),
        )
        super().__init__(view, server, [master])
