"""Exec node component, one per node group.

Exec nodes run user jobs, so they are drained with a termination grace
period before their pods are removed during an update.
"""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator
from cluster_orchestrator.models.instance import ExecNodesSpec


class ExecNode(Component):
    drainable = True

    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        spec: ExecNodesSpec,
        master: Component,
    ):
        labeller = view.labeller(consts.EXEC_NODE_LABEL, "ExecNode", spec.name)
        server = Server(
            labeller,
            accessor,
            view.resource,
            spec,
            "/usr/bin/ytserver-node",
            "ytserver-exec-node.yaml",
            consts.EXEC_NODE_STATEFULSET,
            consts.EXEC_NODE_SERVICE,
            lambda: cfgen.get_exec_node_config(spec.name),
        )
        super().__init__(view, server, [master])
