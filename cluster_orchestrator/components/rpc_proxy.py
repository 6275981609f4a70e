"""RPC proxy component, one per proxy role."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator
from cluster_orchestrator.models.instance import RpcProxiesSpec


class RpcProxy(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        spec: RpcProxiesSpec,
        master: Component,
    ):
        self.role = spec.role
        labeller = view.labeller(consts.RPC_PROXY_LABEL, "RpcProxy", spec.role)
        server = Server(
            labeller,
            accessor,
            view.resource,
            spec,
            "/usr/bin/ytserver-proxy",
            "ytserver-rpc-proxy.yaml",
            consts.RPC_PROXY_STATEFULSET,
            consts.RPC_PROXY_SERVICE,
            lambda: cfgen.get_rpc_proxy_config(spec.role),
        )
        super().__init__(view, server, [master])
