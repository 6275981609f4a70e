"""HTTP proxy component, one per proxy role."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator
from cluster_orchestrator.models.instance import HttpProxiesSpec


class HttpProxy(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        spec: HttpProxiesSpec,
        master: Component,
    ):
        self.role = spec.role
        labeller = view.labeller(consts.HTTP_PROXY_LABEL, "HttpProxy", spec.role)
        server = Server(
            labeller,
            accessor,
            view.resource,
            spec,
            "/usr/bin/ytserver-http-proxy",
            "ytserver-http-proxy.yaml",
            consts.HTTP_PROXY_STATEFULSET,
            consts.HTTP_PROXY_SERVICE,
            lambda: cfgen.get_http_proxy_config(spec.role),
        )
        super().__init__(view, server, [master])
