"""Web UI component."""

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.base import ClusterView, Component
from cluster_orchestrator.components.server import Server
from cluster_orchestrator.configgen import ConfigGenerator


class UI(Component):
    def __init__(
        self,
        view: ClusterView,
        accessor: ResourceAccessor,
        cfgen: ConfigGenerator,
        master: Component,
        http_proxy: Component | None,
    ):
        labeller = view.labeller(consts.UI_LABEL, "UI")
        server = Server(
            labeller,
            accessor,
            view.resource,
            view.resource.spec.ui,
            "/opt/app/run.sh",
            "clusters-config.yaml",
            consts.UI_STATEFULSET,
            consts.UI_SERVICE,
            cfgen.get_ui_config,
            default_image=view.resource.spec.ui_image,
        )
        dependencies = [master] if http_proxy is None else [master, http_proxy]
        super().__init__(view, server, dependencies)
