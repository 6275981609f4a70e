"""Object naming and labelling for one component."""

from dataclasses import dataclass

from cluster_orchestrator import consts


@dataclass(frozen=True)
class Labeller:
    """Derives every object name and label of a component.

    Attributes:
        cluster_name: Name of the cluster manifest
        namespace: Namespace the objects live in
        component_label: Short role label, e.g. "yt-master"
        component_name: Human-readable component name, e.g. "PrimaryMaster"
        instance_group: Proxy role or node group; "default" adds no suffix
    """

    cluster_name: str
    namespace: str
    component_label: str
    component_name: str
    instance_group: str = "default"

    def _suffix(self) -> str:
        if self.instance_group == "default":
            return ""
        return f"-{self.instance_group}"

    def get_full_component_name(self) -> str:
        return f"{self.component_name}{self._suffix()}"

    def get_full_component_label(self) -> str:
        return f"{self.component_label}{self._suffix()}"

    def get_object_name(self, short_name: str) -> str:
        return f"{short_name}{self._suffix()}"

    def get_main_config_map_name(self) -> str:
        return f"{self.get_full_component_label()}-config"

    def get_monitoring_service_name(self) -> str:
        return f"{self.get_full_component_label()}-monitoring"

    def get_pods_removed_condition(self) -> str:
        return f"{self.get_full_component_name()}PodsRemoved"

    def get_selector_labels(self) -> dict[str, str]:
        return {
            consts.APP_LABEL: "ytsaurus",
            consts.INSTANCE_LABEL: self.cluster_name,
            consts.COMPONENT_LABEL: self.get_full_component_label(),
        }

    def get_labels(self) -> dict[str, str]:
        labels = self.get_selector_labels()
        labels[consts.MANAGED_BY_LABEL] = consts.MANAGED_BY
        return labels

    def get_object_meta(self, name: str) -> dict:
        return {"name": name, "namespace": self.namespace, "labels": self.get_labels()}

    def get_pod_fqdns(self, stateful_set_name: str, service_name: str, count: int) -> list[str]:
        """FQDNs of the pods of a workload set behind a headless service."""
        return [
            f"{stateful_set_name}-{i}.{service_name}.{self.namespace}.svc.cluster.local"
            for i in range(count)
        ]
