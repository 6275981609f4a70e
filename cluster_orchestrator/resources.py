"""Wrappers around the individual infrastructure objects of a component."""

import copy
from typing import Any, Iterable

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ObjectRef, ResourceAccessor
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.labeller import Labeller


class BaseResource:
    """One managed object: its observed copy and the last built desired copy."""

    kind = ""
    api_version = "v1"

    def __init__(self, name: str, labeller: Labeller, accessor: ResourceAccessor):
        self._name = name
        self.labeller = labeller
        self.accessor = accessor
        self._observed: dict[str, Any] | None = None
        self._exists = False
        self._built: dict[str, Any] | None = None

    def name(self) -> str:
        return self._name

    def ref(self) -> ObjectRef:
        return ObjectRef(self.kind, self._name)

    def read(self, ctx: CallContext) -> tuple:
        return self.accessor.fetch(ctx, self.ref())

    def adopt(self, result: tuple) -> None:
        self._observed, self._exists = result

    def fetch(self, ctx: CallContext) -> None:
        self.adopt(self.read(ctx))

    def exists(self) -> bool:
        return self._exists

    def old_object(self) -> dict[str, Any]:
        return self._observed or {}

    def build(self) -> dict[str, Any]:
        """Start a fresh desired object; subclasses fill in the body."""
        self._built = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.labeller.get_object_meta(self._name),
        }
        return self._built

    def sync(self, ctx: CallContext) -> None:
        """Write the last built object, conditional on the observed version."""
        if self._built is None:
            self.build()
        desired = copy.deepcopy(self._built)
        if self._exists:
            desired["metadata"]["resourceVersion"] = self.old_object()["metadata"].get(
                "resourceVersion"
            )
        self._observed = self.accessor.create_or_update(ctx, desired)
        self._exists = True


class StatefulSet(BaseResource):
    kind = "StatefulSet"
    api_version = "apps/v1"

    def build(self) -> dict[str, Any]:
        statefulset = super().build()
        statefulset["spec"] = {
            "selector": {"matchLabels": self.labeller.get_selector_labels()},
            "template": {
                "metadata": {"labels": self.labeller.get_labels()},
                "spec": {},
            },
            "podManagementPolicy": "Parallel",
        }
        return statefulset

    def desired_replicas(self) -> int:
        return self.old_object().get("spec", {}).get("replicas", 0)

    def need_sync(self, replicas: int) -> bool:
        return not self._exists or self.desired_replicas() != replicas

    def observed_image(self) -> str | None:
        containers = (
            self.old_object().get("spec", {}).get("template", {}).get("spec", {}).get("containers")
        )
        if not containers:
            return None
        return containers[0].get("image")

    def are_pods_ready(self) -> bool:
        if not self._exists:
            return False
        status = self.old_object().get("status") or {}
        desired = self.desired_replicas()
        return (
            status.get("replicas", 0) == desired
            and status.get("readyReplicas", 0) >= desired
        )

    def are_pods_removed(self) -> bool:
        if not self._exists:
            return False
        status = self.old_object().get("status") or {}
        return self.desired_replicas() == 0 and status.get("replicas", 0) == 0


class HeadlessService(BaseResource):
    kind = "Service"

    def build(self) -> dict[str, Any]:
        service = super().build()
        service["spec"] = {
            "clusterIP": "None",
            "publishNotReadyAddresses": True,
            "selector": self.labeller.get_selector_labels(),
        }
        return service


class MonitoringService(BaseResource):
    kind = "Service"

    def __init__(self, labeller: Labeller, accessor: ResourceAccessor, port: int):
        super().__init__(labeller.get_monitoring_service_name(), labeller, accessor)
        self.port = port

    def build(self) -> dict[str, Any]:
        service = super().build()
        service["metadata"]["labels"]["yt_metrics"] = "true"
        service["spec"] = {
            "selector": self.labeller.get_selector_labels(),
            "ports": [
                {
                    "name": consts.MONITORING_PORT_NAME,
                    "port": self.port,
                    "targetPort": self.port,
                    "protocol": "TCP",
                }
            ],
        }
        return service


def fetch_all(ctx: CallContext, resources: Iterable) -> None:
    """Read every resource, then adopt the results only if all reads succeeded."""
    resources = list(resources)
    results = [resource.read(ctx) for resource in resources]
    for resource, result in zip(resources, results):
        resource.adopt(result)


def sync_all(ctx: CallContext, resources: Iterable) -> None:
    for resource in resources:
        ctx.check()
        resource.sync(ctx)


def all_exist(*resources: BaseResource) -> bool:
    return all(resource.exists() for resource in resources)
