"""Managed server: the infrastructure objects realizing one component."""

import copy
import posixpath
import shlex
from typing import Any

from cluster_orchestrator import consts
from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components.config_helper import ConfigHelper
from cluster_orchestrator.configgen import GeneratorFunc
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import ConfigError, InvariantViolation
from cluster_orchestrator.labeller import Labeller
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.models.cluster import ClusterResource
from cluster_orchestrator.models.instance import InstanceSpec, LocationSpec
from cluster_orchestrator.resources import (
    HeadlessService,
    MonitoringService,
    StatefulSet,
    all_exist,
    fetch_all,
    sync_all,
)

logger = get_logger(__name__)


def get_location_init_command(locations: list[LocationSpec]) -> str:
    """Shell command creating every declared location before the server starts."""
    if not locations:
        return "true"
    return " && ".join(f"mkdir -p {shlex.quote(location.path)}" for location in locations)


def create_volumes(volumes: list[dict[str, Any]], config_map_name: str) -> list[dict[str, Any]]:
    result = copy.deepcopy(volumes)
    result.append({"name": consts.CONFIG_VOLUME_NAME, "configMap": {"name": config_map_name}})
    return result


def create_volume_mounts(instance_spec: InstanceSpec) -> list[dict[str, Any]]:
    mounts = [mount.to_manifest() for mount in instance_spec.volume_mounts]
    mounts.append({"name": consts.CONFIG_VOLUME_NAME, "mountPath": consts.CONFIG_MOUNT_POINT})
    return mounts


class Server:
    """A typical cluster server role, like master or scheduler.

    Owns a workload set, a headless service, a monitoring service and a
    config artifact, and decides from their observed state whether the role
    needs to be synced or recreated.
    """

    def __init__(
        self,
        labeller: Labeller,
        accessor: ResourceAccessor,
        resource: ClusterResource,
        instance_spec: InstanceSpec,
        binary_path: str,
        config_file_name: str,
        statefulset_name: str,
        service_name: str,
        generator: GeneratorFunc,
        default_image: str | None = None,
    ):
        self.labeller = labeller
        self.resource = resource
        self.instance_spec = instance_spec
        self.binary_path = binary_path
        self.image = instance_spec.image or default_image or resource.spec.core_image

        self.stateful_set = StatefulSet(labeller.get_object_name(statefulset_name), labeller, accessor)
        self.headless_service = HeadlessService(labeller.get_object_name(service_name), labeller, accessor)
        self.monitoring_service = MonitoringService(labeller, accessor, instance_spec.monitoring_port)
        overrides = resource.spec.config_overrides
        self.config_helper = ConfigHelper(
            labeller,
            accessor,
            labeller.get_main_config_map_name(),
            config_file_name,
            overrides.name if overrides else None,
            generator,
        )
        self._built_stateful_set: dict[str, Any] | None = None

    def _resources(self) -> list:
        return [self.stateful_set, self.config_helper, self.headless_service, self.monitoring_service]

    def fetch(self, ctx: CallContext) -> None:
        fetch_all(ctx, self._resources())

    @property
    def config_error(self) -> ConfigError | None:
        return self.config_helper.error

    def exists(self) -> bool:
        return all_exist(self.stateful_set, self.headless_service, self.monitoring_service)

    def need_sync(self) -> bool:
        return (
            self.config_helper.need_sync()
            or not self.exists()
            or self.stateful_set.need_sync(self.instance_spec.instance_count)
        )

    def are_pods_removed(self) -> bool:
        if self.config_helper.need_sync() or not all_exist(self.stateful_set, self.headless_service):
            return False
        return self.stateful_set.are_pods_removed()

    def image_corresponds_to_spec(self) -> bool:
        return self.stateful_set.observed_image() == self.image

    def need_update(self) -> bool:
        # A component that was never created needs creation, not an update.
        if not self.exists():
            return False
        if not self.image_corresponds_to_spec():
            return True
        return self.config_helper.need_reload()

    def are_pods_ready(self, ctx: CallContext) -> bool:
        return self.stateful_set.are_pods_ready()

    def sync(self, ctx: CallContext) -> None:
        if ctx.read_only:
            raise InvariantViolation(
                f"Attempted to write {self.labeller.get_full_component_name()} during a dry run"
            )
        self.config_helper.build()
        self.headless_service.build()
        self.monitoring_service.build()
        self.build_stateful_set()
        logger.info(f"Syncing objects of {self.labeller.get_full_component_name()}")
        sync_all(ctx, self._resources())

    def remove_pods(self, ctx: CallContext, grace_period: int | None = None) -> None:
        """Scale the workload set to zero, optionally with a drain grace period."""
        statefulset = self.rebuild_stateful_set()
        statefulset["spec"]["replicas"] = 0
        if grace_period is not None:
            statefulset["spec"]["template"]["spec"]["terminationGracePeriodSeconds"] = grace_period
        self.sync(ctx)

    def build_stateful_set(self) -> dict[str, Any]:
        if self._built_stateful_set is not None:
            return self._built_stateful_set
        return self.rebuild_stateful_set()

    def rebuild_stateful_set(self) -> dict[str, Any]:
        spec = self.instance_spec
        volume_mounts = create_volume_mounts(spec)
        config_path = posixpath.join(consts.CONFIG_MOUNT_POINT, self.config_helper.get_file_name())

        statefulset = self.stateful_set.build()
        statefulset["spec"]["replicas"] = spec.instance_count
        statefulset["spec"]["serviceName"] = self.headless_service.name()
        statefulset["spec"]["volumeClaimTemplates"] = copy.deepcopy(spec.volume_claim_templates)

        pod_spec: dict[str, Any] = {
            "imagePullSecrets": copy.deepcopy(self.resource.spec.image_pull_secrets),
            "setHostnameAsFQDN": True,
            "containers": [
                {
                    "image": self.image,
                    "name": consts.SERVER_CONTAINER_NAME,
                    "command": [self.binary_path, "--config", config_path],
                    "volumeMounts": volume_mounts,
                    "resources": copy.deepcopy(spec.resources),
                }
            ],
            "initContainers": [
                {
                    "image": self.image,
                    "name": consts.PREPARE_LOCATIONS_CONTAINER_NAME,
                    "command": ["bash", "-c", get_location_init_command(spec.locations)],
                    "volumeMounts": copy.deepcopy(volume_mounts),
                }
            ],
            "volumes": create_volumes(spec.volumes, self.labeller.get_main_config_map_name()),
        }
        if spec.affinity:
            pod_spec["affinity"] = copy.deepcopy(spec.affinity)
        if spec.node_selector:
            pod_spec["nodeSelector"] = dict(spec.node_selector)
        if spec.tolerations:
            pod_spec["tolerations"] = copy.deepcopy(spec.tolerations)

        statefulset["spec"]["template"]["spec"] = pod_spec
        self._built_stateful_set = statefulset
        return statefulset
