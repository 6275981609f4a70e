"""Config artifact of a component: a config map holding one rendered file."""

import hashlib
from typing import Any

from cluster_orchestrator.accessor import ObjectRef, ResourceAccessor
from cluster_orchestrator.configgen import GeneratorFunc, needs_reload
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import ConfigError
from cluster_orchestrator.labeller import Labeller
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.resources import BaseResource

logger = get_logger(__name__)

CHECKSUM_ANNOTATION = "cluster-orchestrator/config-checksum"


class ConfigHelper(BaseResource):
    """Keeps the deployed config map in line with the generated payload.

    The payload is generated when the observed state is adopted. A
    generation failure is captured in ``error`` instead of being raised, so
    the owning component can report it as its status reason.
    """

    kind = "ConfigMap"

    def __init__(
        self,
        labeller: Labeller,
        accessor: ResourceAccessor,
        name: str,
        file_name: str,
        overrides_name: str | None,
        generator: GeneratorFunc,
    ):
        super().__init__(name, labeller, accessor)
        self.file_name = file_name
        self.overrides_name = overrides_name
        self.generator = generator
        self.desired: str | None = None
        self.error: ConfigError | None = None

    def get_file_name(self) -> str:
        return self.file_name

    def read(self, ctx: CallContext) -> tuple:
        observed, exists = self.accessor.fetch(ctx, self.ref())
        overrides = None
        if self.overrides_name:
            overrides, _ = self.accessor.fetch(ctx, ObjectRef("ConfigMap", self.overrides_name))
        return observed, exists, overrides

    def adopt(self, result: tuple) -> None:
        observed, exists, overrides = result
        self._observed, self._exists = observed, exists
        self.desired, self.error = None, None

        override = ((overrides or {}).get("data") or {}).get(self.file_name)
        if override is not None:
            logger.debug(f"Using override for {self.file_name} from {self.overrides_name}")
            self.desired = override
            return

        try:
            self.desired = self.generator()
        except ConfigError as e:
            logger.warning(f"Failed to generate {self.file_name}: {e.message}")
            self.error = e

    def deployed_payload(self) -> str | None:
        return (self.old_object().get("data") or {}).get(self.file_name)

    def need_sync(self) -> bool:
        if self.error is not None:
            return True
        return not self._exists or self.deployed_payload() != self.desired

    def need_reload(self) -> bool:
        if self.error is not None or not self._exists:
            return False
        return needs_reload(self.deployed_payload(), self.desired)

    def build(self) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        config_map = super().build()
        checksum = hashlib.sha256(self.desired.encode()).hexdigest()
        config_map["metadata"]["annotations"] = {CHECKSUM_ANNOTATION: checksum}
        config_map["data"] = {self.file_name: self.desired}
        return config_map
