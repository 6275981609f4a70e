"""Data models for per-role instance specifications."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LOCATION_TYPES = [
    "MasterChangelogs",
    "MasterSnapshots",
    "ChunkStore",
    "ChunkCache",
    "Slots",
    "Logs",
    "ImageCache",
]


class SpecModel(BaseModel):
    """Base for manifest models: accepts camelCase keys and snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationSpec(SpecModel):
    """Storage location the role expects to find on disk."""

    location_type: str
    path: str

    @field_validator("location_type")
    @classmethod
    def validate_location_type(cls, v: str) -> str:
        """Validate location type is one of the known kinds."""
        if v not in LOCATION_TYPES:
            raise ValueError(f"locationType must be one of {LOCATION_TYPES}, got '{v}'")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"location path '{v}' must be absolute")
        return v


class VolumeMountSpec(SpecModel):
    """Container volume mount."""

    name: str
    mount_path: str
    read_only: bool = False

    def to_manifest(self) -> dict[str, Any]:
        mount = {"name": self.name, "mountPath": self.mount_path}
        if self.read_only:
            mount["readOnly"] = True
        return mount


class LoggerSpec(SpecModel):
    """Log writer of the managed process."""

    name: str
    min_log_level: str = "info"
    writer_type: str = "file"
    compression: str | None = None
    rotation_policy: dict[str, Any] | None = None
    categories_filter: dict[str, Any] | None = None

    @field_validator("writer_type")
    @classmethod
    def validate_writer_type(cls, v: str) -> str:
        allowed = ["file", "stderr"]
        if v not in allowed:
            raise ValueError(f"writerType must be one of {allowed}, got '{v}'")
        return v

    @field_validator("min_log_level")
    @classmethod
    def validate_min_log_level(cls, v: str) -> str:
        allowed = ["trace", "debug", "info", "warning", "error"]
        if v not in allowed:
            raise ValueError(f"minLogLevel must be one of {allowed}, got '{v}'")
        return v


class InstanceSpec(SpecModel):
    """Shape of one role's workload set.

    Volumes, claim templates, affinity and tolerations are kept as raw
    Kubernetes manifests and copied into the built workload unchanged.
    """

    instance_count: int = 1
    image: str | None = None
    resources: dict[str, Any] = Field(default_factory=dict)
    volumes: list[dict[str, Any]] = Field(default_factory=list)
    volume_mounts: list[VolumeMountSpec] = Field(default_factory=list)
    volume_claim_templates: list[dict[str, Any]] = Field(default_factory=list)
    locations: list[LocationSpec] = Field(default_factory=list)
    loggers: list[LoggerSpec] = Field(default_factory=list)
    affinity: dict[str, Any] | None = None
    node_selector: dict[str, str] = Field(default_factory=dict)
    tolerations: list[dict[str, Any]] = Field(default_factory=list)
    monitoring_port: int = 10010

    @field_validator("instance_count")
    @classmethod
    def validate_instance_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError("instanceCount cannot be negative")
        return v

    @field_validator("volume_claim_templates")
    @classmethod
    def validate_volume_claim_templates(cls, v: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Validate every claim template carries a name."""
        for template in v:
            if not (template.get("metadata") or {}).get("name"):
                raise ValueError("volumeClaimTemplates entries need metadata.name")
        return v

    def locations_of(self, location_type: str) -> list[LocationSpec]:
        return [loc for loc in self.locations if loc.location_type == location_type]


class MastersSpec(InstanceSpec):
    cell_tag: int = 1


class TransportSpec(SpecModel):
    https_secret: dict[str, str] | None = None


class HttpProxiesSpec(InstanceSpec):
    role: str = "default"
    service_type: str = "ClusterIP"
    transport: TransportSpec = Field(default_factory=TransportSpec)


class RpcProxiesSpec(InstanceSpec):
    role: str = "default"
    service_type: str | None = None


class DataNodesSpec(InstanceSpec):
    name: str = "default"


class ExecNodesSpec(InstanceSpec):
    name: str = "default"


class UISpec(InstanceSpec):
    service_type: str = "ClusterIP"
