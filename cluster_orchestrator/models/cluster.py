"""Data models for the cluster manifest and its persisted lifecycle record."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator

from cluster_orchestrator.exceptions import ValidationError
from cluster_orchestrator.models.instance import (
    DataNodesSpec,
    ExecNodesSpec,
    HttpProxiesSpec,
    InstanceSpec,
    MastersSpec,
    RpcProxiesSpec,
    SpecModel,
    UISpec,
)

CLUSTER_KIND = "Ytsaurus"
CLUSTER_API_VERSION = "cluster.ytsaurus.tech/v1"


class ClusterState(str, Enum):
    """Macro lifecycle of the cluster."""

    CREATING = "Creating"
    RUNNING = "Running"
    UPDATING = "Updating"
    UPDATED = "Updated"
    CREATION_FAILED = "CreationFailed"


class UpdateState(str, Enum):
    """Step of the update wave while the cluster is Updating."""

    NONE = "None"
    WAITING_FOR_PODS_REMOVAL = "WaitingForPodsRemoval"
    WAITING_FOR_PODS_CREATION = "WaitingForPodsCreation"


def is_ready_to_update(state: ClusterState) -> bool:
    """Whether a new update wave may be started from this state."""
    return state in (ClusterState.RUNNING, ClusterState.UPDATED)


class ObjectReference(SpecModel):
    name: str


class ClusterSpec(SpecModel):
    """Declarative description of the whole cluster."""

    core_image: str
    ui_image: str | None = None
    image_pull_secrets: list[dict[str, str]] = Field(default_factory=list)
    use_ipv6: bool = False
    config_overrides: ObjectReference | None = None
    admin_credentials: ObjectReference | None = None
    enable_full_update: bool = False

    discovery: InstanceSpec = Field(default_factory=InstanceSpec)
    primary_masters: MastersSpec
    http_proxies: list[HttpProxiesSpec] = Field(default_factory=list)
    rpc_proxies: list[RpcProxiesSpec] = Field(default_factory=list)
    data_nodes: list[DataNodesSpec] = Field(default_factory=list)
    exec_nodes: list[ExecNodesSpec] = Field(default_factory=list)
    schedulers: InstanceSpec | None = None
    controller_agents: InstanceSpec | None = None
    ui: UISpec | None = None

    @field_validator("core_image")
    @classmethod
    def validate_core_image(cls, v: str) -> str:
        """Validate core image is not empty."""
        if not v:
            raise ValueError("coreImage cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_unique_groups(self) -> "ClusterSpec":
        """Validate proxy roles and node group names are unique."""
        for field_name, key in [
            ("http_proxies", "role"),
            ("rpc_proxies", "role"),
            ("data_nodes", "name"),
            ("exec_nodes", "name"),
        ]:
            names = [getattr(group, key) for group in getattr(self, field_name)]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"{field_name} has duplicate {key} values: {duplicates}")
        return self


class ClusterRecord(SpecModel):
    """Persisted lifecycle record of one cluster.

    Treated as an immutable value: every transition produces a new record
    through ``model_copy``.
    """

    state: ClusterState = ClusterState.CREATING
    update_state: UpdateState = UpdateState.NONE
    updating_components: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    message: str = ""
    components: dict[str, str] = Field(default_factory=dict)

    def is_updating(self, component_name: str) -> bool:
        return self.state == ClusterState.UPDATING and component_name in self.updating_components

    def with_condition(self, condition: str) -> "ClusterRecord":
        if condition in self.conditions:
            return self
        return self.model_copy(update={"conditions": [*self.conditions, condition]})

    def to_manifest(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ObjectMeta(SpecModel):
    name: str
    namespace: str = "default"
    resource_version: str | None = None


class ClusterResource(SpecModel):
    """A cluster manifest: metadata, spec and last written status."""

    metadata: ObjectMeta
    spec: ClusterSpec
    status: ClusterRecord = Field(default_factory=ClusterRecord)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> "ClusterResource":
        """Parse a manifest dictionary.

        Raises:
            ValidationError: If the manifest does not describe a valid cluster
        """
        from pydantic import ValidationError as PydanticValidationError

        kind = data.get("kind")
        if kind != CLUSTER_KIND:
            raise ValidationError(f"Expected manifest of kind {CLUSTER_KIND}, got {kind!r}")

        try:
            return cls.model_validate(
                {
                    "metadata": data.get("metadata") or {},
                    "spec": data.get("spec") or {},
                    "status": data.get("status") or {},
                }
            )
        except PydanticValidationError as e:
            problems = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                problems.append(f"{field}: {error['msg']}")
            raise ValidationError("Invalid cluster manifest", "\n".join(problems))

    @classmethod
    def load(cls, path: str | Path) -> "ClusterResource":
        """Load the first cluster manifest from a (multi-document) YAML file."""
        import yaml

        manifest_path = Path(path)
        if not manifest_path.exists():
            raise ValidationError(f"Manifest file not found: {manifest_path}")

        try:
            with open(manifest_path) as f:
                documents = [doc for doc in yaml.safe_load_all(f) if doc]
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse manifest file: {manifest_path}", str(e))

        for document in documents:
            if document.get("kind") == CLUSTER_KIND:
                return cls.from_manifest(document)

        raise ValidationError(
            f"No {CLUSTER_KIND} document found in {manifest_path}",
            f"The file contains {len(documents)} document(s) of other kinds",
        )

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": CLUSTER_API_VERSION,
            "kind": CLUSTER_KIND,
            "metadata": self.metadata.model_dump(mode="json", by_alias=True, exclude_none=True),
            "spec": self.spec.model_dump(mode="json", by_alias=True, exclude_none=True),
            "status": self.status.to_manifest(),
        }
