"""Read/write access to the infrastructure objects that realize components.

Objects are plain Kubernetes manifest dictionaries. Writes are conditional on
``metadata.resourceVersion`` when the caller carries one, and the
server-owned ``status`` section is never overwritten by a write.
"""

import copy
from dataclasses import dataclass
from typing import Any, Protocol

from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import AccessorError, ConflictError
from cluster_orchestrator.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ObjectRef:
    """Identity of a managed object within the accessor's namespace."""

    kind: str
    name: str

    @classmethod
    def of(cls, obj: dict[str, Any]) -> "ObjectRef":
        return cls(kind=obj["kind"], name=obj["metadata"]["name"])

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"


class ResourceAccessor(Protocol):
    """Narrow interface the core uses to reach the external store."""

    def fetch(self, ctx: CallContext, ref: ObjectRef) -> tuple[dict[str, Any] | None, bool]: ...

    def create_or_update(self, ctx: CallContext, obj: dict[str, Any]) -> dict[str, Any]: ...

    def exists(self, ctx: CallContext, ref: ObjectRef) -> bool: ...


class InMemoryAccessor:
    """Accessor keeping objects in process memory.

    Behaves like the API server for the parts the orchestrator relies on:
    resource versions, conflicts on stale writes, and a status section that
    only ``set_status`` may change.
    """

    def __init__(self):
        self._objects: dict[ObjectRef, dict[str, Any]] = {}
        self._version = 0
        self.writes: list[dict[str, Any]] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None

    def fetch(self, ctx: CallContext, ref: ObjectRef) -> tuple[dict[str, Any] | None, bool]:
        ctx.check()
        if self.read_error is not None:
            raise AccessorError(f"Failed to read {ref}", str(self.read_error))
        stored = self._objects.get(ref)
        if stored is None:
            return None, False
        return copy.deepcopy(stored), True

    def exists(self, ctx: CallContext, ref: ObjectRef) -> bool:
        _, found = self.fetch(ctx, ref)
        return found

    def create_or_update(self, ctx: CallContext, obj: dict[str, Any]) -> dict[str, Any]:
        ctx.check()
        ref = ObjectRef.of(obj)
        if self.write_error is not None:
            raise AccessorError(f"Failed to write {ref}", str(self.write_error))

        stored = self._objects.get(ref)
        expected = obj["metadata"].get("resourceVersion")
        if stored is None and expected is not None:
            raise ConflictError(f"Cannot update {ref}: object no longer exists")
        if stored is not None and expected != stored["metadata"]["resourceVersion"]:
            raise ConflictError(
                f"Cannot update {ref}: resource version {expected} is stale",
                f"Stored version is {stored['metadata']['resourceVersion']}",
            )

        self._version += 1
        new = copy.deepcopy(obj)
        new["metadata"]["resourceVersion"] = str(self._version)
        new.pop("status", None)
        if stored is not None and "status" in stored:
            new["status"] = stored["status"]

        self._objects[ref] = new
        self.writes.append(copy.deepcopy(new))
        logger.debug(f"Stored {ref} at version {self._version}")
        return copy.deepcopy(new)

    def get(self, ref: ObjectRef) -> dict[str, Any] | None:
        """Return a copy of the stored object, bypassing any context checks."""
        stored = self._objects.get(ref)
        return copy.deepcopy(stored) if stored is not None else None

    def objects(self, kind: str | None = None) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(obj)
            for ref, obj in sorted(self._objects.items(), key=lambda item: str(item[0]))
            if kind is None or ref.kind == kind
        ]

    def set_status(self, ref: ObjectRef, **fields: Any) -> None:
        """Update the server-owned status of an object, as a controller would."""
        stored = self._objects[ref]
        stored.setdefault("status", {}).update(fields)

    def delete(self, ref: ObjectRef) -> None:
        self._objects.pop(ref, None)

    def settle(self) -> None:
        """Bring every workload set's pods to its desired replica count.

        Stands in for the workload controller when running without a real
        cluster.
        """
        for ref, stored in self._objects.items():
            if ref.kind != "StatefulSet":
                continue
            replicas = stored.get("spec", {}).get("replicas", 0)
            self.set_status(ref, replicas=replicas, readyReplicas=replicas)


class KubernetesAccessor:
    """Accessor backed by the Kubernetes API."""

    # kind -> (api attribute, read, create, replace)
    _OPERATIONS = {
        "StatefulSet": (
            "apps",
            "read_namespaced_stateful_set",
            "create_namespaced_stateful_set",
            "replace_namespaced_stateful_set",
        ),
        "Service": (
            "core",
            "read_namespaced_service",
            "create_namespaced_service",
            "replace_namespaced_service",
        ),
        "ConfigMap": (
            "core",
            "read_namespaced_config_map",
            "create_namespaced_config_map",
            "replace_namespaced_config_map",
        ),
    }

    def __init__(self, namespace: str, api_client=None):
        """Initialize the accessor.

        Args:
            namespace: Namespace holding the managed objects
            api_client: Optional kubernetes ApiClient; the default client
                configuration is used when omitted
        """
        from kubernetes import client

        self.namespace = namespace
        self.api_client = api_client or client.ApiClient()
        self.apps = client.AppsV1Api(self.api_client)
        self.core = client.CoreV1Api(self.api_client)

    def _operations(self, kind: str):
        if kind not in self._OPERATIONS:
            raise AccessorError(f"Unsupported object kind: {kind}")
        api_name, read, create, replace = self._OPERATIONS[kind]
        api = getattr(self, api_name)
        return getattr(api, read), getattr(api, create), getattr(api, replace)

    def fetch(self, ctx: CallContext, ref: ObjectRef) -> tuple[dict[str, Any] | None, bool]:
        from kubernetes.client.rest import ApiException

        ctx.check()
        read, _, _ = self._operations(ref.kind)
        try:
            obj = read(ref.name, self.namespace)
        except ApiException as e:
            if e.status == 404:
                return None, False
            logger.error(f"Failed to read {ref}: {e.reason}")
            raise AccessorError(f"Failed to read {ref}", f"HTTP {e.status}: {e.reason}")

        data = self.api_client.sanitize_for_serialization(obj)
        data.setdefault("kind", ref.kind)
        return data, True

    def exists(self, ctx: CallContext, ref: ObjectRef) -> bool:
        _, found = self.fetch(ctx, ref)
        return found

    def create_or_update(self, ctx: CallContext, obj: dict[str, Any]) -> dict[str, Any]:
        from kubernetes.client.rest import ApiException

        ctx.check()
        ref = ObjectRef.of(obj)
        _, create, replace = self._operations(ref.kind)
        try:
            if obj["metadata"].get("resourceVersion"):
                result = replace(ref.name, self.namespace, body=obj)
            else:
                result = create(self.namespace, body=obj)
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(f"Conflict writing {ref}", e.reason)
            logger.error(f"Failed to write {ref}: {e.reason}")
            raise AccessorError(f"Failed to write {ref}", f"HTTP {e.status}: {e.reason}")

        data = self.api_client.sanitize_for_serialization(result)
        data.setdefault("kind", ref.kind)
        return data
