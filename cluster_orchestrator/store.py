"""Declarative store: where the cluster manifest and its record live.

Status writes are conditional on the resource version read at the start of
the tick, so concurrent edits of the manifest are never clobbered.
"""

import json
from pathlib import Path
from typing import Any, Protocol

from ruamel.yaml import YAML

from cluster_orchestrator.exceptions import ConflictError, StoreError, ValidationError
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.models.cluster import (
    CLUSTER_API_VERSION,
    CLUSTER_KIND,
    ClusterRecord,
    ClusterResource,
)

logger = get_logger(__name__)

CLUSTER_GROUP, CLUSTER_VERSION = CLUSTER_API_VERSION.split("/")
CLUSTER_PLURAL = "ytsaurus"


class ClusterStore(Protocol):
    def load(self) -> ClusterResource: ...

    def save_status(self, resource: ClusterResource, record: ClusterRecord) -> ClusterResource: ...


def _plain(data: Any) -> Any:
    """Convert round-trip YAML containers into plain dicts and lists."""
    return json.loads(json.dumps(data))


class FileClusterStore:
    """Cluster manifest kept in a YAML file, possibly among other documents.

    Comments and formatting of the file are preserved on write.
    """

    def __init__(self, path: str | Path):
        """Initialize the store.

        Args:
            path: Path to the manifest file
        """
        self.path = Path(path)
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.default_flow_style = False
        self.yaml.indent(mapping=2, sequence=4, offset=2)

    def _read_documents(self) -> list:
        if not self.path.exists():
            raise StoreError(
                f"Manifest file not found: {self.path}",
                f"Expected location: {self.path.absolute()}",
            )
        try:
            with open(self.path) as f:
                return [doc for doc in self.yaml.load_all(f) if doc is not None]
        except Exception as e:
            logger.error(f"Failed to read manifest file: {e}")
            raise StoreError(f"Failed to read manifest file: {self.path}", str(e))

    def _find(self, documents: list):
        for document in documents:
            if document.get("kind") == CLUSTER_KIND:
                return document
        raise ValidationError(f"No {CLUSTER_KIND} document found in {self.path}")

    def load(self) -> ClusterResource:
        document = self._find(self._read_documents())
        return ClusterResource.from_manifest(_plain(document))

    def save_status(self, resource: ClusterResource, record: ClusterRecord) -> ClusterResource:
        """Write the record if the file still holds the version that was loaded.

        Raises:
            ConflictError: If the manifest changed since it was loaded
            StoreError: If the file cannot be written
        """
        documents = self._read_documents()
        document = self._find(documents)
        metadata = document.setdefault("metadata", {})

        current = metadata.get("resourceVersion")
        current = str(current) if current is not None else None
        if current != resource.metadata.resource_version:
            raise ConflictError(
                f"Manifest {self.path} changed since it was read",
                f"Read version {resource.metadata.resource_version}, found {current}",
            )

        new_version = str(int(current or 0) + 1)
        metadata["resourceVersion"] = new_version
        document["status"] = record.to_manifest()

        try:
            with open(self.path, "w") as f:
                self.yaml.dump_all(documents, f)
        except OSError as e:
            logger.error(f"Failed to write manifest file: {e}")
            raise StoreError(f"Failed to write manifest file: {self.path}", str(e))

        logger.debug(f"Wrote status of {resource.name} at version {new_version}")
        metadata_update = resource.metadata.model_copy(update={"resource_version": new_version})
        return resource.model_copy(update={"metadata": metadata_update, "status": record})


class KubernetesClusterStore:
    """Cluster manifest kept as a custom object in the Kubernetes API."""

    def __init__(self, name: str, namespace: str, api_client=None):
        from kubernetes import client

        self.name = name
        self.namespace = namespace
        self.api = client.CustomObjectsApi(api_client)

    def load(self) -> ClusterResource:
        from kubernetes.client.rest import ApiException

        try:
            data = self.api.get_namespaced_custom_object(
                CLUSTER_GROUP, CLUSTER_VERSION, self.namespace, CLUSTER_PLURAL, self.name
            )
        except ApiException as e:
            raise StoreError(
                f"Failed to read {CLUSTER_KIND} {self.namespace}/{self.name}",
                f"HTTP {e.status}: {e.reason}",
            )
        return ClusterResource.from_manifest(data)

    def save_status(self, resource: ClusterResource, record: ClusterRecord) -> ClusterResource:
        from kubernetes.client.rest import ApiException

        body = resource.to_manifest()
        body["status"] = record.to_manifest()
        try:
            data = self.api.replace_namespaced_custom_object_status(
                CLUSTER_GROUP, CLUSTER_VERSION, self.namespace, CLUSTER_PLURAL, self.name, body
            )
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(
                    f"{CLUSTER_KIND} {self.namespace}/{self.name} changed since it was read",
                    e.reason,
                )
            raise StoreError(
                f"Failed to write status of {CLUSTER_KIND} {self.namespace}/{self.name}",
                f"HTTP {e.status}: {e.reason}",
            )
        return ClusterResource.from_manifest(data)
