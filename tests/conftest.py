"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path

import pytest
from hypothesis import Verbosity, settings

from cluster_orchestrator.accessor import InMemoryAccessor
from cluster_orchestrator.components import ClusterView, build_components
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.models.cluster import ClusterRecord, ClusterResource, ClusterState
from cluster_orchestrator.reconciler import ClusterReconciler

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")

SAMPLES_DIR = Path(__file__).parent.parent / "samples"


@pytest.fixture
def cluster_manifest():
    """Small but complete cluster manifest."""
    return {
        "apiVersion": "cluster.ytsaurus.tech/v1",
        "kind": "Ytsaurus",
        "metadata": {"name": "test-cluster", "namespace": "yt"},
        "spec": {
            "coreImage": "ytsaurus/ytsaurus:23.1",
            "discovery": {"instanceCount": 1},
            "primaryMasters": {
                "instanceCount": 1,
                "cellTag": 1,
                "locations": [
                    {"locationType": "MasterChangelogs", "path": "/yt/master-data/changelogs"},
                    {"locationType": "MasterSnapshots", "path": "/yt/master-data/snapshots"},
                ],
                "volumeMounts": [{"name": "master-data", "mountPath": "/yt/master-data"}],
                "volumeClaimTemplates": [
                    {
                        "metadata": {"name": "master-data"},
                        "spec": {
                            "accessModes": ["ReadWriteOnce"],
                            "resources": {"requests": {"storage": "5Gi"}},
                        },
                    }
                ],
            },
            "httpProxies": [{"role": "default", "instanceCount": 1}],
            "dataNodes": [
                {
                    "instanceCount": 1,
                    "locations": [{"locationType": "ChunkStore", "path": "/yt/node-data/chunk-store"}],
                }
            ],
            "execNodes": [
                {
                    "instanceCount": 1,
                    "locations": [
                        {"locationType": "ChunkCache", "path": "/yt/node-data/chunk-cache"},
                        {"locationType": "Slots", "path": "/yt/node-data/slots"},
                    ],
                }
            ],
            "schedulers": {"instanceCount": 1},
        },
    }


@pytest.fixture
def cluster_resource(cluster_manifest):
    return ClusterResource.from_manifest(cluster_manifest)


@pytest.fixture
def accessor():
    return InMemoryAccessor()


@pytest.fixture
def ctx():
    return CallContext()


@pytest.fixture
def tick(accessor):
    """Run one reconciliation tick against the shared in-memory accessor.

    Components are rebuilt on every call, as the operator does.
    """

    def run(resource, record=None, dry_run=False, ctx=None, drain_grace_period=30):
        record = record if record is not None else resource.status
        view = ClusterView(resource, drain_grace_period=drain_grace_period)
        reconciler = ClusterReconciler(view, build_components(view, accessor), fetch_workers=2)
        return reconciler.reconcile(ctx or CallContext(), record, dry_run=dry_run)

    return run


@pytest.fixture
def converge(tick, accessor):
    """Tick with pods coming up after every tick until the cluster is Running."""

    def run(resource, record=None, max_ticks=10):
        record = record if record is not None else ClusterRecord()
        for _ in range(max_ticks):
            result = tick(resource, record)
            record = result.record
            accessor.settle()
            if record.state == ClusterState.RUNNING:
                return record
        raise AssertionError(f"Cluster did not converge: {record.state.value}, {record.message}")

    return run


@pytest.fixture
def sample_manifest_path(tmp_path):
    """Writable copy of the sample manifest."""
    path = tmp_path / "cluster.yaml"
    shutil.copy(SAMPLES_DIR / "cluster.yaml", path)
    return path
