"""Tests for the per-component decision tree."""

import pytest

from cluster_orchestrator.accessor import ObjectRef
from cluster_orchestrator.components import (
    Action,
    ClusterView,
    ComponentStatus,
    SyncStatus,
    build_components,
    is_running_status,
    topological_order,
)
from cluster_orchestrator.exceptions import InvariantViolation, SyncError
from cluster_orchestrator.models.cluster import (
    ClusterRecord,
    ClusterResource,
    ClusterState,
    UpdateState,
)


def build(resource, accessor, record=None, drain_grace_period=None):
    view = ClusterView(resource, record=record, drain_grace_period=drain_grace_period)
    return view, {c.get_name(): c for c in build_components(view, accessor)}


def fetch_all(components, ctx):
    for component in components.values():
        component.fetch(ctx)


def deploy(resource, accessor, ctx, *names):
    """Create the objects of the named components and bring their pods up."""
    _, components = build(resource, accessor)
    for name in names:
        components[name].fetch(ctx)
        components[name].server.sync(ctx)
    accessor.settle()


def test_status_messages():
    assert str(ComponentStatus.simple(SyncStatus.READY)) == "Ready"
    assert str(ComponentStatus.waiting(SyncStatus.BLOCKED, "pods")) == "Blocked (Wait for pods)"


def test_running_statuses():
    assert is_running_status(SyncStatus.READY)
    assert is_running_status(SyncStatus.NEED_LOCAL_UPDATE)
    assert is_running_status(SyncStatus.NEED_FULL_UPDATE)
    assert is_running_status(SyncStatus.NEED_RESTART)
    assert not is_running_status(SyncStatus.PENDING)
    assert not is_running_status(SyncStatus.BLOCKED)
    assert not is_running_status(SyncStatus.UPDATING)


def test_component_without_dependencies_comes_up(cluster_resource, accessor, ctx):
    _, components = build(cluster_resource, accessor)
    discovery = components["Discovery"]
    discovery.fetch(ctx)

    assert discovery.status(ctx) == ComponentStatus.waiting(SyncStatus.PENDING, "components")

    discovery.sync(ctx)
    assert accessor.get(ObjectRef("StatefulSet", "ds")) is not None
    assert discovery.status(ctx) == ComponentStatus.waiting(SyncStatus.BLOCKED, "pods")

    accessor.settle()
    discovery.fetch(ctx)
    assert discovery.status(ctx) == ComponentStatus.simple(SyncStatus.READY)


def test_status_never_writes(cluster_resource, accessor, ctx):
    _, components = build(cluster_resource, accessor)
    fetch_all(components, ctx)

    for component in components.values():
        component.status(ctx)

    assert accessor.writes == []


def test_blocked_dependency_blocks_dependent(cluster_resource, accessor, ctx):
    _, components = build(cluster_resource, accessor)
    master = components["PrimaryMaster"]
    master.fetch(ctx)
    master.server.sync(ctx)
    fetch_all(components, ctx)

    assert master.status(ctx).sync_status == SyncStatus.BLOCKED

    proxy = components["HttpProxy"]
    status = proxy.sync(ctx)

    assert status == ComponentStatus.waiting(SyncStatus.BLOCKED, "PrimaryMaster")
    assert accessor.get(ObjectRef("StatefulSet", "hp")) is None


def test_dependent_proceeds_once_dependency_runs(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster")
    _, components = build(cluster_resource, accessor)
    fetch_all(components, ctx)

    proxy = components["HttpProxy"]
    assert proxy.status(ctx).sync_status == SyncStatus.PENDING

    proxy.sync(ctx)
    assert accessor.get(ObjectRef("StatefulSet", "hp")) is not None


def test_scheduler_waits_for_exec_nodes(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster")
    _, components = build(cluster_resource, accessor)
    fetch_all(components, ctx)

    assert components["Scheduler"].status(ctx) == ComponentStatus.waiting(
        SyncStatus.BLOCKED, "ExecNode"
    )


def test_config_failure_blocks_with_reason(cluster_manifest, accessor, ctx):
    cluster_manifest["spec"]["primaryMasters"]["locations"] = []
    _, components = build(ClusterResource.from_manifest(cluster_manifest), accessor)
    master = components["PrimaryMaster"]
    master.fetch(ctx)

    status = master.sync(ctx)

    assert status.sync_status == SyncStatus.BLOCKED
    assert status.message.startswith("config: ")
    assert "MasterChangelogs" in status.message
    assert accessor.writes == []


def test_dependency_check_precedes_config_check(cluster_manifest, accessor, ctx):
    cluster_manifest["spec"]["dataNodes"][0]["locations"] = []
    _, components = build(ClusterResource.from_manifest(cluster_manifest), accessor)
    fetch_all(components, ctx)

    assert components["DataNode"].status(ctx) == ComponentStatus.waiting(
        SyncStatus.BLOCKED, "PrimaryMaster"
    )


def test_image_change_flags_local_update(cluster_manifest, accessor, ctx):
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery", "PrimaryMaster", "HttpProxy")

    cluster_manifest["spec"]["httpProxies"][0]["image"] = "ytsaurus/ytsaurus:23.2"
    changed = ClusterResource.from_manifest(cluster_manifest)
    _, components = build(changed, accessor, ClusterRecord(state=ClusterState.RUNNING))
    fetch_all(components, ctx)

    assert components["HttpProxy"].status(ctx).sync_status == SyncStatus.NEED_LOCAL_UPDATE


def test_non_updatable_component_needs_full_update(cluster_manifest, accessor, ctx):
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery", "PrimaryMaster")

    cluster_manifest["spec"]["coreImage"] = "ytsaurus/ytsaurus:23.2"
    changed = ClusterResource.from_manifest(cluster_manifest)
    _, components = build(changed, accessor, ClusterRecord(state=ClusterState.RUNNING))
    fetch_all(components, ctx)

    assert not components["PrimaryMaster"].is_updatable()
    assert components["PrimaryMaster"].status(ctx).sync_status == SyncStatus.NEED_FULL_UPDATE
    assert components["Discovery"].status(ctx).sync_status == SyncStatus.NEED_FULL_UPDATE


def test_update_not_flagged_while_creating(cluster_manifest, accessor, ctx):
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery")

    cluster_manifest["spec"]["coreImage"] = "ytsaurus/ytsaurus:23.2"
    changed = ClusterResource.from_manifest(cluster_manifest)
    _, components = build(changed, accessor)
    fetch_all(components, ctx)

    assert components["Discovery"].status(ctx).is_ready()


def test_update_flagged_even_while_dependency_is_blocked(cluster_manifest, accessor, ctx):
    """Update eligibility is evaluated before dependency readiness."""
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery", "PrimaryMaster", "HttpProxy")
    accessor.set_status(ObjectRef("StatefulSet", "ms"), readyReplicas=0)

    cluster_manifest["spec"]["httpProxies"][0]["image"] = "ytsaurus/ytsaurus:23.2"
    changed = ClusterResource.from_manifest(cluster_manifest)
    _, components = build(changed, accessor, ClusterRecord(state=ClusterState.RUNNING))
    fetch_all(components, ctx)

    assert components["PrimaryMaster"].status(ctx).sync_status == SyncStatus.BLOCKED
    assert components["HttpProxy"].status(ctx).sync_status == SyncStatus.NEED_LOCAL_UPDATE


def test_flagged_component_removes_pods(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster", "ExecNode")
    record = ClusterRecord(
        state=ClusterState.UPDATING,
        update_state=UpdateState.WAITING_FOR_PODS_REMOVAL,
        updating_components=["ExecNode"],
    )
    _, components = build(cluster_resource, accessor, record, drain_grace_period=45)
    fetch_all(components, ctx)
    exec_node = components["ExecNode"]

    decision = exec_node.decide(ctx)
    assert decision.action == Action.REMOVE_PODS
    assert decision.status == ComponentStatus.waiting(SyncStatus.UPDATING, "pods removal")

    exec_node.sync(ctx)
    statefulset = accessor.get(ObjectRef("StatefulSet", "end"))
    assert statefulset["spec"]["replicas"] == 0
    assert statefulset["spec"]["template"]["spec"]["terminationGracePeriodSeconds"] == 45

    accessor.settle()
    exec_node.fetch(ctx)
    assert exec_node.status(ctx) == ComponentStatus.waiting(SyncStatus.UPDATING, "pods creation")


def test_only_drainable_components_get_grace_period(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster", "DataNode")
    record = ClusterRecord(
        state=ClusterState.UPDATING,
        update_state=UpdateState.WAITING_FOR_PODS_REMOVAL,
        updating_components=["DataNode"],
    )
    _, components = build(cluster_resource, accessor, record, drain_grace_period=45)
    fetch_all(components, ctx)

    components["DataNode"].sync(ctx)

    pod_spec = accessor.get(ObjectRef("StatefulSet", "dnd"))["spec"]["template"]["spec"]
    assert "terminationGracePeriodSeconds" not in pod_spec


def test_flagged_component_with_config_error_is_blocked(cluster_manifest, accessor, ctx):
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery", "PrimaryMaster", "DataNode")
    cluster_manifest["spec"]["dataNodes"][0]["image"] = "ytsaurus/ytsaurus:23.2"
    cluster_manifest["spec"]["dataNodes"][0]["locations"] = []
    record = ClusterRecord(
        state=ClusterState.UPDATING,
        update_state=UpdateState.WAITING_FOR_PODS_REMOVAL,
        updating_components=["DataNode"],
    )
    _, components = build(ClusterResource.from_manifest(cluster_manifest), accessor, record)
    fetch_all(components, ctx)
    data_node = components["DataNode"]
    writes = len(accessor.writes)

    decision = data_node.decide(ctx)
    assert decision.action == Action.NONE
    assert decision.status.sync_status == SyncStatus.BLOCKED
    assert decision.status.message.startswith("config: ")

    data_node.sync(ctx)
    assert len(accessor.writes) == writes
    assert accessor.get(ObjectRef("StatefulSet", "dnd"))["spec"]["replicas"] == 1


def test_config_error_during_pod_removal_becomes_sync_error(cluster_manifest, accessor, ctx):
    resource = ClusterResource.from_manifest(cluster_manifest)
    deploy(resource, accessor, ctx, "Discovery", "PrimaryMaster", "DataNode")
    cluster_manifest["spec"]["dataNodes"][0]["locations"] = []
    _, components = build(ClusterResource.from_manifest(cluster_manifest), accessor)
    fetch_all(components, ctx)

    with pytest.raises(SyncError, match="Failed to sync DataNode"):
        components["DataNode"]._execute(ctx, Action.REMOVE_PODS)


def test_component_outside_wave_reconciles_normally(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster")
    record = ClusterRecord(
        state=ClusterState.UPDATING,
        update_state=UpdateState.WAITING_FOR_PODS_REMOVAL,
        updating_components=["ExecNode"],
    )
    _, components = build(cluster_resource, accessor, record)
    fetch_all(components, ctx)

    assert components["PrimaryMaster"].status(ctx).is_ready()
    assert components["DataNode"].status(ctx).sync_status == SyncStatus.PENDING


def test_flagged_component_recreated_after_removal(cluster_resource, accessor, ctx):
    deploy(cluster_resource, accessor, ctx, "Discovery", "PrimaryMaster", "DataNode")
    record = ClusterRecord(
        state=ClusterState.UPDATING,
        update_state=UpdateState.WAITING_FOR_PODS_REMOVAL,
        updating_components=["DataNode"],
    )
    _, components = build(cluster_resource, accessor, record)
    fetch_all(components, ctx)
    components["DataNode"].sync(ctx)
    accessor.settle()

    record = record.model_copy(update={"update_state": UpdateState.WAITING_FOR_PODS_CREATION})
    _, components = build(cluster_resource, accessor, record)
    fetch_all(components, ctx)
    data_node = components["DataNode"]

    assert data_node.status(ctx).sync_status == SyncStatus.PENDING
    data_node.sync(ctx)
    assert accessor.get(ObjectRef("StatefulSet", "dnd"))["spec"]["replicas"] == 1


def test_status_is_memoised_until_invalidated(cluster_resource, accessor, ctx):
    view, components = build(cluster_resource, accessor)
    discovery = components["Discovery"]
    discovery.fetch(ctx)
    first = discovery.status(ctx)

    assert view.cached_status("Discovery") is first

    view.invalidate()
    assert view.cached_status("Discovery") is None


def test_topological_order(cluster_resource, accessor):
    _, components = build(cluster_resource, accessor)
    names = list(components)

    assert names == ["Discovery", "PrimaryMaster", "HttpProxy", "DataNode", "ExecNode", "Scheduler"]


def test_topological_order_rejects_cycles(cluster_resource, accessor):
    _, components = build(cluster_resource, accessor)
    master = components["PrimaryMaster"]
    master.dependencies.append(components["HttpProxy"])

    with pytest.raises(InvariantViolation):
        topological_order(list(components.values()))
