"""Tests for object naming and config payload generation."""

import pytest
import yaml

from cluster_orchestrator import consts
from cluster_orchestrator.configgen import ConfigGenerator, dump_payload, needs_reload
from cluster_orchestrator.exceptions import ConfigError
from cluster_orchestrator.labeller import Labeller
from cluster_orchestrator.models.cluster import ClusterResource


def test_default_group_adds_no_suffix():
    labeller = Labeller("yt", "ns", consts.HTTP_PROXY_LABEL, "HttpProxy")

    assert labeller.get_full_component_name() == "HttpProxy"
    assert labeller.get_object_name("hp") == "hp"
    assert labeller.get_main_config_map_name() == "yt-http-proxy-config"


def test_named_group_suffixes_every_name():
    labeller = Labeller("yt", "ns", consts.HTTP_PROXY_LABEL, "HttpProxy", "control")

    assert labeller.get_full_component_name() == "HttpProxy-control"
    assert labeller.get_full_component_label() == "yt-http-proxy-control"
    assert labeller.get_object_name("hp") == "hp-control"
    assert labeller.get_monitoring_service_name() == "yt-http-proxy-control-monitoring"
    assert labeller.get_pods_removed_condition() == "HttpProxy-controlPodsRemoved"


def test_labels_select_one_component():
    labeller = Labeller("yt", "ns", consts.MASTER_LABEL, "PrimaryMaster")

    selector = labeller.get_selector_labels()
    labels = labeller.get_labels()

    assert selector[consts.COMPONENT_LABEL] == "yt-master"
    assert selector[consts.INSTANCE_LABEL] == "yt"
    assert labels[consts.MANAGED_BY_LABEL] == consts.MANAGED_BY
    assert selector.items() <= labels.items()


def test_pod_fqdns():
    labeller = Labeller("yt", "ns", consts.MASTER_LABEL, "PrimaryMaster")

    assert labeller.get_pod_fqdns("ms", "masters", 2) == [
        "ms-0.masters.ns.svc.cluster.local",
        "ms-1.masters.ns.svc.cluster.local",
    ]


def test_master_addresses_follow_instance_count(cluster_manifest):
    cluster_manifest["spec"]["primaryMasters"]["instanceCount"] = 3
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    addresses = cfgen.get_master_addresses()

    assert len(addresses) == 3
    assert addresses[0] == f"ms-0.masters.yt.svc.cluster.local:{consts.MASTER_RPC_PORT}"


def test_master_config(cluster_resource):
    config = yaml.safe_load(ConfigGenerator(cluster_resource).get_master_config())

    assert config["rpc_port"] == consts.MASTER_RPC_PORT
    assert config["changelogs"]["path"] == "/yt/master-data/changelogs"
    assert config["snapshots"]["path"] == "/yt/master-data/snapshots"
    assert config["cluster_connection"]["cluster_name"] == "test-cluster"
    assert config["primary_master"]["cell_tag"] == 1


def test_master_without_locations_fails(cluster_manifest):
    cluster_manifest["spec"]["primaryMasters"]["locations"] = []
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    with pytest.raises(ConfigError) as exc_info:
        cfgen.get_master_config()

    assert "MasterChangelogs" in exc_info.value.message
    assert "MasterSnapshots" in exc_info.value.message


def test_exec_node_config_lists_locations(cluster_resource):
    config = yaml.safe_load(ConfigGenerator(cluster_resource).get_exec_node_config("default"))

    assert config["flavors"] == ["exec"]
    assert config["data_node"]["cache_locations"] == [{"path": "/yt/node-data/chunk-cache"}]
    assert config["exec_agent"]["slot_manager"]["locations"] == [{"path": "/yt/node-data/slots"}]


def test_unknown_group_fails(cluster_resource):
    with pytest.raises(ConfigError):
        ConfigGenerator(cluster_resource).get_data_node_config("missing")


def test_http_proxy_https_section(cluster_manifest):
    cluster_manifest["spec"]["httpProxies"][0]["transport"] = {"httpsSecret": {"name": "tls"}}
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    config = yaml.safe_load(cfgen.get_http_proxy_config("default"))

    assert config["https_server"]["port"] == consts.HTTP_PROXY_HTTPS_PORT
    assert config["role"] == "default"


def test_ui_requires_http_proxy(cluster_manifest):
    cluster_manifest["spec"]["httpProxies"] = []
    cluster_manifest["spec"]["ui"] = {"instanceCount": 1}
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    with pytest.raises(ConfigError):
        cfgen.get_ui_config()


def test_logging_section(cluster_manifest):
    cluster_manifest["spec"]["discovery"]["loggers"] = [
        {"name": "debug", "minLogLevel": "debug", "compression": "zstd",
         "categoriesFilter": {"type": "exclude", "values": ["Bus"]}},
        {"name": "error", "minLogLevel": "error", "writerType": "stderr"},
    ]
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    logging = yaml.safe_load(cfgen.get_discovery_config())["logging"]

    assert logging["writers"]["debug"]["file_name"] == "/var/log/discovery.debug.log"
    assert logging["writers"]["debug"]["compression_method"] == "zstd"
    assert logging["writers"]["error"] == {"type": "stderr"}
    assert logging["rules"][0]["exclude_categories"] == ["Bus"]


def test_generation_is_deterministic(cluster_resource):
    first = ConfigGenerator(cluster_resource).get_scheduler_config()
    second = ConfigGenerator(cluster_resource).get_scheduler_config()

    assert first == second


def test_ipv6_switches_address_resolver(cluster_manifest):
    cluster_manifest["spec"]["useIpv6"] = True
    cfgen = ConfigGenerator(ClusterResource.from_manifest(cluster_manifest))

    resolver = yaml.safe_load(cfgen.get_discovery_config())["address_resolver"]

    assert resolver["enable_ipv6"] is True
    assert resolver["enable_ipv4"] is False


def test_needs_reload_ignores_formatting():
    desired = dump_payload({"a": 1, "b": [1, 2]})

    assert not needs_reload("b: [1, 2]\na: 1\n", desired)
    assert needs_reload("a: 2\nb: [1, 2]\n", desired)


def test_needs_reload_when_missing_or_unparsable():
    desired = dump_payload({"a": 1})

    assert needs_reload(None, desired)
    assert needs_reload("a: [unclosed", desired)
