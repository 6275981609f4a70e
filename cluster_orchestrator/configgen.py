"""Configuration payloads for the managed processes.

Every ``get_*_config`` method renders one role's configuration file as YAML
with sorted keys, so the same cluster spec always yields the same bytes.
"""

from typing import Any, Callable

import yaml

from cluster_orchestrator import consts
from cluster_orchestrator.exceptions import ConfigError
from cluster_orchestrator.labeller import Labeller
from cluster_orchestrator.models.cluster import ClusterResource
from cluster_orchestrator.models.instance import InstanceSpec, LoggerSpec

GeneratorFunc = Callable[[], str]


def dump_payload(document: dict[str, Any]) -> str:
    return yaml.safe_dump(document, sort_keys=True, default_flow_style=False)


def needs_reload(deployed: str | None, desired: str) -> bool:
    """Whether the deployed payload differs semantically from the desired one.

    Formatting differences (key order, quoting, whitespace) do not count.
    """
    if deployed is None:
        return True
    try:
        return yaml.safe_load(deployed) != yaml.safe_load(desired)
    except yaml.YAMLError:
        return True


class ConfigGenerator:
    """Builds per-role configuration payloads from a cluster manifest."""

    def __init__(self, resource: ClusterResource):
        self.resource = resource
        self.spec = resource.spec

    def _labeller(self, label: str, name: str) -> Labeller:
        return Labeller(self.resource.name, self.resource.namespace, label, name)

    def _addresses(self, label: str, name: str, statefulset: str, service: str,
                   count: int, port: int) -> list[str]:
        labeller = self._labeller(label, name)
        return [
            f"{fqdn}:{port}"
            for fqdn in labeller.get_pod_fqdns(statefulset, service, count)
        ]

    def get_master_addresses(self) -> list[str]:
        return self._addresses(
            consts.MASTER_LABEL,
            "PrimaryMaster",
            consts.MASTER_STATEFULSET,
            consts.MASTER_SERVICE,
            self.spec.primary_masters.instance_count,
            consts.MASTER_RPC_PORT,
        )

    def get_discovery_addresses(self) -> list[str]:
        return self._addresses(
            consts.DISCOVERY_LABEL,
            "Discovery",
            consts.DISCOVERY_STATEFULSET,
            consts.DISCOVERY_SERVICE,
            self.spec.discovery.instance_count,
            consts.DISCOVERY_RPC_PORT,
        )

    def _logging(self, loggers: list[LoggerSpec], prefix: str) -> dict[str, Any]:
        writers = {}
        rules = []
        for logger_spec in loggers:
            writer: dict[str, Any] = {"type": logger_spec.writer_type}
            if logger_spec.writer_type == "file":
                writer["file_name"] = f"/var/log/{prefix}.{logger_spec.name}.log"
            if logger_spec.compression:
                writer["enable_compression"] = True
                writer["compression_method"] = logger_spec.compression
            if logger_spec.rotation_policy:
                writer["rotation_policy"] = logger_spec.rotation_policy
            writers[logger_spec.name] = writer

            rule: dict[str, Any] = {
                "min_level": logger_spec.min_log_level,
                "writers": [logger_spec.name],
            }
            categories = logger_spec.categories_filter or {}
            if categories.get("values"):
                key = "exclude_categories" if categories.get("type") == "exclude" else "include_categories"
                rule[key] = list(categories["values"])
            rules.append(rule)
        return {"writers": writers, "rules": rules}

    def _common(self, instance: InstanceSpec, prefix: str) -> dict[str, Any]:
        return {
            "address_resolver": {
                "enable_ipv4": not self.spec.use_ipv6,
                "enable_ipv6": self.spec.use_ipv6,
                "retries": 1000,
            },
            "cluster_connection": {
                "cluster_name": self.resource.name,
                "primary_master": {
                    "cell_tag": self.spec.primary_masters.cell_tag,
                    "addresses": self.get_master_addresses(),
                },
                "discovery_connection": {"addresses": self.get_discovery_addresses()},
            },
            "logging": self._logging(instance.loggers, prefix),
            "monitoring_port": instance.monitoring_port,
        }

    def _require_locations(self, instance: InstanceSpec, role: str, *location_types: str) -> None:
        missing = [t for t in location_types if not instance.locations_of(t)]
        if missing:
            raise ConfigError(
                f"{role} requires locations of type {', '.join(missing)}",
                "Declare them under 'locations' in the cluster manifest",
            )

    def get_discovery_config(self) -> str:
        instance = self.spec.discovery
        config = self._common(instance, "discovery")
        config["rpc_port"] = consts.DISCOVERY_RPC_PORT
        config["discovery_server"] = {"addresses": self.get_discovery_addresses()}
        return dump_payload(config)

    def get_master_config(self) -> str:
        instance = self.spec.primary_masters
        self._require_locations(instance, "PrimaryMaster", "MasterChangelogs", "MasterSnapshots")
        config = self._common(instance, "master")
        config["rpc_port"] = consts.MASTER_RPC_PORT
        config["primary_master"] = {
            "cell_tag": instance.cell_tag,
            "addresses": self.get_master_addresses(),
        }
        config["changelogs"] = {"path": instance.locations_of("MasterChangelogs")[0].path}
        config["snapshots"] = {"path": instance.locations_of("MasterSnapshots")[0].path}
        return dump_payload(config)

    def get_scheduler_config(self) -> str:
        config = self._common(self.spec.schedulers, "scheduler")
        config["rpc_port"] = consts.SCHEDULER_RPC_PORT
        return dump_payload(config)

    def get_controller_agent_config(self) -> str:
        config = self._common(self.spec.controller_agents, "controller-agent")
        config["rpc_port"] = consts.CONTROLLER_AGENT_RPC_PORT
        config["controller_agent"] = {"use_columnar_statistics_default": True}
        return dump_payload(config)

    def get_http_proxy_config(self, role: str) -> str:
        instance = next((p for p in self.spec.http_proxies if p.role == role), None)
        if instance is None:
            raise ConfigError(f"No http proxy group with role '{role}'")
        config = self._common(instance, "http-proxy")
        config["rpc_port"] = consts.HTTP_PROXY_RPC_PORT
        config["port"] = consts.HTTP_PROXY_HTTP_PORT
        config["role"] = role
        if instance.transport.https_secret:
            config["https_server"] = {
                "port": consts.HTTP_PROXY_HTTPS_PORT,
                "credentials": {
                    "cert_chain": {"file_name": "/tls/https/tls.crt"},
                    "private_key": {"file_name": "/tls/https/tls.key"},
                },
            }
        return dump_payload(config)

    def get_rpc_proxy_config(self, role: str) -> str:
        instance = next((p for p in self.spec.rpc_proxies if p.role == role), None)
        if instance is None:
            raise ConfigError(f"No rpc proxy group with role '{role}'")
        config = self._common(instance, "rpc-proxy")
        config["rpc_port"] = consts.RPC_PROXY_RPC_PORT
        config["role"] = role
        return dump_payload(config)

    def get_data_node_config(self, name: str) -> str:
        instance = next((n for n in self.spec.data_nodes if n.name == name), None)
        if instance is None:
            raise ConfigError(f"No data node group named '{name}'")
        self._require_locations(instance, "DataNode", "ChunkStore")
        config = self._common(instance, "data-node")
        config["rpc_port"] = consts.DATA_NODE_RPC_PORT
        config["flavors"] = ["data"]
        config["data_node"] = {
            "store_locations": [{"path": loc.path} for loc in instance.locations_of("ChunkStore")]
        }
        return dump_payload(config)

    def get_exec_node_config(self, name: str) -> str:
        instance = next((n for n in self.spec.exec_nodes if n.name == name), None)
        if instance is None:
            raise ConfigError(f"No exec node group named '{name}'")
        self._require_locations(instance, "ExecNode", "ChunkCache", "Slots")
        config = self._common(instance, "exec-node")
        config["rpc_port"] = consts.EXEC_NODE_RPC_PORT
        config["flavors"] = ["exec"]
        config["data_node"] = {
            "cache_locations": [{"path": loc.path} for loc in instance.locations_of("ChunkCache")]
        }
        config["exec_agent"] = {
            "slot_manager": {
                "locations": [{"path": loc.path} for loc in instance.locations_of("Slots")]
            }
        }
        return dump_payload(config)

    def get_ui_config(self) -> str:
        if not self.spec.http_proxies:
            raise ConfigError("UI requires at least one http proxy group")
        proxy = next((p for p in self.spec.http_proxies if p.role == "default"), self.spec.http_proxies[0])
        labeller = Labeller(
            self.resource.name,
            self.resource.namespace,
            consts.HTTP_PROXY_LABEL,
            "HttpProxy",
            proxy.role,
        )
        service = labeller.get_object_name(consts.HTTP_PROXY_SERVICE)
        config = {
            "clusters": [
                {
                    "id": self.resource.name,
                    "name": self.resource.name,
                    "proxy": f"{service}.{self.resource.namespace}.svc.cluster.local",
                    "secure": proxy.transport.https_secret is not None,
                }
            ]
        }
        return dump_payload(config)
