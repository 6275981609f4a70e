"""Names, ports and paths shared by the managed workloads."""

CONFIG_MOUNT_POINT = "/config"
CONFIG_VOLUME_NAME = "config"

SERVER_CONTAINER_NAME = "ytserver"
PREPARE_LOCATIONS_CONTAINER_NAME = "prepare-locations"

# RPC ports of the managed processes
DISCOVERY_RPC_PORT = 9020
MASTER_RPC_PORT = 9010
SCHEDULER_RPC_PORT = 9011
DATA_NODE_RPC_PORT = 9012
RPC_PROXY_RPC_PORT = 9013
CONTROLLER_AGENT_RPC_PORT = 9014
HTTP_PROXY_RPC_PORT = 9016
EXEC_NODE_RPC_PORT = 9029
HTTP_PROXY_HTTP_PORT = 80
HTTP_PROXY_HTTPS_PORT = 443
UI_HTTP_PORT = 80

MONITORING_PORT_NAME = "ytsaurus-metrics"

APP_LABEL = "app.kubernetes.io/name"
COMPONENT_LABEL = "app.kubernetes.io/component"
INSTANCE_LABEL = "app.kubernetes.io/instance"
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY = "cluster-orchestrator"

# Workload set / headless service short names per role
DISCOVERY_STATEFULSET = "ds"
DISCOVERY_SERVICE = "discovery"
MASTER_STATEFULSET = "ms"
MASTER_SERVICE = "masters"
SCHEDULER_STATEFULSET = "sch"
SCHEDULER_SERVICE = "schedulers"
CONTROLLER_AGENT_STATEFULSET = "ca"
CONTROLLER_AGENT_SERVICE = "controller-agents"
HTTP_PROXY_STATEFULSET = "hp"
HTTP_PROXY_SERVICE = "http-proxies"
RPC_PROXY_STATEFULSET = "rp"
RPC_PROXY_SERVICE = "rpc-proxies"
DATA_NODE_STATEFULSET = "dnd"
DATA_NODE_SERVICE = "data-nodes"
EXEC_NODE_STATEFULSET = "end"
EXEC_NODE_SERVICE = "exec-nodes"
UI_STATEFULSET = "ui"
UI_SERVICE = "ui"

DISCOVERY_LABEL = "yt-discovery"
MASTER_LABEL = "yt-master"
SCHEDULER_LABEL = "yt-scheduler"
CONTROLLER_AGENT_LABEL = "yt-controller-agent"
HTTP_PROXY_LABEL = "yt-http-proxy"
RPC_PROXY_LABEL = "yt-rpc-proxy"
DATA_NODE_LABEL = "yt-data-node"
EXEC_NODE_LABEL = "yt-exec-node"
UI_LABEL = "yt-ui"
