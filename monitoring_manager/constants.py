# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Constants, dependency loading, and dep_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_dependencies() -> dict:
    """Load pinned versions and chart references from dependencies.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    deps_file = Path(__file__).resolve().parent / "dependencies.yaml"
    with open(deps_file) as f:
        return yaml.safe_load(f)


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the DEPENDENCIES dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = DEPENDENCIES
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


REQUIRED_COMMANDS = ("minikube", "kubectl", "helm")

# -- Namespaces --
NS_MONITORING = "monitoring"
NS_INGRESS = "ingress-nginx"

# -- Helm releases --
HELM_RELEASE_MONITORING = "monitoring-stack"
HELM_RELEASE_INGRESS = "nginx-ingress"

# -- Helm repos and charts --
HELM_REPO_PROMETHEUS = dep_value("charts", "kube_prometheus_stack", "repo", default="prometheus-community")
HELM_REPO_PROMETHEUS_URL = dep_value(
    "charts", "kube_prometheus_stack", "repo_url",
    default="https://prometheus-community.github.io/helm-charts",
)
HELM_CHART_MONITORING = dep_value(
    "charts", "kube_prometheus_stack", "chart", default="prometheus-community/kube-prometheus-stack")
HELM_REPO_NGINX = dep_value("charts", "nginx_ingress", "repo", default="nginx-stable")
HELM_REPO_NGINX_URL = dep_value("charts", "nginx_ingress", "repo_url", default="https://helm.nginx.com/stable")
HELM_CHART_INGRESS = dep_value("charts", "nginx_ingress", "chart", default="nginx-stable/nginx-ingress")

# -- Helm override keys --
HELM_KEY_INGRESS_METRICS = "controller.metrics.enabled"
HELM_KEY_INGRESS_SERVICE_TYPE = "controller.service.type"

# -- Generated documents --
VALUES_FILE_NAME = "monitoring-values.yaml"
SERVICE_MONITOR_FILE_NAME = "nginx-servicemonitor.yaml"

# -- ServiceMonitor --
SERVICE_MONITOR_API_VERSION = "monitoring.coreos.com/v1"
SERVICE_MONITOR_NAME = "nginx-ingress"
SERVICE_MONITOR_APP_LABEL = "nginx-ingress"
SERVICE_MONITOR_PORT = "metrics"

# -- Grafana --
GRAFANA_ADMIN_SECRET_KEY = "admin-password"
GRAFANA_DASHBOARD_IMPORT_PATH = "/api/dashboards/db"
GRAFANA_HEALTH_PATH = "/api/health"
GRAFANA_HTTP_TIMEOUT_SECONDS = 10
PLACEHOLDER_DASHBOARD_TITLE = "NGINX Ingress Controller"
PLACEHOLDER_DASHBOARD_TAGS = ["nginx"]

# Community dashboards printed for manual import: (ids, description).
COMMUNITY_DASHBOARDS = [
    ("9614 or 14314", "NGINX Ingress Controller"),
    ("1860", "Node Exporter Full"),
    ("10856", "Kubernetes Cluster Overview"),
    ("8588", "Kubernetes Deployment Metrics"),
]

# -- Timeouts and polling --
CLUSTER_START_RETRY_WAIT_SECONDS = 10
POD_READY_TIMEOUT_SECONDS = 300
PORT_READY_TIMEOUT_SECONDS = 30
PORT_POLL_INTERVAL_SECONDS = 0.5
GRAFANA_HEALTH_TIMEOUT_SECONDS = 60
GRAFANA_HEALTH_POLL_INTERVAL_SECONDS = 2
TUNNEL_TERMINATE_TIMEOUT_SECONDS = 5
TUNNEL_BIND_GRACE_SECONDS = 0.5
TUNNEL_JOIN_POLL_SECONDS = 1
KUBECTL_TIMEOUT_MARGIN_SECONDS = 30

# -- Minikube defaults --
DEFAULT_MINIKUBE_PROFILE = "minikube"
DEFAULT_MINIKUBE_DRIVER = "docker"
DEFAULT_MINIKUBE_MEMORY_MB = 6144
DEFAULT_MINIKUBE_CPUS = 4
DEFAULT_KUBERNETES_VERSION = dep_value("kubernetes", "version", default="v1.26.3")
DEFAULT_CLUSTER_START_MAX_RETRIES = 1

# -- Stack defaults --
DEFAULT_GRAFANA_ADMIN_USER = "admin"
DEFAULT_GRAFANA_ADMIN_PASSWORD = "admin"
DEFAULT_INGRESS_HOST = "monitoring.local"
DEFAULT_GRAFANA_PATH = "/grafana"
DEFAULT_STORAGE_CLASS = "standard"
DEFAULT_PROMETHEUS_RETENTION = "1d"
DEFAULT_GRAFANA_STORAGE_SIZE = "1Gi"
DEFAULT_SCRAPE_INTERVAL = "30s"
DEFAULT_INGRESS_SERVICE_TYPE = "NodePort"

# -- Tunnels --
DEFAULT_GRAFANA_PORT = 3000
DEFAULT_PROMETHEUS_PORT = 9090
DEFAULT_GRAFANA_SELECTOR = "app.kubernetes.io/name=grafana"
DEFAULT_PROMETHEUS_SELECTOR = "app.kubernetes.io/name=prometheus"
LOCALHOST = "127.0.0.1"
