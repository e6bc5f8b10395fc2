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


"""Values document, ServiceMonitor, and dashboard builders."""

from __future__ import annotations

from pathlib import Path

import yaml

from monitoring_manager.config import StackConfig
from monitoring_manager.constants import (
    PLACEHOLDER_DASHBOARD_TAGS,
    PLACEHOLDER_DASHBOARD_TITLE,
    SERVICE_MONITOR_API_VERSION,
    SERVICE_MONITOR_APP_LABEL,
    SERVICE_MONITOR_NAME,
    SERVICE_MONITOR_PORT,
)

# Requests and limits sized for a 4 CPU / 6 GiB local cluster.
COMPONENT_RESOURCES = {
    "prometheusOperator": {"limits": ("200m", "200Mi"), "requests": ("100m", "100Mi")},
    "prometheus": {"limits": ("300m", "1Gi"), "requests": ("100m", "512Mi")},
    "alertmanager": {"limits": ("100m", "200Mi"), "requests": ("50m", "100Mi")},
    "grafana": {"limits": ("200m", "300Mi"), "requests": ("100m", "128Mi")},
    "nodeExporter": {"limits": ("100m", "100Mi"), "requests": ("50m", "50Mi")},
    "kubeStateMetrics": {"limits": ("100m", "200Mi"), "requests": ("50m", "100Mi")},
}


def resources_for(component: str) -> dict[str, dict[str, str]]:
    """Build the ``resources`` block for a stack component.

    Args:
        component: Key into COMPONENT_RESOURCES.

    Returns:
        Mapping with ``limits`` and ``requests``, each holding ``cpu`` and ``memory``.
    """
    spec = COMPONENT_RESOURCES[component]
    return {
        kind: {"cpu": cpu, "memory": memory}
        for kind, (cpu, memory) in spec.items()
    }


def monitoring_values(stack_cfg: StackConfig) -> dict:
    """Build the kube-prometheus-stack values document.

    Prometheus and Alertmanager keep their data in ``emptyDir`` volumes;
    only Grafana gets a persistent volume.

    Args:
        stack_cfg: Stack configuration.

    Returns:
        Values mapping ready for YAML serialization.
    """
    return {
        "prometheusOperator": {
            "resources": resources_for("prometheusOperator"),
        },
        "prometheus": {
            "prometheusSpec": {
                "resources": resources_for("prometheus"),
                "retention": stack_cfg.prometheus_retention,
                "storageSpec": {"emptyDir": {}},
            },
        },
        "alertmanager": {
            "alertmanagerSpec": {
                "resources": resources_for("alertmanager"),
                "storage": {"emptyDir": {}},
            },
        },
        "grafana": {
            "resources": resources_for("grafana"),
            "persistence": {
                "enabled": True,
                "size": stack_cfg.grafana_storage_size,
                "storageClassName": stack_cfg.storage_class,
            },
            "adminPassword": stack_cfg.grafana_admin_password,
            "service": {"type": "NodePort"},
            "ingress": {
                "enabled": True,
                "ingressClassName": "nginx",
                "path": stack_cfg.grafana_path,
                "hosts": [stack_cfg.ingress_host],
            },
        },
        "nodeExporter": {
            "resources": resources_for("nodeExporter"),
        },
        "kubeStateMetrics": {
            "resources": resources_for("kubeStateMetrics"),
        },
    }


def ingress_service_monitor(stack_cfg: StackConfig) -> dict:
    """Build the ServiceMonitor that makes Prometheus scrape the ingress controller.

    The ``release`` label must match the monitoring release, otherwise the
    operator's default ServiceMonitor selector ignores the resource.

    Args:
        stack_cfg: Stack configuration.

    Returns:
        ServiceMonitor resource as a dictionary.
    """
    return {
        "apiVersion": SERVICE_MONITOR_API_VERSION,
        "kind": "ServiceMonitor",
        "metadata": {
            "name": SERVICE_MONITOR_NAME,
            "namespace": stack_cfg.monitoring_namespace,
            "labels": {"release": stack_cfg.monitoring_release},
        },
        "spec": {
            "jobLabel": SERVICE_MONITOR_NAME,
            "selector": {"matchLabels": {"app": SERVICE_MONITOR_APP_LABEL}},
            "namespaceSelector": {"matchNames": [stack_cfg.ingress_namespace]},
            "endpoints": [
                {"port": SERVICE_MONITOR_PORT, "interval": stack_cfg.scrape_interval},
            ],
        },
    }


def placeholder_dashboard(title: str = PLACEHOLDER_DASHBOARD_TITLE) -> dict:
    """Build the import body for an empty dashboard.

    Args:
        title: Dashboard title.

    Returns:
        Body for Grafana's ``POST /api/dashboards/db``.
    """
    return {
        "dashboard": {
            "id": None,
            "uid": None,
            "title": title,
            "tags": list(PLACEHOLDER_DASHBOARD_TAGS),
            "timezone": "browser",
            "schemaVersion": 16,
            "version": 0,
        },
        "folderId": 0,
        "overwrite": True,
    }


def write_yaml(document: dict, path: Path) -> Path:
    """Write a document as YAML, replacing any previous file.

    Args:
        document: Mapping to serialize.
        path: Destination file.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)
    return path
