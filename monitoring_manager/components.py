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


"""Ingress controller, monitoring stack, and scrape-target installation."""

from __future__ import annotations

from pathlib import Path

from rich.panel import Panel

from monitoring_manager import console
from monitoring_manager.config import StackConfig
from monitoring_manager.constants import (
    HELM_CHART_INGRESS,
    HELM_CHART_MONITORING,
    HELM_KEY_INGRESS_METRICS,
    HELM_KEY_INGRESS_SERVICE_TYPE,
    SERVICE_MONITOR_FILE_NAME,
    VALUES_FILE_NAME,
    dep_value,
)
from monitoring_manager.helm import install_release
from monitoring_manager.kube import apply_manifest
from monitoring_manager.manifests import ingress_service_monitor, monitoring_values, write_yaml


def install_ingress_controller(stack_cfg: StackConfig) -> None:
    """Install the NGINX ingress controller with metrics exposed.

    Args:
        stack_cfg: Stack configuration with the ingress namespace and release.
    """
    console.print(Panel.fit("Installing NGINX Ingress Controller", style="bold blue"))
    install_release(
        stack_cfg.ingress_release,
        HELM_CHART_INGRESS,
        stack_cfg.ingress_namespace,
        set_values={
            HELM_KEY_INGRESS_METRICS: "true",
            HELM_KEY_INGRESS_SERVICE_TYPE: stack_cfg.ingress_service_type,
        },
        version=dep_value("charts", "nginx_ingress", "version", default=""),
    )
    console.print("[green]\u2705 NGINX Ingress Controller installed[/green]")


def install_monitoring_stack(stack_cfg: StackConfig) -> Path:
    """Write the values document and install kube-prometheus-stack with it.

    Args:
        stack_cfg: Stack configuration.

    Returns:
        Path of the values document that was installed.
    """
    console.print(Panel.fit("Installing Prometheus Operator stack", style="bold blue"))
    values_file = write_yaml(monitoring_values(stack_cfg), stack_cfg.work_dir / VALUES_FILE_NAME)
    console.print(f"[yellow]\u2139\ufe0f  Values written to {values_file}[/yellow]")
    install_release(
        stack_cfg.monitoring_release,
        HELM_CHART_MONITORING,
        stack_cfg.monitoring_namespace,
        values_file=values_file,
        version=dep_value("charts", "kube_prometheus_stack", "version", default=""),
    )
    console.print("[green]\u2705 Monitoring stack installed[/green]")
    return values_file


def register_ingress_scrape_target(stack_cfg: StackConfig) -> Path:
    """Apply the ServiceMonitor for the ingress controller's metrics endpoint.

    Args:
        stack_cfg: Stack configuration.

    Returns:
        Path of the applied ServiceMonitor document.
    """
    console.print(Panel.fit("Setting up NGINX Ingress monitoring", style="bold blue"))
    manifest = write_yaml(ingress_service_monitor(stack_cfg), stack_cfg.work_dir / SERVICE_MONITOR_FILE_NAME)
    apply_manifest(manifest)
    console.print("[green]\u2705 ServiceMonitor applied[/green]")
    return manifest
