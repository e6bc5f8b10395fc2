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


"""Configuration classes and config models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.table import Table

from monitoring_manager import console
from monitoring_manager.constants import (
    DEFAULT_CLUSTER_START_MAX_RETRIES,
    DEFAULT_GRAFANA_ADMIN_PASSWORD,
    DEFAULT_GRAFANA_ADMIN_USER,
    DEFAULT_GRAFANA_PATH,
    DEFAULT_GRAFANA_PORT,
    DEFAULT_GRAFANA_SELECTOR,
    DEFAULT_GRAFANA_STORAGE_SIZE,
    DEFAULT_INGRESS_HOST,
    DEFAULT_INGRESS_SERVICE_TYPE,
    DEFAULT_KUBERNETES_VERSION,
    DEFAULT_MINIKUBE_CPUS,
    DEFAULT_MINIKUBE_DRIVER,
    DEFAULT_MINIKUBE_MEMORY_MB,
    DEFAULT_MINIKUBE_PROFILE,
    DEFAULT_PROMETHEUS_PORT,
    DEFAULT_PROMETHEUS_RETENTION,
    DEFAULT_PROMETHEUS_SELECTOR,
    DEFAULT_SCRAPE_INTERVAL,
    DEFAULT_STORAGE_CLASS,
    HELM_RELEASE_INGRESS,
    HELM_RELEASE_MONITORING,
    NS_INGRESS,
    NS_MONITORING,
    POD_READY_TIMEOUT_SECONDS,
    PORT_READY_TIMEOUT_SECONDS,
)


# ============================================================================
# Configuration classes
# ============================================================================

class MinikubeConfig(BaseSettings):
    """minikube cluster configuration, auto-loaded from MONITORING_* env vars.

    Attributes:
        profile: minikube profile name.
        driver: minikube driver (``docker`` needs a reachable docker daemon).
        memory_mb: Memory allocated to the cluster, in MiB.
        cpus: CPU count allocated to the cluster.
        kubernetes_version: Kubernetes version to start.
        max_retries: Maximum cluster start attempts.
    """

    model_config = SettingsConfigDict(env_prefix="MONITORING_", extra="ignore")

    profile: str = DEFAULT_MINIKUBE_PROFILE
    driver: str = DEFAULT_MINIKUBE_DRIVER
    memory_mb: int = Field(default=DEFAULT_MINIKUBE_MEMORY_MB, ge=1024)
    cpus: int = Field(default=DEFAULT_MINIKUBE_CPUS, ge=1, le=64)
    kubernetes_version: str = Field(default=DEFAULT_KUBERNETES_VERSION, pattern=r"^v\d+\.\d+\.\d+$")
    max_retries: int = Field(default=DEFAULT_CLUSTER_START_MAX_RETRIES, ge=1, le=10)


class StackConfig(BaseSettings):
    """Monitoring stack layout, auto-loaded from MONITORING_* env vars.

    Attributes:
        monitoring_namespace: Namespace for the kube-prometheus-stack release.
        ingress_namespace: Namespace for the ingress controller release.
        monitoring_release: Helm release name of the monitoring stack.
        ingress_release: Helm release name of the ingress controller.
        ingress_service_type: Service type exposed by the ingress controller.
        grafana_admin_password: Admin password baked into the values document.
        ingress_host: Host name Grafana is routed under.
        grafana_path: Ingress path Grafana is served on.
        storage_class: Storage class for Grafana's persistent volume.
        grafana_storage_size: Size of Grafana's persistent volume.
        prometheus_retention: Prometheus time-series retention period.
        scrape_interval: Scrape interval of the ingress ServiceMonitor.
        work_dir: Directory the generated values and monitor documents go to.
    """

    model_config = SettingsConfigDict(env_prefix="MONITORING_", extra="ignore")

    monitoring_namespace: str = NS_MONITORING
    ingress_namespace: str = NS_INGRESS
    monitoring_release: str = HELM_RELEASE_MONITORING
    ingress_release: str = HELM_RELEASE_INGRESS
    ingress_service_type: str = DEFAULT_INGRESS_SERVICE_TYPE
    grafana_admin_password: str = DEFAULT_GRAFANA_ADMIN_PASSWORD
    ingress_host: str = DEFAULT_INGRESS_HOST
    grafana_path: str = Field(default=DEFAULT_GRAFANA_PATH, pattern=r"^/")
    storage_class: str = DEFAULT_STORAGE_CLASS
    grafana_storage_size: str = Field(default=DEFAULT_GRAFANA_STORAGE_SIZE, pattern=r"^\d+(Mi|Gi|Ti)$")
    prometheus_retention: str = Field(default=DEFAULT_PROMETHEUS_RETENTION, pattern=r"^\d+[smhdwy]$")
    scrape_interval: str = Field(default=DEFAULT_SCRAPE_INTERVAL, pattern=r"^\d+[smh]$")
    work_dir: Path = Path(".")

    @property
    def grafana_secret_name(self) -> str:
        """Name of the secret the Grafana subchart generates for its admin user."""
        return f"{self.monitoring_release}-grafana"


class TunnelConfig(BaseSettings):
    """Port-forward and readiness settings, auto-loaded from MONITORING_* env vars.

    Attributes:
        grafana_port: Local and remote port of the Grafana tunnel.
        prometheus_port: Local and remote port of the Prometheus tunnel.
        grafana_selector: Label selector resolving the Grafana pod.
        prometheus_selector: Label selector resolving the Prometheus pod.
        grafana_user: Grafana admin user name.
        ready_timeout: Seconds to wait for pods to become Ready.
        port_timeout: Seconds to wait for a tunnel's local port to accept connections.
    """

    model_config = SettingsConfigDict(env_prefix="MONITORING_", extra="ignore")

    grafana_port: int = Field(default=DEFAULT_GRAFANA_PORT, ge=1, le=65535)
    prometheus_port: int = Field(default=DEFAULT_PROMETHEUS_PORT, ge=1, le=65535)
    grafana_selector: str = DEFAULT_GRAFANA_SELECTOR
    prometheus_selector: str = DEFAULT_PROMETHEUS_SELECTOR
    grafana_user: str = DEFAULT_GRAFANA_ADMIN_USER
    ready_timeout: int = Field(default=POD_READY_TIMEOUT_SECONDS, ge=1)
    port_timeout: int = Field(default=PORT_READY_TIMEOUT_SECONDS, ge=1)

    @property
    def grafana_url(self) -> str:
        return f"http://localhost:{self.grafana_port}"

    @property
    def prometheus_url(self) -> str:
        return f"http://localhost:{self.prometheus_port}"


# ============================================================================
# Setup options
# ============================================================================

@dataclass(frozen=True)
class SetupOptions:
    """Options for the full monitoring setup workflow.

    Attributes:
        skip_cluster_reset: Reuse the running cluster instead of recreating it.
        skip_dashboard: Do not import the placeholder dashboard.
        wait_for_tunnels: Block on the port-forwards until interrupted.
    """

    skip_cluster_reset: bool = False
    skip_dashboard: bool = False
    wait_for_tunnels: bool = True


def display_config(
    options: SetupOptions,
    minikube_cfg: MinikubeConfig,
    stack_cfg: StackConfig,
    tunnel_cfg: TunnelConfig,
) -> None:
    """Print the resolved configuration as a table."""
    table = Table(title="Monitoring setup configuration", show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Cluster reset", "skipped" if options.skip_cluster_reset else "yes")
    table.add_row("Cluster", (
        f"{minikube_cfg.profile} ({minikube_cfg.driver}, {minikube_cfg.memory_mb}MB, "
        f"{minikube_cfg.cpus} CPUs, {minikube_cfg.kubernetes_version})"
    ))
    table.add_row("Namespaces", f"{stack_cfg.monitoring_namespace}, {stack_cfg.ingress_namespace}")
    table.add_row("Releases", f"{stack_cfg.monitoring_release}, {stack_cfg.ingress_release}")
    table.add_row("Tunnels", f"{tunnel_cfg.grafana_port}, {tunnel_cfg.prometheus_port}")
    table.add_row("Placeholder dashboard", "skipped" if options.skip_dashboard else "yes")
    console.print(table)
