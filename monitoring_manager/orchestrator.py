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


"""Orchestration functions that compose domain modules into the setup workflow."""

from __future__ import annotations

from dataclasses import replace

import sh
from rich.panel import Panel
from rich.table import Table

from monitoring_manager import console
from monitoring_manager.cluster import check_docker_daemon, cluster_ip, reset_cluster
from monitoring_manager.components import (
    install_ingress_controller,
    install_monitoring_stack,
    register_ingress_scrape_target,
)
from monitoring_manager.config import MinikubeConfig, SetupOptions, StackConfig, TunnelConfig
from monitoring_manager.constants import (
    COMMUNITY_DASHBOARDS,
    GRAFANA_ADMIN_SECRET_KEY,
    GRAFANA_HEALTH_TIMEOUT_SECONDS,
    REQUIRED_COMMANDS,
)
from monitoring_manager.grafana import GrafanaClient, GrafanaError
from monitoring_manager.helm import add_repositories
from monitoring_manager.kube import ensure_namespace, find_pod, read_secret_value, wait_for_pods_ready
from monitoring_manager.manifests import placeholder_dashboard
from monitoring_manager.outcomes import SetupReport
from monitoring_manager.tunnels import TunnelGroup
from monitoring_manager.utils import require_command

STEP_CLUSTER = "cluster reset"
STEP_REPOS = "chart repositories"
STEP_NAMESPACES = "namespaces"
STEP_INGRESS = "ingress controller"
STEP_MONITORING = "monitoring stack"
STEP_SCRAPE = "ingress scrape target"
STEP_TUNNELS = "port-forwards"
STEP_CREDENTIALS = "grafana credentials"
STEP_DASHBOARD = "placeholder dashboard"
STEP_CLUSTER_IP = "cluster ip"


# ============================================================================
# Internal helpers
# ============================================================================


def _check_prerequisites(mk_cfg: MinikubeConfig, reset: bool) -> None:
    """Check CLI tools and, when a docker-driven cluster is created, the daemon.

    Args:
        mk_cfg: minikube configuration with the driver name.
        reset: Whether the cluster will be recreated.
    """
    console.print(Panel.fit("Checking prerequisites", style="bold blue"))
    for cmd in REQUIRED_COMMANDS:
        require_command(cmd)
    if reset and mk_cfg.driver == "docker":
        require_command("docker")
        check_docker_daemon()
    console.print("[green]\u2705 All required tools are available[/green]")


def create_namespaces(stack_cfg: StackConfig) -> None:
    console.print(Panel.fit("Creating namespaces", style="bold blue"))
    ensure_namespace(stack_cfg.monitoring_namespace)
    ensure_namespace(stack_cfg.ingress_namespace)


def wait_for_stack(stack_cfg: StackConfig, tunnel_cfg: TunnelConfig, report: SetupReport) -> None:
    """Best-effort readiness barrier over both namespaces; never raises on unready pods."""
    console.print(Panel.fit("Waiting for pods to be ready", style="bold blue"))
    for namespace in (stack_cfg.monitoring_namespace, stack_cfg.ingress_namespace):
        # Unready pods are reported but never change the run's exit status.
        report.record(replace(wait_for_pods_ready(namespace, tunnel_cfg.ready_timeout), fatal=False))


def open_tunnels(tunnels: TunnelGroup, stack_cfg: StackConfig, tunnel_cfg: TunnelConfig) -> None:
    """Resolve the Grafana and Prometheus pods and forward their ports.

    Returns once both local ports accept connections.

    Raises:
        PodLookupError: If either selector matches no pod.
        TunnelError: If a tunnel exits or its port never opens.
    """
    console.print(Panel.fit("Setting up port-forwarding", style="bold blue"))
    ns = stack_cfg.monitoring_namespace
    grafana_pod = find_pod(ns, tunnel_cfg.grafana_selector)
    prometheus_pod = find_pod(ns, tunnel_cfg.prometheus_selector)
    opened = [
        tunnels.open(ns, grafana_pod, tunnel_cfg.grafana_port, tunnel_cfg.grafana_port),
        tunnels.open(ns, prometheus_pod, tunnel_cfg.prometheus_port, tunnel_cfg.prometheus_port),
    ]
    for tunnel in opened:
        tunnel.wait_until_listening(tunnel_cfg.port_timeout)


def fetch_grafana_password(stack_cfg: StackConfig, tunnel_cfg: TunnelConfig, report: SetupReport) -> str | None:
    """Read the generated Grafana admin password and print the login details."""
    try:
        password = read_secret_value(
            stack_cfg.monitoring_namespace, stack_cfg.grafana_secret_name, GRAFANA_ADMIN_SECRET_KEY,
        )
    except RuntimeError as err:
        console.print(f"[red]\u274c {err}[/red]")
        report.failed(STEP_CREDENTIALS, str(err))
        return None
    report.completed(STEP_CREDENTIALS)
    console.print("[bold]Grafana credentials:[/bold]")
    console.print(f"  URL: {tunnel_cfg.grafana_url}")
    console.print(f"  Username: {tunnel_cfg.grafana_user}")
    console.print(f"  Password: {password}")
    return password


def seed_dashboard(tunnel_cfg: TunnelConfig, password: str, report: SetupReport) -> None:
    """Import the placeholder dashboard once Grafana answers through its tunnel."""
    console.print(Panel.fit("Importing NGINX Ingress dashboard into Grafana", style="bold blue"))
    client = GrafanaClient(tunnel_cfg.grafana_url, tunnel_cfg.grafana_user, password)
    try:
        client.wait_until_healthy(GRAFANA_HEALTH_TIMEOUT_SECONDS)
        result = client.import_dashboard(placeholder_dashboard())
    except GrafanaError as err:
        console.print(f"[red]\u274c {err}[/red]")
        report.failed(STEP_DASHBOARD, str(err))
        return
    report.completed(STEP_DASHBOARD, result.get("url", ""))


def print_handoff(mk_cfg: MinikubeConfig, stack_cfg: StackConfig, tunnel_cfg: TunnelConfig,
                  report: SetupReport) -> None:
    """Print access URLs, ingress routing hints, and community dashboard IDs."""
    try:
        ip = cluster_ip(mk_cfg)
        report.completed(STEP_CLUSTER_IP, ip)
    except sh.ErrorReturnCode as err:
        ip = "<minikube ip>"
        report.failed(STEP_CLUSTER_IP, str(err))

    console.print(Panel.fit("Monitoring Setup Complete", style="bold green"))
    console.print(f"Access Grafana at: {tunnel_cfg.grafana_url}")
    console.print(f"Access Prometheus at: {tunnel_cfg.prometheus_url}")
    console.print("")
    console.print("To access Grafana via Ingress, add this to your /etc/hosts file:")
    console.print(f"  {ip} {stack_cfg.ingress_host}")
    console.print(f"Then go to: http://{stack_cfg.ingress_host}{stack_cfg.grafana_path}")
    console.print("")

    table = Table(title="Useful Dashboard IDs to Import", show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Dashboard")
    for ids, description in COMMUNITY_DASHBOARDS:
        table.add_row(ids, description)
    console.print(table)
    console.print("Import dashboards via:")
    console.print("  1. Grafana UI → + → Import → Enter Dashboard ID")
    console.print("  2. Select the 'Prometheus' data source")


def _block_on_tunnels(tunnels: TunnelGroup, report: SetupReport) -> None:
    """Wait on the tunnels until they exit or the operator interrupts."""
    console.print("")
    console.print("[bold]Press Ctrl+C to stop port-forwarding when done.[/bold]")
    try:
        exit_codes = tunnels.join()
    except KeyboardInterrupt:
        console.print("")
        console.print("[yellow]\u2139\ufe0f  Interrupted by operator[/yellow]")
        return
    failed = {port: code for port, code in exit_codes.items() if code not in (0, None)}
    if failed:
        detail = ", ".join(f"localhost:{port} exited with {code}" for port, code in failed.items())
        console.print(f"[red]\u274c {detail}[/red]")
        report.failed(STEP_TUNNELS, detail)


# ============================================================================
# Public API
# ============================================================================


def run_setup(
    options: SetupOptions,
    mk_cfg: MinikubeConfig,
    stack_cfg: StackConfig,
    tunnel_cfg: TunnelConfig,
) -> SetupReport:
    """Run the full workflow: cluster, charts, scrape target, tunnels, dashboard, handoff.

    Steps up to the scrape-target registration abort the run on failure.
    The readiness barrier, credential retrieval, and dashboard import only
    record their outcome. Tunnels are terminated on every exit path.

    Args:
        options: Workflow options.
        mk_cfg: minikube configuration.
        stack_cfg: Stack configuration.
        tunnel_cfg: Tunnel and readiness configuration.

    Returns:
        Report with the outcome of every step.

    Raises:
        RuntimeError: If a provisioning step or the tunnel setup fails.
        ErrorReturnCode: If minikube or helm exits with an error.
    """
    report = SetupReport()
    _check_prerequisites(mk_cfg, reset=not options.skip_cluster_reset)

    if options.skip_cluster_reset:
        report.skipped(STEP_CLUSTER)
    else:
        reset_cluster(mk_cfg)
        report.completed(STEP_CLUSTER)

    add_repositories()
    report.completed(STEP_REPOS)

    create_namespaces(stack_cfg)
    report.completed(STEP_NAMESPACES)

    install_ingress_controller(stack_cfg)
    report.completed(STEP_INGRESS)

    values_file = install_monitoring_stack(stack_cfg)
    report.completed(STEP_MONITORING, str(values_file))

    manifest = register_ingress_scrape_target(stack_cfg)
    report.completed(STEP_SCRAPE, str(manifest))

    wait_for_stack(stack_cfg, tunnel_cfg, report)

    with TunnelGroup() as tunnels:
        open_tunnels(tunnels, stack_cfg, tunnel_cfg)
        report.completed(STEP_TUNNELS)

        password = fetch_grafana_password(stack_cfg, tunnel_cfg, report)
        if options.skip_dashboard:
            report.skipped(STEP_DASHBOARD)
        elif password is not None:
            seed_dashboard(tunnel_cfg, password, report)
        else:
            report.skipped(STEP_DASHBOARD, "no admin credential")

        print_handoff(mk_cfg, stack_cfg, tunnel_cfg, report)
        if options.wait_for_tunnels:
            _block_on_tunnels(tunnels, report)

    return report


def run_connect(
    mk_cfg: MinikubeConfig,
    stack_cfg: StackConfig,
    tunnel_cfg: TunnelConfig,
    wait_for_tunnels: bool = True,
) -> SetupReport:
    """Open the tunnels to an already provisioned stack and print the handoff.

    Args:
        mk_cfg: minikube configuration.
        stack_cfg: Stack configuration.
        tunnel_cfg: Tunnel configuration.
        wait_for_tunnels: Whether to block until the operator interrupts.

    Returns:
        Report with the outcome of every step.
    """
    report = SetupReport()
    require_command("kubectl")
    with TunnelGroup() as tunnels:
        open_tunnels(tunnels, stack_cfg, tunnel_cfg)
        report.completed(STEP_TUNNELS)
        fetch_grafana_password(stack_cfg, tunnel_cfg, report)
        print_handoff(mk_cfg, stack_cfg, tunnel_cfg, report)
        if wait_for_tunnels:
            _block_on_tunnels(tunnels, report)
    return report
