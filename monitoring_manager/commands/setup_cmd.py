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


"""Composite setup subcommands (monitoring, connect)."""

from __future__ import annotations

from pathlib import Path

import typer

from monitoring_manager.commands.create_cmd import minikube_config
from monitoring_manager.config import SetupOptions, StackConfig, TunnelConfig, display_config
from monitoring_manager.orchestrator import run_connect, run_setup

app = typer.Typer(help="Composite setup workflows.")


@app.command()
def monitoring(
    skip_cluster_reset: bool = typer.Option(
        False, "--skip-cluster-reset", help="Reuse the running cluster instead of recreating it"),
    skip_dashboard: bool = typer.Option(
        False, "--skip-dashboard", help="Do not import the placeholder dashboard"),
    no_wait: bool = typer.Option(
        False, "--no-wait", help="Exit after the handoff instead of holding the port-forwards open"),
    memory: int | None = typer.Option(
        None, "--memory", help="Cluster memory in MB (overrides MONITORING_MEMORY_MB)"),
    cpus: int | None = typer.Option(
        None, "--cpus", help="Cluster CPU count (overrides MONITORING_CPUS)"),
    kubernetes_version: str | None = typer.Option(
        None, "--kubernetes-version", help="Kubernetes version"),
    ready_timeout: int | None = typer.Option(
        None, "--ready-timeout", help="Seconds to wait for pods to be ready"),
    work_dir: Path | None = typer.Option(
        None, "--work-dir", help="Directory for generated documents"),
) -> None:
    """Full setup: cluster + ingress + monitoring stack + tunnels + dashboard.

    Use --skip-* flags to opt out of individual steps.
    """
    options = SetupOptions(
        skip_cluster_reset=skip_cluster_reset,
        skip_dashboard=skip_dashboard,
        wait_for_tunnels=not no_wait,
    )
    mk_cfg = minikube_config(memory, cpus, kubernetes_version)
    stack_cfg = StackConfig()
    if work_dir is not None:
        stack_cfg = stack_cfg.model_copy(update={"work_dir": work_dir})
    tunnel_cfg = TunnelConfig()
    if ready_timeout is not None:
        tunnel_cfg = tunnel_cfg.model_copy(update={"ready_timeout": ready_timeout})

    display_config(options, mk_cfg, stack_cfg, tunnel_cfg)
    report = run_setup(options, mk_cfg, stack_cfg, tunnel_cfg)
    report.print_summary()
    if report.has_failures:
        raise typer.Exit(code=1)


@app.command()
def connect(
    no_wait: bool = typer.Option(False, "--no-wait", help="Exit after printing the access details"),
) -> None:
    """Open the Grafana and Prometheus port-forwards to an existing stack."""
    report = run_connect(minikube_config(None, None, None), StackConfig(), TunnelConfig(),
                         wait_for_tunnels=not no_wait)
    report.print_summary()
    if report.has_failures:
        raise typer.Exit(code=1)
