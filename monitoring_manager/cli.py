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


"""
cli.py - Unified CLI for the local minikube monitoring stack.

Subcommands:
    create     Create infrastructure resources (minikube-cluster, namespaces)
    delete     Delete infrastructure resources (minikube-cluster, monitoring, ingress)
    install    Install components (repos, ingress, monitoring, service-monitor)
    setup      Composite workflows (monitoring, connect)

Environment Variables:
    All configuration can be overridden via MONITORING_* environment variables:
    - MONITORING_MEMORY_MB (default: 6144)
    - MONITORING_CPUS (default: 4)
    - MONITORING_KUBERNETES_VERSION (default: from dependencies.yaml)
    - MONITORING_READY_TIMEOUT (default: 300)
    - And more (see config classes for full list)

Examples:
    # Full setup (recreates the cluster)
    monitoring-manager setup monitoring

    # Reinstall the stack on the running cluster, no blocking
    monitoring-manager setup monitoring --skip-cluster-reset --no-wait

    # Reconnect to Grafana and Prometheus later
    monitoring-manager setup connect

    # Delete cluster
    monitoring-manager delete minikube-cluster
"""

from __future__ import annotations

import logging
import sys

import typer

from monitoring_manager import console
from monitoring_manager.commands import create_cmd, delete_cmd, install_cmd, setup_cmd

app = typer.Typer(
    help="Unified CLI for the local minikube monitoring stack.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(create_cmd.app, name="create")
app.add_typer(delete_cmd.app, name="delete")
app.add_typer(install_cmd.app, name="install")
app.add_typer(setup_cmd.app, name="setup")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
