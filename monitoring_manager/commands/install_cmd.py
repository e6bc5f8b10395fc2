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


"""Install subcommands (repos, ingress, monitoring, service-monitor)."""

from __future__ import annotations

from pathlib import Path

import typer

from monitoring_manager.components import (
    install_ingress_controller,
    install_monitoring_stack,
    register_ingress_scrape_target,
)
from monitoring_manager.config import StackConfig
from monitoring_manager.helm import add_repositories

app = typer.Typer(help="Install components.")


def _stack_config(work_dir: Path | None) -> StackConfig:
    stack_cfg = StackConfig()
    if work_dir is not None:
        stack_cfg = stack_cfg.model_copy(update={"work_dir": work_dir})
    return stack_cfg


@app.command()
def repos() -> None:
    """Add the chart repositories and refresh the index."""
    add_repositories()


@app.command()
def ingress() -> None:
    """Install the NGINX ingress controller via Helm."""
    install_ingress_controller(StackConfig())


@app.command()
def monitoring(
    work_dir: Path | None = typer.Option(None, "--work-dir", help="Directory for the generated values file"),
) -> None:
    """Install kube-prometheus-stack with the local-cluster values document."""
    install_monitoring_stack(_stack_config(work_dir))


@app.command("service-monitor")
def service_monitor(
    work_dir: Path | None = typer.Option(None, "--work-dir", help="Directory for the generated manifest"),
) -> None:
    """Register the ingress controller as a Prometheus scrape target."""
    register_ingress_scrape_target(_stack_config(work_dir))
