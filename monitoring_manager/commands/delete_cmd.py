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


"""Delete subcommands (minikube-cluster, monitoring, ingress)."""

from __future__ import annotations

import typer

from monitoring_manager.cluster import delete_cluster, stop_cluster
from monitoring_manager.config import MinikubeConfig, StackConfig
from monitoring_manager.helm import uninstall_release

app = typer.Typer(help="Delete infrastructure resources.")


@app.command("minikube-cluster")
def minikube_cluster(
    profile: str | None = typer.Option(None, "--profile", help="minikube profile"),
) -> None:
    """Stop and delete the minikube cluster."""
    mk_cfg = MinikubeConfig()
    if profile is not None:
        mk_cfg = mk_cfg.model_copy(update={"profile": profile})
    stop_cluster(mk_cfg)
    delete_cluster(mk_cfg)


@app.command()
def monitoring() -> None:
    """Uninstall the kube-prometheus-stack release."""
    stack_cfg = StackConfig()
    uninstall_release(stack_cfg.monitoring_release, stack_cfg.monitoring_namespace)


@app.command()
def ingress() -> None:
    """Uninstall the NGINX ingress controller release."""
    stack_cfg = StackConfig()
    uninstall_release(stack_cfg.ingress_release, stack_cfg.ingress_namespace)
