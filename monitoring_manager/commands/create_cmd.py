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


"""Create subcommands (minikube-cluster, namespaces)."""

from __future__ import annotations

import typer

from monitoring_manager.cluster import reset_cluster
from monitoring_manager.config import MinikubeConfig, StackConfig
from monitoring_manager.orchestrator import create_namespaces

app = typer.Typer(help="Create infrastructure resources.")


def minikube_config(memory: int | None, cpus: int | None, kubernetes_version: str | None) -> MinikubeConfig:
    """Load MinikubeConfig from the environment and apply CLI overrides."""
    mk_cfg = MinikubeConfig()
    overrides: dict = {}
    if memory is not None:
        overrides["memory_mb"] = memory
    if cpus is not None:
        overrides["cpus"] = cpus
    if kubernetes_version is not None:
        overrides["kubernetes_version"] = kubernetes_version
    if overrides:
        mk_cfg = mk_cfg.model_copy(update=overrides)
    return mk_cfg


@app.command("minikube-cluster")
def minikube_cluster(
    memory: int | None = typer.Option(None, "--memory", help="Cluster memory in MB"),
    cpus: int | None = typer.Option(None, "--cpus", help="Cluster CPU count"),
    kubernetes_version: str | None = typer.Option(None, "--kubernetes-version", help="Kubernetes version"),
) -> None:
    """Recreate the minikube cluster from scratch."""
    reset_cluster(minikube_config(memory, cpus, kubernetes_version))


@app.command()
def namespaces() -> None:
    """Create the monitoring and ingress namespaces if missing."""
    create_namespaces(StackConfig())
