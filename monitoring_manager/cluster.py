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


"""minikube cluster lifecycle and docker driver checks."""

from __future__ import annotations

import docker
import requests
import sh
from rich.panel import Panel
from tenacity import retry, stop_after_attempt, wait_fixed

from monitoring_manager import console, logger
from monitoring_manager.config import MinikubeConfig
from monitoring_manager.constants import CLUSTER_START_RETRY_WAIT_SECONDS


def check_docker_daemon() -> None:
    """Verify the docker daemon backing the minikube docker driver is reachable.

    Raises:
        RuntimeError: If the daemon cannot be contacted.
    """
    try:
        client = docker.from_env()
    except docker.errors.DockerException as err:
        raise RuntimeError(f"Docker daemon is not reachable: {err}") from err
    try:
        client.ping()
    except (docker.errors.APIError, requests.ConnectionError) as err:
        raise RuntimeError(f"Docker daemon did not answer ping: {err}") from err
    finally:
        client.close()


def stop_cluster(mk_cfg: MinikubeConfig) -> None:
    """Stop the minikube cluster, tolerating a missing cluster.

    Args:
        mk_cfg: minikube configuration with the profile name.
    """
    console.print(f"[yellow]\u2139\ufe0f  Stopping minikube profile '{mk_cfg.profile}'...[/yellow]")
    try:
        sh.minikube("stop", "-p", mk_cfg.profile)
        console.print(f"[green]\u2705 Cluster '{mk_cfg.profile}' stopped[/green]")
    except sh.ErrorReturnCode as err:
        logger.debug("minikube stop failed: %s", err)
        console.print(f"[yellow]\u26a0\ufe0f  Cluster '{mk_cfg.profile}' not running or not found[/yellow]")


def delete_cluster(mk_cfg: MinikubeConfig) -> None:
    """Delete the minikube cluster, tolerating a missing cluster.

    Args:
        mk_cfg: minikube configuration with the profile name.
    """
    console.print(f"[yellow]\u2139\ufe0f  Deleting minikube profile '{mk_cfg.profile}'...[/yellow]")
    try:
        sh.minikube("delete", "-p", mk_cfg.profile)
        console.print(f"[green]\u2705 Cluster '{mk_cfg.profile}' deleted[/green]")
    except sh.ErrorReturnCode as err:
        logger.debug("minikube delete failed: %s", err)
        console.print(f"[yellow]\u26a0\ufe0f  Cluster '{mk_cfg.profile}' not found or already deleted[/yellow]")


def start_cluster(mk_cfg: MinikubeConfig) -> None:
    """Start a minikube cluster with the configured resources.

    Args:
        mk_cfg: minikube configuration including retry count.

    Raises:
        ErrorReturnCode: If the cluster cannot be started after all retries.
    """
    console.print(Panel.fit("Starting minikube cluster", style="bold blue"))
    console.print(
        f"[yellow]Driver: {mk_cfg.driver}, memory: {mk_cfg.memory_mb}MB, "
        f"cpus: {mk_cfg.cpus}, kubernetes: {mk_cfg.kubernetes_version}[/yellow]"
    )

    @retry(
        stop=stop_after_attempt(mk_cfg.max_retries),
        wait=wait_fixed(CLUSTER_START_RETRY_WAIT_SECONDS),
        reraise=True,
    )
    def _attempt() -> None:
        sh.minikube(
            "start",
            "-p", mk_cfg.profile,
            f"--driver={mk_cfg.driver}",
            f"--memory={mk_cfg.memory_mb}",
            f"--cpus={mk_cfg.cpus}",
            f"--kubernetes-version={mk_cfg.kubernetes_version}",
        )

    _attempt()
    console.print("[green]\u2705 Cluster started successfully[/green]")


def reset_cluster(mk_cfg: MinikubeConfig) -> None:
    """Stop and delete any existing cluster, then start a fresh one.

    Args:
        mk_cfg: minikube configuration.
    """
    console.print(Panel.fit("Resetting minikube cluster", style="bold blue"))
    stop_cluster(mk_cfg)
    delete_cluster(mk_cfg)
    start_cluster(mk_cfg)


def cluster_ip(mk_cfg: MinikubeConfig) -> str:
    """Return the externally reachable address of the minikube node.

    Args:
        mk_cfg: minikube configuration with the profile name.

    Returns:
        The node IP address as printed by ``minikube ip``.
    """
    return str(sh.minikube("ip", "-p", mk_cfg.profile)).strip()
