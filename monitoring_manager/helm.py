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


"""Helm chart repositories and idempotent release management."""

from __future__ import annotations

from pathlib import Path

import sh
from rich.panel import Panel

from monitoring_manager import console
from monitoring_manager.constants import (
    HELM_REPO_NGINX,
    HELM_REPO_NGINX_URL,
    HELM_REPO_PROMETHEUS,
    HELM_REPO_PROMETHEUS_URL,
)
from monitoring_manager.utils import helm_set_args

CHART_REPOSITORIES = (
    (HELM_REPO_PROMETHEUS, HELM_REPO_PROMETHEUS_URL),
    (HELM_REPO_NGINX, HELM_REPO_NGINX_URL),
)


def add_repositories(repos: tuple[tuple[str, str], ...] = CHART_REPOSITORIES) -> None:
    """Register chart repositories and refresh the local chart index.

    Args:
        repos: Pairs of (repository name, repository URL).
    """
    console.print(Panel.fit("Adding Helm repositories", style="bold blue"))
    for name, url in repos:
        sh.helm("repo", "add", name, url, "--force-update")
        console.print(f"[green]  \u2713 {name} ({url})[/green]")
    sh.helm("repo", "update")
    console.print("[green]\u2705 Helm repositories updated[/green]")


def install_release(
    release: str,
    chart: str,
    namespace: str,
    *,
    set_values: dict[str, str] | None = None,
    values_file: Path | None = None,
    version: str = "",
) -> None:
    """Install or upgrade a helm release.

    ``upgrade --install`` makes a rerun converge on the same release instead
    of failing because the release already exists.

    Args:
        release: Helm release name.
        chart: Chart reference (``repo/chart``).
        namespace: Namespace the release is installed into.
        set_values: Optional ``--set`` overrides.
        values_file: Optional values document passed with ``--values``.
        version: Chart version to install, or empty string for latest.
    """
    helm_args = ["upgrade", "--install", release, chart, "--namespace", namespace]
    if version:
        helm_args += ["--version", version]
    if set_values:
        helm_args += helm_set_args(set_values)
    if values_file is not None:
        helm_args += ["--values", str(values_file)]
    sh.helm(*helm_args)


def uninstall_release(release: str, namespace: str) -> None:
    """Uninstall a helm release, tolerating a missing release.

    Args:
        release: Helm release name.
        namespace: Namespace the release lives in.
    """
    try:
        sh.helm("uninstall", release, "-n", namespace)
        console.print(f"[green]\u2705 Release '{release}' uninstalled[/green]")
    except sh.ErrorReturnCode_1:
        console.print(f"[yellow]\u26a0\ufe0f  Release '{release}' not found in '{namespace}'[/yellow]")
