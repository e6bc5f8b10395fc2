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


"""Cluster API server operations: namespaces, manifests, readiness, pods, and secrets."""

from __future__ import annotations

import json
from pathlib import Path

from monitoring_manager import console, logger
from monitoring_manager.constants import KUBECTL_TIMEOUT_MARGIN_SECONDS
from monitoring_manager.outcomes import StepResult, StepStatus
from monitoring_manager.utils import decode_secret_value, run_kubectl


class PodLookupError(RuntimeError):
    """Raised when a label selector resolves to no pod."""


def namespace_exists(name: str) -> bool:
    ok, _, _ = run_kubectl(["get", "namespace", name])
    return ok


def ensure_namespace(name: str) -> bool:
    """Create a namespace unless it already exists.

    Args:
        name: Namespace name.

    Returns:
        True if the namespace was created, False if it already existed.

    Raises:
        RuntimeError: If namespace creation fails for any other reason.
    """
    if namespace_exists(name):
        console.print(f"[yellow]   Namespace '{name}' already exists[/yellow]")
        return False
    ok, _, stderr = run_kubectl(["create", "namespace", name])
    if not ok:
        if "AlreadyExists" in stderr:
            console.print(f"[yellow]   Namespace '{name}' already exists[/yellow]")
            return False
        raise RuntimeError(f"Failed to create namespace {name}: {stderr.strip()}")
    console.print(f"[green]  \u2713 Created namespace '{name}'[/green]")
    return True


def apply_manifest(path: Path) -> None:
    """Apply a declarative manifest file with ``kubectl apply``.

    Args:
        path: Path to the YAML manifest.

    Raises:
        RuntimeError: If the API server rejects the manifest.
    """
    ok, stdout, stderr = run_kubectl(["apply", "-f", str(path)])
    if not ok:
        raise RuntimeError(f"Failed to apply {path}: {stderr.strip()}")
    logger.info(stdout.strip())


def wait_for_pods_ready(namespace: str, timeout: int) -> StepResult:
    """Wait for every pod in a namespace to report the Ready condition.

    Never raises for an unhealthy namespace; the outcome is returned instead.

    Args:
        namespace: Namespace whose pods are awaited.
        timeout: Seconds kubectl waits before giving up.

    Returns:
        A completed, timed out, or failed step result.
    """
    step = f"pods ready in {namespace}"
    console.print(f"[yellow]\u2139\ufe0f  Waiting up to {timeout}s for pods in '{namespace}' to be ready...[/yellow]")
    ok, _, stderr = run_kubectl(
        ["wait", "--for=condition=Ready", "pods", "--all", "-n", namespace, f"--timeout={timeout}s"],
        timeout=timeout + KUBECTL_TIMEOUT_MARGIN_SECONDS,
    )
    if ok:
        console.print(f"[green]\u2705 All pods in '{namespace}' are ready[/green]")
        return StepResult(step, StepStatus.COMPLETED)
    detail = stderr.strip()
    if "timed out" in detail.lower():
        console.print(f"[yellow]\u26a0\ufe0f  Pods in '{namespace}' not ready after {timeout}s, continuing[/yellow]")
        return StepResult(step, StepStatus.TIMED_OUT, detail)
    console.print(f"[yellow]\u26a0\ufe0f  Readiness wait in '{namespace}' failed, continuing: {detail[:200]}[/yellow]")
    return StepResult(step, StepStatus.FAILED, detail)


def find_pod(namespace: str, selector: str) -> str:
    """Resolve a single pod name from a label selector.

    When several pods match, a Running pod is preferred and the choice is logged.

    Args:
        namespace: Namespace to search.
        selector: Kubernetes label selector (e.g. ``app.kubernetes.io/name=grafana``).

    Returns:
        The selected pod name.

    Raises:
        PodLookupError: If kubectl fails, its reply is not JSON, or no pod
            matches the selector.
    """
    ok, stdout, stderr = run_kubectl(["get", "pods", "-n", namespace, "-l", selector, "-o", "json"])
    if not ok:
        raise PodLookupError(f"Failed to list pods in {namespace} with selector '{selector}': {stderr.strip()}")
    try:
        items = json.loads(stdout or "{}").get("items", [])
    except json.JSONDecodeError as err:
        raise PodLookupError(f"Unreadable pod list for selector '{selector}' in {namespace}: {err}") from err
    if not items:
        raise PodLookupError(f"No pod in '{namespace}' matches selector '{selector}'")

    running = [p for p in items if p.get("status", {}).get("phase") == "Running"]
    chosen = (running or items)[0]["metadata"]["name"]
    if len(items) > 1:
        names = ", ".join(p["metadata"]["name"] for p in items)
        logger.warning("Selector '%s' matched %d pods (%s); using %s", selector, len(items), names, chosen)
    return chosen


def read_secret_value(namespace: str, name: str, key: str) -> str:
    """Read and decode one key of a Kubernetes secret.

    Args:
        namespace: Namespace the secret lives in.
        name: Secret name.
        key: Key inside the secret's ``data`` map.

    Returns:
        The decoded value.

    Raises:
        RuntimeError: If the secret cannot be read or parsed, or lacks the key.
    """
    ok, stdout, stderr = run_kubectl(["get", "secret", name, "-n", namespace, "-o", "json"])
    if not ok:
        raise RuntimeError(f"Failed to read secret {namespace}/{name}: {stderr.strip()}")
    try:
        data = json.loads(stdout).get("data") or {}
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Unreadable secret {namespace}/{name}: {err}") from err
    if key not in data:
        raise RuntimeError(f"Secret {namespace}/{name} has no key '{key}'")
    try:
        return decode_secret_value(data[key])
    except ValueError as err:
        raise RuntimeError(f"Secret {namespace}/{name} key '{key}': {err}") from err
