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


"""Utility functions for kubectl, helm overrides, secrets, and command checks."""

from __future__ import annotations

import base64
import binascii
import subprocess

import sh


def helm_set_args(overrides: dict[str, str]) -> list[str]:
    """Build ``--set`` arguments from a mapping of helm value overrides.

    Args:
        overrides: Mapping of dotted helm value keys to their string values.

    Returns:
        Flat list of ``["--set", "key=value", ...]`` arguments.
    """
    return [item for key, value in overrides.items() for item in ("--set", f"{key}={value}")]


def decode_secret_value(encoded: str) -> str:
    """Decode a base64 value read from a Kubernetes secret's ``data`` map.

    Args:
        encoded: Base64 text as returned by the API server.

    Returns:
        The decoded UTF-8 value.

    Raises:
        ValueError: If the value is empty or not valid base64.
    """
    encoded = encoded.strip()
    if not encoded:
        raise ValueError("Secret value is empty")
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as err:
        raise ValueError(f"Secret value is not valid base64: {err}") from err


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Used wherever the caller branches on kubectl's stderr (``AlreadyExists``,
    wait timeouts, empty selectors), which needs stdout and stderr kept apart.

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "monitoring"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except subprocess.TimeoutExpired as exc:
        return False, "", f"kubectl timed out after {exc.timeout}s"
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)
