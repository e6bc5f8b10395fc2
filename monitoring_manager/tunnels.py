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


"""kubectl port-forward tunnels with explicit handles and scoped cleanup."""

from __future__ import annotations

import socket
import subprocess
import time
from collections.abc import Callable

from tenacity import retry, retry_if_exception_type, stop_after_delay, wait_fixed

from monitoring_manager import console, logger
from monitoring_manager.constants import (
    LOCALHOST,
    PORT_POLL_INTERVAL_SECONDS,
    TUNNEL_BIND_GRACE_SECONDS,
    TUNNEL_JOIN_POLL_SECONDS,
    TUNNEL_TERMINATE_TIMEOUT_SECONDS,
)


class TunnelError(RuntimeError):
    """Raised when a tunnel exits early or its local port never opens."""


def ensure_port_free(port: int, host: str = LOCALHOST) -> None:
    """Raise TunnelError if something already holds ``host:port``.

    A leftover port-forward or a local Grafana on the same port would
    otherwise answer the readiness check in place of the new tunnel.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as err:
            raise TunnelError(f"Local port {host}:{port} is already in use") from err


def wait_for_port(
    port: int,
    timeout: float,
    host: str = LOCALHOST,
    is_alive: Callable[[], bool] | None = None,
) -> None:
    """Poll a TCP port until it accepts a connection.

    Args:
        port: Port to connect to.
        timeout: Seconds to keep polling.
        host: Host to connect to.
        is_alive: Optional liveness check of the process serving the port;
            polling stops as soon as it returns False, and it must still
            hold shortly after the first successful connect.

    Raises:
        TunnelError: If the port does not accept a connection in time or the
            serving process exits.
    """

    @retry(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(PORT_POLL_INTERVAL_SECONDS),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _try_connect() -> None:
        if is_alive is not None and not is_alive():
            raise TunnelError(f"Process serving port {port} exited before the port opened")
        with socket.create_connection((host, port), timeout=1):
            pass

    try:
        _try_connect()
    except OSError as err:
        raise TunnelError(f"Port {host}:{port} did not accept connections within {timeout}s") from err

    if is_alive is not None:
        time.sleep(TUNNEL_BIND_GRACE_SECONDS)
        if not is_alive():
            raise TunnelError(
                f"Process serving port {port} exited after {host}:{port} opened; another listener owns the port"
            )


class PortForward:
    """Handle of one background ``kubectl port-forward`` process."""

    def __init__(self, namespace: str, pod: str, local_port: int, remote_port: int) -> None:
        self.namespace = namespace
        self.pod = pod
        self.local_port = local_port
        self.remote_port = remote_port
        self.process: subprocess.Popen | None = None

    @property
    def command(self) -> list[str]:
        return [
            "kubectl", "port-forward",
            "-n", self.namespace,
            f"pod/{self.pod}",
            f"{self.local_port}:{self.remote_port}",
        ]

    def start(self) -> PortForward:
        ensure_port_free(self.local_port)
        console.print(
            f"[yellow]\u2139\ufe0f  Forwarding localhost:{self.local_port} -> "
            f"{self.namespace}/{self.pod}:{self.remote_port}[/yellow]"
        )
        self.process = subprocess.Popen(self.command, stdout=subprocess.DEVNULL)
        logger.info("Started port-forward pid=%d for %s", self.process.pid, self.pod)
        return self

    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def wait_until_listening(self, timeout: float) -> None:
        """Block until the local end of the tunnel accepts connections.

        Raises:
            TunnelError: If the tunnel exits or the port stays closed.
        """
        wait_for_port(self.local_port, timeout, is_alive=self.is_running)
        console.print(f"[green]  \u2713 localhost:{self.local_port} is accepting connections[/green]")

    def terminate(self) -> None:
        """Stop the tunnel process, killing it if it ignores SIGTERM."""
        if not self.is_running():
            return
        self.process.terminate()
        try:
            self.process.wait(timeout=TUNNEL_TERMINATE_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("port-forward pid=%d ignored SIGTERM, killing", self.process.pid)
            self.process.kill()
            self.process.wait()


def launch_port_forward(namespace: str, pod: str, local_port: int, remote_port: int) -> PortForward:
    """Start a background port-forward to a pod.

    Args:
        namespace: Namespace of the pod.
        pod: Pod name.
        local_port: Port opened on localhost.
        remote_port: Port on the pod.

    Returns:
        The running tunnel handle.
    """
    return PortForward(namespace, pod, local_port, remote_port).start()


class TunnelGroup:
    """Owns a set of tunnels and terminates all of them when the scope exits."""

    def __init__(self) -> None:
        self.tunnels: list[PortForward] = []

    def open(self, namespace: str, pod: str, local_port: int, remote_port: int) -> PortForward:
        tunnel = launch_port_forward(namespace, pod, local_port, remote_port)
        self.tunnels.append(tunnel)
        return tunnel

    def join(self) -> dict[int, int | None]:
        """Block until every tunnel exits, reporting each exit as it happens.

        Returns:
            Mapping of local port to the tunnel process exit code.
        """
        codes: dict[int, int | None] = {t.local_port: None for t in self.tunnels}
        pending = [t for t in self.tunnels if t.process is not None]
        while pending:
            for tunnel in list(pending):
                code = tunnel.process.poll()
                if code is None:
                    continue
                pending.remove(tunnel)
                codes[tunnel.local_port] = code
                if code == 0:
                    logger.info("port-forward localhost:%d exited", tunnel.local_port)
                else:
                    logger.warning("port-forward localhost:%d exited with %d", tunnel.local_port, code)
                    console.print(
                        f"[yellow]\u26a0\ufe0f  Port-forward localhost:{tunnel.local_port} "
                        f"exited with {code}[/yellow]"
                    )
            if pending:
                time.sleep(TUNNEL_JOIN_POLL_SECONDS)
        return codes

    def close(self) -> None:
        for tunnel in reversed(self.tunnels):
            tunnel.terminate()

    def __enter__(self) -> TunnelGroup:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.tunnels:
            console.print("[yellow]\u2139\ufe0f  Stopping port-forwards...[/yellow]")
        self.close()
