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


"""Grafana HTTP API client for health checks and dashboard import."""

from __future__ import annotations

import requests
from tenacity import RetryError, retry, retry_if_exception_type, stop_after_delay, wait_fixed

from monitoring_manager import console, logger
from monitoring_manager.constants import (
    GRAFANA_DASHBOARD_IMPORT_PATH,
    GRAFANA_HEALTH_PATH,
    GRAFANA_HEALTH_POLL_INTERVAL_SECONDS,
    GRAFANA_HTTP_TIMEOUT_SECONDS,
)


class GrafanaError(RuntimeError):
    """Raised when the Grafana API is unreachable or rejects a request."""


class GrafanaClient:
    def __init__(self, base_url: str, username: str, password: str) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.auth = (username, password)

    def health(self) -> dict:
        """Return Grafana's health document.

        Raises:
            requests.RequestException: If the request fails or returns an error status.
        """
        resp = self.session.get(f"{self.base_url}{GRAFANA_HEALTH_PATH}", timeout=GRAFANA_HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return resp.json()

    def wait_until_healthy(self, timeout: float) -> dict:
        """Poll the health endpoint until Grafana answers.

        Args:
            timeout: Seconds to keep polling.

        Returns:
            The first successful health document.

        Raises:
            GrafanaError: If Grafana does not answer within the timeout.
        """

        @retry(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(GRAFANA_HEALTH_POLL_INTERVAL_SECONDS),
            retry=retry_if_exception_type(requests.RequestException),
        )
        def _poll() -> dict:
            return self.health()

        try:
            health = _poll()
        except RetryError as err:
            raise GrafanaError(f"Grafana at {self.base_url} not healthy after {timeout}s") from err
        logger.info("Grafana healthy: %s", health)
        return health

    def import_dashboard(self, body: dict) -> dict:
        """Create or overwrite a dashboard.

        Args:
            body: Import body with ``dashboard``, ``folderId`` and ``overwrite``.

        Returns:
            Grafana's response document (``uid``, ``url``, ``status``...).

        Raises:
            GrafanaError: If the request fails or Grafana rejects the dashboard.
        """
        try:
            resp = self.session.post(
                f"{self.base_url}{GRAFANA_DASHBOARD_IMPORT_PATH}",
                json=body,
                timeout=GRAFANA_HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as err:
            raise GrafanaError(f"Dashboard import request failed: {err}") from err
        if resp.status_code != 200:
            raise GrafanaError(f"Dashboard import rejected ({resp.status_code}): {resp.text[:200]}")
        result = resp.json()
        title = body.get("dashboard", {}).get("title", "")
        console.print(f"[green]\u2705 Imported dashboard '{title}' ({result.get('url', '')})[/green]")
        return result
