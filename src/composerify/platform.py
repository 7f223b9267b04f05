"""Hosting platform API client.

Covers the handful of calls the workflows need: site lookup, upstream
identity, repository location and switching a site's upstream.
"""

from __future__ import annotations

import os
import re
import time
from typing import Any, Callable

import httpx

from .config import PlatformConfig
from .errors import PlatformError
from .types import SiteConnection, SiteInfo

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

GIT_URL_TEMPLATE = "ssh://codeserver.dev.{id}@codeserver.dev.{id}.drush.in:2222/~/repository.git"


class PantheonClient:
    """
    Synchronous HTTP client for the platform API.

    Authentication is lazy: the machine token is exchanged for a session on
    the first request.
    """

    def __init__(
        self,
        config: PlatformConfig,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._transport = transport
        self._sleep = sleep
        self._session: str | None = None

    def get_site(self, site_id: str) -> SiteInfo:
        """Look up a site by name or UUID."""
        uuid = self._site_uuid(site_id)
        site = self._request("GET", f"/sites/{uuid}")
        upstream = self._request("GET", f"/sites/{uuid}/code-upstream")
        return SiteInfo(
            id=uuid,
            name=str(site.get("name", site_id)),
            framework=str(site.get("framework", "")),
            upstream=str(upstream.get("machine_name", "")),
        )

    def resolve(self, site_id: str) -> SiteConnection:
        """Return the dev environment git URL and the local copy path for a site."""
        site = self.get_site(site_id)
        return SiteConnection(
            site_id=site.id,
            name=site.name,
            git_url=GIT_URL_TEMPLATE.format(id=site.id),
            local_path=self.config.local_copies_path / site.name,
        )

    def switch_upstream(self, site_id: str, upstream_id: str) -> None:
        """Point the site at another upstream and wait for the platform workflow."""
        uuid = self._site_uuid(site_id)
        workflow = self._request(
            "POST",
            f"/sites/{uuid}/workflows",
            json={"type": "switch_upstream", "params": {"upstream_id": upstream_id}},
        )
        self._wait_for_workflow(uuid, str(workflow["id"]))

    def dashboard_url(self, site_id: str, env: str = "dev") -> str:
        return f"{self.config.dashboard_url}/sites/{self._site_uuid(site_id)}#{env}"

    def _wait_for_workflow(self, site_uuid: str, workflow_id: str) -> None:
        deadline = time.monotonic() + self.config.workflow_timeout_seconds
        while True:
            workflow = self._request("GET", f"/sites/{site_uuid}/workflows/{workflow_id}")
            result = workflow.get("result")
            if result == "succeeded":
                return
            if result == "failed":
                reason = (workflow.get("final_task") or {}).get("reason") or "unknown reason"
                raise PlatformError(f"Platform workflow {workflow_id} failed: {reason}")
            if time.monotonic() >= deadline:
                raise PlatformError(
                    f"Platform workflow {workflow_id} did not finish within "
                    f"{self.config.workflow_timeout_seconds}s"
                )
            self._sleep(self.config.workflow_poll_seconds)

    def _site_uuid(self, site_id: str) -> str:
        if _UUID_RE.match(site_id):
            return site_id
        data = self._request("GET", f"/site-names/{site_id}")
        return str(data["id"])

    def _authenticate(self) -> str:
        if self._session:
            return self._session
        if not self.config.machine_token:
            raise PlatformError(
                "No machine token configured (set platform.machine_token or COMPOSERIFY_MACHINE_TOKEN)"
            )
        data = self._send(
            "POST",
            "/authorize/machine-token",
            json={"machine_token": self.config.machine_token, "client": "terminus"},
        )
        self._session = str(data["session"])
        return self._session

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        session = self._authenticate()
        return self._send(method, path, json=json, headers={"Authorization": f"Bearer {session}"})

    def _send(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if os.getenv("COMPOSERIFY_DISABLE_NETWORK") == "1" and self._transport is None:
            raise RuntimeError("Network access disabled by COMPOSERIFY_DISABLE_NETWORK")

        try:
            with httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise PlatformError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise PlatformError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()
