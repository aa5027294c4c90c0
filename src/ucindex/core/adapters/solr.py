from __future__ import annotations

from typing import Any, Mapping

import requests

from ucindex.core.config import SolrSettings
from ucindex.core.errors import RemoteError

DELETE_ALL = {"delete": {"query": "*:*"}}


class SolrAdapter:
    """Adapter around the Solr update and admin HTTP APIs of one core."""

    def __init__(
        self, settings: SolrSettings, session: requests.Session | None = None
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Send one request to the core and return the decoded JSON body."""
        url = f"{self.settings.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                params=params,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteError(f"Solr {method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise RemoteError(
                f"Solr {method} {path} returned {response.status_code}: "
                f"{response.text[:500]}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            return None

    def delete_all(self) -> None:
        """Delete every document of the core and commit."""
        self._request("POST", "/update", json=DELETE_ALL, params={"commit": "true"})

    def add_documents(self, documents: list[Mapping[str, Any]]) -> None:
        """Write a batch of JSON documents and commit."""
        self._request(
            "POST", "/update/json/docs", json=documents, params={"commit": "true"}
        )

    def ping(self) -> bool:
        """Return True if the core answers its admin ping with status OK."""
        body = self._request("GET", "/admin/ping", params={"wt": "json"})
        return isinstance(body, dict) and body.get("status") == "OK"
