from __future__ import annotations

from typing import Any

import httpx

from saucefleet.core.errors import ProtocolError, TransportError
from saucefleet.core.options import JobOptions
from saucefleet.core.platforms import PlatformSpec
from saucefleet.core.sessions import SessionReport


class SauceLabsAdapter:
    """Adapter around the Sauce Labs js-tests REST API."""

    def __init__(self, client: httpx.AsyncClient, username: str):
        """Create an adapter using an authenticated client (see `core.auth.get_client`)."""
        self.client = client
        self.username = username

    @property
    def _base(self) -> str:
        return f"/rest/v1/{self.username}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, mapping transport failures and non-200 answers to SessionError."""
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        if response.status_code != 200:
            raise ProtocolError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(
                "response body is not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    async def create_session(self, platform: PlatformSpec, options: JobOptions) -> str:
        """Start a js-tests job for one platform and return its id."""
        response = await self._request(
            "POST", f"{self._base}/js-tests", json=options.payload(platform)
        )
        body = self._json(response)
        ids = body.get("js tests") if isinstance(body, dict) else None
        if not isinstance(ids, list) or not ids:
            raise ProtocolError(
                "create-session response has no job id",
                status_code=response.status_code,
                body=body,
            )
        return str(ids[0])

    async def poll_session(self, session_id: str) -> SessionReport:
        """Return the current status of a js-tests job."""
        response = await self._request(
            "POST",
            f"{self._base}/js-tests/status",
            json={"js tests": [session_id]},
        )
        body = self._json(response)
        if not isinstance(body, dict):
            raise ProtocolError("status response is not an object", body=body)

        entries = body.get("js tests")
        if entries is None:
            entries = [{}]
        if not isinstance(entries, list) or not entries:
            raise ProtocolError("status response has no job entries", body=body)
        data = entries[0] if isinstance(entries[0], dict) else {}
        result = data.get("result")
        return SessionReport(
            status=data.get("status"),
            completed=bool(body.get("completed")),
            result=result if isinstance(result, dict) else None,
            url=data.get("url"),
        )

    async def stop_session(self, session_id: str) -> None:
        """Stop a running job."""
        await self._request("PUT", f"{self._base}/jobs/{session_id}/stop")
