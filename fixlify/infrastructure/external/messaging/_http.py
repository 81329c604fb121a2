"""Shared HTTP plumbing for provider dispatchers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from fixlify.domain.exceptions import DispatchException


class HttpDispatcher:
    """Base for dispatchers that call a provider REST API over httpx."""

    provider_name: str = "http"

    def __init__(
        self, *, http_client: httpx.AsyncClient | None = None, timeout: float = 30.0
    ) -> None:
        self._shared_http = http_client
        self._timeout = timeout

    @asynccontextmanager
    async def _http_cm(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        """POST and return the JSON body; transport errors and non-2xx raise DispatchException."""
        try:
            async with self._http_cm() as client:
                resp = await client.post(url, timeout=self._timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise DispatchException(
                self.provider_name, f"{exc.__class__.__name__}: {exc}"
            ) from exc
        if resp.status_code >= 400:
            raise DispatchException(
                self.provider_name,
                _error_text(resp),
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            detail = errors[0].get("detail") or errors[0].get("title")
            if detail:
                return f"HTTP {resp.status_code}: {detail}"
        if body.get("message"):
            return f"HTTP {resp.status_code}: {body['message']}"
    return f"HTTP {resp.status_code}"
