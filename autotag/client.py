"""
Autotag — HTTP tag registry
Async client for a remote tag service holding the visitor's tags.

Endpoints:
    GET  /tags   -> {"tags": [...]}
    POST /tags   <- {"add": [...], "remove": [...]}

Usage:
    async with HttpTagRegistry("https://tags.example.com/v1", installation_id="abc") as registry:
        autotag = Autotag(store, registry, options)
"""

from __future__ import annotations

from typing import Any

import httpx

from .errors import (
    TagRegistryAuthError,
    TagRegistryError,
    TagRegistryNotFoundError,
    TagRegistryRateLimitError,
    TagRegistryServerError,
)
from .models import TagListResponse

# ── Helpers ──────────────────────────────────────────────────────────────────


def _raise_for_status(response: httpx.Response) -> None:
    """Converts HTTP errors into typed registry exceptions."""
    if response.is_success:
        return

    status = response.status_code
    try:
        body = response.json()
        detail = body.get("detail", body) if isinstance(body, dict) else body
    except ValueError:
        detail = response.text

    if status == 401:
        raise TagRegistryAuthError("Authentication required", status, detail)
    if status == 403:
        raise TagRegistryAuthError("Invalid API key", status, detail)
    if status == 404:
        raise TagRegistryNotFoundError("Resource not found", status, detail)
    if status == 429:
        raise TagRegistryRateLimitError("Rate limit exceeded", status, detail)
    if status >= 500:
        raise TagRegistryServerError("Server error", status, detail)

    raise TagRegistryError(f"HTTP {status}", status, detail)


def _build_headers(api_key: str | None, installation_id: str) -> dict[str, str]:
    """Builds the common request headers."""
    headers: dict[str, str] = {"X-Installation-Id": installation_id}
    if api_key:
        headers["X-Autotag-Key"] = api_key
    return headers


# ── Client ───────────────────────────────────────────────────────────────────


class HttpTagRegistry:
    """
    Tag registry over HTTP.

    Args:
        base_url: Tag service URL
        api_key: API key sent as X-Autotag-Key (optional)
        installation_id: Visitor installation the tags belong to
        timeout: Request timeout in seconds (default: 10.0)
        transport: Custom httpx transport (tests)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        installation_id: str = "default",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.installation_id = installation_id
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=_build_headers(api_key, installation_id),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> HttpTagRegistry:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Closes the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            r = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TagRegistryError(f"{method} {path} failed: {exc}") from exc
        _raise_for_status(r)
        return r

    async def get_tags(self) -> list[str]:
        """Returns the visitor's current tags."""
        r = await self._request("GET", "/tags")
        return TagListResponse(**r.json()).tags

    async def add_remove_tags(self, to_add: list[str], to_remove: list[str]) -> None:
        """Adds and removes tags in a single request."""
        await self._request("POST", "/tags", json={"add": list(to_add), "remove": list(to_remove)})

    async def add_tag(self, tag: str) -> None:
        await self.add_remove_tags([tag], [])

    async def remove_tag(self, tag: str) -> None:
        await self.add_remove_tags([], [tag])
