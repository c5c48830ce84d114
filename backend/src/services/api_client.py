"""HTTP client helpers for the Bookmarks API."""
from typing import Any

import httpx

from core.config import Settings

REQUEST_SOURCE = "sync-client"


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create an HTTP client pointed at the configured API."""
    return httpx.AsyncClient(base_url=settings.api_url, timeout=settings.api_timeout)


def _get_headers(token: str) -> dict[str, str]:
    """Get common headers for API requests."""
    return {
        "Authorization": f"Bearer {token}",
        "X-Request-Source": REQUEST_SOURCE,
    }


def _json_or_none(response: httpx.Response) -> Any:
    """Decode a JSON body; empty bodies (e.g. 204) decode to None."""
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    params: dict[str, Any] | None = None,
) -> Any:
    """Make an authenticated GET request to the API."""
    response = await client.get(
        path,
        params=params,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any] | None = None,
) -> Any:
    """Make an authenticated POST request to the API."""
    response = await client.post(
        path,
        json=json,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_patch(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any],
) -> Any:
    """Make an authenticated PATCH request to the API."""
    response = await client.patch(
        path,
        json=json,
        headers=_get_headers(token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    token: str,
) -> None:
    """Make an authenticated DELETE request to the API."""
    response = await client.delete(
        path,
        headers=_get_headers(token),
    )
    response.raise_for_status()
