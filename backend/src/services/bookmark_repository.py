"""
Repository boundary: the only component that talks to the bookmarks backend.

CRUD goes over the REST API; change notifications arrive over Redis pub/sub.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.config import Settings
from core.redis import RedisClient, Unsubscribe
from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkUpdate
from services.api_client import api_delete, api_get, api_patch, api_post
from services.exceptions import RepositoryError, ValidationError

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[], Awaitable[None]]


class BookmarkRepository(Protocol):
    """CRUD and change subscription for one owner's bookmarks."""

    async def fetch_all(self, owner_id: str) -> list[Bookmark]:
        """Get all bookmarks for an owner, newest first."""
        ...

    async def create(self, record: BookmarkCreate) -> Bookmark:
        """Create a bookmark; the backend assigns id and created_at."""
        ...

    async def update(self, bookmark_id: str, fields: BookmarkUpdate) -> None:
        """Change only the fields set on ``fields``."""
        ...

    async def delete(self, bookmark_id: str) -> None:
        """Delete a bookmark."""
        ...

    async def subscribe(self, owner_id: str, on_change: ChangeHandler) -> Unsubscribe:
        """
        Call ``on_change`` whenever something changes for the owner.

        Invocations carry no payload; callers must refetch rather than patch.
        """
        ...


class ChangeNotifier:
    """Per-owner change notifications over Redis pub/sub."""

    def __init__(self, redis_client: RedisClient, settings: Settings) -> None:
        self._redis = redis_client
        self._settings = settings

    async def subscribe(self, owner_id: str, on_change: ChangeHandler) -> Unsubscribe:
        """Listen for changes to an owner's bookmarks."""
        return await self._redis.subscribe(self._settings.changes_channel(owner_id), on_change)


def sort_newest_first(bookmarks: list[Bookmark]) -> list[Bookmark]:
    """Order bookmarks by created_at descending; ties keep their received order."""
    return sorted(bookmarks, key=lambda b: b.created_at, reverse=True)


def _handle_api_error(e: httpx.HTTPError, context: str) -> NoReturn:
    """Translate httpx errors to RepositoryError. Always raises."""
    if not isinstance(e, httpx.HTTPStatusError):
        raise RepositoryError(f"Failed to {context}: {e}") from e

    status = e.response.status_code
    if status == 401:
        raise RepositoryError("Invalid or expired token", status_code=status) from e
    if status == 403:
        raise RepositoryError("Access denied", status_code=status) from e

    # Try to extract detailed error message from API response
    try:
        detail = e.response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    if isinstance(detail, dict):
        detail = detail.get("message", str(detail))
    message = f"Failed to {context}: {detail}" if detail else f"API error {status}: {context}"
    raise RepositoryError(message, status_code=status) from e


def _parse_bookmark(data: Any) -> Bookmark:
    try:
        return Bookmark.model_validate(data)
    except PydanticValidationError as e:
        raise RepositoryError(f"Malformed bookmark record from API: {e}") from e


class HttpBookmarkRepository:
    """
    Bookmark repository backed by the Bookmarks REST API.

    The API enforces the owner filter server-side; records returned by
    ``fetch_all`` are trusted to belong to the requested owner.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._client = client
        self._token = token
        self._notifier = notifier

    async def fetch_all(self, owner_id: str) -> list[Bookmark]:
        """
        Get all bookmarks for an owner, newest first.

        Raises:
            RepositoryError: On transport, authorization or decoding failure.
        """
        params = {"owner_id": owner_id, "sort_by": "created_at", "sort_order": "desc"}
        try:
            data = await api_get(self._client, "/bookmarks/", self._token, params=params)
        except httpx.HTTPError as e:
            _handle_api_error(e, "fetch bookmarks")
        except ValueError as e:
            raise RepositoryError("Malformed response from API: fetch bookmarks") from e

        items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise RepositoryError("Malformed bookmark list from API")
        return sort_newest_first([_parse_bookmark(item) for item in items])

    async def create(self, record: BookmarkCreate) -> Bookmark:
        """
        Create a bookmark.

        Raises:
            ValidationError: If owner, title or URL is missing, or the API
                rejects the payload as invalid (422).
            RepositoryError: On any other failure.
        """
        for field in ("owner_id", "title", "url"):
            if not getattr(record, field).strip():
                raise ValidationError(field, f"{field} is required")
        try:
            data = await api_post(self._client, "/bookmarks/", self._token, json=record.payload())
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 422:
                raise ValidationError("record", "Bookmark was rejected as invalid") from e
            _handle_api_error(e, "create bookmark")
        except httpx.HTTPError as e:
            _handle_api_error(e, "create bookmark")
        except ValueError as e:
            raise RepositoryError("Malformed response from API: create bookmark") from e

        return _parse_bookmark(data)

    async def update(self, bookmark_id: str, fields: BookmarkUpdate) -> None:
        """
        Update the fields that are set on ``fields``.

        Raises:
            RepositoryError: On failure, including an unknown bookmark id.
        """
        try:
            await api_patch(
                self._client, f"/bookmarks/{bookmark_id}", self._token, json=fields.payload(),
            )
        except httpx.HTTPError as e:
            _handle_api_error(e, "update bookmark")
        except ValueError as e:
            raise RepositoryError("Malformed response from API: update bookmark") from e

    async def delete(self, bookmark_id: str) -> None:
        """
        Delete a bookmark.

        Raises:
            RepositoryError: On failure, including an unknown bookmark id.
        """
        try:
            await api_delete(self._client, f"/bookmarks/{bookmark_id}", self._token)
        except httpx.HTTPError as e:
            _handle_api_error(e, "delete bookmark")

    async def subscribe(self, owner_id: str, on_change: ChangeHandler) -> Unsubscribe:
        """Listen for changes; a no-op subscription when no notifier is configured."""
        if self._notifier is None:
            logger.info("No change notifier configured, live updates disabled")
            return lambda: None
        return await self._notifier.subscribe(owner_id, on_change)
