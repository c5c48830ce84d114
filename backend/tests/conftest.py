"""Pytest fixtures for testing."""
from collections.abc import Callable, Generator
from datetime import timedelta

import pytest

from core.config import get_settings
from fakes import BASE_TIME, OWNER_ID, FakeBookmarkRepository
from schemas.bookmark import Bookmark
from services.bookmark_sync import BookmarkSynchronizer
from services.favorite_store import FavoriteOverlayStore, MemoryLocalStorage


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Settings are cached per process; reset them around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_bookmark() -> Callable[..., Bookmark]:
    """Factory for bookmarks; a higher ``age`` means an older bookmark."""

    def _make(
        bookmark_id: str,
        title: str = "Example",
        url: str = "https://example.com",
        tags: list[str] | None = None,
        category: str | None = None,
        age: int = 0,
        owner_id: str = OWNER_ID,
    ) -> Bookmark:
        return Bookmark(
            id=bookmark_id,
            owner_id=owner_id,
            title=title,
            url=url,
            tags=tags or [],
            category=category,
            created_at=BASE_TIME - timedelta(hours=age),
        )

    return _make


@pytest.fixture
def go_docs(make_bookmark: Callable[..., Bookmark]) -> Bookmark:
    """The 'Go Docs' bookmark used across projection and sync scenarios."""
    return make_bookmark(
        "1", title="Go Docs", url="https://go.dev", tags=["go"], category="development",
    )


@pytest.fixture
def repository() -> FakeBookmarkRepository:
    return FakeBookmarkRepository()


@pytest.fixture
def storage() -> MemoryLocalStorage:
    return MemoryLocalStorage()


@pytest.fixture
def favorites(storage: MemoryLocalStorage) -> FavoriteOverlayStore:
    return FavoriteOverlayStore(storage)


@pytest.fixture
def sync(
    repository: FakeBookmarkRepository, favorites: FavoriteOverlayStore,
) -> BookmarkSynchronizer:
    return BookmarkSynchronizer(repository, favorites, OWNER_ID)
