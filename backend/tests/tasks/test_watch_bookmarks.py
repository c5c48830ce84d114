"""Tests for the live bookmark watcher task."""
import asyncio
import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import respx
from httpx import Response

from core.config import Settings
from fakes import FakeBookmarkRepository
from schemas.bookmark import Bookmark
from schemas.view import ViewFilter
from services.bookmark_sync import BookmarkSynchronizer
from tasks.watch_bookmarks import build_parser, parse_filter, render, watch


# =============================================================================
# Rendering
# =============================================================================


async def test__render__loading(sync: BookmarkSynchronizer) -> None:
    assert render(sync) == "Loading bookmarks..."


async def test__render__lists_view_with_favorites(
    sync: BookmarkSynchronizer,
    repository: FakeBookmarkRepository,
    go_docs: Bookmark,
    make_bookmark: Callable[..., Bookmark],
) -> None:
    repository.seed(
        go_docs,
        make_bookmark("2", title="Dribbble", url="https://www.dribbble.com", category="design", age=1),
    )
    await sync.initialize()
    sync.toggle_favorite("1")

    assert render(sync).splitlines() == [
        "All Bookmarks (2 bookmarks)",
        "[*] Go Docs - go.dev [development] #go",
        "[ ] Dribbble - dribbble.com [design]",
    ]


async def test__render__shows_error_and_singular_count(
    sync: BookmarkSynchronizer, repository: FakeBookmarkRepository, go_docs: Bookmark,
) -> None:
    repository.seed(go_docs)
    await sync.initialize()
    repository.fail("delete")
    await sync.remove("1")

    lines = render(sync).splitlines()

    assert lines[0] == "All Bookmarks (1 bookmark)"
    assert lines[1] == "! Failed to delete bookmark: backend down"


# =============================================================================
# Command line
# =============================================================================


def test__parse_filter__defaults() -> None:
    args = build_parser().parse_args([])
    assert parse_filter(args) == ViewFilter()


def test__parse_filter__resolves_category_label() -> None:
    args = build_parser().parse_args(["--search", "go", "--category", "Development", "--view", "recent"])
    assert parse_filter(args) == ViewFilter(
        search_query="go", selected_category="development", view_mode="recent",
    )


def test__build_parser__rejects_unknown_view() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--view", "archived"])


# =============================================================================
# watch()
# =============================================================================


async def test__watch__requires_owner_id(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, owner_id="", favorites_dir=tmp_path)

    with pytest.raises(SystemExit):
        await watch(settings, ViewFilter())


async def test__watch__prints_view_until_stopped(tmp_path: Path) -> None:
    """Without Redis the watcher still loads and prints the collection once."""
    settings = Settings(
        _env_file=None,
        api_url="http://localhost:8000",
        owner_id="user-1",
        redis_enabled=False,
        favorites_dir=tmp_path,
    )
    record: dict[str, Any] = {
        "id": 1,
        "owner_id": "user-1",
        "title": "Go Docs",
        "url": "https://go.dev",
        "tags": ["go"],
        "category": "development",
        "created_at": "2025-01-01T00:00:00Z",
    }
    out = io.StringIO()
    stop = asyncio.Event()

    with respx.mock(base_url="http://localhost:8000") as mock_api:
        mock_api.get("/bookmarks/").mock(return_value=Response(200, json=[record]))
        task = asyncio.create_task(watch(settings, ViewFilter(), out=out, stop=stop))
        for _ in range(100):
            if "Go Docs" in out.getvalue():
                break
            await asyncio.sleep(0.01)
        stop.set()
        await task

    assert "All Bookmarks (1 bookmark)" in out.getvalue()
    assert "[ ] Go Docs - go.dev [development] #go" in out.getvalue()
