"""
Live bookmark watcher.

Connects to the Bookmarks API and the change-notification channel for the
configured owner, then prints the filtered bookmark list every time it
changes. Stops on Ctrl+C.

Usage:
    python -m tasks.watch_bookmarks [--search TEXT] [--category ID] [--view MODE]

Settings (API URL, token, owner id, Redis URL, favorites directory) come from
the environment; see core.config.
"""
import argparse
import asyncio
import contextlib
import logging
import sys
from typing import TextIO

from core.config import Settings, get_settings
from core.redis import RedisClient
from schemas.view import ViewFilter
from services.api_client import create_http_client
from services.bookmark_repository import ChangeNotifier, HttpBookmarkRepository
from services.bookmark_sync import BookmarkSynchronizer
from services.category_registry import ALL_CATEGORIES, resolve_category_id
from services.favorite_store import FavoriteOverlayStore, FileLocalStorage
from services.view_projector import display_domain

logger = logging.getLogger(__name__)


def render(sync: BookmarkSynchronizer) -> str:
    """Render the synchronizer's current view as plain text."""
    state = sync.state
    if state.status == "loading":
        return "Loading bookmarks..."
    summary = sync.summary
    noun = "bookmark" if summary.result_count == 1 else "bookmarks"
    lines = [f"{summary.title} ({summary.result_count} {noun})"]
    if state.error is not None:
        lines.append(f"! {state.error.message}")
    for bookmark in sync.view:
        star = "*" if sync.is_favorite(bookmark.id) else " "
        domain = display_domain(bookmark.url) or bookmark.url
        tags = " ".join(f"#{tag}" for tag in bookmark.tags)
        lines.append(f"[{star}] {bookmark.title} - {domain} [{bookmark.category}] {tags}".rstrip())
    return "\n".join(lines)


def parse_filter(args: argparse.Namespace) -> ViewFilter:
    """Build the initial view filter from command-line options."""
    category = ALL_CATEGORIES if args.category == ALL_CATEGORIES else resolve_category_id(args.category)
    return ViewFilter(search_query=args.search, selected_category=category, view_mode=args.view)


async def watch(
    settings: Settings,
    view_filter: ViewFilter,
    out: TextIO = sys.stdout,
    stop: asyncio.Event | None = None,
) -> None:
    """Run the synchronizer until ``stop`` is set (or forever)."""
    if not settings.owner_id:
        raise SystemExit("BOOKMARKS_OWNER_ID is not set")

    redis_client = RedisClient(
        url=settings.redis_url,
        enabled=settings.redis_enabled,
        pool_size=settings.redis_pool_size,
    )
    await redis_client.connect()

    def print_view(sync: BookmarkSynchronizer) -> None:
        print(render(sync), end="\n\n", file=out, flush=True)

    try:
        async with create_http_client(settings) as client:
            repository = HttpBookmarkRepository(
                client,
                settings.api_token,
                notifier=ChangeNotifier(redis_client, settings),
            )
            favorites = FavoriteOverlayStore(FileLocalStorage(settings.favorites_path))
            sync = BookmarkSynchronizer(
                repository,
                favorites,
                settings.owner_id,
                recent_limit=settings.recent_limit,
                discard_stale_fetches=settings.discard_stale_fetches,
                max_title_length=settings.max_title_length,
            )
            sync.set_filter(view_filter)
            sync.add_listener(print_view)
            async with sync:
                await (stop or asyncio.Event()).wait()
    finally:
        await redis_client.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Watch bookmarks and print changes live.")
    parser.add_argument("--search", default="", help="case-insensitive search text")
    parser.add_argument(
        "--category",
        default=ALL_CATEGORIES,
        help=f"category id or label (default: {ALL_CATEGORIES})",
    )
    parser.add_argument("--view", choices=["all", "favorites", "recent"], default="all")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for running the watcher as a script."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(watch(settings, parse_filter(args)))


if __name__ == "__main__":
    main()
