"""
Pure projection of the bookmark collection into the displayed list.

Nothing here holds state: the collection, the favorites overlay, and the
filter are all passed in. The collection is assumed to already be ordered by
created_at descending, and every function preserves that order.
"""
from collections.abc import Collection, Sequence
from urllib.parse import urlparse

from schemas.bookmark import Bookmark
from schemas.view import CategorySummary, ViewFilter, ViewSummary
from services.category_registry import ALL_CATEGORIES, category_label

RECENT_LIMIT = 10

FAVICON_SERVICE_URL = "https://www.google.com/s2/favicons?domain={domain}&sz=64"

_VIEW_MODE_TITLES = {
    "all": "All Bookmarks",
    "favorites": "Favorites",
    "recent": "Recent",
}


def matches_search(bookmark: Bookmark, query: str) -> bool:
    """
    Check whether any searchable field contains the query, case-insensitively.

    Title, URL, each tag and the category are searched; one match is enough.
    An empty query matches everything.
    """
    if not query:
        return True
    needle = query.lower()
    return (
        needle in bookmark.title.lower()
        or needle in bookmark.url.lower()
        or any(needle in tag.lower() for tag in bookmark.tags)
        or needle in bookmark.category.lower()
    )


def project(
    collection: Sequence[Bookmark],
    overlay: Collection[str],
    view_filter: ViewFilter,
    recent_limit: int = RECENT_LIMIT,
) -> list[Bookmark]:
    """
    Compute the ordered list of bookmarks to display.

    Restrictions are applied in a fixed order: view mode, then search, then
    category.

    Args:
        collection: Bookmarks ordered by created_at descending.
        overlay: Favorite bookmark ids.
        view_filter: Active search, category and view mode.
        recent_limit: Number of newest bookmarks shown in 'recent' mode.

    Returns:
        The filtered bookmarks in collection order.
    """
    if view_filter.view_mode == "favorites":
        candidates = [b for b in collection if b.id in overlay]
    elif view_filter.view_mode == "recent":
        candidates = list(collection[:recent_limit])
    else:
        candidates = list(collection)

    result = [b for b in candidates if matches_search(b, view_filter.search_query)]

    if view_filter.selected_category != ALL_CATEGORIES:
        result = [b for b in result if b.category == view_filter.selected_category]
    return result


def category_options(collection: Sequence[Bookmark]) -> list[str]:
    """Get 'All' followed by the distinct categories in use, in first-seen order."""
    seen = dict.fromkeys(b.category for b in collection if b.category)
    return [ALL_CATEGORIES, *seen]


def category_count(collection: Sequence[Bookmark], category: str) -> int:
    """Count the bookmarks in a category; 'All' counts everything."""
    if category == ALL_CATEGORIES:
        return len(collection)
    return sum(1 for b in collection if b.category == category)


def summarize_categories(collection: Sequence[Bookmark]) -> list[CategorySummary]:
    """Get every category option with its label and count."""
    return [
        CategorySummary(
            category=category,
            label=category_label(category),
            count=category_count(collection, category),
        )
        for category in category_options(collection)
    ]


def summarize_view(
    collection: Sequence[Bookmark],
    overlay: Collection[str],
    view_filter: ViewFilter,
    recent_limit: int = RECENT_LIMIT,
) -> ViewSummary:
    """
    Describe the current view for its heading.

    The badge count follows the view mode (all bookmarks, favorite ids, or the
    recent window) while result_count is the number actually displayed.
    """
    mode = view_filter.view_mode
    if mode == "favorites":
        mode_count = len(overlay)
    elif mode == "recent":
        mode_count = min(recent_limit, len(collection))
    else:
        mode_count = len(collection)

    if mode == "all" and view_filter.selected_category != ALL_CATEGORIES:
        title = category_label(view_filter.selected_category)
    else:
        title = _VIEW_MODE_TITLES[mode]

    return ViewSummary(
        title=title,
        mode_count=mode_count,
        result_count=len(project(collection, overlay, view_filter, recent_limit)),
    )


def display_domain(url: str) -> str | None:
    """Get the host of a URL without a leading 'www.', or None if it has no host."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname.removeprefix("www.")


def favicon_url(url: str) -> str | None:
    """Get the favicon service URL for a bookmark's host."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return FAVICON_SERVICE_URL.format(domain=hostname)
