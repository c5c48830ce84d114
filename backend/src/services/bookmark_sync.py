"""
Client-side bookmark state synchronizer.

Reconciles three sources: the authoritative backend (through the repository),
the payload-less change-notification stream, and the local favorites overlay.
The backend is mirrored 1:1; the only local mutation is removing a deleted
bookmark ahead of the next refetch.
"""
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

from core.redis import Unsubscribe
from schemas.bookmark import Bookmark, BookmarkDraft
from schemas.sync import SyncError, SyncOperation, SyncState, SyncStatus
from schemas.view import CategorySummary, ViewFilter, ViewMode, ViewSummary
from services.bookmark_repository import BookmarkRepository
from services.category_registry import ALL_CATEGORIES, resolve_category_id
from services.exceptions import RepositoryError, SynchronizerDisposedError, ValidationError
from services.favorite_store import FavoriteOverlayStore
from services.view_projector import RECENT_LIMIT, project, summarize_categories, summarize_view

logger = logging.getLogger(__name__)

StateListener = Callable[["BookmarkSynchronizer"], None]

_FAILURE_MESSAGES: dict[SyncOperation, str] = {
    "fetch": "Failed to load bookmarks",
    "create": "Failed to add bookmark",
    "update": "Failed to update bookmark",
    "delete": "Failed to delete bookmark",
}


class BookmarkSynchronizer:
    """
    State machine owning the in-memory bookmark collection for one owner.

    Lifecycle: ``loading`` -> ``ready`` -> ``disposed``. A failed fetch keeps
    the synchronizer ``ready`` with its previous collection and a surfaced
    error.

    Ordering of concurrent fetches: every fetch takes a sequence number. With
    ``discard_stale_fetches`` (the default), a response older than the newest
    one already applied is dropped. Without it, the last response to arrive
    wins unconditionally. Either way, ``dispose()`` bumps a generation counter
    and any fetch still in flight is dropped when it completes.

    ``max_title_length`` limits titles on add and edit; when omitted the
    configured maximum applies.
    """

    def __init__(
        self,
        repository: BookmarkRepository,
        favorites: FavoriteOverlayStore,
        owner_id: str,
        recent_limit: int = RECENT_LIMIT,
        discard_stale_fetches: bool = True,
        max_title_length: int | None = None,
    ) -> None:
        self._repository = repository
        self._favorites = favorites
        self._owner_id = owner_id
        self._recent_limit = recent_limit
        self._discard_stale_fetches = discard_stale_fetches
        self._max_title_length = max_title_length

        self._status: SyncStatus = "loading"
        self._bookmarks: tuple[Bookmark, ...] = ()
        self._error: SyncError | None = None
        self._filter = ViewFilter()
        self._unsubscribe: Unsubscribe | None = None

        self._generation = 0
        self._request_seq = 0
        self._applied_seq = 0
        self._refetch_requested = False
        self._pending_ids: set[str] = set()
        self._pending_adds = 0
        self._listeners: list[StateListener] = []

    async def __aenter__(self) -> "BookmarkSynchronizer":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    # -------------------------------------------------------------------------
    # Read model
    # -------------------------------------------------------------------------

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def state(self) -> SyncState:
        """Snapshot of status, collection and surfaced error."""
        return SyncState(status=self._status, bookmarks=self._bookmarks, error=self._error)

    @property
    def bookmarks(self) -> tuple[Bookmark, ...]:
        """The collection, newest first."""
        return self._bookmarks

    @property
    def favorites(self) -> frozenset[str]:
        return self._favorites.ids

    @property
    def filter(self) -> ViewFilter:
        return self._filter

    @property
    def view(self) -> list[Bookmark]:
        """The collection projected through the favorites overlay and current filter."""
        return project(self._bookmarks, self._favorites.ids, self._filter, self._recent_limit)

    @property
    def summary(self) -> ViewSummary:
        return summarize_view(self._bookmarks, self._favorites.ids, self._filter, self._recent_limit)

    @property
    def categories(self) -> list[CategorySummary]:
        return summarize_categories(self._bookmarks)

    @property
    def is_adding(self) -> bool:
        """Whether an add is in flight."""
        return self._pending_adds > 0

    def is_pending(self, bookmark_id: str) -> bool:
        """Whether an edit or delete of this bookmark is in flight."""
        return bookmark_id in self._pending_ids

    def is_favorite(self, bookmark_id: str) -> bool:
        return self._favorites.contains(bookmark_id)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback run after every state or view change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Load favorites, subscribe to change notifications and fetch the collection.

        Always ends ``ready`` (unless disposed meanwhile); a failed fetch is
        surfaced through ``state.error`` rather than raised.

        Raises:
            SynchronizerDisposedError: If called after ``dispose()``.
        """
        self._ensure_active()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._status = "loading"
        self._favorites.load()
        generation = self._generation

        # Subscribe before fetching so changes made during the fetch are not lost
        try:
            unsubscribe = await self._repository.subscribe(
                self._owner_id, self.on_change_notification,
            )
        except RepositoryError as e:
            logger.warning("Live updates unavailable for owner %s: %s", self._owner_id, e)
            unsubscribe = None
        if generation != self._generation:
            if unsubscribe is not None:
                unsubscribe()
            return
        self._unsubscribe = unsubscribe

        await self._refresh()
        if generation != self._generation:
            return
        self._status = "ready"
        logger.info("Loaded %d bookmarks for owner %s", len(self._bookmarks), self._owner_id)
        self._notify()

        # A notification that arrived while loading may postdate the initial fetch
        if self._refetch_requested:
            self._refetch_requested = False
            await self._refresh()

    def dispose(self) -> None:
        """
        Unsubscribe and discard the collection. Idempotent.

        Fetches still in flight complete, but their results are dropped.
        """
        if self._status == "disposed":
            return
        self._generation += 1
        self._status = "disposed"
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._bookmarks = ()
        self._error = None
        self._pending_ids.clear()
        self._pending_adds = 0
        logger.info("Disposed bookmark synchronizer for owner %s", self._owner_id)
        self._notify()
        self._listeners.clear()

    async def on_change_notification(self) -> None:
        """Refetch the whole collection in response to a change notification."""
        if self._status == "loading":
            self._refetch_requested = True
            return
        if self._status != "ready":
            return
        logger.debug("Change notification for owner %s, refetching", self._owner_id)
        await self._refresh()

    async def refresh(self) -> bool:
        """
        Refetch the collection on demand.

        Returns:
            True if a fetched collection was applied.
        """
        self._ensure_active()
        return await self._refresh()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(self, draft: BookmarkDraft) -> bool:
        """
        Create a bookmark, then refetch so backend-assigned fields are reflected.

        Returns:
            True if the backend accepted the bookmark, False if it failed (the
            failure is surfaced through ``state.error``).

        Raises:
            ValidationError: If the draft is invalid; the backend is not called.
            SynchronizerDisposedError: If the synchronizer was disposed.
        """
        self._ensure_active()
        valid = draft.validated(self._max_title_length)
        generation = self._generation
        self._pending_adds += 1
        try:
            await self._repository.create(valid.to_create(self._owner_id))
        except (RepositoryError, ValidationError) as e:
            self._report("create", e, generation)
            return False
        finally:
            if generation == self._generation:
                self._pending_adds -= 1

        if generation == self._generation:
            await self._refresh()
        return True

    async def edit(self, bookmark_id: str, draft: BookmarkDraft) -> bool:
        """
        Update a bookmark, then refetch.

        Empty tags or an absent category in the draft leave the stored values
        unchanged.

        Returns:
            True on success, False if the backend call failed.

        Raises:
            ValidationError: If the draft is invalid; the backend is not called.
            SynchronizerDisposedError: If the synchronizer was disposed.
        """
        self._ensure_active()
        valid = draft.validated(self._max_title_length)
        generation = self._generation
        self._pending_ids.add(bookmark_id)
        try:
            await self._repository.update(bookmark_id, valid.to_update())
        except RepositoryError as e:
            self._report("update", e, generation)
            return False
        finally:
            self._pending_ids.discard(bookmark_id)

        if generation == self._generation:
            await self._refresh()
        return True

    async def remove(self, bookmark_id: str) -> bool:
        """
        Delete a bookmark. The caller is responsible for confirming intent.

        On success the bookmark leaves the collection immediately, without a
        refetch, and is pruned from favorites.

        Returns:
            True on success, False if the backend call failed (the collection
            is left untouched).

        Raises:
            SynchronizerDisposedError: If the synchronizer was disposed.
        """
        self._ensure_active()
        generation = self._generation
        self._pending_ids.add(bookmark_id)
        try:
            await self._repository.delete(bookmark_id)
        except RepositoryError as e:
            self._report("delete", e, generation)
            return False
        finally:
            self._pending_ids.discard(bookmark_id)

        if generation != self._generation:
            return True
        self._bookmarks = tuple(b for b in self._bookmarks if b.id != bookmark_id)
        self._favorites.prune(bookmark_id)
        if self._discard_stale_fetches:
            # Fetches issued before the delete completed may still contain the bookmark
            self._request_seq += 1
            self._applied_seq = self._request_seq
        logger.info("Deleted bookmark %s", bookmark_id)
        self._notify()
        return True

    def toggle_favorite(self, bookmark_id: str) -> bool:
        """
        Flip a bookmark's favorite mark. Local only; never sent to the backend.

        Returns:
            Whether the bookmark is now a favorite.
        """
        self._ensure_active()
        is_favorite = bookmark_id in self._favorites.toggle(bookmark_id)
        self._notify()
        return is_favorite

    def set_filter(self, view_filter: ViewFilter | None = None, **changes: Any) -> ViewFilter:
        """
        Replace the view filter, or change some of its fields.

        Examples:
            sync.set_filter(ViewFilter(search_query="go"))
            sync.set_filter(view_mode="favorites")
        """
        if view_filter is None:
            view_filter = ViewFilter.model_validate({**self._filter.model_dump(), **changes})
        elif changes:
            view_filter = ViewFilter.model_validate({**view_filter.model_dump(), **changes})
        self._filter = view_filter
        self._notify()
        return self._filter

    def select_category(self, category: str) -> ViewFilter:
        """Show one category across all bookmarks; labels resolve to their id."""
        if category != ALL_CATEGORIES:
            category = resolve_category_id(category)
        return self.set_filter(selected_category=category, view_mode="all")

    def select_view_mode(self, view_mode: ViewMode) -> ViewFilter:
        """Switch view mode, clearing any category selection."""
        return self.set_filter(view_mode=view_mode, selected_category=ALL_CATEGORIES)

    def dismiss_error(self) -> None:
        """Clear the surfaced error."""
        if self._error is None:
            return
        self._error = None
        self._notify()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_active(self) -> None:
        if self._status == "disposed":
            raise SynchronizerDisposedError()

    async def _refresh(self) -> bool:
        generation = self._generation
        self._request_seq += 1
        seq = self._request_seq
        try:
            bookmarks = await self._repository.fetch_all(self._owner_id)
        except RepositoryError as e:
            if self._discard_stale_fetches and seq < self._applied_seq:
                return False
            self._report("fetch", e, generation)
            return False

        if generation != self._generation:
            logger.debug("Dropping fetch #%d: synchronizer disposed", seq)
            return False
        if self._discard_stale_fetches and seq < self._applied_seq:
            logger.debug("Dropping stale fetch #%d (applied #%d)", seq, self._applied_seq)
            return False

        self._applied_seq = seq
        self._bookmarks = tuple(bookmarks)
        if self._error is not None and self._error.kind == "fetch":
            self._error = None
        self._notify()
        return True

    def _report(self, kind: SyncOperation, error: Exception, generation: int) -> None:
        if generation != self._generation:
            return
        logger.warning("%s for owner %s: %s", _FAILURE_MESSAGES[kind], self._owner_id, error)
        self._error = SyncError(kind=kind, message=f"{_FAILURE_MESSAGES[kind]}: {error}")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Bookmark state listener failed")
