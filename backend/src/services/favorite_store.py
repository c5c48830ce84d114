"""Favorites overlay: a locally persisted set of bookmark ids."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from services.exceptions import OverlayCorruptionError

logger = logging.getLogger(__name__)

# Storage key holding a JSON array of favorite bookmark ids
FAVORITES_STORAGE_KEY = "smart-bookmark-favorites"


class LocalStorage(Protocol):
    """Durable string key-value storage on the client."""

    def get(self, key: str) -> str | None:
        """Get the stored value, or None if the key was never set."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        ...


class MemoryLocalStorage:
    """Non-durable storage, for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileLocalStorage:
    """
    Storage backed by one file per key inside a directory.

    Writes go to a temporary file that then replaces the target, so a crash
    mid-write never leaves a truncated value behind.
    """

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            Path(tmp_name).replace(self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def decode_favorites(raw: str) -> frozenset[str]:
    """
    Decode stored favorites.

    Raises:
        OverlayCorruptionError: If the value is not a JSON array of strings.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise OverlayCorruptionError(raw, f"invalid JSON ({e.msg})") from e
    if not isinstance(data, list):
        raise OverlayCorruptionError(raw, f"expected an array, got {type(data).__name__}")
    if not all(isinstance(item, str) for item in data):
        raise OverlayCorruptionError(raw, "array contains non-string ids")
    return frozenset(data)


def encode_favorites(ids: frozenset[str]) -> str:
    """Encode favorites as a sorted JSON array of id strings."""
    return json.dumps(sorted(ids))


class FavoriteOverlayStore:
    """
    Owns the set of favorite bookmark ids.

    The overlay is independent of the remote bookmark collection: ids may
    refer to bookmarks that no longer exist, and nothing here is ever sent to
    the backend.
    """

    def __init__(self, storage: LocalStorage, key: str = FAVORITES_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._ids: frozenset[str] = frozenset()

    @property
    def ids(self) -> frozenset[str]:
        """Current favorite ids."""
        return self._ids

    def contains(self, bookmark_id: str) -> bool:
        """Check whether a bookmark is a favorite."""
        return bookmark_id in self._ids

    def load(self) -> frozenset[str]:
        """
        Load favorites from storage.

        Never raises: unreadable or malformed content resets the overlay to
        empty and is logged.
        """
        try:
            raw = self._storage.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read favorites from storage: %s", e)
            raw = None

        if raw is None:
            self._ids = frozenset()
            return self._ids
        try:
            self._ids = decode_favorites(raw)
        except OverlayCorruptionError as e:
            logger.warning("Resetting favorites overlay: %s", e.reason)
            self._ids = frozenset()
        return self._ids

    def toggle(self, bookmark_id: str) -> frozenset[str]:
        """Flip a bookmark's favorite membership and persist the result."""
        if bookmark_id in self._ids:
            self._ids = self._ids - {bookmark_id}
        else:
            self._ids = self._ids | {bookmark_id}
        self._persist()
        return self._ids

    def prune(self, bookmark_id: str) -> None:
        """Remove an id, e.g. after its bookmark was deleted."""
        if bookmark_id not in self._ids:
            return
        self._ids = self._ids - {bookmark_id}
        self._persist()

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, encode_favorites(self._ids))
        except OSError as e:
            # The in-memory overlay stays authoritative for this session
            logger.warning("Failed to persist favorites: %s", e)
