"""Shared exceptions for the bookmark sync client."""


class BookmarkSyncError(Exception):
    """Base exception for sync client errors."""


class ValidationError(BookmarkSyncError):
    """
    Raised when user input is invalid (empty title, unparseable URL, ...).

    Validation happens before any repository call; input that fails it never
    reaches the backend.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class RepositoryError(BookmarkSyncError):
    """Raised when a backend call fails (transport, authorization, server error)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class OverlayCorruptionError(BookmarkSyncError):
    """
    Raised when stored favorites are not a JSON array of id strings.

    Never escapes the overlay store: it is caught there and the overlay is
    reset to empty.
    """

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"Malformed favorites overlay: {reason}")


class SynchronizerDisposedError(BookmarkSyncError):
    """Raised when a mutation is attempted on a disposed synchronizer."""

    def __init__(self) -> None:
        super().__init__("Bookmark synchronizer has been disposed")
