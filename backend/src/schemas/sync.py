"""Schemas for the synchronizer's read model."""
from typing import Literal

from pydantic import BaseModel, ConfigDict

from schemas.bookmark import Bookmark

SyncStatus = Literal["loading", "ready", "disposed"]
SyncOperation = Literal["fetch", "create", "update", "delete"]


class SyncError(BaseModel):
    """A dismissible, user-facing failure notice."""

    model_config = ConfigDict(frozen=True)

    kind: SyncOperation
    message: str


class SyncState(BaseModel):
    """Snapshot of the synchronizer state exposed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    status: SyncStatus
    bookmarks: tuple[Bookmark, ...] = ()
    error: SyncError | None = None
