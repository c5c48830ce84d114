"""Pydantic schemas for bookmarks and bookmark drafts."""
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from schemas.validators import parse_tags, validate_title, validate_url
from services.category_registry import DEFAULT_CATEGORY_ID, resolve_category_id


class Bookmark(BaseModel):
    """
    A bookmark as held by the synchronizer, mirroring one backend record.

    Accepts both snake_case and the backend's alternate spellings
    ('user_id', 'createdAt') so records can be parsed straight off the wire.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    owner_id: str = Field(validation_alias=AliasChoices("owner_id", "user_id", "ownerId"))
    title: str
    url: str
    tags: tuple[str, ...] = ()
    category: str = DEFAULT_CATEGORY_ID
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Backends may send integer or UUID identifiers; ids are opaque strings here."""
        if v is None:
            return v
        return str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: Any) -> list[str]:
        """Treat a missing tag list as empty and drop blank entries."""
        return parse_tags(v)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> str:
        """Resolve absent or unrecognized categories to 'other'."""
        if v is not None and not isinstance(v, str):
            raise ValueError("category must be a string")
        return resolve_category_id(v)


class BookmarkCreate(BaseModel):
    """Wire payload for creating a bookmark."""

    owner_id: str
    title: str
    url: str
    tags: list[str] | None = None
    category: str | None = None

    def payload(self) -> dict[str, Any]:
        """Get the JSON body, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)


class BookmarkUpdate(BaseModel):
    """
    Wire payload for updating a bookmark.

    Only fields that are set are sent, so an update without tags or category
    leaves the stored values untouched. There is no way to clear them.
    """

    title: str | None = None
    url: str | None = None
    tags: list[str] | None = None
    category: str | None = None

    def payload(self) -> dict[str, Any]:
        """Get the JSON body, omitting unset fields."""
        return self.model_dump(exclude_none=True)


class BookmarkDraft(BaseModel):
    """
    User-entered bookmark fields from the add/edit form.

    Drafts are not validated on construction so a form can hold incomplete
    input; call ``validated()`` before submitting.
    """

    title: str = ""
    url: str = ""
    tags: list[str] = []
    category: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: str | list[str] | None) -> list[str]:
        """Accept comma-separated tag text as well as a list."""
        return parse_tags(v)

    @classmethod
    def from_bookmark(cls, bookmark: Bookmark) -> "BookmarkDraft":
        """Prefill a draft for editing an existing bookmark."""
        return cls(
            title=bookmark.title,
            url=bookmark.url,
            tags=list(bookmark.tags),
            category=bookmark.category,
        )

    def validated(self, max_title_length: int | None = None) -> "BookmarkDraft":
        """
        Validate the draft and return a normalized copy.

        Args:
            max_title_length: Title length limit; the configured maximum when omitted.

        Returns:
            A draft with trimmed title and URL and a canonical category id.

        Raises:
            ValidationError: If the title is empty or too long, or the URL is
                not an absolute URL.
        """
        return BookmarkDraft(
            title=validate_title(self.title, max_title_length),
            url=validate_url(self.url),
            tags=self.tags,
            category=resolve_category_id(self.category) if self.category else None,
        )

    def to_create(self, owner_id: str) -> BookmarkCreate:
        """Build a create payload; empty tags and category are omitted."""
        return BookmarkCreate(
            owner_id=owner_id,
            title=self.title,
            url=self.url,
            tags=self.tags or None,
            category=self.category or None,
        )

    def to_update(self) -> BookmarkUpdate:
        """Build an update payload; empty tags and category are omitted."""
        return BookmarkUpdate(
            title=self.title,
            url=self.url,
            tags=self.tags or None,
            category=self.category or None,
        )
