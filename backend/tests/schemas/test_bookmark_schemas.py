"""Tests for bookmark schemas."""
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkDraft, BookmarkUpdate
from services.exceptions import ValidationError


class TestBookmark:
    """Tests for parsing backend bookmark records."""

    def test__bookmark__parses_wire_record(self) -> None:
        """Records with integer ids and alternate field names are accepted."""
        bookmark = Bookmark.model_validate({
            "id": 7,
            "user_id": 3,
            "title": "Go Docs",
            "url": "https://go.dev",
            "tags": ["go"],
            "category": "Development",
            "createdAt": "2025-01-01T00:00:00Z",
        })

        assert bookmark.id == "7"
        assert bookmark.owner_id == "3"
        assert bookmark.tags == ("go",)
        assert bookmark.category == "development"
        assert bookmark.created_at == datetime(2025, 1, 1, tzinfo=UTC)

    @pytest.mark.parametrize("category", [None, "", "Gardening"])
    def test__bookmark__unknown_category_becomes_other(self, category: str | None) -> None:
        bookmark = Bookmark(
            id="1", owner_id="u", title="t", url="https://x.dev",
            category=category, created_at=datetime(2025, 1, 1, tzinfo=UTC),
        )
        assert bookmark.category == "other"

    def test__bookmark__missing_tags_are_empty(self) -> None:
        bookmark = Bookmark(
            id="1", owner_id="u", title="t", url="https://x.dev",
            tags=None, created_at=datetime(2025, 1, 1, tzinfo=UTC),
        )
        assert bookmark.tags == ()

    def test__bookmark__is_immutable(self, go_docs: Bookmark) -> None:
        with pytest.raises(PydanticValidationError):
            go_docs.title = "changed"  # type: ignore[misc]


class TestPayloads:
    """Tests for create and update wire payloads."""

    def test__create_payload__omits_unset_optionals(self) -> None:
        record = BookmarkCreate(owner_id="u", title="t", url="https://x.dev")
        assert record.payload() == {"owner_id": "u", "title": "t", "url": "https://x.dev"}

    def test__update_payload__only_set_fields(self) -> None:
        assert BookmarkUpdate(title="New").payload() == {"title": "New"}


class TestBookmarkDraft:
    """Tests for form drafts."""

    def test__draft__accepts_comma_separated_tags(self) -> None:
        draft = BookmarkDraft(title="t", url="https://x.dev", tags="a, b,,c")
        assert draft.tags == ["a", "b", "c"]

    def test__draft__not_validated_on_construction(self) -> None:
        """An incomplete form is a valid draft until submitted."""
        assert BookmarkDraft().title == ""

    def test__validated__normalizes_fields(self) -> None:
        draft = BookmarkDraft(title="  Go  ", url=" https://go.dev ", category="Design")
        valid = draft.validated()

        assert valid.title == "Go"
        assert valid.url == "https://go.dev"
        assert valid.category == "design"

    def test__validated__rejects_empty_title(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            BookmarkDraft(title="", url="https://go.dev").validated()
        assert exc_info.value.field == "title"

    def test__to_update__omits_empty_tags_and_category(self) -> None:
        """Clearing tags or category in the form leaves the stored values alone."""
        update = BookmarkDraft(title="t", url="https://x.dev", tags=[], category="").to_update()
        assert update.payload() == {"title": "t", "url": "https://x.dev"}

    def test__to_create__includes_owner_and_optionals(self) -> None:
        record = BookmarkDraft(
            title="t", url="https://x.dev", tags=["a"], category="news",
        ).to_create("user-1")
        assert record.payload() == {
            "owner_id": "user-1",
            "title": "t",
            "url": "https://x.dev",
            "tags": ["a"],
            "category": "news",
        }

    def test__from_bookmark__prefills_form(self, go_docs: Bookmark) -> None:
        draft = BookmarkDraft.from_bookmark(go_docs)
        assert draft == BookmarkDraft(
            title="Go Docs", url="https://go.dev", tags=["go"], category="development",
        )
