"""
Shared validation functions for bookmark drafts.

These run client-side before any repository call, so invalid input never
reaches the backend.
"""
from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.config import get_settings
from services.exceptions import ValidationError

_URL_ADAPTER = TypeAdapter(AnyUrl)


def parse_tags(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """
    Parse tags from a list or a comma-separated string.

    Args:
        value: Either a list of tags or text like 'react, javascript, tutorial'.

    Returns:
        Trimmed tags in their original order, with empty entries dropped.
        Duplicates are kept; tag order is display-significant.

    Raises:
        ValueError: If the value is neither text nor a sequence of strings.
    """
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else value
    if not isinstance(parts, (list, tuple)) or not all(isinstance(tag, str) for tag in parts):
        raise ValueError("tags must be a list of strings")
    return [tag.strip() for tag in parts if tag and tag.strip()]


def validate_title(title: str | None, max_length: int | None = None) -> str:
    """
    Validate and trim a bookmark title.

    Args:
        title: Raw title input.
        max_length: Length limit; the configured maximum when omitted.

    Raises:
        ValidationError: If the title is empty or exceeds the configured maximum.
    """
    trimmed = (title or "").strip()
    if not trimmed:
        raise ValidationError("title", "Title is required")
    if max_length is None:
        max_length = get_settings().max_title_length
    if len(trimmed) > max_length:
        raise ValidationError(
            "title",
            f"Title exceeds maximum length of {max_length:,} characters "
            f"(got {len(trimmed):,} characters).",
        )
    return trimmed


def validate_url(url: str | None) -> str:
    """
    Validate that a URL parses as an absolute URL and return it trimmed.

    The URL is returned as entered (not normalized), so 'https://go.dev'
    does not gain a trailing slash.

    Raises:
        ValidationError: If the URL is empty or not absolute.
    """
    trimmed = (url or "").strip()
    if not trimmed:
        raise ValidationError("url", "URL is required")
    try:
        parsed = _URL_ADAPTER.validate_python(trimmed)
    except PydanticValidationError:
        raise ValidationError("url", "Please enter a valid URL") from None
    if not parsed.scheme or not (parsed.host or parsed.path):
        raise ValidationError("url", "Please enter a valid URL")
    return trimmed
