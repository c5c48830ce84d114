"""Static category table used to resolve and label bookmark categories."""
from dataclasses import dataclass

ALL_CATEGORIES = "All"
DEFAULT_CATEGORY_ID = "other"


@dataclass(frozen=True)
class CategoryConfig:
    """Display metadata for a category."""

    id: str
    label: str
    color: str


CATEGORIES: tuple[CategoryConfig, ...] = (
    CategoryConfig("development", "Development", "blue"),
    CategoryConfig("design", "Design", "pink"),
    CategoryConfig("reference", "Reference", "yellow"),
    CategoryConfig("work", "Work", "orange"),
    CategoryConfig("education", "Education", "green"),
    CategoryConfig("shopping", "Shopping", "purple"),
    CategoryConfig("news", "News", "red"),
    CategoryConfig("social", "Social", "cyan"),
    CategoryConfig("entertainment", "Entertainment", "indigo"),
    CategoryConfig(DEFAULT_CATEGORY_ID, "Other", "slate"),
)

# Both ids and labels resolve, since stored records may carry either
_LOOKUP: dict[str, CategoryConfig] = {
    **{c.label.lower(): c for c in CATEGORIES},
    **{c.id: c for c in CATEGORIES},
}


def get_category_config(value: str | None) -> CategoryConfig:
    """
    Look up a category by id or label, case-insensitively.

    Args:
        value: A category id ('development') or label ('Development').

    Returns:
        The matching config, or the 'other' category when the value is empty
        or unrecognized.
    """
    if not value:
        return _LOOKUP[DEFAULT_CATEGORY_ID]
    return _LOOKUP.get(value.strip().lower(), _LOOKUP[DEFAULT_CATEGORY_ID])


def resolve_category_id(value: str | None) -> str:
    """Get the canonical category id for a stored or user-entered value."""
    return get_category_config(value).id


def category_label(value: str) -> str:
    """Get the heading label for a category filter value."""
    if value == ALL_CATEGORIES:
        return ALL_CATEGORIES
    return get_category_config(value).label
