"""Schemas for the derived bookmark view: filters and summaries."""
from typing import Literal

from pydantic import BaseModel, ConfigDict

from services.category_registry import ALL_CATEGORIES

ViewMode = Literal["all", "favorites", "recent"]


class ViewFilter(BaseModel):
    """
    Filter state for the bookmark view.

    Held by the synchronizer and passed explicitly into projection; never
    persisted.
    """

    model_config = ConfigDict(frozen=True)

    search_query: str = ""
    selected_category: str = ALL_CATEGORIES
    view_mode: ViewMode = "all"


class ViewSummary(BaseModel):
    """Heading information for the current view."""

    model_config = ConfigDict(frozen=True)

    title: str
    mode_count: int  # badge count for the active view mode
    result_count: int  # bookmarks shown after all filters


class CategorySummary(BaseModel):
    """A category option with the number of bookmarks in it."""

    model_config = ConfigDict(frozen=True)

    category: str
    label: str
    count: int
