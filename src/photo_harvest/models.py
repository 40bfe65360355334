"""Data models for catalog entries and collected candidates."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

TEXT_AMOUNTS = ("none", "minimal", "moderate", "substantial")


@dataclass
class Project:
    """A named collection namespace."""

    id: int | None
    name: str
    created_at: datetime | None = None


@dataclass
class CatalogEntry:
    """One collected image belonging to a project."""

    id: int | None
    project_id: int
    url: str
    description: str | None = None
    language: str | None = None
    locale: str | None = None
    text_amount: str | None = None
    image_type: str | None = None
    source: str | None = None
    usage_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass(frozen=True)
class CandidateImage:
    """An image returned by a source adapter, before dedup and persistence."""

    raw_url: str
    alt_text: str | None = None
    width: int | None = None
    height: int | None = None
    author: str | None = None
    source_record_id: str | None = None
    page_url: str | None = None
    license: str | None = None
    # search text actually sent, when the adapter rewrote the keyword
    query: str | None = None


def estimate_text_amount(description: str | None) -> str:
    """Bucket a caption by word count: 0 none, <3 minimal, <8 moderate, else substantial."""
    if not description:
        return "none"
    words = len(description.split())
    if words == 0:
        return "none"
    if words < 3:
        return "minimal"
    if words < 8:
        return "moderate"
    return "substantial"
