"""
Domain objects for the website-context analysis pipeline.

These are plain dataclasses; the database layer stores their ``to_dict()``
forms in JSON columns and rebuilds them with ``from_dict()``.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class ContextStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ContextStatus.PROCESSING


class FetchMethod(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class FetchedPage:
    """Extracted attributes of one scraped page."""

    url: str
    domain: str
    title: str = ""
    description: str = ""
    keywords: str = ""
    content: str = ""
    raw_html_length: int = 0
    method: FetchMethod = FetchMethod.PRIMARY

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["method"] = self.method.value
        return data


@dataclass(frozen=True)
class OrganicHit:
    title: str
    link: str
    snippet: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrganicHit":
        return cls(
            title=str(data.get("title") or ""),
            link=str(data.get("link") or data.get("url") or ""),
            snippet=str(data.get("snippet") or ""),
        )


@dataclass(frozen=True)
class SearchResultSet:
    """Organic hits returned for one search term."""

    query: str
    organic: list[OrganicHit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"query": self.query, "organic": [asdict(hit) for hit in self.organic]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchResultSet":
        return cls(
            query=str(data.get("query") or ""),
            organic=[OrganicHit.from_dict(hit) for hit in data.get("organic") or []],
        )


@dataclass(frozen=True)
class MarketingAnalysis:
    """
    Structured marketing analysis of a website.

    ``source`` is ``"llm"`` when the fields came from a model and
    ``"template"`` when they were derived deterministically.
    """

    business_overview: str
    key_strengths: list[str] = field(default_factory=list)
    market_opportunities: list[str] = field(default_factory=list)
    competitive_landscape: str = ""
    recommended_focus_areas: list[str] = field(default_factory=list)
    source: str = "llm"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketingAnalysis":
        return cls(
            business_overview=str(data.get("business_overview") or ""),
            key_strengths=[str(s) for s in data.get("key_strengths") or []],
            market_opportunities=[str(s) for s in data.get("market_opportunities") or []],
            competitive_landscape=str(data.get("competitive_landscape") or ""),
            recommended_focus_areas=[str(s) for s in data.get("recommended_focus_areas") or []],
            source=str(data.get("source") or "llm"),
        )


@dataclass(frozen=True)
class AnalysisPayload:
    """Everything written to a context when it transitions to completed."""

    page: FetchedPage
    search_terms: list[str]
    search_results: list[SearchResultSet]
    analysis: MarketingAnalysis

    def __post_init__(self):
        if len(self.search_results) > len(self.search_terms):
            raise ValueError("search_results cannot outnumber search_terms")


@dataclass
class WebsiteContext:
    """One persisted analysis record."""

    id: str
    url: str
    status: ContextStatus
    created_at: datetime
    updated_at: datetime
    domain: str | None = None
    user_id: str | None = None
    title: str | None = None
    description: str | None = None
    content: str | None = None
    keywords: str | None = None
    fetch_method: str | None = None
    raw_html_length: int | None = None
    search_terms: list[str] = field(default_factory=list)
    search_results: list[SearchResultSet] = field(default_factory=list)
    # Structured analysis dict, or a plain string for legacy rows
    analysis: dict[str, Any] | str | None = None
    error_message: str | None = None
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status is ContextStatus.COMPLETED

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WebsiteContext":
        return cls(
            id=row["id"],
            url=row["url"],
            status=ContextStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            domain=row.get("domain"),
            user_id=row.get("user_id"),
            title=row.get("title"),
            description=row.get("description"),
            content=row.get("content"),
            keywords=row.get("keywords"),
            fetch_method=row.get("fetch_method"),
            raw_html_length=row.get("raw_html_length"),
            search_terms=list(row.get("search_terms") or []),
            search_results=[SearchResultSet.from_dict(r) for r in row.get("search_results") or []],
            analysis=row.get("analysis"),
            error_message=row.get("error_message"),
            completed_at=row.get("completed_at"),
        )
