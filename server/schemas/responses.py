"""Pydantic response models (DTOs) for FastAPI endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from analysis.chat import ChatAnswer
from analysis.pipeline import AnalysisStart
from analysis.tasks import TaskState
from models.website_context import FetchedPage, WebsiteContext


class CamelDTO(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str


class AnalyzeResponseDTO(CamelDTO):
    success: bool = True
    context_id: str
    status: str | None = None
    message: str | None = None
    cached: bool | None = None
    summary: dict[str, int] | None = None

    @classmethod
    def from_start(cls, start: AnalysisStart):
        if start.cached:
            return cls(context_id=start.context_id, cached=True, summary=start.summary)
        return cls(
            context_id=start.context_id,
            status="processing",
            message="Analysis started. This may take a few moments.",
        )


class OrganicHitDTO(BaseModel):
    title: str
    link: str
    snippet: str = ""


class SearchResultSetDTO(BaseModel):
    query: str
    organic: list[OrganicHitDTO] = Field(default_factory=list)


class ContextRecordDTO(CamelDTO):
    id: str
    url: str
    domain: str | None = None
    user_id: str | None = None
    status: str
    title: str | None = None
    description: str | None = None
    content: str | None = None
    keywords: str | None = None
    fetch_method: str | None = None
    raw_html_length: int | None = None
    search_terms: list[str] = Field(default_factory=list)
    search_results: list[SearchResultSetDTO] = Field(default_factory=list)
    analysis: dict[str, Any] | str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_context(cls, ctx: WebsiteContext):
        return cls(
            id=ctx.id,
            url=ctx.url,
            domain=ctx.domain,
            user_id=ctx.user_id,
            status=ctx.status.value,
            title=ctx.title,
            description=ctx.description,
            content=ctx.content,
            keywords=ctx.keywords,
            fetch_method=ctx.fetch_method,
            raw_html_length=ctx.raw_html_length,
            search_terms=ctx.search_terms,
            search_results=[r.to_dict() for r in ctx.search_results],
            analysis=ctx.analysis,
            error_message=ctx.error_message,
            created_at=ctx.created_at,
            updated_at=ctx.updated_at,
            completed_at=ctx.completed_at,
        )


class ContextChatResponseDTO(CamelDTO):
    content: str
    model: str
    context_url: str
    analysis_date: str | None = None

    @classmethod
    def from_answer(cls, answer: ChatAnswer):
        return cls(
            content=answer.content,
            model=answer.model,
            context_url=answer.context_url,
            analysis_date=answer.analysis_date,
        )


class TaskStateDTO(BaseModel):
    task_id: str
    status: str
    submitted_at: str
    started_at: str | None = None
    finished_at: str | None = None
    error: str | None = None

    @classmethod
    def from_state(cls, state: TaskState):
        return cls(**state.to_dict())


class ScrapedPageDTO(CamelDTO):
    url: str
    domain: str
    title: str
    description: str
    keywords: str
    content: str
    raw_html_length: int
    method: str

    @classmethod
    def from_page(cls, page: FetchedPage):
        return cls(**page.to_dict())


class ScrapeResponseDTO(BaseModel):
    success: bool = True
    data: ScrapedPageDTO


class QuickChatResponseDTO(BaseModel):
    content: str


class MarketingContentResponseDTO(BaseModel):
    content: str
