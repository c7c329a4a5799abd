"""
Models package: provider-neutral LLM responses, pipeline domain objects and errors.
"""

from .errors import (
    ConfigError,
    NotFoundError,
    PlaygroundError,
    ScrapeError,
    SearchError,
    StateError,
    StorageError,
    SynthesisError,
    UpstreamError,
    ValidationError,
)
from .llm_response import LLMResponse, NormalizedError, TokenUsage
from .website_context import (
    AnalysisPayload,
    ContextStatus,
    FetchedPage,
    FetchMethod,
    MarketingAnalysis,
    OrganicHit,
    SearchResultSet,
    WebsiteContext,
)

__all__ = [
    "AnalysisPayload",
    "ConfigError",
    "ContextStatus",
    "FetchMethod",
    "FetchedPage",
    "LLMResponse",
    "MarketingAnalysis",
    "NormalizedError",
    "NotFoundError",
    "OrganicHit",
    "PlaygroundError",
    "ScrapeError",
    "SearchError",
    "SearchResultSet",
    "StateError",
    "StorageError",
    "SynthesisError",
    "TokenUsage",
    "UpstreamError",
    "ValidationError",
    "WebsiteContext",
]
