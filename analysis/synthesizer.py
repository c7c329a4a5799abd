"""Marketing analysis synthesis with a deterministic template fallback."""

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from api.base_client import BaseAIClient
from models.errors import SynthesisError
from models.website_context import FetchedPage, MarketingAnalysis, SearchResultSet
from utils.logger import get_logger

from .llm_json import parse_json_output
from .prompts import analysis_prompt

logger = get_logger(__name__)


class _AnalysisSchema(BaseModel):
    business_overview: str = Field(..., min_length=1)
    key_strengths: list[str] = Field(default_factory=list)
    market_opportunities: list[str] = Field(default_factory=list)
    competitive_landscape: str = ""
    recommended_focus_areas: list[str] = Field(default_factory=list)


def template_analysis(page: FetchedPage, results: list[SearchResultSet]) -> MarketingAnalysis:
    """Analysis built from counts and scraped attributes only."""
    hit_count = sum(len(r.organic) for r in results)
    title = page.title or page.domain

    competitors = []
    for result in results:
        for hit in result.organic:
            if hit.title and hit.title not in competitors:
                competitors.append(hit.title)

    landscape = f"Found {hit_count} search results across {len(results)} queries."
    if competitors:
        landscape += " Top results include: " + ", ".join(competitors[:3]) + "."

    keywords = [k.strip() for k in (page.keywords or "").split(",") if k.strip()]
    strengths = []
    if page.description:
        strengths.append(f"Clear positioning: {page.description}")
    strengths.extend(f"Established relevance for '{k}'" for k in keywords[:3])

    return MarketingAnalysis(
        business_overview=f"Website analysis for {title}",
        key_strengths=strengths,
        market_opportunities=[f"Compete for the search term '{r.query}'" for r in results],
        competitive_landscape=landscape,
        recommended_focus_areas=[r.query for r in results] or keywords[:3],
        source="template",
    )


class AnalysisSynthesizer:
    """
    Ask an LLM for a structured marketing analysis.

    ``synthesize`` never raises; model failures and malformed output fall back
    to ``template_analysis``.
    """

    def __init__(self, llm_client: BaseAIClient | None = None, max_tokens: int = 2000):
        self.llm_client = llm_client
        self.max_tokens = max_tokens

    def _from_llm(self, page: FetchedPage, results: list[SearchResultSet]) -> MarketingAnalysis:
        if self.llm_client is None:
            raise SynthesisError("no LLM backend configured for analysis")

        response = self.llm_client.get_completion(
            analysis_prompt(page, results), temperature=0.7, max_tokens=self.max_tokens
        )
        if response.is_error:
            raise SynthesisError(f"analysis call failed: {response.error.message}")

        try:
            parsed = _AnalysisSchema.model_validate(parse_json_output(response.text))
        except (ValueError, PydanticValidationError) as exc:
            raise SynthesisError(f"malformed analysis output: {exc}") from exc

        return MarketingAnalysis(**parsed.model_dump(), source="llm")

    def synthesize(self, page: FetchedPage, results: list[SearchResultSet]) -> MarketingAnalysis:
        try:
            analysis = self._from_llm(page, results)
        except SynthesisError as exc:
            logger.warning(
                "Analysis synthesis fell back to template",
                extra={"extra_fields": {"step": "synthesis", "url": page.url, "error": exc.message}},
            )
            return template_analysis(page, results)

        logger.info(
            "Analysis synthesized",
            extra={"extra_fields": {"step": "synthesis", "url": page.url, "source": analysis.source}},
        )
        return analysis
