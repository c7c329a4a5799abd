"""
Website-context analysis pipeline.

normalize -> cache check -> create processing row -> (background)
fetch -> derive terms -> search -> synthesize -> complete | fail
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from models.errors import ScrapeError, StateError
from models.website_context import AnalysisPayload, WebsiteContext
from tools.web.scraper import PageFetcher
from tools.web.search import CompetitiveResearcher
from tools.web.url import normalize_url
from utils.logger import get_logger

from .context_store import ContextStore
from .search_terms import SearchTermDeriver
from .synthesizer import AnalysisSynthesizer
from .tasks import AnalysisTaskRunner

logger = get_logger(__name__)

DEFAULT_FRESHNESS = timedelta(hours=24)


@dataclass(frozen=True)
class AnalysisStart:
    """Outcome of ``ContextAnalysisPipeline.start``."""

    context_id: str
    url: str
    cached: bool = False
    summary: dict[str, Any] | None = None


def cached_summary(context: WebsiteContext) -> dict[str, int]:
    return {
        "pagesAnalyzed": 1,
        "searchTerms": len(context.search_terms),
        "competitorData": len(context.search_results),
    }


class ContextAnalysisPipeline:
    """
    Runs the analysis steps in a fixed order against injected collaborators.

    Args:
        fetcher: Page fetcher (primary + fallback strategy)
        deriver: Search-term deriver
        researcher: Competitive search fan-out
        synthesizer: Marketing-analysis synthesizer
        store: Context store owning the record lifecycle
        runner: Background runner; ``start`` submits ``run`` to it
        freshness: Maximum age of a completed context served from cache
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        deriver: SearchTermDeriver,
        researcher: CompetitiveResearcher,
        synthesizer: AnalysisSynthesizer,
        store: ContextStore,
        runner: AnalysisTaskRunner,
        freshness: timedelta = DEFAULT_FRESHNESS,
    ):
        self.fetcher = fetcher
        self.deriver = deriver
        self.researcher = researcher
        self.synthesizer = synthesizer
        self.store = store
        self.runner = runner
        self.freshness = freshness

    def start(self, raw_url, user_id: str | None = None) -> AnalysisStart:
        """
        Serve a fresh completed context from cache, or create a processing
        record and submit the analysis to the background runner.

        Raises:
            ValidationError: If the URL is empty or malformed
        """
        normalized = normalize_url(raw_url)

        existing = self.store.find_fresh_completed(normalized.url, self.freshness)
        if existing is not None:
            logger.info(
                "Serving cached website context",
                extra={"extra_fields": {"step": "cache", "url": normalized.url, "context_id": existing.id}},
            )
            return AnalysisStart(
                context_id=existing.id,
                url=normalized.url,
                cached=True,
                summary=cached_summary(existing),
            )

        context_id = self.store.create_processing(normalized.url, user_id=user_id, domain=normalized.domain)
        logger.info(
            "Analysis started",
            extra={"extra_fields": {"step": "start", "url": normalized.url, "context_id": context_id}},
        )
        try:
            self.runner.submit(context_id, self.run, context_id, normalized.url)
        except Exception as exc:
            logger.error(
                "Could not schedule website analysis",
                extra={"extra_fields": {"step": "start", "url": normalized.url, "context_id": context_id, "error": str(exc)}},
            )
            self.store.fail_with(context_id, f"Analysis could not be scheduled: {exc}")
            raise
        return AnalysisStart(context_id=context_id, url=normalized.url)

    def run(self, context_id: str, url: str) -> None:
        """
        Execute every step for one processing context.

        Any exception marks the context failed and is re-raised so the task
        runner records the failure too.
        """
        step = "fetch"
        try:
            page = self.fetcher.fetch(url)

            step = "search_terms"
            terms = self.deriver.derive(page)

            step = "search"
            results = self.researcher.collect(terms)

            step = "synthesis"
            analysis = self.synthesizer.synthesize(page, results)

            step = "store"
            self.store.complete_with(
                context_id,
                AnalysisPayload(page=page, search_terms=terms, search_results=results, analysis=analysis),
            )
        except Exception as exc:
            message = exc.message if isinstance(exc, ScrapeError) else f"Analysis failed during {step}: {exc}"
            logger.error(
                "Website analysis failed",
                extra={
                    "extra_fields": {
                        "step": step,
                        "url": url,
                        "context_id": context_id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    }
                },
            )
            if not isinstance(exc, StateError):
                self.store.fail_with(context_id, message)
            raise

        logger.info(
            "Website analysis completed",
            extra={
                "extra_fields": {
                    "step": "complete",
                    "url": url,
                    "context_id": context_id,
                    "fetch_method": page.method.value,
                    "search_terms": len(terms),
                    "search_results": len(results),
                }
            },
        )
