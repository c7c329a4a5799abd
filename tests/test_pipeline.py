"""End-to-end pipeline runs against fake collaborators and in-memory SQLite."""

import json
from datetime import timedelta

import pytest
from sqlalchemy import select

from analysis.chat import ContextChatService
from analysis.pipeline import ContextAnalysisPipeline
from analysis.search_terms import SearchTermDeriver
from analysis.synthesizer import AnalysisSynthesizer
from analysis.tasks import AnalysisTaskRunner, TaskStatus
from db.tables import website_contexts
from models.errors import StateError, ValidationError
from models.website_context import ContextStatus
from tools.web.scraper import PageFetcher
from tools.web.search import CompetitiveResearcher
from tests.fakes import FakeLLMClient, FakeSearchClient, FakeStrategy, failing_strategy, raw_page

pytestmark = pytest.mark.integration

TERMS_REPLY = '["marketing analytics", "attribution software", "campaign dashboards"]'
ANALYSIS_REPLY = json.dumps(
    {
        "business_overview": "Acme sells campaign analytics.",
        "key_strengths": ["Focused product"],
        "market_opportunities": ["Agencies"],
        "competitive_landscape": "Several established rivals.",
        "recommended_focus_areas": ["Attribution"],
    }
)


class Harness:
    def __init__(self, store, primary=None, fallback=None, failing_terms=()):
        self.primary = primary or FakeStrategy("browser", page=raw_page())
        self.fallback = fallback or FakeStrategy("http", page=raw_page(title="Fallback Acme"))
        self.search = FakeSearchClient(failing=failing_terms)
        self.llm = FakeLLMClient(replies=[TERMS_REPLY, ANALYSIS_REPLY])
        self.runner = AnalysisTaskRunner(synchronous=True)
        self.store = store
        self.pipeline = ContextAnalysisPipeline(
            fetcher=PageFetcher(self.primary, self.fallback),
            deriver=SearchTermDeriver(self.llm),
            researcher=CompetitiveResearcher(self.search, max_terms=3, concurrency=3),
            synthesizer=AnalysisSynthesizer(self.llm),
            store=store,
            runner=self.runner,
            freshness=timedelta(hours=24),
        )

    def call_counts(self):
        return (
            len(self.primary.calls),
            len(self.fallback.calls),
            len(self.search.calls),
            len(self.llm.calls),
        )


def test_analysis_completes_with_failed_search_term_omitted(store):
    harness = Harness(store, failing_terms={"attribution software"})

    start = harness.pipeline.start("example.com", user_id="user-1")

    assert start.cached is False
    assert start.url == "https://example.com/"
    context = store.get(start.context_id)
    assert context.status is ContextStatus.COMPLETED
    assert context.url == "https://example.com/"
    assert context.domain == "example.com"
    assert context.fetch_method == "primary"
    assert context.search_terms == ["marketing analytics", "attribution software", "campaign dashboards"]
    assert [r.query for r in context.search_results] == ["marketing analytics", "campaign dashboards"]
    assert context.analysis["source"] == "llm"
    assert harness.runner.get(start.context_id).status is TaskStatus.SUCCEEDED


def test_resubmission_within_window_is_served_from_cache(store, clock):
    harness = Harness(store, failing_terms={"attribution software"})
    first = harness.pipeline.start("example.com")
    counts_after_first = harness.call_counts()

    clock.advance(hours=2)
    second = harness.pipeline.start("https://EXAMPLE.com/")

    assert second.cached is True
    assert second.context_id == first.context_id
    assert second.summary == {"pagesAnalyzed": 1, "searchTerms": 3, "competitorData": 2}
    assert harness.call_counts() == counts_after_first


def test_resubmission_after_window_runs_a_new_analysis(store, clock):
    harness = Harness(store)
    first = harness.pipeline.start("example.com")
    harness.llm.replies = [TERMS_REPLY, ANALYSIS_REPLY]

    clock.advance(hours=25)
    second = harness.pipeline.start("example.com")

    assert second.cached is False
    assert second.context_id != first.context_id
    assert len(harness.primary.calls) == 2
    assert store.get(first.context_id).status is ContextStatus.COMPLETED


def test_primary_scrape_failure_uses_fallback(store):
    harness = Harness(store, primary=failing_strategy("browser", "browser crashed"))

    start = harness.pipeline.start("example.com")

    context = store.get(start.context_id)
    assert context.status is ContextStatus.COMPLETED
    assert context.fetch_method == "fallback"
    assert context.title == "Fallback Acme"


def test_total_scrape_failure_marks_context_failed_and_blocks_chat(store):
    harness = Harness(
        store,
        primary=failing_strategy("browser", "navigation timeout"),
        fallback=failing_strategy("http", "HTTP 503: Service Unavailable"),
    )

    start = harness.pipeline.start("example.com")

    context = store.get(start.context_id)
    assert context.status is ContextStatus.FAILED
    assert "HTTP 503" in context.error_message
    assert harness.search.calls == []
    assert harness.llm.calls == []

    task = harness.runner.get(start.context_id)
    assert task.status is TaskStatus.FAILED
    assert "HTTP 503" in task.error

    chat = ContextChatService(store, backends=None)
    with pytest.raises(StateError):
        chat.ask(start.context_id, "How do I grow?", "openai")


def test_unexpected_step_error_marks_context_failed(store):
    harness = Harness(store)

    class ExplodingResearcher:
        def collect(self, terms):
            raise RuntimeError("search backend misconfigured")

    harness.pipeline.researcher = ExplodingResearcher()
    start = harness.pipeline.start("example.com")

    context = store.get(start.context_id)
    assert context.status is ContextStatus.FAILED
    assert context.error_message == "Analysis failed during search: search backend misconfigured"


def test_llm_outages_degrade_to_deterministic_results(store):
    harness = Harness(store)
    harness.pipeline.deriver = SearchTermDeriver(None)
    harness.pipeline.synthesizer = AnalysisSynthesizer(None)

    start = harness.pipeline.start("example.com")

    context = store.get(start.context_id)
    assert context.status is ContextStatus.COMPLETED
    assert context.search_terms[0] == "acme"
    assert context.analysis["source"] == "template"
    assert context.analysis["business_overview"] == "Website analysis for Acme Analytics"


def test_invalid_url_is_rejected_before_any_record_is_created(store):
    harness = Harness(store)

    with pytest.raises(ValidationError):
        harness.pipeline.start("not a url")

    assert harness.call_counts() == (0, 0, 0, 0)


def test_context_is_failed_when_the_runner_refuses_work(store, session_factory):
    harness = Harness(store)
    stopped = AnalysisTaskRunner(max_workers=1)
    stopped.shutdown(wait=True)
    harness.pipeline.runner = stopped

    with pytest.raises(RuntimeError):
        harness.pipeline.start("example.com")

    with session_factory() as db:
        [context_id] = db.execute(select(website_contexts.c.id)).scalars().all()
    context = store.get(context_id)
    assert context.status is ContextStatus.FAILED
    assert context.error_message.startswith("Analysis could not be scheduled")
    assert harness.call_counts() == (0, 0, 0, 0)
    # The failed row is not served from cache; a later request starts afresh
    harness.pipeline.runner = harness.runner
    assert harness.pipeline.start("example.com").cached is False
