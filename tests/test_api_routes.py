"""
HTTP contract of the FastAPI layer.

Every external collaborator (scrape strategies, search, LLM backends) is
replaced with an in-memory fake through ``app.dependency_overrides`` and the
database is in-memory SQLite, so these tests run offline. Background analysis
runs synchronously, so a 202 response is followed by a completed record.
"""

import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from analysis.chat import ContextChatService, MarketingContentService, QuickChatService
from analysis.pipeline import ContextAnalysisPipeline
from analysis.search_terms import SearchTermDeriver
from analysis.synthesizer import AnalysisSynthesizer
from analysis.tasks import AnalysisTaskRunner
from api.factory import BackendRegistry
from config.config import Config
from server import dependencies as deps
from server.app import create_app
from services.content import CaseStudyService, ConsultationService
from services.leads import LeadService
from tests.fakes import FakeLLMClient, FakeSearchClient, FakeStrategy, failing_strategy, provider_error, raw_page
from tools.web.scraper import PageFetcher
from tools.web.search import CompetitiveResearcher

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

SINGLETON_PROVIDERS = (
    deps.get_config,
    deps.get_backend_registry,
    deps.get_task_runner,
    deps.get_page_fetcher,
    deps.get_pipeline,
)


def _clear_singletons():
    for provider in SINGLETON_PROVIDERS:
        if hasattr(provider, "_instance"):
            delattr(provider, "_instance")


class FakeServices:
    """Everything the routes need, wired against one in-memory database."""

    def __init__(self, session_factory, store, clock):
        self.config = Config()
        self.analysis_llm = FakeLLMClient(replies=[TERMS_REPLY, ANALYSIS_REPLY])
        self.chat_llm = FakeLLMClient(default_reply="Lean into attribution.")
        self.runner = AnalysisTaskRunner(synchronous=True)
        self.fetcher = PageFetcher(FakeStrategy("browser", page=raw_page()), FakeStrategy("http", page=raw_page()))
        self.search = FakeSearchClient()
        self.backends = BackendRegistry(self.config, builder=lambda backend, cfg: self.chat_llm)
        self.pipeline = ContextAnalysisPipeline(
            fetcher=self.fetcher,
            deriver=SearchTermDeriver(self.analysis_llm),
            researcher=CompetitiveResearcher(self.search, max_terms=3, concurrency=3),
            synthesizer=AnalysisSynthesizer(self.analysis_llm),
            store=store,
            runner=self.runner,
            freshness=timedelta(hours=24),
        )
        self.store = store
        self.session_factory = session_factory
        self.clock = clock

    def install(self, app):
        overrides = {
            deps.get_config: lambda: self.config,
            deps.get_session_factory: lambda: self.session_factory,
            deps.get_context_store: lambda: self.store,
            deps.get_task_runner: lambda: self.runner,
            deps.get_page_fetcher: lambda: self.fetcher,
            deps.get_backend_registry: lambda: self.backends,
            deps.get_pipeline: lambda: self.pipeline,
            deps.get_chat_service: lambda: ContextChatService(self.store, self.backends),
            deps.get_quick_chat_service: lambda: QuickChatService(self.search, self.backends),
            deps.get_marketing_content_service: lambda: MarketingContentService(self.backends),
            deps.get_lead_service: lambda: LeadService(self.session_factory, clock=self.clock),
            deps.get_case_study_service: lambda: CaseStudyService(self.session_factory, clock=self.clock),
            deps.get_consultation_service: lambda: ConsultationService(self.session_factory, clock=self.clock),
        }
        app.dependency_overrides.update(overrides)


@pytest.fixture()
def services(session_factory, store, clock, analysis_env):
    return FakeServices(session_factory, store, clock)


@pytest.fixture()
def app(services):
    _clear_singletons()
    app = create_app()
    services.install(app)
    yield app
    _clear_singletons()


@pytest.fixture()
def client(app):
    return TestClient(app)


def _analyze(client, url="example.com"):
    return client.post("/context/analyze", json={"url": url, "userId": "user-1"})


# -------------------------------------------------------------------
# Health & request ids
# -------------------------------------------------------------------


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["timestamp"].endswith("Z")


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"


# -------------------------------------------------------------------
# Context analysis
# -------------------------------------------------------------------


def test_analyze_returns_202_then_context_is_completed(client):
    r = _analyze(client)

    assert r.status_code == 202
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "processing"
    assert "contextId" in body
    assert "cached" not in body

    record = client.get(f"/context/{body['contextId']}").json()
    assert record["status"] == "completed"
    assert record["url"] == "https://example.com/"
    assert record["userId"] == "user-1"
    assert record["searchTerms"] == ["marketing analytics", "attribution software", "campaign dashboards"]
    assert record["analysis"]["business_overview"] == "Acme sells campaign analytics."
    assert record["completedAt"] is not None


def test_analyze_again_within_window_returns_cached_200(client, services):
    first = _analyze(client).json()
    calls_before = len(services.analysis_llm.calls)

    r = _analyze(client, "https://example.com")

    assert r.status_code == 200
    body = r.json()
    assert body["cached"] is True
    assert body["contextId"] == first["contextId"]
    assert body["summary"] == {"pagesAnalyzed": 1, "searchTerms": 3, "competitorData": 3}
    assert len(services.analysis_llm.calls) == calls_before


@pytest.mark.parametrize("payload", [{}, {"url": ""}, {"url": 42}, {"url": "not a url"}])
def test_analyze_rejects_bad_urls(client, payload):
    r = client.post("/context/analyze", json=payload)
    assert r.status_code == 400
    assert "error" in r.json()


def test_analyze_without_keys_is_503(session_factory, store, clock, monkeypatch):
    for key in ("SERPER_API_KEY", "TAVILY_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY",
                "OPENROUTER_API_KEY", "GOOGLE_GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SEARCH_PROVIDER", "serper")
    services = FakeServices(session_factory, store, clock)
    _clear_singletons()
    app = create_app()
    services.install(app)
    # Let the real provider validate configuration
    del app.dependency_overrides[deps.get_pipeline]

    try:
        r = TestClient(app).post("/context/analyze", json={"url": "example.com"})
    finally:
        _clear_singletons()

    assert r.status_code == 503
    assert "SERPER_API_KEY" in r.json()["error"]


def test_failed_scrape_marks_context_failed(client, services):
    services.fetcher.primary = failing_strategy("browser", "browser crashed")
    services.fetcher.fallback = failing_strategy("http", "HTTP 503")

    r = _analyze(client)

    assert r.status_code == 202
    context_id = r.json()["contextId"]
    record = client.get(f"/context/{context_id}").json()
    assert record["status"] == "failed"
    assert record["errorMessage"]

    task = client.get(f"/tasks/{context_id}").json()
    assert task["status"] == "failed"


def test_unknown_context_is_404(client):
    r = client.get("/context/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Website context not found"}


def test_unknown_task_is_404(client):
    assert client.get("/tasks/does-not-exist").status_code == 404


def test_task_state_falls_back_to_context_record(client, store):
    running_id = store.create_processing("https://example.com/")
    failed_id = store.create_processing("https://example.org/")
    store.fail_with(failed_id, "Website scraping failed")

    running = client.get(f"/tasks/{running_id}").json()
    failed = client.get(f"/tasks/{failed_id}").json()

    assert running["status"] == "running"
    assert running["finished_at"] is None
    assert failed["status"] == "failed"
    assert failed["error"] == "Website scraping failed"
    assert failed["finished_at"] is not None


# -------------------------------------------------------------------
# Context chat
# -------------------------------------------------------------------


def test_chat_against_completed_context(client, services):
    context_id = _analyze(client).json()["contextId"]

    r = client.post(
        f"/context/{context_id}/chat",
        json={"question": "What should we do next?", "model": "openai", "modelName": "gpt-4o-mini"},
    )

    assert r.status_code == 200
    body = r.json()
    assert body["content"] == "Lean into attribution."
    assert body["model"] == "gpt-4o-mini"
    assert body["contextUrl"] == "https://example.com/"
    assert body["analysisDate"]
    assert services.chat_llm.calls[0]["model"] == "gpt-4o-mini"


def test_chat_without_model_uses_default_backend(client, services):
    context_id = _analyze(client).json()["contextId"]

    r = client.post(f"/context/{context_id}/chat", json={"question": "Where do we start?"})

    assert r.status_code == 200
    assert r.json()["content"] == "Lean into attribution."
    assert services.chat_llm.calls[-1]["messages"][-1] == {"role": "user", "content": "Where do we start?"}


def test_chat_requires_question(client):
    r = client.post("/context/anything/chat", json={"model": "openai"})
    assert r.status_code == 400
    assert r.json()["error"] == "question is required"


def test_chat_unknown_context_is_404(client):
    r = client.post("/context/missing/chat", json={"question": "Hi?", "model": "openai"})
    assert r.status_code == 404


def test_chat_on_processing_context_is_400(client, store):
    context_id = store.create_processing("https://example.com/")
    r = client.post(f"/context/{context_id}/chat", json={"question": "Hi?", "model": "openai"})
    assert r.status_code == 400
    assert r.json()["error"] == "Website analysis not completed yet"


# -------------------------------------------------------------------
# Leads
# -------------------------------------------------------------------


def test_lead_create_then_upsert(client):
    payload = {"action": "create", "website": "acme.com", "email": "Jane@Acme.com", "conversationId": "c-1"}

    first = client.post("/leads", json=payload)
    second = client.post("/leads", json=payload)

    assert first.status_code == 200
    assert first.json()["isUpdate"] is False
    assert first.json()["lead"]["email"] == "jane@acme.com"
    assert first.json()["lead"]["metadata"]["userAgent"] == "testclient"
    assert second.json()["isUpdate"] is True
    assert second.json()["message"] == "Lead updated successfully"


def test_lead_invalid_email_is_400(client):
    r = client.post("/leads", json={"action": "create", "website": "acme.com", "email": "nope"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid email format"


def test_lead_invalid_action_is_400(client):
    r = client.post("/leads", json={"action": "purge"})
    assert r.status_code == 400
    assert "Invalid action" in r.json()["error"]


def test_lead_status_update_via_post_and_put(client):
    lead_id = client.post("/leads", json={"action": "create", "website": "acme.com", "email": "a@acme.com"}).json()[
        "lead"
    ]["id"]

    r1 = client.post("/leads", json={"action": "update_status", "leadId": lead_id, "status": "contacted"})
    r2 = client.put("/leads", json={"leadId": lead_id, "status": "qualified"})

    assert r1.json()["lead"]["status"] == "contacted"
    assert r2.json()["lead"]["status"] == "qualified"


def test_lead_status_update_unknown_lead_is_404(client):
    r = client.put("/leads", json={"leadId": "missing", "status": "qualified"})
    assert r.status_code == 404


def test_lead_delete_is_not_allowed(client):
    r = client.delete("/leads")
    assert r.status_code == 405
    assert r.json() == {"error": "Delete operation not allowed for security reasons"}


def test_lead_listing_and_stats(client):
    client.post("/leads", json={"action": "create", "website": "acme.com", "email": "a@acme.com"})
    client.post("/leads", json={"action": "create", "website": "globex.com", "email": "b@globex.com"})

    listed = client.get("/leads", params={"domain": "acme.com"}).json()
    stats = client.get("/leads", params={"stats": "true"}).json()["stats"]

    assert listed["count"] == 1
    assert listed["leads"][0]["email"] == "a@acme.com"
    assert stats["total"] == 2
    assert stats["new"] == 2


# -------------------------------------------------------------------
# Case studies & consultation requests
# -------------------------------------------------------------------


def test_case_study_create_and_list(client):
    payload = {
        "title": "Doubling demos",
        "industry": "SaaS",
        "challenge": "Low conversion",
        "solution": "Landing page tests",
        "results": "2x demos",
        "technologies_used": ["analytics", "cms"],
    }

    created = client.post("/case-studies", json=payload)
    listed = client.get("/case-studies").json()["data"]

    assert created.status_code == 200
    assert created.json()["success"] is True
    assert listed[0]["title"] == "Doubling demos"
    assert listed[0]["technologies_used"] == ["analytics", "cms"]


def test_case_study_missing_field_is_400(client):
    r = client.post("/case-studies", json={"title": "Only a title"})
    assert r.status_code == 400
    assert r.json()["error"] == "industry is required"


def test_consultation_request_submit_and_list(client):
    payload = {
        "company_name": "Acme",
        "contact_person": "Jane Doe",
        "email": "jane@acme.com",
        "consultation_type": "strategy",
    }

    created = client.post("/consultation-requests", json=payload).json()
    listed = client.get("/consultation-requests").json()["data"]

    assert created["data"]["status"] == "pending"
    assert [r["id"] for r in listed] == [created["data"]["id"]]


def test_consultation_request_missing_field_is_400(client):
    r = client.post("/consultation-requests", json={"company_name": "Acme"})
    assert r.status_code == 400
    assert r.json()["error"] == "contact_person is required"


# -------------------------------------------------------------------
# Scrape & quick chat
# -------------------------------------------------------------------


def test_scrape_website(client):
    r = client.post("/scrape-website", json={"url": "acme.com"})

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["url"] == "https://acme.com/"
    assert data["title"] == "Acme Analytics"
    assert data["method"] == "primary"
    assert data["rawHtmlLength"] == 4096


def test_scrape_website_failure_is_500(client, services):
    services.fetcher.primary = failing_strategy("browser", "browser crashed")
    services.fetcher.fallback = failing_strategy("http", "HTTP 503")

    r = client.post("/scrape-website", json={"url": "acme.com"})

    assert r.status_code == 500
    assert "error" in r.json()


def test_quick_chat(client):
    r = client.post("/ai/quick-chat", json={"question": "How do I market a SaaS product?"})
    assert r.status_code == 200
    assert r.json() == {"content": "Lean into attribution."}


def test_quick_chat_requires_question(client):
    r = client.post("/ai/quick-chat", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "question is required"


# -------------------------------------------------------------------
# Marketing content
# -------------------------------------------------------------------


def test_marketing_content(client, services):
    r = client.post(
        "/ai/marketing-content",
        json={"url": "https://acme.com", "prompt": "Write a launch email"},
    )

    assert r.status_code == 200
    assert r.json() == {"content": "Lean into attribution."}
    user_message = services.chat_llm.calls[0]["messages"][-1]["content"]
    assert user_message.startswith("URL: https://acme.com\n\nUser Request: Write a launch email")


@pytest.mark.parametrize(
    "payload",
    [
        {"prompt": "Write a launch email"},
        {"url": "https://acme.com"},
        {"url": "", "prompt": "Write a launch email"},
        {},
    ],
)
def test_marketing_content_requires_url_and_prompt(client, services, payload):
    r = client.post("/ai/marketing-content", json=payload)

    assert r.status_code == 400
    assert r.json()["error"] == "URL and prompt are required"
    assert services.chat_llm.calls == []


def test_marketing_content_upstream_failure_is_generic_500(client, services):
    services.chat_llm.replies = [provider_error("rate limited by provider")]

    r = client.post(
        "/ai/marketing-content",
        json={"url": "https://acme.com", "prompt": "Write a launch email"},
    )

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to generate content"}
