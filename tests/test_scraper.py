import httpx
import pytest

from models.errors import ScrapeError
from models.website_context import FetchMethod
from tools.web.scraper import (
    TRUNCATION_MARKER,
    USER_AGENT,
    HttpStrategy,
    PageFetcher,
    extract_page_from_html,
    truncate_content,
)
from tests.fakes import FakeStrategy, failing_strategy, raw_page

pytestmark = pytest.mark.unit

SAMPLE_HTML = """<!doctype html>
<html>
<head>
  <title>Acme &amp; Co | Analytics</title>
  <meta content="Campaign analytics for marketers" name="description">
  <meta name="keywords" content="analytics, attribution">
  <style>body { color: red; }</style>
  <script>var tracking = "ignore me";</script>
</head>
<body>
  <header>Site header</header>
  <nav>Home | Pricing</nav>
  <!-- hidden comment -->
  <h1>Measure   every campaign</h1>
  <p>Attribution reports <b>for</b> busy teams.</p>
  <footer>Copyright</footer>
</body>
</html>"""


def test_extract_page_from_html():
    page = extract_page_from_html(SAMPLE_HTML)

    assert page.title == "Acme & Co | Analytics"
    assert page.description == "Campaign analytics for marketers"
    assert page.keywords == "analytics, attribution"
    assert page.text == "Acme & Co | Analytics Measure every campaign Attribution reports for busy teams."
    assert page.raw_html_length == len(SAMPLE_HTML)


def test_extract_page_without_metadata():
    page = extract_page_from_html("<html><body><p>Just text</p></body></html>")
    assert page.title == ""
    assert page.description == ""
    assert page.keywords == ""
    assert page.text == "Just text"


def test_truncate_content_adds_marker_only_when_truncated():
    assert truncate_content("short", 10) == "short"
    assert truncate_content("x" * 12, 10) == "x" * 10 + TRUNCATION_MARKER


def test_fetch_uses_primary_strategy_when_it_succeeds():
    primary = FakeStrategy("browser", page=raw_page())
    fallback = FakeStrategy("http", page=raw_page(title="Fallback"))
    fetcher = PageFetcher(primary, fallback)

    page = fetcher.fetch("https://www.acme.com/")

    assert page.method is FetchMethod.PRIMARY
    assert page.title == "Acme Analytics"
    assert page.domain == "acme.com"
    assert page.url == "https://www.acme.com/"
    assert fallback.calls == []


def test_fetch_falls_back_when_primary_fails():
    primary = failing_strategy("browser", "browser crashed")
    fallback = FakeStrategy("http", page=raw_page(title="Fallback Title"))
    fetcher = PageFetcher(primary, fallback)

    page = fetcher.fetch("https://acme.com/")

    assert page.method is FetchMethod.FALLBACK
    assert page.title == "Fallback Title"
    assert primary.calls == ["https://acme.com/"]
    assert fallback.calls == ["https://acme.com/"]


def test_fetch_falls_back_on_unexpected_primary_exception():
    primary = FakeStrategy("browser", error=RuntimeError("boom"))
    fetcher = PageFetcher(primary, FakeStrategy("http", page=raw_page()))

    assert fetcher.fetch("https://acme.com/").method is FetchMethod.FALLBACK


def test_fetch_raises_scrape_error_when_both_strategies_fail():
    fetcher = PageFetcher(failing_strategy("browser", "timeout"), failing_strategy("http", "HTTP 503: Service Unavailable"))

    with pytest.raises(ScrapeError) as exc_info:
        fetcher.fetch("https://acme.com/")

    message = exc_info.value.message
    assert "HTTP 503" in message
    assert "timeout" in message


def test_fetch_without_primary_goes_straight_to_fallback():
    fallback = FakeStrategy("http", page=raw_page())
    page = PageFetcher(None, fallback).fetch("https://acme.com/")
    assert page.method is FetchMethod.FALLBACK


def test_fetch_truncates_content():
    long_text = "word " * 100
    fetcher = PageFetcher(FakeStrategy("browser", page=raw_page(text=long_text)), FakeStrategy("http"), content_limit=20)

    page = fetcher.fetch("https://acme.com/")

    assert page.content == long_text[:20] + TRUNCATION_MARKER


def test_http_strategy_parses_successful_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, text=SAMPLE_HTML)

    strategy = HttpStrategy(client=httpx.Client(transport=httpx.MockTransport(handler)))
    page = strategy.scrape("https://acme.com/", timeout_s=5)

    assert seen["user_agent"] == USER_AGENT
    assert page.title == "Acme & Co | Analytics"


def test_http_strategy_rejects_non_2xx():
    strategy = HttpStrategy(client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(404))))

    with pytest.raises(ScrapeError, match="HTTP 404"):
        strategy.scrape("https://acme.com/missing", timeout_s=5)
