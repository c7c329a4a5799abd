import json

import httpx
import pytest

from models.errors import SearchError
from tools.web.search import SERPER_SEARCH_URL, CompetitiveResearcher, SerperSearchClient
from tests.fakes import FakeSearchClient

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("concurrency", [1, 3])
def test_results_follow_term_order_and_omit_failed_terms(concurrency):
    client = FakeSearchClient(failing={"b"})
    researcher = CompetitiveResearcher(client, max_terms=3, concurrency=concurrency, delay_s=0)

    results = researcher.collect(["a", "b", "c"])

    assert [r.query for r in results] == ["a", "c"]
    assert sorted(client.calls) == ["a", "b", "c"]


def test_only_the_first_max_terms_are_searched():
    client = FakeSearchClient()
    researcher = CompetitiveResearcher(client, max_terms=2, delay_s=0)

    results = researcher.collect(["one", "two", "three", "four"])

    assert [r.query for r in results] == ["one", "two"]
    assert sorted(client.calls) == ["one", "two"]


def test_all_terms_failing_yields_empty_results():
    researcher = CompetitiveResearcher(FakeSearchClient(failing={"x", "y"}), delay_s=0)
    assert researcher.collect(["x", "y"]) == []


def test_no_terms_makes_no_calls():
    client = FakeSearchClient()
    assert CompetitiveResearcher(client).collect([]) == []
    assert client.calls == []


def test_serper_client_posts_query_and_maps_organic_hits():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["api_key"] = request.headers.get("x-api-key")
        captured["payload"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "organic": [
                    {"title": "Rival One", "link": "https://rival1.com", "snippet": "We do analytics"},
                    {"title": "Rival Two", "link": "https://rival2.com"},
                ]
            },
        )

    client = SerperSearchClient("serper-key", client=httpx.Client(transport=httpx.MockTransport(handler)))
    hits = client.search("marketing analytics", num=5)

    assert captured["url"] == SERPER_SEARCH_URL
    assert captured["api_key"] == "serper-key"
    assert captured["payload"]["q"] == "marketing analytics"
    assert captured["payload"]["num"] == 5
    assert [h.title for h in hits] == ["Rival One", "Rival Two"]
    assert hits[1].snippet == ""


def test_serper_client_raises_search_error_on_non_2xx():
    transport = httpx.MockTransport(lambda r: httpx.Response(429, json={"message": "rate limited"}))
    client = SerperSearchClient("serper-key", client=httpx.Client(transport=transport))

    with pytest.raises(SearchError, match="429"):
        client.search("anything")


def test_serper_client_wraps_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = SerperSearchClient("serper-key", client=httpx.Client(transport=httpx.MockTransport(handler)))

    with pytest.raises(SearchError):
        client.search("anything")


def test_serper_client_requires_api_key():
    with pytest.raises(ValueError):
        SerperSearchClient("")
