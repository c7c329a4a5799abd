"""Search-API clients and the competitive research fan-out."""

import concurrent.futures
import time
from typing import Protocol

import httpx

from models.errors import SearchError
from models.website_context import OrganicHit, SearchResultSet
from utils.logger import get_logger

logger = get_logger(__name__)

SERPER_SEARCH_URL = "https://google.serper.dev/search"
DEFAULT_RESULTS_PER_TERM = 5
DEFAULT_TIMEOUT_S = 10.0


class SearchClient(Protocol):
    def search(self, query: str, num: int = DEFAULT_RESULTS_PER_TERM) -> list[OrganicHit]: ...


class SerperSearchClient:
    """Google results through the Serper API."""

    def __init__(
        self,
        api_key: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        country: str = "us",
        language: str = "en",
        client: httpx.Client | None = None,
    ):
        if not api_key:
            raise ValueError("SERPER_API_KEY is required")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.country = country
        self.language = language
        self._client = client

    def search(self, query: str, num: int = DEFAULT_RESULTS_PER_TERM) -> list[OrganicHit]:
        payload = {"q": query, "num": num, "gl": self.country, "hl": self.language}
        headers = {"X-API-KEY": self.api_key, "Content-Type": "application/json"}

        try:
            if self._client is not None:
                response = self._client.post(
                    SERPER_SEARCH_URL, json=payload, headers=headers, timeout=self.timeout_s
                )
            else:
                response = httpx.post(
                    SERPER_SEARCH_URL, json=payload, headers=headers, timeout=self.timeout_s
                )
        except httpx.HTTPError as exc:
            raise SearchError(f"Serper request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise SearchError(f"Serper API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchError("Serper returned a non-JSON body") from exc

        return [OrganicHit.from_dict(item) for item in (data.get("organic") or [])[:num]]


class TavilySearchClient:
    """Search through Tavily, mapped onto organic hits."""

    def __init__(self, api_key: str, *, search_depth: str = "basic"):
        if not api_key:
            raise ValueError("TAVILY_API_KEY is required")

        try:
            from tavily import TavilyClient
        except ModuleNotFoundError as e:
            raise ModuleNotFoundError(
                "Optional dependency 'tavily' is not installed. "
                "Install it to use SEARCH_PROVIDER=tavily: pip install tavily-python"
            ) from e

        self.client = TavilyClient(api_key=api_key)
        self.search_depth = search_depth

    def search(self, query: str, num: int = DEFAULT_RESULTS_PER_TERM) -> list[OrganicHit]:
        try:
            response = self.client.search(
                query=query,
                max_results=num,
                search_depth=self.search_depth,
                include_answer=False,
                include_raw_content=False,
            )
        except Exception as exc:
            raise SearchError(f"Tavily search failed: {exc}") from exc

        return [
            OrganicHit(
                title=result.get("title") or "Untitled",
                link=result.get("url") or "",
                snippet=result.get("content") or "",
            )
            for result in (response.get("results") or [])[:num]
        ]


class CompetitiveResearcher:
    """
    Run one search per term and collect the results.

    At most ``max_terms`` terms are searched. With ``concurrency > 1`` the
    calls fan out on a bounded thread pool; otherwise they run sequentially
    with ``delay_s`` between calls. Failed terms are logged and omitted; the
    surviving results keep the original term order.
    """

    def __init__(
        self,
        client: SearchClient,
        *,
        max_terms: int = 3,
        results_per_term: int = DEFAULT_RESULTS_PER_TERM,
        concurrency: int = 3,
        delay_s: float = 0.5,
    ):
        self.client = client
        self.max_terms = max_terms
        self.results_per_term = results_per_term
        self.concurrency = max(1, concurrency)
        self.delay_s = delay_s

    def _search_one(self, term: str) -> SearchResultSet | None:
        try:
            hits = self.client.search(term, self.results_per_term)
        except Exception as exc:
            logger.warning(
                "Search failed for term; omitting it",
                extra={"extra_fields": {"step": "search", "query": term, "error": str(exc), "error_type": type(exc).__name__}},
            )
            return None
        return SearchResultSet(query=term, organic=hits)

    def collect(self, terms: list[str]) -> list[SearchResultSet]:
        selected = terms[: self.max_terms]
        if not selected:
            return []

        if self.concurrency == 1:
            outcomes = []
            for idx, term in enumerate(selected):
                if idx and self.delay_s:
                    time.sleep(self.delay_s)
                outcomes.append(self._search_one(term))
        else:
            workers = min(self.concurrency, len(selected))
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                # map() yields in submission order regardless of completion order
                outcomes = list(executor.map(self._search_one, selected))

        results = [r for r in outcomes if r is not None]
        logger.info(
            "Competitive search complete",
            extra={"extra_fields": {"step": "search", "searched": len(selected), "succeeded": len(results)}},
        )
        return results
