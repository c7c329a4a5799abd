"""Web tools: URL normalization, page scraping and competitive search."""

from .factory import (
    create_page_fetcher_from_config,
    create_researcher_from_config,
    create_search_client_from_config,
)
from .scraper import BrowserStrategy, HttpStrategy, PageFetcher
from .search import CompetitiveResearcher, SerperSearchClient, TavilySearchClient
from .url import NormalizedUrl, extract_domain, normalize_url

__all__ = [
    "BrowserStrategy",
    "CompetitiveResearcher",
    "HttpStrategy",
    "NormalizedUrl",
    "PageFetcher",
    "SerperSearchClient",
    "TavilySearchClient",
    "create_page_fetcher_from_config",
    "create_researcher_from_config",
    "create_search_client_from_config",
    "extract_domain",
    "normalize_url",
]
