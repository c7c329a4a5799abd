"""Factories building the scraping and search tools from configuration."""

from config.config import Config, SearchProvider
from models.errors import ConfigError
from utils.logger import get_logger

from .scraper import BrowserStrategy, HttpStrategy, PageFetcher
from .search import CompetitiveResearcher, SearchClient, SerperSearchClient, TavilySearchClient

logger = get_logger(__name__)


def create_page_fetcher_from_config(config: Config) -> PageFetcher:
    primary = BrowserStrategy() if config.ENABLE_BROWSER_SCRAPE else None
    return PageFetcher(
        primary=primary,
        fallback=HttpStrategy(),
        timeout_s=config.SCRAPE_TIMEOUT_S,
        content_limit=config.SCRAPE_CONTENT_LIMIT,
    )


def create_search_client_from_config(config: Config) -> SearchClient:
    """
    Raises:
        ConfigError: If the selected provider has no API key
    """
    provider = config.SEARCH_PROVIDER
    api_key = config.search_api_key()
    if not api_key:
        raise ConfigError(f"{provider.upper()}_API_KEY not set in environment")

    if provider == SearchProvider.TAVILY.value:
        logger.info("Using Tavily for competitive search")
        return TavilySearchClient(api_key=api_key)

    logger.info("Using Serper for competitive search")
    return SerperSearchClient(api_key=api_key, timeout_s=config.SEARCH_TIMEOUT_S)


def create_researcher_from_config(config: Config, client: SearchClient | None = None) -> CompetitiveResearcher:
    return CompetitiveResearcher(
        client or create_search_client_from_config(config),
        max_terms=config.MAX_SEARCHED_TERMS,
        results_per_term=config.SEARCH_RESULTS_PER_TERM,
        concurrency=config.SEARCH_CONCURRENCY,
    )
