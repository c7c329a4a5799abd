"""Website scraping: headless-browser primary strategy with a plain-HTTP fallback.

Both strategies return a ``RawPage``; ``PageFetcher`` turns it into a
``FetchedPage`` with truncated content and the domain attached.
"""

import html as html_lib
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from models.errors import ScrapeError
from models.website_context import FetchedPage, FetchMethod
from utils.logger import get_logger

from .url import extract_domain

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; MarketingPlaygroundBot/1.0; +https://example.com/bot)"
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_CONTENT_LIMIT = 8000
TRUNCATION_MARKER = "..."

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_STRIP_BLOCKS_RE = re.compile(
    r"<(script|style|nav|header|footer|noscript)[^>]*>[\s\S]*?</\1>", re.IGNORECASE
)
_TAG_RE = re.compile(r"<[^>]+>")
_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_WS_RE = re.compile(r"\s+")


def _meta_pattern(name: str) -> list[re.Pattern]:
    # Attribute order varies between sites: name-then-content and content-then-name
    return [
        re.compile(
            rf"<meta[^>]*name=[\"']{name}[\"'][^>]*content=[\"']([^\"']*)[\"']", re.IGNORECASE
        ),
        re.compile(
            rf"<meta[^>]*content=[\"']([^\"']*)[\"'][^>]*name=[\"']{name}[\"']", re.IGNORECASE
        ),
    ]


_DESCRIPTION_PATTERNS = _meta_pattern("description")
_KEYWORDS_PATTERNS = _meta_pattern("keywords")


@dataclass(frozen=True)
class RawPage:
    """What a scraping strategy extracted, before truncation."""

    title: str
    description: str
    keywords: str
    text: str
    raw_html_length: int


class ScrapeStrategy(Protocol):
    name: str

    def scrape(self, url: str, timeout_s: float) -> RawPage: ...


def _first_match(patterns: list[re.Pattern], html: str) -> str:
    for pattern in patterns:
        match = pattern.search(html)
        if match:
            return html_lib.unescape(match.group(1)).strip()
    return ""


def extract_page_from_html(html: str) -> RawPage:
    """Regex-based extraction of title, meta tags and visible text."""
    title_match = _TITLE_RE.search(html)
    title = html_lib.unescape(title_match.group(1)).strip() if title_match else ""

    text = _COMMENT_RE.sub(" ", html)
    text = _STRIP_BLOCKS_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html_lib.unescape(text)
    text = _WS_RE.sub(" ", text).strip()

    return RawPage(
        title=title,
        description=_first_match(_DESCRIPTION_PATTERNS, html),
        keywords=_first_match(_KEYWORDS_PATTERNS, html),
        text=text,
        raw_html_length=len(html),
    )


def truncate_content(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


class HttpStrategy:
    """Plain HTTP GET with regex extraction."""

    name = "http"

    def __init__(self, client: httpx.Client | None = None):
        self._client = client

    def scrape(self, url: str, timeout_s: float) -> RawPage:
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Cache-Control": "no-cache",
        }
        if self._client is not None:
            response = self._client.get(url, headers=headers, timeout=timeout_s, follow_redirects=True)
        else:
            response = httpx.get(url, headers=headers, timeout=timeout_s, follow_redirects=True)

        if response.status_code < 200 or response.status_code >= 300:
            raise ScrapeError(f"HTTP {response.status_code}: {response.reason_phrase}")

        return extract_page_from_html(response.text)


_BROWSER_EXTRACT_JS = """() => ({
    title: document.title || '',
    description: document.querySelector('meta[name="description"]')?.content || '',
    keywords: document.querySelector('meta[name="keywords"]')?.content || '',
    text: document.body ? document.body.innerText : '',
    htmlLength: document.documentElement.outerHTML.length
})"""


class BrowserStrategy:
    """
    Headless Chromium via Playwright; sees JavaScript-rendered content.

    Requires ``playwright install chromium`` on the host.
    """

    name = "browser"

    def scrape(self, url: str, timeout_s: float) -> RawPage:
        # Lazy import so the HTTP path works where browsers are not installed
        try:
            from playwright.sync_api import sync_playwright
        except ModuleNotFoundError as e:
            raise ScrapeError(
                "Optional dependency 'playwright' is not installed. "
                "Install it with: pip install playwright && playwright install chromium"
            ) from e

        timeout_ms = int(timeout_s * 1000)
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            try:
                context = browser.new_context(user_agent=USER_AGENT)
                page = context.new_page()
                response = page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                if response is not None and not response.ok:
                    raise ScrapeError(f"HTTP {response.status}: {response.status_text}")
                try:
                    page.wait_for_load_state("networkidle", timeout=min(timeout_ms, 5000))
                except Exception:
                    logger.debug("networkidle not reached; extracting current DOM", extra={"extra_fields": {"url": url}})
                data = page.evaluate(_BROWSER_EXTRACT_JS)
            finally:
                browser.close()

        text = _WS_RE.sub(" ", data.get("text") or "").strip()
        return RawPage(
            title=(data.get("title") or "").strip(),
            description=(data.get("description") or "").strip(),
            keywords=(data.get("keywords") or "").strip(),
            text=text,
            raw_html_length=int(data.get("htmlLength") or 0),
        )


class PageFetcher:
    """
    Fetch a page with the primary strategy, falling back on any failure.

    Either a complete ``FetchedPage`` is returned or ``ScrapeError`` is raised.
    """

    def __init__(
        self,
        primary: ScrapeStrategy | None,
        fallback: ScrapeStrategy,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        content_limit: int = DEFAULT_CONTENT_LIMIT,
    ):
        self.primary = primary
        self.fallback = fallback
        self.timeout_s = timeout_s
        self.content_limit = content_limit

    def _build(self, url: str, raw: RawPage, method: FetchMethod) -> FetchedPage:
        return FetchedPage(
            url=url,
            domain=extract_domain(url),
            title=raw.title,
            description=raw.description,
            keywords=raw.keywords,
            content=truncate_content(raw.text, self.content_limit),
            raw_html_length=raw.raw_html_length,
            method=method,
        )

    def fetch(self, url: str, timeout_s: float | None = None) -> FetchedPage:
        timeout = timeout_s or self.timeout_s
        primary_error: str | None = None

        if self.primary is not None:
            try:
                raw = self.primary.scrape(url, timeout)
                logger.info(
                    "Scraped page with primary strategy",
                    extra={"extra_fields": {"url": url, "strategy": self.primary.name, "chars": len(raw.text)}},
                )
                return self._build(url, raw, FetchMethod.PRIMARY)
            except Exception as e:
                primary_error = str(e) or type(e).__name__
                logger.warning(
                    "Primary scrape failed, using fallback",
                    extra={
                        "extra_fields": {
                            "url": url,
                            "strategy": self.primary.name,
                            "error": primary_error,
                            "error_type": type(e).__name__,
                        }
                    },
                )

        try:
            raw = self.fallback.scrape(url, timeout)
        except Exception as e:
            fallback_error = str(e) or type(e).__name__
            logger.error(
                "Fallback scrape failed",
                extra={"extra_fields": {"url": url, "strategy": self.fallback.name, "error": fallback_error}},
            )
            message = f"Website scraping failed: {fallback_error}"
            if primary_error:
                message += f" (primary: {primary_error})"
            raise ScrapeError(message) from e

        logger.info(
            "Scraped page with fallback strategy",
            extra={"extra_fields": {"url": url, "strategy": self.fallback.name, "chars": len(raw.text)}},
        )
        return self._build(url, raw, FetchMethod.FALLBACK)
