"""Search-term derivation: LLM first, word frequency as the fallback."""

import re
from collections import Counter

from api.base_client import BaseAIClient
from models.website_context import FetchedPage
from utils.logger import get_logger

from .llm_json import parse_string_list
from .prompts import search_terms_prompt

logger = get_logger(__name__)

DEFAULT_MAX_TERMS = 8
MIN_HEADLINE_TERMS = 5
HEADLINE_MIN_LEN = 4  # words longer than 3 chars
BODY_MIN_LEN = 5  # words longer than 4 chars

_WORD_RE = re.compile(r"[a-z0-9]+(?:['-][a-z0-9]+)*")

STOP_WORDS = frozenset(
    {
        "about", "after", "also", "been", "being", "best", "both", "could", "each", "even",
        "every", "from", "have", "here", "into", "just", "like", "make", "more", "most",
        "much", "must", "only", "other", "ours", "over", "same", "should", "some", "such",
        "than", "that", "their", "them", "then", "there", "these", "they", "this", "those",
        "through", "very", "want", "were", "what", "when", "where", "which", "while", "will",
        "with", "would", "your", "yours", "home", "page", "website", "welcome", "click",
    }
)


def _tokens(text: str, min_len: int) -> list[str]:
    return [
        w for w in _WORD_RE.findall((text or "").lower())
        if len(w) >= min_len and w not in STOP_WORDS and not w.isdigit()
    ]


def _dedupe(terms: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for term in terms:
        key = term.lower()
        if key not in seen:
            seen.add(key)
            unique.append(term)
    return unique


def frequency_terms(page: FetchedPage, max_terms: int = DEFAULT_MAX_TERMS) -> list[str]:
    """
    Deterministic term extraction.

    Headline words (title, description, keywords) come first in order of first
    appearance. When fewer than five are found, body words are ranked by
    frequency (ties broken by first appearance) and appended up to the cap.
    """
    headline = " ".join([page.title or "", page.description or "", page.keywords or ""])
    terms = _dedupe(_tokens(headline, HEADLINE_MIN_LEN))

    if len(terms) < MIN_HEADLINE_TERMS:
        body = _tokens(page.content, BODY_MIN_LEN)
        counts = Counter(body)
        first_seen: dict[str, int] = {}
        for idx, word in enumerate(body):
            first_seen.setdefault(word, idx)
        ranked = sorted(counts, key=lambda w: (-counts[w], first_seen[w]))
        taken = set(terms)
        for word in ranked:
            if len(terms) >= max_terms:
                break
            if word not in taken:
                terms.append(word)
                taken.add(word)

    if not terms and page.domain:
        terms = [page.domain]

    return terms[:max_terms]


class SearchTermDeriver:
    """Produce an ordered, duplicate-free list of search queries for a page."""

    def __init__(self, llm_client: BaseAIClient | None = None, max_terms: int = DEFAULT_MAX_TERMS):
        self.llm_client = llm_client
        self.max_terms = max_terms

    def _from_llm(self, page: FetchedPage) -> list[str] | None:
        if self.llm_client is None:
            return None

        response = self.llm_client.get_completion(
            search_terms_prompt(page, self.max_terms), temperature=0.3, max_tokens=200
        )
        if response.is_error:
            logger.warning(
                "Search-term LLM call failed; using frequency fallback",
                extra={"extra_fields": {"step": "search_terms", "url": page.url, "error": response.error.message}},
            )
            return None

        try:
            terms = parse_string_list(response.text)
        except ValueError as exc:
            logger.warning(
                "Search-term LLM output unparseable; using frequency fallback",
                extra={"extra_fields": {"step": "search_terms", "url": page.url, "error": str(exc)}},
            )
            return None

        return _dedupe(terms)[: self.max_terms]

    def derive(self, page: FetchedPage) -> list[str]:
        terms = self._from_llm(page)
        source = "llm"
        if not terms:
            terms = frequency_terms(page, self.max_terms)
            source = "frequency"

        logger.info(
            "Derived search terms",
            extra={"extra_fields": {"step": "search_terms", "url": page.url, "source": source, "count": len(terms)}},
        )
        return terms
