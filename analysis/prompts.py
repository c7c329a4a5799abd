"""Prompt templates for the analysis pipeline and the chat endpoints."""

from models.website_context import FetchedPage, SearchResultSet, WebsiteContext

GROUNDING_CONTENT_CHARS = 2000
GROUNDING_MAX_TERMS = 8
GROUNDING_MAX_RESULT_SETS = 3
GROUNDING_MAX_HITS = 3

_PENDING = "Analysis in progress"


def search_terms_prompt(page: FetchedPage, count: int) -> str:
    return (
        f"Based on this website content from {page.domain}, generate {count} relevant search "
        "terms that would help find competitors and market insights. Focus on the main "
        "business/industry keywords.\n\n"
        f"Title: {page.title}\n"
        f"Description: {page.description}\n"
        f"Keywords: {page.keywords}\n"
        f"Website content: {page.content[:2000]}\n\n"
        'Return only a JSON array of search terms, like: ["term1", "term2", "term3"]'
    )


def _format_results(results: list[SearchResultSet], max_sets: int, max_hits: int) -> str:
    blocks = []
    for result in results[:max_sets]:
        hits = result.organic[:max_hits]
        if hits:
            formatted = "\n".join(f"- {h.title} ({h.link}): {h.snippet}" for h in hits)
        else:
            formatted = "- No results"
        blocks.append(f'Search: "{result.query}"\n{formatted}')
    return "\n\n".join(blocks)


def analysis_prompt(page: FetchedPage, results: list[SearchResultSet]) -> str:
    competitor_info = _format_results(results, max_sets=len(results), max_hits=3)
    return f"""As a marketing expert, analyze this website and its competitive landscape.

WEBSITE:
Domain: {page.domain}
Title: {page.title}
Description: {page.description}
Content: {page.content[:3000]}

COMPETITOR RESEARCH:
{competitor_info or 'No competitor data available'}

Respond with only a JSON object with exactly these keys:
{{
  "business_overview": "2-3 sentences on the business and its value proposition",
  "key_strengths": ["..."],
  "market_opportunities": ["..."],
  "competitive_landscape": "2-3 sentences on the competitors found",
  "recommended_focus_areas": ["..."]
}}"""


def _bullets(items) -> str:
    if not items:
        return _PENDING
    return "\n".join(f"• {item}" for item in items)


def build_grounding_prompt(context: WebsiteContext) -> str:
    """
    System prompt that grounds a chat answer in one completed context.

    Structured analyses contribute their fields; a plain-text analysis is
    embedded as-is.
    """
    content = (context.content or "")[:GROUNDING_CONTENT_CHARS] or "Content unavailable"
    terms = ", ".join(context.search_terms[:GROUNDING_MAX_TERMS]) or "None"
    competitive_data = _format_results(
        context.search_results, GROUNDING_MAX_RESULT_SETS, GROUNDING_MAX_HITS
    ) or "No competitive data available"

    analysis = context.analysis
    if isinstance(analysis, dict):
        analysis_block = f"""BUSINESS OVERVIEW:
{analysis.get('business_overview') or _PENDING}

KEY STRENGTHS:
{_bullets(analysis.get('key_strengths'))}

MARKET OPPORTUNITIES:
{_bullets(analysis.get('market_opportunities'))}

COMPETITIVE LANDSCAPE:
{analysis.get('competitive_landscape') or _PENDING}

RECOMMENDED FOCUS AREAS:
{_bullets(analysis.get('recommended_focus_areas'))}"""
    elif isinstance(analysis, str) and analysis.strip():
        analysis_block = f"MARKETING ANALYSIS:\n{analysis.strip()}"
    else:
        analysis_block = f"MARKETING ANALYSIS:\n{_PENDING}"

    return f"""You are an expert marketing AI assistant with comprehensive knowledge of the following website and its competitive landscape:

WEBSITE ANALYSIS:
URL: {context.url}
Title: {context.title or 'Unknown'}
Description: {context.description or 'No description'}

WEBSITE CONTENT (First {GROUNDING_CONTENT_CHARS} characters):
{content}

{analysis_block}

SEARCH TERMS FOR MARKET RESEARCH:
{terms}

COMPETITIVE DATA:
{competitive_data}

Based on this analysis, provide detailed, actionable marketing insights. Use specific data points from the analysis to support your recommendations."""


def quick_chat_prompt(question: str, snippets: list[str]) -> str:
    snippets_text = "\n".join(f"{idx}. {s}" for idx, s in enumerate(snippets, start=1)) or "None"
    return (
        "You are a senior marketing strategist. Use the following Google search snippets "
        f"to inform your answer.\n\nSearch snippets:\n{snippets_text}\n\n"
        f"Question: {question}\n\nProvide a concise (4-6 sentence) marketing-focused answer."
    )


MARKETING_CONTENT_SYSTEM = (
    "You are an expert marketing AI assistant. Analyze the provided URL and create marketing content "
    "based on the user's prompt. Focus on creating compelling, conversion-focused content that aligns "
    "with modern marketing best practices."
)


def marketing_content_messages(url: str, prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": MARKETING_CONTENT_SYSTEM},
        {
            "role": "user",
            "content": (
                f"URL: {url}\n\nUser Request: {prompt}\n\n"
                "Please provide detailed marketing content and recommendations."
            ),
        },
    ]
