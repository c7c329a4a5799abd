"""
Chat answered against a completed website context, search-grounded quick chat
and free-form marketing content for a URL.
"""

from dataclasses import dataclass

from api.factory import BackendRegistry
from models.errors import NotFoundError, StateError, UpstreamError, ValidationError
from tools.web.search import SearchClient
from utils.logger import get_logger

from .context_store import ContextStore
from .prompts import build_grounding_prompt, marketing_content_messages, quick_chat_prompt

logger = get_logger(__name__)

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 2000
QUICK_CHAT_SNIPPETS = 3
GENERIC_UPSTREAM_MESSAGE = "Failed to generate AI response"
CONTENT_UPSTREAM_MESSAGE = "Failed to generate content"


@dataclass(frozen=True)
class ChatAnswer:
    content: str
    model: str
    context_url: str
    analysis_date: str | None


class ContextChatService:
    """
    Args:
        store: Context store (read only)
        backends: Registry handing out LLM clients by backend name
        is_development: Surface upstream error details to callers
    """

    def __init__(self, store: ContextStore, backends: BackendRegistry, is_development: bool = False):
        self.store = store
        self.backends = backends
        self.is_development = is_development

    def ask(
        self, context_id: str, question: str, backend: str | None = None, model_name: str | None = None
    ) -> ChatAnswer:
        """
        ``backend`` defaults to the registry's default backend.

        Raises:
            NotFoundError: unknown context id
            StateError: context is not completed
            ValidationError: unknown backend
            ConfigError: backend has no API key
            UpstreamError: the backend call failed
        """
        context = self.store.get(context_id)
        if context is None:
            raise NotFoundError("Website context not found")
        if not context.is_completed:
            raise StateError(
                "Website analysis not completed yet",
                details=f"Current status: {context.status.value}",
            )

        backend = backend or self.backends.default_backend()
        client = self.backends.get(backend)
        messages = [
            {"role": "system", "content": build_grounding_prompt(context)},
            {"role": "user", "content": question},
        ]
        response = client.get_completion(
            messages=messages,
            model=model_name,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )

        if response.is_error:
            logger.error(
                "Context chat backend call failed",
                extra={
                    "extra_fields": {
                        "step": "chat",
                        "context_id": context_id,
                        "url": context.url,
                        "backend": backend,
                        "error_code": response.error.code,
                        "error": response.error.message,
                    }
                },
            )
            raise UpstreamError(
                GENERIC_UPSTREAM_MESSAGE,
                details=response.error.message if self.is_development else None,
            )

        analysis_date = context.completed_at or context.created_at
        logger.info(
            "Context chat answered",
            extra={
                "extra_fields": {
                    "step": "chat",
                    "context_id": context_id,
                    "backend": backend,
                    "model": response.model,
                    "latency_ms": response.latency_ms,
                }
            },
        )
        return ChatAnswer(
            content=response.text,
            model=response.model or model_name or backend,
            context_url=context.url,
            analysis_date=analysis_date.isoformat() if analysis_date else None,
        )


class QuickChatService:
    """Answer a one-off marketing question using the top search snippets."""

    def __init__(
        self,
        search_client: SearchClient,
        backends: BackendRegistry,
        is_development: bool = False,
        snippet_count: int = QUICK_CHAT_SNIPPETS,
    ):
        self.search_client = search_client
        self.backends = backends
        self.is_development = is_development
        self.snippet_count = snippet_count

    def ask(self, question: str) -> str:
        """
        Search failures degrade to an answer without snippets.

        Raises:
            ConfigError: no backend configured
            UpstreamError: the backend call failed
        """
        snippets: list[str] = []
        try:
            hits = self.search_client.search(question, num=self.snippet_count)
            snippets = [h.snippet for h in hits[: self.snippet_count] if h.snippet]
        except Exception as e:
            logger.warning(
                "Quick chat search failed; answering without snippets",
                extra={"extra_fields": {"step": "quick_chat_search", "error": str(e)}},
            )

        client = self.backends.get(self.backends.default_backend())
        response = client.get_completion(
            quick_chat_prompt(question, snippets), temperature=CHAT_TEMPERATURE, max_tokens=CHAT_MAX_TOKENS
        )
        if response.is_error:
            logger.error(
                "Quick chat backend call failed",
                extra={"extra_fields": {"step": "quick_chat", "error": response.error.message}},
            )
            raise UpstreamError(
                GENERIC_UPSTREAM_MESSAGE,
                details=response.error.message if self.is_development else None,
            )
        return response.text


class MarketingContentService:
    """Generate marketing copy for a URL from a user prompt; the page itself is not fetched."""

    def __init__(self, backends: BackendRegistry, is_development: bool = False):
        self.backends = backends
        self.is_development = is_development

    def generate(self, url: str | None, prompt: str | None) -> str:
        """
        Raises:
            ValidationError: url or prompt missing
            ConfigError: no backend configured
            UpstreamError: the backend call failed
        """
        url = (url or "").strip()
        prompt = (prompt or "").strip()
        if not url or not prompt:
            raise ValidationError("URL and prompt are required")

        backend = self.backends.default_backend()
        response = self.backends.get(backend).get_completion(
            messages=marketing_content_messages(url, prompt),
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
        if response.is_error:
            logger.error(
                "Marketing content backend call failed",
                extra={
                    "extra_fields": {
                        "step": "marketing_content",
                        "url": url,
                        "backend": backend,
                        "error": response.error.message,
                    }
                },
            )
            raise UpstreamError(
                CONTENT_UPSTREAM_MESSAGE,
                details=response.error.message if self.is_development else None,
            )
        return response.text
