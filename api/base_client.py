import time
import uuid
from abc import ABC, abstractmethod
from typing import Any

from models.llm_response import LLMResponse, NormalizedError, TokenUsage


class BaseAIClient(ABC):
    """
    Abstract base class for LLM backend clients.

    Subclasses implement ``get_completion`` and must never raise from it:
    failures are returned as an ``LLMResponse`` with ``error`` set.
    """

    provider_name: str = "unknown"

    @abstractmethod
    def __init__(self, api_key: str, **kwargs):
        """
        Args:
            api_key: API key for the backend
            **kwargs: model_name, timeout_s
        """
        if not api_key:
            raise ValueError(f"API key is required for {self.provider_name}")
        self.api_key = api_key
        self.model_name = kwargs.get("model_name")
        self.timeout_s = kwargs.get("timeout_s", 60.0)

    @abstractmethod
    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list[dict[str, str]] | None = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Get a completion from the backend.

        Args:
            prompt: Single user prompt, converted to one user message
            messages: Chat messages with 'role' and 'content' keys; a leading
                'system' message is honoured by every backend
            **kwargs:
                - model: Override the default model for this call
                - temperature: Sampling temperature
                - max_tokens: Output token budget

        Returns:
            LLMResponse (with ``error`` set on failure)
        """

    # ---------- shared helpers ----------

    @staticmethod
    def _generate_request_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _measure_latency(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    @staticmethod
    def _normalize_input(
        prompt: str | None = None, messages: list[dict[str, str]] | None = None
    ) -> list[dict[str, str]]:
        if messages:
            for message in messages:
                if "role" not in message or "content" not in message:
                    raise ValueError("Each message needs 'role' and 'content'")
            return [dict(m) for m in messages]
        if prompt is None or not prompt.strip():
            raise ValueError("Either prompt or messages must be provided")
        return [{"role": "user", "content": prompt}]

    @staticmethod
    def _split_system(messages: list[dict[str, str]]) -> tuple[str | None, list[dict[str, str]]]:
        """Separate system messages for backends that take them out-of-band."""
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        rest = [m for m in messages if m["role"] != "system"]
        return ("\n\n".join(system_parts) if system_parts else None), rest

    @staticmethod
    def _normalize_finish_reason(reason: Any, provider: str) -> str | None:
        if reason is None:
            return None
        value = str(getattr(reason, "name", reason)).lower()
        mapping = {
            "stop": "stop",
            "end_turn": "stop",
            "stop_sequence": "stop",
            "length": "length",
            "max_tokens": "length",
            "content_filter": "content_filter",
            "safety": "content_filter",
        }
        return mapping.get(value, value)

    @staticmethod
    def _normalize_error(exc: Exception, provider: str) -> NormalizedError:
        name = type(exc).__name__.lower()
        status = getattr(exc, "status_code", None)
        message = str(exc) or type(exc).__name__

        if "timeout" in name:
            code, retryable = "timeout", True
        elif status in (401, 403) or "authentication" in name or "permission" in name:
            code, retryable = "auth", False
        elif status == 429 or "ratelimit" in name:
            code, retryable = "rate_limit", True
        elif status == 400 or "badrequest" in name or isinstance(exc, ValueError):
            code, retryable = "bad_request", False
        elif isinstance(status, int) and status >= 500:
            code, retryable = "provider_error", True
        else:
            code, retryable = "unknown", False

        return NormalizedError(
            code=code,
            message=message,
            provider=provider,
            retryable=retryable,
            details={"exception_type": type(exc).__name__, "status_code": status},
        )

    def _create_error_response(
        self, *, request_id: str, error: NormalizedError, latency_ms: int, model: str | None
    ) -> LLMResponse:
        return LLMResponse(
            request_id=request_id,
            text="",
            provider=self.provider_name,
            model=model or self.model_name or "unknown",
            latency_ms=latency_ms,
            token_usage=TokenUsage(),
            finish_reason="error",
            error=error,
        )
