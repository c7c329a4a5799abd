import time

import openai

from models.llm_response import LLMResponse, TokenUsage
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class OpenAIClient(BaseAIClient):
    """
    OpenAI chat-completions client returning LLMResponse.

    Subclasses point the same SDK at OpenAI-compatible endpoints by
    overriding ``base_url``.
    """

    provider_name = "openai"
    base_url: str | None = None

    def __init__(self, api_key: str, model_name: str = "gpt-4o", **kwargs):
        """
        Args:
            api_key: The API key
            model_name: Default model for this client
            **kwargs: timeout_s
        """
        super().__init__(api_key, model_name=model_name, **kwargs)
        client_kwargs = {"api_key": api_key, "timeout": self.timeout_s}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        self.client = openai.OpenAI(**client_kwargs)
        self.model_name = model_name

    def get_completion(
        self,
        prompt: str | None = None,
        *,
        messages: list[dict[str, str]] | None = None,
        **kwargs,
    ) -> LLMResponse:
        request_id = self._generate_request_id()
        start_time = time.time()

        model = kwargs.get("model") or self.model_name
        temperature = kwargs.get("temperature", 0.7)
        max_tokens = kwargs.get("max_tokens", 2000)

        try:
            normalized_messages = self._normalize_input(prompt=prompt, messages=messages)

            response = self.client.chat.completions.create(
                model=model,
                messages=normalized_messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

            latency_ms = self._measure_latency(start_time)
            text = (response.choices[0].message.content or "") if response.choices else ""

            usage = getattr(response, "usage", None)
            token_usage = TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            )

            finish_reason = self._normalize_finish_reason(
                response.choices[0].finish_reason if response.choices else None,
                provider=self.provider_name,
            )

            logger.info(
                f"{self.provider_name} completion successful",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "latency_ms": latency_ms,
                        "tokens": token_usage.total_tokens,
                    }
                },
            )

            return LLMResponse(
                request_id=request_id,
                text=text,
                provider=self.provider_name,
                model=model,
                latency_ms=latency_ms,
                token_usage=token_usage,
                finish_reason=finish_reason,
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            error = self._normalize_error(e, provider=self.provider_name)

            logger.error(
                f"{self.provider_name} completion failed: {error.code}",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "error_code": error.code,
                        "error_message": error.message,
                        "retryable": error.retryable,
                    }
                },
            )

            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=latency_ms, model=model
            )
