import time

import anthropic

from models.llm_response import LLMResponse, TokenUsage
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class AnthropicClient(BaseAIClient):
    """
    Anthropic Messages API client returning LLMResponse.

    System messages are passed through the dedicated ``system`` parameter.
    """

    provider_name = "anthropic"

    def __init__(self, api_key: str, model_name: str = "claude-3-5-sonnet-20241022", **kwargs):
        super().__init__(api_key, model_name=model_name, **kwargs)
        self.client = anthropic.Anthropic(api_key=api_key, timeout=self.timeout_s)
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
            system, turns = self._split_system(normalized_messages)
            if not turns:
                raise ValueError("At least one user message is required")

            create_kwargs = {
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": turns,
            }
            if system:
                create_kwargs["system"] = system

            response = self.client.messages.create(**create_kwargs)

            latency_ms = self._measure_latency(start_time)
            text = "".join(
                getattr(block, "text", "") for block in (response.content or [])
            )

            usage = getattr(response, "usage", None)
            token_usage = TokenUsage(
                prompt_tokens=getattr(usage, "input_tokens", 0) or 0,
                completion_tokens=getattr(usage, "output_tokens", 0) or 0,
            )

            logger.info(
                "Anthropic completion successful",
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
                finish_reason=self._normalize_finish_reason(
                    getattr(response, "stop_reason", None), provider=self.provider_name
                ),
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            error = self._normalize_error(e, provider=self.provider_name)

            logger.error(
                f"Anthropic completion failed: {error.code}",
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
