import time

from google import genai
from google.genai import types

from models.llm_response import LLMResponse, TokenUsage
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


class GeminiClient(BaseAIClient):
    """
    Google Gemini client (google-genai SDK) returning LLMResponse.
    """

    provider_name = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash", **kwargs):
        super().__init__(api_key, model_name=model_name, **kwargs)
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout_s * 1000)),
        )
        self.model_name = model_name

    @staticmethod
    def _to_contents(turns: list[dict[str, str]]) -> list[dict]:
        # Gemini names the assistant role "model"
        return [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in turns
        ]

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

            config = {"temperature": temperature, "max_output_tokens": max_tokens}
            if system:
                config["system_instruction"] = system

            response = self.client.models.generate_content(
                model=model,
                contents=self._to_contents(turns),
                config=config,
            )

            latency_ms = self._measure_latency(start_time)
            text = getattr(response, "text", None) or ""

            usage_metadata = getattr(response, "usage_metadata", None)
            token_usage = TokenUsage(
                prompt_tokens=getattr(usage_metadata, "prompt_token_count", 0) or 0,
                completion_tokens=getattr(usage_metadata, "candidates_token_count", 0) or 0,
                total_tokens=getattr(usage_metadata, "total_token_count", 0) or 0,
            )

            candidates = getattr(response, "candidates", None) or []
            finish_reason = self._normalize_finish_reason(
                getattr(candidates[0], "finish_reason", None) if candidates else None,
                provider=self.provider_name,
            )

            logger.info(
                "Gemini completion successful",
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
                f"Gemini completion failed: {error.code}",
                extra={
                    "extra_fields": {
                        "request_id": request_id,
                        "model": model,
                        "error_code": error.code,
                        "error_message": error.message,
                    }
                },
            )

            return self._create_error_response(
                request_id=request_id, error=error, latency_ms=latency_ms, model=model
            )
