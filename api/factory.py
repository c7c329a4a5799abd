"""Construction and caching of LLM backend clients."""

import threading
from collections.abc import Callable

from config.config import ChatBackend, Config
from models.errors import ConfigError, ValidationError
from utils.logger import get_logger

from .base_client import BaseAIClient

logger = get_logger(__name__)


def initialize_client(backend: str, config: Config) -> BaseAIClient:
    """
    Build the client for one backend from configuration.

    Raises:
        ValidationError: If the backend name is not supported
        ConfigError: If the backend's API key is not configured
    """
    backend = (backend or "").lower()
    supported = [b.value for b in ChatBackend]
    if backend not in supported:
        raise ValidationError(f"Unsupported model backend '{backend}'. Must be one of: {', '.join(supported)}")

    api_key = config.api_key_for(backend)
    if not api_key:
        raise ConfigError(f"Backend '{backend}' is not configured (missing API key)")

    model_name = config.default_model_for(backend)
    timeout_s = config.LLM_TIMEOUT_S

    # Provider SDKs are imported on demand so unused ones need not be installed
    if backend == ChatBackend.OPENAI.value:
        from .openai_client import OpenAIClient

        client = OpenAIClient(api_key=api_key, model_name=model_name, timeout_s=timeout_s)
    elif backend == ChatBackend.ANTHROPIC.value:
        from .anthropic_client import AnthropicClient

        client = AnthropicClient(api_key=api_key, model_name=model_name, timeout_s=timeout_s)
    elif backend == ChatBackend.OPENROUTER.value:
        from .openrouter_client import OpenRouterClient

        client = OpenRouterClient(api_key=api_key, model_name=model_name, timeout_s=timeout_s)
    else:
        from .google_gemini_client import GeminiClient

        client = GeminiClient(api_key=api_key, model_name=model_name, timeout_s=timeout_s)

    logger.info(
        "Initialized LLM client",
        extra={"extra_fields": {"backend": backend, "model": model_name}},
    )
    return client


class BackendRegistry:
    """
    Lazily builds and caches one client per backend.

    A custom ``builder`` can be injected; tests use it to hand out fakes.
    """

    def __init__(
        self,
        config: Config,
        builder: Callable[[str, Config], BaseAIClient] = initialize_client,
    ):
        self.config = config
        self._builder = builder
        self._clients: dict[str, BaseAIClient] = {}
        self._lock = threading.Lock()

    def get(self, backend: str) -> BaseAIClient:
        key = (backend or "").lower()
        with self._lock:
            if key not in self._clients:
                self._clients[key] = self._builder(key, self.config)
            return self._clients[key]

    def default_backend(self) -> str:
        preferred = self.config.DEFAULT_CHAT_BACKEND.lower()
        if self.config.api_key_for(preferred):
            return preferred
        configured = self.config.configured_backends()
        if not configured:
            raise ConfigError("No LLM backend is configured")
        return configured[0]

    def analysis_client(self) -> BaseAIClient | None:
        """Client used by the pipeline's LLM steps, or None when nothing is configured."""
        backend = self.config.ANALYSIS_BACKEND
        if not backend or not self.config.api_key_for(backend):
            configured = self.config.configured_backends()
            if not configured:
                return None
            backend = configured[0]
        return self.get(backend)
