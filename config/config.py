import os
from datetime import timedelta
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv

from models.errors import ConfigError


class ChatBackend(Enum):
    """Supported LLM backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"


class SearchProvider(Enum):
    SERPER = "serper"
    TAVILY = "tavily"


DEFAULT_MODELS = {
    ChatBackend.OPENAI.value: "gpt-4o",
    ChatBackend.ANTHROPIC.value: "claude-3-5-sonnet-20241022",
    ChatBackend.OPENROUTER.value: "anthropic/claude-3.5-sonnet",
    ChatBackend.GEMINI.value: "gemini-2.5-flash",
}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


class Config:
    """Configuration management for the application."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        env_path = Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        self.APP_ENV = os.getenv("APP_ENV", "production").lower()
        self.APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:8000")

        # Search
        self.SERPER_API_KEY = os.getenv("SERPER_API_KEY")
        self.TAVILY_API_KEY = os.getenv("TAVILY_API_KEY")
        self.SEARCH_PROVIDER = os.getenv("SEARCH_PROVIDER", SearchProvider.SERPER.value).lower()

        # LLM providers
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
        self.ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
        self.OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
        self.GOOGLE_GEMINI_API_KEY = os.getenv("GOOGLE_GEMINI_API_KEY")

        self.DEFAULT_OPENAI_MODEL = os.getenv("DEFAULT_OPENAI_MODEL", DEFAULT_MODELS["openai"])
        self.DEFAULT_ANTHROPIC_MODEL = os.getenv(
            "DEFAULT_ANTHROPIC_MODEL", DEFAULT_MODELS["anthropic"]
        )
        self.DEFAULT_OPENROUTER_MODEL = os.getenv(
            "DEFAULT_OPENROUTER_MODEL", DEFAULT_MODELS["openrouter"]
        )
        self.DEFAULT_GEMINI_MODEL = os.getenv("DEFAULT_GEMINI_MODEL", DEFAULT_MODELS["gemini"])

        self.DEFAULT_CHAT_BACKEND = os.getenv("DEFAULT_CHAT_BACKEND", ChatBackend.OPENAI.value)
        # Backend used for search-term derivation and analysis synthesis.
        # Empty means "first configured backend".
        self.ANALYSIS_BACKEND = os.getenv("ANALYSIS_BACKEND", "").lower()

        # Database
        self.DATABASE_URL = os.getenv("DATABASE_URL")

        # Pipeline tuning
        self.CONTEXT_FRESHNESS_HOURS = _env_float("CONTEXT_FRESHNESS_HOURS", 24.0)
        self.SCRAPE_TIMEOUT_S = _env_float("SCRAPE_TIMEOUT_S", 15.0)
        self.SCRAPE_CONTENT_LIMIT = _env_int("SCRAPE_CONTENT_LIMIT", 8000)
        self.ENABLE_BROWSER_SCRAPE = os.getenv("ENABLE_BROWSER_SCRAPE", "true").lower() == "true"
        self.SEARCH_TIMEOUT_S = _env_float("SEARCH_TIMEOUT_S", 10.0)
        self.LLM_TIMEOUT_S = _env_float("LLM_TIMEOUT_S", 60.0)
        self.MAX_SEARCH_TERMS = _env_int("MAX_SEARCH_TERMS", 8)
        self.MAX_SEARCHED_TERMS = _env_int("MAX_SEARCHED_TERMS", 3)
        self.SEARCH_RESULTS_PER_TERM = _env_int("SEARCH_RESULTS_PER_TERM", 5)
        self.SEARCH_CONCURRENCY = _env_int("SEARCH_CONCURRENCY", 3)
        self.ANALYSIS_WORKERS = _env_int("ANALYSIS_WORKERS", 4)
        self.TASK_STATE_RETENTION = _env_int("TASK_STATE_RETENTION", 1000)

    @property
    def is_development(self) -> bool:
        return self.APP_ENV in ("development", "dev", "local")

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(hours=self.CONTEXT_FRESHNESS_HOURS)

    def api_key_for(self, backend: str) -> str | None:
        return {
            ChatBackend.OPENAI.value: self.OPENAI_API_KEY,
            ChatBackend.ANTHROPIC.value: self.ANTHROPIC_API_KEY,
            ChatBackend.OPENROUTER.value: self.OPENROUTER_API_KEY,
            ChatBackend.GEMINI.value: self.GOOGLE_GEMINI_API_KEY,
        }.get(backend)

    def default_model_for(self, backend: str) -> str | None:
        return {
            ChatBackend.OPENAI.value: self.DEFAULT_OPENAI_MODEL,
            ChatBackend.ANTHROPIC.value: self.DEFAULT_ANTHROPIC_MODEL,
            ChatBackend.OPENROUTER.value: self.DEFAULT_OPENROUTER_MODEL,
            ChatBackend.GEMINI.value: self.DEFAULT_GEMINI_MODEL,
        }.get(backend)

    def configured_backends(self) -> list[str]:
        """Backends with an API key, in declaration order."""
        return [b.value for b in ChatBackend if self.api_key_for(b.value)]

    def search_api_key(self) -> str | None:
        if self.SEARCH_PROVIDER == SearchProvider.TAVILY.value:
            return self.TAVILY_API_KEY
        return self.SERPER_API_KEY

    def validate_for_analysis(self) -> None:
        """
        Ensure the keys the analysis pipeline needs are present.

        Raises:
            ConfigError: listing every missing setting
        """
        missing = []
        if self.SEARCH_PROVIDER not in [p.value for p in SearchProvider]:
            raise ConfigError(
                f"Unknown SEARCH_PROVIDER '{self.SEARCH_PROVIDER}'. "
                f"Must be one of: {', '.join(p.value for p in SearchProvider)}"
            )
        if not self.search_api_key():
            missing.append(f"{self.SEARCH_PROVIDER.upper()}_API_KEY")
        if not self.configured_backends():
            missing.append("one of OPENAI_API_KEY, ANTHROPIC_API_KEY, OPENROUTER_API_KEY, GOOGLE_GEMINI_API_KEY")
        if missing:
            raise ConfigError(f"Service configuration error: missing {', '.join(missing)}")

    def get_model_info(self) -> str:
        backends = self.configured_backends()
        if not backends:
            return "No LLM backends configured"
        return ", ".join(f"{b} ({self.default_model_for(b)})" for b in backends)
