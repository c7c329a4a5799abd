import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from analysis.context_store import ContextStore
from db.tables import init_db
from tests.fakes import FakeClock

# Load environment variables from .env file for tests
load_dotenv()


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads through a single connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(session_factory, clock):
    return ContextStore(session_factory, clock=clock)


@pytest.fixture
def analysis_env(monkeypatch):
    """Environment with a search key and one LLM key configured."""
    env_vars = {
        "SERPER_API_KEY": "test-serper-key",
        "OPENAI_API_KEY": "test-openai-key",
        "SEARCH_PROVIDER": "serper",
        "APP_ENV": "production",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    for key in ("ANTHROPIC_API_KEY", "OPENROUTER_API_KEY", "GOOGLE_GEMINI_API_KEY", "TAVILY_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return env_vars
