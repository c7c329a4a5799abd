"""
FastAPI dependencies providing configured service handles.

Each provider builds its object once and reuses it (singleton pattern).
Tests replace any of them through ``app.dependency_overrides``.
"""

from fastapi import Depends

from analysis.chat import ContextChatService, MarketingContentService, QuickChatService
from analysis.context_store import ContextStore
from analysis.pipeline import ContextAnalysisPipeline
from analysis.search_terms import SearchTermDeriver
from analysis.synthesizer import AnalysisSynthesizer
from analysis.tasks import AnalysisTaskRunner
from api.factory import BackendRegistry
from config.config import Config
from services.content import CaseStudyService, ConsultationService
from services.leads import LeadService
from tools.web import (
    PageFetcher,
    create_page_fetcher_from_config,
    create_researcher_from_config,
    create_search_client_from_config,
)
from utils.logger import get_logger

logger = get_logger(__name__)


def get_config() -> Config:
    if not hasattr(get_config, "_instance"):
        get_config._instance = Config()
    return get_config._instance


def get_session_factory():
    from db.session import SessionLocal

    return SessionLocal


def get_backend_registry(config: Config = Depends(get_config)) -> BackendRegistry:
    if not hasattr(get_backend_registry, "_instance"):
        get_backend_registry._instance = BackendRegistry(config)
    return get_backend_registry._instance


def get_task_runner() -> AnalysisTaskRunner:
    if not hasattr(get_task_runner, "_instance"):
        config = get_config()
        get_task_runner._instance = AnalysisTaskRunner(
            max_workers=config.ANALYSIS_WORKERS,
            max_retained=config.TASK_STATE_RETENTION,
        )
    return get_task_runner._instance


def get_context_store(session_factory=Depends(get_session_factory)) -> ContextStore:
    return ContextStore(session_factory)


def get_page_fetcher(config: Config = Depends(get_config)) -> PageFetcher:
    if not hasattr(get_page_fetcher, "_instance"):
        get_page_fetcher._instance = create_page_fetcher_from_config(config)
    return get_page_fetcher._instance


def get_pipeline(
    config: Config = Depends(get_config),
    store: ContextStore = Depends(get_context_store),
    runner: AnalysisTaskRunner = Depends(get_task_runner),
    backends: BackendRegistry = Depends(get_backend_registry),
    fetcher: PageFetcher = Depends(get_page_fetcher),
) -> ContextAnalysisPipeline:
    """
    Raises:
        ConfigError: search or LLM keys are missing
    """
    if not hasattr(get_pipeline, "_instance"):
        config.validate_for_analysis()
        llm_client = backends.analysis_client()
        get_pipeline._instance = ContextAnalysisPipeline(
            fetcher=fetcher,
            deriver=SearchTermDeriver(llm_client, max_terms=config.MAX_SEARCH_TERMS),
            researcher=create_researcher_from_config(config),
            synthesizer=AnalysisSynthesizer(llm_client),
            store=store,
            runner=runner,
            freshness=config.freshness_window,
        )
        logger.info("Analysis pipeline initialised", extra={"extra_fields": {"llm": type(llm_client).__name__}})
    return get_pipeline._instance


def get_chat_service(
    config: Config = Depends(get_config),
    store: ContextStore = Depends(get_context_store),
    backends: BackendRegistry = Depends(get_backend_registry),
) -> ContextChatService:
    return ContextChatService(store, backends, is_development=config.is_development)


def get_quick_chat_service(
    config: Config = Depends(get_config),
    backends: BackendRegistry = Depends(get_backend_registry),
) -> QuickChatService:
    return QuickChatService(
        create_search_client_from_config(config),
        backends,
        is_development=config.is_development,
    )


def get_marketing_content_service(
    config: Config = Depends(get_config),
    backends: BackendRegistry = Depends(get_backend_registry),
) -> MarketingContentService:
    return MarketingContentService(backends, is_development=config.is_development)


def get_lead_service(session_factory=Depends(get_session_factory)) -> LeadService:
    return LeadService(session_factory)


def get_case_study_service(session_factory=Depends(get_session_factory)) -> CaseStudyService:
    return CaseStudyService(session_factory)


def get_consultation_service(session_factory=Depends(get_session_factory)) -> ConsultationService:
    return ConsultationService(session_factory)
