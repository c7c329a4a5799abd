"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models.errors import ConfigError, PlaygroundError
from server.dependencies import get_config, get_task_runner
from server.middleware import RequestIDMiddleware
from server.routes import (
    case_studies,
    consultations,
    context,
    health,
    leads,
    marketing_content,
    quick_chat,
    scrape,
    tasks,
)
from server.utils import summarize_validation_errors
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    logger.info("FastAPI server starting up")

    from db import get_engine, init_db

    try:
        init_db(get_engine())
    except ConfigError as e:
        logger.warning(f"Database not initialised: {e.message}")

    config = get_config()
    try:
        config.validate_for_analysis()
    except ConfigError as e:
        logger.warning(e.message)
    logger.info(f"LLM backends: {config.get_model_info()}")

    yield

    get_task_runner().shutdown(wait=False)
    logger.info("FastAPI server shutting down")


async def playground_error_handler(request: Request, exc: PlaygroundError) -> JSONResponse:
    """Translate service errors into ``{"error": message}`` bodies."""
    request_id = getattr(request.state, "request_id", "unknown")
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        exc.message,
        extra={
            "extra_fields": {
                "request_id": request_id,
                "path": request.url.path,
                "status_code": exc.status_code,
                "error_type": type(exc).__name__,
                "details": exc.details,
            }
        },
    )

    body = {"error": exc.message}
    config_provider = request.app.dependency_overrides.get(get_config, get_config)
    if exc.details and config_provider().is_development:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors: 400 with the first failing field named."""
    message, details = summarize_validation_errors(exc.errors())
    return JSONResponse(status_code=400, content={"error": message, "details": details})


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Marketing Playground API",
        description="Website-context analysis and context-grounded marketing chat",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlaygroundError, playground_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(health.router)
    app.include_router(context.router)
    app.include_router(tasks.router)
    app.include_router(leads.router)
    app.include_router(case_studies.router)
    app.include_router(consultations.router)
    app.include_router(scrape.router)
    app.include_router(quick_chat.router)
    app.include_router(marketing_content.router)

    return app
