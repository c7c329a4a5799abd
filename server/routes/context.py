"""Website-context analysis and context-grounded chat endpoints."""

import asyncio

from fastapi import APIRouter, Depends, Request, Response, status

from analysis.chat import ContextChatService
from analysis.context_store import ContextStore
from analysis.pipeline import ContextAnalysisPipeline
from models.errors import NotFoundError
from server.dependencies import get_chat_service, get_context_store, get_pipeline
from server.schemas.requests import AnalyzeContextRequest, ContextChatRequest
from server.schemas.responses import AnalyzeResponseDTO, ContextChatResponseDTO, ContextRecordDTO
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/context", tags=["Context"])


@router.post(
    "/analyze",
    response_model=AnalyzeResponseDTO,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def analyze_context(
    request: AnalyzeContextRequest,
    http_request: Request,
    response: Response,
    pipeline: ContextAnalysisPipeline = Depends(get_pipeline),
):
    """
    Start a website analysis, or return the fresh cached one.

    Returns 202 with the new context id while the analysis runs in the
    background, or 200 with ``cached: true`` and a summary.
    """
    start = await asyncio.to_thread(pipeline.start, request.url, request.user_id)
    if start.cached:
        response.status_code = status.HTTP_200_OK

    logger.info(
        "Analyze request accepted",
        extra={
            "extra_fields": {
                "request_id": getattr(http_request.state, "request_id", "unknown"),
                "context_id": start.context_id,
                "url": start.url,
                "cached": start.cached,
            }
        },
    )
    return AnalyzeResponseDTO.from_start(start)


@router.get("/{context_id}", response_model=ContextRecordDTO)
async def get_context(context_id: str, store: ContextStore = Depends(get_context_store)):
    """Poll a context record."""
    context = await asyncio.to_thread(store.get, context_id)
    if context is None:
        raise NotFoundError("Website context not found")
    return ContextRecordDTO.from_context(context)


@router.post("/{context_id}/chat", response_model=ContextChatResponseDTO)
async def chat_with_context(
    context_id: str,
    request: ContextChatRequest,
    chat: ContextChatService = Depends(get_chat_service),
):
    """Answer a question grounded in a completed context."""
    answer = await asyncio.to_thread(
        chat.ask,
        context_id,
        request.question,
        request.model,
        model_name=request.model_name,
    )
    return ContextChatResponseDTO.from_answer(answer)
