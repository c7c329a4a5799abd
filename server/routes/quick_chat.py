"""Search-grounded quick chat endpoint."""

import asyncio

from fastapi import APIRouter, Depends

from analysis.chat import QuickChatService
from server.dependencies import get_quick_chat_service
from server.schemas.requests import QuickChatRequest
from server.schemas.responses import QuickChatResponseDTO

router = APIRouter(prefix="/ai", tags=["Quick Chat"])


@router.post("/quick-chat", response_model=QuickChatResponseDTO)
async def quick_chat(request: QuickChatRequest, service: QuickChatService = Depends(get_quick_chat_service)):
    content = await asyncio.to_thread(service.ask, request.question)
    return QuickChatResponseDTO(content=content)
