"""URL + prompt marketing content generation."""

import asyncio

from fastapi import APIRouter, Depends

from analysis.chat import MarketingContentService
from server.dependencies import get_marketing_content_service
from server.schemas.requests import MarketingContentRequest
from server.schemas.responses import MarketingContentResponseDTO

router = APIRouter(prefix="/ai", tags=["Marketing Content"])


@router.post("/marketing-content", response_model=MarketingContentResponseDTO)
async def marketing_content(
    request: MarketingContentRequest,
    service: MarketingContentService = Depends(get_marketing_content_service),
):
    content = await asyncio.to_thread(service.generate, request.url, request.prompt)
    return MarketingContentResponseDTO(content=content)
