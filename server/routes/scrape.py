"""Standalone scrape endpoint."""

import asyncio

from fastapi import APIRouter, Depends

from server.dependencies import get_page_fetcher
from server.schemas.requests import ScrapeRequest
from server.schemas.responses import ScrapedPageDTO, ScrapeResponseDTO
from tools.web import PageFetcher, normalize_url

router = APIRouter(tags=["Scrape"])


@router.post("/scrape-website", response_model=ScrapeResponseDTO)
async def scrape_website(request: ScrapeRequest, fetcher: PageFetcher = Depends(get_page_fetcher)):
    """Scrape one page with the primary strategy and HTTP fallback."""
    normalized = normalize_url(request.url)
    page = await asyncio.to_thread(fetcher.fetch, normalized.url)
    return ScrapeResponseDTO(data=ScrapedPageDTO.from_page(page))
