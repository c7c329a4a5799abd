"""Case study endpoints."""

import asyncio

from fastapi import APIRouter, Depends

from server.dependencies import get_case_study_service
from server.schemas.requests import CaseStudyRequest
from services.content import CaseStudyService

router = APIRouter(prefix="/case-studies", tags=["Case Studies"])


@router.post("")
async def create_case_study(request: CaseStudyRequest, service: CaseStudyService = Depends(get_case_study_service)):
    record = await asyncio.to_thread(service.create, request.model_dump())
    return {"success": True, "data": record, "message": "Case study created successfully"}


@router.get("")
async def list_case_studies(service: CaseStudyService = Depends(get_case_study_service)):
    """Newest first."""
    return {"data": await asyncio.to_thread(service.list_all)}
