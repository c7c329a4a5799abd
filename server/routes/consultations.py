"""Consultation request endpoints."""

import asyncio

from fastapi import APIRouter, Depends

from server.dependencies import get_consultation_service
from server.schemas.requests import ConsultationRequestBody
from services.content import ConsultationService

router = APIRouter(prefix="/consultation-requests", tags=["Consultations"])


@router.post("")
async def submit_consultation_request(
    request: ConsultationRequestBody,
    service: ConsultationService = Depends(get_consultation_service),
):
    record = await asyncio.to_thread(service.submit, request.model_dump())
    return {"success": True, "data": record, "message": "Consultation request submitted successfully"}


@router.get("")
async def list_consultation_requests(service: ConsultationService = Depends(get_consultation_service)):
    """Newest first."""
    return {"data": await asyncio.to_thread(service.list_all)}
