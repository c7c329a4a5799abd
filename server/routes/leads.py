"""Lead capture endpoints."""

import asyncio

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from db.repository import utc_now
from models.errors import ValidationError
from server.dependencies import get_lead_service
from server.schemas.requests import LeadRequest
from server.utils import redact_sensitive_headers
from services.leads import LeadService, extract_request_metadata

router = APIRouter(prefix="/leads", tags=["Leads"])


async def _handle_create(request: LeadRequest, http_request: Request, leads: LeadService) -> dict:
    metadata = extract_request_metadata(redact_sensitive_headers(http_request.headers), utc_now())
    result = await asyncio.to_thread(
        leads.create,
        request.website,
        request.email,
        conversation_id=request.conversation_id,
        metadata=metadata,
    )
    return {
        "success": True,
        "lead": result.lead,
        "isUpdate": result.is_update,
        "message": "Lead updated successfully" if result.is_update else "Lead created successfully",
    }


async def _handle_update_status(request: LeadRequest, leads: LeadService) -> dict:
    lead = await asyncio.to_thread(leads.update_status, request.lead_id, request.status)
    return {"success": True, "lead": lead, "message": "Lead status updated successfully"}


@router.post("")
async def post_lead(
    request: LeadRequest,
    http_request: Request,
    leads: LeadService = Depends(get_lead_service),
):
    """Create (upsert by email) a lead, or update a lead's status."""
    if request.action == "create":
        return await _handle_create(request, http_request, leads)
    if request.action == "update_status":
        return await _handle_update_status(request, leads)
    raise ValidationError('Invalid action. Use "create" or "update_status"')


@router.put("")
async def put_lead(request: LeadRequest, leads: LeadService = Depends(get_lead_service)):
    """Alias for ``action: update_status``."""
    return await _handle_update_status(request, leads)


@router.delete("")
async def delete_lead():
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Delete operation not allowed for security reasons"},
    )


@router.get("")
async def get_leads(
    email: str | None = None,
    domain: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    conversation_id: str | None = Query(None, alias="conversationId"),
    limit: int | None = Query(None, gt=0),
    stats: bool = False,
    leads: LeadService = Depends(get_lead_service),
):
    """Filtered lead list, or aggregate stats with ``stats=true``."""
    if stats:
        return {"success": True, "stats": await asyncio.to_thread(leads.stats)}

    rows = await asyncio.to_thread(
        leads.search,
        email=email,
        domain=domain,
        status=status_filter,
        conversation_id=conversation_id,
        limit=limit,
    )
    return {"success": True, "leads": rows, "count": len(rows)}
