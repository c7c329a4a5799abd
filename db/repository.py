"""
Repository layer for playground database operations.
All CRUD functions using SQLAlchemy Core with declared tables.

Design principles:
- Functions do NOT commit - caller commits for transaction control
- Returns None or raises exceptions on errors
- Uses SQLAlchemy Core (insert/select/update) not ORM
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import desc, func, insert, select, update
from sqlalchemy.orm import Session

from db.tables import case_studies, consultation_requests, leads, website_contexts
from models.website_context import AnalysisPayload, ContextStatus
from utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def utc_now() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _row_dict(row) -> dict[str, Any] | None:
    return dict(row) if row is not None else None


# ============================================================================
# WEBSITE CONTEXTS
# ============================================================================


def insert_processing_context(
    db: Session,
    url: str,
    domain: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> str:
    """
    Insert a new context row in ``processing`` state.

    Returns:
        str: context_id

    Note:
        Does NOT commit. Caller must commit.
    """
    now = now or utc_now()
    context_id = new_id()
    db.execute(
        insert(website_contexts).values(
            id=context_id,
            url=url,
            domain=domain,
            user_id=user_id,
            status=ContextStatus.PROCESSING.value,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info(f"Created website context: {context_id} for url: {url}")
    return context_id


def get_context_row(db: Session, context_id: str) -> dict[str, Any] | None:
    stmt = select(website_contexts).where(website_contexts.c.id == context_id)
    return _row_dict(db.execute(stmt).mappings().first())


def find_completed_context_since(db: Session, url: str, cutoff: datetime) -> dict[str, Any] | None:
    """
    Newest completed context for ``url`` created at or after ``cutoff``.

    Returns:
        dict row or None if no fresh completed context exists
    """
    stmt = (
        select(website_contexts)
        .where(
            website_contexts.c.url == url,
            website_contexts.c.status == ContextStatus.COMPLETED.value,
            website_contexts.c.created_at >= cutoff,
        )
        .order_by(desc(website_contexts.c.created_at))
        .limit(1)
    )
    return _row_dict(db.execute(stmt).mappings().first())


def mark_context_completed(
    db: Session, context_id: str, payload: AnalysisPayload, now: datetime | None = None
) -> bool:
    """
    Transition ``processing -> completed`` and store the analysis payload.

    Returns:
        bool: False when the row is missing or no longer processing

    Note:
        Does NOT commit. Caller must commit.
    """
    now = now or utc_now()
    page = payload.page
    stmt = (
        update(website_contexts)
        .where(
            website_contexts.c.id == context_id,
            website_contexts.c.status == ContextStatus.PROCESSING.value,
        )
        .values(
            status=ContextStatus.COMPLETED.value,
            domain=page.domain,
            title=page.title,
            description=page.description,
            content=page.content,
            keywords=page.keywords,
            fetch_method=page.method.value,
            raw_html_length=page.raw_html_length,
            search_terms=list(payload.search_terms),
            search_results=[r.to_dict() for r in payload.search_results],
            analysis=payload.analysis.to_dict(),
            updated_at=now,
            completed_at=now,
        )
    )
    return db.execute(stmt).rowcount == 1


def mark_context_failed(db: Session, context_id: str, error_message: str, now: datetime | None = None) -> bool:
    """
    Transition ``processing -> failed``.

    Note:
        Does NOT commit. Caller must commit.
    """
    now = now or utc_now()
    stmt = (
        update(website_contexts)
        .where(
            website_contexts.c.id == context_id,
            website_contexts.c.status == ContextStatus.PROCESSING.value,
        )
        .values(
            status=ContextStatus.FAILED.value,
            error_message=error_message,
            updated_at=now,
        )
    )
    return db.execute(stmt).rowcount == 1


# ============================================================================
# LEADS
# ============================================================================


def get_lead_by_email(db: Session, email: str) -> dict[str, Any] | None:
    stmt = select(leads).where(leads.c.email == email)
    return _row_dict(db.execute(stmt).mappings().first())


def get_lead_by_id(db: Session, lead_id: str) -> dict[str, Any] | None:
    stmt = select(leads).where(leads.c.id == lead_id)
    return _row_dict(db.execute(stmt).mappings().first())


def insert_lead(
    db: Session,
    *,
    website_domain: str,
    website_url: str,
    email: str,
    conversation_id: str | None,
    source: str,
    status: str,
    metadata: dict[str, Any],
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Insert a lead row.

    Raises:
        sqlalchemy.exc.IntegrityError: email already exists

    Note:
        Does NOT commit. Caller must commit.
    """
    now = now or utc_now()
    values = {
        "id": new_id(),
        "website_domain": website_domain,
        "website_url": website_url,
        "email": email,
        "conversation_id": conversation_id,
        "source": source,
        "status": status,
        "metadata": metadata,
        "created_at": now,
        "updated_at": now,
    }
    db.execute(insert(leads).values(**values))
    return values


def update_lead_by_email(
    db: Session,
    email: str,
    *,
    website_domain: str,
    website_url: str,
    conversation_id: str | None,
    metadata: dict[str, Any],
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """
    Refresh the website, conversation and metadata of an existing lead.

    ``conversation_id`` only overwrites when provided.

    Note:
        Does NOT commit. Caller must commit.
    """
    values: dict[str, Any] = {
        "website_domain": website_domain,
        "website_url": website_url,
        "metadata": metadata,
        "updated_at": now or utc_now(),
    }
    if conversation_id:
        values["conversation_id"] = conversation_id

    result = db.execute(update(leads).where(leads.c.email == email).values(**values))
    if result.rowcount == 0:
        return None
    return get_lead_by_email(db, email)


def update_lead_status(db: Session, lead_id: str, status: str, now: datetime | None = None) -> dict[str, Any] | None:
    """
    Note:
        Does NOT commit. Caller must commit.
    """
    stmt = update(leads).where(leads.c.id == lead_id).values(status=status, updated_at=now or utc_now())
    if db.execute(stmt).rowcount == 0:
        return None
    return get_lead_by_id(db, lead_id)


def list_leads(
    db: Session,
    *,
    email: str | None = None,
    domain: str | None = None,
    status: str | None = None,
    conversation_id: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Leads matching every given filter, newest first."""
    stmt = select(leads)
    if email:
        stmt = stmt.where(leads.c.email == email)
    if domain:
        stmt = stmt.where(leads.c.website_domain == domain)
    if status:
        stmt = stmt.where(leads.c.status == status)
    if conversation_id:
        stmt = stmt.where(leads.c.conversation_id == conversation_id)
    stmt = stmt.order_by(desc(leads.c.created_at)).limit(limit)
    return [dict(row) for row in db.execute(stmt).mappings().all()]


def count_leads_by_status(db: Session) -> dict[str, int]:
    stmt = select(leads.c.status, func.count()).group_by(leads.c.status)
    return {status: count for status, count in db.execute(stmt).all()}


# ============================================================================
# CASE STUDIES & CONSULTATION REQUESTS
# ============================================================================


def insert_case_study(db: Session, fields: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """
    Note:
        Does NOT commit. Caller must commit.
    """
    values = {**fields, "id": new_id(), "created_at": now or utc_now()}
    db.execute(insert(case_studies).values(**values))
    logger.info(f"Created case study: {values['id']}")
    return values


def list_case_studies(db: Session) -> list[dict[str, Any]]:
    stmt = select(case_studies).order_by(desc(case_studies.c.created_at))
    return [dict(row) for row in db.execute(stmt).mappings().all()]


def insert_consultation_request(db: Session, fields: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """
    Note:
        Does NOT commit. Caller must commit.
    """
    values = {**fields, "id": new_id(), "status": "pending", "created_at": now or utc_now()}
    db.execute(insert(consultation_requests).values(**values))
    logger.info(f"Created consultation request: {values['id']}")
    return values


def list_consultation_requests(db: Session) -> list[dict[str, Any]]:
    stmt = select(consultation_requests).order_by(desc(consultation_requests.c.created_at))
    return [dict(row) for row in db.execute(stmt).mappings().all()]
