"""Lead capture: validation, upsert-by-email, status updates and stats."""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db import repository
from models.errors import NotFoundError, StorageError, ValidationError
from tools.web.url import normalize_url
from utils.logger import get_logger

logger = get_logger(__name__)

LEAD_SOURCE = "chat_widget"
DEFAULT_LIST_LIMIT = 50
RECENT_LEADS = 10

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    CLOSED = "closed"


@dataclass(frozen=True)
class LeadResult:
    lead: dict[str, Any]
    is_update: bool = False


def normalize_email(email) -> str:
    """
    Raises:
        ValidationError: If the address is not of the form local@host.tld
    """
    if not isinstance(email, str) or not _EMAIL_RE.match(email.strip()):
        raise ValidationError("Invalid email format")
    return email.strip().lower()


def extract_request_metadata(headers: Mapping[str, str], now: datetime) -> dict[str, str]:
    """Client details recorded alongside a lead."""
    return {
        "userAgent": headers.get("user-agent", ""),
        "ip": headers.get("x-forwarded-for") or headers.get("x-real-ip") or "",
        "referer": headers.get("referer", ""),
        "acceptLanguage": headers.get("accept-language", ""),
        "timestamp": now.isoformat() + "Z",
    }


class LeadService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = repository.utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def create(
        self,
        website,
        email,
        conversation_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LeadResult:
        """
        Create a lead, or update the existing one with the same email.

        Raises:
            ValidationError: missing or malformed website/email
            StorageError: the database write failed
        """
        if not website or not email:
            raise ValidationError("Website and email are required")
        email = normalize_email(email)
        try:
            site = normalize_url(website)
        except ValidationError as e:
            raise ValidationError("Invalid website URL format", details=e.message) from e

        now = self.clock()
        fields = {
            "website_domain": site.domain,
            "website_url": site.url,
            "conversation_id": conversation_id or None,
        }

        db = self.session_factory()
        try:
            existing = repository.get_lead_by_email(db, email)
            if existing is None:
                try:
                    lead = repository.insert_lead(
                        db,
                        email=email,
                        source=LEAD_SOURCE,
                        status=LeadStatus.NEW.value,
                        metadata={**(metadata or {}), "createdAt": now.isoformat() + "Z"},
                        now=now,
                        **fields,
                    )
                    db.commit()
                    logger.info("Lead created", extra={"extra_fields": {"lead_id": lead["id"], "domain": site.domain}})
                    return LeadResult(lead=lead, is_update=False)
                except IntegrityError:
                    # Concurrent insert for the same email won the race
                    db.rollback()

            lead = repository.update_lead_by_email(
                db,
                email,
                metadata={**(metadata or {}), "updatedAt": now.isoformat() + "Z"},
                now=now,
                **fields,
            )
            if lead is None:
                raise StorageError("Failed to update existing lead")
            db.commit()
            logger.info("Lead updated", extra={"extra_fields": {"lead_id": lead["id"], "domain": site.domain}})
            return LeadResult(lead=lead, is_update=True)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Lead write failed", extra={"extra_fields": {"error": str(e)}})
            raise StorageError("Failed to create lead", details=str(e)) from e
        finally:
            db.close()

    def update_status(self, lead_id, status) -> dict[str, Any]:
        """
        Raises:
            ValidationError: missing id/status or a status outside LeadStatus
            NotFoundError: unknown lead id
        """
        if not lead_id or not status:
            raise ValidationError("Lead ID and status are required")
        valid = [s.value for s in LeadStatus]
        if status not in valid:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(valid)}")

        db = self.session_factory()
        try:
            lead = repository.update_lead_status(db, lead_id, status, now=self.clock())
            if lead is None:
                db.rollback()
                raise NotFoundError("Lead not found")
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("Failed to update lead status", details=str(e)) from e
        finally:
            db.close()

        logger.info("Lead status updated", extra={"extra_fields": {"lead_id": lead_id, "status": status}})
        return lead

    def search(
        self,
        *,
        email: str | None = None,
        domain: str | None = None,
        status: str | None = None,
        conversation_id: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        db = self.session_factory()
        try:
            return repository.list_leads(
                db,
                email=email.strip().lower() if email else None,
                domain=domain,
                status=status,
                conversation_id=conversation_id,
                limit=limit or DEFAULT_LIST_LIMIT,
            )
        except SQLAlchemyError as e:
            raise StorageError("Failed to fetch leads", details=str(e)) from e
        finally:
            db.close()

    def stats(self) -> dict[str, Any]:
        """Counts per status, the total, and the most recent leads."""
        db = self.session_factory()
        try:
            counts = repository.count_leads_by_status(db)
            recent = repository.list_leads(db, limit=RECENT_LEADS)
        except SQLAlchemyError as e:
            raise StorageError("Failed to fetch lead stats", details=str(e)) from e
        finally:
            db.close()

        stats: dict[str, Any] = {"total": sum(counts.values())}
        for s in LeadStatus:
            stats[s.value] = counts.get(s.value, 0)
        stats["recentLeads"] = recent
        return stats
