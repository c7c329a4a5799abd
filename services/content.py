"""Case studies and consultation requests: required-field checks over plain inserts."""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import repository
from models.errors import StorageError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

CASE_STUDY_REQUIRED = ("title", "industry", "challenge", "solution", "results")
CASE_STUDY_OPTIONAL = ("image_url", "client_name", "project_duration", "technologies_used")

CONSULTATION_REQUIRED = ("company_name", "contact_person", "email", "consultation_type")
CONSULTATION_OPTIONAL = (
    "phone",
    "company_size",
    "industry",
    "current_marketing_stack",
    "ai_experience",
    "budget_range",
    "timeline",
    "specific_goals",
)


def pick_fields(data: Mapping[str, Any], required: tuple[str, ...], optional: tuple[str, ...]) -> dict[str, Any]:
    """
    Copy the known fields out of ``data``; falsy optional values become None.

    Raises:
        ValidationError: "<field> is required" for the first missing required field
    """
    for name in required:
        if not data.get(name):
            raise ValidationError(f"{name} is required")
    fields = {name: data[name] for name in required}
    fields.update({name: data.get(name) or None for name in optional})
    return fields


class CaseStudyService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = repository.utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        fields = pick_fields(data, CASE_STUDY_REQUIRED, CASE_STUDY_OPTIONAL)
        db = self.session_factory()
        try:
            record = repository.insert_case_study(db, fields, now=self.clock())
            db.commit()
            return record
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Case study insert failed", extra={"extra_fields": {"error": str(e)}})
            raise StorageError("Failed to create case study", details=str(e)) from e
        finally:
            db.close()

    def list_all(self) -> list[dict[str, Any]]:
        db = self.session_factory()
        try:
            return repository.list_case_studies(db)
        except SQLAlchemyError as e:
            logger.error("Case study query failed", extra={"extra_fields": {"error": str(e)}})
            raise StorageError("Failed to fetch case studies", details=str(e)) from e
        finally:
            db.close()


class ConsultationService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = repository.utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def submit(self, data: Mapping[str, Any]) -> dict[str, Any]:
        fields = pick_fields(data, CONSULTATION_REQUIRED, CONSULTATION_OPTIONAL)
        db = self.session_factory()
        try:
            record = repository.insert_consultation_request(db, fields, now=self.clock())
            db.commit()
            return record
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Consultation request insert failed", extra={"extra_fields": {"error": str(e)}})
            raise StorageError("Failed to submit request", details=str(e)) from e
        finally:
            db.close()

    def list_all(self) -> list[dict[str, Any]]:
        db = self.session_factory()
        try:
            return repository.list_consultation_requests(db)
        except SQLAlchemyError as e:
            logger.error("Consultation request query failed", extra={"extra_fields": {"error": str(e)}})
            raise StorageError("Failed to fetch requests", details=str(e)) from e
        finally:
            db.close()
