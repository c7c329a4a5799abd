"""
Persistent store for website contexts.

Wraps the repository functions with session and transaction handling and
enforces the ``processing -> completed | failed`` lifecycle.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from db import repository
from models.errors import StateError
from models.website_context import AnalysisPayload, WebsiteContext
from utils.logger import get_logger

logger = get_logger(__name__)


class ContextStore:
    """
    Args:
        session_factory: Zero-argument callable returning a new SQLAlchemy session
        clock: Returns the current naive-UTC time (injectable for tests)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = repository.utc_now,
    ):
        self.session_factory = session_factory
        self.clock = clock

    def find_fresh_completed(self, url: str, max_age: timedelta) -> WebsiteContext | None:
        """Newest completed context for ``url`` no older than ``max_age`` (inclusive)."""
        cutoff = self.clock() - max_age
        db = self.session_factory()
        try:
            row = repository.find_completed_context_since(db, url, cutoff)
        finally:
            db.close()
        return WebsiteContext.from_row(row) if row else None

    def create_processing(self, url: str, user_id: str | None = None, domain: str | None = None) -> str:
        db = self.session_factory()
        try:
            context_id = repository.insert_processing_context(db, url, domain=domain, user_id=user_id, now=self.clock())
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        return context_id

    def _transition(self, context_id: str, target: str, write: Callable[[Session], bool]) -> None:
        db = self.session_factory()
        try:
            if not write(db):
                db.rollback()
                row = repository.get_context_row(db, context_id)
                current = row["status"] if row else "missing"
                raise StateError(
                    f"Cannot mark context {context_id} {target}: status is {current}",
                    details=f"context_id={context_id}",
                )
            db.commit()
        except StateError:
            raise
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info(
            f"Context {target}",
            extra={"extra_fields": {"step": "store", "context_id": context_id, "status": target}},
        )

    def complete_with(self, context_id: str, payload: AnalysisPayload) -> None:
        """
        Raises:
            StateError: the context is missing or not processing
        """
        self._transition(
            context_id,
            "completed",
            lambda db: repository.mark_context_completed(db, context_id, payload, now=self.clock()),
        )

    def fail_with(self, context_id: str, error_message: str) -> None:
        """
        Raises:
            StateError: the context is missing or not processing
        """
        self._transition(
            context_id,
            "failed",
            lambda db: repository.mark_context_failed(db, context_id, error_message, now=self.clock()),
        )

    def get(self, context_id: str) -> WebsiteContext | None:
        db = self.session_factory()
        try:
            row = repository.get_context_row(db, context_id)
        finally:
            db.close()
        return WebsiteContext.from_row(row) if row else None
