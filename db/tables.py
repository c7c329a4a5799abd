"""
SQLAlchemy Core table definitions.

``init_db`` creates any missing tables; existing tables are left untouched.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from utils.logger import get_logger

logger = get_logger(__name__)

metadata = MetaData()

website_contexts = Table(
    "website_contexts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("url", Text, nullable=False),
    Column("domain", String(255)),
    Column("user_id", String(255)),
    Column("status", String(16), nullable=False),
    Column("title", Text),
    Column("description", Text),
    Column("content", Text),
    Column("keywords", Text),
    Column("fetch_method", String(16)),
    Column("raw_html_length", Integer),
    Column("search_terms", JSON),
    Column("search_results", JSON),
    Column("analysis", JSON),
    Column("error_message", Text),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Column("completed_at", DateTime),
    Index("ix_website_contexts_url_status_created", "url", "status", "created_at"),
)

leads = Table(
    "leads",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("website_domain", String(255), nullable=False),
    Column("website_url", Text, nullable=False),
    Column("email", String(320), nullable=False, unique=True),
    Column("conversation_id", String(255)),
    Column("source", String(64), nullable=False),
    Column("status", String(16), nullable=False),
    Column("metadata", JSON),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Index("ix_leads_status", "status"),
)

case_studies = Table(
    "case_studies",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("title", Text, nullable=False),
    Column("industry", String(255), nullable=False),
    Column("challenge", Text, nullable=False),
    Column("solution", Text, nullable=False),
    Column("results", Text, nullable=False),
    Column("image_url", Text),
    Column("client_name", String(255)),
    Column("project_duration", String(255)),
    Column("technologies_used", JSON),
    Column("created_at", DateTime, nullable=False),
)

consultation_requests = Table(
    "consultation_requests",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("company_name", String(255), nullable=False),
    Column("contact_person", String(255), nullable=False),
    Column("email", String(320), nullable=False),
    Column("phone", String(64)),
    Column("company_size", String(64)),
    Column("industry", String(255)),
    Column("current_marketing_stack", Text),
    Column("ai_experience", Text),
    Column("consultation_type", String(128), nullable=False),
    Column("budget_range", String(128)),
    Column("timeline", String(128)),
    Column("specific_goals", Text),
    Column("status", String(32), nullable=False),
    Column("created_at", DateTime, nullable=False),
)


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    metadata.create_all(engine)
    logger.info(
        "Database tables ensured",
        extra={"extra_fields": {"tables": sorted(metadata.tables.keys())}},
    )
