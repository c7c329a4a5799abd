"""
Database package for the playground service.
Provides SQLAlchemy engine, session management, declared tables, and repository functions.
"""

from db.engine import create_db_engine, get_engine
from db.repository import (
    count_leads_by_status,
    find_completed_context_since,
    # Website Contexts
    get_context_row,
    get_lead_by_email,
    get_lead_by_id,
    # Case Studies & Consultations
    insert_case_study,
    insert_consultation_request,
    # Leads
    insert_lead,
    insert_processing_context,
    list_case_studies,
    list_consultation_requests,
    list_leads,
    mark_context_completed,
    mark_context_failed,
    new_id,
    update_lead_by_email,
    update_lead_status,
    # Utility
    utc_now,
)
from db.session import SessionLocal
from db.tables import init_db, metadata

__all__ = [
    "SessionLocal",
    "count_leads_by_status",
    "create_db_engine",
    "find_completed_context_since",
    "get_context_row",
    "get_engine",
    "get_lead_by_email",
    "get_lead_by_id",
    "init_db",
    "insert_case_study",
    "insert_consultation_request",
    "insert_lead",
    "insert_processing_context",
    "list_case_studies",
    "list_consultation_requests",
    "list_leads",
    "mark_context_completed",
    "mark_context_failed",
    "metadata",
    "new_id",
    "update_lead_by_email",
    "update_lead_status",
    "utc_now",
]
