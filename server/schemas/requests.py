"""Pydantic request models for FastAPI endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase keys on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeContextRequest(CamelModel):
    # Left untyped so the URL normalizer produces the error message
    url: Any = None
    user_id: Optional[str] = None


class ContextChatRequest(CamelModel):
    question: str = Field(..., min_length=1)
    # Backend name; the default backend is used when omitted
    model: Optional[str] = None
    model_name: Optional[str] = None


class LeadRequest(CamelModel):
    action: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    conversation_id: Optional[str] = None
    lead_id: Optional[str] = None
    status: Optional[str] = None


class CaseStudyRequest(BaseModel):
    title: Optional[str] = None
    industry: Optional[str] = None
    challenge: Optional[str] = None
    solution: Optional[str] = None
    results: Optional[str] = None
    image_url: Optional[str] = None
    client_name: Optional[str] = None
    project_duration: Optional[str] = None
    technologies_used: Optional[list[str]] = None


class ConsultationRequestBody(BaseModel):
    company_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    current_marketing_stack: Optional[str] = None
    ai_experience: Optional[str] = None
    consultation_type: Optional[str] = None
    budget_range: Optional[str] = None
    timeline: Optional[str] = None
    specific_goals: Optional[str] = None


class ScrapeRequest(BaseModel):
    url: Any = None


class QuickChatRequest(BaseModel):
    question: str = Field(..., min_length=1)


class MarketingContentRequest(BaseModel):
    # Presence is checked by the service so both fields share one error message
    url: Optional[str] = None
    prompt: Optional[str] = None
