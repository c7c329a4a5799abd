import pytest

from models.errors import ValidationError
from services.content import CaseStudyService, ConsultationService, pick_fields

pytestmark = pytest.mark.unit

CASE_STUDY = {
    "title": "Doubling demo requests",
    "industry": "SaaS",
    "challenge": "Low conversion",
    "solution": "Landing page tests",
    "results": "2x demos",
}

CONSULTATION = {
    "company_name": "Acme",
    "contact_person": "Jane Doe",
    "email": "jane@acme.com",
    "consultation_type": "strategy",
}


def test_pick_fields_reports_first_missing_field():
    with pytest.raises(ValidationError) as exc_info:
        pick_fields({"title": "x"}, ("title", "industry", "challenge"), ())
    assert exc_info.value.message == "industry is required"


def test_pick_fields_blanks_optional_values():
    fields = pick_fields({"a": "1", "b": ""}, ("a",), ("b", "c"))
    assert fields == {"a": "1", "b": None, "c": None}


def test_case_studies_listed_newest_first(session_factory, clock):
    service = CaseStudyService(session_factory, clock=clock)
    service.create({**CASE_STUDY, "title": "First", "client_name": "Acme"})
    clock.advance(hours=1)
    service.create({**CASE_STUDY, "title": "Second"})

    studies = service.list_all()

    assert [s["title"] for s in studies] == ["Second", "First"]
    assert studies[1]["client_name"] == "Acme"
    assert studies[0]["client_name"] is None


def test_case_study_missing_field(session_factory):
    data = {k: v for k, v in CASE_STUDY.items() if k != "results"}
    with pytest.raises(ValidationError) as exc_info:
        CaseStudyService(session_factory).create(data)
    assert exc_info.value.message == "results is required"


def test_consultation_request_starts_pending(session_factory, clock):
    service = ConsultationService(session_factory, clock=clock)

    record = service.submit({**CONSULTATION, "budget_range": "10k-25k"})

    assert record["status"] == "pending"
    assert record["budget_range"] == "10k-25k"
    assert [r["id"] for r in service.list_all()] == [record["id"]]


def test_consultation_missing_email(session_factory):
    with pytest.raises(ValidationError) as exc_info:
        ConsultationService(session_factory).submit({**CONSULTATION, "email": ""})
    assert exc_info.value.message == "email is required"
