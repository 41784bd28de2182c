"""Shared pytest fixtures for Safety Rating Engine tests."""

from datetime import timedelta

import pytest
from factories import AS_OF, NOW, make_attempt, make_inspections

from safety_rating.engine.service import RatingService
from safety_rating.records.schema import (
    Certification,
    CertificationBody,
    CompanyDocument,
    DocumentType,
    InspectionRecord,
    QuizAttempt,
)


@pytest.fixture
def fixed_clock():
    """Clock frozen at NOW."""
    return lambda: NOW


@pytest.fixture
def verified_certification() -> Certification:
    """Verified IRATA Level 2 certification, valid for another year."""
    return Certification(
        body=CertificationBody.IRATA,
        level=2,
        verified=True,
        expires_at=AS_OF + timedelta(days=365),
    )


@pytest.fixture
def inspections_8_of_10() -> list[InspectionRecord]:
    """Ten lifetime inspections, eight passed."""
    return make_inspections(passed=8, failed=2)


@pytest.fixture
def quiz_attempts_3_of_4() -> list[QuizAttempt]:
    """Level 2 certification quizzes with three of four passed."""
    return [
        make_attempt("irata_level_1_a"),
        make_attempt("irata_level_1_b"),
        make_attempt("irata_level_2_a"),
        make_attempt("irata_level_2_b", passed=False),
    ]


@pytest.fixture
def acme_documents() -> list[CompanyDocument]:
    """Two acknowledgment documents and one that carries no quiz."""
    return [
        CompanyDocument(
            document_id="hsm-1",
            company_id="acme",
            document_type=DocumentType.HEALTH_SAFETY_MANUAL,
            title="Health & Safety Manual",
        ),
        CompanyDocument(
            document_id="policy-1",
            company_id="acme",
            document_type=DocumentType.COMPANY_POLICY,
            title="Company Policy",
        ),
        CompanyDocument(
            document_id="ms-1",
            company_id="acme",
            document_type=DocumentType.METHOD_STATEMENT,
            title="Method Statement",
        ),
    ]


@pytest.fixture
def service(fixed_clock):
    """Rating service with a fixed clock and instant retries."""
    svc = RatingService(clock=fixed_clock, retry_delay=0.0)
    yield svc
    svc.close()
