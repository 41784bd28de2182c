"""Technician record models, payload validation and the quiz catalog."""

from safety_rating.records.catalog import CatalogQuiz, QuizCatalog, acknowledgment_quizzes
from safety_rating.records.schema import (
    Certification,
    CertificationBody,
    Company,
    CompanyDocument,
    DocumentType,
    EmployerLink,
    IncidentRecord,
    IncidentSeverity,
    InspectionOutcome,
    InspectionRecord,
    QuizAttempt,
    TechnicianPayload,
    ValidationResult,
    ValidationSeverity,
    WorkSession,
    validate_technician_payload,
)

__all__ = [
    # Records
    "Certification",
    "CertificationBody",
    "InspectionRecord",
    "InspectionOutcome",
    "QuizAttempt",
    "IncidentRecord",
    "IncidentSeverity",
    "WorkSession",
    "EmployerLink",
    "CompanyDocument",
    "DocumentType",
    "Company",
    "TechnicianPayload",
    # Validation
    "ValidationResult",
    "ValidationSeverity",
    "validate_technician_payload",
    # Catalog
    "CatalogQuiz",
    "QuizCatalog",
    "acknowledgment_quizzes",
]
