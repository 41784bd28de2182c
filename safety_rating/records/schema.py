"""Pydantic models for technician safety records and upstream payloads."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from safety_rating.utils.config import (
    ACKNOWLEDGMENT_DOCUMENT_TYPES,
    DOCUMENT_QUIZ_PREFIX,
    MAX_CERT_LEVEL,
    MIN_CERT_LEVEL,
)


class ValidationSeverity(str, Enum):
    """Severity levels for validation results."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class ValidationResult(BaseModel):
    """Result of a validation check."""

    valid: bool
    severity: ValidationSeverity
    message: str
    field: str | None = None


class CertificationBody(str, Enum):
    """Rope access certification bodies."""

    IRATA = "irata"
    SPRAT = "sprat"


class InspectionOutcome(str, Enum):
    """Harness inspection result."""

    PASSED = "pass"
    FAILED = "fail"


class IncidentSeverity(str, Enum):
    """Incident severity as classified on the incident report."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"
    FATAL = "fatal"


class DocumentType(str, Enum):
    """Company document types."""

    HEALTH_SAFETY_MANUAL = "health_safety_manual"
    COMPANY_POLICY = "company_policy"
    SAFE_WORK_PROCEDURE = "safe_work_procedure"
    SAFE_WORK_PRACTICE = "safe_work_practice"
    METHOD_STATEMENT = "method_statement"
    EQUIPMENT_INSPECTION = "equipment_inspection"


class Record(BaseModel):
    """Base for immutable records; unknown upstream fields are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Certification(Record):
    """A rope access certification held by a technician."""

    body: CertificationBody = CertificationBody.IRATA
    level: int = Field(..., ge=MIN_CERT_LEVEL, le=MAX_CERT_LEVEL)
    verified: bool = False
    expires_at: date | None = Field(default=None, alias="expiresAt")
    license_number: str | None = Field(default=None, alias="licenseNumber")

    @field_validator("level", mode="before")
    @classmethod
    def parse_level_label(cls, v: object) -> object:
        """Accept labels such as "Level 2" or "L2" as well as integers."""
        if isinstance(v, str):
            digits = [c for c in v if c.isdigit()]
            if len(digits) != 1:
                raise ValueError(f"Cannot parse certification level from '{v}'")
            return int(digits[0])
        return v

    def is_expired(self, as_of: date) -> bool:
        """Whether the certification expired before the given date."""
        return self.expires_at is not None and self.expires_at < as_of


class InspectionRecord(Record):
    """A harness inspection performed by the technician."""

    outcome: InspectionOutcome
    inspected_at: datetime = Field(..., alias="inspectedAt")
    company_id: str | None = Field(default=None, alias="companyId")

    @property
    def passed(self) -> bool:
        return self.outcome is InspectionOutcome.PASSED


class QuizAttempt(Record):
    """A single quiz attempt. Retakes replace earlier attempts."""

    quiz_id: str = Field(..., alias="quizId")
    passed: bool
    attempted_at: datetime = Field(..., alias="attemptedAt")
    score: int | None = Field(default=None, ge=0, le=100)


class IncidentRecord(Record):
    """An incident recorded against an employer link."""

    occurred_at: datetime = Field(..., alias="occurredAt")
    link_id: str = Field(..., alias="linkId")
    severity: IncidentSeverity = IncidentSeverity.MINOR


class WorkSession(Record):
    """A work session logged under an employer link."""

    started_at: datetime = Field(..., alias="startedAt")
    link_id: str = Field(..., alias="linkId")


class EmployerLink(Record):
    """Relationship between a technician and a company."""

    link_id: str = Field(..., alias="linkId")
    company_id: str = Field(..., alias="companyId")
    active: bool = True
    linked_since: datetime = Field(..., alias="linkedSince")
    unlinked_at: datetime | None = Field(default=None, alias="unlinkedAt")


class CompanyDocument(Record):
    """A document published by a company."""

    document_id: str = Field(..., alias="documentId")
    company_id: str = Field(..., alias="companyId")
    document_type: DocumentType = Field(..., alias="documentType")
    title: str = ""

    @property
    def requires_acknowledgment(self) -> bool:
        return self.document_type.value in ACKNOWLEDGMENT_DOCUMENT_TYPES

    @property
    def quiz_id(self) -> str:
        return f"{DOCUMENT_QUIZ_PREFIX}{self.document_id}"


class Company(Record):
    """Company identity and its externally computed CSR (read-only here)."""

    company_id: str = Field(..., alias="companyId")
    name: str = ""
    csr: float | None = Field(default=None, ge=0, le=100)


class TechnicianPayload(Record):
    """Full record set for one technician as delivered by the host app."""

    technician_id: str = Field(..., alias="technicianId")
    certifications: list[Certification] = Field(default_factory=list)
    inspections: list[InspectionRecord] = Field(default_factory=list)
    quiz_attempts: list[QuizAttempt] = Field(default_factory=list, alias="quizAttempts")
    incidents: list[IncidentRecord] = Field(default_factory=list)
    work_sessions: list[WorkSession] = Field(default_factory=list, alias="workSessions")
    employer_link: EmployerLink | None = Field(default=None, alias="employerLink")
    company_documents: list[CompanyDocument] = Field(
        default_factory=list, alias="companyDocuments"
    )


def validate_technician_payload(
    data: dict,
) -> tuple[bool, list[ValidationResult]]:
    """Validate a technician record payload against the schema.

    Args:
        data: Raw payload dict

    Returns:
        Tuple of (is_valid, list of validation results)
    """
    results: list[ValidationResult] = []

    try:
        payload = TechnicianPayload.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            results.append(
                ValidationResult(
                    valid=False,
                    severity=ValidationSeverity.CRITICAL,
                    message=f"Schema validation failed: {error['msg']}",
                    field=".".join(str(part) for part in error["loc"]),
                )
            )
        return False, results

    link = payload.employer_link
    if link is not None and link.active:
        foreign = [
            i for i in payload.incidents if i.link_id != link.link_id
        ]
        if foreign:
            results.append(
                ValidationResult(
                    valid=True,
                    severity=ValidationSeverity.WARNING,
                    message=(
                        f"{len(foreign)} incident(s) belong to earlier employer "
                        "links and will not affect work history"
                    ),
                    field="incidents",
                )
            )
        stray_docs = [
            d for d in payload.company_documents if d.company_id != link.company_id
        ]
        if stray_docs:
            results.append(
                ValidationResult(
                    valid=False,
                    severity=ValidationSeverity.CRITICAL,
                    message="Company documents do not match the active employer",
                    field="companyDocuments",
                )
            )
            return False, results

    results.append(
        ValidationResult(
            valid=True,
            severity=ValidationSeverity.OK,
            message="Schema validation passed",
        )
    )
    return True, results
