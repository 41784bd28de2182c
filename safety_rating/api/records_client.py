"""Client for the host application's technician records API."""

from typing import Any

from pydantic import ValidationError

from safety_rating.api.base_client import APIError, BaseClient
from safety_rating.records.schema import (
    Certification,
    CompanyDocument,
    EmployerLink,
    IncidentRecord,
    InspectionRecord,
    QuizAttempt,
    TechnicianPayload,
    ValidationResult,
    WorkSession,
    validate_technician_payload,
)
from safety_rating.utils.config import RECORDS_API_BASE_URL


class PayloadValidationError(APIError):
    """Raised when the records API returns data that fails validation."""

    def __init__(self, technician_id: str, results: list[ValidationResult]) -> None:
        failed = [r.message for r in results if not r.valid]
        super().__init__(
            f"Invalid records for technician {technician_id}: {'; '.join(failed)}"
        )
        self.technician_id = technician_id
        self.results = results


class RecordsClient(BaseClient):
    """Reads technician safety records from the host application.

    API structure: technicians/{id}/<collection>, companies/{id}/documents
    """

    def __init__(self, base_url: str = RECORDS_API_BASE_URL, **kwargs: Any) -> None:
        """Initialize the records client."""
        super().__init__(base_url=base_url, **kwargs)

    def _fetch_list(self, endpoint: str, key: str) -> list[dict[str, Any]]:
        response = self.get(endpoint)
        return response.get(key) or []

    def get_certifications(self, technician_id: str) -> list[Certification]:
        """Certifications on file for a technician."""
        return [
            Certification.model_validate(c)
            for c in self._fetch_list(
                f"technicians/{technician_id}/certifications", "certifications"
            )
        ]

    def get_inspections(self, technician_id: str) -> list[InspectionRecord]:
        """Lifetime harness inspections, across every employer."""
        return [
            InspectionRecord.model_validate(i)
            for i in self._fetch_list(
                f"technicians/{technician_id}/harness-inspections", "inspections"
            )
        ]

    def get_quiz_attempts(self, technician_id: str) -> list[QuizAttempt]:
        """Quiz attempts, including retakes."""
        return [
            QuizAttempt.model_validate(a)
            for a in self._fetch_list(
                f"technicians/{technician_id}/quiz-attempts", "attempts"
            )
        ]

    def get_incidents(self, technician_id: str) -> list[IncidentRecord]:
        """Incidents recorded against any of the technician's links."""
        return [
            IncidentRecord.model_validate(i)
            for i in self._fetch_list(
                f"technicians/{technician_id}/incidents", "incidents"
            )
        ]

    def get_work_sessions(self, technician_id: str) -> list[WorkSession]:
        """Work sessions logged by the technician."""
        return [
            WorkSession.model_validate(s)
            for s in self._fetch_list(
                f"technicians/{technician_id}/work-sessions", "sessions"
            )
        ]

    def get_employer_link(self, technician_id: str) -> EmployerLink | None:
        """Current employer link, or None when the technician is solo."""
        response = self.get(f"technicians/{technician_id}/employer-link")
        link = response.get("link")
        return EmployerLink.model_validate(link) if link else None

    def get_company_documents(self, company_id: str) -> list[CompanyDocument]:
        """Documents published by a company."""
        return [
            CompanyDocument.model_validate(d)
            for d in self._fetch_list(f"companies/{company_id}/documents", "documents")
        ]

    def fetch_technician_payload(self, technician_id: str) -> TechnicianPayload:
        """Fetch and validate everything the engine needs for one technician.

        Args:
            technician_id: Technician identifier

        Returns:
            Validated TechnicianPayload

        Raises:
            APIError: If any request fails
            PayloadValidationError: If the combined payload is invalid
        """
        link_data = self.get(f"technicians/{technician_id}/employer-link").get("link")
        try:
            link = EmployerLink.model_validate(link_data) if link_data else None
        except ValidationError:
            # Reported with every other schema error below
            link = None

        documents: list[dict[str, Any]] = []
        if link is not None and link.active:
            documents = self._fetch_list(
                f"companies/{link.company_id}/documents", "documents"
            )

        data = {
            "technicianId": technician_id,
            "certifications": self._fetch_list(
                f"technicians/{technician_id}/certifications", "certifications"
            ),
            "inspections": self._fetch_list(
                f"technicians/{technician_id}/harness-inspections", "inspections"
            ),
            "quizAttempts": self._fetch_list(
                f"technicians/{technician_id}/quiz-attempts", "attempts"
            ),
            "incidents": self._fetch_list(
                f"technicians/{technician_id}/incidents", "incidents"
            ),
            "workSessions": self._fetch_list(
                f"technicians/{technician_id}/work-sessions", "sessions"
            ),
            "employerLink": link_data,
            "companyDocuments": documents,
        }

        valid, results = validate_technician_payload(data)
        if not valid:
            self.logger.warning(
                "Technician payload failed validation",
                technician_id=technician_id,
                errors=[r.message for r in results if not r.valid],
            )
            raise PayloadValidationError(technician_id, results)

        return TechnicianPayload.model_validate(data)
