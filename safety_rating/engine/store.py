"""Append-only record store mirroring upstream technician data.

Each technician owns a lifetime history that only ever grows. Employer
links follow a two-state machine (Unlinked, Linked(company)); linking and
unlinking never touch the rest of the history.
"""

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from safety_rating.errors import LinkageError
from safety_rating.records.schema import (
    Certification,
    CompanyDocument,
    EmployerLink,
    IncidentRecord,
    InspectionRecord,
    QuizAttempt,
    TechnicianPayload,
    WorkSession,
)
from safety_rating.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TechnicianHistory:
    """Lifetime records of one technician."""

    technician_id: str
    certifications: list[Certification] = field(default_factory=list)
    inspections: list[InspectionRecord] = field(default_factory=list)
    quiz_attempts: list[QuizAttempt] = field(default_factory=list)
    incidents: list[IncidentRecord] = field(default_factory=list)
    work_sessions: list[WorkSession] = field(default_factory=list)
    links: list[EmployerLink] = field(default_factory=list)
    revision: int = 0

    @property
    def active_link(self) -> EmployerLink | None:
        if self.links and self.links[-1].active:
            return self.links[-1]
        return None


class RecordStore:
    """Thread-safe, in-memory store of technician histories."""

    def __init__(self) -> None:
        self._histories: dict[str, TechnicianHistory] = {}
        self._documents: dict[str, list[CompanyDocument]] = {}
        self._lock = threading.RLock()

    def _history(self, technician_id: str) -> TechnicianHistory:
        history = self._histories.get(technician_id)
        if history is None:
            history = TechnicianHistory(technician_id=technician_id)
            self._histories[technician_id] = history
        return history

    def _append(self, technician_id: str, attr: str, record: object) -> int:
        with self._lock:
            history = self._history(technician_id)
            getattr(history, attr).append(record)
            history.revision += 1
            return history.revision

    def add_certification(self, technician_id: str, certification: Certification) -> int:
        """Record a certification. Returns the new revision."""
        return self._append(technician_id, "certifications", certification)

    def log_inspection(self, technician_id: str, inspection: InspectionRecord) -> int:
        """Record a harness inspection. Returns the new revision."""
        return self._append(technician_id, "inspections", inspection)

    def record_quiz_attempt(self, technician_id: str, attempt: QuizAttempt) -> int:
        """Record a quiz attempt. Returns the new revision."""
        return self._append(technician_id, "quiz_attempts", attempt)

    def record_incident(self, technician_id: str, incident: IncidentRecord) -> int:
        """Record an incident. Returns the new revision."""
        return self._append(technician_id, "incidents", incident)

    def log_work_session(self, technician_id: str, session: WorkSession) -> int:
        """Record a work session. Returns the new revision."""
        return self._append(technician_id, "work_sessions", session)

    def link(
        self,
        technician_id: str,
        company_id: str,
        link_id: str | None = None,
        at: datetime | None = None,
    ) -> EmployerLink:
        """Unlinked -> Linked(company).

        Raises:
            LinkageError: If the technician already has an active link
        """
        with self._lock:
            history = self._history(technician_id)
            current = history.active_link
            if current is not None:
                raise LinkageError(
                    f"Technician {technician_id} is already linked to "
                    f"{current.company_id}",
                    technician_id=technician_id,
                )

            link = EmployerLink(
                link_id=link_id or uuid.uuid4().hex,
                company_id=company_id,
                active=True,
                linked_since=at or datetime.now(timezone.utc),
            )
            history.links.append(link)
            history.revision += 1

        logger.info(
            "Technician linked",
            technician_id=technician_id,
            company_id=company_id,
            link_id=link.link_id,
        )
        return link

    def unlink(self, technician_id: str, at: datetime | None = None) -> EmployerLink:
        """Linked(company) -> Unlinked.

        Returns:
            The closed link

        Raises:
            LinkageError: If the technician has no active link
        """
        with self._lock:
            history = self._history(technician_id)
            current = history.active_link
            if current is None:
                raise LinkageError(
                    f"Technician {technician_id} is not linked to an employer",
                    technician_id=technician_id,
                )

            closed = self._close_link(history, at)
            history.revision += 1

        logger.info(
            "Technician unlinked",
            technician_id=technician_id,
            company_id=closed.company_id,
            link_id=closed.link_id,
        )
        return closed

    def active_link(self, technician_id: str) -> EmployerLink | None:
        """Current active link, if any."""
        with self._lock:
            history = self._histories.get(technician_id)
            return history.active_link if history else None

    def publish_company_document(self, document: CompanyDocument) -> list[str]:
        """Publish a company document.

        Bumps the revision of every technician linked to the company,
        since their quiz denominator may change.

        Returns:
            Ids of the technicians currently linked to the company
        """
        with self._lock:
            self._documents.setdefault(document.company_id, []).append(document)
            affected = self._linked_ids(document.company_id)
            for technician_id in affected:
                self._histories[technician_id].revision += 1
        return affected

    def company_documents(self, company_id: str) -> list[CompanyDocument]:
        """Documents published by a company."""
        with self._lock:
            return list(self._documents.get(company_id, []))

    def linked_technicians(self, company_id: str) -> list[str]:
        """Ids of technicians with an active link to the company."""
        with self._lock:
            return self._linked_ids(company_id)

    def _linked_ids(self, company_id: str) -> list[str]:
        return sorted(
            technician_id
            for technician_id, history in self._histories.items()
            if history.active_link is not None
            and history.active_link.company_id == company_id
        )

    def technician_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._histories)

    def revision(self, technician_id: str) -> int:
        """Current revision (0 for an unknown technician)."""
        with self._lock:
            history = self._histories.get(technician_id)
            return history.revision if history else 0

    def read(self, technician_id: str) -> tuple[TechnicianPayload, int]:
        """Consistent view of a technician's records and its revision.

        Args:
            technician_id: Technician identifier

        Returns:
            Tuple of (records, revision)
        """
        with self._lock:
            history = self._histories.get(technician_id)
            if history is None:
                return TechnicianPayload(technician_id=technician_id), 0

            link = history.active_link
            documents = self._documents.get(link.company_id, []) if link else []
            records = TechnicianPayload(
                technician_id=technician_id,
                certifications=list(history.certifications),
                inspections=list(history.inspections),
                quiz_attempts=list(history.quiz_attempts),
                incidents=list(history.incidents),
                work_sessions=list(history.work_sessions),
                employer_link=link,
                company_documents=list(documents),
            )
            return records, history.revision

    def load_payload(self, payload: TechnicianPayload) -> int:
        """Merge a payload from the host application into the store.

        Records already present are skipped; nothing is removed. The
        payload's employer link is applied as reported upstream: an active
        link is adopted when the technician is unlinked, and the current
        link reported inactive is closed. The link is checked before any
        record is merged, so a rejected payload leaves the store unchanged.

        Returns:
            The technician's revision after the merge

        Raises:
            LinkageError: If the payload's link conflicts with the store's
                link history
        """
        technician_id = payload.technician_id
        with self._lock:
            history = self._history(technician_id)
            transition = self._link_transition(history, payload.employer_link)

            added = 0
            for attr in (
                "certifications",
                "inspections",
                "quiz_attempts",
                "incidents",
                "work_sessions",
            ):
                existing = getattr(history, attr)
                for record in getattr(payload, attr):
                    if record not in existing:
                        existing.append(record)
                        added += 1

            link = payload.employer_link
            if transition == "link":
                history.links.append(link)
                added += 1
            elif transition == "unlink":
                self._close_link(history, link.unlinked_at)
                added += 1

            for document in payload.company_documents:
                documents = self._documents.setdefault(document.company_id, [])
                if document in documents:
                    continue
                documents.append(document)
                added += 1
                # Other technicians of that company now have stale snapshots
                for other_id in self._linked_ids(document.company_id):
                    if other_id != technician_id:
                        self._histories[other_id].revision += 1

            if added:
                history.revision += 1

            logger.debug(
                "Loaded technician payload",
                technician_id=technician_id,
                records_added=added,
                link_transition=transition,
                revision=history.revision,
            )
            return history.revision

    @staticmethod
    def _link_transition(
        history: TechnicianHistory,
        link: EmployerLink | None,
    ) -> str | None:
        """Work out what an upstream link means for the stored state.

        Returns:
            "link", "unlink", or None when nothing changes

        Raises:
            LinkageError: If the link cannot be applied
        """
        if link is None:
            return None

        current = history.active_link
        if link.active:
            if current is None:
                if any(old.link_id == link.link_id for old in history.links):
                    raise LinkageError(
                        f"Payload link {link.link_id} was already closed",
                        technician_id=history.technician_id,
                    )
                return "link"
            if current.link_id != link.link_id:
                raise LinkageError(
                    f"Payload link {link.link_id} conflicts with active link "
                    f"{current.link_id}",
                    technician_id=history.technician_id,
                )
            return None

        if current is not None and current.link_id == link.link_id:
            return "unlink"
        # An inactive link other than the current one is past history
        return None

    @staticmethod
    def _close_link(history: TechnicianHistory, at: datetime | None) -> EmployerLink:
        """Close the active link in place. Caller holds the lock."""
        closed = history.links[-1].model_copy(
            update={
                "active": False,
                "unlinked_at": at or datetime.now(timezone.utc),
            }
        )
        history.links[-1] = closed
        return closed
