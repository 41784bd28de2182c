"""Rating service: the engine's public, in-process interface.

Every mutating call records the event and recomputes the technician's PSR
synchronously while holding that technician's lock, so concurrent updates
for one technician are serialized and the stored snapshot always reflects
all of them. Different technicians never share a lock.

If a recompute fails, the last valid snapshot keeps being served and the
recompute is retried in the background.
"""

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from safety_rating.components.quizzes import QuizAvailabilityResolver
from safety_rating.engine.snapshots import SnapshotCache
from safety_rating.engine.store import RecordStore
from safety_rating.errors import RatingUnavailableError
from safety_rating.rating.scorer import PersonalSafetyRating, rate_technician
from safety_rating.rating.snapshot import PSRSnapshot
from safety_rating.rating.workforce import (
    WorkforceSafetyScore,
    calculate_workforce_safety_score,
)
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
from safety_rating.utils.config import (
    DEFAULT_ZERO_DENOMINATOR_POLICY,
    RECOMPUTE_MAX_RETRIES,
    RECOMPUTE_RETRY_BASE_DELAY,
    RECOMPUTE_RETRY_WORKERS,
    ZeroDenominatorPolicy,
)
from safety_rating.utils.logging_config import get_logger

logger = get_logger(__name__)

Calculator = Callable[..., PersonalSafetyRating]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RatingService:
    """Computes, caches and serves Personal and Workforce Safety Scores."""

    def __init__(
        self,
        store: RecordStore | None = None,
        resolver: QuizAvailabilityResolver | None = None,
        policy: ZeroDenominatorPolicy = DEFAULT_ZERO_DENOMINATOR_POLICY,
        calculator: Calculator = rate_technician,
        clock: Callable[[], datetime] = _utcnow,
        max_retries: int = RECOMPUTE_MAX_RETRIES,
        retry_delay: float = RECOMPUTE_RETRY_BASE_DELAY,
        retry_workers: int = RECOMPUTE_RETRY_WORKERS,
    ) -> None:
        """Initialize the service.

        Args:
            store: Record store (a fresh in-memory store if omitted)
            resolver: Quiz availability resolver shared by all recomputes
            policy: How undefined sub-scores enter the PSR
            calculator: Function turning records into a PersonalSafetyRating
            clock: Source of the current time
            max_retries: Background retries after a failed recompute
            retry_delay: Base delay in seconds, doubled per retry
            retry_workers: Threads available for background retries
        """
        self.store = store or RecordStore()
        self.resolver = resolver or QuizAvailabilityResolver()
        self.policy = policy
        self.calculator = calculator
        self.clock = clock
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.cache = SnapshotCache()

        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._pending_retries: set[str] = set()
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=retry_workers, thread_name_prefix="psr-retry"
        )

    def _lock_for(self, technician_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(technician_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[technician_id] = lock
            return lock

    # Mutations

    def add_certification(
        self, technician_id: str, certification: Certification
    ) -> PSRSnapshot | None:
        """Record a certification and recompute."""
        return self._apply(technician_id, self.store.add_certification, certification)

    def log_inspection(
        self, technician_id: str, inspection: InspectionRecord
    ) -> PSRSnapshot | None:
        """Record a harness inspection and recompute."""
        return self._apply(technician_id, self.store.log_inspection, inspection)

    def record_quiz_attempt(
        self, technician_id: str, attempt: QuizAttempt
    ) -> PSRSnapshot | None:
        """Record a quiz attempt and recompute."""
        return self._apply(technician_id, self.store.record_quiz_attempt, attempt)

    def record_incident(
        self, technician_id: str, incident: IncidentRecord
    ) -> PSRSnapshot | None:
        """Record an incident and recompute."""
        return self._apply(technician_id, self.store.record_incident, incident)

    def log_work_session(
        self, technician_id: str, session: WorkSession
    ) -> PSRSnapshot | None:
        """Record a work session and recompute."""
        return self._apply(technician_id, self.store.log_work_session, session)

    def link_employer(
        self,
        technician_id: str,
        company_id: str,
        link_id: str | None = None,
    ) -> EmployerLink:
        """Apply an upstream link transition and recompute.

        Raises:
            LinkageError: If the technician is already linked
        """
        with self._lock_for(technician_id):
            link = self.store.link(
                technician_id, company_id, link_id=link_id, at=self.clock()
            )
            self._refresh(technician_id)
        return link

    def unlink_employer(self, technician_id: str) -> EmployerLink:
        """Apply an upstream unlink transition and recompute.

        Raises:
            LinkageError: If the technician is not linked
        """
        with self._lock_for(technician_id):
            link = self.store.unlink(technician_id, at=self.clock())
            self._refresh(technician_id)
        return link

    def publish_company_document(self, document: CompanyDocument) -> list[str]:
        """Publish a company document and recompute its linked technicians.

        Returns:
            Ids of the technicians whose rating was recomputed
        """
        affected = self.store.publish_company_document(document)
        for technician_id in affected:
            with self._lock_for(technician_id):
                self._refresh(technician_id)
        logger.info(
            "Company document published",
            company_id=document.company_id,
            document_id=document.document_id,
            technicians_recomputed=len(affected),
        )
        return affected

    def load_payload(self, payload: TechnicianPayload) -> PSRSnapshot | None:
        """Merge a full record payload and recompute."""
        return self._apply(payload.technician_id, self._load, payload)

    def _load(self, technician_id: str, payload: TechnicianPayload) -> int:
        return self.store.load_payload(payload)

    def _apply(
        self,
        technician_id: str,
        mutate: Callable[[str, Any], int],
        record: Any,
    ) -> PSRSnapshot | None:
        with self._lock_for(technician_id):
            mutate(technician_id, record)
            return self._refresh(technician_id)

    # Reads

    def get_personal_safety_rating(self, technician_id: str) -> PSRSnapshot:
        """Current PSR snapshot for a technician.

        Returns the cached snapshot when it is current; otherwise
        recomputes. If the recompute fails, the last valid snapshot is
        returned and a background retry is scheduled.

        Raises:
            RatingUnavailableError: If the recompute fails and no earlier
                snapshot exists
        """
        cached = self.cache.get(technician_id)
        if cached is not None and self._is_current(cached):
            return cached

        with self._lock_for(technician_id):
            snapshot = self._refresh(technician_id)

        if snapshot is None:
            raise RatingUnavailableError(technician_id)
        return snapshot

    def get_workforce_safety_score(self, company_id: str) -> WorkforceSafetyScore:
        """Mean PSR of the technicians linked to a company right now."""
        technician_ids = self.store.linked_technicians(company_id)
        snapshots = [self.get_personal_safety_rating(t) for t in technician_ids]
        # A technician unlinked after the listing is rated solo by now
        ratings = [s.rating for s in snapshots if s.company_id == company_id]
        wss = calculate_workforce_safety_score(company_id, ratings)
        logger.debug(
            "Computed workforce safety score",
            company_id=company_id,
            score=wss.score,
            technician_count=wss.technician_count,
        )
        return wss

    def snapshot_history(self, technician_id: str) -> list[PSRSnapshot]:
        """Recent snapshots for a technician, oldest first."""
        return self.cache.history(technician_id)

    # Recompute

    def _is_current(self, snapshot: PSRSnapshot) -> bool:
        # Certification expiry depends on the date, so a new day means stale
        return (
            snapshot.revision == self.store.revision(snapshot.technician_id)
            and snapshot.computed_at.date() == self.clock().date()
        )

    def _recompute(self, technician_id: str) -> PSRSnapshot:
        """Compute and cache a fresh snapshot. Caller holds the lock."""
        records, revision = self.store.read(technician_id)
        now = self.clock()
        rating = self.calculator(
            records,
            as_of=now.date(),
            resolver=self.resolver,
            policy=self.policy,
        )
        link = records.employer_link
        snapshot = PSRSnapshot(
            technician_id=technician_id,
            rating=rating,
            computed_at=now,
            revision=revision,
            company_id=link.company_id if link is not None and link.active else None,
        )
        self.cache.put(snapshot)
        logger.debug(
            "Recomputed safety rating",
            technician_id=technician_id,
            score=rating.score,
            tier=rating.tier.value,
            mode=rating.mode.value,
            revision=revision,
        )
        return snapshot

    def _refresh(self, technician_id: str) -> PSRSnapshot | None:
        """Recompute, falling back to the last snapshot on failure."""
        try:
            return self._recompute(technician_id)
        except Exception as e:
            last = self.cache.get(technician_id)
            logger.warning(
                "Safety rating recompute failed, serving last snapshot",
                technician_id=technician_id,
                error=str(e),
                last_revision=last.revision if last else None,
                exc_info=True,
            )
            self._schedule_retry(technician_id)
            return last

    def _schedule_retry(self, technician_id: str) -> None:
        with self._locks_guard:
            if self._closed or technician_id in self._pending_retries:
                return
            self._pending_retries.add(technician_id)
        self._executor.submit(self._retry, technician_id)

    def _retry(self, technician_id: str) -> None:
        try:
            for attempt in range(1, self.max_retries + 1):
                time.sleep(self.retry_delay * (2 ** (attempt - 1)))
                with self._lock_for(technician_id):
                    cached = self.cache.get(technician_id)
                    if cached is not None and self._is_current(cached):
                        return
                    try:
                        self._recompute(technician_id)
                    except Exception as e:
                        logger.warning(
                            "Retrying safety rating recompute failed",
                            technician_id=technician_id,
                            attempt=attempt,
                            max_retries=self.max_retries,
                            error=str(e),
                        )
                        continue
                logger.info(
                    "Safety rating recompute recovered",
                    technician_id=technician_id,
                    attempt=attempt,
                )
                return

            logger.error(
                "Safety rating recompute retries exhausted",
                technician_id=technician_id,
                max_retries=self.max_retries,
            )
        finally:
            with self._locks_guard:
                self._pending_retries.discard(technician_id)

    def close(self, wait: bool = True) -> None:
        """Stop background retries."""
        with self._locks_guard:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RatingService":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
