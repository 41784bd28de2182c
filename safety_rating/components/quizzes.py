"""Safety quiz sub-score and the quiz availability resolver."""

import threading
from dataclasses import dataclass

from safety_rating.records.catalog import QuizCatalog, acknowledgment_quizzes
from safety_rating.records.schema import (
    Certification,
    CertificationBody,
    CompanyDocument,
    EmployerLink,
    QuizAttempt,
)
from safety_rating.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AvailableQuizzes:
    """Quizzes that make up the quiz sub-score denominator."""

    certification_quizzes: tuple[str, ...]
    document_quizzes: tuple[str, ...]

    @property
    def quiz_ids(self) -> frozenset[str]:
        return frozenset(self.certification_quizzes) | frozenset(self.document_quizzes)

    @property
    def count(self) -> int:
        return len(self.quiz_ids)


# per-body certification levels, company_id, published acknowledgment quiz ids
_CacheKey = tuple[tuple[tuple[str, int], ...], str | None, tuple[str, ...]]


def certification_levels(
    certifications: list[Certification],
) -> dict[CertificationBody, int]:
    """Highest level held per certification body."""
    levels: dict[CertificationBody, int] = {}
    for cert in certifications:
        levels[cert.body] = max(cert.level, levels.get(cert.body, 0))
    return levels


class QuizAvailabilityResolver:
    """Works out which quizzes count toward a technician's quiz score.

    Base quizzes come from the certification catalog, cumulative by level
    and unioned across bodies: a technician holding IRATA and SPRAT
    certifications sees each body's quizzes up to the level held with
    that body. An active employer link adds the employer's document
    acknowledgment quizzes.

    Results are cached under a key made of every input (level per body,
    linked company, published document quizzes), so a change to level or
    linkage can never hit a stale entry.
    """

    def __init__(self, catalog: QuizCatalog | None = None) -> None:
        self.catalog = catalog or QuizCatalog()
        self._cache: dict[_CacheKey, AvailableQuizzes] = {}
        self._lock = threading.Lock()

    def resolve(
        self,
        certifications: list[Certification],
        link: EmployerLink | None,
        company_documents: list[CompanyDocument],
    ) -> AvailableQuizzes:
        """Resolve the available quiz set.

        Args:
            certifications: Every certification on file
            link: Current employer link
            company_documents: Documents published by the linked company

        Returns:
            AvailableQuizzes for the current levels and linkage state
        """
        levels = certification_levels(certifications)
        linked = link is not None and link.active
        document_quiz_ids: tuple[str, ...] = ()
        if linked:
            document_quiz_ids = tuple(
                acknowledgment_quizzes(
                    [d for d in company_documents if d.company_id == link.company_id]
                )
            )

        key: _CacheKey = (
            tuple(sorted((body.value, level) for body, level in levels.items())),
            link.company_id if linked else None,
            document_quiz_ids,
        )

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        base = tuple(
            q.quiz_id
            for body, level in sorted(levels.items(), key=lambda item: item[0].value)
            for q in self.catalog.for_level(body, level)
        )

        available = AvailableQuizzes(
            certification_quizzes=base,
            document_quizzes=document_quiz_ids,
        )
        logger.debug(
            "Resolved available quizzes",
            levels=dict(key[0]),
            company_id=key[1],
            certification_quizzes=len(base),
            document_quizzes=len(document_quiz_ids),
        )

        with self._lock:
            self._cache[key] = available
        return available

    def invalidate(self) -> None:
        """Drop every cached denominator (e.g. after a catalog change)."""
        with self._lock:
            self._cache.clear()


@dataclass
class QuizSummary:
    """Quiz progress against the available set."""

    available: int
    passed: int
    attempted: int
    pass_rate_percent: float | None  # None when nothing is available


def latest_attempts(attempts: list[QuizAttempt]) -> dict[str, QuizAttempt]:
    """Keep only the most recent attempt per quiz."""
    latest: dict[str, QuizAttempt] = {}
    for attempt in sorted(attempts, key=lambda a: a.attempted_at):
        latest[attempt.quiz_id] = attempt
    return latest


def summarize_quizzes(
    attempts: list[QuizAttempt],
    available: AvailableQuizzes,
) -> QuizSummary:
    """Count passed quizzes within the available set.

    Args:
        attempts: Every quiz attempt on record
        available: Resolved quiz availability

    Returns:
        QuizSummary with pass rate
    """
    quiz_ids = available.quiz_ids
    counted = [a for q, a in latest_attempts(attempts).items() if q in quiz_ids]
    passed = sum(1 for a in counted if a.passed)
    total = len(quiz_ids)

    return QuizSummary(
        available=total,
        passed=passed,
        attempted=len(counted),
        pass_rate_percent=(passed / total) * 100 if total > 0 else None,
    )


def calculate_quiz_score(summary: QuizSummary) -> float | None:
    """Quiz sub-score (0-100), or None if no quizzes are available."""
    return summary.pass_rate_percent
