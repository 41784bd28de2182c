"""Quiz catalog: certification knowledge quizzes and document acknowledgments."""

from dataclasses import dataclass

from safety_rating.records.schema import CertificationBody, CompanyDocument
from safety_rating.utils.config import CERTIFICATION_QUIZZES


@dataclass(frozen=True)
class CatalogQuiz:
    """A certification knowledge quiz."""

    quiz_id: str
    body: CertificationBody
    level: int


class QuizCatalog:
    """Certification quizzes keyed by body, filtered by level."""

    def __init__(
        self,
        quizzes: dict[str, list[tuple[str, int]]] | None = None,
    ) -> None:
        quizzes = quizzes if quizzes is not None else CERTIFICATION_QUIZZES
        self._quizzes: dict[CertificationBody, list[CatalogQuiz]] = {}
        for body, entries in quizzes.items():
            cert_body = CertificationBody(body)
            self._quizzes[cert_body] = [
                CatalogQuiz(quiz_id=quiz_id, body=cert_body, level=level)
                for quiz_id, level in entries
            ]

    def for_level(self, body: CertificationBody, level: int) -> list[CatalogQuiz]:
        """Quizzes a technician at `level` can take (their level and below)."""
        return [q for q in self._quizzes.get(body, []) if q.level <= level]


def acknowledgment_quizzes(documents: list[CompanyDocument]) -> list[str]:
    """Quiz ids for the documents that carry an acknowledgment quiz."""
    return sorted(d.quiz_id for d in documents if d.requires_acknowledgment)
