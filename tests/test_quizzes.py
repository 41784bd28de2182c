"""Tests for quiz availability and the quiz sub-score."""

from datetime import timedelta

import pytest
from factories import NOW, make_attempt

from safety_rating.components.quizzes import (
    AvailableQuizzes,
    QuizAvailabilityResolver,
    calculate_quiz_score,
    latest_attempts,
    summarize_quizzes,
)
from safety_rating.records.catalog import QuizCatalog
from safety_rating.records.schema import (
    Certification,
    CertificationBody,
    CompanyDocument,
    DocumentType,
    EmployerLink,
)


def _cert(level: int, body: CertificationBody = CertificationBody.IRATA) -> Certification:
    return Certification(body=body, level=level, verified=True)


@pytest.fixture
def resolver() -> QuizAvailabilityResolver:
    return QuizAvailabilityResolver()


@pytest.fixture
def acme_link() -> EmployerLink:
    return EmployerLink(link_id="link-1", company_id="acme", linked_since=NOW)


class TestQuizAvailabilityResolver:
    """Tests for QuizAvailabilityResolver."""

    @pytest.mark.parametrize("level,expected", [(1, 2), (2, 4), (3, 6)])
    def test_base_count_by_level(
        self, resolver: QuizAvailabilityResolver, level: int, expected: int
    ) -> None:
        """Level 1 sees 2 quizzes, level 2 sees 4, level 3 sees 6."""
        assert resolver.resolve([_cert(level)], None, []).count == expected

    def test_higher_levels_see_superset(self, resolver: QuizAvailabilityResolver) -> None:
        """Each level's quizzes include every lower level's."""
        l1 = resolver.resolve([_cert(1)], None, []).quiz_ids
        l2 = resolver.resolve([_cert(2)], None, []).quiz_ids
        l3 = resolver.resolve([_cert(3)], None, []).quiz_ids
        assert l1 < l2 < l3

    def test_body_selects_catalog(self, resolver: QuizAvailabilityResolver) -> None:
        """SPRAT technicians get SPRAT quizzes."""
        available = resolver.resolve([_cert(1, CertificationBody.SPRAT)], None, [])
        assert available.quiz_ids == {"sprat_level_1_a", "sprat_level_1_b"}

    def test_dual_certification_unions_bodies(
        self, resolver: QuizAvailabilityResolver
    ) -> None:
        """IRATA L3 plus SPRAT L1 sees six IRATA and two SPRAT quizzes."""
        available = resolver.resolve(
            [_cert(3), _cert(1, CertificationBody.SPRAT)], None, []
        )
        assert available.count == 8
        assert {"irata_level_3_b", "sprat_level_1_a"} <= available.quiz_ids
        assert "sprat_level_2_a" not in available.quiz_ids

    def test_highest_level_per_body(self, resolver: QuizAvailabilityResolver) -> None:
        """An older lower-level certification does not shrink the set."""
        assert resolver.resolve([_cert(1), _cert(2)], None, []).count == 4

    def test_second_body_is_never_served_from_stale_cache(
        self, resolver: QuizAvailabilityResolver
    ) -> None:
        """Adding a SPRAT certification changes the resolved set."""
        assert resolver.resolve([_cert(3)], None, []).count == 6
        both = [_cert(3), _cert(2, CertificationBody.SPRAT)]
        assert resolver.resolve(both, None, []).count == 10

    def test_no_certification_has_no_base_quizzes(
        self, resolver: QuizAvailabilityResolver
    ) -> None:
        """Without a certification nothing is available."""
        assert resolver.resolve([], None, []).count == 0

    def test_linked_adds_acknowledgment_quizzes(
        self,
        resolver: QuizAvailabilityResolver,
        acme_link: EmployerLink,
        acme_documents: list[CompanyDocument],
    ) -> None:
        """Employer acknowledgment documents add to the denominator."""
        available = resolver.resolve([_cert(2)], acme_link, acme_documents)
        assert available.count == 6
        assert set(available.document_quizzes) == {"doc_ack:hsm-1", "doc_ack:policy-1"}

    def test_unlinked_ignores_documents(
        self,
        resolver: QuizAvailabilityResolver,
        acme_link: EmployerLink,
        acme_documents: list[CompanyDocument],
    ) -> None:
        """Documents do not count once the link is inactive."""
        ended = acme_link.model_copy(update={"active": False})
        assert resolver.resolve([_cert(2)], ended, acme_documents).count == 4

    def test_documents_of_other_companies_ignored(
        self, resolver: QuizAvailabilityResolver, acme_link: EmployerLink
    ) -> None:
        """Only the linked employer's documents count."""
        other = CompanyDocument(
            document_id="x",
            company_id="summit",
            document_type=DocumentType.COMPANY_POLICY,
        )
        assert resolver.resolve([_cert(1)], acme_link, [other]).count == 2

    def test_level_change_is_never_served_from_stale_cache(
        self, resolver: QuizAvailabilityResolver
    ) -> None:
        """A cached level 1 result is not reused after promotion."""
        assert resolver.resolve([_cert(1)], None, []).count == 2
        assert resolver.resolve([_cert(3)], None, []).count == 6
        assert resolver.resolve([_cert(1)], None, []).count == 2

    def test_linkage_change_is_never_served_from_stale_cache(
        self,
        resolver: QuizAvailabilityResolver,
        acme_link: EmployerLink,
        acme_documents: list[CompanyDocument],
    ) -> None:
        """Linking and unlinking change the resolved denominator."""
        assert resolver.resolve([_cert(2)], None, acme_documents).count == 4
        assert resolver.resolve([_cert(2)], acme_link, acme_documents).count == 6
        assert resolver.resolve([_cert(2)], None, acme_documents).count == 4

    def test_invalidate_after_catalog_change(self) -> None:
        """invalidate() forces re-resolution against the catalog."""
        resolver = QuizAvailabilityResolver()
        assert resolver.resolve([_cert(1)], None, []).count == 2
        resolver.catalog = QuizCatalog({"irata": [("only", 1)]})
        resolver.invalidate()
        assert resolver.resolve([_cert(1)], None, []).quiz_ids == {"only"}


class TestQuizScore:
    """Tests for summarize_quizzes and calculate_quiz_score."""

    def test_three_of_four(self, quiz_attempts_3_of_4: list) -> None:
        """3 of 4 passed gives 75."""
        available = QuizAvailabilityResolver().resolve([_cert(2)], None, [])
        summary = summarize_quizzes(quiz_attempts_3_of_4, available)
        assert summary.available == 4
        assert summary.passed == 3
        assert calculate_quiz_score(summary) == 75.0

    def test_zero_available_is_undefined(self) -> None:
        """Nothing available leaves the score undefined instead of dividing by 0."""
        summary = summarize_quizzes(
            [make_attempt("irata_level_1_a")],
            AvailableQuizzes(certification_quizzes=(), document_quizzes=()),
        )
        assert summary.available == 0
        assert calculate_quiz_score(summary) is None

    def test_retake_overwrites(self) -> None:
        """Only the latest attempt per quiz counts."""
        available = AvailableQuizzes(("q1", "q2"), ())
        attempts = [
            make_attempt("q1", passed=True, at=NOW),
            make_attempt("q1", passed=False, at=NOW + timedelta(days=1)),
            make_attempt("q2", passed=False, at=NOW),
            make_attempt("q2", passed=True, at=NOW + timedelta(days=1)),
        ]
        summary = summarize_quizzes(attempts, available)
        assert summary.passed == 1
        assert summary.attempted == 2
        assert calculate_quiz_score(summary) == 50.0

    def test_repeated_passes_do_not_accumulate(self) -> None:
        """Passing the same quiz twice counts once."""
        available = AvailableQuizzes(("q1", "q2"), ())
        attempts = [make_attempt("q1"), make_attempt("q1", at=NOW + timedelta(hours=1))]
        assert summarize_quizzes(attempts, available).passed == 1

    def test_attempts_outside_available_set_ignored(self) -> None:
        """Quizzes no longer available do not count."""
        available = AvailableQuizzes(("q1",), ())
        attempts = [make_attempt("q1"), make_attempt("old-quiz")]
        summary = summarize_quizzes(attempts, available)
        assert summary.passed == 1
        assert calculate_quiz_score(summary) == 100.0

    def test_latest_attempts_orders_by_time(self) -> None:
        """Out-of-order input still keeps the newest attempt."""
        newest = make_attempt("q1", passed=False, at=NOW + timedelta(days=2))
        attempts = [newest, make_attempt("q1", at=NOW)]
        assert latest_attempts(attempts)["q1"] == newest
