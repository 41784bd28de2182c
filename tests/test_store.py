"""Tests for the record store and the employer link state machine."""

import pytest
from factories import NOW, make_attempt, make_inspections

from safety_rating.engine.snapshots import SnapshotCache
from safety_rating.engine.store import RecordStore
from safety_rating.errors import LinkageError
from safety_rating.rating.scorer import RatingComponents, calculate_personal_safety_rating
from safety_rating.rating.snapshot import PSRSnapshot
from safety_rating.rating.weights import RatingMode
from safety_rating.records.schema import (
    CompanyDocument,
    DocumentType,
    EmployerLink,
    IncidentRecord,
    TechnicianPayload,
)


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


class TestLinkStateMachine:
    """Tests for link and unlink transitions."""

    def test_link_then_unlink(self, store: RecordStore) -> None:
        """Unlinked -> Linked -> Unlinked."""
        link = store.link("tech-1", "acme", at=NOW)
        assert store.active_link("tech-1") == link

        closed = store.unlink("tech-1", at=NOW)
        assert not closed.active
        assert closed.unlinked_at == NOW
        assert closed.link_id == link.link_id
        assert store.active_link("tech-1") is None

    def test_double_link_rejected(self, store: RecordStore) -> None:
        """A linked technician must unlink before linking again."""
        store.link("tech-1", "acme")
        with pytest.raises(LinkageError) as exc_info:
            store.link("tech-1", "summit")
        assert exc_info.value.technician_id == "tech-1"

    def test_unlink_when_solo_rejected(self, store: RecordStore) -> None:
        """Unlinking a solo technician is an error."""
        with pytest.raises(LinkageError):
            store.unlink("tech-1")

    def test_relink_gets_new_link_id(self, store: RecordStore) -> None:
        """Each link is a fresh relationship."""
        first = store.link("tech-1", "acme")
        store.unlink("tech-1")
        second = store.link("tech-1", "acme")
        assert first.link_id != second.link_id

    def test_unlink_keeps_lifetime_history(self, store: RecordStore) -> None:
        """Inspections and quizzes survive unlinking."""
        store.link("tech-1", "acme", link_id="link-1")
        for inspection in make_inspections(passed=3, failed=1):
            store.log_inspection("tech-1", inspection)
        store.record_quiz_attempt("tech-1", make_attempt("irata_level_1_a"))
        store.record_incident("tech-1", IncidentRecord(occurred_at=NOW, link_id="link-1"))
        store.unlink("tech-1")

        records, _ = store.read("tech-1")
        assert len(records.inspections) == 4
        assert len(records.quiz_attempts) == 1
        assert len(records.incidents) == 1
        assert records.employer_link is None


class TestRevisions:
    """Tests for revision tracking."""

    def test_every_change_bumps_revision(self, store: RecordStore) -> None:
        """Appends and transitions each advance the revision."""
        assert store.revision("tech-1") == 0
        assert store.record_quiz_attempt("tech-1", make_attempt("q")) == 1
        store.link("tech-1", "acme")
        assert store.revision("tech-1") == 2
        store.unlink("tech-1")
        assert store.revision("tech-1") == 3

    def test_unknown_technician_reads_empty(self, store: RecordStore) -> None:
        """Reading an unknown technician returns empty records."""
        records, revision = store.read("ghost")
        assert revision == 0
        assert records.certifications == []
        assert "ghost" not in store.technician_ids()

    def test_document_publish_bumps_linked_technicians(self, store: RecordStore) -> None:
        """Only technicians linked to the publishing company are affected."""
        store.link("tech-1", "acme")
        store.link("tech-2", "summit")
        before = store.revision("tech-2")

        affected = store.publish_company_document(
            CompanyDocument(
                document_id="hsm-1",
                company_id="acme",
                document_type=DocumentType.HEALTH_SAFETY_MANUAL,
            )
        )

        assert affected == ["tech-1"]
        assert store.revision("tech-1") == 2
        assert store.revision("tech-2") == before
        records, _ = store.read("tech-1")
        assert [d.document_id for d in records.company_documents] == ["hsm-1"]


class TestLoadPayload:
    """Tests for merging host app payloads."""

    def test_merge_skips_duplicates(self, store: RecordStore) -> None:
        """Loading the same payload twice adds nothing the second time."""
        payload = TechnicianPayload(
            technician_id="tech-1",
            inspections=make_inspections(passed=2, failed=0),
        )
        first = store.load_payload(payload)
        second = store.load_payload(payload)

        records, _ = store.read("tech-1")
        assert len(records.inspections) == 2
        assert first == second == 1

    def test_adopts_active_link(self, store: RecordStore) -> None:
        """A solo technician takes on the payload's link."""
        link = EmployerLink(link_id="link-9", company_id="acme", linked_since=NOW)
        store.load_payload(TechnicianPayload(technician_id="tech-1", employer_link=link))
        assert store.active_link("tech-1") == link

    def test_conflicting_link_rejected(self, store: RecordStore) -> None:
        """A payload cannot silently replace the active link."""
        store.link("tech-1", "acme", link_id="link-1")
        other = EmployerLink(link_id="link-2", company_id="summit", linked_since=NOW)
        with pytest.raises(LinkageError):
            store.load_payload(
                TechnicianPayload(technician_id="tech-1", employer_link=other)
            )

    def test_rejected_payload_leaves_store_unchanged(self, store: RecordStore) -> None:
        """Records of a payload with a conflicting link are not merged."""
        store.link("tech-1", "acme", link_id="link-1")
        before = store.revision("tech-1")
        other = EmployerLink(link_id="link-2", company_id="summit", linked_since=NOW)

        with pytest.raises(LinkageError):
            store.load_payload(
                TechnicianPayload(
                    technician_id="tech-1",
                    inspections=make_inspections(passed=0, failed=5),
                    employer_link=other,
                )
            )

        records, revision = store.read("tech-1")
        assert records.inspections == []
        assert revision == before
        assert store.active_link("tech-1").link_id == "link-1"

    def test_inactive_current_link_unlinks(self, store: RecordStore) -> None:
        """The current link reported inactive upstream is closed."""
        link = store.link("tech-1", "acme", link_id="link-1", at=NOW)
        before = store.revision("tech-1")
        ended = link.model_copy(update={"active": False, "unlinked_at": NOW})

        revision = store.load_payload(
            TechnicianPayload(technician_id="tech-1", employer_link=ended)
        )

        assert store.active_link("tech-1") is None
        assert revision == before + 1
        assert store.linked_technicians("acme") == []
        history = store._histories["tech-1"]
        assert history.links[-1].unlinked_at == NOW

    def test_inactive_past_link_is_ignored(self, store: RecordStore) -> None:
        """An old, already closed link does not touch the current one."""
        store.link("tech-1", "acme", link_id="link-1")
        store.unlink("tech-1")
        store.link("tech-1", "summit", link_id="link-2")
        before = store.revision("tech-1")
        old = EmployerLink(
            link_id="link-1", company_id="acme", active=False, linked_since=NOW
        )

        assert store.load_payload(
            TechnicianPayload(technician_id="tech-1", employer_link=old)
        ) == before
        assert store.active_link("tech-1").link_id == "link-2"

    def test_closed_link_cannot_be_reopened(self, store: RecordStore) -> None:
        """Replaying a link that was already closed is rejected."""
        link = store.link("tech-1", "acme", link_id="link-1", at=NOW)
        store.unlink("tech-1")

        with pytest.raises(LinkageError, match="already closed"):
            store.load_payload(
                TechnicianPayload(technician_id="tech-1", employer_link=link)
            )
        assert store.active_link("tech-1") is None


class TestSnapshotCache:
    """Tests for SnapshotCache."""

    @staticmethod
    def _snapshot(revision: int) -> PSRSnapshot:
        rating = calculate_personal_safety_rating(
            RatingComponents(100.0, None, None), RatingMode.SOLO
        )
        return PSRSnapshot(
            technician_id="tech-1", rating=rating, computed_at=NOW, revision=revision
        )

    def test_older_revision_never_replaces_newer(self) -> None:
        """A late, stale recompute is discarded."""
        cache = SnapshotCache()
        assert cache.put(self._snapshot(2))
        assert not cache.put(self._snapshot(1))
        assert cache.get("tech-1").revision == 2

    def test_history_is_bounded(self) -> None:
        """Only the most recent snapshots are kept."""
        cache = SnapshotCache(history_size=3)
        for revision in range(5):
            cache.put(self._snapshot(revision))
        assert [s.revision for s in cache.history("tech-1")] == [2, 3, 4]

    def test_invalidate(self) -> None:
        """Invalidated technicians have no snapshot."""
        cache = SnapshotCache()
        cache.put(self._snapshot(1))
        cache.invalidate("tech-1")
        assert cache.get("tech-1") is None
