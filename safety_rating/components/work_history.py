"""Work history sub-score, only defined while linked to an employer."""

from dataclasses import dataclass

from safety_rating.records.schema import EmployerLink, IncidentRecord, WorkSession
from safety_rating.utils.config import (
    WORK_HISTORY_FLOOR,
    WORK_HISTORY_INCIDENT_PENALTY,
    WORK_HISTORY_NO_DATA,
    WORK_HISTORY_START,
)


@dataclass
class WorkHistorySummary:
    """Incidents and sessions under the current employer link."""

    link_id: str
    company_id: str
    session_count: int
    incident_count: int
    score: float


def summarize_work_history(
    link: EmployerLink | None,
    incidents: list[IncidentRecord],
    work_sessions: list[WorkSession],
) -> WorkHistorySummary | None:
    """Score the technician's record under the active employer link.

    Args:
        link: Current employer link (None or inactive means solo)
        incidents: All incidents on record
        work_sessions: All work sessions on record

    Returns:
        WorkHistorySummary, or None when the technician is not linked
    """
    if link is None or not link.active:
        return None

    incident_count = sum(1 for i in incidents if i.link_id == link.link_id)
    session_count = sum(1 for s in work_sessions if s.link_id == link.link_id)

    if session_count == 0:
        # New under this employer: no data, not a perfect record
        score = WORK_HISTORY_NO_DATA
    else:
        score = max(
            WORK_HISTORY_FLOOR,
            WORK_HISTORY_START - WORK_HISTORY_INCIDENT_PENALTY * incident_count,
        )

    return WorkHistorySummary(
        link_id=link.link_id,
        company_id=link.company_id,
        session_count=session_count,
        incident_count=incident_count,
        score=score,
    )


def calculate_work_history_score(summary: WorkHistorySummary | None) -> float | None:
    """Work history sub-score (50-100), or None when solo."""
    return summary.score if summary is not None else None
