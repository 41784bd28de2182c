"""Safety documents sub-score from lifetime harness inspections."""

from dataclasses import dataclass

from safety_rating.records.schema import InspectionRecord


@dataclass
class InspectionSummary:
    """Lifetime inspection totals across every employer."""

    total: int
    passed: int
    failed: int
    company_count: int  # distinct issuing companies
    pass_rate_percent: float | None  # None when there are no inspections


def summarize_inspections(inspections: list[InspectionRecord]) -> InspectionSummary:
    """Aggregate a technician's full inspection history.

    No time window and no per-employer split: inspections done for a
    previous employer count exactly like current ones.

    Args:
        inspections: Every inspection on record

    Returns:
        InspectionSummary with lifetime pass rate
    """
    total = len(inspections)
    passed = sum(1 for i in inspections if i.passed)
    companies = {i.company_id for i in inspections if i.company_id is not None}

    return InspectionSummary(
        total=total,
        passed=passed,
        failed=total - passed,
        company_count=len(companies),
        pass_rate_percent=(passed / total) * 100 if total > 0 else None,
    )


def calculate_safety_docs_score(summary: InspectionSummary) -> float | None:
    """Safety documents sub-score (0-100), or None if undefined."""
    return summary.pass_rate_percent
