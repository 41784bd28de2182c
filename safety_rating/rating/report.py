"""Rating reports for dashboards and hiring reviews."""

import pandas as pd

from safety_rating.rating.scorer import RatingTier
from safety_rating.rating.snapshot import PSRSnapshot

ATTENTION_TIERS = (RatingTier.DEVELOPING, RatingTier.LOW)


def ratings_to_dataframe(snapshots: list[PSRSnapshot]) -> pd.DataFrame:
    """Convert PSR snapshots to a roster DataFrame.

    Args:
        snapshots: List of PSRSnapshot objects

    Returns:
        DataFrame with one row per technician, best score first
    """
    rows = []
    for s in snapshots:
        components = s.components
        rows.append({
            "technician_id": s.technician_id,
            "company_id": s.company_id,
            "score": s.score,
            "tier": s.tier.value,
            "mode": s.rating.mode.value,
            "certification": components.certification,
            "safety_docs": components.safety_docs,
            "quizzes": components.quizzes,
            "work_history": components.work_history,
            "recommendation": s.rating.recommendation,
            "computed_at": s.computed_at,
        })

    columns = [
        "technician_id", "company_id", "score", "tier", "mode",
        "certification", "safety_docs", "quizzes", "work_history",
        "recommendation", "computed_at",
    ]
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values("score", ascending=False, ignore_index=True)


def format_rating_summary(snapshot: PSRSnapshot) -> str:
    """Format a single PSR as human-readable text.

    Args:
        snapshot: PSRSnapshot to format

    Returns:
        Formatted string summary
    """
    components = snapshot.components

    def _fmt(value: float | None) -> str:
        return "n/a" if value is None else f"{value:.0f}%"

    lines = [
        f"Personal Safety Rating: {snapshot.technician_id}",
        f"Mode: {snapshot.rating.mode.value}",
        f"Computed: {snapshot.computed_at.isoformat(timespec='seconds')}",
        "",
        f"Overall Score: {snapshot.score}/100 (Tier: {snapshot.tier.value})",
        "",
        "Score Breakdown:",
        f"  Certification: {_fmt(components.certification)}",
        f"  Safety Documents: {_fmt(components.safety_docs)}",
        f"  Safety Quizzes: {_fmt(components.quizzes)}",
    ]
    if components.work_history is not None:
        lines.append(f"  Work History: {_fmt(components.work_history)}")

    lines.append("")
    lines.append(f"Recommendation: {snapshot.rating.recommendation}")

    return "\n".join(lines)


def generate_workforce_summary(snapshots: list[PSRSnapshot]) -> dict:
    """Generate a roster-wide summary.

    Args:
        snapshots: PSR snapshots of the technicians to summarize

    Returns:
        Dictionary with roster-wide metrics
    """
    if not snapshots:
        return {
            "total_technicians": 0,
            "average_score": 0.0,
            "tier_distribution": {},
            "needs_attention": [],
        }

    tier_dist: dict[str, int] = {}
    for s in snapshots:
        tier_dist[s.tier.value] = tier_dist.get(s.tier.value, 0) + 1

    return {
        "total_technicians": len(snapshots),
        "average_score": sum(s.score for s in snapshots) / len(snapshots),
        "tier_distribution": tier_dist,
        "needs_attention": sorted(
            s.technician_id for s in snapshots if s.tier in ATTENTION_TIERS
        ),
    }
