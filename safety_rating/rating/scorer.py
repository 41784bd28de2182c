"""Personal Safety Rating: weighted aggregation and tier classification."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from safety_rating.components.certification import evaluate_certification
from safety_rating.components.quizzes import QuizAvailabilityResolver, summarize_quizzes
from safety_rating.components.safety_docs import summarize_inspections
from safety_rating.components.work_history import summarize_work_history
from safety_rating.rating.weights import RatingMode, WEIGHT_SCHEMES, select_mode
from safety_rating.records.schema import TechnicianPayload
from safety_rating.utils.config import (
    CERT_SCORE_EXPIRED,
    CERT_SCORE_NO_EXPIRY,
    CERT_SCORE_NONE,
    CERT_SCORE_UNVERIFIED,
    COMPONENT_CERTIFICATION,
    COMPONENT_QUIZZES,
    COMPONENT_SAFETY_DOCS,
    COMPONENT_WORK_HISTORY,
    DEFAULT_ZERO_DENOMINATOR_POLICY,
    LOWEST_TIER,
    NEUTRAL_COMPONENT_SCORE,
    SCORE_PRECISION,
    TIER_THRESHOLDS,
    ZeroDenominatorPolicy,
)


class RatingTier(str, Enum):
    """PSR rating tiers."""

    EXCELLENT = "Excellent"  # 90+
    GOOD = "Good"  # 70-89.99
    DEVELOPING = "Developing"  # 50-69.99
    LOW = "Low"  # below 50


@dataclass(frozen=True)
class RatingComponents:
    """Sub-scores (0-100). None means undefined or not applicable."""

    certification: float
    safety_docs: float | None
    quizzes: float | None
    work_history: float | None = None

    def as_mapping(self) -> dict[str, float | None]:
        """Sub-scores keyed by component name."""
        return {
            COMPONENT_CERTIFICATION: self.certification,
            COMPONENT_SAFETY_DOCS: self.safety_docs,
            COMPONENT_QUIZZES: self.quizzes,
            COMPONENT_WORK_HISTORY: self.work_history,
        }

    def to_dict(self) -> dict[str, float | None]:
        """Convert to dictionary; work history only appears when present."""
        data = self.as_mapping()
        if data[COMPONENT_WORK_HISTORY] is None:
            del data[COMPONENT_WORK_HISTORY]
        return data


@dataclass(frozen=True)
class PersonalSafetyRating:
    """Complete PSR with breakdown."""

    score: float  # 0-100 weighted composite
    tier: RatingTier
    mode: RatingMode
    components: RatingComponents  # values that entered the score
    weighted_components: tuple[str, ...]
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the consumer-facing dictionary."""
        return {
            "score": self.score,
            "tier": self.tier.value,
            "mode": self.mode.value,
            "components": self.components.to_dict(),
            "recommendation": self.recommendation,
        }


def calculate_personal_safety_rating(
    components: RatingComponents,
    mode: RatingMode,
    policy: ZeroDenominatorPolicy = DEFAULT_ZERO_DENOMINATOR_POLICY,
) -> PersonalSafetyRating:
    """Combine sub-scores into a PSR.

    Pure function of the sub-scores, the mode and the zero-denominator
    policy. In solo mode work history is ignored even when supplied.

    Args:
        components: Raw sub-scores (None for undefined)
        mode: Weighting mode
        policy: How undefined sub-scores enter the score

    Returns:
        PersonalSafetyRating with score, tier and recommendation

    Raises:
        ValueError: If linked mode is requested without a work history score
    """
    scheme = WEIGHT_SCHEMES[mode]
    raw = components.as_mapping()

    if mode is RatingMode.LINKED and raw[COMPONENT_WORK_HISTORY] is None:
        raise ValueError("Linked rating requires a work history sub-score")

    effective: dict[str, float | None] = {}
    for component in scheme.components:
        value = raw[component]
        if value is None:
            value = _substitute_undefined(policy)
        effective[component] = value

    included = {c: v for c, v in effective.items() if v is not None}
    total_weight = sum(scheme.weights[c] for c in included)
    weighted_sum = sum(
        _clamp(v) * scheme.weights[c] for c, v in included.items()
    )
    # Certification is always defined, so total_weight > 0
    score = round(_clamp(weighted_sum / total_weight), SCORE_PRECISION)

    scored = RatingComponents(
        certification=effective[COMPONENT_CERTIFICATION],
        safety_docs=effective[COMPONENT_SAFETY_DOCS],
        quizzes=effective[COMPONENT_QUIZZES],
        work_history=effective.get(COMPONENT_WORK_HISTORY),
    )

    return PersonalSafetyRating(
        score=score,
        tier=classify_tier(score),
        mode=mode,
        components=scored,
        weighted_components=tuple(included),
        recommendation=_generate_recommendation(scored),
    )


def rate_technician(
    records: TechnicianPayload,
    as_of: date | None = None,
    resolver: QuizAvailabilityResolver | None = None,
    policy: ZeroDenominatorPolicy = DEFAULT_ZERO_DENOMINATOR_POLICY,
) -> PersonalSafetyRating:
    """Run every component calculator over a technician's records.

    Args:
        records: The technician's current records
        as_of: Date used for certification expiry (default: today)
        resolver: Quiz availability resolver (a fresh one if omitted)
        policy: How undefined sub-scores enter the score

    Returns:
        PersonalSafetyRating for the technician
    """
    as_of = as_of or date.today()
    resolver = resolver or QuizAvailabilityResolver()
    link = records.employer_link
    linked = link is not None and link.active

    certification = evaluate_certification(records.certifications, as_of)
    inspections = summarize_inspections(records.inspections)
    available = resolver.resolve(
        records.certifications, link, records.company_documents
    )
    quizzes = summarize_quizzes(records.quiz_attempts, available)
    work_history = summarize_work_history(link, records.incidents, records.work_sessions)

    components = RatingComponents(
        certification=certification.score,
        safety_docs=inspections.pass_rate_percent,
        quizzes=quizzes.pass_rate_percent,
        work_history=work_history.score if work_history else None,
    )
    return calculate_personal_safety_rating(components, select_mode(linked), policy)


def classify_tier(score: float) -> RatingTier:
    """Map a PSR to its tier. Lower bounds are inclusive."""
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return RatingTier(tier)
    return RatingTier(LOWEST_TIER)


def _substitute_undefined(policy: ZeroDenominatorPolicy) -> float | None:
    """Value used for an undefined sub-score under the given policy."""
    if policy is ZeroDenominatorPolicy.NEUTRAL:
        return NEUTRAL_COMPONENT_SCORE
    if policy is ZeroDenominatorPolicy.ZERO:
        return 0.0
    return None


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def _generate_recommendation(components: RatingComponents) -> str:
    """Generate actionable advice from the weakest components."""
    issues = []

    cert_advice = {
        CERT_SCORE_NONE: "Add your rope access certification to your profile",
        CERT_SCORE_EXPIRED: "Your certification has expired - renew it",
        CERT_SCORE_NO_EXPIRY: "Add the expiry date of your certification",
        CERT_SCORE_UNVERIFIED: "Get your certification verified",
    }
    if components.certification in cert_advice:
        issues.append(cert_advice[components.certification])

    if components.safety_docs is None:
        issues.append("Complete daily harness inspections to build your safety record")
    elif components.safety_docs < 90:
        issues.append(
            f"Harness inspection pass rate is {components.safety_docs:.0f}% - "
            "inspect before every work session"
        )

    if components.quizzes is None or components.quizzes < 100:
        issues.append("Complete all available safety quizzes")

    if components.work_history is not None and components.work_history < 100:
        issues.append("Maintain a clean incident record on all job sites")

    if not issues:
        return "Safety record is excellent - keep it up"

    return "; ".join(issues)
