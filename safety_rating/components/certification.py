"""Certification sub-score."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from safety_rating.records.schema import Certification
from safety_rating.utils.config import (
    CERT_SCORE_EXPIRED,
    CERT_SCORE_NO_EXPIRY,
    CERT_SCORE_NONE,
    CERT_SCORE_UNVERIFIED,
    CERT_SCORE_VERIFIED,
)


class CertificationStatus(str, Enum):
    """State of the primary certification, in scoring precedence order."""

    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    NO_EXPIRY = "no_expiry"
    EXPIRED = "expired"
    NONE = "none"


STATUS_SCORES: dict[CertificationStatus, float] = {
    CertificationStatus.VERIFIED: CERT_SCORE_VERIFIED,
    CertificationStatus.UNVERIFIED: CERT_SCORE_UNVERIFIED,
    CertificationStatus.NO_EXPIRY: CERT_SCORE_NO_EXPIRY,
    CertificationStatus.EXPIRED: CERT_SCORE_EXPIRED,
    CertificationStatus.NONE: CERT_SCORE_NONE,
}


@dataclass
class CertificationResult:
    """Evaluated primary certification."""

    certification: Certification | None
    status: CertificationStatus
    score: float


def select_primary_certification(
    certifications: list[Certification],
) -> Certification | None:
    """Pick the certification that drives the score.

    Highest level wins; ties go to verified, then to the latest expiry
    (a missing expiry sorts last).

    Args:
        certifications: All certifications on file

    Returns:
        The primary certification, or None if there are none
    """
    if not certifications:
        return None

    return max(
        certifications,
        key=lambda c: (
            c.level,
            c.verified,
            c.expires_at is not None,
            c.expires_at or date.min,
        ),
    )


def classify_certification(
    certification: Certification | None,
    as_of: date,
) -> CertificationStatus:
    """Classify a certification. First matching rule wins."""
    if certification is None:
        return CertificationStatus.NONE
    if (
        certification.verified
        and certification.expires_at is not None
        and not certification.is_expired(as_of)
    ):
        return CertificationStatus.VERIFIED
    if not certification.verified:
        return CertificationStatus.UNVERIFIED
    if certification.expires_at is None:
        return CertificationStatus.NO_EXPIRY
    return CertificationStatus.EXPIRED


def evaluate_certification(
    certifications: list[Certification],
    as_of: date,
) -> CertificationResult:
    """Evaluate a technician's certifications.

    Args:
        certifications: All certifications on file
        as_of: Date against which expiry is judged

    Returns:
        CertificationResult for the primary certification
    """
    primary = select_primary_certification(certifications)
    status = classify_certification(primary, as_of)
    return CertificationResult(
        certification=primary,
        status=status,
        score=STATUS_SCORES[status],
    )


def calculate_certification_score(result: CertificationResult) -> float:
    """Certification sub-score (0-100). Always defined."""
    return result.score
