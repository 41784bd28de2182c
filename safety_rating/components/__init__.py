"""Component calculators for the Personal Safety Rating."""

from safety_rating.components.certification import (
    CertificationResult,
    CertificationStatus,
    calculate_certification_score,
    classify_certification,
    evaluate_certification,
    select_primary_certification,
)
from safety_rating.components.quizzes import (
    AvailableQuizzes,
    QuizAvailabilityResolver,
    QuizSummary,
    calculate_quiz_score,
    latest_attempts,
    summarize_quizzes,
)
from safety_rating.components.safety_docs import (
    InspectionSummary,
    calculate_safety_docs_score,
    summarize_inspections,
)
from safety_rating.components.work_history import (
    WorkHistorySummary,
    calculate_work_history_score,
    summarize_work_history,
)

__all__ = [
    # Certification
    "CertificationResult",
    "CertificationStatus",
    "select_primary_certification",
    "classify_certification",
    "evaluate_certification",
    "calculate_certification_score",
    # Safety documents
    "InspectionSummary",
    "summarize_inspections",
    "calculate_safety_docs_score",
    # Quizzes
    "AvailableQuizzes",
    "QuizAvailabilityResolver",
    "QuizSummary",
    "latest_attempts",
    "summarize_quizzes",
    "calculate_quiz_score",
    # Work history
    "WorkHistorySummary",
    "summarize_work_history",
    "calculate_work_history_score",
]
