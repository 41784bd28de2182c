"""Configuration constants for the Safety Rating Engine."""

import os
from enum import Enum


class ZeroDenominatorPolicy(str, Enum):
    """How an undefined sub-score (0/0) enters the PSR."""

    EXCLUDE = "exclude"  # drop the component, renormalize remaining weights
    NEUTRAL = "neutral"  # substitute NEUTRAL_COMPONENT_SCORE
    ZERO = "zero"        # substitute 0


# Component keys, as exposed to consumers
COMPONENT_CERTIFICATION = "certification"
COMPONENT_SAFETY_DOCS = "safetyDocs"
COMPONENT_QUIZZES = "quizzes"
COMPONENT_WORK_HISTORY = "workHistory"

# PSR weights as integer percentages (each scheme must sum to 100)
SOLO_WEIGHTS: dict[str, int] = {
    COMPONENT_CERTIFICATION: 33,
    COMPONENT_SAFETY_DOCS: 33,
    COMPONENT_QUIZZES: 34,
}

LINKED_WEIGHTS: dict[str, int] = {
    COMPONENT_CERTIFICATION: 25,
    COMPONENT_SAFETY_DOCS: 25,
    COMPONENT_QUIZZES: 25,
    COMPONENT_WORK_HISTORY: 25,
}

WEIGHT_TOTAL = 100

# Tier lower bounds, checked top-down (closed lower bound)
TIER_THRESHOLDS: list[tuple[float, str]] = [
    (90.0, "Excellent"),
    (70.0, "Good"),
    (50.0, "Developing"),
]
LOWEST_TIER = "Low"

# Certification sub-score levels
CERT_SCORE_VERIFIED = 100.0
CERT_SCORE_UNVERIFIED = 75.0
CERT_SCORE_NO_EXPIRY = 50.0
CERT_SCORE_EXPIRED = 25.0
CERT_SCORE_NONE = 0.0

MIN_CERT_LEVEL = 1
MAX_CERT_LEVEL = 3

# Certification knowledge quizzes per body and level: (quiz_id, level)
# Cumulative: a level N technician sees every quiz with level <= N
CERTIFICATION_QUIZZES: dict[str, list[tuple[str, int]]] = {
    "irata": [
        ("irata_level_1_a", 1),
        ("irata_level_1_b", 1),
        ("irata_level_2_a", 2),
        ("irata_level_2_b", 2),
        ("irata_level_3_a", 3),
        ("irata_level_3_b", 3),
    ],
    "sprat": [
        ("sprat_level_1_a", 1),
        ("sprat_level_1_b", 1),
        ("sprat_level_2_a", 2),
        ("sprat_level_2_b", 2),
        ("sprat_level_3_a", 3),
        ("sprat_level_3_b", 3),
    ],
}

# Company documents that come with an acknowledgment quiz
ACKNOWLEDGMENT_DOCUMENT_TYPES = frozenset({
    "health_safety_manual",
    "company_policy",
    "safe_work_procedure",
    "safe_work_practice",
})
DOCUMENT_QUIZ_PREFIX = "doc_ack:"

# Work history
WORK_HISTORY_START = 100.0
WORK_HISTORY_INCIDENT_PENALTY = 10.0
WORK_HISTORY_FLOOR = 50.0
WORK_HISTORY_NO_DATA = 50.0  # no work sessions under the current link

# Undefined sub-scores
DEFAULT_ZERO_DENOMINATOR_POLICY = ZeroDenominatorPolicy.EXCLUDE
NEUTRAL_COMPONENT_SCORE = 50.0

# Rounding for published scores
SCORE_PRECISION = 2

# Recompute retry after a failed recompute (seconds, exponential)
RECOMPUTE_MAX_RETRIES = 3
RECOMPUTE_RETRY_BASE_DELAY = 0.5
RECOMPUTE_RETRY_WORKERS = 2

# Records API (host application)
RECORDS_API_BASE_URL = os.environ.get(
    "SAFETY_RECORDS_API_URL", "http://localhost:5000/api"
)
DEFAULT_TIMEOUT = 10  # seconds
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 2  # exponential backoff multiplier
RECORDS_API_TOKEN = os.environ.get("SAFETY_RECORDS_API_TOKEN")
# Longest Retry-After the client waits out before giving up on a 429
RATE_LIMIT_MAX_WAIT = 30  # seconds
