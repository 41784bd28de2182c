"""Configuration and logging helpers."""

from safety_rating.utils.config import (
    DEFAULT_ZERO_DENOMINATOR_POLICY,
    LINKED_WEIGHTS,
    SOLO_WEIGHTS,
    TIER_THRESHOLDS,
    ZeroDenominatorPolicy,
)
from safety_rating.utils.logging_config import configure_logging, get_logger

__all__ = [
    "ZeroDenominatorPolicy",
    "DEFAULT_ZERO_DENOMINATOR_POLICY",
    "SOLO_WEIGHTS",
    "LINKED_WEIGHTS",
    "TIER_THRESHOLDS",
    "configure_logging",
    "get_logger",
]
