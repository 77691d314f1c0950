"""Spaced-repetition scheduling and review workflow."""

from .srs import (
    INTERVAL_DAYS,
    MAX_STAGE,
    ReviewSchedule,
    WordStatus,
    compute_next_review,
    derive_status,
    initial_schedule,
)

__all__ = [
    "INTERVAL_DAYS",
    "MAX_STAGE",
    "ReviewSchedule",
    "WordStatus",
    "compute_next_review",
    "derive_status",
    "initial_schedule",
]
