"""Spaced-repetition scheduling helpers for vocabulary reviews."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional


# Review spacing in days for each memory stage.
INTERVAL_DAYS: tuple[int, ...] = (1, 2, 4, 7, 15, 30)
MIN_STAGE = 0
MAX_STAGE = len(INTERVAL_DAYS) - 1

MASTERED_STAGE = 3
REVIEW_STAGE = 1


class WordStatus(str, Enum):
    """Mastery label stored alongside each word."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


@dataclass(slots=True)
class ReviewSchedule:
    """Calculated review data for a word after an answer."""

    next_stage: int
    next_review_at: datetime
    interval: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` in UTC, reading naive datetimes (as returned by SQLite) as UTC.

    SQLite stores only the wall-clock fields, so every value written must
    already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clamp_stage(stage: Optional[int]) -> int:
    """Force a stored stage into the valid interval table range."""
    if stage is None:
        return MIN_STAGE
    return max(MIN_STAGE, min(MAX_STAGE, int(stage)))


def compute_next_review(
    current_stage: Optional[int],
    was_correct: bool,
    now: Optional[datetime] = None,
) -> ReviewSchedule:
    """Advance or regress one stage and schedule the next review from ``now``.

    A correct answer moves the word one stage up (capped at the longest
    interval), an incorrect one moves it one stage down (floored at the
    shortest). The next review time is always counted from ``now``, not from
    the previously scheduled date, so overdue words answered incorrectly are
    simply rescheduled with the shorter interval.
    """
    if now is None:
        now = utcnow()
    now = ensure_aware(now)

    stage = clamp_stage(current_stage)
    if was_correct:
        next_stage = min(stage + 1, MAX_STAGE)
    else:
        next_stage = max(stage - 1, MIN_STAGE)

    interval = INTERVAL_DAYS[next_stage]
    return ReviewSchedule(
        next_stage=next_stage,
        next_review_at=now + timedelta(days=interval),
        interval=interval,
    )


def initial_schedule(now: Optional[datetime] = None) -> ReviewSchedule:
    """Schedule for a freshly created word: stage 0, due after the first interval."""
    if now is None:
        now = utcnow()
    now = ensure_aware(now)

    interval = INTERVAL_DAYS[MIN_STAGE]
    return ReviewSchedule(
        next_stage=MIN_STAGE,
        next_review_at=now + timedelta(days=interval),
        interval=interval,
    )


def derive_status(next_stage: Optional[int], reviewed: bool = True) -> WordStatus:
    """Return the mastery status for a stage.

    Words that have never been reviewed keep the ``new`` status regardless of
    their stage; afterwards the status depends on the stage alone.
    """
    if not reviewed:
        return WordStatus.NEW

    stage = clamp_stage(next_stage)
    if stage >= MASTERED_STAGE:
        return WordStatus.MASTERED
    if stage >= REVIEW_STAGE:
        return WordStatus.REVIEW
    return WordStatus.LEARNING
