"""Apply review answers to stored words."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.db import Word
from src.db.words import WordNotFoundError, get_word_by_id, update_word_review_fields
from src.review.srs import WordStatus, compute_next_review, derive_status, ensure_aware, utcnow


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ReviewOutcome:
    """Fields changed by a single review answer."""

    word_id: int
    next_review_at: datetime
    memory_stage: int
    review_count: int
    status: WordStatus
    last_review: datetime


async def record_review(
    session: AsyncSession,
    word: Word,
    was_correct: bool,
    *,
    now: Optional[datetime] = None,
) -> ReviewOutcome:
    """Move ``word`` to its next stage and persist the new schedule.

    Only correct answers count towards ``review_count``. The write is
    conditional on the stage and count read here, so a concurrent review of
    the same word surfaces as :class:`~src.db.words.ReviewConflictError` instead of
    silently overwriting the other result.
    """
    if now is None:
        now = utcnow()
    now = ensure_aware(now)

    stored_stage = word.memory_stage or 0
    stored_review_count = word.review_count or 0
    schedule = compute_next_review(stored_stage, was_correct, now)

    review_count = stored_review_count + 1 if was_correct else stored_review_count

    status = derive_status(schedule.next_stage)

    await update_word_review_fields(
        session,
        word.id,
        last_review=now,
        next_review_at=schedule.next_review_at,
        memory_stage=schedule.next_stage,
        review_count=review_count,
        status=status.value,
        expected_stage=stored_stage,
        expected_review_count=stored_review_count,
    )

    LOGGER.info(
        "Reviewed word %s: correct=%s stage %s -> %s, next review at %s.",
        word.id,
        was_correct,
        stored_stage,
        schedule.next_stage,
        schedule.next_review_at.isoformat(),
    )

    return ReviewOutcome(
        word_id=word.id,
        next_review_at=schedule.next_review_at,
        memory_stage=schedule.next_stage,
        review_count=review_count,
        status=status,
        last_review=now,
    )


async def record_review_by_id(
    session: AsyncSession,
    word_id: int,
    was_correct: bool,
    *,
    now: Optional[datetime] = None,
) -> ReviewOutcome:
    """Load a word and record a review answer for it."""
    word = await get_word_by_id(session, word_id)
    if word is None:
        raise WordNotFoundError(word_id)
    return await record_review(session, word, was_correct, now=now)
