from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from src.db import Word
from src.db.words import (
    ReviewConflictError,
    WordNotFoundError,
    WordPayload,
    create_word,
    get_word_by_id,
    select_due_for_review,
)
from src.review.service import record_review, record_review_by_id
from src.review.srs import WordStatus, ensure_aware


CREATED = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
NOW = datetime(2024, 6, 3, 8, 0, tzinfo=timezone.utc)


async def _add_word(session, text: str, *, stage: int = 0, review_count: int = 0) -> Word:
    word = await create_word(session, WordPayload(word=text, definition=f"meaning of {text}"), now=CREATED)
    word.memory_stage = stage
    word.review_count = review_count
    await session.flush()
    return word


@pytest.mark.asyncio
async def test_correct_answer_from_stage_two_masters_word(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "gregarious", stage=2, review_count=4)
            outcome = await record_review(session, word, True, now=NOW)

        stored = await get_word_by_id(session, word.id)

    assert outcome.memory_stage == 3
    assert outcome.status is WordStatus.MASTERED
    assert outcome.next_review_at == NOW + timedelta(days=7)
    assert outcome.review_count == 5
    assert outcome.last_review == NOW

    assert stored is not None
    assert stored.memory_stage == 3
    assert stored.status == "mastered"
    assert stored.review_count == 5
    assert ensure_aware(stored.last_review) == NOW
    assert ensure_aware(stored.next_review_at) == NOW + timedelta(days=7)


@pytest.mark.asyncio
async def test_incorrect_answer_at_stage_zero_stays_on_floor(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "laconic", stage=0, review_count=2)
            outcome = await record_review(session, word, False, now=NOW)

        stored = await get_word_by_id(session, word.id)

    assert outcome.memory_stage == 0
    assert outcome.status is WordStatus.LEARNING
    assert outcome.next_review_at == NOW + timedelta(days=1)
    assert outcome.review_count == 2
    assert stored is not None
    assert stored.status == "learning"


@pytest.mark.asyncio
async def test_reviewed_word_at_stage_zero_is_no_longer_new(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "pithy", stage=1)
            outcome = await record_review(session, word, False, now=NOW)

    assert outcome.memory_stage == 0
    assert outcome.status is WordStatus.LEARNING


@pytest.mark.asyncio
async def test_review_by_id_reports_missing_word(session_factory) -> None:
    async with session_factory() as session:
        with pytest.raises(WordNotFoundError):
            async with session.begin():
                await record_review_by_id(session, 4242, True, now=NOW)


@pytest.mark.asyncio
async def test_stale_stage_raises_conflict(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "sanguine", stage=1)

        with pytest.raises(ReviewConflictError):
            async with session.begin():
                # Another review moved the word on after it was read.
                await session.execute(
                    update(Word)
                    .where(Word.id == word.id)
                    .values(memory_stage=2)
                    .execution_options(synchronize_session=False)
                )
                await record_review(session, word, True, now=NOW)

        stored = await get_word_by_id(session, word.id)

    assert stored is not None
    assert stored.memory_stage == 1
    assert stored.review_count == 0


@pytest.mark.asyncio
async def test_reviewed_word_leaves_due_selection_until_next_interval(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "verbose")

        async with session.begin():
            due_before = await select_due_for_review(session, now=NOW)

        async with session.begin():
            await record_review_by_id(session, word.id, True, now=NOW)

        async with session.begin():
            due_tomorrow = await select_due_for_review(session, now=NOW + timedelta(days=1))
            due_later = await select_due_for_review(session, now=NOW + timedelta(days=2))

    assert [w.id for w in due_before] == [word.id]
    assert due_tomorrow == []
    assert [w.id for w in due_later] == [word.id]


@pytest.mark.asyncio
async def test_clock_with_utc_offset_is_stored_as_the_same_instant(session_factory) -> None:
    local_now = datetime(2024, 6, 3, 8, 0, tzinfo=timezone(timedelta(hours=5)))
    due_at = local_now + timedelta(days=2)

    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "ephemeral")
            outcome = await record_review(session, word, True, now=local_now)

        async with session.begin():
            stored = await get_word_by_id(session, word.id)
            due_just_before = await select_due_for_review(session, now=due_at - timedelta(minutes=1))
            due_just_after = await select_due_for_review(session, now=due_at + timedelta(minutes=1))

    assert outcome.next_review_at == due_at
    assert outcome.next_review_at.utcoffset() == timedelta(0)
    assert stored is not None
    assert ensure_aware(stored.next_review_at) == due_at
    assert ensure_aware(stored.last_review) == local_now
    assert due_just_before == []
    assert [w.id for w in due_just_after] == [word.id]


@pytest.mark.asyncio
async def test_concurrent_correct_reviews_at_top_stage_do_not_lose_a_count(session_factory) -> None:
    async with session_factory() as session:
        async with session.begin():
            word = await _add_word(session, "perennial", stage=5, review_count=3)
        word_id = word.id

    async with session_factory() as first:
        stale = await get_word_by_id(first, word_id)

        async with session_factory() as second:
            async with second.begin():
                current = await get_word_by_id(second, word_id)
                await record_review(second, current, True, now=NOW)

        with pytest.raises(ReviewConflictError):
            await record_review(first, stale, True, now=NOW)
        await first.rollback()

    async with session_factory() as session:
        stored = await get_word_by_id(session, word_id)

    assert stored is not None
    assert stored.memory_stage == 5
    assert stored.review_count == 4
