"""Helpers for working with word persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.review.srs import WordStatus, ensure_aware, initial_schedule, utcnow

from . import Word


LOGGER = logging.getLogger(__name__)

DEFAULT_REVIEW_BATCH_SIZE = 20


class WordStoreError(Exception):
    """Base class for word store failures the API reports to clients."""


class WordNotFoundError(WordStoreError, LookupError):
    """Raised when a word id does not exist."""

    def __init__(self, word_id: int) -> None:
        super().__init__(f"Word {word_id} not found.")
        self.word_id = word_id


class DuplicateWordError(WordStoreError):
    """Raised when the word text is already stored."""

    def __init__(self, word: str) -> None:
        super().__init__(f"Word {word!r} already exists.")
        self.word = word


class ReviewConflictError(WordStoreError):
    """Raised when a concurrent review changed the word between read and write."""

    def __init__(self, word_id: int) -> None:
        super().__init__(f"Word {word_id} was reviewed concurrently; review again.")
        self.word_id = word_id


@dataclass(slots=True)
class WordPayload:
    """Client supplied word content."""

    word: str
    definition: str
    example: Optional[str] = None

    def normalized(self) -> "WordPayload":
        """Return a payload with leading/trailing whitespace stripped."""
        example = self.example.strip() if isinstance(self.example, str) else self.example
        return WordPayload(
            word=self.word.strip(),
            definition=self.definition.strip(),
            example=example or None,
        )


async def get_word_by_id(session: AsyncSession, word_id: int) -> Optional[Word]:
    return await session.get(Word, word_id)


async def get_word_by_text(session: AsyncSession, text: str) -> Optional[Word]:
    result = await session.execute(select(Word).where(Word.word == text.strip()))
    return result.scalars().first()


async def list_words(session: AsyncSession) -> list[Word]:
    """Return every stored word, newest first."""
    result = await session.execute(select(Word).order_by(Word.id.desc()))
    return list(result.scalars().all())


async def create_word(
    session: AsyncSession,
    payload: WordPayload,
    now: Optional[datetime] = None,
) -> Word:
    """Insert a new word scheduled for its first review one interval from now."""
    if now is None:
        now = utcnow()
    now = ensure_aware(now)
    normalized = payload.normalized()

    if await get_word_by_text(session, normalized.word) is not None:
        raise DuplicateWordError(normalized.word)

    schedule = initial_schedule(now)
    word = Word(
        word=normalized.word,
        definition=normalized.definition,
        example=normalized.example,
        status=WordStatus.NEW.value,
        memory_stage=schedule.next_stage,
        review_count=0,
        last_review=None,
        next_review_at=schedule.next_review_at,
        created_at=now,
        updated_at=now,
    )
    session.add(word)
    await session.flush()
    return word


async def update_word(
    session: AsyncSession,
    word_id: int,
    payload: WordPayload,
    now: Optional[datetime] = None,
) -> Word:
    """Replace the text fields of a word, leaving its review state untouched."""
    if now is None:
        now = utcnow()
    now = ensure_aware(now)
    normalized = payload.normalized()

    word = await get_word_by_id(session, word_id)
    if word is None:
        raise WordNotFoundError(word_id)

    if normalized.word != word.word:
        existing = await get_word_by_text(session, normalized.word)
        if existing is not None and existing.id != word_id:
            raise DuplicateWordError(normalized.word)

    word.word = normalized.word
    word.definition = normalized.definition
    word.example = normalized.example
    word.updated_at = now
    await session.flush()
    return word


async def delete_word(session: AsyncSession, word_id: int) -> None:
    word = await get_word_by_id(session, word_id)
    if word is None:
        raise WordNotFoundError(word_id)
    await session.delete(word)
    await session.flush()


async def delete_all_words(session: AsyncSession) -> int:
    """Remove every word and return how many rows were deleted."""
    count = await session.scalar(select(func.count()).select_from(Word))
    await session.execute(delete(Word).execution_options(synchronize_session=False))
    session.expunge_all()
    return count or 0


async def import_words(
    session: AsyncSession,
    payloads: Iterable[WordPayload],
    now: Optional[datetime] = None,
) -> int:
    """Bulk-insert words, skipping any whose text is already stored.

    Returns the number of inserted rows. Repeated entries within the batch
    are only inserted once.
    """
    if now is None:
        now = utcnow()
    now = ensure_aware(now)

    normalized = [payload.normalized() for payload in payloads]
    if not normalized:
        return 0

    texts = {payload.word for payload in normalized}
    result = await session.execute(select(Word.word).where(Word.word.in_(texts)))
    seen = set(result.scalars().all())

    schedule = initial_schedule(now)
    inserted = 0
    for payload in normalized:
        if payload.word in seen:
            LOGGER.debug("Skipping duplicate word %r during import.", payload.word)
            continue
        seen.add(payload.word)
        session.add(
            Word(
                word=payload.word,
                definition=payload.definition,
                example=payload.example,
                status=WordStatus.NEW.value,
                memory_stage=schedule.next_stage,
                review_count=0,
                next_review_at=schedule.next_review_at,
                created_at=now,
                updated_at=now,
            )
        )
        inserted += 1

    await session.flush()
    return inserted


async def update_word_review_fields(
    session: AsyncSession,
    word_id: int,
    *,
    last_review: datetime,
    next_review_at: datetime,
    memory_stage: int,
    review_count: int,
    status: str,
    expected_stage: Optional[int] = None,
    expected_review_count: Optional[int] = None,
) -> Word:
    """Persist a review outcome with a single conditional UPDATE.

    When ``expected_stage`` and ``expected_review_count`` are given the row is
    only written if both stored values still match what the caller read. The
    stage alone is not enough: at the top or bottom stage a review leaves it
    unchanged, and two concurrent correct answers would each add one to the
    same starting count.
    """
    last_review = ensure_aware(last_review)
    next_review_at = ensure_aware(next_review_at)

    stmt = update(Word).where(Word.id == word_id)
    if expected_stage is not None:
        stmt = stmt.where(func.coalesce(Word.memory_stage, 0) == expected_stage)
    if expected_review_count is not None:
        stmt = stmt.where(func.coalesce(Word.review_count, 0) == expected_review_count)
    stmt = stmt.values(
        last_review=last_review,
        next_review_at=next_review_at,
        memory_stage=memory_stage,
        review_count=review_count,
        status=status,
        updated_at=last_review,
    ).execution_options(synchronize_session=False)

    result = await session.execute(stmt)
    if not result.rowcount:
        if await session.get(Word, word_id, populate_existing=True) is None:
            raise WordNotFoundError(word_id)
        raise ReviewConflictError(word_id)

    word = await session.get(Word, word_id, populate_existing=True)
    if word is None:  # pragma: no cover - deleted between statements
        raise WordNotFoundError(word_id)
    return word


async def select_due_for_review(
    session: AsyncSession,
    now: Optional[datetime] = None,
    limit: int = DEFAULT_REVIEW_BATCH_SIZE,
) -> list[Word]:
    """Return a random batch of words whose review time has come or was never set."""
    if now is None:
        now = utcnow()
    now = ensure_aware(now)

    stmt = (
        select(Word)
        .where(or_(Word.next_review_at <= now, Word.next_review_at.is_(None)))
        .order_by(func.random())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
