import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, StrictBool, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.words import (
    WordNotFoundError,
    WordPayload,
    create_word,
    delete_all_words,
    delete_word,
    get_word_by_id,
    import_words,
    list_words,
    select_due_for_review,
    update_word,
)
from src.review.service import record_review_by_id
from src.review.srs import ensure_aware

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/words", tags=["words"])


def get_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


# ---------- Schemas ----------

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WordIn(CamelModel):
    word: str
    definition: str
    example: Optional[str] = None

    @field_validator("word", "definition")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("example")
    @classmethod
    def _example_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank when provided")
        return value

    def to_payload(self) -> WordPayload:
        return WordPayload(word=self.word, definition=self.definition, example=self.example)


class WordOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    word: str
    definition: str
    example: Optional[str] = None
    status: str
    memory_stage: int
    review_count: int
    last_review: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    # SQLite hands back naive values; everything is stored in UTC.
    @field_validator("last_review", "next_review_at", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None


class ReviewIn(CamelModel):
    is_correct: StrictBool


class ReviewOut(CamelModel):
    id: int
    next_review_at: datetime
    memory_stage: int
    review_count: int
    status: str
    last_review: datetime


class ImportOut(CamelModel):
    imported: int


class DeleteAllOut(CamelModel):
    success: bool
    deleted_count: int


# ---------- Endpoints ----------

@router.get("", response_model=List[WordOut])
async def list_all_words(factory: async_sessionmaker[AsyncSession] = Depends(get_factory)):
    async with factory() as session:
        return await list_words(session)


@router.get("/review", response_model=List[WordOut])
async def words_due_for_review(
    request: Request,
    factory: async_sessionmaker[AsyncSession] = Depends(get_factory),
):
    limit = request.app.state.settings.review_batch_size
    async with factory() as session:
        return await select_due_for_review(session, limit=limit)


@router.get("/{word_id}", response_model=WordOut)
async def get_word(word_id: int, factory: async_sessionmaker[AsyncSession] = Depends(get_factory)):
    async with factory() as session:
        word = await get_word_by_id(session, word_id)
    if word is None:
        raise WordNotFoundError(word_id)
    return word


@router.post("", response_model=WordOut, status_code=status.HTTP_201_CREATED)
async def add_word(payload: WordIn, factory: async_sessionmaker[AsyncSession] = Depends(get_factory)):
    async with factory() as session:
        async with session.begin():
            word = await create_word(session, payload.to_payload())
    LOGGER.info("Created word %r (id=%s).", word.word, word.id)
    return word


@router.post("/import", response_model=ImportOut)
async def import_word_list(
    payload: List[WordIn],
    factory: async_sessionmaker[AsyncSession] = Depends(get_factory),
):
    async with factory() as session:
        async with session.begin():
            imported = await import_words(session, [item.to_payload() for item in payload])
    LOGGER.info("Imported %s of %s words.", imported, len(payload))
    return ImportOut(imported=imported)


@router.put("/{word_id}", response_model=WordOut)
async def replace_word(
    word_id: int,
    payload: WordIn,
    factory: async_sessionmaker[AsyncSession] = Depends(get_factory),
):
    async with factory() as session:
        async with session.begin():
            word = await update_word(session, word_id, payload.to_payload())
    LOGGER.info("Updated word %r (id=%s).", word.word, word_id)
    return word


@router.delete("", response_model=DeleteAllOut)
async def remove_all_words(factory: async_sessionmaker[AsyncSession] = Depends(get_factory)):
    async with factory() as session:
        async with session.begin():
            deleted = await delete_all_words(session)
    LOGGER.info("Deleted all words (%s rows).", deleted)
    return DeleteAllOut(success=True, deleted_count=deleted)


@router.delete("/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_word(word_id: int, factory: async_sessionmaker[AsyncSession] = Depends(get_factory)):
    async with factory() as session:
        async with session.begin():
            await delete_word(session, word_id)
    LOGGER.info("Deleted word id=%s.", word_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{word_id}/review", response_model=ReviewOut)
async def review_word(
    word_id: int,
    payload: ReviewIn,
    factory: async_sessionmaker[AsyncSession] = Depends(get_factory),
):
    async with factory() as session:
        async with session.begin():
            outcome = await record_review_by_id(session, word_id, payload.is_correct)
    return ReviewOut(
        id=outcome.word_id,
        next_review_at=outcome.next_review_at,
        memory_stage=outcome.memory_stage,
        review_count=outcome.review_count,
        status=outcome.status.value,
        last_review=outcome.last_review,
    )
