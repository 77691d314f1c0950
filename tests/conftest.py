from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.api import create_app
from src.app.settings import AppSettings
from src.db import Base


@pytest_asyncio.fixture
async def session_factory() -> async_sessionmaker:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        app_name="Vocabulary Review (test)",
        app_env="test",
        log_level="DEBUG",
        host="127.0.0.1",
        port=3000,
        review_batch_size=20,
        static_dir=str(tmp_path / "missing-dist"),
        cors_origins=("*",),
    )


@pytest_asyncio.fixture
async def client(settings, session_factory) -> httpx.AsyncClient:
    app = create_app(settings, session_factory=session_factory)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
