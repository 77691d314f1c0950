"""Configuration helpers for the vocabulary review service."""

from __future__ import annotations

import os
from dataclasses import dataclass

from src.db.words import DEFAULT_REVIEW_BATCH_SIZE


DEFAULT_PORT = 3000
MAX_REVIEW_BATCH_SIZE = 200


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    host: str
    port: int
    review_batch_size: int
    static_dir: str
    cors_origins: tuple[str, ...]

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "Vocabulary Review")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        host = os.getenv("HOST", "127.0.0.1")

        port = _read_int("PORT", DEFAULT_PORT)
        if port < 1 or port > 65535:
            raise RuntimeError("PORT must be between 1 and 65535.")

        review_batch_size = _read_int("REVIEW_BATCH_SIZE", DEFAULT_REVIEW_BATCH_SIZE)
        if review_batch_size < 1 or review_batch_size > MAX_REVIEW_BATCH_SIZE:
            raise RuntimeError(f"REVIEW_BATCH_SIZE must be between 1 and {MAX_REVIEW_BATCH_SIZE}.")

        static_dir = os.getenv("STATIC_DIR", "dist")

        raw_origins = os.getenv("CORS_ORIGINS", "*")
        cors_origins = tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())
        if not cors_origins:
            cors_origins = ("*",)

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            host=host,
            port=port,
            review_batch_size=review_batch_size,
            static_dir=static_dir,
            cors_origins=cors_origins,
        )
