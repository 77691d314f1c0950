from __future__ import annotations

import pytest

from src.app.settings import AppSettings


_ENV_VARS = ("APP_NAME", "APP_ENV", "LOG_LEVEL", "HOST", "PORT", "REVIEW_BATCH_SIZE", "STATIC_DIR", "CORS_ORIGINS")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = AppSettings.from_env()

    assert settings.app_name == "Vocabulary Review"
    assert settings.app_env == "development"
    assert settings.log_level == "INFO"
    assert settings.port == 3000
    assert settings.review_batch_size == 20
    assert settings.static_dir == "dist"
    assert settings.cors_origins == ("*",)


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("REVIEW_BATCH_SIZE", "50")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://words.example.org ,")

    settings = AppSettings.from_env()

    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.review_batch_size == 50
    assert settings.cors_origins == ("http://localhost:5173", "https://words.example.org")


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("PORT", "abc", "PORT must be an integer."),
        ("PORT", "70000", "PORT must be between 1 and 65535."),
        ("REVIEW_BATCH_SIZE", "0", "REVIEW_BATCH_SIZE must be between 1 and 200."),
        ("REVIEW_BATCH_SIZE", "twenty", "REVIEW_BATCH_SIZE must be an integer."),
    ],
)
def test_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(RuntimeError, match=message):
        AppSettings.from_env()
