"""Bootstrap logic for running the HTTP server."""

from __future__ import annotations

import logging

import uvicorn

from src.app.settings import AppSettings
from src.db import get_session_factory, run_migrations_if_needed


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def run_server(settings: AppSettings) -> None:
    """Start the API server using the provided settings."""
    # Imported here: the API package reads AppSettings from this package.
    from src.api import create_app

    _configure_logging(settings.log_level)

    try:
        run_migrations_if_needed()
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    app = create_app(settings, session_factory=get_session_factory())

    LOGGER.info(
        "Starting %s in %s mode on http://%s:%s.",
        settings.app_name,
        settings.app_env,
        settings.host,
        settings.port,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
