"""HTTP API for managing and reviewing words."""

from .app import create_app

__all__ = ["create_app"]
