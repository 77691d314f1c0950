"""Application bootstrap helpers for the vocabulary review service."""

from .runtime import run_server
from .settings import AppSettings

__all__ = ["run_server", "AppSettings"]
