"""Connector interfaces for the chamber dashboard."""

from __future__ import annotations

from .gemini_client import (
    GeminiAPIError,
    GeminiClient,
    GeminiClientError,
    GeminiResponseError,
    resolve_api_key,
)
from .local_storage import LocalStorage, StorageError

__all__ = [
    "GeminiAPIError",
    "GeminiClient",
    "GeminiClientError",
    "GeminiResponseError",
    "LocalStorage",
    "StorageError",
    "resolve_api_key",
]
