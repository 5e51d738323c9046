"""Google Gemini text-generation client.

This module wraps the ``generateContent`` REST endpoint with a plain
``requests`` session. Each call is a single attempt: callers that need a
graceful degradation path catch :class:`GeminiClientError` and fall back on
their own.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from requests import Response

__all__ = [
    "GeminiAPIError",
    "GeminiClient",
    "GeminiClientError",
    "GeminiResponseError",
    "resolve_api_key",
]


logger = logging.getLogger(__name__)


DEFAULT_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
DEFAULT_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
DEFAULT_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30"))


class GeminiClientError(RuntimeError):
    """Base exception for Gemini client errors."""


class GeminiAPIError(GeminiClientError):
    """Raised when the request fails or Gemini returns an error status."""


class GeminiResponseError(GeminiClientError):
    """Raised when Gemini returns a payload without usable text."""


def resolve_api_key() -> Optional[str]:
    """Return the configured credential, if any.

    ``API_KEY`` takes precedence over ``GEMINI_API_KEY``. Blank values count
    as missing. The environment is read on every call.
    """

    for name in ("API_KEY", "GEMINI_API_KEY"):
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


class GeminiClient:
    """Thin wrapper around Gemini's ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must be provided")
        if not model:
            raise ValueError("model must be provided")
        if not base_url:
            raise ValueError("base_url must be provided")

        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def generate_text(self, prompt: str) -> str:
        """Send *prompt* to the model and return the generated text."""

        if not prompt or not isinstance(prompt, str):
            raise ValueError("prompt must be a non-empty string")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        logger.debug("Requesting generated text from model %s", self.model)
        try:
            response = self._session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Request to Gemini failed: %s", exc)
            raise GeminiAPIError("Failed to execute request to Gemini") from exc

        if not response.ok:
            self._log_error_response(response)
            raise GeminiAPIError(
                f"Gemini responded with unexpected status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise GeminiResponseError("Gemini response was not valid JSON") from exc

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Any) -> str:
        if not isinstance(data, dict):
            raise GeminiResponseError("Gemini response must be a JSON object")
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise GeminiResponseError("Gemini response did not include candidates")
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GeminiResponseError("Gemini candidate did not include content parts")

        texts: List[str] = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        text = "".join(texts).strip()
        if not text:
            raise GeminiResponseError("Gemini candidate did not include any text")
        return text

    @staticmethod
    def _log_error_response(response: Response) -> None:
        content_type = response.headers.get("Content-Type", "")
        if "json" in content_type:
            try:
                parsed: Dict[str, Any] = response.json()
                logger.error("Gemini error response: status=%s body=%s", response.status_code, parsed)
                return
            except ValueError:
                pass
        logger.error("Gemini error response: status=%s body=%s", response.status_code, response.text[:2048])
