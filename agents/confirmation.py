"""Confirmation text for newly booked appointments.

When a Gemini credential is configured the message is generated by the
model; otherwise, or when the request fails in any way, a fixed template is
used. Callers always receive a message.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from connector import GeminiClient, GeminiClientError, resolve_api_key

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATE = (
    "Dear {name}, your appointment at {place} on {day} at {time} is confirmed. "
    "Please arrive 10 minutes early."
)


class TextGenerator(Protocol):
    """Minimal interface required from a text-generation client."""

    def generate_text(self, prompt: str) -> str:
        """Return generated text for *prompt*."""


def fallback_message(patient_name: str, day: object, time: str, place: str) -> str:
    return FALLBACK_TEMPLATE.format(name=patient_name, place=place, day=str(day), time=time)


def build_prompt(patient_name: str, day: object, time: str, place: str) -> str:
    return (
        "Generate a polite and friendly appointment confirmation message for a patient.\n"
        f"Patient's Name: {patient_name}\n"
        f"Appointment Day: {day}\n"
        f"Appointment Time: {time}\n"
        f"Clinic Address: {place}\n"
        f'Keep it concise and warm. Start with "Dear {patient_name},". '
        "Mention all the details and suggest arriving a few minutes early."
    )


def _default_generator() -> Optional[TextGenerator]:
    api_key = resolve_api_key()
    if not api_key:
        return None
    return GeminiClient(api_key)


def get_confirmation_message(
    patient_name: str,
    day: object,
    time: str,
    place: str,
    *,
    generator_factory: Callable[[], Optional[TextGenerator]] = _default_generator,
) -> str:
    """Return a confirmation message for the booking. Never raises."""

    fallback = fallback_message(patient_name, day, time, place)
    try:
        generator = generator_factory()
    except Exception:  # noqa: BLE001 - a broken client setup degrades to the template
        logger.exception("Could not create text generator; using template confirmation")
        return fallback
    if generator is None:
        logger.debug("No text-generation credential configured; using template confirmation")
        return fallback

    try:
        text = generator.generate_text(build_prompt(patient_name, day, time, place))
    except GeminiClientError as exc:
        logger.warning("Confirmation text generation failed: %s", exc)
        return fallback
    except Exception:  # noqa: BLE001 - any failure collapses to the template
        logger.exception("Unexpected error while generating confirmation text")
        return fallback

    if not isinstance(text, str) or not text.strip():
        logger.warning("Text generator returned an empty confirmation; using template")
        return fallback
    return text.strip()
