"""Appointment workflows spanning the schedule and appointment stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from agents.confirmation import get_confirmation_message
from scheduling import (
    Appointment,
    AppointmentStore,
    DayOfWeek,
    Patient,
    ScheduleStore,
)

logger = logging.getLogger(__name__)

DELETE_CHAMBER_PROMPT = "Are you sure you want to delete this chamber and all its slots?"
SAVED_MESSAGE = "Schedule and appointments saved!"

MessageProvider = Callable[[str, DayOfWeek, str, str], str]


@dataclass(frozen=True)
class SlotSelection:
    """The slot a patient picked, as shown to them when they picked it."""

    day: DayOfWeek
    chamber_id: str
    slot_id: str
    time: str
    place: str


@dataclass(frozen=True)
class BookingResult:
    appointment: Appointment
    message: str


def book_appointment(
    schedule_store: ScheduleStore,
    appointment_store: AppointmentStore,
    selection: SlotSelection,
    patient: Patient,
    *,
    message_provider: MessageProvider = get_confirmation_message,
) -> BookingResult:
    """Book the selected slot for *patient* and produce the confirmation text.

    The appointment is recorded and the slot marked booked before the
    confirmation text is requested, so a slow or failing provider never
    holds back either mutation. There is no check that the slot is still
    open.
    """

    appointment = appointment_store.add_appointment(
        patient,
        selection.day,
        selection.chamber_id,
        selection.slot_id,
        selection.time,
        selection.place,
    )
    schedule_store.mark_slot_booked(selection.day, selection.chamber_id, selection.slot_id)

    message = message_provider(patient.name, selection.day, selection.time, selection.place)
    logger.info("Booked %s for %s on %s at %s", appointment.id, patient.name, selection.day, selection.time)
    return BookingResult(appointment=appointment, message=message)


def delete_chamber(
    schedule_store: ScheduleStore,
    appointment_store: AppointmentStore,
    day: DayOfWeek,
    chamber_id: str,
    *,
    confirm: Callable[[str], bool],
) -> bool:
    """Delete a chamber and its appointments once the user confirms.

    Returns ``False`` when the user declines.
    """

    if not confirm(DELETE_CHAMBER_PROMPT):
        logger.debug("Deletion of chamber %s cancelled", chamber_id)
        return False

    schedule_store.remove_chamber(day, chamber_id)
    appointment_store.delete_for_chamber(chamber_id)
    return True


def save_all(schedule_store: ScheduleStore, appointment_store: AppointmentStore) -> str:
    """Rewrite both documents and return the message shown to the user."""

    schedule_store.save()
    appointment_store.save()
    logger.info("Saved schedule and appointments")
    return SAVED_MESSAGE
