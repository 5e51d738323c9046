"""Persistence adapter for the schedule and appointment documents.

Both documents are read once at startup. A missing document falls back to
the built-in demo data; so does a document that cannot be read or decoded,
after a warning is logged. Every save replaces the whole document.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Sequence

from connector import LocalStorage, StorageError

from .models import Appointment, Chamber, DayOfWeek, Patient, Schedule, TimeSlot

logger = logging.getLogger(__name__)

SCHEDULE_KEY = "doctorSchedule"
APPOINTMENTS_KEY = "doctorAppointments"


def default_data_dir() -> Path:
    """Return the storage directory.

    The directory can be overridden via the ``DATA_DIR`` environment variable.
    """

    override = os.getenv("DATA_DIR")
    return Path(override) if override else Path(__file__).resolve().parents[1] / "data"


def seed_schedule() -> Schedule:
    schedule = Schedule()
    schedule[DayOfWeek.MONDAY].append(
        Chamber(
            id="ch_mon_1",
            place="Greenwood Clinic, 123 Health St.",
            slots=[
                TimeSlot(id="ts_mon_1_1", time="10:00 AM", is_booked=False),
                TimeSlot(id="ts_mon_1_2", time="10:30 AM", is_booked=True),
                TimeSlot(id="ts_mon_1_3", time="11:00 AM", is_booked=False),
            ],
        )
    )
    schedule[DayOfWeek.WEDNESDAY].append(
        Chamber(
            id="ch_wed_1",
            place="Downtown Medical Center, 456 Wellness Ave.",
            slots=[
                TimeSlot(id="ts_wed_1_1", time="02:00 PM", is_booked=False),
                TimeSlot(id="ts_wed_1_2", time="02:30 PM", is_booked=False),
            ],
        )
    )
    return schedule


def seed_appointments() -> List[Appointment]:
    return [
        Appointment(
            id="apt_1",
            patient=Patient(
                name="John Doe",
                age="45",
                gender="Male",
                address="1 Main St",
                mobile="555-1234",
            ),
            day=DayOfWeek.MONDAY,
            chamber_id="ch_mon_1",
            slot_id="ts_mon_1_2",
            time="10:30 AM",
            place="Greenwood Clinic, 123 Health St.",
        )
    ]


class DashboardRepository:
    """Loads and saves the two dashboard documents through a key-value store."""

    def __init__(self, storage: Optional[LocalStorage] = None) -> None:
        self._storage = storage or LocalStorage(default_data_dir())

    @property
    def storage(self) -> LocalStorage:
        return self._storage

    def _read(self, key: str) -> Optional[Any]:
        try:
            return self._storage.get_item(key)
        except (StorageError, OSError) as exc:
            logger.warning("Ignoring unreadable %s document: %s", key, exc)
            return None

    def load_schedule(self) -> Schedule:
        payload = self._read(SCHEDULE_KEY)
        if payload is None:
            logger.info("No stored schedule found; using demo data")
            return seed_schedule()
        try:
            return Schedule.from_dict(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Stored schedule is malformed (%s); using demo data", exc)
            return seed_schedule()

    def load_appointments(self) -> List[Appointment]:
        payload = self._read(APPOINTMENTS_KEY)
        if payload is None:
            logger.info("No stored appointments found; using demo data")
            return seed_appointments()
        try:
            if not isinstance(payload, list):
                raise ValueError("Appointments document must be a JSON list")
            return [Appointment.from_dict(item) for item in payload]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Stored appointments are malformed (%s); using demo data", exc)
            return seed_appointments()

    def save_schedule(self, schedule: Schedule) -> None:
        self._storage.set_item(SCHEDULE_KEY, schedule.to_dict())

    def save_appointments(self, appointments: Sequence[Appointment]) -> None:
        self._storage.set_item(APPOINTMENTS_KEY, [appointment.to_dict() for appointment in appointments])
