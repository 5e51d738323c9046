"""In-memory schedule and appointment stores.

Each store owns one collection and writes the whole collection through the
repository after every mutation. Lookups that miss are silent no-ops.
"""
from __future__ import annotations

import copy
import logging
import threading
from typing import List, Optional

from .models import (
    Appointment,
    Chamber,
    ChamberInput,
    DayOfWeek,
    Patient,
    Schedule,
    TimeSlot,
    new_id,
    parse_slot_labels,
)
from .storage import DashboardRepository

logger = logging.getLogger(__name__)


def build_slots(labels: List[str], previous: Optional[Chamber]) -> List[TimeSlot]:
    """Build slots for *labels*, reusing ``previous`` slots by position.

    The slot at index ``i`` keeps the id and booked flag of the previous
    chamber's slot at the same index, whatever its label was.
    """

    previous_slots = previous.slots if previous else []
    slots: List[TimeSlot] = []
    for index, label in enumerate(labels):
        if index < len(previous_slots):
            prior = previous_slots[index]
            slots.append(TimeSlot(id=prior.id, time=label, is_booked=prior.is_booked))
        else:
            slots.append(TimeSlot(id=new_id("ts"), time=label, is_booked=False))
    return slots


class ScheduleStore:
    """Owns the weekly schedule."""

    def __init__(self, repository: DashboardRepository, schedule: Optional[Schedule] = None) -> None:
        self._repository = repository
        self._schedule = schedule if schedule is not None else repository.load_schedule()
        self._lock = threading.Lock()

    def snapshot(self) -> Schedule:
        """Return a deep copy of the current schedule."""

        with self._lock:
            return copy.deepcopy(self._schedule)

    def get_chamber(self, day: DayOfWeek, chamber_id: str) -> Optional[Chamber]:
        with self._lock:
            chamber = self._find(day, chamber_id)
            return copy.deepcopy(chamber) if chamber else None

    def _find(self, day: DayOfWeek, chamber_id: str) -> Optional[Chamber]:
        for chamber in self._schedule[day]:
            if chamber.id == chamber_id:
                return chamber
        return None

    def upsert_chamber(self, day: DayOfWeek, chamber_input: ChamberInput) -> Chamber:
        """Replace the chamber with the payload's id, or append a new one."""

        day = DayOfWeek.parse(day)
        labels = parse_slot_labels(chamber_input.slots_text)

        with self._lock:
            chambers = self._schedule[day]
            existing_index = next(
                (index for index, chamber in enumerate(chambers) if chamber.id == chamber_input.id),
                None,
            )
            previous = chambers[existing_index] if existing_index is not None else None

            chamber_id = chamber_input.id
            if previous is None and (not chamber_id or self._schedule.find_chamber(chamber_id)):
                chamber_id = new_id("ch")

            chamber = Chamber(
                id=chamber_id,
                place=chamber_input.place,
                slots=build_slots(labels, previous),
            )
            if existing_index is not None:
                chambers[existing_index] = chamber
                logger.info("Updated chamber %s on %s (%d slots)", chamber.id, day, len(chamber.slots))
            else:
                chambers.append(chamber)
                logger.info("Added chamber %s on %s (%d slots)", chamber.id, day, len(chamber.slots))
            self._repository.save_schedule(self._schedule)
            return copy.deepcopy(chamber)

    def remove_chamber(self, day: DayOfWeek, chamber_id: str) -> bool:
        day = DayOfWeek.parse(day)
        with self._lock:
            chambers = self._schedule[day]
            remaining = [chamber for chamber in chambers if chamber.id != chamber_id]
            removed = len(remaining) != len(chambers)
            chambers[:] = remaining
            self._repository.save_schedule(self._schedule)
        if removed:
            logger.info("Removed chamber %s from %s", chamber_id, day)
        else:
            logger.debug("No chamber %s on %s to remove", chamber_id, day)
        return removed

    def mark_slot_booked(self, day: DayOfWeek, chamber_id: str, slot_id: str) -> bool:
        day = DayOfWeek.parse(day)
        with self._lock:
            chamber = self._find(day, chamber_id)
            slot = chamber.find_slot(slot_id) if chamber else None
            if slot is not None:
                slot.is_booked = True
            self._repository.save_schedule(self._schedule)
        if slot is None:
            logger.debug("No slot %s in chamber %s on %s to book", slot_id, chamber_id, day)
            return False
        logger.info("Marked slot %s in chamber %s as booked", slot_id, chamber_id)
        return True

    def save(self) -> None:
        with self._lock:
            self._repository.save_schedule(self._schedule)


class AppointmentStore:
    """Owns the appointment list, newest first."""

    def __init__(
        self,
        repository: DashboardRepository,
        appointments: Optional[List[Appointment]] = None,
    ) -> None:
        self._repository = repository
        self._appointments: List[Appointment] = (
            list(appointments) if appointments is not None else repository.load_appointments()
        )
        self._lock = threading.Lock()

    def list_appointments(self) -> List[Appointment]:
        with self._lock:
            return copy.deepcopy(self._appointments)

    def add_appointment(
        self,
        patient: Patient,
        day: DayOfWeek,
        chamber_id: str,
        slot_id: str,
        time: str,
        place: str,
    ) -> Appointment:
        appointment = Appointment(
            id=new_id("apt"),
            patient=copy.deepcopy(patient),
            day=DayOfWeek.parse(day),
            chamber_id=chamber_id,
            slot_id=slot_id,
            time=time,
            place=place,
        )
        with self._lock:
            self._appointments.insert(0, appointment)
            self._repository.save_appointments(self._appointments)
        logger.info("Added appointment %s for slot %s", appointment.id, slot_id)
        return copy.deepcopy(appointment)

    def delete_for_chamber(self, chamber_id: str) -> None:
        with self._lock:
            remaining = [item for item in self._appointments if item.chamber_id != chamber_id]
            removed = len(self._appointments) - len(remaining)
            self._appointments = remaining
            self._repository.save_appointments(self._appointments)
        logger.info("Removed %d appointment(s) for chamber %s", removed, chamber_id)

    def save(self) -> None:
        with self._lock:
            self._repository.save_appointments(self._appointments)
