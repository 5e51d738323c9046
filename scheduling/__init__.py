"""Weekly chamber schedule, appointments and their persistence."""

from .models import (
    DAYS_OF_WEEK,
    GENDERS,
    Appointment,
    Chamber,
    ChamberInput,
    DayOfWeek,
    Patient,
    Schedule,
    TimeSlot,
    parse_slot_labels,
)
from .storage import APPOINTMENTS_KEY, SCHEDULE_KEY, DashboardRepository
from .stores import AppointmentStore, ScheduleStore

__all__ = [
    "APPOINTMENTS_KEY",
    "Appointment",
    "AppointmentStore",
    "Chamber",
    "ChamberInput",
    "DAYS_OF_WEEK",
    "DashboardRepository",
    "DayOfWeek",
    "GENDERS",
    "Patient",
    "SCHEDULE_KEY",
    "Schedule",
    "ScheduleStore",
    "TimeSlot",
    "parse_slot_labels",
]
