"""Domain records for the weekly chamber schedule and its appointments."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: object) -> "DayOfWeek":
        """Return the day named by *value* (case-insensitive)."""

        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for day in cls:
            if day.value.lower() == text:
                return day
        raise ValueError(f"Unknown day of week: {value!r}")


DAYS_OF_WEEK: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)

GENDERS: Tuple[str, ...] = ("Male", "Female", "Other")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise KeyError(f"Expected {key!r} in stored record")
    return payload[key]


def _text(payload: Mapping[str, Any], key: str, default: str = "") -> str:
    value = payload.get(key)
    return default if value is None else str(value)


@dataclass
class TimeSlot:
    """A bookable time label inside a chamber."""

    id: str
    time: str
    is_booked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "time": self.time, "isBooked": self.is_booked}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TimeSlot":
        return cls(
            id=str(_require(payload, "id")),
            time=_text(payload, "time"),
            is_booked=bool(payload.get("isBooked", False)),
        )


@dataclass
class Chamber:
    """A place the doctor attends on a given day, with its ordered slots."""

    id: str
    place: str
    slots: List[TimeSlot] = field(default_factory=list)

    def find_slot(self, slot_id: str) -> Optional[TimeSlot]:
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def slot_labels(self) -> str:
        """Return the slot labels in the comma-separated form used for editing."""

        return ", ".join(slot.time for slot in self.slots)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "place": self.place,
            "slots": [slot.to_dict() for slot in self.slots],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Chamber":
        raw_slots = payload.get("slots") or []
        return cls(
            id=str(_require(payload, "id")),
            place=_text(payload, "place"),
            slots=[TimeSlot.from_dict(item) for item in raw_slots],
        )


@dataclass
class ChamberInput:
    """Chamber payload as entered in the edit form.

    ``slots_text`` is the raw comma-separated list of slot labels. ``id`` is
    set when an existing chamber is being edited.
    """

    place: str
    slots_text: str
    id: Optional[str] = None


def parse_slot_labels(slots_text: str) -> List[str]:
    """Split a comma-separated slot list, trimming and dropping empty entries."""

    return [label.strip() for label in (slots_text or "").split(",") if label.strip()]


@dataclass
class Patient:
    name: str
    age: str
    gender: str
    address: str
    mobile: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "gender": self.gender,
            "address": self.address,
            "mobile": self.mobile,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Patient":
        return cls(
            name=_text(payload, "name"),
            age=_text(payload, "age"),
            gender=_text(payload, "gender", "Other"),
            address=_text(payload, "address"),
            mobile=_text(payload, "mobile"),
        )


@dataclass
class Appointment:
    """A booked slot. Location fields are copies taken at booking time."""

    id: str
    patient: Patient
    day: DayOfWeek
    chamber_id: str
    slot_id: str
    time: str
    place: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "patient": self.patient.to_dict(),
            "day": self.day.value,
            "chamberId": self.chamber_id,
            "slotId": self.slot_id,
            "time": self.time,
            "place": self.place,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Appointment":
        return cls(
            id=str(_require(payload, "id")),
            patient=Patient.from_dict(payload.get("patient") or {}),
            day=DayOfWeek.parse(_require(payload, "day")),
            chamber_id=_text(payload, "chamberId"),
            slot_id=_text(payload, "slotId"),
            time=_text(payload, "time"),
            place=_text(payload, "place"),
        )


class Schedule:
    """Seven ordered chamber lists, one per day of the week.

    List order is insertion order, which is also display order.
    """

    def __init__(self, chambers_by_day: Optional[Mapping[DayOfWeek, Sequence[Chamber]]] = None) -> None:
        self._days: Tuple[List[Chamber], ...] = tuple([] for _ in DAYS_OF_WEEK)
        for day, chambers in (chambers_by_day or {}).items():
            self._days[DAYS_OF_WEEK.index(DayOfWeek.parse(day))].extend(chambers)

    def __getitem__(self, day: DayOfWeek) -> List[Chamber]:
        return self._days[DAYS_OF_WEEK.index(DayOfWeek.parse(day))]

    def __iter__(self) -> Iterator[Tuple[DayOfWeek, List[Chamber]]]:
        return iter(zip(DAYS_OF_WEEK, self._days))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schedule):
            return NotImplemented
        return self._days == other._days

    def __repr__(self) -> str:
        counts = ", ".join(f"{day.value}={len(chambers)}" for day, chambers in self)
        return f"Schedule({counts})"

    def find_chamber(self, chamber_id: str) -> Optional[Tuple[DayOfWeek, Chamber]]:
        for day, chambers in self:
            for chamber in chambers:
                if chamber.id == chamber_id:
                    return day, chamber
        return None

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {day.value: [chamber.to_dict() for chamber in chambers] for day, chambers in self}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Schedule":
        if not isinstance(payload, Mapping):
            raise ValueError("Schedule document must be a JSON object")
        schedule = cls()
        for day in DAYS_OF_WEEK:
            raw_chambers = payload.get(day.value) or []
            if not isinstance(raw_chambers, list):
                raise ValueError(f"Chambers for {day.value} must be a list")
            schedule[day].extend(Chamber.from_dict(item) for item in raw_chambers)
        return schedule
