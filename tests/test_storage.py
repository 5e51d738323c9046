import json
import tempfile
import unittest
from pathlib import Path

from connector import LocalStorage, StorageError
from scheduling import (
    DAYS_OF_WEEK,
    Appointment,
    Chamber,
    DashboardRepository,
    DayOfWeek,
    Schedule,
    TimeSlot,
)
from scheduling.storage import seed_appointments, seed_schedule


class LocalStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.base_dir = Path(tmp.name) / "data"
        self.storage = LocalStorage(self.base_dir)

    def test_missing_key_returns_none(self) -> None:
        self.assertIsNone(self.storage.get_item("doctorSchedule"))

    def test_set_item_replaces_whole_document(self) -> None:
        self.storage.set_item("doctorAppointments", [{"id": "a"}, {"id": "b"}])
        self.storage.set_item("doctorAppointments", [{"id": "c"}])

        self.assertEqual(self.storage.get_item("doctorAppointments"), [{"id": "c"}])
        self.assertEqual(sorted(path.name for path in self.base_dir.iterdir()), ["doctorAppointments.json"])

    def test_corrupt_document_raises_storage_error(self) -> None:
        self.base_dir.mkdir(parents=True)
        (self.base_dir / "doctorSchedule.json").write_text("{not json", encoding="utf-8")

        with self.assertRaises(StorageError):
            self.storage.get_item("doctorSchedule")

    def test_undecodable_bytes_raise_storage_error(self) -> None:
        self.base_dir.mkdir(parents=True)
        (self.base_dir / "doctorSchedule.json").write_bytes(b'{"Monday": "\xff\xfe"}')

        with self.assertRaises(StorageError):
            self.storage.get_item("doctorSchedule")

    def test_rejects_path_like_keys(self) -> None:
        with self.assertRaises(ValueError):
            self.storage.get_item("../outside")


class DashboardRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.base_dir = Path(tmp.name)
        self.repository = DashboardRepository(LocalStorage(self.base_dir))

    def test_absent_documents_load_demo_data(self) -> None:
        schedule = self.repository.load_schedule()
        appointments = self.repository.load_appointments()

        monday = schedule[DayOfWeek.MONDAY]
        self.assertEqual(len(monday), 1)
        self.assertEqual([slot.is_booked for slot in monday[0].slots], [False, True, False])
        self.assertEqual(len(schedule[DayOfWeek.WEDNESDAY][0].slots), 2)
        self.assertEqual([item.id for item in appointments], ["apt_1"])
        self.assertEqual(list(self.base_dir.iterdir()), [])

    def test_malformed_documents_fall_back_to_demo_data(self) -> None:
        (self.base_dir / "doctorSchedule.json").write_text("[1, 2", encoding="utf-8")
        (self.base_dir / "doctorAppointments.json").write_text('{"id": "x"}', encoding="utf-8")

        with self.assertLogs("scheduling.storage", level="WARNING"):
            self.assertEqual(self.repository.load_schedule(), seed_schedule())
        with self.assertLogs("scheduling.storage", level="WARNING"):
            self.assertEqual(self.repository.load_appointments(), seed_appointments())

    def test_invalid_utf8_document_falls_back_to_demo_data(self) -> None:
        (self.base_dir / "doctorSchedule.json").write_bytes(b'{"Monday": "\xff\xfe"}')

        with self.assertLogs("scheduling.storage", level="WARNING"):
            schedule = self.repository.load_schedule()

        self.assertEqual(schedule, seed_schedule())
        self.assertEqual(schedule[DayOfWeek.MONDAY][0].id, "ch_mon_1")

    def test_unreadable_path_falls_back_to_demo_data(self) -> None:
        (self.base_dir / "doctorAppointments.json").mkdir()

        with self.assertLogs("scheduling.storage", level="WARNING"):
            self.assertEqual(self.repository.load_appointments(), seed_appointments())

    def test_null_text_fields_load_as_empty_strings(self) -> None:
        (self.base_dir / "doctorSchedule.json").write_text(
            json.dumps({"Tuesday": [{"id": "ch_t", "place": None, "slots": [{"id": "ts_t", "time": None}]}]}),
            encoding="utf-8",
        )
        (self.base_dir / "doctorAppointments.json").write_text(
            json.dumps([{"id": "apt_n", "day": "Tuesday", "patient": {"name": "Ann", "address": None}, "place": None}]),
            encoding="utf-8",
        )

        chamber = self.repository.load_schedule()[DayOfWeek.TUESDAY][0]
        appointment = self.repository.load_appointments()[0]

        self.assertEqual(chamber.place, "")
        self.assertEqual(chamber.slots[0].time, "")
        self.assertEqual(appointment.place, "")
        self.assertEqual(appointment.patient.address, "")
        self.assertEqual(appointment.patient.gender, "Other")

    def test_schedule_document_lists_all_seven_days(self) -> None:
        self.repository.save_schedule(seed_schedule())

        stored = json.loads((self.base_dir / "doctorSchedule.json").read_text(encoding="utf-8"))
        self.assertEqual(list(stored), [day.value for day in DAYS_OF_WEEK])
        self.assertEqual(stored["Sunday"], [])
        self.assertEqual(
            stored["Monday"][0]["slots"][1],
            {"id": "ts_mon_1_2", "time": "10:30 AM", "isBooked": True},
        )

    def test_appointment_document_format(self) -> None:
        self.repository.save_appointments(seed_appointments())

        stored = json.loads((self.base_dir / "doctorAppointments.json").read_text(encoding="utf-8"))
        self.assertEqual(
            stored,
            [
                {
                    "id": "apt_1",
                    "patient": {
                        "name": "John Doe",
                        "age": "45",
                        "gender": "Male",
                        "address": "1 Main St",
                        "mobile": "555-1234",
                    },
                    "day": "Monday",
                    "chamberId": "ch_mon_1",
                    "slotId": "ts_mon_1_2",
                    "time": "10:30 AM",
                    "place": "Greenwood Clinic, 123 Health St.",
                }
            ],
        )

    def test_round_trip_preserves_order_and_fields(self) -> None:
        schedule = seed_schedule()
        schedule[DayOfWeek.SATURDAY].append(
            Chamber(id="ch_sat", place="Riverside Clinic", slots=[TimeSlot(id="ts_sat", time="8:00", is_booked=True)])
        )
        appointments = seed_appointments() * 2

        self.repository.save_schedule(schedule)
        self.repository.save_appointments(appointments)

        self.assertEqual(self.repository.load_schedule(), schedule)
        self.assertEqual(self.repository.load_appointments(), appointments)

    def test_missing_days_load_as_empty(self) -> None:
        (self.base_dir / "doctorSchedule.json").write_text(
            json.dumps({"Friday": [{"id": "ch_f", "place": "F", "slots": []}]}), encoding="utf-8"
        )

        schedule = self.repository.load_schedule()

        self.assertEqual([chamber.id for chamber in schedule[DayOfWeek.FRIDAY]], ["ch_f"])
        self.assertEqual(schedule[DayOfWeek.MONDAY], [])


class ModelTests(unittest.TestCase):
    def test_day_parse(self) -> None:
        self.assertIs(DayOfWeek.parse("monday"), DayOfWeek.MONDAY)
        self.assertIs(DayOfWeek.parse(DayOfWeek.SUNDAY), DayOfWeek.SUNDAY)
        with self.assertRaises(ValueError):
            DayOfWeek.parse("Funday")

    def test_schedule_has_exactly_seven_days(self) -> None:
        schedule = Schedule()

        self.assertEqual([day for day, _ in schedule], list(DAYS_OF_WEEK))
        with self.assertRaises(ValueError):
            schedule["Someday"]

    def test_appointment_from_dict_requires_id(self) -> None:
        with self.assertRaises(KeyError):
            Appointment.from_dict({"day": "Monday"})


if __name__ == "__main__":
    unittest.main()
