import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock

from scheduling import DayOfWeek
from ui.dashboard import IntakeValidationError, create_app, parse_patient_form


class DashboardRouteTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.data_dir = Path(tmp.name)
        self.message_provider = Mock(return_value="Dear Jane, all set.")
        self.app = create_app(
            data_dir=self.data_dir, message_provider=self.message_provider, secret_key="test"
        )
        self.app.testing = True
        self.client = self.app.test_client()
        context = self.app.extensions["chamber_dashboard"]
        self.schedule_store = context.schedule_store
        self.appointment_store = context.appointment_store

    def _booking_form(self, **overrides):
        form = {
            "day": "Monday",
            "chamber_id": "ch_mon_1",
            "slot_id": "ts_mon_1_1",
            "time": "10:00 AM",
            "place": "Greenwood Clinic, 123 Health St.",
            "name": "Jane",
            "age": "29",
            "gender": "Female",
            "address": "4 Oak Rd",
            "mobile": "555-1111",
        }
        form.update(overrides)
        return form

    def test_index_redirects_to_dashboard(self) -> None:
        response = self.client.get("/")

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response.headers["Location"].endswith("/dashboard"))

    def test_dashboard_renders_demo_data(self) -> None:
        response = self.client.get("/dashboard")

        self.assertEqual(response.status_code, 200)
        body = response.get_data(as_text=True)
        self.assertIn("Greenwood Clinic, 123 Health St.", body)
        self.assertIn("Downtown Medical Center, 456 Wellness Ave.", body)
        self.assertIn("John Doe", body)
        self.assertIn("No chambers scheduled for this day.", body)

    def test_add_and_edit_chamber(self) -> None:
        response = self.client.post("/chambers/friday", data={"place": "Lakeside", "slots": "9:00, 9:30"})
        self.assertEqual(response.status_code, 302)

        chamber = self.schedule_store.snapshot()[DayOfWeek.FRIDAY][0]
        self.assertEqual([slot.time for slot in chamber.slots], ["9:00", "9:30"])

        edit_page = self.client.get(f"/chambers/Friday/{chamber.id}/edit")
        self.assertIn('value="9:00, 9:30"', edit_page.get_data(as_text=True))

        self.client.post(
            "/chambers/Friday", data={"chamber_id": chamber.id, "place": "Lakeside 2", "slots": "9:00"}
        )
        chambers = self.schedule_store.snapshot()[DayOfWeek.FRIDAY]
        self.assertEqual(len(chambers), 1)
        self.assertEqual(chambers[0].place, "Lakeside 2")
        self.assertEqual(chambers[0].slots[0].id, chamber.slots[0].id)

    def test_unknown_day_is_not_found(self) -> None:
        self.assertEqual(self.client.get("/chambers/Funday/new").status_code, 404)
        self.assertEqual(self.client.post("/chambers/Funday", data={"place": "x"}).status_code, 404)

    def test_delete_requires_confirmation(self) -> None:
        self.client.post("/chambers/Monday/ch_mon_1/delete")
        self.assertEqual(len(self.schedule_store.snapshot()[DayOfWeek.MONDAY]), 1)

        self.client.post("/chambers/Monday/ch_mon_1/delete", data={"confirmed": "yes"})
        self.assertEqual(self.schedule_store.snapshot()[DayOfWeek.MONDAY], [])
        self.assertEqual(self.appointment_store.list_appointments(), [])

    def test_booking_form_shows_slot_details(self) -> None:
        response = self.client.get("/book?day=Monday&chamber_id=ch_mon_1&slot_id=ts_mon_1_3")

        self.assertEqual(response.status_code, 200)
        body = response.get_data(as_text=True)
        self.assertIn("11:00 AM", body)
        self.assertIn("Greenwood Clinic, 123 Health St.", body)

    def test_booking_form_for_unknown_slot_is_not_found(self) -> None:
        response = self.client.get("/book?day=Monday&chamber_id=ch_mon_1&slot_id=ts_nope")

        self.assertEqual(response.status_code, 404)

    def test_booking_creates_appointment_and_shows_confirmation(self) -> None:
        response = self.client.post("/book", data=self._booking_form())

        self.assertEqual(response.status_code, 200)
        self.assertIn("Dear Jane, all set.", response.get_data(as_text=True))
        appointments = self.appointment_store.list_appointments()
        self.assertEqual(appointments[0].patient.name, "Jane")
        self.assertEqual(appointments[0].slot_id, "ts_mon_1_1")
        chamber = self.schedule_store.get_chamber(DayOfWeek.MONDAY, "ch_mon_1")
        self.assertTrue(chamber.find_slot("ts_mon_1_1").is_booked)
        self.message_provider.assert_called_once_with(
            "Jane", DayOfWeek.MONDAY, "10:00 AM", "Greenwood Clinic, 123 Health St."
        )

    def test_booking_with_missing_fields_is_rejected(self) -> None:
        response = self.client.post("/book", data=self._booking_form(mobile="  "))

        self.assertEqual(response.status_code, 400)
        self.assertIn("Please fill all required fields.", response.get_data(as_text=True))
        self.assertEqual(len(self.appointment_store.list_appointments()), 1)
        self.message_provider.assert_not_called()

    def test_save_all_flashes_message(self) -> None:
        response = self.client.post("/save", follow_redirects=True)

        self.assertIn("Schedule and appointments saved!", response.get_data(as_text=True))
        self.assertTrue((self.data_dir / "doctorSchedule.json").exists())
        self.assertTrue((self.data_dir / "doctorAppointments.json").exists())

    def test_json_endpoints(self) -> None:
        schedule = self.client.get("/api/schedule").get_json()
        appointments = self.client.get("/api/appointments").get_json()

        self.assertEqual(len(schedule), 7)
        self.assertEqual(schedule["Wednesday"][0]["id"], "ch_wed_1")
        self.assertEqual(appointments[0]["slotId"], "ts_mon_1_2")

    def test_startup_survives_undecodable_schedule(self) -> None:
        (self.data_dir / "doctorSchedule.json").write_bytes(b'{"Monday": "\xff\xfe"}')

        restarted = create_app(data_dir=self.data_dir, message_provider=self.message_provider)
        schedule = restarted.test_client().get("/api/schedule").get_json()

        self.assertEqual(schedule["Monday"][0]["id"], "ch_mon_1")

    def test_state_survives_restart(self) -> None:
        self.client.post("/book", data=self._booking_form())

        restarted = create_app(data_dir=self.data_dir, message_provider=self.message_provider)
        appointments = restarted.test_client().get("/api/appointments").get_json()

        self.assertEqual([item["patient"]["name"] for item in appointments], ["Jane", "John Doe"])


class IntakeFormTests(unittest.TestCase):
    def test_valid_form(self) -> None:
        patient = parse_patient_form(
            {"name": " Jane ", "age": "29", "gender": "Other", "address": "", "mobile": "555"}
        )

        self.assertEqual(patient.name, "Jane")
        self.assertEqual(patient.gender, "Other")
        self.assertEqual(patient.address, "")

    def test_gender_defaults_to_first_option(self) -> None:
        patient = parse_patient_form({"name": "Jane", "age": "29", "mobile": "555"})

        self.assertEqual(patient.gender, "Male")

    def test_required_fields(self) -> None:
        for missing in ("name", "age", "mobile"):
            form = {"name": "Jane", "age": "29", "mobile": "555"}
            form[missing] = ""
            with self.subTest(missing=missing):
                with self.assertRaises(IntakeValidationError):
                    parse_patient_form(form)

    def test_unknown_gender_is_rejected(self) -> None:
        with self.assertRaises(IntakeValidationError):
            parse_patient_form({"name": "Jane", "age": "29", "gender": "Robot", "mobile": "555"})


if __name__ == "__main__":
    unittest.main()
