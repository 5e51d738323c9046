"""Doctor's appointment dashboard.

This module exposes a small Flask application where the doctor manages the
weekly chambers and patients book open slots. The schedule and appointment
stores are created once per application and passed to the workflows
explicitly; each mutation is written to the data directory straight away.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from flask import (
    Flask,
    Response,
    abort,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template_string,
    request,
    url_for,
)

if __package__ is None or __package__ == "":  # pragma: no cover - runtime safety for script execution
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from agents.appointments import (
    DELETE_CHAMBER_PROMPT,
    MessageProvider,
    SlotSelection,
    book_appointment,
    delete_chamber,
    save_all,
)
from agents.confirmation import get_confirmation_message
from connector import LocalStorage
from scheduling import (
    GENDERS,
    AppointmentStore,
    ChamberInput,
    DashboardRepository,
    DayOfWeek,
    Patient,
    ScheduleStore,
)
from scheduling.storage import default_data_dir

logger = logging.getLogger(__name__)

EXTENSION_KEY = "chamber_dashboard"
INTAKE_ERROR_MESSAGE = "Please fill all required fields."
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class IntakeValidationError(ValueError):
    """Raised when the patient intake form is missing required fields."""


@dataclass
class DashboardContext:
    schedule_store: ScheduleStore
    appointment_store: AppointmentStore
    message_provider: MessageProvider


def parse_patient_form(form: Mapping[str, str]) -> Patient:
    """Build a patient from intake form fields.

    Name, age and mobile are required; gender must be one of the offered
    options.
    """

    values = {key: (form.get(key) or "").strip() for key in ("name", "age", "gender", "address", "mobile")}
    gender = values["gender"] or GENDERS[0]
    if not values["name"] or not values["age"] or not values["mobile"] or gender not in GENDERS:
        raise IntakeValidationError(INTAKE_ERROR_MESSAGE)
    return Patient(
        name=values["name"],
        age=values["age"],
        gender=gender,
        address=values["address"],
        mobile=values["mobile"],
    )


def _context() -> DashboardContext:
    return current_app.extensions[EXTENSION_KEY]


def _parse_day(value: str) -> DayOfWeek:
    try:
        return DayOfWeek.parse(value)
    except ValueError:
        abort(404)


_PAGE_HEAD = """
<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\">
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">
    <title>Doctor's Appointment Dashboard</title>
    <link
      href=\"https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css\"
      rel=\"stylesheet\"
      integrity=\"sha384-QWTKZyjpPEjISv5WaRU9OFeRpok6YctnYmDr5pNlyT2bRjXh0JMhjY6hW+ALEwIH\"
      crossorigin=\"anonymous\"
    >
  </head>
  <body class=\"bg-light\">
    <nav class=\"navbar navbar-expand-lg navbar-dark bg-primary\">
      <div class=\"container-fluid\">
        <a class=\"navbar-brand\" href=\"{{ url_for('dashboard') }}\">Doctor's Appointment Dashboard</a>
        <span class=\"navbar-text text-white-50\">Manage your schedule and view patient bookings.</span>
      </div>
    </nav>
    <main class=\"container my-4\">
      {% with messages = get_flashed_messages() %}
        {% for message in messages %}
          <div class=\"alert alert-info\" role=\"alert\">{{ message }}</div>
        {% endfor %}
      {% endwith %}
"""

_PAGE_FOOT = """
    </main>
  </body>
</html>
"""

dashboard_template = _PAGE_HEAD + """
      <div class=\"row g-4\">
        <section class=\"col-lg-7\">
          <div class=\"card shadow-sm\">
            <div class=\"card-header d-flex justify-content-between align-items-center\">
              <span class=\"fs-5\">Weekly Schedule Management</span>
              <form method=\"post\" action=\"{{ url_for('save_everything') }}\" class=\"mb-0\">
                <button type=\"submit\" class=\"btn btn-primary btn-sm\">Save All Changes</button>
              </form>
            </div>
            <div class=\"card-body\">
              {% for day, chambers in schedule %}
                <div class=\"border rounded p-3 mb-3\">
                  <div class=\"d-flex justify-content-between align-items-center\">
                    <h3 class=\"h6 fw-bold mb-0\">{{ day.value }}</h3>
                    <a class=\"btn btn-outline-primary btn-sm\" href=\"{{ url_for('new_chamber', day=day.value) }}\">Add Chamber</a>
                  </div>
                  {% if chambers %}
                    {% for chamber in chambers %}
                      <div class=\"bg-light rounded p-2 mt-3 d-flex justify-content-between align-items-start\">
                        <div>
                          <p class=\"fw-semibold mb-1\">{{ chamber.place }}</p>
                          {% for slot in chamber.slots %}
                            <span class=\"badge rounded-pill {{ 'text-bg-danger' if slot.is_booked else 'text-bg-success' }}\">{{ slot.time }}</span>
                          {% endfor %}
                        </div>
                        <div class=\"d-flex gap-2\">
                          <a class=\"btn btn-link btn-sm\" href=\"{{ url_for('edit_chamber', day=day.value, chamber_id=chamber.id) }}\">Edit</a>
                          <form
                            method=\"post\"
                            action=\"{{ url_for('remove_chamber', day=day.value, chamber_id=chamber.id) }}\"
                            onsubmit=\"return confirm('{{ delete_prompt }}');\"
                            class=\"mb-0\"
                          >
                            <input type=\"hidden\" name=\"confirmed\" value=\"yes\">
                            <button type=\"submit\" class=\"btn btn-link btn-sm text-danger\">Delete</button>
                          </form>
                        </div>
                      </div>
                    {% endfor %}
                  {% else %}
                    <p class=\"text-muted small mt-2 mb-0\">No chambers scheduled for this day.</p>
                  {% endif %}
                </div>
              {% endfor %}
            </div>
          </div>
        </section>
        <section class=\"col-lg-5\">
          <div class=\"card shadow-sm mb-4\">
            <div class=\"card-header fs-5\">Patient Booking View</div>
            <div class=\"card-body\">
              {% for day, chambers in schedule if chambers %}
                <h3 class=\"h6 fw-bold text-primary bg-primary-subtle px-2 py-1 rounded\">{{ day.value }}</h3>
                {% for chamber in chambers %}
                  <div class=\"ps-2 mb-3\">
                    <p class=\"small fw-semibold text-secondary mb-2\">{{ chamber.place }}</p>
                    {% for slot in chamber.slots %}
                      {% if slot.is_booked %}
                        <button type=\"button\" class=\"btn btn-secondary btn-sm\" disabled>{{ slot.time }}</button>
                      {% else %}
                        <a
                          class=\"btn btn-primary btn-sm\"
                          href=\"{{ url_for('book', day=day.value, chamber_id=chamber.id, slot_id=slot.id) }}\"
                        >{{ slot.time }}</a>
                      {% endif %}
                    {% endfor %}
                  </div>
                {% endfor %}
              {% else %}
                <p class=\"text-muted mb-0\">No chambers are open for booking.</p>
              {% endfor %}
            </div>
          </div>
          <div class=\"card shadow-sm\">
            <div class=\"card-header fs-5\">Booked Appointments</div>
            <div class=\"card-body\">
              {% if appointments %}
                <ul class=\"list-unstyled mb-0\">
                  {% for appointment in appointments %}
                    <li class=\"p-2 mb-2 bg-primary-subtle rounded\">
                      <p class=\"fw-bold mb-1\">
                        {{ appointment.patient.name }}
                        <span class=\"fw-normal small text-secondary\">({{ appointment.patient.age }}, {{ appointment.patient.gender }})</span>
                      </p>
                      <p class=\"small mb-0\">{{ appointment.day.value }}, {{ appointment.time }}</p>
                      <p class=\"small mb-0\">{{ appointment.place }}</p>
                      <p class=\"small text-muted mb-0\">Mob: {{ appointment.patient.mobile }}</p>
                    </li>
                  {% endfor %}
                </ul>
              {% else %}
                <p class=\"text-center text-muted mb-0\">No appointments booked yet.</p>
              {% endif %}
            </div>
          </div>
        </section>
      </div>
""" + _PAGE_FOOT

chamber_form_template = _PAGE_HEAD + """
      <div class=\"card shadow-sm mx-auto\" style=\"max-width: 36rem;\">
        <div class=\"card-header fs-5\">{{ 'Edit Chamber' if chamber else 'Add Chamber' }}</div>
        <div class=\"card-body\">
          <form method=\"post\" action=\"{{ url_for('save_chamber', day=day.value) }}\">
            {% if chamber %}
              <input type=\"hidden\" name=\"chamber_id\" value=\"{{ chamber.id }}\">
            {% endif %}
            <div class=\"mb-3\">
              <label for=\"chamber-day\" class=\"form-label\">Day</label>
              <input id=\"chamber-day\" type=\"text\" class=\"form-control bg-light\" value=\"{{ day.value }}\" readonly>
            </div>
            <div class=\"mb-3\">
              <label for=\"chamber-place\" class=\"form-label\">Place/Address</label>
              <input
                id=\"chamber-place\"
                name=\"place\"
                type=\"text\"
                class=\"form-control\"
                placeholder=\"e.g., City Hospital, 1st Floor\"
                value=\"{{ chamber.place if chamber else '' }}\"
              >
            </div>
            <div class=\"mb-3\">
              <label for=\"chamber-slots\" class=\"form-label\">Time Slots (comma-separated)</label>
              <input
                id=\"chamber-slots\"
                name=\"slots\"
                type=\"text\"
                class=\"form-control\"
                placeholder=\"e.g., 09:00 AM, 09:30 AM\"
                value=\"{{ chamber.slot_labels() if chamber else '' }}\"
              >
            </div>
            <div class=\"d-flex justify-content-end gap-2\">
              <a class=\"btn btn-outline-secondary\" href=\"{{ url_for('dashboard') }}\">Cancel</a>
              <button type=\"submit\" class=\"btn btn-primary\">Save Changes</button>
            </div>
          </form>
        </div>
      </div>
""" + _PAGE_FOOT

booking_form_template = _PAGE_HEAD + """
      <div class=\"card shadow-sm mx-auto\" style=\"max-width: 36rem;\">
        <div class=\"card-header fs-5\">Book Appointment</div>
        <div class=\"card-body\">
          {% if error %}
            <div class=\"alert alert-danger\" role=\"alert\">{{ error }}</div>
          {% endif %}
          <div class=\"bg-primary-subtle rounded p-3 mb-3\">
            <p class=\"mb-0\"><span class=\"fw-semibold\">Day:</span> {{ selection.day.value }}</p>
            <p class=\"mb-0\"><span class=\"fw-semibold\">Time:</span> {{ selection.time }}</p>
            <p class=\"mb-0\"><span class=\"fw-semibold\">Place:</span> {{ selection.place }}</p>
          </div>
          <form method=\"post\" action=\"{{ url_for('book') }}\">
            <input type=\"hidden\" name=\"day\" value=\"{{ selection.day.value }}\">
            <input type=\"hidden\" name=\"chamber_id\" value=\"{{ selection.chamber_id }}\">
            <input type=\"hidden\" name=\"slot_id\" value=\"{{ selection.slot_id }}\">
            <input type=\"hidden\" name=\"time\" value=\"{{ selection.time }}\">
            <input type=\"hidden\" name=\"place\" value=\"{{ selection.place }}\">
            <input name=\"name\" class=\"form-control mb-2\" placeholder=\"Full Name\" value=\"{{ form.get('name', '') }}\">
            <div class=\"row g-2 mb-2\">
              <div class=\"col\">
                <input name=\"age\" class=\"form-control\" placeholder=\"Age\" value=\"{{ form.get('age', '') }}\">
              </div>
              <div class=\"col\">
                <select name=\"gender\" class=\"form-select\">
                  {% for option in genders %}
                    <option {% if option == form.get('gender') %}selected{% endif %}>{{ option }}</option>
                  {% endfor %}
                </select>
              </div>
            </div>
            <input name=\"address\" class=\"form-control mb-2\" placeholder=\"Address\" value=\"{{ form.get('address', '') }}\">
            <input name=\"mobile\" class=\"form-control mb-3\" placeholder=\"Mobile Number\" value=\"{{ form.get('mobile', '') }}\">
            <div class=\"d-flex justify-content-end gap-2\">
              <a class=\"btn btn-outline-secondary\" href=\"{{ url_for('dashboard') }}\">Cancel</a>
              <button type=\"submit\" class=\"btn btn-success\">Confirm Booking</button>
            </div>
          </form>
        </div>
      </div>
""" + _PAGE_FOOT

confirmation_template = _PAGE_HEAD + """
      <div class=\"card shadow-sm mx-auto\" style=\"max-width: 36rem;\">
        <div class=\"card-header fs-5 text-success\">Appointment Confirmed!</div>
        <div class=\"card-body\">
          <p class=\"text-body\" style=\"white-space: pre-wrap;\">{{ message }}</p>
          <div class=\"d-flex justify-content-end\">
            <a class=\"btn btn-primary\" href=\"{{ url_for('dashboard') }}\">Close</a>
          </div>
        </div>
      </div>
""" + _PAGE_FOOT


def _selection_from_query(day: DayOfWeek, chamber_id: str, slot_id: str) -> SlotSelection:
    chamber = _context().schedule_store.get_chamber(day, chamber_id)
    slot = chamber.find_slot(slot_id) if chamber else None
    if chamber is None or slot is None:
        abort(404)
    return SlotSelection(day=day, chamber_id=chamber.id, slot_id=slot.id, time=slot.time, place=chamber.place)


def register_routes(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def index() -> Response:
        return redirect(url_for("dashboard"))

    @app.route("/dashboard", methods=["GET"])
    def dashboard() -> str:
        context = _context()
        return render_template_string(
            dashboard_template,
            schedule=context.schedule_store.snapshot(),
            appointments=context.appointment_store.list_appointments(),
            delete_prompt=DELETE_CHAMBER_PROMPT,
        )

    @app.route("/chambers/<day>/new", methods=["GET"])
    def new_chamber(day: str) -> str:
        return render_template_string(chamber_form_template, day=_parse_day(day), chamber=None)

    @app.route("/chambers/<day>/<chamber_id>/edit", methods=["GET"])
    def edit_chamber(day: str, chamber_id: str) -> str:
        parsed_day = _parse_day(day)
        chamber = _context().schedule_store.get_chamber(parsed_day, chamber_id)
        if chamber is None:
            abort(404)
        return render_template_string(chamber_form_template, day=parsed_day, chamber=chamber)

    @app.route("/chambers/<day>", methods=["POST"])
    def save_chamber(day: str) -> Response:
        parsed_day = _parse_day(day)
        chamber_input = ChamberInput(
            place=request.form.get("place", ""),
            slots_text=request.form.get("slots", ""),
            id=request.form.get("chamber_id") or None,
        )
        _context().schedule_store.upsert_chamber(parsed_day, chamber_input)
        return redirect(url_for("dashboard"))

    @app.route("/chambers/<day>/<chamber_id>/delete", methods=["POST"])
    def remove_chamber(day: str, chamber_id: str) -> Response:
        context = _context()
        delete_chamber(
            context.schedule_store,
            context.appointment_store,
            _parse_day(day),
            chamber_id,
            confirm=lambda _prompt: request.form.get("confirmed") == "yes",
        )
        return redirect(url_for("dashboard"))

    @app.route("/book", methods=["GET", "POST"])
    def book() -> Union[str, Tuple[str, int]]:
        context = _context()
        if request.method == "GET":
            selection = _selection_from_query(
                _parse_day(request.args.get("day", "")),
                request.args.get("chamber_id", ""),
                request.args.get("slot_id", ""),
            )
            return render_template_string(
                booking_form_template, selection=selection, form={}, genders=GENDERS, error=None
            )

        form = request.form
        selection = SlotSelection(
            day=_parse_day(form.get("day", "")),
            chamber_id=form.get("chamber_id", ""),
            slot_id=form.get("slot_id", ""),
            time=form.get("time", ""),
            place=form.get("place", ""),
        )
        try:
            patient = parse_patient_form(form)
        except IntakeValidationError as exc:
            body = render_template_string(
                booking_form_template, selection=selection, form=form, genders=GENDERS, error=str(exc)
            )
            return body, 400

        result = book_appointment(
            context.schedule_store,
            context.appointment_store,
            selection,
            patient,
            message_provider=context.message_provider,
        )
        return render_template_string(confirmation_template, message=result.message)

    @app.route("/save", methods=["POST"])
    def save_everything() -> Response:
        context = _context()
        flash(save_all(context.schedule_store, context.appointment_store))
        return redirect(url_for("dashboard"))

    @app.route("/api/schedule", methods=["GET"])
    def api_schedule() -> Response:
        """Return the schedule document as JSON."""
        return jsonify(_context().schedule_store.snapshot().to_dict())

    @app.route("/api/appointments", methods=["GET"])
    def api_appointments() -> Response:
        """Return the appointment list as JSON, newest first."""
        appointments = _context().appointment_store.list_appointments()
        return jsonify([appointment.to_dict() for appointment in appointments])


def create_app(
    *,
    data_dir: Path | str | None = None,
    schedule_store: Optional[ScheduleStore] = None,
    appointment_store: Optional[AppointmentStore] = None,
    message_provider: MessageProvider = get_confirmation_message,
    secret_key: Optional[str] = None,
) -> Flask:
    """Create the dashboard application.

    Stores that are not supplied are loaded from ``data_dir`` (or the
    ``DATA_DIR`` default) once, at creation time.
    """

    if schedule_store is None or appointment_store is None:
        repository = DashboardRepository(LocalStorage(data_dir or default_data_dir()))
        schedule_store = schedule_store or ScheduleStore(repository)
        appointment_store = appointment_store or AppointmentStore(repository)

    app = Flask(__name__)
    app.secret_key = secret_key or os.getenv("DASHBOARD_SECRET_KEY") or os.urandom(16).hex()
    app.extensions[EXTENSION_KEY] = DashboardContext(
        schedule_store=schedule_store,
        appointment_store=appointment_store,
        message_provider=message_provider,
    )
    register_routes(app)
    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Doctor's appointment dashboard")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "5000")), help="Port to listen on")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the stored documents")
    parser.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), format=LOG_FORMAT)
    app = create_app(data_dir=args.data_dir)
    logger.info("Serving dashboard on http://%s:%s", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


if __name__ == "__main__":
    sys.exit(main())
