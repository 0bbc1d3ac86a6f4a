import json, pathlib
from datetime import date, time
import pytest, respx, httpx
from pydantic import ValidationError
from appointment_booking.models import AppointmentRequest, AvailabilityStatus, BookedAppointment, Doctor
from appointment_booking import client as cl


BASE = "https://booking.test"
# point the client at the mocked host
cl._BASE_URL = f"{BASE}/api"

FIX = pathlib.Path(__file__).parent / "fixtures"

@pytest.mark.asyncio
async def test_fetch_doctor():
    doctor_json = json.loads((FIX / "doctor_get.json").read_text())
    with respx.mock(base_url=BASE) as m:
        m.get("/api/doctors/d-1").respond(200, json=doctor_json)

        doctor = await cl.fetch_doctor("d-1")
        assert isinstance(doctor, Doctor)
        assert doctor.doctor_id == "d-1"
        assert [w.day for w in doctor.availability] == ["Monday", " wednesday ", "Friday"]
        assert doctor.availability[0].from_ == time(9)
        assert doctor.availability[2].status is AvailabilityStatus.UNAVAILABLE

@pytest.mark.asyncio
async def test_fetch_doctor_unwraps_envelope_and_tolerates_missing_availability():
    with respx.mock(base_url=BASE) as m:
        m.get("/api/doctors/7").respond(200, json={"doctor": {"doctorID": 7, "availability": None}})

        doctor = await cl.fetch_doctor("7")
        assert doctor.doctor_id == "7"
        assert doctor.availability == []

@pytest.mark.asyncio
async def test_fetch_doctor_rejects_malformed_window():
    bad = {"doctorID": "d-1", "availability": [{"day": "Monday", "from": "9am", "to": "12:00", "status": "Available"}]}
    with respx.mock(base_url=BASE) as m:
        m.get("/api/doctors/d-1").respond(200, json=bad)

        with pytest.raises(ValidationError):
            await cl.fetch_doctor("d-1")

@pytest.mark.asyncio
async def test_fetch_doctor_http_error_propagates():
    with respx.mock(base_url=BASE) as m:
        m.get("/api/doctors/nope").respond(404, json={"message": "not found"})

        with pytest.raises(httpx.HTTPStatusError):
            await cl.fetch_doctor("nope")

@pytest.mark.asyncio
async def test_fetch_booked_appointments():
    entries = json.loads((FIX / "appointments_get.json").read_text())
    with respx.mock(base_url=BASE) as m:
        m.get("/api/appointments/doctor/d-1").respond(200, json=entries)

        appts = await cl.fetch_booked_appointments("d-1")
        assert len(appts) == 4
        assert all(isinstance(a, BookedAppointment) for a in appts)
        # ISO timestamp reduced to the calendar date as written
        assert appts[0].date == date(2026, 10, 26)
        assert appts[2].status == "Cancelled"

@pytest.mark.asyncio
async def test_fetch_booked_appointments_accepts_wrapped_list():
    entry = {"doctorID": "d-1", "date": "2026-10-21", "timeSlot": "02:00 PM - 03:00 PM"}
    with respx.mock(base_url=BASE) as m:
        m.get("/api/appointments/doctor/d-1").respond(200, json={"appointments": [entry]})

        appts = await cl.fetch_booked_appointments("d-1")
        assert appts[0].time_slot == "02:00 PM - 03:00 PM"

@pytest.mark.asyncio
async def test_create_appointment():
    req = AppointmentRequest(doctor_id="d-1", patient_id="p-1", date=date(2026, 10, 21), time_slot="03:00 PM - 04:00 PM")
    with respx.mock(base_url=BASE) as m:
        route = m.post("/api/appointments").respond(201, json={"appointmentID": 77, "status": "Booked"})

        created = await cl.create_appointment(req)
        assert created.appointment_id == "77"

        body = json.loads(route.calls.last.request.content)
        assert body == {
            "doctorID": "d-1",
            "patientID": "p-1",
            "date": "2026-10-21",
            "timeSlot": "03:00 PM - 04:00 PM",
            "status": "Booked",
            "paymentStatus": "Unpaid",
        }
