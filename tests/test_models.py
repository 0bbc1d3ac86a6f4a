from datetime import date, datetime, time
import pytest
from pydantic import ValidationError
from appointment_booking.models import AppointmentRequest, AvailabilityWindow, BookedAppointment, PaymentRedirect


def test_window_reads_wire_names_and_seconds():
    w = AvailabilityWindow.model_validate({"day": "Tuesday", "from": "08:15:00", "to": " 17:00 ", "status": "Unavailable"})
    assert (w.from_, w.to) == (time(8, 15), time(17))
    assert w.status.value == "Unavailable"


def test_window_rejects_unknown_status():
    with pytest.raises(ValidationError):
        AvailabilityWindow.model_validate({"day": "Tuesday", "from": "08:00", "to": "09:00", "status": "Maybe"})


@pytest.mark.parametrize(
    "raw",
    ["2026-10-21", "2026-10-21T00:00:00.000Z", "2026-10-21T23:30:00-05:00", datetime(2026, 10, 21, 22, 0)],
)
def test_booked_date_is_the_calendar_date_as_written(raw):
    appt = BookedAppointment.model_validate({"doctorID": 3, "date": raw, "timeSlot": "x"})
    assert appt.date == date(2026, 10, 21)
    assert appt.doctor_id == "3"


def test_request_defaults_to_booked_and_unpaid():
    req = AppointmentRequest(doctor_id="d", patient_id="p", date=date(2026, 1, 5), time_slot="09:00 AM - 10:00 AM")
    assert req.to_payload()["status"] == "Booked"
    assert req.to_payload()["paymentStatus"] == "Unpaid"


def test_payment_redirect_path():
    assert PaymentRedirect(appointment_id="a1", doctor_id="d7").path == "/payment/a1?doctorId=d7"
