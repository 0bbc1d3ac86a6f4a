import logging
from typing import Optional
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field
from .booking import API_ERRORS, AppointmentSubmitter, parse_date
from .client import fetch_booked_appointments, fetch_doctor
from .config import settings, setup_logging
from .errors import BookingError, FetchFailure, InvalidInput, NoAvailability, SlotConflict, SubmissionFailure
from .slots import booking_window, compute_bookable_slots, normalize_slot, resolve_availability, system_clock, weekday_name

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

class BookingBody(BaseModel):
    doctor_id: str = Field(alias="doctorID")
    patient_id: Optional[str] = Field(None, alias="patientID")
    date: Optional[str] = None
    time_slot: Optional[str] = Field(None, alias="timeSlot")

    model_config = {
        "populate_by_name": True
    }

class BookingResp(BaseModel):
    appointment_id: str
    doctor_id: str
    redirect: str

class SlotsResp(BaseModel):
    doctor_id: str
    date: str
    weekday: str
    slots: list[str]
    consultation_fee: int

# wall clock in the clinic's time zone; tests swap this out
clock = system_clock(settings.tz)
submitter = AppointmentSubmitter()

app = FastAPI(title="Appointment Booking Service")

_STATUS = {
    InvalidInput: 422,
    NoAvailability: 409,
    SlotConflict: 409,
    FetchFailure: 502,
    SubmissionFailure: 502,
}

def _http_error(err: BookingError, status_code: Optional[int] = None) -> HTTPException:
    """Only the generic message leaves the service; details stay in the logs."""
    return HTTPException(status_code=status_code or _STATUS.get(type(err), 400), detail=err.user_message)

def _date_in_window(raw: Optional[str]):
    try:
        target = parse_date(raw)
    except InvalidInput as err:
        raise _http_error(err)
    low, high = booking_window(clock(), settings.horizon_days)
    if target is None or not low <= target <= high:
        raise _http_error(InvalidInput(f"date {raw!r} outside {low}..{high}"))
    return target

async def _load_doctor(doctor_id: str):
    try:
        return await fetch_doctor(doctor_id)
    except API_ERRORS as err:
        logger.exception("Doctor fetch for %s failed", doctor_id)
        failure = FetchFailure(str(err), user_message="Failed to load doctor details.")
        not_found = getattr(getattr(err, "response", None), "status_code", None) == 404
        raise _http_error(failure, 404 if not_found else None) from err

async def _load_appointments(doctor_id: str):
    try:
        return await fetch_booked_appointments(doctor_id)
    except API_ERRORS as err:
        logger.exception("Booked appointments fetch for doctor %s failed", doctor_id)
        raise _http_error(FetchFailure(str(err))) from err

@app.get("/booking-window")
async def get_booking_window():
    """Dates a patient may pick, inclusive."""
    low, high = booking_window(clock(), settings.horizon_days)
    return {"min_date": low.isoformat(), "max_date": high.isoformat()}

@app.get("/doctors/{doctor_id}/slots", response_model=SlotsResp)
async def list_slots(doctor_id: str, date: str = Query(..., description="YYYY-MM-DD appointment date")):
    """Return the bookable one-hour slots for a doctor on a date."""
    target = _date_in_window(date)
    doctor = await _load_doctor(doctor_id)
    if resolve_availability(doctor.availability, target) is None:
        raise _http_error(NoAvailability(weekday_name(target)), 404)

    appointments = await _load_appointments(doctor.doctor_id)
    day = compute_bookable_slots(doctor, appointments, target, clock())
    return SlotsResp(
        doctor_id=doctor.doctor_id,
        date=target.isoformat(),
        weekday=day.weekday,
        slots=day.slots,
        consultation_fee=doctor.fee or settings.consultation_fee,
    )

@app.post("/appointments", status_code=201, response_model=BookingResp)
async def book_appointment(req: BookingBody):
    """Validate a slot choice against fresh data and create the appointment."""
    # missing input is rejected before anything goes upstream
    if not (req.date or "").strip() or not (req.time_slot or "").strip() or not req.patient_id:
        raise _http_error(InvalidInput("date, time slot and patient are required"))
    target = _date_in_window(req.date)

    doctor = await _load_doctor(req.doctor_id)
    if resolve_availability(doctor.availability, target) is None:
        raise _http_error(NoAvailability(weekday_name(target)))

    day = compute_bookable_slots(doctor, await _load_appointments(doctor.doctor_id), target, clock())
    wanted = normalize_slot(req.time_slot)
    # booked slots fall through to the submitter, which reports them as conflicts
    if wanted not in day.booked and wanted not in {normalize_slot(s) for s in day.slots}:
        raise _http_error(InvalidInput(f"{req.time_slot!r} is not offered on {target}"))

    try:
        redirect = await submitter.submit(doctor, req.patient_id, target, req.time_slot, day.booked)
    except BookingError as err:
        logger.info("Booking rejected for doctor %s: %s", req.doctor_id, err)
        raise _http_error(err)
    return BookingResp(appointment_id=redirect.appointment_id, doctor_id=redirect.doctor_id, redirect=redirect.path)
