"""Appointment submission and the booking form that drives it.

Local validation here is advisory: it keeps obviously bad requests off the
wire, but the booking API re-checks availability and uniqueness itself.
"""
from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Callable, Iterable

import httpx
from pydantic import ValidationError

from . import client
from .config import settings
from .errors import BookingError, FetchFailure, InvalidInput, NoAvailability, SlotConflict, SubmissionFailure
from .models import AppointmentRequest, Doctor, PaymentRedirect
from .slots import (
    Clock,
    booking_window,
    filter_booked_slots,
    generate_time_slots,
    normalize_slot,
    resolve_availability,
    system_clock,
    weekday_name,
)

logger = logging.getLogger(__name__)

# Errors the collaborator layer can raise for a failed or malformed exchange.
API_ERRORS = (httpx.HTTPError, ValidationError)


def parse_date(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError as err:
        raise InvalidInput(f"Unparseable date {value!r}") from err


class AppointmentSubmitter:
    """Validates a (date, slot) choice and hands it to the booking API."""

    def validate(
        self,
        doctor: Doctor,
        patient_id: str | None,
        target_date: date | None,
        time_slot: str | None,
        booked: Iterable[str],
    ) -> AppointmentRequest:
        if not target_date or not (time_slot or "").strip():
            raise InvalidInput("date and time slot are required")
        if not patient_id:
            raise InvalidInput("patient id is required")

        if resolve_availability(doctor.availability, target_date) is None:
            raise NoAvailability(weekday_name(target_date))

        if normalize_slot(time_slot) in set(booked):
            raise SlotConflict(f"{time_slot!r} on {target_date} is already booked for doctor {doctor.doctor_id}")

        return AppointmentRequest(
            doctor_id=doctor.doctor_id,
            patient_id=str(patient_id),
            date=target_date,
            time_slot=time_slot.strip(),
        )

    async def send(self, request: AppointmentRequest) -> PaymentRedirect:
        try:
            created = await client.create_appointment(request)
        except API_ERRORS as err:
            logger.exception("Creating appointment for doctor %s on %s failed", request.doctor_id, request.date)
            raise SubmissionFailure(str(err)) from err
        return PaymentRedirect(appointment_id=created.appointment_id, doctor_id=request.doctor_id)

    async def submit(
        self,
        doctor: Doctor,
        patient_id: str | None,
        target_date: date | None,
        time_slot: str | None,
        booked: Iterable[str],
    ) -> PaymentRedirect:
        request = self.validate(doctor, patient_id, target_date, time_slot, booked)
        return await self.send(request)


class FormState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    REDIRECTING = "redirecting"


class BookingForm:
    """
    Client-side state for booking one doctor.

    Flow: load_doctor -> select_date -> select_slot -> submit. Failures leave
    the form in IDLE with ``error`` set and the user's choices intact, so it
    can simply be submitted again. REDIRECTING is terminal.
    """

    def __init__(
        self,
        navigate: Callable[[str], object] | None = None,
        notify: Callable[[str, str], object] | None = None,
        clock: Clock | None = None,
        horizon_days: int | None = None,
        submitter: AppointmentSubmitter | None = None,
    ):
        self._navigate = navigate
        self._notify = notify
        self.clock = clock or system_clock(settings.tz)
        self.horizon_days = settings.horizon_days if horizon_days is None else horizon_days
        self.submitter = submitter or AppointmentSubmitter()

        self.state = FormState.IDLE
        self.doctor: Doctor | None = None
        self.date: date | None = None
        self.time_slot: str | None = None
        self.available_slots: list[str] = []
        self.booked_slots: frozenset[str] = frozenset()
        self.error: str | None = None
        self.loading = False
        self.redirect: PaymentRedirect | None = None
        self._generation = 0

    @property
    def can_submit(self) -> bool:
        return bool(self.date and self.time_slot) and not self.loading and self.state == FormState.IDLE

    def date_bounds(self) -> tuple[date, date]:
        return booking_window(self.clock(), self.horizon_days)

    def _fail(self, err: BookingError) -> BookingError:
        self.error = err.user_message
        return err

    async def load_doctor(self, doctor_id: str) -> Doctor:
        try:
            self.doctor = await client.fetch_doctor(doctor_id)
        except API_ERRORS as err:
            logger.exception("Doctor fetch for %s failed", doctor_id)
            raise self._fail(FetchFailure(str(err), user_message="Failed to load doctor details.")) from err
        return self.doctor

    async def select_date(self, value: date | str) -> list[str]:
        """Pick a date and compute its bookable slots. The latest call wins."""
        target_date = parse_date(value)
        if target_date is None:
            raise self._fail(InvalidInput("date is required"))
        low, high = self.date_bounds()
        if not low <= target_date <= high:
            raise self._fail(InvalidInput(f"{target_date} is outside {low}..{high}"))
        if self.doctor is None:
            raise self._fail(InvalidInput("doctor not loaded"))

        self._generation += 1
        generation = self._generation
        self.date = target_date
        # nothing from the previous date may stay selectable for this one
        self.time_slot = None
        self.available_slots = []
        self.booked_slots = frozenset()

        window = resolve_availability(self.doctor.availability, target_date)
        if window is None:
            raise self._fail(NoAvailability(weekday_name(target_date)))

        candidates = generate_time_slots(window.from_, window.to, target_date, self.clock())
        try:
            appointments = await client.fetch_booked_appointments(self.doctor.doctor_id)
        except API_ERRORS as err:
            logger.exception("Booked appointments fetch for doctor %s failed", self.doctor.doctor_id)
            failure = FetchFailure(str(err))
            if generation == self._generation:
                self._fail(failure)
            raise failure from err

        if generation != self._generation:
            # superseded by a newer selection
            return self.available_slots

        result = filter_booked_slots(candidates, appointments, target_date)
        self.available_slots = result.slots
        self.booked_slots = result.booked
        self.error = None
        return self.available_slots

    def select_slot(self, label: str) -> None:
        if label not in self.available_slots:
            raise self._fail(InvalidInput(f"{label!r} is not an offered slot"))
        self.time_slot = label

    async def submit(self, patient_id: str | None) -> PaymentRedirect:
        if self.state == FormState.REDIRECTING:
            raise InvalidInput("form already submitted")
        if self.loading or self.state in (FormState.VALIDATING, FormState.SUBMITTING):
            raise InvalidInput("submission already in progress")
        if self.doctor is None:
            raise self._fail(InvalidInput("doctor not loaded"))

        self.loading = True
        self.error = None
        self.state = FormState.VALIDATING
        try:
            request = self.submitter.validate(
                self.doctor, patient_id, self.date, self.time_slot, self.booked_slots
            )
            self.state = FormState.SUBMITTING
            redirect = await self.submitter.send(request)
        except BookingError as err:
            self.state = FormState.IDLE
            self._fail(err)
            if isinstance(err, SubmissionFailure) and self._notify:
                self._notify("Something went wrong.", "danger")
            raise
        finally:
            self.loading = False

        self.state = FormState.REDIRECTING
        self.redirect = redirect
        if self._notify:
            self._notify("Redirecting to payment...", "info")
        if self._navigate:
            self._navigate(redirect.path)
        return redirect
