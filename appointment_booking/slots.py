"""Slot derivation.

Turns a doctor's weekly availability windows plus the already-booked
appointments into the list of one-hour slots that can be offered for a date:

    resolve_availability -> generate_time_slots -> filter_booked_slots

Everything here is pure; "now" is always passed in (or comes from a clock the
caller owns) so results are reproducible.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Iterable, NamedTuple

from .errors import NoAvailability
from .models import AvailabilityStatus, AvailabilityWindow, BookedAppointment, Doctor

logger = logging.getLogger(__name__)

SLOT_LENGTH = timedelta(hours=1)
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

Clock = Callable[[], datetime]


def system_clock(tz: tzinfo | None = None) -> Clock:
    """Return a clock reading the wall time in ``tz``."""
    def now() -> datetime:
        return datetime.now(tz)
    return now


def weekday_name(target_date: date) -> str:
    return WEEKDAYS[target_date.weekday()]


def booking_window(now: datetime, horizon_days: int = 30) -> tuple[date, date]:
    """First and last date a patient may pick (inclusive)."""
    today = now.date()
    return today, today + timedelta(days=horizon_days)


# Availability ---------------------------------------------------------------

def resolve_availability(
    windows: Iterable[AvailabilityWindow], target_date: date
) -> AvailabilityWindow | None:
    """Return the Available window for the weekday of ``target_date``, if any."""
    weekday = weekday_name(target_date).lower()
    matches = [
        w for w in windows
        if w.day.strip().lower() == weekday and w.status == AvailabilityStatus.AVAILABLE
    ]
    if not matches:
        return None
    if len(matches) > 1:
        # Unclear whether several windows per weekday are legitimate; first one wins.
        logger.warning(
            "%d Available windows match %s, using %s-%s",
            len(matches), weekday_name(target_date), matches[0].from_, matches[0].to,
        )
    return matches[0]


# Generation -----------------------------------------------------------------

def format_time(moment: datetime) -> str:
    """12-hour wall clock, zero padded: ``09:00 AM``."""
    hour = moment.hour % 12 or 12
    period = "PM" if moment.hour >= 12 else "AM"
    return f"{hour:02d}:{moment.minute:02d} {period}"


def format_slot(start: datetime, end: datetime) -> str:
    return f"{format_time(start)} - {format_time(end)}"


def generate_time_slots(
    window_from: time, window_to: time, target_date: date, now: datetime
) -> list[str]:
    """
    Split ``[window_from, window_to)`` on ``target_date`` into one-hour slots.

    Slots are anchored in ``now``'s time zone. When ``target_date`` is today,
    slots that have already ended are skipped; a slot in progress is kept.
    A trailing partial hour is dropped.

    With an aware ``now`` the cursor steps in UTC, so every slot is one real
    hour even across a DST change; labels are still local wall time, which on
    the fall-back day gives a slot like ``01:00 AM - 01:00 AM``.
    """
    tz = now.tzinfo
    window_start = datetime.combine(target_date, window_from, tzinfo=tz)
    window_end = datetime.combine(target_date, window_to, tzinfo=tz)

    def wall(moment: datetime) -> datetime:
        return moment.astimezone(tz) if tz else moment

    cursor = window_start.astimezone(timezone.utc) if tz else window_start
    if target_date == now.date():
        # Step from the window start, not from "now", one hour at a time.
        while cursor < window_end and now >= cursor + SLOT_LENGTH:
            cursor += SLOT_LENGTH

    slots = []
    while cursor < window_end and cursor + SLOT_LENGTH <= window_end:
        slots.append(format_slot(wall(cursor), wall(cursor + SLOT_LENGTH)))
        cursor += SLOT_LENGTH
    return slots


# Booked filtering -----------------------------------------------------------

class BookableSlots(NamedTuple):
    slots: list[str]
    booked: frozenset[str]


def normalize_slot(label: str | None) -> str:
    return (label or "").strip().lower()


def booked_slots_for_date(
    appointments: Iterable[BookedAppointment], target_date: date
) -> frozenset[str]:
    """Normalized labels of non-cancelled bookings on ``target_date``."""
    return frozenset(
        normalize_slot(a.time_slot)
        for a in appointments
        if a.date == target_date and normalize_slot(a.status) != "cancelled"
    )


def filter_booked_slots(
    candidates: Iterable[str],
    appointments: Iterable[BookedAppointment],
    target_date: date,
) -> BookableSlots:
    booked = booked_slots_for_date(appointments, target_date)
    logger.debug("Booked slots for %s: %s", target_date, sorted(booked))
    remaining = [slot for slot in candidates if normalize_slot(slot) not in booked]
    return BookableSlots(slots=remaining, booked=booked)


# Composition ----------------------------------------------------------------

class DaySlots(NamedTuple):
    date: date
    weekday: str
    window: AvailabilityWindow
    slots: list[str]
    booked: frozenset[str]


def compute_bookable_slots(
    doctor: Doctor,
    appointments: Iterable[BookedAppointment],
    target_date: date,
    now: datetime,
) -> DaySlots:
    """Bookable slots of ``doctor`` on ``target_date``; raises NoAvailability."""
    window = resolve_availability(doctor.availability, target_date)
    if window is None:
        raise NoAvailability(weekday_name(target_date))
    candidates = generate_time_slots(window.from_, window.to, target_date, now)
    result = filter_booked_slots(candidates, appointments, target_date)
    logger.debug("Offered slots for doctor %s on %s: %s", doctor.doctor_id, target_date, result.slots)
    return DaySlots(
        date=target_date,
        weekday=weekday_name(target_date),
        window=window,
        slots=result.slots,
        booked=result.booked,
    )
