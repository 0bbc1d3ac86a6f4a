"""Async client for the doctors/appointments booking API.
The API stays the authority on availability and uniqueness; nothing here caches.
"""
from __future__ import annotations
import logging
import httpx
from .config import settings
from .models import AppointmentCreated, AppointmentRequest, BookedAppointment, Doctor

logger = logging.getLogger(__name__)

_BASE_URL = settings.api_base_url
_TIMEOUT = settings.api_timeout

_HEADERS = {"Accept": "application/json"}


async def fetch_doctor(doctor_id: str) -> Doctor:
    """Return the doctor record, availability windows included."""
    async with httpx.AsyncClient(http2=True, timeout=_TIMEOUT) as client:
        resp = await client.get(f"{_BASE_URL}/doctors/{doctor_id}", headers=_HEADERS)
        resp.raise_for_status()
        payload = resp.json()

    # some deployments wrap the record: {"doctor": {...}}
    if isinstance(payload, dict) and "doctor" in payload:
        payload = payload["doctor"]
    return Doctor.model_validate(payload)


async def fetch_booked_appointments(doctor_id: str) -> list[BookedAppointment]:
    """Return every appointment on file for a doctor, all dates."""
    async with httpx.AsyncClient(http2=True, timeout=_TIMEOUT) as client:
        resp = await client.get(f"{_BASE_URL}/appointments/doctor/{doctor_id}", headers=_HEADERS)
        resp.raise_for_status()
        payload = resp.json()

    entries = payload.get("appointments", []) if isinstance(payload, dict) else payload
    appointments = [BookedAppointment.model_validate(entry) for entry in entries]
    logger.debug("Fetched %d appointments for doctor %s", len(appointments), doctor_id)
    return appointments


async def create_appointment(request: AppointmentRequest) -> AppointmentCreated:
    """Submit a new appointment; returns the id the API assigned."""
    headers = {**_HEADERS, "Content-Type": "application/json"}
    async with httpx.AsyncClient(http2=True, timeout=_TIMEOUT) as client:
        resp = await client.post(f"{_BASE_URL}/appointments", headers=headers, json=request.to_payload())
        resp.raise_for_status()
        payload = resp.json()

    created = AppointmentCreated.model_validate(payload)
    logger.info("Created appointment %s for doctor %s on %s", created.appointment_id, request.doctor_id, request.date)
    return created
