from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class AvailabilityStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"


class AvailabilityWindow(BaseModel):
    """Recurring weekly interval in which a doctor accepts appointments."""
    day: str
    from_: time = Field(alias="from")
    to: time
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE

    model_config = {"populate_by_name": True}

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _parse_clock(cls, value):
        # 24-hour "HH:MM", seconds optional
        if isinstance(value, str):
            raw = value.strip()
            fmt = "%H:%M:%S" if raw.count(":") == 2 else "%H:%M"
            return datetime.strptime(raw, fmt).time()
        return value


class Doctor(BaseModel):
    doctor_id: str = Field(alias="doctorID")
    name: str | None = None
    specialization: str | None = None
    fee: int | None = None
    availability: list[AvailabilityWindow] = []

    model_config = {"populate_by_name": True}

    @field_validator("doctor_id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("availability", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return [] if value is None else value


class BookedAppointment(BaseModel):
    appointment_id: str | None = Field(default=None, alias="appointmentID")
    doctor_id: str = Field(alias="doctorID")
    patient_id: str | None = Field(default=None, alias="patientID")
    date: date
    time_slot: str = Field(alias="timeSlot")
    status: str | None = None
    payment_status: str | None = Field(default=None, alias="paymentStatus")

    model_config = {"populate_by_name": True}

    @field_validator("appointment_id", "doctor_id", "patient_id", mode="before")
    @classmethod
    def _ids_as_str(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_date(cls, value):
        # Keep the date as written; "2025-08-15T00:00:00Z" is the 15th everywhere.
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10:
            return value.strip()[:10]
        return value


class AppointmentRequest(BaseModel):
    doctor_id: str = Field(alias="doctorID")
    patient_id: str = Field(alias="patientID")
    date: date
    time_slot: str = Field(alias="timeSlot")
    status: str = "Booked"
    payment_status: str = Field(default="Unpaid", alias="paymentStatus")

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AppointmentCreated(BaseModel):
    appointment_id: str = Field(alias="appointmentID")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("appointment_id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value


class PaymentRedirect(BaseModel):
    """Where the caller goes once the appointment exists."""
    appointment_id: str
    doctor_id: str

    @property
    def path(self) -> str:
        return f"/payment/{self.appointment_id}?doctorId={self.doctor_id}"
