"""Booking error taxonomy.

Every error carries a short ``user_message`` meant for display; the exception
text itself (and any chained cause) is for the logs.
"""


class BookingError(Exception):
    user_message = "Something went wrong."

    def __init__(self, detail: str | None = None, user_message: str | None = None):
        if user_message is not None:
            self.user_message = user_message
        super().__init__(detail or self.user_message)


class FetchFailure(BookingError):
    """Doctor or appointments lookup failed."""
    user_message = "Failed to load available time slots."


class NoAvailability(BookingError):
    """The doctor has no Available window on the requested weekday."""

    def __init__(self, weekday: str):
        self.weekday = weekday
        super().__init__(user_message=f"Doctor is not available on {weekday}")


class InvalidInput(BookingError):
    user_message = "Please select a valid date and time slot."


class SlotConflict(BookingError):
    user_message = "Selected slot already booked. Choose another."


class SubmissionFailure(BookingError):
    user_message = "Could not create appointment. Please try again."


DoctorUnavailable = NoAvailability
SlotAlreadyBooked = SlotConflict
SubmissionFailed = SubmissionFailure
