from typing import List, Optional


class StoreUnavailableError(Exception):
    """The document store could not be reached after the bounded retry."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store unavailable during '{operation}': {cause}")


class NotFoundError(Exception):
    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")


class ProfileValidationError(Exception):
    """Raised before any write when a profile update is inconsistent."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class BookingConflictError(Exception):
    def __init__(self, professional_id: str, booking_date, start_time):
        self.professional_id = professional_id
        self.booking_date = booking_date
        self.start_time = start_time
        super().__init__(
            f"Slot {booking_date} {start_time} is already booked for professional {professional_id}"
        )


class InvalidBookingTransitionError(Exception):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move booking from '{current}' to '{target}'")
