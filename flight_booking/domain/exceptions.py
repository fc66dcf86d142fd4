

class FlightBookingError(Exception):
    """
    Base exception for all domain-level errors
    inside the flight booking backend.
    """

    code = "error"


class ValidationError(FlightBookingError):
    """Raised when input is missing or malformed."""

    code = "validation_error"


class NotFoundError(FlightBookingError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class FlightNotFoundError(NotFoundError):

    def __init__(self, flight_id: int):
        self.flight_id = flight_id
        super().__init__("Flight not found.")


class BookingNotFoundError(NotFoundError):

    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__("Booking not found.")


class ForbiddenError(FlightBookingError):
    """Raised when a caller acts on a booking owned by someone else."""

    code = "forbidden"


class UnauthorizedError(FlightBookingError):
    """Raised when the identity assertion is missing, invalid or expired."""

    code = "unauthorized"


class DuplicateUserError(FlightBookingError):
    code = "duplicate_user"


class InvalidStateTransitionError(FlightBookingError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    code = "invalid_state"

    def __init__(self, from_state: str, to_state: str, message: str | None = None):
        self.from_state = from_state
        self.to_state = to_state

        if message is None:
            message = (
                f"Illegal state transition attempted: "
                f"{from_state} -> {to_state}"
            )
        super().__init__(message)


class BookingAlreadyCancelledError(InvalidStateTransitionError):

    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__(
            from_state="cancelled",
            to_state="cancelled",
            message="Booking is already cancelled.",
        )


class InsufficientInventoryError(FlightBookingError):
    """Raised when a flight has fewer available seats than requested."""

    code = "insufficient_inventory"

    def __init__(self, flight_id: int, requested: int, available: int):
        self.flight_id = flight_id
        self.requested = requested
        self.available = available
        super().__init__("Not enough available seats on this flight.")
