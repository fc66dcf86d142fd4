import logging
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from flight_booking.domain.exceptions import (
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    ForbiddenError,
    InsufficientInventoryError,
    ValidationError,
)
from flight_booking.domain.state_machine import BookingStateMachine, BookingStatus
from flight_booking.infrastructure.db.models import Booking
from flight_booking.infrastructure.db.session import transaction
from flight_booking.infrastructure.repositories.booking_repository import BookingRepository
from flight_booking.infrastructure.repositories.inventory_repository import InventoryRepository

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class BookingService:
    """
    Application service coordinating the booking lifecycle.
    Each public method runs in its own transaction.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def create_booking(
        self,
        user_id: int,
        flight_id: int,
        num_seats: int,
    ) -> Booking:
        """
        Reserves seats and records a pending_payment booking.
        The seat decrement and the booking row commit together or not at all.
        """
        if num_seats <= 0:
            raise ValidationError("Number of seats must be a positive integer.")

        with transaction(self.session_factory) as db:
            inventory = InventoryRepository(db)
            bookings = BookingRepository(db)

            flight = inventory.lock_flight(flight_id)
            if flight.available_seats < num_seats:
                raise InsufficientInventoryError(
                    flight_id=flight_id,
                    requested=num_seats,
                    available=flight.available_seats,
                )

            total_price = (flight.price * num_seats).quantize(CENTS)
            booking = bookings.create_booking(
                user_id=user_id,
                flight_id=flight_id,
                num_seats=num_seats,
                total_price=total_price,
            )
            inventory.reserve(flight_id, num_seats)
            db.flush()

            booking = bookings.get_detail(booking.id)

        logger.info(
            "Booking %s created: user=%s flight=%s seats=%s total=%s",
            booking.id,
            user_id,
            flight_id,
            num_seats,
            total_price,
        )
        return booking

    def cancel_booking(
        self,
        booking_id: int,
        caller_user_id: int,
    ) -> Booking:
        with transaction(self.session_factory) as db:
            bookings = BookingRepository(db)
            inventory = InventoryRepository(db)

            booking = bookings.lock_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            if booking.user_id != caller_user_id:
                raise ForbiddenError("User not authorized to cancel this booking.")
            if booking.status == BookingStatus.CANCELLED:
                raise BookingAlreadyCancelledError(booking_id)
            if booking.status == BookingStatus.CONFIRMED:
                logger.info("Cancelling confirmed booking %s", booking_id)

            self._transition(bookings, booking, BookingStatus.CANCELLED)
            # A missing flight is logged by the ledger; the cancellation still commits.
            inventory.release(booking.flight_id, booking.num_seats)
            db.flush()

            booking = bookings.get_detail(booking_id)

        logger.info("Booking %s cancelled by user %s", booking_id, caller_user_id)
        return booking

    def get_booking(
        self,
        booking_id: int,
        caller_user_id: int,
    ) -> Booking:
        with transaction(self.session_factory) as db:
            booking = BookingRepository(db).get_detail(booking_id)

        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.user_id != caller_user_id:
            raise ForbiddenError("Not authorized to view this booking.")
        return booking

    def list_bookings(self, user_id: int) -> list[Booking]:
        with transaction(self.session_factory) as db:
            return BookingRepository(db).list_for_user(user_id)

    @staticmethod
    def _transition(
        bookings: BookingRepository,
        booking: Booking,
        to_status: BookingStatus,
    ) -> None:
        BookingStateMachine.validate_transition(booking.status, to_status)
        bookings.update_status(booking, to_status)
