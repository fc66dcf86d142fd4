# flight_booking/infrastructure/repositories/booking_repository.py

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from flight_booking.infrastructure.db.models import Booking, Flight
from flight_booking.domain.state_machine import BookingStatus


def _with_flight_details():
    flight = joinedload(Booking.flight)
    return (
        flight.joinedload(Flight.departure_airport),
        flight.joinedload(Flight.arrival_airport),
    )


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def lock_booking(
        self,
        booking_id: int,
    ) -> Booking | None:
        """
        SELECT ... FOR UPDATE on the booking row.
        Serializes payment and cancellation of the same booking.
        """
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_id(
        self,
        booking_id: int,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_detail(
        self,
        booking_id: int,
    ) -> Booking | None:
        """Booking with its flight and both airports loaded."""
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .options(*_with_flight_details())
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .options(*_with_flight_details())
            .order_by(Booking.booking_time.desc(), Booking.id.desc())
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def create_booking(
        self,
        user_id: int,
        flight_id: int,
        num_seats: int,
        total_price: Decimal,
    ) -> Booking:

        booking = Booking(
            user_id=user_id,
            flight_id=flight_id,
            num_seats=num_seats,
            total_price=total_price,
            status=BookingStatus.PENDING_PAYMENT,
        )

        self.db.add(booking)
        self.db.flush()
        return booking

    def update_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
    ) -> None:

        booking.status = new_status
