# flight_booking/infrastructure/repositories/inventory_repository.py

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from flight_booking.domain.exceptions import FlightNotFoundError, InsufficientInventoryError
from flight_booking.infrastructure.db.models import Flight

logger = logging.getLogger(__name__)


class InventoryRepository:
    """
    Seat ledger for flights.
    Every method works inside the caller's transaction; the flight row
    stays locked until that transaction commits or rolls back.
    """

    def __init__(self, db: Session):
        self.db = db

    def lock_flight(self, flight_id: int) -> Flight:
        """
        SELECT ... FOR UPDATE
        Prevents two bookings from passing the seat check on a stale read.
        """
        flight = self._select_for_update(flight_id)

        if flight is None:
            raise FlightNotFoundError(flight_id)

        return flight

    def reserve(self, flight_id: int, seat_count: int) -> Flight:
        flight = self.lock_flight(flight_id)

        if flight.available_seats < seat_count:
            raise InsufficientInventoryError(
                flight_id=flight_id,
                requested=seat_count,
                available=flight.available_seats,
            )

        flight.available_seats -= seat_count
        return flight

    def release(self, flight_id: int, seat_count: int) -> bool:
        """
        Puts seats back on the flight.
        Returns False instead of raising when the flight is gone, so a
        cancellation can still commit.
        """
        flight = self._select_for_update(flight_id)

        if flight is None:
            logger.warning(
                "Could not restore %s seats for missing flight %s.",
                seat_count,
                flight_id,
            )
            return False

        restored = flight.available_seats + seat_count
        if restored > flight.total_seats:
            logger.warning(
                "Seat release on flight %s would exceed capacity (%s > %s); clamping.",
                flight_id,
                restored,
                flight.total_seats,
            )
            restored = flight.total_seats

        flight.available_seats = restored
        return True

    def _select_for_update(self, flight_id: int) -> Flight | None:
        stmt = (
            select(Flight)
            .where(Flight.id == flight_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()
