# flight_booking/infrastructure/repositories/flight_repository.py

from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from flight_booking.infrastructure.db.models import Airport, Flight

# Search covers the day before and the day after the requested date.
SEARCH_WINDOW_DAYS = 1


class FlightRepository:
    """Read-only catalog queries over flights and airports."""

    def __init__(self, db: Session):
        self.db = db

    def search(
        self,
        from_airport: str,
        to_airport: str,
        departure_date: date,
    ) -> list[Flight]:
        window_start = datetime.combine(
            departure_date - timedelta(days=SEARCH_WINDOW_DAYS),
            time.min,
        )
        window_end = datetime.combine(
            departure_date + timedelta(days=SEARCH_WINDOW_DAYS + 1),
            time.min,
        )

        stmt = (
            select(Flight)
            .options(
                joinedload(Flight.departure_airport),
                joinedload(Flight.arrival_airport),
            )
            .where(Flight.departure_airport_code == from_airport)
            .where(Flight.arrival_airport_code == to_airport)
            .where(Flight.departure_time >= window_start)
            .where(Flight.departure_time < window_end)
            .where(Flight.available_seats > 0)
            .order_by(Flight.departure_time)
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def get_detail(self, flight_id: int) -> Flight | None:
        stmt = (
            select(Flight)
            .options(
                joinedload(Flight.departure_airport),
                joinedload(Flight.arrival_airport),
            )
            .where(Flight.id == flight_id)
        )
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def list_airports(self) -> list[Airport]:
        stmt = select(Airport).order_by(Airport.city, Airport.name)
        return list(self.db.execute(stmt).scalars().all())
