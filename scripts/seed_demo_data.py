from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select

from flight_booking.config import Settings, configure_logging
from flight_booking.infrastructure.db.models import Airport, Flight
from flight_booking.infrastructure.db.session import (
    Base,
    build_engine,
    build_session_factory,
    transaction,
)


AIRPORTS = [
    {"airport_code": "SFO", "name": "San Francisco International Airport", "city": "San Francisco", "country": "USA"},
    {"airport_code": "JFK", "name": "John F. Kennedy International Airport", "city": "New York", "country": "USA"},
    {"airport_code": "LAX", "name": "Los Angeles International Airport", "city": "Los Angeles", "country": "USA"},
    {"airport_code": "ORD", "name": "O'Hare International Airport", "city": "Chicago", "country": "USA"},
    {"airport_code": "LHR", "name": "Heathrow Airport", "city": "London", "country": "United Kingdom"},
]


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    target = datetime.now() + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def seed_airports(db) -> None:
    for item in AIRPORTS:
        existing = db.get(Airport, item["airport_code"])
        if existing:
            existing.name = item["name"]
            existing.city = item["city"]
            existing.country = item["country"]
            continue
        db.add(Airport(**item))
    db.flush()


def seed_flights(db) -> None:
    flight_defs = [
        {
            "flight_number": "FB101",
            "departure_airport_code": "SFO",
            "arrival_airport_code": "JFK",
            "departure_time": _dt(days_from_now=7, hour=8, minute=0),
            "duration": timedelta(hours=5, minutes=30),
            "price": Decimal("200.00"),
            "total_seats": 150,
        },
        {
            "flight_number": "FB102",
            "departure_airport_code": "JFK",
            "arrival_airport_code": "SFO",
            "departure_time": _dt(days_from_now=8, hour=17, minute=45),
            "duration": timedelta(hours=6, minutes=15),
            "price": Decimal("215.00"),
            "total_seats": 150,
        },
        {
            "flight_number": "FB220",
            "departure_airport_code": "LAX",
            "arrival_airport_code": "ORD",
            "departure_time": _dt(days_from_now=3, hour=11, minute=20),
            "duration": timedelta(hours=4, minutes=5),
            "price": Decimal("149.50"),
            "total_seats": 90,
        },
        {
            "flight_number": "FB900",
            "departure_airport_code": "JFK",
            "arrival_airport_code": "LHR",
            "departure_time": _dt(days_from_now=14, hour=21, minute=0),
            "duration": timedelta(hours=7),
            "price": Decimal("540.00"),
            "total_seats": 220,
        },
    ]

    for item in flight_defs:
        existing = db.execute(
            select(Flight)
            .where(Flight.flight_number == item["flight_number"])
            .where(Flight.departure_time == item["departure_time"])
        ).scalar_one_or_none()
        if existing:
            existing.price = item["price"]
            continue

        db.add(
            Flight(
                flight_number=item["flight_number"],
                departure_airport_code=item["departure_airport_code"],
                arrival_airport_code=item["arrival_airport_code"],
                departure_time=item["departure_time"],
                arrival_time=item["departure_time"] + item["duration"],
                price=item["price"],
                total_seats=item["total_seats"],
                available_seats=item["total_seats"],
            )
        )


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)

    with transaction(build_session_factory(engine)) as db:
        seed_airports(db)
        seed_flights(db)

    engine.dispose()
    print("Seed complete: airports and demo flights added.")


if __name__ == "__main__":
    main()
