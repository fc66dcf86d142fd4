from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from flight_booking.config import Settings
from flight_booking.infrastructure.db.models import Airport, Flight, User
from flight_booking.infrastructure.db.session import (
    Base,
    build_engine,
    build_session_factory,
    transaction,
)
from flight_booking.main import create_app


AIRPORTS = [
    {"airport_code": "SFO", "name": "San Francisco International Airport", "city": "San Francisco", "country": "USA"},
    {"airport_code": "JFK", "name": "John F. Kennedy International Airport", "city": "New York", "country": "USA"},
    {"airport_code": "LAX", "name": "Los Angeles International Airport", "city": "Los Angeles", "country": "USA"},
]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        jwt_secret="test-secret",
        database_url=f"sqlite:///{tmp_path / 'flights.db'}",
        db_pool_size=20,
        db_max_overflow=0,
        db_pool_timeout=30,
        db_connect_max_retries=1,
        db_connect_retry_delay=0,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def seed_user(session_factory):

    def _seed(username: str = "traveller", user_id: int | None = None) -> int:
        with transaction(session_factory) as db:
            user = User(
                id=user_id,
                username=username,
                email=f"{username}@example.com",
                password_hash="not-a-real-hash",
                first_name=username.title(),
                last_name="Tester",
            )
            db.add(user)
            db.flush()
            return user.id

    return _seed


@pytest.fixture
def seed_flight(session_factory):

    def _seed(
        available_seats: int = 5,
        total_seats: int | None = None,
        price: str = "200.00",
        departure_time: datetime = datetime(2025, 6, 10, 9, 0),
        flight_number: str = "FB101",
        origin: str = "SFO",
        destination: str = "JFK",
    ) -> int:
        with transaction(session_factory) as db:
            for airport in AIRPORTS:
                if db.get(Airport, airport["airport_code"]) is None:
                    db.add(Airport(**airport))
            db.flush()

            flight = Flight(
                flight_number=flight_number,
                departure_airport_code=origin,
                arrival_airport_code=destination,
                departure_time=departure_time,
                arrival_time=departure_time + timedelta(hours=5),
                price=Decimal(price),
                total_seats=total_seats if total_seats is not None else available_seats,
                available_seats=available_seats,
            )
            db.add(flight)
            db.flush()
            return flight.id

    return _seed


@pytest.fixture
def flight_seats(session_factory):

    def _read(flight_id: int) -> int:
        with transaction(session_factory) as db:
            return db.get(Flight, flight_id).available_seats

    return _read


@pytest.fixture
def client(settings, engine):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):

    def _register(username: str = "traveller") -> dict:
        response = client.post(
            "/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": "s3cret-pass",
                "firstName": username.title(),
                "lastName": "Tester",
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "user": body["user"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register
