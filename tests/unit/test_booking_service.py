import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from flight_booking.application.booking_service import BookingService
from flight_booking.application.payment_service import PaymentService
from flight_booking.domain.exceptions import (
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    FlightNotFoundError,
    ForbiddenError,
    InsufficientInventoryError,
    ValidationError,
)
from flight_booking.domain.state_machine import BookingStatus
from flight_booking.infrastructure.db.models import Booking, Flight
from flight_booking.infrastructure.db.session import transaction


@pytest.fixture
def service(session_factory):
    return BookingService(session_factory)


def _booking_count(session_factory) -> int:
    with transaction(session_factory) as db:
        return db.execute(select(func.count(Booking.id))).scalar_one()


def test_create_booking_reserves_seats_and_freezes_price(service, seed_user, seed_flight, flight_seats):
    user_id = seed_user(user_id=7)
    flight_id = seed_flight(available_seats=5, price="200.00")

    booking = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=2)

    assert booking.status == BookingStatus.PENDING_PAYMENT
    assert booking.total_price == Decimal("400.00")
    assert booking.user_id == 7
    assert booking.flight.flight_number == "FB101"
    assert booking.flight.departure_airport.city == "San Francisco"
    assert booking.flight.arrival_airport.airport_code == "JFK"
    assert flight_seats(flight_id) == 3


def test_total_price_does_not_follow_later_fare_changes(service, session_factory, seed_user, seed_flight):
    user_id = seed_user()
    flight_id = seed_flight(price="200.00")
    booking = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=2)

    with transaction(session_factory) as db:
        db.get(Flight, flight_id).price = Decimal("999.00")

    reloaded = service.get_booking(booking.id, caller_user_id=user_id)
    assert reloaded.total_price == Decimal("400.00")
    assert reloaded.flight.price == Decimal("999.00")


def test_insufficient_inventory_leaves_no_trace(service, session_factory, seed_user, seed_flight, flight_seats):
    user_id = seed_user()
    flight_id = seed_flight(available_seats=3)

    with pytest.raises(InsufficientInventoryError):
        service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=10)

    assert flight_seats(flight_id) == 3
    assert _booking_count(session_factory) == 0


def test_create_booking_for_unknown_flight(service, session_factory, seed_user):
    user_id = seed_user()

    with pytest.raises(FlightNotFoundError):
        service.create_booking(user_id=user_id, flight_id=404, num_seats=1)

    assert _booking_count(session_factory) == 0


@pytest.mark.parametrize("num_seats", [0, -2])
def test_create_booking_requires_positive_seats(service, seed_user, seed_flight, num_seats):
    user_id = seed_user()
    flight_id = seed_flight()

    with pytest.raises(ValidationError):
        service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=num_seats)


def test_create_then_cancel_restores_seats(service, seed_user, seed_flight, flight_seats):
    user_id = seed_user()
    flight_id = seed_flight(available_seats=5)

    booking = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=4)
    assert flight_seats(flight_id) == 1

    cancelled = service.cancel_booking(booking.id, caller_user_id=user_id)

    assert cancelled.status == BookingStatus.CANCELLED
    assert flight_seats(flight_id) == 5


def test_cancel_by_other_user_is_forbidden(service, seed_user, seed_flight, flight_seats):
    owner_id = seed_user("owner")
    intruder_id = seed_user("intruder")
    flight_id = seed_flight(available_seats=5)
    booking = service.create_booking(user_id=owner_id, flight_id=flight_id, num_seats=2)

    with pytest.raises(ForbiddenError):
        service.cancel_booking(booking.id, caller_user_id=intruder_id)

    assert service.get_booking(booking.id, caller_user_id=owner_id).status == BookingStatus.PENDING_PAYMENT
    assert flight_seats(flight_id) == 3


def test_cancel_twice_fails_without_double_release(service, seed_user, seed_flight, flight_seats):
    user_id = seed_user()
    flight_id = seed_flight(available_seats=5)
    booking = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=2)
    service.cancel_booking(booking.id, caller_user_id=user_id)

    with pytest.raises(BookingAlreadyCancelledError):
        service.cancel_booking(booking.id, caller_user_id=user_id)

    assert flight_seats(flight_id) == 5


def test_cancel_unknown_booking(service, seed_user):
    user_id = seed_user()

    with pytest.raises(BookingNotFoundError):
        service.cancel_booking(9999, caller_user_id=user_id)


def test_get_booking_checks_ownership(service, seed_user, seed_flight):
    owner_id = seed_user("owner")
    other_id = seed_user("other")
    flight_id = seed_flight()
    booking = service.create_booking(user_id=owner_id, flight_id=flight_id, num_seats=1)

    with pytest.raises(ForbiddenError):
        service.get_booking(booking.id, caller_user_id=other_id)
    with pytest.raises(BookingNotFoundError):
        service.get_booking(booking.id + 100, caller_user_id=owner_id)


def test_list_bookings_returns_only_callers_newest_first(service, seed_user, seed_flight):
    user_id = seed_user("alice")
    other_id = seed_user("bob")
    flight_id = seed_flight(available_seats=10)

    first = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=1)
    second = service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=2)
    service.create_booking(user_id=other_id, flight_id=flight_id, num_seats=1)

    bookings = service.list_bookings(user_id)

    assert [booking.id for booking in bookings] == [second.id, first.id]
    assert bookings[0].flight.arrival_airport.city == "New York"


def test_sfo_to_jfk_lifecycle(session_factory, service, seed_user, seed_flight, flight_seats):
    payments = PaymentService(session_factory)
    user_id = seed_user(user_id=7)
    flight_id = seed_flight(available_seats=5, price="200.00")

    booking = service.create_booking(user_id=7, flight_id=flight_id, num_seats=2)
    assert booking.status == BookingStatus.PENDING_PAYMENT
    assert booking.total_price == Decimal("400.00")
    assert flight_seats(flight_id) == 3

    payment = payments.confirm_payment(
        booking.id,
        payment_method="credit_card",
        card_last4="4242",
        amount=Decimal("400.00"),
    )
    assert payment.status.value == "success"
    assert service.get_booking(booking.id, caller_user_id=user_id).status == BookingStatus.CONFIRMED
    assert flight_seats(flight_id) == 3

    cancelled = service.cancel_booking(booking.id, caller_user_id=7)
    assert cancelled.status == BookingStatus.CANCELLED
    assert flight_seats(flight_id) == 5


def test_concurrent_bookings_never_oversell(service, seed_user, seed_flight, flight_seats):
    seats = 3
    callers = 8
    user_id = seed_user()
    flight_id = seed_flight(available_seats=seats)
    barrier = threading.Barrier(callers)

    def book_one_seat():
        barrier.wait()
        try:
            service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=1)
            return "booked"
        except InsufficientInventoryError:
            return "sold_out"

    with ThreadPoolExecutor(max_workers=callers) as pool:
        outcomes = list(pool.map(lambda _: book_one_seat(), range(callers)))

    assert outcomes.count("booked") == seats
    assert outcomes.count("sold_out") == callers - seats
    assert flight_seats(flight_id) == 0


def test_concurrent_create_and_cancel_keep_seat_bounds(service, session_factory, seed_user, seed_flight):
    user_id = seed_user()
    flight_id = seed_flight(available_seats=4)
    existing = [
        service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=1)
        for _ in range(2)
    ]
    barrier = threading.Barrier(6)

    def cancel(booking_id):
        barrier.wait()
        service.cancel_booking(booking_id, caller_user_id=user_id)

    def create():
        barrier.wait()
        try:
            service.create_booking(user_id=user_id, flight_id=flight_id, num_seats=1)
        except InsufficientInventoryError:
            pass

    with ThreadPoolExecutor(max_workers=6) as pool:
        futures = [pool.submit(cancel, booking.id) for booking in existing]
        futures += [pool.submit(create) for _ in range(4)]
        for future in futures:
            future.result()

    with transaction(session_factory) as db:
        flight = db.get(Flight, flight_id)
        active = db.execute(
            select(func.coalesce(func.sum(Booking.num_seats), 0))
            .where(Booking.flight_id == flight_id)
            .where(Booking.status != BookingStatus.CANCELLED)
        ).scalar_one()

    assert 0 <= flight.available_seats <= flight.total_seats
    assert flight.available_seats + active == flight.total_seats
