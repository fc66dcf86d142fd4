# flight_booking/infrastructure/db/models.py

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Enum,
    Numeric,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flight_booking.infrastructure.db.session import Base
from flight_booking.domain.state_machine import BookingStatus, PaymentStatus


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )


class Airport(Base):
    __tablename__ = "airports"

    airport_code: Mapped[str] = mapped_column(String(3), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    city: Mapped[str] = mapped_column(String(64), nullable=False)
    country: Mapped[str] = mapped_column(String(64), nullable=False)


class Flight(Base):
    """
    Flight schedule plus its seat inventory.
    available_seats is only changed by booking create and cancel.
    """

    __tablename__ = "flights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    flight_number: Mapped[str] = mapped_column(String(16), nullable=False)
    departure_airport_code: Mapped[str] = mapped_column(
        String(3),
        ForeignKey("airports.airport_code"),
        nullable=False,
    )
    arrival_airport_code: Mapped[str] = mapped_column(
        String(3),
        ForeignKey("airports.airport_code"),
        nullable=False,
    )
    departure_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    arrival_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)

    departure_airport: Mapped[Airport] = relationship(
        foreign_keys=[departure_airport_code],
    )
    arrival_airport: Mapped[Airport] = relationship(
        foreign_keys=[arrival_airport_code],
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_flight_price_nonnegative"),
        CheckConstraint("total_seats >= 0", name="ck_total_seats_nonnegative"),
        CheckConstraint("available_seats >= 0", name="ck_available_seats_nonnegative"),
        CheckConstraint("available_seats <= total_seats", name="ck_available_lte_total"),
    )


class Booking(Base):
    """
    A seat reservation on one flight.
    total_price is fixed at creation and never follows later fare changes.
    status only moves through BookingStateMachine.
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    flight_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("flights.id"),
        nullable=False,
    )
    num_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    # Frozen at creation; later fare changes do not touch it.
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            name="booking_status",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=BookingStatus.PENDING_PAYMENT,
    )
    booking_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )

    flight: Mapped[Flight] = relationship()

    __table_args__ = (
        CheckConstraint(
            "num_seats > 0",
            name="ck_num_seats_positive",
        ),
    )


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bookings.id"),
        nullable=False,
    )
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    card_number_last4: Mapped[str] = mapped_column(String(4), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(
            PaymentStatus,
            name="payment_status",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=PaymentStatus.SUCCESS,
    )
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    payment_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_payment_booking_id"),
        UniqueConstraint("transaction_id", name="uq_payment_transaction_id"),
    )
