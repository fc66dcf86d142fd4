import re
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


CARD_NUMBER_PATTERN = re.compile(r"^\d{13,19}$")


# -----------------------------
# Auth
# -----------------------------
class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: str = Field(alias="firstName", min_length=1, max_length=64)
    last_name: str = Field(alias="lastName", min_length=1, max_length=64)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    username: str
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse


# -----------------------------
# Catalog
# -----------------------------
class AirportResponse(BaseModel):
    airport_code: str
    name: str
    city: str
    country: str


class FlightResponse(BaseModel):
    flight_id: int
    flight_number: str
    departure_airport_code: str
    departure_airport_name: str
    departure_city: str
    departure_country: str
    arrival_airport_code: str
    arrival_airport_name: str
    arrival_city: str
    arrival_country: str
    departure_time: datetime
    arrival_time: datetime
    price: Decimal
    total_seats: int
    available_seats: int


# -----------------------------
# Bookings
# -----------------------------
class BookingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    flight_id: int = Field(alias="flightId", gt=0)
    num_seats: int = Field(alias="numSeats", gt=0)


class BookingResponse(BaseModel):
    booking_id: int
    user_id: int
    booking_time: datetime
    status: str
    num_seats: int
    total_price: Decimal
    flight_id: int
    flight_number: str
    departure_time: datetime
    arrival_time: datetime
    price_per_seat: Decimal
    departure_airport_code: str
    departure_airport_name: str
    departure_city: str
    arrival_airport_code: str
    arrival_airport_name: str
    arrival_city: str


class BookingCreatedResponse(BaseModel):
    message: str
    booking: BookingResponse


class MessageResponse(BaseModel):
    message: str


# -----------------------------
# Payments
# -----------------------------
class CardDetails(BaseModel):
    number: str

    @field_validator("number")
    @classmethod
    def normalize_number(cls, value: str) -> str:
        digits = re.sub(r"\s+", "", value)
        if not CARD_NUMBER_PATTERN.match(digits):
            raise ValueError("Invalid card number format.")
        return digits

    @property
    def last4(self) -> str:
        return self.number[-4:]


class PaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(alias="bookingId", gt=0)
    payment_method: Literal["credit_card", "debit_card"] = Field(alias="paymentMethod")
    card_details: CardDetails = Field(alias="cardDetails")
    amount: Decimal | None = Field(default=None, ge=0)


class PaymentResponse(BaseModel):
    payment_id: int
    booking_id: int
    payment_method: str
    card_number_last4: str
    amount: Decimal
    status: str
    transaction_id: str
    payment_time: datetime


class PaymentConfirmedResponse(BaseModel):
    message: str
    payment: PaymentResponse


class PaymentStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_status: str = Field(alias="bookingStatus")
    payment_status: str = Field(alias="paymentStatus")
    payment: PaymentResponse | None = None
