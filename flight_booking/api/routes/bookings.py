from fastapi import APIRouter, Depends, status

from flight_booking.api.dependencies import get_booking_service, get_current_user
from flight_booking.api.errors import http_error
from flight_booking.api.schemas.schemas import (
    BookingCreatedResponse,
    BookingRequest,
    BookingResponse,
    MessageResponse,
)
from flight_booking.application.booking_service import BookingService
from flight_booking.domain.exceptions import (
    ForbiddenError,
    InsufficientInventoryError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from flight_booking.infrastructure.db.models import Booking, User


router = APIRouter(prefix="/bookings", tags=["bookings"])


def _booking_response(booking: Booking) -> BookingResponse:
    flight = booking.flight
    return BookingResponse(
        booking_id=booking.id,
        user_id=booking.user_id,
        booking_time=booking.booking_time,
        status=booking.status.value,
        num_seats=booking.num_seats,
        total_price=booking.total_price,
        flight_id=flight.id,
        flight_number=flight.flight_number,
        departure_time=flight.departure_time,
        arrival_time=flight.arrival_time,
        price_per_seat=flight.price,
        departure_airport_code=flight.departure_airport_code,
        departure_airport_name=flight.departure_airport.name,
        departure_city=flight.departure_airport.city,
        arrival_airport_code=flight.arrival_airport_code,
        arrival_airport_name=flight.arrival_airport.name,
        arrival_city=flight.arrival_airport.city,
    )


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingRequest,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.create_booking(
            user_id=current_user.id,
            flight_id=request.flight_id,
            num_seats=request.num_seats,
        )
    except (ValidationError, NotFoundError, InsufficientInventoryError) as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc

    return BookingCreatedResponse(
        message="Booking created successfully (pending payment).",
        booking=_booking_response(booking),
    )


@router.get("", response_model=list[BookingResponse])
def list_my_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [_booking_response(booking) for booking in service.list_bookings(current_user.id)]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        booking = service.get_booking(booking_id, caller_user_id=current_user.id)
    except NotFoundError as exc:
        raise http_error(status.HTTP_404_NOT_FOUND, exc) from exc
    except ForbiddenError as exc:
        raise http_error(status.HTTP_403_FORBIDDEN, exc) from exc

    return _booking_response(booking)


@router.delete("/{booking_id}", response_model=MessageResponse)
def cancel_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    try:
        service.cancel_booking(booking_id, caller_user_id=current_user.id)
    except (NotFoundError, ForbiddenError, InvalidStateTransitionError) as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc

    return MessageResponse(message="Booking cancelled successfully.")
