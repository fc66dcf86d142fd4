from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from flight_booking.api.dependencies import get_db
from flight_booking.api.errors import http_error
from flight_booking.api.schemas.schemas import AirportResponse, FlightResponse
from flight_booking.domain.exceptions import FlightNotFoundError, NotFoundError, ValidationError
from flight_booking.infrastructure.db.models import Flight
from flight_booking.infrastructure.repositories.flight_repository import FlightRepository


router = APIRouter(prefix="/flights", tags=["flights"])


def _flight_response(flight: Flight) -> FlightResponse:
    departure = flight.departure_airport
    arrival = flight.arrival_airport
    return FlightResponse(
        flight_id=flight.id,
        flight_number=flight.flight_number,
        departure_airport_code=flight.departure_airport_code,
        departure_airport_name=departure.name,
        departure_city=departure.city,
        departure_country=departure.country,
        arrival_airport_code=flight.arrival_airport_code,
        arrival_airport_name=arrival.name,
        arrival_city=arrival.city,
        arrival_country=arrival.country,
        departure_time=flight.departure_time,
        arrival_time=flight.arrival_time,
        price=flight.price,
        total_seats=flight.total_seats,
        available_seats=flight.available_seats,
    )


@router.get("", response_model=list[FlightResponse])
def search_flights(
    from_airport: str | None = Query(default=None, alias="fromAirport"),
    to_airport: str | None = Query(default=None, alias="toAirport"),
    departure_date: str | None = Query(default=None, alias="departureDate"),
    db: Session = Depends(get_db),
):
    if not from_airport or not to_airport or not departure_date:
        raise http_error(
            status.HTTP_400_BAD_REQUEST,
            ValidationError("Missing required search parameters: fromAirport, toAirport, departureDate."),
        )

    try:
        parsed_date = date.fromisoformat(departure_date)
    except ValueError as exc:
        raise http_error(
            status.HTTP_400_BAD_REQUEST,
            ValidationError("Invalid departureDate format. Use YYYY-MM-DD."),
        ) from exc

    flights = FlightRepository(db).search(
        from_airport=from_airport.upper(),
        to_airport=to_airport.upper(),
        departure_date=parsed_date,
    )
    if not flights:
        raise http_error(
            status.HTTP_404_NOT_FOUND,
            NotFoundError("No flights found matching your criteria."),
        )
    return [_flight_response(flight) for flight in flights]


@router.get("/airports", response_model=list[AirportResponse])
def list_airports(db: Session = Depends(get_db)):
    airports = FlightRepository(db).list_airports()
    return [
        AirportResponse(
            airport_code=airport.airport_code,
            name=airport.name,
            city=airport.city,
            country=airport.country,
        )
        for airport in airports
    ]


@router.get("/{flight_id}", response_model=FlightResponse)
def get_flight(flight_id: int, db: Session = Depends(get_db)):
    flight = FlightRepository(db).get_detail(flight_id)
    if not flight:
        raise http_error(status.HTTP_404_NOT_FOUND, FlightNotFoundError(flight_id))
    return _flight_response(flight)
