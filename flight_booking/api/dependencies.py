from typing import Iterator

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from flight_booking.api.errors import http_error
from flight_booking.application.auth_service import AuthService
from flight_booking.application.booking_service import BookingService
from flight_booking.application.payment_service import PaymentService
from flight_booking.domain.exceptions import UnauthorizedError
from flight_booking.infrastructure.db.models import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    if credentials is None:
        raise http_error(
            status.HTTP_401_UNAUTHORIZED,
            UnauthorizedError("Not authorized, no token provided."),
        )

    try:
        return auth_service.authenticate(credentials.credentials)
    except UnauthorizedError as exc:
        raise http_error(status.HTTP_401_UNAUTHORIZED, exc) from exc
