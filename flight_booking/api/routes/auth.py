from fastapi import APIRouter, Depends, status

from flight_booking.api.dependencies import get_auth_service, get_current_user
from flight_booking.api.errors import http_error
from flight_booking.api.schemas.schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
)
from flight_booking.application.auth_service import AuthService
from flight_booking.domain.exceptions import DuplicateUserError, UnauthorizedError
from flight_booking.infrastructure.db.models import User


router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        user, token = auth_service.register(
            username=request.username,
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
        )
    except DuplicateUserError as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc

    return AuthResponse(
        message="User registered successfully.",
        token=token,
        user=_user_response(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        user, token = auth_service.login(
            username=request.username,
            password=request.password,
        )
    except UnauthorizedError as exc:
        raise http_error(status.HTTP_401_UNAUTHORIZED, exc) from exc

    return AuthResponse(
        message="Login successful.",
        token=token,
        user=_user_response(user),
    )


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return MeResponse(user=_user_response(current_user))
