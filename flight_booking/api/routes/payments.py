from fastapi import APIRouter, Depends, status

from flight_booking.api.dependencies import get_current_user, get_payment_service
from flight_booking.api.errors import http_error
from flight_booking.api.schemas.schemas import (
    PaymentConfirmedResponse,
    PaymentRequest,
    PaymentResponse,
    PaymentStatusResponse,
)
from flight_booking.application.payment_service import PaymentService
from flight_booking.domain.exceptions import (
    ForbiddenError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from flight_booking.infrastructure.db.models import Payment, User


router = APIRouter(prefix="/payments", tags=["payments"])


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        payment_id=payment.id,
        booking_id=payment.booking_id,
        payment_method=payment.payment_method,
        card_number_last4=payment.card_number_last4,
        amount=payment.amount,
        status=payment.status.value,
        transaction_id=payment.transaction_id,
        payment_time=payment.payment_time,
    )


@router.post("/mock", response_model=PaymentConfirmedResponse)
def process_mock_payment(
    request: PaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    try:
        payment = service.confirm_payment(
            booking_id=request.booking_id,
            payment_method=request.payment_method,
            card_last4=request.card_details.last4,
            amount=request.amount,
            caller_user_id=current_user.id,
        )
    except NotFoundError as exc:
        raise http_error(status.HTTP_404_NOT_FOUND, exc) from exc
    except ForbiddenError as exc:
        raise http_error(status.HTTP_403_FORBIDDEN, exc) from exc
    except (ValidationError, InvalidStateTransitionError) as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc

    return PaymentConfirmedResponse(
        message="Mock payment successful. Booking confirmed.",
        payment=_payment_response(payment),
    )


@router.get("/status/{booking_id}", response_model=PaymentStatusResponse)
def get_payment_status(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    try:
        result = service.get_payment_status(booking_id, caller_user_id=current_user.id)
    except NotFoundError as exc:
        raise http_error(status.HTTP_404_NOT_FOUND, exc) from exc
    except ForbiddenError as exc:
        raise http_error(status.HTTP_403_FORBIDDEN, exc) from exc

    if result.payment is None:
        return PaymentStatusResponse(
            booking_status=result.booking_status.value,
            payment_status="pending",
        )

    return PaymentStatusResponse(
        booking_status=result.booking_status.value,
        payment_status=result.payment.status.value,
        payment=_payment_response(result.payment),
    )
