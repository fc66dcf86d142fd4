import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from flight_booking.domain.exceptions import (
    BookingNotFoundError,
    ForbiddenError,
    InvalidStateTransitionError,
    ValidationError,
)
from flight_booking.domain.state_machine import BookingStateMachine, BookingStatus
from flight_booking.infrastructure.db.models import Payment
from flight_booking.infrastructure.db.session import transaction
from flight_booking.infrastructure.repositories.booking_repository import BookingRepository
from flight_booking.infrastructure.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)

PAYMENT_METHODS = frozenset({"credit_card", "debit_card"})


@dataclass(frozen=True)
class PaymentStatusResult:
    booking_status: BookingStatus
    payment: Payment | None


class PaymentService:
    """
    Mock payment confirmation.
    Once the booking is pending_payment the payment always succeeds.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def confirm_payment(
        self,
        booking_id: int,
        payment_method: str,
        card_last4: str,
        amount: Decimal | None = None,
        caller_user_id: int | None = None,
    ) -> Payment:
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("Invalid payment method.")
        if len(card_last4) != 4 or not card_last4.isdigit():
            raise ValidationError("Card last four digits must be exactly 4 digits.")

        with transaction(self.session_factory) as db:
            bookings = BookingRepository(db)
            payments = PaymentRepository(db)

            booking = bookings.lock_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            if caller_user_id is not None and booking.user_id != caller_user_id:
                raise ForbiddenError("Not authorized to pay for this booking.")
            if booking.status != BookingStatus.PENDING_PAYMENT:
                raise InvalidStateTransitionError(
                    from_state=booking.status.value,
                    to_state=BookingStatus.CONFIRMED.value,
                    message=f"Booking status is already {booking.status.value}. Payment cannot be processed.",
                )

            # The recorded amount is always the booking total.
            if amount is not None and Decimal(amount) != booking.total_price:
                logger.warning(
                    "Payment amount %s does not match booking total %s for booking %s",
                    amount,
                    booking.total_price,
                    booking_id,
                )

            payment = payments.create_payment(
                booking_id=booking_id,
                payment_method=payment_method,
                card_number_last4=card_last4,
                amount=booking.total_price,
            )

            BookingStateMachine.validate_transition(booking.status, BookingStatus.CONFIRMED)
            bookings.update_status(booking, BookingStatus.CONFIRMED)

        logger.info(
            "Payment %s recorded for booking %s (transaction %s)",
            payment.id,
            booking_id,
            payment.transaction_id,
        )
        return payment

    def get_payment_status(
        self,
        booking_id: int,
        caller_user_id: int,
    ) -> PaymentStatusResult:
        with transaction(self.session_factory) as db:
            booking = BookingRepository(db).get_by_id(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            if booking.user_id != caller_user_id:
                raise ForbiddenError("Not authorized to view payment for this booking.")

            payment = PaymentRepository(db).get_by_booking_id(booking_id)
            return PaymentStatusResult(booking_status=booking.status, payment=payment)
