from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from flight_booking.domain.state_machine import PaymentStatus
from flight_booking.infrastructure.db.models import Payment


def new_transaction_id() -> str:
    return f"mock_txn_{uuid4().hex}"


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_booking_id(self, booking_id: int) -> Payment | None:
        stmt = select(Payment).where(Payment.booking_id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_payment(
        self,
        booking_id: int,
        payment_method: str,
        card_number_last4: str,
        amount: Decimal,
    ) -> Payment:
        payment = Payment(
            booking_id=booking_id,
            payment_method=payment_method,
            card_number_last4=card_number_last4,
            amount=amount,
            status=PaymentStatus.SUCCESS,
            transaction_id=new_transaction_id(),
        )
        self.db.add(payment)
        self.db.flush()
        return payment
