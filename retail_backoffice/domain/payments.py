"""Payment reconciliation: installments accumulate until the target amount is met"""

import copy
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from retail_backoffice.domain.enums import PaymentMethod, PaymentStatus
from retail_backoffice.domain.events import PaymentUpdated
from retail_backoffice.domain.exceptions import AlreadyPaidError, InvalidAmountError, ValidationError
from retail_backoffice.domain.models import Installment, Payment, new_id, to_decimal, utcnow
from retail_backoffice.domain.processors import PaymentProcessor


def parse_amount(value) -> Decimal:
    """Coerce a monetary input to Decimal, rejecting non-numbers"""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmountError(f"Amount {value!r} is not a number") from e
    if not amount.is_finite():
        raise InvalidAmountError(f"Amount {value!r} is not a finite number")
    return amount


def new_payment(
    payment_id: str,
    transaction_id: str,
    amount,
    method: PaymentMethod,
    due_date: Optional[datetime] = None,
) -> Payment:
    """Build a payment in its initial INSTALLMENT state"""
    if not transaction_id or not str(transaction_id).strip():
        raise ValidationError("Transaction id must not be empty")
    if not isinstance(method, PaymentMethod):
        raise ValidationError(f"Unknown payment method: {method!r}")

    target = parse_amount(amount)
    if target <= 0:
        raise InvalidAmountError("Payment amount must be greater than 0")

    return Payment(
        id=payment_id,
        transaction_id=transaction_id,
        amount=target,
        method=method,
        status=PaymentStatus.INSTALLMENT,
        due_date=due_date,
    )


class PaymentStateMachine:
    """
    INSTALLMENT -> PAID.

    PAID is absorbing: it rejects every further installment. Overpayment is
    accepted; the surplus is neither rejected nor refunded.
    """

    def __init__(self, payment: Payment):
        self.payment = payment

    @property
    def status(self) -> PaymentStatus:
        return self.payment.status

    def can_delete(self) -> bool:
        """Only unsettled payments may be deleted"""
        return self.payment.status is PaymentStatus.INSTALLMENT

    def process_payment(
        self,
        amount,
        processor: Optional[PaymentProcessor] = None,
        now: Optional[datetime] = None,
    ) -> Payment:
        """
        Record one installment and settle the payment once fully covered.

        Args:
            amount: Installment amount, must be > 0
            processor: Channel that confirms the charge before it is recorded
            now: Recording timestamp (default: current UTC time)

        Raises:
            AlreadyPaidError: payment is already PAID
            InvalidAmountError: amount <= 0
        """
        if self.payment.status is PaymentStatus.PAID:
            raise AlreadyPaidError(f"Payment {self.payment.id} is already paid in full")

        value = parse_amount(amount)
        if value <= 0:
            raise InvalidAmountError("Installment amount must be greater than 0")

        reference = None
        if processor is not None:
            reference = processor.process(value, self.payment.transaction_id).reference

        self.payment.installments.append(
            Installment(
                id=new_id("INST"),
                payment_id=self.payment.id,
                amount=value,
                recorded_at=now or utcnow(),
                reference=reference,
            )
        )

        # Sole trigger for settlement, evaluated after each append
        if self.payment.total_paid >= self.payment.amount:
            self.payment.status = PaymentStatus.PAID

        return self.payment

    def updated_event(self, previous_status: PaymentStatus) -> PaymentUpdated:
        return PaymentUpdated(payment=copy.deepcopy(self.payment), previous_status=previous_status)
