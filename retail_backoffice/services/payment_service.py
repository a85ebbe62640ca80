"""Payment use cases: open a payment for a transaction and record installments against it"""

import logging
from datetime import datetime
from typing import List, Mapping, Optional, Union

from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.enums import PaymentMethod, PaymentStatus, TransactionStatus
from retail_backoffice.domain.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnsupportedMethodError,
)
from retail_backoffice.domain.models import Payment
from retail_backoffice.domain.payments import PaymentStateMachine, new_payment, parse_amount
from retail_backoffice.domain.processors import PaymentProcessorFactory
from retail_backoffice.domain.repositories import PaymentRepository, TransactionRepository
from retail_backoffice.infrastructure.observability.logging import log_transition
from retail_backoffice.infrastructure.observability.metrics import record_installment

logger = logging.getLogger(__name__)


def resolve_method(method: Union[PaymentMethod, str]) -> PaymentMethod:
    """Accept an enum member or a wire token (CASH, E_WALLET, ...)"""
    if isinstance(method, PaymentMethod):
        return method
    parsed = PaymentMethod.parse(method)
    if parsed is None:
        raise UnsupportedMethodError(f"Unsupported payment method: {method!r}")
    return parsed


class PaymentService:
    """Coordinates the payment state machine, its processors and persistence"""

    def __init__(
        self,
        payment_repository: PaymentRepository,
        transaction_repository: TransactionRepository,
        dispatcher: EventDispatcher,
        request_id: Optional[str] = None,
    ):
        self.payments = payment_repository
        self.transactions = transaction_repository
        self.dispatcher = dispatcher
        self.request_id = request_id

    def create_payment(
        self,
        transaction_id: str,
        amount,
        method: Union[PaymentMethod, str],
        due_date: Optional[datetime] = None,
        initial_amount=None,
    ) -> Payment:
        """
        Open a payment against a transaction.

        The payment id is the confirmation reference of the method's processor
        (CASH-..., CC-..., BANK-..., EWALLET-...). When initial_amount is given
        it is recorded straight away as the first installment.

        Raises:
            NotFoundError: transaction does not exist
            InvalidStateError: transaction is cancelled or already has a payment
            InvalidAmountError: amount or initial_amount is not positive
            UnsupportedMethodError: unknown payment method
        """
        transaction = self.transactions.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        if transaction.status is TransactionStatus.CANCELLED:
            raise InvalidStateError(f"Cannot pay for cancelled transaction {transaction_id}")
        if self.payments.find_by_transaction_id(transaction_id) is not None:
            raise InvalidStateError(f"Transaction {transaction_id} already has a payment")

        payment_method = resolve_method(method)
        processor = PaymentProcessorFactory.create(payment_method)
        confirmation = processor.process(parse_amount(amount), transaction_id)

        payment = new_payment(confirmation.reference, transaction_id, amount, payment_method, due_date)
        machine = PaymentStateMachine(payment)
        if initial_amount is not None:
            machine.process_payment(initial_amount, processor)

        self.payments.save(payment)
        log_transition("payment", payment.id, None, payment.status.to_token(), self.request_id)

        if payment.installments:
            record_installment(payment_method.to_token(), payment.status is PaymentStatus.PAID)
            self.dispatcher.notify(machine.updated_event(PaymentStatus.INSTALLMENT))
        return payment

    def record_installment(self, payment_id: str, amount) -> Payment:
        """
        Record one installment through the payment's own processor.

        Raises:
            NotFoundError: payment does not exist
            AlreadyPaidError: payment is already LUNAS
            InvalidAmountError: amount is not positive
        """
        payment = self.get_payment(payment_id)
        machine = PaymentStateMachine(payment)
        previous_status = machine.status

        machine.process_payment(amount, PaymentProcessorFactory.create(payment.method))
        self.payments.update(payment)

        settled = payment.status is not previous_status
        record_installment(payment.method.to_token(), settled)
        if settled:
            log_transition(
                "payment",
                payment.id,
                previous_status.to_token(),
                payment.status.to_token(),
                self.request_id,
            )
        else:
            logger.info(
                "Installment recorded",
                extra={
                    "payment_id": payment.id,
                    "total_paid": str(payment.total_paid),
                    "outstanding": str(payment.outstanding),
                    "request_id": self.request_id,
                },
            )

        self.dispatcher.notify(machine.updated_event(previous_status))
        return payment

    def get_payment(self, payment_id: str) -> Payment:
        payment = self.payments.find_by_id(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def get_payment_by_transaction(self, transaction_id: str) -> Payment:
        payment = self.payments.find_by_transaction_id(transaction_id)
        if payment is None:
            raise NotFoundError(f"No payment for transaction {transaction_id}")
        return payment

    def list_payments(self, filters: Optional[Mapping[str, str]] = None) -> List[Payment]:
        return self.payments.find_all({key: value for key, value in (filters or {}).items() if value})

    def delete_payment(self, payment_id: str) -> None:
        payment = self.get_payment(payment_id)
        if not PaymentStateMachine(payment).can_delete():
            raise InvalidStateError(
                f"Cannot delete payment {payment_id}: status is {payment.status.to_token()}"
            )
        self.payments.delete(payment_id)
        logger.info("Payment deleted", extra={"payment_id": payment_id, "request_id": self.request_id})
