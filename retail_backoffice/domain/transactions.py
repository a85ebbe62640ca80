"""Sales transaction lifecycle: IN_PROGRESS -> COMPLETED | CANCELLED"""

import copy
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from retail_backoffice.domain.enums import TransactionStatus
from retail_backoffice.domain.events import (
    TransactionCancelled,
    TransactionCompleted,
    TransactionCreated,
    TransactionUpdated,
)
from retail_backoffice.domain.exceptions import InvalidStateError, ValidationError
from retail_backoffice.domain.models import LineItem, Transaction, new_id, to_decimal, utcnow

_ALLOWED_ACTIONS = {
    TransactionStatus.IN_PROGRESS: ["complete", "cancel", "replace_items"],
    TransactionStatus.COMPLETED: ["view_details", "print_receipt"],
    TransactionStatus.CANCELLED: ["view_details"],
}


def validate_line_items(items: Iterable[LineItem]) -> List[LineItem]:
    """
    Check every line item and return them as a list.

    Raises:
        ValidationError: empty list, blank product id, quantity <= 0 or negative price
    """
    items = list(items)
    if not items:
        raise ValidationError("Transaction must contain at least one line item")

    for index, item in enumerate(items):
        if not str(item.product_id).strip():
            raise ValidationError(f"Line item {index}: product id must not be empty")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
            raise ValidationError(f"Line item {index}: quantity must be a positive integer")
        try:
            price = to_decimal(item.unit_price)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise ValidationError(f"Line item {index}: unit price is not a number") from e
        if not price.is_finite() or price < 0:
            raise ValidationError(f"Line item {index}: unit price must not be negative")
        item.unit_price = price

    return items


class TransactionStateMachine:
    """
    Guards every mutation of a Transaction.

    The machine only mutates the aggregate it wraps. Each successful transition
    returns the event describing it; the caller dispatches that event once the
    new state has been persisted.
    """

    def __init__(self, transaction: Transaction):
        self.transaction = transaction

    @classmethod
    def create(
        cls,
        cashier_id: str,
        customer_id: str,
        items: Iterable[LineItem],
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "TransactionStateMachine":
        if not cashier_id or not str(cashier_id).strip():
            raise ValidationError("Cashier id must not be empty")
        if not customer_id or not str(customer_id).strip():
            raise ValidationError("Customer id must not be empty")

        transaction = Transaction(
            id=new_id("TRX"),
            cashier_id=cashier_id,
            customer_id=customer_id,
            items=validate_line_items(items),
            status=TransactionStatus.IN_PROGRESS,
            created_at=now or utcnow(),
            note=note,
        )
        return cls(transaction)

    @property
    def status(self) -> TransactionStatus:
        return self.transaction.status

    @property
    def total(self) -> Decimal:
        return self.transaction.total

    def can_be_modified(self) -> bool:
        return self.status is TransactionStatus.IN_PROGRESS

    def allowed_actions(self) -> List[str]:
        return list(_ALLOWED_ACTIONS[self.status])

    def created_event(self) -> TransactionCreated:
        return TransactionCreated(transaction=self.snapshot())

    def replace_items(self, new_items: Iterable[LineItem]) -> TransactionUpdated:
        self._require_in_progress("update items of")
        items = validate_line_items(new_items)

        previous_items = copy.deepcopy(self.transaction.items)
        self.transaction.items = items
        return TransactionUpdated(transaction=self.snapshot(), previous_items=previous_items)

    def complete(self) -> TransactionCompleted:
        self._require_in_progress("complete")
        self.transaction.status = TransactionStatus.COMPLETED
        return TransactionCompleted(transaction=self.snapshot())

    def cancel(self) -> TransactionCancelled:
        self._require_in_progress("cancel")
        self.transaction.status = TransactionStatus.CANCELLED
        return TransactionCancelled(transaction=self.snapshot())

    def snapshot(self) -> Transaction:
        """Detached copy handed to observers"""
        return copy.deepcopy(self.transaction)

    def _require_in_progress(self, action: str) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Cannot {action} transaction {self.transaction.id}: status is {self.status.to_token()}"
            )
