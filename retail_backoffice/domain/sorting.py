"""Sort orders for transaction and customer listings"""

from enum import Enum
from typing import List, Optional

from retail_backoffice.domain.exceptions import ValidationError
from retail_backoffice.domain.models import Customer, Transaction

# Display order when sorting by status: open work first
_STATUS_RANK = {"in_progress": 0, "completed": 1, "cancelled": 2}


class TransactionSort(str, Enum):
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"
    TOTAL_ASC = "total_asc"
    TOTAL_DESC = "total_desc"
    CUSTOMER_ASC = "customer_asc"
    STATUS = "status"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["TransactionSort"]:
        if name is None or not name.strip():
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"Unknown sort '{name}'; expected one of: {allowed}") from None


def sort_transactions(transactions: List[Transaction], order: TransactionSort) -> List[Transaction]:
    if order is TransactionSort.DATE_ASC:
        return sorted(transactions, key=lambda t: t.created_at)
    elif order is TransactionSort.DATE_DESC:
        return sorted(transactions, key=lambda t: t.created_at, reverse=True)
    elif order is TransactionSort.TOTAL_ASC:
        return sorted(transactions, key=lambda t: t.total)
    elif order is TransactionSort.TOTAL_DESC:
        return sorted(transactions, key=lambda t: t.total, reverse=True)
    elif order is TransactionSort.CUSTOMER_ASC:
        return sorted(transactions, key=lambda t: t.customer_id)
    elif order is TransactionSort.STATUS:
        return sorted(transactions, key=lambda t: _STATUS_RANK[t.status.value])
    raise ValidationError(f"Unsupported sort order: {order!r}")


class CustomerSort(str, Enum):
    NAME = "name"
    JOINED_AT = "joined_at"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["CustomerSort"]:
        if name is None or not name.strip():
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"Unknown sort '{name}'; expected one of: {allowed}") from None


def sort_customers(customers: List[Customer], order: CustomerSort) -> List[Customer]:
    # Stable: ties keep the repository order
    if order is CustomerSort.NAME:
        return sorted(customers, key=lambda c: c.name)
    elif order is CustomerSort.JOINED_AT:
        return sorted(customers, key=lambda c: c.joined_at)
    raise ValidationError(f"Unsupported sort order: {order!r}")
