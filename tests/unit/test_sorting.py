"""Unit tests for transaction sort orders"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from retail_backoffice.domain.enums import TransactionStatus
from retail_backoffice.domain.exceptions import ValidationError
from retail_backoffice.domain.models import LineItem, Transaction
from retail_backoffice.domain.sorting import TransactionSort, sort_transactions

BASE = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def tx(tx_id, customer, price, minutes, status=TransactionStatus.IN_PROGRESS):
    return Transaction(
        id=tx_id,
        cashier_id="cashier-1",
        customer_id=customer,
        items=[LineItem("P1", "Item", 1, Decimal(price))],
        status=status,
        created_at=BASE + timedelta(minutes=minutes),
    )


@pytest.fixture
def transactions():
    return [
        tx("t1", "carol", "300", 10, TransactionStatus.CANCELLED),
        tx("t2", "alice", "100", 30, TransactionStatus.COMPLETED),
        tx("t3", "bob", "200", 20),
    ]


@pytest.mark.parametrize(
    "order, expected",
    [
        (TransactionSort.DATE_ASC, ["t1", "t3", "t2"]),
        (TransactionSort.DATE_DESC, ["t2", "t3", "t1"]),
        (TransactionSort.TOTAL_ASC, ["t2", "t3", "t1"]),
        (TransactionSort.TOTAL_DESC, ["t1", "t3", "t2"]),
        (TransactionSort.CUSTOMER_ASC, ["t2", "t3", "t1"]),
        (TransactionSort.STATUS, ["t3", "t2", "t1"]),
    ],
)
def test_sort_orders(transactions, order, expected):
    """Test each transaction sort order"""
    assert [t.id for t in sort_transactions(transactions, order)] == expected


def test_parse_sort_names():
    """Test sort names are case-insensitive and blank means unsorted"""
    assert TransactionSort.parse("DATE_DESC") is TransactionSort.DATE_DESC
    assert TransactionSort.parse(None) is None
    assert TransactionSort.parse("  ") is None


def test_unknown_sort_is_rejected():
    """Test an unknown sort name is a validation error"""
    with pytest.raises(ValidationError):
        TransactionSort.parse("price_random")
