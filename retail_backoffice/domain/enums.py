"""Lifecycle enums and their canonical wire tokens"""

from enum import Enum
from typing import Dict, Optional


class TransactionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.IN_PROGRESS

    @classmethod
    def parse(cls, token: str) -> Optional["TransactionStatus"]:
        return _parse(token, _TRANSACTION_STATUS_FROM_TOKEN)

    def to_token(self) -> str:
        return _TRANSACTION_STATUS_TO_TOKEN[self]


class PaymentStatus(str, Enum):
    INSTALLMENT = "installment"
    PAID = "paid"

    @classmethod
    def parse(cls, token: str) -> Optional["PaymentStatus"]:
        return _parse(token, _PAYMENT_STATUS_FROM_TOKEN)

    def to_token(self) -> str:
        return _PAYMENT_STATUS_TO_TOKEN[self]


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    E_WALLET = "e_wallet"

    @classmethod
    def parse(cls, token: str) -> Optional["PaymentMethod"]:
        return _parse(token, _PAYMENT_METHOD_FROM_TOKEN)

    def to_token(self) -> str:
        return _PAYMENT_METHOD_TO_TOKEN[self]


# Canonical tokens: one per member, emitted on output
_TRANSACTION_STATUS_TO_TOKEN: Dict[TransactionStatus, str] = {
    TransactionStatus.IN_PROGRESS: "MASIHDIPROSES",
    TransactionStatus.COMPLETED: "SELESAI",
    TransactionStatus.CANCELLED: "DIBATALKAN",
}

_PAYMENT_STATUS_TO_TOKEN: Dict[PaymentStatus, str] = {
    PaymentStatus.INSTALLMENT: "CICILAN",
    PaymentStatus.PAID: "LUNAS",
}

_PAYMENT_METHOD_TO_TOKEN: Dict[PaymentMethod, str] = {
    PaymentMethod.CASH: "CASH",
    PaymentMethod.CREDIT_CARD: "CREDIT_CARD",
    PaymentMethod.BANK_TRANSFER: "BANK_TRANSFER",
    PaymentMethod.E_WALLET: "E_WALLET",
}

# Accepted on input only; output never uses an alias
_TRANSACTION_STATUS_ALIASES: Dict[str, TransactionStatus] = {
    "MASIH_DIPROSES": TransactionStatus.IN_PROGRESS,
    "MASIH DIPROSES": TransactionStatus.IN_PROGRESS,
    "DIPROSES": TransactionStatus.IN_PROGRESS,
    "COMPLETED": TransactionStatus.COMPLETED,
    "DONE": TransactionStatus.COMPLETED,
    "CANCELLED": TransactionStatus.CANCELLED,
    "BATAL": TransactionStatus.CANCELLED,
}

_TRANSACTION_STATUS_FROM_TOKEN: Dict[str, TransactionStatus] = {
    **_TRANSACTION_STATUS_ALIASES,
    **{token: status for status, token in _TRANSACTION_STATUS_TO_TOKEN.items()},
}
_PAYMENT_STATUS_FROM_TOKEN: Dict[str, PaymentStatus] = {
    token: status for status, token in _PAYMENT_STATUS_TO_TOKEN.items()
}
_PAYMENT_METHOD_FROM_TOKEN: Dict[str, PaymentMethod] = {
    token: method for method, token in _PAYMENT_METHOD_TO_TOKEN.items()
}


def _parse(token, table):
    if not isinstance(token, str):
        return None
    return table.get(token.strip().upper())
