"""Lifecycle events and the narrow observer interfaces they are delivered to

Each event names the observer interface that receives it and the hook method
called on that interface. Observers implement only the interfaces they care
about; the dispatcher skips observers that do not implement an event's interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, List, Type

from retail_backoffice.domain.enums import PaymentStatus, TransactionStatus
from retail_backoffice.domain.models import LineItem, Payment, Product, Supplier, Transaction


class TransactionCreatedObserver(ABC):
    @abstractmethod
    def on_transaction_created(self, event: "TransactionCreated") -> None: ...


class TransactionUpdatedObserver(ABC):
    @abstractmethod
    def on_transaction_updated(self, event: "TransactionUpdated") -> None: ...


class TransactionCompletedObserver(ABC):
    @abstractmethod
    def on_transaction_completed(self, event: "TransactionCompleted") -> None: ...


class TransactionCancelledObserver(ABC):
    @abstractmethod
    def on_transaction_cancelled(self, event: "TransactionCancelled") -> None: ...


class TransactionDeletedObserver(ABC):
    @abstractmethod
    def on_transaction_deleted(self, event: "TransactionDeleted") -> None: ...


class PaymentUpdatedObserver(ABC):
    @abstractmethod
    def on_payment_updated(self, event: "PaymentUpdated") -> None: ...


class StockChangedObserver(ABC):
    @abstractmethod
    def on_stock_changed(self, event: "StockChanged") -> None: ...


class SupplierSavedObserver(ABC):
    @abstractmethod
    def on_supplier_saved(self, event: "SupplierSaved") -> None: ...


@dataclass(frozen=True)
class Event:
    observer_type: ClassVar[Type[ABC]]
    hook: ClassVar[str]

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class TransactionCreated(Event):
    observer_type = TransactionCreatedObserver
    hook = "on_transaction_created"

    transaction: Transaction


@dataclass(frozen=True)
class TransactionUpdated(Event):
    """Items were replaced; previous_items is the list before replacement"""

    observer_type = TransactionUpdatedObserver
    hook = "on_transaction_updated"

    transaction: Transaction
    previous_items: List[LineItem]


@dataclass(frozen=True)
class TransactionCompleted(Event):
    observer_type = TransactionCompletedObserver
    hook = "on_transaction_completed"

    transaction: Transaction
    previous_status: TransactionStatus = TransactionStatus.IN_PROGRESS


@dataclass(frozen=True)
class TransactionCancelled(Event):
    observer_type = TransactionCancelledObserver
    hook = "on_transaction_cancelled"

    transaction: Transaction
    previous_status: TransactionStatus = TransactionStatus.IN_PROGRESS


@dataclass(frozen=True)
class TransactionDeleted(Event):
    observer_type = TransactionDeletedObserver
    hook = "on_transaction_deleted"

    transaction: Transaction


@dataclass(frozen=True)
class PaymentUpdated(Event):
    observer_type = PaymentUpdatedObserver
    hook = "on_payment_updated"

    payment: Payment
    previous_status: PaymentStatus


@dataclass(frozen=True)
class StockChanged(Event):
    observer_type = StockChangedObserver
    hook = "on_stock_changed"

    product: Product
    old_stock: int


@dataclass(frozen=True)
class SupplierSaved(Event):
    observer_type = SupplierSavedObserver
    hook = "on_supplier_saved"

    supplier: Supplier
