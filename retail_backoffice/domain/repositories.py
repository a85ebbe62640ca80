"""Repository ports consumed by the services and observers

Lookups return None on a miss. update/delete raise NotFoundError for unknown
ids; any storage failure surfaces as PersistenceError.
"""

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, Tuple

from retail_backoffice.domain.models import (
    AuditLogEntry,
    Customer,
    Payment,
    Product,
    Supplier,
    SupplierTransaction,
    Transaction,
)


class TransactionRepository(ABC):
    @abstractmethod
    def save(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction with its line items."""

    @abstractmethod
    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        """Fetch a transaction and its line items, or None."""

    @abstractmethod
    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Transaction]:
        """
        List transactions, oldest first.

        :param filters: Optional ``status`` (wire token), ``customer_id``, ``cashier_id``.
        """

    @abstractmethod
    def update(self, transaction: Transaction) -> Transaction:
        """Overwrite status, note and line items of an existing transaction."""

    @abstractmethod
    def delete(self, transaction_id: str) -> None:
        """Remove a transaction and its line items."""


class PaymentRepository(ABC):
    @abstractmethod
    def save(self, payment: Payment) -> Payment:
        """Persist a new payment with its installments."""

    @abstractmethod
    def find_by_id(self, payment_id: str) -> Optional[Payment]:
        """Fetch a payment and its installments, or None."""

    @abstractmethod
    def find_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        """Fetch the payment settling a transaction, or None."""

    @abstractmethod
    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Payment]:
        """
        List payments, oldest first.

        :param filters: Optional ``status`` (wire token), ``method`` (wire token), ``transaction_id``.
        """

    @abstractmethod
    def update(self, payment: Payment) -> Payment:
        """Overwrite status and append any new installments."""

    @abstractmethod
    def delete(self, payment_id: str) -> None:
        """Remove a payment and its installments."""


class ProductRepository(ABC):
    @abstractmethod
    def save(self, product: Product) -> Product: ...

    @abstractmethod
    def find_by_id(self, product_id: str) -> Optional[Product]: ...

    @abstractmethod
    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Product]:
        """
        List products by name.

        :param filters: Optional ``category`` (exact), ``min_price``, ``max_price`` (inclusive), ``min_stock``.
        """

    @abstractmethod
    def update(self, product: Product) -> Product: ...

    @abstractmethod
    def delete(self, product_id: str) -> None: ...

    @abstractmethod
    def adjust_stock(self, deltas: Mapping[str, int]) -> List[Tuple[Product, int]]:
        """
        Add each delta to its product's stock in a single unit of work.

        Either every product is written or none is.

        :returns: ``(product, old_stock)`` for every product touched, ordered by id.
        :raises NotFoundError: a product does not exist
        :raises ValidationError: a product would go below zero
        """


class SupplierRepository(ABC):
    @abstractmethod
    def save(self, supplier: Supplier) -> Supplier:
        """Insert or overwrite a supplier."""

    @abstractmethod
    def find_by_id(self, supplier_id: str) -> Optional[Supplier]: ...

    @abstractmethod
    def find_all(self) -> List[Supplier]: ...

    @abstractmethod
    def update(self, supplier: Supplier) -> Supplier: ...

    @abstractmethod
    def delete(self, supplier_id: str) -> None: ...


class CustomerRepository(ABC):
    @abstractmethod
    def save(self, customer: Customer) -> Customer: ...

    @abstractmethod
    def find_by_id(self, customer_id: str) -> Optional[Customer]: ...

    @abstractmethod
    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Customer]:
        """
        List customers, earliest joined first.

        :param filters: Optional ``name`` (case-insensitive substring), ``joined_before`` and
            ``joined_after`` (ISO dates, exclusive).
        """

    @abstractmethod
    def update(self, customer: Customer) -> Customer: ...

    @abstractmethod
    def delete(self, customer_id: str) -> None: ...


class SupplierTransactionRepository(ABC):
    @abstractmethod
    def save(self, supplier_transaction: SupplierTransaction) -> SupplierTransaction: ...

    @abstractmethod
    def find_by_id(self, supplier_transaction_id: str) -> Optional[SupplierTransaction]: ...

    @abstractmethod
    def find_by_supplier_id(self, supplier_id: str) -> List[SupplierTransaction]: ...


class AuditLogRepository(ABC):
    @abstractmethod
    def save(self, entry: AuditLogEntry) -> AuditLogEntry: ...

    @abstractmethod
    def find_by_entity(self, entity: str, entity_id: str) -> List[AuditLogEntry]: ...
