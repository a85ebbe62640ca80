"""Collaborators notified after a lifecycle change has been committed

Each observer owns its persistence: every hook opens its own session from the
injected factory, so its writes are independent of the triggering request.
"""

import logging
from collections import Counter
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Iterator

from sqlalchemy.orm import Session

from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.events import (
    PaymentUpdated,
    PaymentUpdatedObserver,
    StockChanged,
    StockChangedObserver,
    SupplierSaved,
    SupplierSavedObserver,
    TransactionCancelled,
    TransactionCancelledObserver,
    TransactionCompleted,
    TransactionCompletedObserver,
    TransactionCreated,
    TransactionCreatedObserver,
    TransactionDeleted,
    TransactionDeletedObserver,
    TransactionUpdated,
    TransactionUpdatedObserver,
)
from retail_backoffice.domain.models import AuditLogEntry, LineItem, SupplierTransaction, new_id
from retail_backoffice.infrastructure.database.repositories import (
    SqlAuditLogRepository,
    SqlProductRepository,
    SqlSupplierTransactionRepository,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


@contextmanager
def _session(factory: SessionFactory) -> Iterator[Session]:
    db = factory()
    try:
        yield db
    finally:
        db.close()


def _quantities(items: Iterable[LineItem]) -> Dict[str, int]:
    totals: Counter = Counter()
    for item in items:
        totals[item.product_id] += item.quantity
    return dict(totals)


class StockAdjuster(
    TransactionCreatedObserver,
    TransactionUpdatedObserver,
    TransactionCancelledObserver,
    TransactionDeletedObserver,
):
    """
    Keeps product stock in line with open transactions.

    Stock is taken when a transaction is created, re-balanced when its items
    change and given back when it is cancelled or deleted. Completion needs no
    adjustment. Every product touched emits a StockChanged event.
    """

    name = "stock_adjuster"

    def __init__(self, session_factory: SessionFactory, dispatcher: EventDispatcher):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    def on_transaction_created(self, event: TransactionCreated) -> None:
        self._apply({pid: -qty for pid, qty in _quantities(event.transaction.items).items()}, event)

    def on_transaction_updated(self, event: TransactionUpdated) -> None:
        before = _quantities(event.previous_items)
        after = _quantities(event.transaction.items)
        deltas = {
            pid: before.get(pid, 0) - after.get(pid, 0)
            for pid in set(before) | set(after)
        }
        self._apply({pid: d for pid, d in deltas.items() if d}, event)

    def on_transaction_cancelled(self, event: TransactionCancelled) -> None:
        self._apply(_quantities(event.transaction.items), event)

    def on_transaction_deleted(self, event: TransactionDeleted) -> None:
        self._apply(_quantities(event.transaction.items), event)

    def _apply(self, deltas: Dict[str, int], event) -> None:
        """
        Add each delta to its product's stock as one unit of work.

        Raises:
            NotFoundError: a product does not exist; nothing is written
            ValidationError: a product would go below zero; nothing is written
            PersistenceError: the write failed and was rolled back
        """
        if not deltas:
            return

        with _session(self.session_factory) as db:
            adjusted = SqlProductRepository(db).adjust_stock(deltas)

        logger.info(
            "Stock adjusted",
            extra={
                "event": event.name,
                "transaction_id": event.transaction.id,
                "products": len(adjusted),
            },
        )
        for product, old_stock in adjusted:
            self.dispatcher.notify(StockChanged(product=product, old_stock=old_stock))


class AuditLogger(
    StockChangedObserver,
    TransactionCompletedObserver,
    TransactionCancelledObserver,
    PaymentUpdatedObserver,
):
    """Writes a field-level audit entry for every committed change it hears about"""

    name = "audit_logger"

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def on_stock_changed(self, event: StockChanged) -> None:
        self._record("product", event.product.id, "stock", str(event.old_stock), str(event.product.stock))

    def on_transaction_completed(self, event: TransactionCompleted) -> None:
        self._record_status(event.transaction.id, event.previous_status.to_token(), event.transaction.status.to_token())

    def on_transaction_cancelled(self, event: TransactionCancelled) -> None:
        self._record_status(event.transaction.id, event.previous_status.to_token(), event.transaction.status.to_token())

    def on_payment_updated(self, event: PaymentUpdated) -> None:
        if event.previous_status is event.payment.status:
            return
        self._record(
            "payment",
            event.payment.id,
            "status",
            event.previous_status.to_token(),
            event.payment.status.to_token(),
        )

    def _record_status(self, transaction_id: str, old: str, new: str) -> None:
        self._record("transaction", transaction_id, "status", old, new)

    def _record(self, entity: str, entity_id: str, field_name: str, old, new) -> None:
        with _session(self.session_factory) as db:
            SqlAuditLogRepository(db).save(
                AuditLogEntry(
                    id=new_id("AUD"),
                    entity=entity,
                    entity_id=entity_id,
                    field_name=field_name,
                    old_value=old,
                    new_value=new,
                )
            )


class SupplierTransactionLogger(SupplierSavedObserver):
    """Appends a supplier transaction log entry every time a supplier is saved"""

    name = "supplier_transaction_logger"

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def on_supplier_saved(self, event: SupplierSaved) -> None:
        entry = SupplierTransaction.from_supplier(event.supplier)
        with _session(self.session_factory) as db:
            SqlSupplierTransactionRepository(db).save(entry)
        logger.info(
            "Supplier transaction logged",
            extra={"supplier_id": entry.supplier_id, "supplier_transaction_id": entry.id},
        )


def register_default_observers(dispatcher: EventDispatcher, session_factory: SessionFactory) -> None:
    """Wire the standard collaborators in their delivery order"""
    dispatcher.register(StockAdjuster(session_factory, dispatcher))
    dispatcher.register(AuditLogger(session_factory))
    dispatcher.register(SupplierTransactionLogger(session_factory))
