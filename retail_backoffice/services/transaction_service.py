"""Sales transaction use cases: load/build, transition, persist, then notify"""

import logging
from typing import Iterable, List, Mapping, Optional

from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.enums import TransactionStatus
from retail_backoffice.domain.events import TransactionDeleted
from retail_backoffice.domain.exceptions import InvalidStateError, NotFoundError
from retail_backoffice.domain.models import LineItem, Transaction
from retail_backoffice.domain.repositories import TransactionRepository
from retail_backoffice.domain.sorting import TransactionSort, sort_transactions
from retail_backoffice.domain.transactions import TransactionStateMachine
from retail_backoffice.infrastructure.observability.logging import log_transition
from retail_backoffice.infrastructure.observability.metrics import record_transition

logger = logging.getLogger(__name__)

REPOSITORY_FILTERS = ("status", "customer_id", "cashier_id")


class TransactionService:
    """
    Every mutating call follows the same order:

    1. load (or build) the aggregate
    2. apply the transition through TransactionStateMachine
    3. persist through the repository (commits)
    4. dispatch the resulting event; observer failures never reach the caller
    """

    def __init__(
        self,
        repository: TransactionRepository,
        dispatcher: EventDispatcher,
        request_id: Optional[str] = None,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.request_id = request_id

    def create_transaction(
        self,
        cashier_id: str,
        customer_id: str,
        items: Iterable[LineItem],
        note: Optional[str] = None,
    ) -> Transaction:
        machine = TransactionStateMachine.create(cashier_id, customer_id, items, note=note)
        transaction = self.repository.save(machine.transaction)

        record_transition(transaction.status.to_token())
        log_transition("transaction", transaction.id, None, transaction.status.to_token(), self.request_id)
        self.dispatcher.notify(machine.created_event())
        return transaction

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.repository.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    def list_transactions(self, filters: Optional[Mapping[str, str]] = None) -> List[Transaction]:
        """
        List transactions.

        Args:
            filters: status / customer_id / cashier_id narrow the result; sort picks
                one of TransactionSort (default: oldest first)
        """
        filters = dict(filters or {})
        order = TransactionSort.parse(filters.get("sort"))
        transactions = self.repository.find_all(
            {key: value for key, value in filters.items() if key in REPOSITORY_FILTERS and value}
        )
        if order is not None:
            transactions = sort_transactions(transactions, order)
        return transactions

    def update_transaction(self, transaction_id: str, new_items: Iterable[LineItem]) -> Transaction:
        machine = TransactionStateMachine(self.get_transaction(transaction_id))
        event = machine.replace_items(new_items)
        transaction = self.repository.update(machine.transaction)

        logger.info(
            "Transaction items replaced",
            extra={"transaction_id": transaction.id, "items": len(transaction.items), "request_id": self.request_id},
        )
        self.dispatcher.notify(event)
        return transaction

    def complete_transaction(self, transaction_id: str) -> Transaction:
        machine = TransactionStateMachine(self.get_transaction(transaction_id))
        event = machine.complete()
        return self._commit_transition(machine, event)

    def cancel_transaction(self, transaction_id: str) -> Transaction:
        machine = TransactionStateMachine(self.get_transaction(transaction_id))
        event = machine.cancel()
        return self._commit_transition(machine, event)

    def delete_transaction(self, transaction_id: str) -> None:
        """Delete an open transaction; stock held by it is released by observers"""
        transaction = self.get_transaction(transaction_id)
        if transaction.status is not TransactionStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Cannot delete transaction {transaction_id}: status is {transaction.status.to_token()}"
            )

        self.repository.delete(transaction_id)
        logger.info("Transaction deleted", extra={"transaction_id": transaction_id, "request_id": self.request_id})
        self.dispatcher.notify(TransactionDeleted(transaction=transaction))

    def _commit_transition(self, machine: TransactionStateMachine, event) -> Transaction:
        transaction = self.repository.update(machine.transaction)

        record_transition(transaction.status.to_token())
        log_transition(
            "transaction",
            transaction.id,
            event.previous_status.to_token(),
            transaction.status.to_token(),
            self.request_id,
        )
        self.dispatcher.notify(event)
        return transaction
