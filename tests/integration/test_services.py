"""Integration tests for services and the standard observers on the test database"""

import pytest
from decimal import Decimal
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.enums import PaymentStatus, TransactionStatus
from retail_backoffice.domain.exceptions import (
    AlreadyPaidError,
    InvalidAmountError,
    InvalidStateError,
    NotFoundError,
    UnsupportedMethodError,
    ValidationError,
)
from retail_backoffice.domain.models import LineItem, utcnow
from retail_backoffice.infrastructure.database.repositories import (
    SqlAuditLogRepository,
    SqlCustomerRepository,
    SqlPaymentRepository,
    SqlProductRepository,
    SqlSupplierRepository,
    SqlSupplierTransactionRepository,
    SqlTransactionRepository,
)
from retail_backoffice.services.catalog_service import ProductService, SupplierService
from retail_backoffice.services.customer_service import CustomerService
from retail_backoffice.services.observers import StockAdjuster
from retail_backoffice.services.payment_service import PaymentService
from retail_backoffice.services.transaction_service import TransactionService


@pytest.fixture
def transactions(db: Session, dispatcher) -> TransactionService:
    return TransactionService(SqlTransactionRepository(db), dispatcher)


@pytest.fixture
def payments(db: Session, dispatcher) -> PaymentService:
    return PaymentService(SqlPaymentRepository(db), SqlTransactionRepository(db), dispatcher)


def stock(db: Session, product_id: str) -> int:
    return SqlProductRepository(db).find_by_id(product_id).stock


def test_create_transaction_takes_stock(db, transactions, products, sample_items):
    """Test creating a transaction takes stock for every line"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    assert transaction.status is TransactionStatus.IN_PROGRESS
    assert transactions.get_transaction(transaction.id).total == Decimal("222000")
    assert stock(db, "PRD-rice") == 18
    assert stock(db, "PRD-oil") == 8


def test_stock_changes_are_audited(db, transactions, products, sample_items):
    """Test stock changes are written to the audit log"""
    transactions.create_transaction("cashier-1", "customer-1", sample_items)

    [entry] = SqlAuditLogRepository(db).find_by_entity("product", "PRD-rice")
    assert (entry.field_name, entry.old_value, entry.new_value) == ("stock", "20", "18")


def test_insufficient_stock_leaves_every_product_untouched(db, transactions, products):
    """Stock observer fails before writing; the transaction itself is still stored"""
    items = [
        LineItem("PRD-rice", "Rice 5kg", 1, Decimal("75000")),
        LineItem("PRD-oil", "Cooking Oil 2L", 11, Decimal("36000")),
    ]

    transaction = transactions.create_transaction("cashier-1", "customer-1", items)

    assert transactions.get_transaction(transaction.id) is not None
    assert stock(db, "PRD-rice") == 20
    assert stock(db, "PRD-oil") == 10


def test_update_items_rebalances_stock(db, transactions, products, sample_items):
    """Test replacing items gives back and takes stock by the difference"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    updated = transactions.update_transaction(
        transaction.id, [LineItem("PRD-rice", "Rice 5kg", 5, Decimal("75000"))]
    )

    assert updated.total == Decimal("375000")
    assert stock(db, "PRD-rice") == 15
    assert stock(db, "PRD-oil") == 10


def test_cancel_restores_stock_and_audits_status(db, transactions, products, sample_items):
    """Test cancelling restores stock and audits the status change"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    cancelled = transactions.cancel_transaction(transaction.id)

    assert cancelled.status is TransactionStatus.CANCELLED
    assert stock(db, "PRD-rice") == 20
    assert stock(db, "PRD-oil") == 10
    [entry] = SqlAuditLogRepository(db).find_by_entity("transaction", transaction.id)
    assert (entry.old_value, entry.new_value) == ("MASIHDIPROSES", "DIBATALKAN")


def test_complete_keeps_stock_and_rejects_cancel(db, transactions, products, sample_items):
    """Test completion keeps stock taken and blocks cancellation"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)
    transactions.complete_transaction(transaction.id)

    with pytest.raises(InvalidStateError):
        transactions.cancel_transaction(transaction.id)

    assert transactions.get_transaction(transaction.id).status is TransactionStatus.COMPLETED
    assert stock(db, "PRD-rice") == 18


def test_delete_only_open_transactions(db, transactions, products, sample_items):
    """Test only open transactions can be deleted and their stock returns"""
    open_tx = transactions.create_transaction("cashier-1", "customer-1", sample_items)
    done_tx = transactions.create_transaction("cashier-1", "customer-2", sample_items)
    transactions.complete_transaction(done_tx.id)

    transactions.delete_transaction(open_tx.id)

    with pytest.raises(NotFoundError):
        transactions.get_transaction(open_tx.id)
    with pytest.raises(InvalidStateError):
        transactions.delete_transaction(done_tx.id)
    assert stock(db, "PRD-rice") == 18


def test_list_transactions_filters_and_sorts(transactions, products):
    """Test listing with filters and sort orders"""
    cheap = transactions.create_transaction("cashier-1", "bob", [LineItem("PRD-oil", "Cooking Oil 2L", 1, Decimal("36000"))])
    dear = transactions.create_transaction("cashier-1", "alice", [LineItem("PRD-rice", "Rice 5kg", 2, Decimal("75000"))])
    transactions.complete_transaction(dear.id)

    by_total = transactions.list_transactions({"sort": "total_desc"})
    assert [t.id for t in by_total] == [dear.id, cheap.id]

    assert [t.id for t in transactions.list_transactions({"status": "SELESAI"})] == [dear.id]
    assert [t.id for t in transactions.list_transactions({"customer_id": "bob", "sort": None})] == [cheap.id]

    with pytest.raises(ValidationError):
        transactions.list_transactions({"sort": "newest"})


def test_payment_lifecycle(db, transactions, payments, products, sample_items):
    """Test installments settle a payment, which is then audited"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    payment = payments.create_payment(transaction.id, "1000", "e_wallet")
    assert payment.id.startswith("EWALLET-")
    assert payment.status is PaymentStatus.INSTALLMENT

    payments.record_installment(payment.id, 400)
    settled = payments.record_installment(payment.id, 600)
    assert settled.status is PaymentStatus.PAID

    with pytest.raises(AlreadyPaidError):
        payments.record_installment(payment.id, 50)

    stored = payments.get_payment_by_transaction(transaction.id)
    assert stored.status is PaymentStatus.PAID
    assert len(stored.installments) == 2
    assert all(i.reference.startswith("EWALLET-") for i in stored.installments)

    [entry] = SqlAuditLogRepository(db).find_by_entity("payment", payment.id)
    assert (entry.old_value, entry.new_value) == ("CICILAN", "LUNAS")


def test_initial_amount_is_recorded_on_create(transactions, payments, products, sample_items):
    """Test an initial amount is recorded as the first installment"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    payment = payments.create_payment(transaction.id, "222000", "CASH", initial_amount="222000")

    assert payment.status is PaymentStatus.PAID
    assert payments.get_payment(payment.id).total_paid == Decimal("222000")


def test_create_payment_rules(transactions, payments, products, sample_items):
    """Test payment creation guards: missing transaction, method, amount, duplicate"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)

    with pytest.raises(NotFoundError):
        payments.create_payment("TRX-missing", "1000", "CASH")
    with pytest.raises(UnsupportedMethodError):
        payments.create_payment(transaction.id, "1000", "BITCOIN")
    with pytest.raises(InvalidAmountError):
        payments.create_payment(transaction.id, "0", "CASH")

    payments.create_payment(transaction.id, "1000", "CASH")
    with pytest.raises(InvalidStateError):
        payments.create_payment(transaction.id, "1000", "CASH")


def test_cancelled_transaction_cannot_be_paid(transactions, payments, products, sample_items):
    """Test a cancelled transaction refuses a payment"""
    transaction = transactions.create_transaction("cashier-1", "customer-1", sample_items)
    transactions.cancel_transaction(transaction.id)

    with pytest.raises(InvalidStateError):
        payments.create_payment(transaction.id, "1000", "CASH")


def test_delete_payment_only_while_installment(transactions, payments, products, sample_items):
    """Test only unsettled payments can be deleted"""
    first = transactions.create_transaction("cashier-1", "customer-1", sample_items)
    second = transactions.create_transaction("cashier-1", "customer-2", sample_items)
    open_payment = payments.create_payment(first.id, "1000", "CASH")
    paid_payment = payments.create_payment(second.id, "1000", "CASH", initial_amount="1000")

    payments.delete_payment(open_payment.id)
    with pytest.raises(NotFoundError):
        payments.get_payment(open_payment.id)

    with pytest.raises(InvalidStateError):
        payments.delete_payment(paid_payment.id)
    assert [p.id for p in payments.list_payments({"status": "LUNAS"})] == [paid_payment.id]


def test_products(db, dispatcher):
    """Test product creation and lookup"""
    service = ProductService(SqlProductRepository(db), dispatcher)

    product = service.create_product("Sugar 1kg", "15500.50", 40, "grocery")

    assert product.id.startswith("PRD-")
    assert service.get_product(product.id).price == Decimal("15500.50")
    with pytest.raises(ValidationError):
        service.create_product("Salt", "-1", 1)
    with pytest.raises(NotFoundError):
        service.get_product("PRD-missing")


def test_saving_supplier_logs_a_supplier_transaction(db, dispatcher):
    """Test every supplier save appends a supplier log entry"""
    service = SupplierService(SqlSupplierRepository(db), SqlSupplierTransactionRepository(db), dispatcher)

    supplier = service.save_supplier("PT Sumber Pangan", "rice", 100, "JNE-001")
    service.save_supplier("PT Sumber Pangan", "rice", 60, "JNE-002", supplier_id=supplier.id)

    log = service.list_supplier_transactions(supplier.id)
    assert [entry.shipment_info for entry in log] == ["JNE-001", "JNE-002"]
    assert [entry.item_count for entry in log] == [100, 60]
    assert service.get_supplier(supplier.id).item_count == 60

    with pytest.raises(ValidationError):
        service.save_supplier("PT Kosong", "rice", 0, "JNE-003")


def test_line_items_keep_the_price_given_at_sale(transactions, products):
    """Test line items store the name and unit price supplied by the caller, not the catalogue's"""
    discounted = [LineItem("PRD-rice", "Rice 5kg (promo)", 1, Decimal("70000"))]

    transaction = transactions.create_transaction("cashier-1", "customer-1", discounted)

    [line] = transactions.get_transaction(transaction.id).items
    assert (line.product_name, line.unit_price) == ("Rice 5kg (promo)", Decimal("70000"))
    assert transactions.get_transaction(transaction.id).total == Decimal("70000")


def test_failed_stock_write_leaves_every_product_untouched(db, products, sample_items):
    """Test a stock write that fails at commit rolls back all products and is reported"""
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())

    def failing_session():
        session = factory()

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        session.commit = failing_commit
        return session

    failures = []
    dispatcher = EventDispatcher(
        on_failure=lambda observer, event, error: failures.append((observer.name, type(error).__name__))
    )
    dispatcher.register(StockAdjuster(failing_session, dispatcher))
    service = TransactionService(SqlTransactionRepository(db), dispatcher)

    transaction = service.create_transaction("cashier-1", "customer-1", sample_items)

    assert failures == [("stock_adjuster", "PersistenceError")]
    assert service.get_transaction(transaction.id) is not None
    assert stock(db, "PRD-rice") == 20
    assert stock(db, "PRD-oil") == 10


def test_budgeted_dispatch_delivers_stock_and_audit(db, budgeted_dispatcher, products, sample_items):
    """Test the standard observers under time budgets: stock events raised by the stock observer reach the audit log"""
    service = TransactionService(SqlTransactionRepository(db), budgeted_dispatcher)

    transaction = service.create_transaction("cashier-1", "customer-1", sample_items)

    assert stock(db, "PRD-rice") == 18
    assert stock(db, "PRD-oil") == 8
    audit = SqlAuditLogRepository(db)
    assert [(e.old_value, e.new_value) for e in audit.find_by_entity("product", "PRD-rice")] == [("20", "18")]
    assert [(e.old_value, e.new_value) for e in audit.find_by_entity("product", "PRD-oil")] == [("10", "8")]

    service.cancel_transaction(transaction.id)

    assert stock(db, "PRD-rice") == 20
    assert len(audit.find_by_entity("product", "PRD-rice")) == 2
    [status_entry] = audit.find_by_entity("transaction", transaction.id)
    assert status_entry.new_value == "DIBATALKAN"


def test_product_update_audits_stock_corrections(db, dispatcher, products):
    """Test a manual stock correction is written and audited; other edits are not"""
    service = ProductService(SqlProductRepository(db), dispatcher)

    service.update_product("PRD-oil", price="38000")
    updated = service.update_product("PRD-oil", stock=25)

    assert updated.price == Decimal("38000")
    assert stock(db, "PRD-oil") == 25
    [entry] = SqlAuditLogRepository(db).find_by_entity("product", "PRD-oil")
    assert (entry.old_value, entry.new_value) == ("10", "25")

    with pytest.raises(ValidationError):
        service.update_product("PRD-oil", stock=-1)
    with pytest.raises(ValidationError):
        service.update_product("PRD-oil", name=" ")
    with pytest.raises(NotFoundError):
        service.update_product("PRD-missing", stock=1)
    assert stock(db, "PRD-oil") == 25


def test_product_list_and_delete(db, dispatcher, products):
    """Test product listing with filters and deletion"""
    service = ProductService(SqlProductRepository(db), dispatcher)

    assert [p.id for p in service.list_products({"min_price": "50000", "category": None})] == ["PRD-rice"]
    assert len(service.list_products()) == 2

    service.delete_product("PRD-rice")

    assert [p.id for p in service.list_products()] == ["PRD-oil"]
    with pytest.raises(NotFoundError):
        service.delete_product("PRD-rice")


def test_supplier_update_and_delete(db, dispatcher):
    """Test supplier corrections are not logged as deliveries, and deletion keeps the log"""
    service = SupplierService(SqlSupplierRepository(db), SqlSupplierTransactionRepository(db), dispatcher)
    supplier = service.save_supplier("PT Sumber Pangan", "rice", 100, "JNE-001")

    updated = service.update_supplier(supplier.id, "PT Sumber Pangan Jaya", "rice", 90, "JNE-001")

    assert updated.name == "PT Sumber Pangan Jaya"
    assert service.get_supplier(supplier.id).item_count == 90
    assert len(service.list_supplier_transactions(supplier.id)) == 1
    with pytest.raises(NotFoundError):
        service.update_supplier("SUP-missing", "PT Lain", "oil", 1, "JNE-9")
    with pytest.raises(ValidationError):
        service.update_supplier(supplier.id, "PT Sumber Pangan", "rice", 0, "JNE-001")

    service.delete_supplier(supplier.id)

    with pytest.raises(NotFoundError):
        service.get_supplier(supplier.id)
    assert len(SqlSupplierTransactionRepository(db).find_by_supplier_id(supplier.id)) == 1


def test_customers(db):
    """Test customer registration, listing, update and deletion"""
    service = CustomerService(SqlCustomerRepository(db))

    john = service.create_customer("John Doe", "1234567890", "123 Main St")
    jane = service.create_customer("Jane Smith", "0987654321")

    assert john.id.startswith("CUS-")
    assert john.joined_at == utcnow().date()
    assert [c.id for c in service.list_customers({"sort": "name"})] == [jane.id, john.id]
    assert [c.id for c in service.list_customers({"name": "doe"})] == [john.id]

    updated = service.update_customer(john.id, address="789 Oak St")
    assert (updated.name, updated.address) == ("John Doe", "789 Oak St")
    assert service.get_customer(john.id).address == "789 Oak St"

    with pytest.raises(ValidationError):
        service.create_customer(" ", "1")
    with pytest.raises(ValidationError):
        service.update_customer(john.id, phone="")
    with pytest.raises(ValidationError):
        service.list_customers({"sort": "age"})

    service.delete_customer(john.id)
    with pytest.raises(NotFoundError):
        service.get_customer(john.id)
