"""Data access layer: SQLAlchemy adapters for the domain repository ports

Every write commits on its own so observers run strictly after the primary
commit. A write that fails for any reason is rolled back; SQLAlchemy failures
are re-raised as PersistenceError.
"""

from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Iterator, List, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retail_backoffice.domain.enums import PaymentMethod, PaymentStatus, TransactionStatus
from retail_backoffice.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from retail_backoffice.domain.models import (
    AuditLogEntry,
    Customer,
    Installment,
    LineItem,
    Payment,
    Product,
    Supplier,
    SupplierTransaction,
    Transaction,
    to_decimal,
)
from retail_backoffice.domain import repositories as ports
from retail_backoffice.infrastructure.database.models import (
    AuditLogRecord,
    CustomerRecord,
    InstallmentRecord,
    LineItemRecord,
    PaymentRecord,
    ProductRecord,
    SupplierRecord,
    SupplierTransactionRecord,
    TransactionRecord,
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored timestamps are always UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@contextmanager
def _write(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Database write failed: {e}") from e
    except Exception:
        db.rollback()
        raise


@contextmanager
def _read() -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(f"Database read failed: {e}") from e


def _parse_filter(value: str, parser, label: str):
    parsed = parser(value)
    if parsed is None:
        raise ValidationError(f"Unknown {label} filter: {value!r}")
    return parsed


def _parse_bound(value: str, parser: Callable, label: str):
    try:
        return parser(value)
    except (ArithmeticError, ValueError):
        raise ValidationError(f"Invalid {label} filter: {value!r}") from None


# --- transactions -----------------------------------------------------------


def _line_item_records(transaction: Transaction) -> List[LineItemRecord]:
    return [
        LineItemRecord(
            position=position,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
        )
        for position, item in enumerate(transaction.items)
    ]


def _to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        cashier_id=record.cashier_id,
        customer_id=record.customer_id,
        items=[
            LineItem(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=Decimal(item.unit_price),
            )
            for item in record.items
        ],
        status=TransactionStatus.parse(record.status),
        created_at=_aware(record.created_at),
        note=record.note,
    )


class SqlTransactionRepository(ports.TransactionRepository):
    """Repository for sales transactions"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, transaction: Transaction) -> Transaction:
        with _write(self.db):
            self.db.add(
                TransactionRecord(
                    id=transaction.id,
                    cashier_id=transaction.cashier_id,
                    customer_id=transaction.customer_id,
                    status=transaction.status.to_token(),
                    total=transaction.total,
                    note=transaction.note,
                    created_at=transaction.created_at,
                    items=_line_item_records(transaction),
                )
            )
        return transaction

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        with _read():
            record = self.db.get(TransactionRecord, transaction_id)
            return _to_transaction(record) if record else None

    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Transaction]:
        filters = filters or {}
        with _read():
            query = self.db.query(TransactionRecord)
            if filters.get("status"):
                status = _parse_filter(filters["status"], TransactionStatus.parse, "status")
                query = query.filter(TransactionRecord.status == status.to_token())
            if filters.get("customer_id"):
                query = query.filter(TransactionRecord.customer_id == filters["customer_id"])
            if filters.get("cashier_id"):
                query = query.filter(TransactionRecord.cashier_id == filters["cashier_id"])
            records = query.order_by(TransactionRecord.created_at.asc()).all()
            return [_to_transaction(r) for r in records]

    def update(self, transaction: Transaction) -> Transaction:
        with _write(self.db):
            record = self.db.get(TransactionRecord, transaction.id)
            if record is None:
                raise NotFoundError(f"Transaction {transaction.id} not found")
            record.status = transaction.status.to_token()
            record.note = transaction.note
            record.total = transaction.total
            record.items = _line_item_records(transaction)
        return transaction

    def delete(self, transaction_id: str) -> None:
        with _write(self.db):
            record = self.db.get(TransactionRecord, transaction_id)
            if record is None:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            self.db.delete(record)


# --- payments ---------------------------------------------------------------


def _installment_record(installment: Installment, position: int) -> InstallmentRecord:
    return InstallmentRecord(
        id=installment.id,
        position=position,
        amount=installment.amount,
        reference=installment.reference,
        recorded_at=installment.recorded_at,
    )


def _to_payment(record: PaymentRecord) -> Payment:
    return Payment(
        id=record.id,
        transaction_id=record.transaction_id,
        amount=Decimal(record.amount),
        method=PaymentMethod.parse(record.method),
        status=PaymentStatus.parse(record.status),
        installments=[
            Installment(
                id=inst.id,
                payment_id=record.id,
                amount=Decimal(inst.amount),
                recorded_at=_aware(inst.recorded_at),
                reference=inst.reference,
            )
            for inst in record.installments
        ],
        due_date=_aware(record.due_date),
        created_at=_aware(record.created_at),
    )


class SqlPaymentRepository(ports.PaymentRepository):
    """Repository for payments and their installments"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, payment: Payment) -> Payment:
        with _write(self.db):
            self.db.add(
                PaymentRecord(
                    id=payment.id,
                    transaction_id=payment.transaction_id,
                    amount=payment.amount,
                    method=payment.method.to_token(),
                    status=payment.status.to_token(),
                    due_date=payment.due_date,
                    created_at=payment.created_at,
                    installments=[
                        _installment_record(inst, position)
                        for position, inst in enumerate(payment.installments)
                    ],
                )
            )
        return payment

    def find_by_id(self, payment_id: str) -> Optional[Payment]:
        with _read():
            record = self.db.get(PaymentRecord, payment_id)
            return _to_payment(record) if record else None

    def find_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        with _read():
            record = (
                self.db.query(PaymentRecord)
                .filter(PaymentRecord.transaction_id == transaction_id)
                .first()
            )
            return _to_payment(record) if record else None

    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Payment]:
        filters = filters or {}
        with _read():
            query = self.db.query(PaymentRecord)
            if filters.get("status"):
                status = _parse_filter(filters["status"], PaymentStatus.parse, "status")
                query = query.filter(PaymentRecord.status == status.to_token())
            if filters.get("method"):
                method = _parse_filter(filters["method"], PaymentMethod.parse, "method")
                query = query.filter(PaymentRecord.method == method.to_token())
            if filters.get("transaction_id"):
                query = query.filter(PaymentRecord.transaction_id == filters["transaction_id"])
            records = query.order_by(PaymentRecord.created_at.asc()).all()
            return [_to_payment(r) for r in records]

    def update(self, payment: Payment) -> Payment:
        with _write(self.db):
            record = self.db.get(PaymentRecord, payment.id)
            if record is None:
                raise NotFoundError(f"Payment {payment.id} not found")
            record.status = payment.status.to_token()
            record.due_date = payment.due_date

            # Installments are append-only
            stored = {inst.id for inst in record.installments}
            for position, inst in enumerate(payment.installments):
                if inst.id not in stored:
                    record.installments.append(_installment_record(inst, position))
        return payment

    def delete(self, payment_id: str) -> None:
        with _write(self.db):
            record = self.db.get(PaymentRecord, payment_id)
            if record is None:
                raise NotFoundError(f"Payment {payment_id} not found")
            self.db.delete(record)


# --- products & suppliers ---------------------------------------------------


def _to_product(record: ProductRecord) -> Product:
    return Product(
        id=record.id,
        name=record.name,
        price=Decimal(record.price),
        stock=record.stock,
        category=record.category or "",
    )


class SqlProductRepository(ports.ProductRepository):
    """Repository for the product catalogue"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, product: Product) -> Product:
        with _write(self.db):
            self.db.add(
                ProductRecord(
                    id=product.id,
                    name=product.name,
                    category=product.category,
                    price=product.price,
                    stock=product.stock,
                )
            )
        return product

    def find_by_id(self, product_id: str) -> Optional[Product]:
        with _read():
            # Stock is written by observers through their own sessions
            record = self.db.get(ProductRecord, product_id, populate_existing=True)
            return _to_product(record) if record else None

    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Product]:
        filters = filters or {}
        with _read():
            query = self.db.query(ProductRecord)
            if filters.get("category"):
                query = query.filter(ProductRecord.category == filters["category"])
            if filters.get("min_price"):
                query = query.filter(ProductRecord.price >= _parse_bound(filters["min_price"], to_decimal, "min_price"))
            if filters.get("max_price"):
                query = query.filter(ProductRecord.price <= _parse_bound(filters["max_price"], to_decimal, "max_price"))
            if filters.get("min_stock"):
                query = query.filter(ProductRecord.stock >= _parse_bound(filters["min_stock"], int, "min_stock"))
            records = query.order_by(ProductRecord.name, ProductRecord.id).all()
            return [_to_product(r) for r in records]

    def update(self, product: Product) -> Product:
        with _write(self.db):
            record = self.db.get(ProductRecord, product.id)
            if record is None:
                raise NotFoundError(f"Product {product.id} not found")
            record.name = product.name
            record.category = product.category
            record.price = product.price
            record.stock = product.stock
        return product

    def delete(self, product_id: str) -> None:
        with _write(self.db):
            record = self.db.get(ProductRecord, product_id)
            if record is None:
                raise NotFoundError(f"Product {product_id} not found")
            self.db.delete(record)

    def adjust_stock(self, deltas: Mapping[str, int]) -> List[Tuple[Product, int]]:
        adjusted = []
        with _write(self.db):
            # Fixed lock order across concurrent adjustments
            for product_id in sorted(deltas):
                record = self.db.get(ProductRecord, product_id, populate_existing=True, with_for_update=True)
                if record is None:
                    raise NotFoundError(f"Product {product_id} not found")
                old_stock = record.stock
                new_stock = old_stock + deltas[product_id]
                if new_stock < 0:
                    raise ValidationError(
                        f"Insufficient stock for product {product_id}: "
                        f"available {old_stock}, requested {-deltas[product_id]}"
                    )
                record.stock = new_stock
                adjusted.append((_to_product(record), old_stock))
        return adjusted


def _to_supplier(record: SupplierRecord) -> Supplier:
    return Supplier(
        id=record.id,
        name=record.name,
        item_type=record.item_type,
        item_count=record.item_count,
        receipt=record.receipt,
        updated_at=_aware(record.updated_at),
    )


class SqlSupplierRepository(ports.SupplierRepository):
    """Repository for suppliers"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, supplier: Supplier) -> Supplier:
        with _write(self.db):
            self.db.merge(
                SupplierRecord(
                    id=supplier.id,
                    name=supplier.name,
                    item_type=supplier.item_type,
                    item_count=supplier.item_count,
                    receipt=supplier.receipt,
                    updated_at=supplier.updated_at,
                )
            )
        return supplier

    def find_by_id(self, supplier_id: str) -> Optional[Supplier]:
        with _read():
            record = self.db.get(SupplierRecord, supplier_id)
            return _to_supplier(record) if record else None

    def find_all(self) -> List[Supplier]:
        with _read():
            return [_to_supplier(r) for r in self.db.query(SupplierRecord).order_by(SupplierRecord.name).all()]

    def update(self, supplier: Supplier) -> Supplier:
        with _write(self.db):
            record = self.db.get(SupplierRecord, supplier.id)
            if record is None:
                raise NotFoundError(f"Supplier {supplier.id} not found")
            record.name = supplier.name
            record.item_type = supplier.item_type
            record.item_count = supplier.item_count
            record.receipt = supplier.receipt
            record.updated_at = supplier.updated_at
        return supplier

    def delete(self, supplier_id: str) -> None:
        # The delivery log is history and outlives the supplier
        with _write(self.db):
            record = self.db.get(SupplierRecord, supplier_id)
            if record is None:
                raise NotFoundError(f"Supplier {supplier_id} not found")
            self.db.delete(record)


# --- customers --------------------------------------------------------------


def _to_customer(record: CustomerRecord) -> Customer:
    return Customer(
        id=record.id,
        name=record.name,
        address=record.address or "",
        phone=record.phone,
        joined_at=record.joined_at,
    )


class SqlCustomerRepository(ports.CustomerRepository):
    """Repository for registered customers"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, customer: Customer) -> Customer:
        with _write(self.db):
            self.db.add(
                CustomerRecord(
                    id=customer.id,
                    name=customer.name,
                    address=customer.address,
                    phone=customer.phone,
                    joined_at=customer.joined_at,
                )
            )
        return customer

    def find_by_id(self, customer_id: str) -> Optional[Customer]:
        with _read():
            record = self.db.get(CustomerRecord, customer_id)
            return _to_customer(record) if record else None

    def find_all(self, filters: Optional[Mapping[str, str]] = None) -> List[Customer]:
        filters = filters or {}
        with _read():
            query = self.db.query(CustomerRecord)
            if filters.get("name"):
                query = query.filter(CustomerRecord.name.ilike(f"%{filters['name']}%"))
            if filters.get("joined_before"):
                before = _parse_bound(filters["joined_before"], date.fromisoformat, "joined_before")
                query = query.filter(CustomerRecord.joined_at < before)
            if filters.get("joined_after"):
                after = _parse_bound(filters["joined_after"], date.fromisoformat, "joined_after")
                query = query.filter(CustomerRecord.joined_at > after)
            records = query.order_by(CustomerRecord.joined_at.asc(), CustomerRecord.name).all()
            return [_to_customer(r) for r in records]

    def update(self, customer: Customer) -> Customer:
        with _write(self.db):
            record = self.db.get(CustomerRecord, customer.id)
            if record is None:
                raise NotFoundError(f"Customer {customer.id} not found")
            record.name = customer.name
            record.address = customer.address
            record.phone = customer.phone
        return customer

    def delete(self, customer_id: str) -> None:
        with _write(self.db):
            record = self.db.get(CustomerRecord, customer_id)
            if record is None:
                raise NotFoundError(f"Customer {customer_id} not found")
            self.db.delete(record)


def _to_supplier_transaction(record: SupplierTransactionRecord) -> SupplierTransaction:
    return SupplierTransaction(
        id=record.id,
        supplier_id=record.supplier_id,
        supplier_name=record.supplier_name,
        item_type=record.item_type,
        item_count=record.item_count,
        shipment_info=record.shipment_info,
        recorded_at=_aware(record.recorded_at),
    )


class SqlSupplierTransactionRepository(ports.SupplierTransactionRepository):
    """Repository for the supplier delivery log"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, supplier_transaction: SupplierTransaction) -> SupplierTransaction:
        with _write(self.db):
            self.db.add(
                SupplierTransactionRecord(
                    id=supplier_transaction.id,
                    supplier_id=supplier_transaction.supplier_id,
                    supplier_name=supplier_transaction.supplier_name,
                    item_type=supplier_transaction.item_type,
                    item_count=supplier_transaction.item_count,
                    shipment_info=supplier_transaction.shipment_info,
                    recorded_at=supplier_transaction.recorded_at,
                )
            )
        return supplier_transaction

    def find_by_id(self, supplier_transaction_id: str) -> Optional[SupplierTransaction]:
        with _read():
            record = self.db.get(SupplierTransactionRecord, supplier_transaction_id)
            return _to_supplier_transaction(record) if record else None

    def find_by_supplier_id(self, supplier_id: str) -> List[SupplierTransaction]:
        with _read():
            records = (
                self.db.query(SupplierTransactionRecord)
                .filter(SupplierTransactionRecord.supplier_id == supplier_id)
                .order_by(SupplierTransactionRecord.recorded_at.asc())
                .all()
            )
            return [_to_supplier_transaction(r) for r in records]


class SqlAuditLogRepository(ports.AuditLogRepository):
    """Repository for audit log entries"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, entry: AuditLogEntry) -> AuditLogEntry:
        with _write(self.db):
            self.db.add(
                AuditLogRecord(
                    id=entry.id,
                    entity=entry.entity,
                    entity_id=entry.entity_id,
                    field_name=entry.field_name,
                    old_value=entry.old_value,
                    new_value=entry.new_value,
                    recorded_at=entry.recorded_at,
                )
            )
        return entry

    def find_by_entity(self, entity: str, entity_id: str) -> List[AuditLogEntry]:
        with _read():
            records = (
                self.db.query(AuditLogRecord)
                .filter(AuditLogRecord.entity == entity, AuditLogRecord.entity_id == entity_id)
                .order_by(AuditLogRecord.recorded_at.asc())
                .all()
            )
            return [
                AuditLogEntry(
                    id=r.id,
                    entity=r.entity,
                    entity_id=r.entity_id,
                    field_name=r.field_name,
                    old_value=r.old_value,
                    new_value=r.new_value,
                    recorded_at=_aware(r.recorded_at),
                )
                for r in records
            ]
