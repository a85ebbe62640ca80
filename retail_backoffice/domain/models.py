"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from retail_backoffice.domain.enums import PaymentMethod, PaymentStatus, TransactionStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


def to_decimal(value) -> Decimal:
    """Convert API/float input to Decimal without binary float artefacts"""
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass
class LineItem:
    """One product line in a sales transaction"""

    product_id: str
    product_name: str  # denormalised at sale time
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Transaction:
    """Sales transaction aggregate"""

    id: str
    cashier_id: str
    customer_id: str
    items: List[LineItem]
    status: TransactionStatus = TransactionStatus.IN_PROGRESS
    created_at: datetime = field(default_factory=utcnow)
    note: Optional[str] = None

    @property
    def total(self) -> Decimal:
        """Always recomputed from the line items, never stored"""
        return sum((item.subtotal for item in self.items), Decimal("0"))


@dataclass
class Installment:
    """Single recorded payment towards a Payment's target amount"""

    id: str
    payment_id: str
    amount: Decimal
    recorded_at: datetime = field(default_factory=utcnow)
    reference: Optional[str] = None  # processor confirmation


@dataclass
class Payment:
    """Payment aggregate, keyed by the transaction it settles"""

    id: str
    transaction_id: str
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.INSTALLMENT
    installments: List[Installment] = field(default_factory=list)
    due_date: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def total_paid(self) -> Decimal:
        return sum((inst.amount for inst in self.installments), Decimal("0"))

    @property
    def outstanding(self) -> Decimal:
        return max(self.amount - self.total_paid, Decimal("0"))


@dataclass
class Product:
    """Sellable item with tracked stock"""

    id: str
    name: str
    price: Decimal
    stock: int
    category: str = ""


@dataclass
class Customer:
    """Registered shopper; joined_at is the calendar day of registration"""

    id: str
    name: str
    address: str
    phone: str
    joined_at: date = field(default_factory=lambda: utcnow().date())


@dataclass
class Supplier:
    """Upstream goods provider and its latest delivery"""

    id: str
    name: str
    item_type: str
    item_count: int
    receipt: str  # shipping receipt (resi)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class SupplierTransaction:
    """Log entry recorded each time a supplier delivery is saved"""

    id: str
    supplier_id: str
    supplier_name: str
    item_type: str
    item_count: int
    shipment_info: str
    recorded_at: datetime

    @classmethod
    def from_supplier(cls, supplier: Supplier, transaction_id: Optional[str] = None) -> "SupplierTransaction":
        return cls(
            id=transaction_id or new_id("STRX"),
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            item_type=supplier.item_type,
            item_count=supplier.item_count,
            shipment_info=supplier.receipt,
            recorded_at=supplier.updated_at,
        )


@dataclass
class AuditLogEntry:
    """Field-level change record"""

    id: str
    entity: str  # "transaction" | "product" | "payment"
    entity_id: str
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    recorded_at: datetime = field(default_factory=utcnow)
