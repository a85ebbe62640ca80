"""SQLAlchemy ORM models for the back-office schema

Status and method columns hold the canonical wire tokens (SELESAI, LUNAS, ...).
"""

from sqlalchemy import CheckConstraint, Column, Date, String, Integer, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(16, 2)


class TransactionRecord(Base):
    """Sales transaction header"""

    __tablename__ = "sales_transaction"

    id = Column(String(64), primary_key=True)
    cashier_id = Column(Text, nullable=False, index=True)
    customer_id = Column(Text, nullable=False, index=True)
    status = Column(String(32), nullable=False, index=True)
    total = Column(MONEY, nullable=False, default=0)  # denormalised for reporting, rewritten on every save
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items = relationship(
        "LineItemRecord",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="LineItemRecord.position",
    )


class LineItemRecord(Base):
    """Product line within a sales transaction"""

    __tablename__ = "sales_transaction_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(
        String(64), ForeignKey("sales_transaction.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    product_id = Column(Text, nullable=False)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(MONEY, nullable=False)

    transaction = relationship("TransactionRecord", back_populates="items")


class PaymentRecord(Base):
    """Payment owed against a sales transaction"""

    __tablename__ = "payment"

    id = Column(String(64), primary_key=True)
    transaction_id = Column(String(64), nullable=False, unique=True, index=True)
    amount = Column(MONEY, nullable=False)
    method = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, index=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installments = relationship(
        "InstallmentRecord",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="InstallmentRecord.position",
    )


class InstallmentRecord(Base):
    """Individual amount paid towards a payment"""

    __tablename__ = "payment_installment"

    id = Column(String(64), primary_key=True)
    payment_id = Column(String(64), ForeignKey("payment.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    reference = Column(Text, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False)

    payment = relationship("PaymentRecord", back_populates="installments")


class ProductRecord(Base):
    """Product catalogue entry with stock level"""

    __tablename__ = "product"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),)

    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="")
    price = Column(MONEY, nullable=False)
    stock = Column(Integer, nullable=False, default=0)


class SupplierRecord(Base):
    """Supplier with its latest delivery details"""

    __tablename__ = "supplier"

    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False)
    item_type = Column(Text, nullable=False)
    item_count = Column(Integer, nullable=False)
    receipt = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class CustomerRecord(Base):
    """Registered customer"""

    __tablename__ = "customer"

    id = Column(String(64), primary_key=True)
    name = Column(Text, nullable=False, index=True)
    address = Column(Text, nullable=False, default="")
    phone = Column(Text, nullable=False)
    joined_at = Column(Date, nullable=False, index=True)


class SupplierTransactionRecord(Base):
    """Append-only log of supplier deliveries"""

    __tablename__ = "supplier_transaction"

    id = Column(String(64), primary_key=True)
    supplier_id = Column(String(64), nullable=False, index=True)
    supplier_name = Column(Text, nullable=False)
    item_type = Column(Text, nullable=False)
    item_count = Column(Integer, nullable=False)
    shipment_info = Column(Text, nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False)


class AuditLogRecord(Base):
    """Field-level change history"""

    __tablename__ = "audit_log"

    id = Column(String(64), primary_key=True)
    entity = Column(String(32), nullable=False)
    entity_id = Column(String(64), nullable=False, index=True)
    field_name = Column(Text, nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False)
