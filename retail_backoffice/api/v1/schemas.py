"""Pydantic schemas for API request/response validation

Statuses and methods are exchanged as wire tokens (SELESAI, LUNAS, E_WALLET, ...);
money is returned as a two-decimal string.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from retail_backoffice.domain.models import (
    Customer,
    Installment,
    LineItem,
    Payment,
    Product,
    Supplier,
    SupplierTransaction,
    Transaction,
)
from retail_backoffice.domain.transactions import TransactionStateMachine

CENT = Decimal("0.01")


def money(value: Decimal) -> str:
    return str(Decimal(value).quantize(CENT))


def timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# --- transactions -----------------------------------------------------------


class LineItemSchema(BaseModel):
    """Line item in a transaction request"""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., description="Units sold, must be > 0")
    unit_price: Decimal = Field(..., description="Price per unit")

    def to_domain(self) -> LineItem:
        return LineItem(
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


class TransactionCreateRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    cashier_id: str = Field(..., min_length=1, description="Cashier ringing up the sale")
    customer_id: str = Field(..., min_length=1, description="Customer identifier")
    items: List[LineItemSchema]
    note: Optional[str] = None


class TransactionItemsRequest(BaseModel):
    """Request body for PUT /v1/transactions/{id}/items"""

    items: List[LineItemSchema]


class LineItemResponse(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    subtotal: str


class TransactionResponse(BaseModel):
    """Transaction with its computed total and the actions valid in its status"""

    transaction_id: str
    cashier_id: str
    customer_id: str
    status: str
    total: str
    items: List[LineItemResponse]
    allowed_actions: List[str]
    note: Optional[str] = None
    created_at: str

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            transaction_id=transaction.id,
            cashier_id=transaction.cashier_id,
            customer_id=transaction.customer_id,
            status=transaction.status.to_token(),
            total=money(transaction.total),
            items=[
                LineItemResponse(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=money(item.unit_price),
                    subtotal=money(item.subtotal),
                )
                for item in transaction.items
            ],
            allowed_actions=TransactionStateMachine(transaction).allowed_actions(),
            note=transaction.note,
            created_at=timestamp(transaction.created_at),
        )


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    count: int


# --- payments ---------------------------------------------------------------


class PaymentCreateRequest(BaseModel):
    """Request body for POST /v1/payments"""

    transaction_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Target amount to be paid")
    method: str = Field(..., description="CASH | CREDIT_CARD | BANK_TRANSFER | E_WALLET")
    due_date: Optional[datetime] = None
    initial_amount: Optional[Decimal] = Field(None, description="Recorded immediately as the first installment")


class InstallmentRequest(BaseModel):
    """Request body for POST /v1/payments/{id}/installments"""

    amount: Decimal


class InstallmentResponse(BaseModel):
    installment_id: str
    amount: str
    reference: Optional[str] = None
    recorded_at: str

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentResponse":
        return cls(
            installment_id=installment.id,
            amount=money(installment.amount),
            reference=installment.reference,
            recorded_at=timestamp(installment.recorded_at),
        )


class PaymentResponse(BaseModel):
    payment_id: str
    transaction_id: str
    amount: str
    method: str
    status: str
    total_paid: str
    outstanding: str
    installments: List[InstallmentResponse]
    due_date: Optional[str] = None
    created_at: str

    @classmethod
    def from_domain(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            payment_id=payment.id,
            transaction_id=payment.transaction_id,
            amount=money(payment.amount),
            method=payment.method.to_token(),
            status=payment.status.to_token(),
            total_paid=money(payment.total_paid),
            outstanding=money(payment.outstanding),
            installments=[InstallmentResponse.from_domain(i) for i in payment.installments],
            due_date=timestamp(payment.due_date),
            created_at=timestamp(payment.created_at),
        )


class PaymentListResponse(BaseModel):
    payments: List[PaymentResponse]
    count: int


# --- products & suppliers ---------------------------------------------------


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal
    stock: int = Field(0, ge=0)
    category: str = ""


class ProductUpdateRequest(BaseModel):
    """Request body for PUT /v1/products/{id}; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = None
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class ProductResponse(BaseModel):
    product_id: str
    name: str
    price: str
    stock: int
    category: str

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            product_id=product.id,
            name=product.name,
            price=money(product.price),
            stock=product.stock,
            category=product.category,
        )


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    count: int


class SupplierSaveRequest(BaseModel):
    """Request body for POST /v1/suppliers; an existing supplier_id overwrites that supplier"""

    supplier_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    item_type: str = Field(..., min_length=1)
    item_count: int = Field(..., gt=0)
    receipt: str = Field(..., min_length=1, description="Shipping receipt number")


class SupplierUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    item_type: str = Field(..., min_length=1)
    item_count: int = Field(..., gt=0)
    receipt: str = Field(..., min_length=1)


class SupplierResponse(BaseModel):
    supplier_id: str
    name: str
    item_type: str
    item_count: int
    receipt: str
    updated_at: str

    @classmethod
    def from_domain(cls, supplier: Supplier) -> "SupplierResponse":
        return cls(
            supplier_id=supplier.id,
            name=supplier.name,
            item_type=supplier.item_type,
            item_count=supplier.item_count,
            receipt=supplier.receipt,
            updated_at=timestamp(supplier.updated_at),
        )


class SupplierTransactionItem(BaseModel):
    supplier_transaction_id: str
    supplier_name: str
    item_type: str
    item_count: int
    shipment_info: str
    recorded_at: str

    @classmethod
    def from_domain(cls, entry: SupplierTransaction) -> "SupplierTransactionItem":
        return cls(
            supplier_transaction_id=entry.id,
            supplier_name=entry.supplier_name,
            item_type=entry.item_type,
            item_count=entry.item_count,
            shipment_info=entry.shipment_info,
            recorded_at=timestamp(entry.recorded_at),
        )


class SupplierTransactionsResponse(BaseModel):
    """Response for GET /v1/suppliers/{id}/transactions"""

    supplier_id: str
    transactions: List[SupplierTransactionItem]


# --- customers --------------------------------------------------------------


class CustomerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = ""


class CustomerUpdateRequest(BaseModel):
    """Request body for PUT /v1/customers/{id}; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None


class CustomerResponse(BaseModel):
    customer_id: str
    name: str
    address: str
    phone: str
    joined_at: date

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            customer_id=customer.id,
            name=customer.name,
            address=customer.address,
            phone=customer.phone,
            joined_at=customer.joined_at,
        )


class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse]
    count: int
