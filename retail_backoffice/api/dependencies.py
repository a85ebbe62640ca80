"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.infrastructure.database.repositories import (
    SqlCustomerRepository,
    SqlPaymentRepository,
    SqlProductRepository,
    SqlSupplierRepository,
    SqlSupplierTransactionRepository,
    SqlTransactionRepository,
)
from retail_backoffice.infrastructure.database.session import get_db
from retail_backoffice.services.catalog_service import ProductService, SupplierService
from retail_backoffice.services.customer_service import CustomerService
from retail_backoffice.services.payment_service import PaymentService
from retail_backoffice.services.transaction_service import TransactionService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_dispatcher(request: Request) -> EventDispatcher:
    """Dispatcher owned by the application (see create_app)"""
    return request.app.state.dispatcher


def get_transaction_service(
    request: Request,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> TransactionService:
    return TransactionService(SqlTransactionRepository(db), dispatcher, get_request_id(request))


def get_payment_service(
    request: Request,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> PaymentService:
    return PaymentService(
        SqlPaymentRepository(db),
        SqlTransactionRepository(db),
        dispatcher,
        get_request_id(request),
    )


def get_product_service(
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> ProductService:
    return ProductService(SqlProductRepository(db), dispatcher)


def get_supplier_service(
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
) -> SupplierService:
    return SupplierService(SqlSupplierRepository(db), SqlSupplierTransactionRepository(db), dispatcher)


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(SqlCustomerRepository(db))
