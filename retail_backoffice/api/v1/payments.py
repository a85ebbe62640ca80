"""/v1/payments - payment and installment endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from retail_backoffice.api.dependencies import get_payment_service
from retail_backoffice.api.v1.schemas import (
    InstallmentRequest,
    PaymentCreateRequest,
    PaymentListResponse,
    PaymentResponse,
)
from retail_backoffice.services.payment_service import PaymentService

router = APIRouter()


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request_body: PaymentCreateRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Open the payment for a transaction.

    Returns:
        Payment in CICILAN, or LUNAS when initial_amount already covers the amount
    """
    payment = service.create_payment(
        transaction_id=request_body.transaction_id,
        amount=request_body.amount,
        method=request_body.method,
        due_date=request_body.due_date,
        initial_amount=request_body.initial_amount,
    )
    return PaymentResponse.from_domain(payment)


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    status: Optional[str] = Query(None, description="CICILAN | LUNAS"),
    method: Optional[str] = Query(None),
    transaction_id: Optional[str] = Query(None),
    service: PaymentService = Depends(get_payment_service),
):
    payments = service.list_payments({"status": status, "method": method, "transaction_id": transaction_id})
    return PaymentListResponse(payments=[PaymentResponse.from_domain(p) for p in payments], count=len(payments))


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str, service: PaymentService = Depends(get_payment_service)):
    return PaymentResponse.from_domain(service.get_payment(payment_id))


@router.get("/transactions/{transaction_id}/payment", response_model=PaymentResponse)
def get_transaction_payment(transaction_id: str, service: PaymentService = Depends(get_payment_service)):
    return PaymentResponse.from_domain(service.get_payment_by_transaction(transaction_id))


@router.post("/payments/{payment_id}/installments", response_model=PaymentResponse)
def record_installment(
    payment_id: str,
    request_body: InstallmentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Record an installment; a LUNAS payment answers 409"""
    return PaymentResponse.from_domain(service.record_installment(payment_id, request_body.amount))


@router.delete("/payments/{payment_id}", status_code=204)
def delete_payment(payment_id: str, service: PaymentService = Depends(get_payment_service)):
    service.delete_payment(payment_id)
    return Response(status_code=204)
