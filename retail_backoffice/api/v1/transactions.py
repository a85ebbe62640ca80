"""/v1/transactions - sales transaction lifecycle endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from retail_backoffice.api.dependencies import get_transaction_service
from retail_backoffice.api.v1.schemas import (
    TransactionCreateRequest,
    TransactionItemsRequest,
    TransactionListResponse,
    TransactionResponse,
)
from retail_backoffice.services.transaction_service import TransactionService

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreateRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Open a sales transaction in MASIHDIPROSES.

    Stock for every line item is taken by the stock observer once the
    transaction has been stored.
    """
    transaction = service.create_transaction(
        cashier_id=request_body.cashier_id,
        customer_id=request_body.customer_id,
        items=[item.to_domain() for item in request_body.items],
        note=request_body.note,
    )
    return TransactionResponse.from_domain(transaction)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    status: Optional[str] = Query(None, description="MASIHDIPROSES | SELESAI | DIBATALKAN"),
    customer_id: Optional[str] = Query(None),
    cashier_id: Optional[str] = Query(None),
    sort: Optional[str] = Query(None, description="date_asc | date_desc | total_asc | total_desc | customer_asc | status"),
    service: TransactionService = Depends(get_transaction_service),
):
    transactions = service.list_transactions(
        {"status": status, "customer_id": customer_id, "cashier_id": cashier_id, "sort": sort}
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.from_domain(t) for t in transactions],
        count=len(transactions),
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, service: TransactionService = Depends(get_transaction_service)):
    return TransactionResponse.from_domain(service.get_transaction(transaction_id))


@router.put("/transactions/{transaction_id}/items", response_model=TransactionResponse)
def update_transaction_items(
    transaction_id: str,
    request_body: TransactionItemsRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Replace all line items; only allowed while MASIHDIPROSES"""
    transaction = service.update_transaction(
        transaction_id, [item.to_domain() for item in request_body.items]
    )
    return TransactionResponse.from_domain(transaction)


@router.post("/transactions/{transaction_id}/complete", response_model=TransactionResponse)
def complete_transaction(transaction_id: str, service: TransactionService = Depends(get_transaction_service)):
    return TransactionResponse.from_domain(service.complete_transaction(transaction_id))


@router.post("/transactions/{transaction_id}/cancel", response_model=TransactionResponse)
def cancel_transaction(transaction_id: str, service: TransactionService = Depends(get_transaction_service)):
    return TransactionResponse.from_domain(service.cancel_transaction(transaction_id))


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, service: TransactionService = Depends(get_transaction_service)):
    service.delete_transaction(transaction_id)
    return Response(status_code=204)
