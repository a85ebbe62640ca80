"""/v1/customers - customer registry endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from retail_backoffice.api.dependencies import get_customer_service
from retail_backoffice.api.v1.schemas import (
    CustomerCreateRequest,
    CustomerListResponse,
    CustomerResponse,
    CustomerUpdateRequest,
)
from retail_backoffice.services.customer_service import CustomerService

router = APIRouter()


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(request_body: CustomerCreateRequest, service: CustomerService = Depends(get_customer_service)):
    customer = service.create_customer(
        name=request_body.name,
        phone=request_body.phone,
        address=request_body.address,
    )
    return CustomerResponse.from_domain(customer)


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    name: Optional[str] = Query(None, description="Case-insensitive substring"),
    joined_before: Optional[str] = Query(None, description="ISO date, exclusive"),
    joined_after: Optional[str] = Query(None, description="ISO date, exclusive"),
    sort: Optional[str] = Query(None, description="name | joined_at"),
    service: CustomerService = Depends(get_customer_service),
):
    customers = service.list_customers(
        {"name": name, "joined_before": joined_before, "joined_after": joined_after, "sort": sort}
    )
    return CustomerListResponse(
        customers=[CustomerResponse.from_domain(c) for c in customers],
        count=len(customers),
    )


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    return CustomerResponse.from_domain(service.get_customer(customer_id))


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: str,
    request_body: CustomerUpdateRequest,
    service: CustomerService = Depends(get_customer_service),
):
    customer = service.update_customer(
        customer_id,
        name=request_body.name,
        phone=request_body.phone,
        address=request_body.address,
    )
    return CustomerResponse.from_domain(customer)


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    service.delete_customer(customer_id)
    return Response(status_code=204)
