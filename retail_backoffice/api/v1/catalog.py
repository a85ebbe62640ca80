"""/v1/products and /v1/suppliers"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from retail_backoffice.api.dependencies import get_product_service, get_supplier_service
from retail_backoffice.api.v1.schemas import (
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
    SupplierResponse,
    SupplierSaveRequest,
    SupplierTransactionItem,
    SupplierTransactionsResponse,
    SupplierUpdateRequest,
)
from retail_backoffice.services.catalog_service import ProductService, SupplierService

router = APIRouter()


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(request_body: ProductCreateRequest, service: ProductService = Depends(get_product_service)):
    product = service.create_product(
        name=request_body.name,
        price=request_body.price,
        stock=request_body.stock,
        category=request_body.category,
    )
    return ProductResponse.from_domain(product)


@router.get("/products", response_model=ProductListResponse)
def list_products(
    category: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, description="Inclusive"),
    max_price: Optional[Decimal] = Query(None, description="Inclusive"),
    min_stock: Optional[int] = Query(None, ge=0),
    service: ProductService = Depends(get_product_service),
):
    products = service.list_products(
        {
            "category": category,
            "min_price": None if min_price is None else str(min_price),
            "max_price": None if max_price is None else str(max_price),
            "min_stock": None if min_stock is None else str(min_stock),
        }
    )
    return ProductListResponse(
        products=[ProductResponse.from_domain(p) for p in products],
        count=len(products),
    )


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    return ProductResponse.from_domain(service.get_product(product_id))


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    request_body: ProductUpdateRequest,
    service: ProductService = Depends(get_product_service),
):
    """A stock correction is written to the audit log like any other stock change"""
    product = service.update_product(
        product_id,
        name=request_body.name,
        price=request_body.price,
        stock=request_body.stock,
        category=request_body.category,
    )
    return ProductResponse.from_domain(product)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: str, service: ProductService = Depends(get_product_service)):
    service.delete_product(product_id)
    return Response(status_code=204)


@router.post("/suppliers", response_model=SupplierResponse)
def save_supplier(request_body: SupplierSaveRequest, service: SupplierService = Depends(get_supplier_service)):
    """Create or update a supplier; every save is appended to its transaction log"""
    supplier = service.save_supplier(
        name=request_body.name,
        item_type=request_body.item_type,
        item_count=request_body.item_count,
        receipt=request_body.receipt,
        supplier_id=request_body.supplier_id,
    )
    return SupplierResponse.from_domain(supplier)


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
def get_supplier(supplier_id: str, service: SupplierService = Depends(get_supplier_service)):
    return SupplierResponse.from_domain(service.get_supplier(supplier_id))


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: str,
    request_body: SupplierUpdateRequest,
    service: SupplierService = Depends(get_supplier_service),
):
    """Correct a supplier record without logging a delivery"""
    supplier = service.update_supplier(
        supplier_id,
        name=request_body.name,
        item_type=request_body.item_type,
        item_count=request_body.item_count,
        receipt=request_body.receipt,
    )
    return SupplierResponse.from_domain(supplier)


@router.delete("/suppliers/{supplier_id}", status_code=204)
def delete_supplier(supplier_id: str, service: SupplierService = Depends(get_supplier_service)):
    service.delete_supplier(supplier_id)
    return Response(status_code=204)


@router.get("/suppliers/{supplier_id}/transactions", response_model=SupplierTransactionsResponse)
def get_supplier_transactions(supplier_id: str, service: SupplierService = Depends(get_supplier_service)):
    entries = service.list_supplier_transactions(supplier_id)
    return SupplierTransactionsResponse(
        supplier_id=supplier_id,
        transactions=[SupplierTransactionItem.from_domain(e) for e in entries],
    )
