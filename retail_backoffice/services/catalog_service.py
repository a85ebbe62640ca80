"""Product and supplier use cases"""

import logging
from typing import List, Mapping, Optional

from retail_backoffice.domain.dispatcher import EventDispatcher
from retail_backoffice.domain.events import StockChanged, SupplierSaved
from retail_backoffice.domain.exceptions import NotFoundError, ValidationError
from retail_backoffice.domain.models import Product, Supplier, SupplierTransaction, new_id, utcnow
from retail_backoffice.domain.payments import parse_amount
from retail_backoffice.domain.repositories import (
    ProductRepository,
    SupplierRepository,
    SupplierTransactionRepository,
)

logger = logging.getLogger(__name__)


def _require(value: str, label: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{label} must not be empty")
    return value


def _validate_product(product: Product) -> Product:
    _require(product.name, "Product name")
    if product.price < 0:
        raise ValidationError("Product price must not be negative")
    if product.stock < 0:
        raise ValidationError("Product stock must not be negative")
    return product


class ProductService:
    """Catalogue maintenance; manual stock corrections are announced like sales"""

    def __init__(self, repository: ProductRepository, dispatcher: EventDispatcher):
        self.repository = repository
        self.dispatcher = dispatcher

    def create_product(self, name: str, price, stock: int, category: str = "") -> Product:
        product = _validate_product(
            Product(
                id=new_id("PRD"),
                name=name,
                price=parse_amount(price),
                stock=stock,
                category=category or "",
            )
        )
        self.repository.save(product)
        logger.info("Product created", extra={"product_id": product.id, "stock": stock})
        return product

    def get_product(self, product_id: str) -> Product:
        product = self.repository.find_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def list_products(self, filters: Optional[Mapping[str, str]] = None) -> List[Product]:
        return self.repository.find_all({key: value for key, value in (filters or {}).items() if value})

    def update_product(
        self,
        product_id: str,
        name: Optional[str] = None,
        price=None,
        stock: Optional[int] = None,
        category: Optional[str] = None,
    ) -> Product:
        """
        Overwrite the given fields; omitted fields keep their value.

        A stock change emits StockChanged after the write, so it is audited.

        Raises:
            NotFoundError: product does not exist
            ValidationError: blank name, negative price or negative stock
        """
        product = self.get_product(product_id)
        old_stock = product.stock

        if name is not None:
            product.name = name
        if price is not None:
            product.price = parse_amount(price)
        if stock is not None:
            product.stock = stock
        if category is not None:
            product.category = category

        self.repository.update(_validate_product(product))
        logger.info("Product updated", extra={"product_id": product.id, "stock": product.stock})

        if product.stock != old_stock:
            self.dispatcher.notify(StockChanged(product=product, old_stock=old_stock))
        return product

    def delete_product(self, product_id: str) -> None:
        self.repository.delete(product_id)
        logger.info("Product deleted", extra={"product_id": product_id})


class SupplierService:
    """Saving a supplier records its delivery; observers append it to the supplier log"""

    def __init__(
        self,
        repository: SupplierRepository,
        log_repository: SupplierTransactionRepository,
        dispatcher: EventDispatcher,
    ):
        self.repository = repository
        self.log_repository = log_repository
        self.dispatcher = dispatcher

    def save_supplier(
        self,
        name: str,
        item_type: str,
        item_count: int,
        receipt: str,
        supplier_id: Optional[str] = None,
    ) -> Supplier:
        """Create a supplier, or overwrite the latest delivery of an existing one"""
        supplier = self._build(supplier_id or new_id("SUP"), name, item_type, item_count, receipt)
        self.repository.save(supplier)
        logger.info("Supplier saved", extra={"supplier_id": supplier.id, "item_count": item_count})

        self.dispatcher.notify(SupplierSaved(supplier=supplier))
        return supplier

    def update_supplier(
        self,
        supplier_id: str,
        name: str,
        item_type: str,
        item_count: int,
        receipt: str,
    ) -> Supplier:
        """Correct a stored supplier in place. Corrections are not deliveries and are not logged."""
        self.get_supplier(supplier_id)
        supplier = self._build(supplier_id, name, item_type, item_count, receipt)
        self.repository.update(supplier)
        logger.info("Supplier updated", extra={"supplier_id": supplier_id})
        return supplier

    def get_supplier(self, supplier_id: str) -> Supplier:
        supplier = self.repository.find_by_id(supplier_id)
        if supplier is None:
            raise NotFoundError(f"Supplier {supplier_id} not found")
        return supplier

    def delete_supplier(self, supplier_id: str) -> None:
        self.repository.delete(supplier_id)
        logger.info("Supplier deleted", extra={"supplier_id": supplier_id})

    def list_supplier_transactions(self, supplier_id: str) -> List[SupplierTransaction]:
        self.get_supplier(supplier_id)
        return self.log_repository.find_by_supplier_id(supplier_id)

    @staticmethod
    def _build(supplier_id: str, name: str, item_type: str, item_count: int, receipt: str) -> Supplier:
        if item_count <= 0:
            raise ValidationError("Item count must be greater than 0")
        return Supplier(
            id=supplier_id,
            name=_require(name, "Supplier name"),
            item_type=_require(item_type, "Item type"),
            item_count=item_count,
            receipt=_require(receipt, "Receipt"),
            updated_at=utcnow(),
        )
