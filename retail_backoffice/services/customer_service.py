"""Customer registry use cases"""

import logging
from typing import List, Mapping, Optional

from retail_backoffice.domain.exceptions import NotFoundError, ValidationError
from retail_backoffice.domain.models import Customer, new_id, utcnow
from retail_backoffice.domain.repositories import CustomerRepository
from retail_backoffice.domain.sorting import CustomerSort, sort_customers

logger = logging.getLogger(__name__)

REPOSITORY_FILTERS = ("name", "joined_before", "joined_after")


def _require(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{label} must not be empty")
    return value.strip()


class CustomerService:
    def __init__(self, repository: CustomerRepository):
        self.repository = repository

    def create_customer(self, name: str, phone: str, address: str = "") -> Customer:
        """Register a customer; joined_at is today's date (UTC)"""
        customer = Customer(
            id=new_id("CUS"),
            name=_require(name, "Customer name"),
            address=(address or "").strip(),
            phone=_require(phone, "Phone number"),
            joined_at=utcnow().date(),
        )
        self.repository.save(customer)
        logger.info("Customer created", extra={"customer_id": customer.id})
        return customer

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.repository.find_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def list_customers(self, filters: Optional[Mapping[str, str]] = None) -> List[Customer]:
        """
        List customers.

        Args:
            filters: name (substring), joined_before / joined_after (ISO dates, exclusive)
                narrow the result; sort is one of CustomerSort (default: earliest joined first)
        """
        filters = dict(filters or {})
        order = CustomerSort.parse(filters.get("sort"))
        customers = self.repository.find_all(
            {key: value for key, value in filters.items() if key in REPOSITORY_FILTERS and value}
        )
        if order is not None:
            customers = sort_customers(customers, order)
        return customers

    def update_customer(
        self,
        customer_id: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Customer:
        """Overwrite contact details; joined_at never changes"""
        customer = self.get_customer(customer_id)
        if name is not None:
            customer.name = _require(name, "Customer name")
        if phone is not None:
            customer.phone = _require(phone, "Phone number")
        if address is not None:
            customer.address = address.strip()

        self.repository.update(customer)
        logger.info("Customer updated", extra={"customer_id": customer_id})
        return customer

    def delete_customer(self, customer_id: str) -> None:
        self.repository.delete(customer_id)
        logger.info("Customer deleted", extra={"customer_id": customer_id})
