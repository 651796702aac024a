# app/services/customers.py

import logging
from typing import List

from sqlalchemy import select

from app.db.schema import customers
from app.db.store import Store
from app.errors import NotFoundError
from app.models.customers import CustomerIn, CustomerOut

logger = logging.getLogger(__name__)

_CUSTOMER_COLUMNS = (
    customers.c.id,
    customers.c.name,
    customers.c.email,
    customers.c.phone,
    customers.c.address,
)


class CustomerService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def create_customer(self, customer: CustomerIn) -> int:
        result = self.store.execute(
            customers.insert().values(
                name=customer.name,
                email=customer.email,
                phone=customer.phone,
                address=customer.address,
            )
        )
        logger.info("Customer created with ID: %s", result.inserted_id)
        return result.inserted_id

    def list_customers(self) -> List[CustomerOut]:
        rows = self.store.get_many(
            select(*_CUSTOMER_COLUMNS).order_by(customers.c.name, customers.c.id)
        )
        return [CustomerOut(**row) for row in rows]

    def get_customer(self, customer_id: int) -> CustomerOut:
        row = self.store.get_one(
            select(*_CUSTOMER_COLUMNS).where(customers.c.id == customer_id)
        )
        if row is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        return CustomerOut(**row)
