# app/api/customers.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_customer_service
from app.errors import NotFoundError
from app.models.customers import CustomerIn, CustomerOut
from app.services.customers import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/", response_model=List[CustomerOut])
def list_customers(
    service: CustomerService = Depends(get_customer_service),
) -> List[CustomerOut]:
    """
    Return all customers ordered by name.
    """
    return service.list_customers()


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer: CustomerIn,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerOut:
    customer_id = service.create_customer(customer)
    return CustomerOut(id=customer_id, **customer.model_dump())


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerOut:
    """
    Return a single customer by ID.
    """
    try:
        return service.get_customer(customer_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
