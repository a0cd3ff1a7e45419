"""Customer routes.

Reads return the customer view derived from order history; writes touch
only the stored identity and preference fields.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser
from app.db.session import DbSession
from app.models.customer import Customer
from app.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from app.services import customer_view

logger = logging.getLogger(__name__)

router = APIRouter()


def _phone_taken(db, phone: str, exclude_id: int | None = None) -> bool:
    query = db.query(Customer).filter(Customer.phone == phone)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    return query.first() is not None


def _commit_unique_phone(db, phone: str | None) -> None:
    """Commit, answering 400 when a concurrent write took the phone number first."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Customer phone {phone} already taken: {e.orig}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A customer with phone {phone} already exists",
        )


def _summary(db, customer_id: int):
    summary = customer_view.find_customer(customer_view.load_customer_view(db), customer_id)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return summary


@router.get("/", response_model=list[CustomerResponse])
@limiter.limit("60/minute")
def list_customers(request: Request, db: DbSession, current_user: CurrentUser, status_filter: str | None = None):
    """Customers with their order statistics, highest total spent first."""
    customers = customer_view.load_customer_view(db)
    if status_filter:
        customers = [c for c in customers if c.status == status_filter]
    return customers


@router.get("/{customer_id}", response_model=CustomerResponse)
@limiter.limit("60/minute")
def get_customer(request: Request, customer_id: int, db: DbSession, current_user: CurrentUser):
    return _summary(db, customer_id)


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_customer(request: Request, body: CustomerCreate, db: DbSession, current_user: CurrentUser):
    """Register a customer; orders with the same phone are attributed to it."""
    if _phone_taken(db, body.phone):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A customer with phone {body.phone} already exists",
        )
    customer = Customer(**body.model_dump())
    db.add(customer)
    _commit_unique_phone(db, body.phone)
    db.refresh(customer)
    logger.info(f"Customer {customer.id} '{customer.name}' created")
    return _summary(db, customer.id)


@router.put("/{customer_id}", response_model=CustomerResponse)
@limiter.limit("30/minute")
def update_customer(
    request: Request, customer_id: int, body: CustomerUpdate, db: DbSession, current_user: CurrentUser
):
    """Partially update a customer; only the fields sent are changed."""
    update_data = body.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    if "phone" in update_data and _phone_taken(db, update_data["phone"], exclude_id=customer_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A customer with phone {update_data['phone']} already exists",
        )
    for field, value in update_data.items():
        if value is None and field in ("name", "phone", "addresses", "preferences", "notes", "status"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")
        setattr(customer, field, value)

    _commit_unique_phone(db, customer.phone)
    return _summary(db, customer_id)
