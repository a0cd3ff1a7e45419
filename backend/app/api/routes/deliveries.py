"""Delivery confirmation routes."""

from fastapi import APIRouter, Request

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser
from app.db.session import DbSession
from app.schemas.delivery import DeliveryConfirmationResponse
from app.services import delivery

router = APIRouter()


@router.get("/", response_model=list[DeliveryConfirmationResponse])
@limiter.limit("60/minute")
def list_deliveries(request: Request, db: DbSession, current_user: CurrentUser):
    """All delivery confirmations, newest first."""
    return delivery.list_confirmations(db)
