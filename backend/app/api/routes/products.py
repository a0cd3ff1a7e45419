"""Resale product routes.

Product stock is never edited directly; it moves through ``/purchases`` and ``/sales``.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.product import TransactionType
from app.schemas.product import (
    DailySalesResponse,
    ProductCreate,
    ProductResponse,
    ProductSummaryResponse,
    ProductTransactionResponse,
    ProductUpdate,
    PurchaseCreate,
    SaleCreate,
)
from app.services import product_sales

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=list[ProductResponse])
@limiter.limit("60/minute")
def list_products(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    category: Optional[str] = None,
    search: Optional[str] = None,
):
    return product_sales.list_products(db, category=category, search=search)


@router.get("/report", response_model=list[ProductSummaryResponse])
@limiter.limit("60/minute")
def product_report(request: Request, db: DbSession, current_user: RequireManager):
    """Purchase, sale and profit totals per product (requires Manager role)."""
    return [
        ProductSummaryResponse(
            product_id=row.product.id,
            name=row.product.name,
            sku=row.product.sku,
            category=row.product.category,
            unit=row.product.unit,
            current_stock=row.product.current_stock,
            min_stock=row.product.min_stock,
            stock_status=row.stock_status,
            total_purchases=row.total_purchases,
            total_sales=row.total_sales,
            total_profit=row.total_profit,
        )
        for row in product_sales.product_report(db)
    ]


@router.get("/daily-sales", response_model=DailySalesResponse)
@limiter.limit("60/minute")
def daily_sales(request: Request, db: DbSession, current_user: RequireManager, day: Optional[date] = None):
    """Sales revenue and profit for ``day`` (default today)."""
    day = day or datetime.now(timezone.utc).date()
    amount, profit = product_sales.daily_sales(db, day)
    return DailySalesResponse(day=day, total_sales=amount, total_profit=profit)


@router.get("/transactions", response_model=list[ProductTransactionResponse])
@limiter.limit("60/minute")
def list_transactions(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    product_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
):
    return product_sales.list_transactions(db, product_id=product_id, transaction_type=transaction_type)


@router.get("/{product_id}", response_model=ProductResponse)
@limiter.limit("60/minute")
def get_product(request: Request, product_id: int, db: DbSession, current_user: CurrentUser):
    return product_sales.get_product(db, product_id)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_product(request: Request, body: ProductCreate, db: DbSession, current_user: CurrentUser):
    """Add a product to the catalogue with no stock."""
    return product_sales.create_product(db, **body.model_dump())


@router.put("/{product_id}", response_model=ProductResponse)
@limiter.limit("30/minute")
def update_product(request: Request, product_id: int, body: ProductUpdate, db: DbSession, current_user: CurrentUser):
    product = product_sales.get_product(db, product_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")
        setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_product(request: Request, product_id: int, db: DbSession, current_user: RequireManager):
    """Delete a product together with its transaction history."""
    product = product_sales.get_product(db, product_id)
    db.delete(product)
    db.commit()
    logger.info(f"Product {product_id} deleted by {current_user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{product_id}/purchases", response_model=ProductTransactionResponse, status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
def record_purchase(request: Request, product_id: int, body: PurchaseCreate, db: DbSession, current_user: CurrentUser):
    txn, _ = product_sales.record_purchase(
        db,
        product_id,
        body.quantity,
        body.unit_price,
        body.supplier_name,
        purchase_date=body.purchase_date,
        invoice_number=body.invoice_number,
        notes=body.notes,
    )
    return txn


@router.post("/{product_id}/sales", response_model=ProductTransactionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def record_sale(request: Request, product_id: int, body: SaleCreate, db: DbSession, current_user: CurrentUser):
    """Sell product stock. 400 when the sale exceeds stock unless ``allow_oversell`` is set."""
    txn, _ = product_sales.record_sale(
        db,
        product_id,
        body.quantity,
        body.unit_price,
        body.customer_name,
        body.customer_phone,
        customer_email=body.customer_email,
        payment_method=body.payment_method,
        sale_date=body.sale_date,
        notes=body.notes,
        allow_oversell=body.allow_oversell,
    )
    return txn
