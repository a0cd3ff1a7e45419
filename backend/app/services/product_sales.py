"""Product trading: buying packaged goods in and selling them on.

Each purchase or sale is a ProductTransaction row plus a stock change on
its product, written in one transaction with a SQL expression so concurrent
writers never lose an update. A sale records its profit against the
product's last purchase price at the time of sale.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidQuantity, NotFound, ValidationError
from app.db.session import atomic
from app.models.product import PaymentMethod, Product, ProductTransaction, TransactionType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ProductSummary:
    """Per-product totals for the trading report."""

    product: Product
    total_purchases: Decimal
    total_sales: Decimal
    total_profit: Decimal

    @property
    def stock_status(self) -> str:
        return self.product.stock_status


def _positive(value, field: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if not amount.is_finite() or amount <= 0:
        raise InvalidQuantity(f"{field} must be greater than 0, got {value}", field=field)
    return amount


def _required(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFound("Product", product_id)
    return product


def _active_product(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    if not product.is_active:
        raise ValidationError(f"Product '{product.name}' is inactive", product_id=product_id)
    return product


def list_products(db: Session, category: Optional[str] = None, search: Optional[str] = None) -> List[Product]:
    """Products by name; ``search`` matches name or SKU."""
    stmt = select(Product).order_by(Product.name)
    if category:
        stmt = stmt.where(Product.category == category)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(func.lower(Product.name).like(pattern) | func.lower(Product.sku).like(pattern))
    return list(db.scalars(stmt))


def create_product(
    db: Session,
    *,
    name: str,
    sku: str,
    category: str = "Other",
    unit: str = "pieces",
    description: str = "",
    min_stock=ZERO,
) -> Product:
    """Add a product with no stock; stock arrives through purchases."""
    name = _required(name, "name")
    sku = _required(sku, "sku").upper()
    min_stock = Decimal(str(min_stock))
    if min_stock < 0:
        raise ValidationError(f"min_stock cannot be negative, got {min_stock}", field="min_stock")
    if db.scalar(select(Product.id).where(Product.sku == sku)) is not None:
        raise ValidationError(f"SKU {sku} is already in use", field="sku")

    product = Product(
        name=name,
        sku=sku,
        category=category or "Other",
        unit=unit or "pieces",
        description=description or "",
        current_stock=ZERO,
        min_stock=min_stock,
        is_active=True,
    )
    db.add(product)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError(f"SKU {sku} is already in use", field="sku") from e
    db.refresh(product)
    logger.info(f"Product {product.id} '{product.name}' ({product.sku}) created")
    return product


def record_purchase(
    db: Session,
    product_id: int,
    quantity,
    unit_price,
    supplier_name: str,
    *,
    purchase_date: Optional[date] = None,
    invoice_number: Optional[str] = None,
    notes: str = "",
) -> Tuple[ProductTransaction, Product]:
    """Buy stock in: adds ``quantity`` and remembers ``unit_price`` as the cost basis."""
    qty = _positive(quantity, "quantity")
    price = _positive(unit_price, "unit_price")
    supplier_name = _required(supplier_name, "supplier_name")

    with atomic(db, "record_purchase", product_id=product_id):
        product = _active_product(db, product_id)
        txn = ProductTransaction(
            product_id=product.id,
            transaction_type=TransactionType.PURCHASE,
            quantity=qty,
            unit_price=price,
            total_amount=qty * price,
            party_name=supplier_name,
            invoice_number=invoice_number,
            transaction_date=purchase_date or datetime.now(timezone.utc).date(),
            notes=notes or "",
        )
        db.add(txn)
        db.flush()
        db.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(current_stock=Product.current_stock + qty, last_purchase_price=price)
            .execution_options(synchronize_session=False)
        )

    db.refresh(product)
    db.refresh(txn)
    logger.info(
        f"Purchase {txn.id}: {qty} {product.unit} of '{product.name}' from {supplier_name} "
        f"at {price} -> stock {product.current_stock}"
    )
    return txn, product


def record_sale(
    db: Session,
    product_id: int,
    quantity,
    unit_price,
    customer_name: str,
    customer_phone: str,
    *,
    customer_email: Optional[str] = None,
    payment_method: Union[str, PaymentMethod] = PaymentMethod.CASH,
    sale_date: Optional[date] = None,
    notes: str = "",
    allow_oversell: bool = False,
) -> Tuple[ProductTransaction, Product]:
    """Sell stock out.

    Selling more than is on hand is rejected unless ``allow_oversell`` is
    set, in which case stock stops at zero. The stock check and the decrement
    are one conditional UPDATE.

    Raises:
        InvalidQuantity: non-positive quantity or price, or not enough stock.
        ValidationError: missing customer details or unknown payment method.
        NotFound: the product does not exist.
    """
    qty = _positive(quantity, "quantity")
    price = _positive(unit_price, "unit_price")
    customer_name = _required(customer_name, "customer_name")
    customer_phone = _required(customer_phone, "customer_phone")
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(
            f"payment_method must be one of {[m.value for m in PaymentMethod]}, got {payment_method!r}",
            field="payment_method",
        )

    with atomic(db, "record_sale", product_id=product_id):
        product = _active_product(db, product_id)
        total = qty * price
        txn = ProductTransaction(
            product_id=product.id,
            transaction_type=TransactionType.SALE,
            quantity=qty,
            unit_price=price,
            total_amount=total,
            profit_margin=total - qty * product.last_purchase_price,
            party_name=customer_name,
            customer_phone=customer_phone,
            customer_email=customer_email,
            payment_method=method,
            transaction_date=sale_date or datetime.now(timezone.utc).date(),
            notes=notes or "",
        )
        db.add(txn)
        db.flush()

        stmt = update(Product).where(Product.id == product.id)
        if allow_oversell:
            stmt = stmt.values(current_stock=case(
                (Product.current_stock > qty, Product.current_stock - qty), else_=ZERO,
            ))
        else:
            stmt = stmt.where(Product.current_stock >= qty).values(current_stock=Product.current_stock - qty)
        result = db.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            available = db.scalar(select(Product.current_stock).where(Product.id == product.id))
            raise InvalidQuantity(
                f"Only {available} {product.unit} of '{product.name}' in stock, cannot sell {qty}",
                field="quantity", product_id=product.id, available=available,
            )

    db.refresh(product)
    db.refresh(txn)
    logger.info(
        f"Sale {txn.id}: {qty} {product.unit} of '{product.name}' to {customer_name} "
        f"for {total} (profit {txn.profit_margin}) -> stock {product.current_stock}"
    )
    return txn, product


def list_transactions(
    db: Session,
    product_id: Optional[int] = None,
    transaction_type: Optional[Union[str, TransactionType]] = None,
    limit: int = 500,
) -> List[ProductTransaction]:
    """Transactions, newest first."""
    stmt = select(ProductTransaction).order_by(
        ProductTransaction.transaction_date.desc(), ProductTransaction.id.desc()
    )
    if product_id is not None:
        stmt = stmt.where(ProductTransaction.product_id == product_id)
    if transaction_type is not None:
        try:
            kind = TransactionType(transaction_type)
        except ValueError:
            raise ValidationError(f"unknown transaction type {transaction_type!r}", field="transaction_type")
        stmt = stmt.where(ProductTransaction.transaction_type == kind)
    return list(db.scalars(stmt.limit(limit)))


def product_report(db: Session) -> List[ProductSummary]:
    """Purchase, sale and profit totals for every product, by name."""
    totals: Dict[Tuple[int, TransactionType], Tuple[Decimal, Decimal]] = {}
    rows = db.execute(
        select(
            ProductTransaction.product_id,
            ProductTransaction.transaction_type,
            func.sum(ProductTransaction.total_amount),
            func.sum(ProductTransaction.profit_margin),
        ).group_by(ProductTransaction.product_id, ProductTransaction.transaction_type)
    )
    for product_id, kind, amount, profit in rows:
        totals[(product_id, kind)] = (Decimal(str(amount or 0)), Decimal(str(profit or 0)))

    report = []
    for product in list_products(db):
        purchases, _ = totals.get((product.id, TransactionType.PURCHASE), (ZERO, ZERO))
        sales, profit = totals.get((product.id, TransactionType.SALE), (ZERO, ZERO))
        report.append(ProductSummary(
            product=product, total_purchases=purchases, total_sales=sales, total_profit=profit,
        ))
    return report


def daily_sales(db: Session, day: date) -> Tuple[Decimal, Decimal]:
    """Sales revenue and profit booked on ``day``."""
    amount, profit = db.execute(
        select(
            func.coalesce(func.sum(ProductTransaction.total_amount), 0),
            func.coalesce(func.sum(ProductTransaction.profit_margin), 0),
        ).where(
            ProductTransaction.transaction_type == TransactionType.SALE,
            ProductTransaction.transaction_date == day,
        )
    ).one()
    return Decimal(str(amount)), Decimal(str(profit))
