"""SQLAlchemy models."""

from app.models.user import User
from app.models.supplier import Supplier
from app.models.inventory import InventoryItem
from app.models.stock import StockMovement, MovementType
from app.models.staff import StaffMember, StaffRole
from app.models.payroll import PayrollRecord, PayrollStatus
from app.models.recipe import Recipe, RecipeIngredient
from app.models.order import Order, OrderItem, OrderEvent, OrderStatus, OrderPriority, OrderSource
from app.models.delivery import DeliveryConfirmation, DeliveryStatus
from app.models.customer import Customer, CustomerStatus
from app.models.purchase import PurchaseOrder, PurchaseOrderLine, PurchaseOrderStatus
from app.models.product import Product, ProductTransaction, TransactionType, PaymentMethod

__all__ = [
    "User",
    "Supplier",
    "InventoryItem",
    "StockMovement",
    "MovementType",
    "StaffMember",
    "StaffRole",
    "PayrollRecord",
    "PayrollStatus",
    "Recipe",
    "RecipeIngredient",
    "Order",
    "OrderItem",
    "OrderEvent",
    "OrderStatus",
    "OrderPriority",
    "OrderSource",
    "DeliveryConfirmation",
    "DeliveryStatus",
    "Customer",
    "CustomerStatus",
    "PurchaseOrder",
    "PurchaseOrderLine",
    "PurchaseOrderStatus",
    "Product",
    "ProductTransaction",
    "TransactionType",
    "PaymentMethod",
]
