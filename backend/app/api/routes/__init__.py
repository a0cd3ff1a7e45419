"""API routes."""

from fastapi import APIRouter

from app.api.routes import (
    auth, inventory, stock_movements, orders, deliveries,
    customers, staff, suppliers, recipes, payroll, purchase_orders, products,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Inventory ledger
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(stock_movements.router, prefix="/stock-movements", tags=["inventory", "stock"])

# Orders and delivery
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(deliveries.router, prefix="/deliveries", tags=["delivery"])
api_router.include_router(customers.router, prefix="/customers", tags=["customers"])

# Back office
api_router.include_router(staff.router, prefix="/staff", tags=["staff"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(recipes.router, prefix="/recipes", tags=["recipes", "menu"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["payroll", "staff"])

# Purchasing and resale
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["purchasing", "inventory"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
