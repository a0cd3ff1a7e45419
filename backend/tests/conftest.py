"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.rbac import UserRole
from app.core.security import create_user_token, get_password_hash
from app.db.base import Base
from app.db.session import get_db
from app.main import app
# Import all models to ensure they're registered with Base.metadata
from app.models import *
from app.models.inventory import InventoryItem
from app.models.order import Order, OrderStatus
from app.models.recipe import Recipe
from app.models.staff import StaffMember, StaffRole
from app.models.supplier import Supplier
from app.models.user import User
from app.services import order_lifecycle
from app.services.order_lifecycle import OrderLine

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

ORDER_TIME = datetime(2026, 3, 15, 12, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def shared_engine(tmp_path):
    """File-backed SQLite engine so separate sessions see each other's commits."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'kitchen.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(shared_engine):
    """Open independent sessions on the shared engine; all are closed on teardown."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=shared_engine)
    opened = []

    def _open() -> Session:
        session = SessionLocal()
        opened.append(session)
        return session

    yield _open
    for session in opened:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiting during tests to avoid flaky failures
    from app.core.rate_limit import limiter
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


def _make_user(db_session: Session, email: str, role: UserRole) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash("testpass123"),
        role=role,
        name="Test User",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def test_user(db_session: Session) -> User:
    """Create a test user (owner)."""
    return _make_user(db_session, "test@example.com", UserRole.OWNER)


@pytest.fixture
def auth_token(test_user: User) -> str:
    """Get an authentication token for the test user."""
    return create_user_token(test_user)


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Get authentication headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def staff_headers(db_session: Session) -> dict:
    """Headers for an account with the lowest role."""
    return _headers(_make_user(db_session, "line-cook@example.com", UserRole.STAFF))


@pytest.fixture
def test_staff(db_session: Session) -> StaffMember:
    """Create a delivery driver."""
    member = StaffMember(
        name="Staff A",
        phone="+919800000001",
        role=StaffRole.DELIVERY,
        department="logistics",
        base_salary=Decimal("18000"),
    )
    db_session.add(member)
    db_session.commit()
    db_session.refresh(member)
    return member


@pytest.fixture
def test_supplier(db_session: Session) -> Supplier:
    """Create a test supplier."""
    supplier = Supplier(
        name="Fresh Farms",
        contact_person="Ravi",
        phone="+919800000099",
        email="orders@freshfarms.example.com",
        categories=["vegetables"],
        rating=Decimal("4.5"),
    )
    db_session.add(supplier)
    db_session.commit()
    db_session.refresh(supplier)
    return supplier


@pytest.fixture
def test_item(db_session: Session, test_supplier: Supplier) -> InventoryItem:
    """Rice at 10 kg with a minimum of 5 kg."""
    item = InventoryItem(
        name="Basmati Rice",
        category="grains",
        unit="kg",
        current_stock=Decimal("10"),
        min_stock=Decimal("5"),
        max_stock=Decimal("100"),
        cost_per_unit=Decimal("90"),
        supplier_id=test_supplier.id,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def test_recipe(db_session: Session) -> Recipe:
    """Create a menu dish."""
    recipe = Recipe(
        name="Veg Biryani",
        category="main",
        prep_time=20,
        cook_time=40,
        servings=1,
        price=Decimal("250.00"),
    )
    db_session.add(recipe)
    db_session.commit()
    db_session.refresh(recipe)
    return recipe


@pytest.fixture
def make_order(db_session: Session, test_recipe: Recipe):
    """Factory placing a pending order for a number of meals."""
    def _make(quantity: int = 10, phone: str = "+919876543210", now: datetime = ORDER_TIME, **kwargs) -> Order:
        return order_lifecycle.create_order(
            db_session,
            customer_name=kwargs.pop("customer_name", "Asha Rao"),
            customer_phone=phone,
            delivery_address=kwargs.pop("delivery_address", "12 MG Road, Bengaluru"),
            items=kwargs.pop("items", [OrderLine(recipe_id=test_recipe.id, quantity=quantity)]),
            now=now,
            **kwargs,
        )
    return _make


@pytest.fixture
def test_order(make_order) -> Order:
    """Pending order for 10 meals."""
    return make_order()


@pytest.fixture
def out_for_delivery_order(db_session: Session, test_order: Order) -> Order:
    """Order for 10 meals that has left the kitchen."""
    order_lifecycle.transition(db_session, test_order.id, OrderStatus.COOKING)
    return order_lifecycle.transition(db_session, test_order.id, OrderStatus.OUT_FOR_DELIVERY)
