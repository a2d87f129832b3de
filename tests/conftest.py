import itertools
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.database import Database, get_database
from app.main import app
from app.schemas.product import ProductCreate
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from app.services.inventory_service import ProductInventory


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture()
def db():
    """Fresh in-memory SQLite database per test."""
    database = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.create_all()

    yield database

    database.drop_all()
    database.dispose()


@pytest.fixture()
def file_db(tmp_path):
    """File-backed SQLite database, for tests that use several connections."""
    database = Database(
        f"sqlite:///{tmp_path / 'storefront.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    database.create_all()

    yield database

    database.dispose()


@pytest.fixture()
def inventory(db):
    return ProductInventory(db)


@pytest.fixture()
def cart_service(db, inventory):
    return CartService(db, inventory)


@pytest.fixture()
def checkout_service(db, inventory):
    return CheckoutService(db, inventory)


@pytest.fixture()
def user_id():
    return uuid.uuid4()


@pytest.fixture()
def make_product(inventory):
    """Factory: create a catalog product with sensible defaults."""
    counter = itertools.count(1)

    def _make(price=10.0, stock=10, is_active=True, category="books", title=None):
        n = next(counter)
        return inventory.create(
            ProductCreate(
                title=title or f"Product {n}",
                description=f"Description of product {n}",
                code=f"p-{n:03d}",
                price=price,
                stock=stock,
                is_active=is_active,
                category=category,
            )
        )

    return _make


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(user_id):
    return {"X-User-Id": str(user_id), "X-User-Role": "user"}
