"""Shared fixtures: a file-backed SQLite database per test and an API client over it."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.main import create_app
from storefront.models.database import Database
from storefront.models.products import Product
from storefront.services.orders import OrderService


@pytest.fixture
def settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'storefront.db'}", LOG_LEVEL="WARNING")


@pytest.fixture
def database(settings):
    db = Database.from_settings(settings)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def session(database):
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_product(database):
    """Insert a product in its own committed transaction and return its id."""
    def _make(name="Widget", price="10.00", stock=10, description=None, product_id=None):
        with database.session() as db:
            product = Product(
                id=product_id,
                name=name,
                description=description,
                price=Decimal(price),
                image="📦",
                stock=stock,
            )
            db.add(product)
            db.commit()
            return product.id
    return _make


@pytest.fixture
def read_stock(database):
    """Read a product's stock through a fresh session."""
    def _read(product_id):
        with database.session() as db:
            return db.get(Product, product_id).stock
    return _read


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def load_order(database):
    """Load an order with its items through a fresh session."""
    def _load(order_id):
        with database.session() as db:
            return OrderService(db).get_order(order_id)
    return _load
