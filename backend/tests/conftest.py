import os
import tempfile

# Must be set before database/main are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="ledger-logs-")
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("BATCH_COST_INCLUDES_CONSUMPTION", None)
os.environ.pop("INVENTORY_COSTING_METHOD", None)

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine, get_db
from main import app
from utils.auth_utils import get_current_user
from crud import batch as crud_batch
from crud import inventory_items as crud_inventory_items
from schemas.batch import BatchCreate
from schemas.inventory_items import InventoryItemCreate

TEST_USER = {"sub": "5d0c3b9e-0000-4000-8000-000000000001", "email": "admin@himalayanflavours.test"}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_item(db):
    counter = {"n": 0}

    def _make(name=None, stock=100, unit_cost=5, unit="kg", **kwargs):
        counter["n"] += 1
        item = InventoryItemCreate(
            name=name or f"Item {counter['n']}",
            unit=unit,
            opening_stock=Decimal(str(stock)) if stock else None,
            unit_cost=Decimal(str(unit_cost)),
            **kwargs,
        )
        return crud_inventory_items.create_inventory_item(db, item, changed_by="tester")

    return _make


@pytest.fixture
def make_batch(db):
    def _make(production_date=date(2026, 3, 1), **kwargs):
        return crud_batch.create_batch(db, BatchCreate(production_date=production_date, **kwargs), changed_by="tester")

    return _make


def assert_invariant(item):
    assert Decimal(0) <= item.invoiced_quantity <= item.current_stock
