"""
Shared fixtures for the Inventory and Users service tests.

Both services run against a throwaway SQLite database instead of PostgreSQL.
The environment must be set before the service packages are imported.
"""
import atexit
import itertools
import os
import shutil
import tempfile
from datetime import datetime, timedelta

_tmpdir = tempfile.mkdtemp(prefix="inventory-manager-tests-")
atexit.register(shutil.rmtree, _tmpdir, ignore_errors=True)

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from inventory_service import config, database, models
from inventory_service.main import app as inventory_app
from users_service import database as users_database
from users_service.main import app as users_app

_sku_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def reset_databases():
    """Recreate every table so each test starts from an empty database."""
    for base, engine in ((database.Base, database.engine), (users_database.Base, users_database.engine)):
        base.metadata.drop_all(bind=engine)
        base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_item(db):
    """Factory that persists an item and returns it."""
    def _make(quantity=100, price="2.00", owner_id=1, name="Widget", sku=None):
        item = models.Item(
            name=name,
            sku=sku or f"SKU-{next(_sku_counter)}",
            quantity=quantity,
            price=price,
            owner_id=owner_id,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item
    return _make


def read_quantity(item_id):
    """Read an item's quantity through a fresh session."""
    session = database.SessionLocal()
    try:
        return session.get(models.Item, item_id).quantity
    finally:
        session.close()


def count_transactions(item_id=None):
    session = database.SessionLocal()
    try:
        query = session.query(models.Transaction)
        if item_id is not None:
            query = query.filter(models.Transaction.item_id == item_id)
        return query.count()
    finally:
        session.close()


def make_token(user_id, username=None, role="user"):
    """Mint a token the way the Users service does."""
    claims = {
        "sub": str(user_id),
        "username": username or f"user{user_id}",
        "role": role,
        "exp": datetime.utcnow() + timedelta(minutes=5),
    }
    return jwt.encode(claims, config.SECRET_KEY, algorithm=config.ALGORITHM)


@pytest.fixture
def auth_headers():
    def _headers(user_id=1):
        return {"Authorization": f"Bearer {make_token(user_id)}"}
    return _headers


@pytest.fixture
def client():
    return TestClient(inventory_app)


@pytest.fixture
def users_client():
    return TestClient(users_app)
