"""
Pytest fixtures: an in-memory MongoDB (mongomock) and a TestClient bound to it.
"""

from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from config import Settings
from main import create_app


def get_test_settings() -> Settings:
    return Settings(database_name="ecom_test", log_level="WARNING")


@pytest.fixture
def db():
    return mongomock.MongoClient(tz_aware=True)["ecom_test"]


@pytest.fixture
def client(db):
    with TestClient(create_app(settings=get_test_settings(), database=db)) as c:
        yield c


@pytest.fixture
def broken_db():
    """A database whose every collection operation fails."""
    database = MagicMock()
    collection = database.__getitem__.return_value
    error = PyMongoError("connection refused")
    for method in ("find_one", "find", "insert_one", "insert_many", "delete_one",
                   "delete_many", "find_one_and_update"):
        getattr(collection, method).side_effect = error
    return database


@pytest.fixture
def broken_client(broken_db):
    with TestClient(create_app(settings=get_test_settings(), database=broken_db)) as c:
        yield c


@pytest.fixture
def register_payload() -> dict:
    return {
        "email": "ada@example.com",
        "password": "s3cret-pass",
        "first_name": "Ada",
        "last_name": "Lovelace",
    }
