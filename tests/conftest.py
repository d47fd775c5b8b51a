from types import SimpleNamespace

import mongomock
import pytest
import stripe
from fastapi.testclient import TestClient

import database
import main
from config import config


@pytest.fixture
def mongo(monkeypatch):
    db = mongomock.MongoClient()["bookshop_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def client(mongo, upload_dir):
    return TestClient(main.app)


@pytest.fixture
def stripe_calls(monkeypatch):
    """Record Checkout Session requests instead of calling Stripe"""
    calls = []

    def fake_create(**params):
        calls.append(params)
        return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


@pytest.fixture
def book_form():
    return {
        "title": "Dune",
        "author": "Frank Herbert",
        "description": "Desert planet",
        "price": "15.00",
        "stock": "4",
        "category": "Sci-Fi",
    }


@pytest.fixture
def lenient_client(mongo, upload_dir):
    """Client that hands back 500 responses instead of re-raising server errors"""
    return TestClient(main.app, raise_server_exceptions=False)
