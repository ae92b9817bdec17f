from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

VALID_SIGNATURE = "good-signature"


class FakeGateway:
    def __init__(self):
        self.calls = []

    def create_order(self, data):
        self.calls.append(data)
        return {
            "id": f"order_test{len(self.calls)}",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "status": "created",
        }

    def verify_signature(self, order_id, payment_id, signature):
        return signature == VALID_SIGNATURE


@pytest.fixture
def settings(tmp_path):
    return Settings(jwt_secret="test-secret", upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def db():
    return mongomock.MongoClient()["unimart_test"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(settings, db, gateway):
    app = create_app(settings, db=db, gateway=gateway)
    with TestClient(app) as c:
        yield c


def register(client, email="asha@college.edu", password="secret123", name="Asha Rao", **extra):
    body = {
        "name": name,
        "email": email,
        "password": password,
        "department": "Physics",
        "year": "2nd",
    }
    body.update(extra)
    return client.post("/api/users", json=body)


@pytest.fixture
def user(client):
    response = register(client)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def make_product(db, user):
    """Insert a product directly so tests control created_at."""
    seller_id = db["user"].find_one({"email": user["email"]})["_id"]
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "title": f"Item {counter['n']}",
            "description": "Gently used",
            "price": 100.0,
            "image": "/uploads/item.png",
            "images": [],
            "category": "Textbooks",
            "condition": "Good",
            "subject": "Physics",
            "seller": seller_id,
            "seller_name": user["name"],
            "rating": 5.0,
            "is_blockchain_verified": False,
            "location": "Campus",
            "created_at": datetime.now(timezone.utc) - timedelta(minutes=100 - counter["n"]),
        }
        data.update(overrides)
        data["updated_at"] = data["created_at"]
        result = db["product"].insert_one(data)
        return str(result.inserted_id)

    return _make
