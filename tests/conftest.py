from datetime import datetime

import mongomock
import pytest

from backend import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def db():
    return mongomock.MongoClient().db


@pytest.fixture
def app(db, tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET_KEY": TEST_SECRET,
            "BCRYPT_ROUNDS": 4,
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "ENVIRONMENT": "test",
        },
        database=db,
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, email, role="user", password="secret-password", name="Test User"):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.get_json()
    return response.get_json()["user"]


def login(client, email, password="secret-password"):
    response = client.post(
        "/api/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.get_json()
    return response.get_json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    register(client, "admin@example.com", role="admin", name="Admin")
    return bearer(login(client, "admin@example.com")["token"])


@pytest.fixture
def user_headers(client):
    register(client, "shopper@example.com", name="Shopper")
    return bearer(login(client, "shopper@example.com")["token"])


def product_payload(**overrides):
    payload = {
        "categoria": "Consola",
        "marca": "Sony",
        "modelo": "PlayStation 5",
        "precio": 499.99,
        "descripcion": "Next generation console with ultra fast storage.",
        "imagenes": ["https://images.example.com/ps5.jpg"],
    }
    payload.update(overrides)
    return payload


def insert_product(db, **overrides):
    document = product_payload(**overrides)
    document.setdefault("stock", 5)
    document.setdefault("disponible", True)
    document.setdefault("destacado", False)
    document.setdefault("caracteristicas", [])
    document.setdefault("createdAt", datetime.utcnow())
    return db.products.insert_one(document).inserted_id
