"""Pytest fixtures — in-memory SQLite database for fast, isolated tests."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from farmconnect.database import Base, get_db
from farmconnect.main import app
from farmconnect.tasks.celery_app import app as celery_app

# Import all models so they register with Base.metadata
from farmconnect.models.user import User                                # noqa: F401
from farmconnect.models.product import Product                          # noqa: F401
from farmconnect.models.contact_request import ContactRequest           # noqa: F401
from farmconnect.models.activity import ContactRequestActivity          # noqa: F401
from farmconnect.models.notification import Notification                # noqa: F401

SQLITE_URL = "sqlite:///./test.db"

# Celery tasks run inline, without a broker
celery_app.conf.task_always_eager = True


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create users/products/requests via the API, return response JSON
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Headers identifying ``user`` as the caller."""
    return {"X-User-Id": user["user_id"]}


def create_test_user(client: TestClient, name: str = "Test User", role: str = "user") -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={"display_name": name, "role": role})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_product(client: TestClient, farmer: dict, name: str = "Tomatoes", minimum: float = 1) -> dict:
    """Helper — POST /api/products as ``farmer`` and return response JSON."""
    resp = client.post(
        "/api/products/",
        json={"name": name, "minimum_order_quantity": minimum},
        headers=auth(farmer),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_contact_request(client: TestClient, requester: dict, product: dict, quantity: float = 10):
    """Helper — POST /api/contact-requests as ``requester``; returns the raw response."""
    return client.post(
        "/api/contact-requests/",
        json={"product_id": product["product_id"], "requested_quantity": quantity},
        headers=auth(requester),
    )


def setup_accepted_request(client: TestClient, quantity: float = 10):
    """Create a buyer, a farmer with a product, and an accepted request between them."""
    farmer = create_test_user(client, name="Farmer", role="farmer")
    buyer = create_test_user(client, name="Buyer", role="user")
    product = create_test_product(client, farmer)
    cr = create_contact_request(client, buyer, product, quantity).json()
    resp = client.put(f"/api/contact-requests/{cr['request_id']}/accept", headers=auth(farmer))
    assert resp.status_code == 200, resp.text
    return buyer, farmer, product, resp.json()
