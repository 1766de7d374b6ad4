import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pharmatrack")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")

import pytest
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pharmatrack.main import app
from pharmatrack.domain.auth.service import AuthenticationService, demo_password
from pharmatrack.domain.drugs.records import DrugCreate
from pharmatrack.domain.drugs.repository import DrugRepository
from pharmatrack.domain.drugs.store import DrugStore
from pharmatrack.infrastructure.database import close_db, get_db, init_db


# Fixed "now" for everything that depends on the clock
FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database for each test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(test_engine)
    yield test_engine
    close_db(test_engine)


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(session_factory) -> Generator[DrugStore, None, None]:
    """Empty drug store on the test database with a fixed clock."""
    drug_store = DrugStore(DrugRepository(session_factory), clock=lambda: FIXED_NOW)
    drug_store.init()
    yield drug_store
    drug_store.close()


@pytest.fixture(scope="function")
def sample_drug() -> DrugCreate:
    return DrugCreate(
        batch_number="BATCH-TEST01",
        drug_name="Test Paracetamol 500mg",
        manufacturer="Test Pharma Ltd.",
        composition="Paracetamol, Starch",
        production_date=FIXED_NOW - timedelta(days=10),
        expiry_date=FIXED_NOW + timedelta(days=730),
        price=100,
    )


@pytest.fixture(scope="function")
def client(session_factory, store) -> Generator[TestClient, None, None]:
    """Test client wired to the test database and store."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.store = store

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.store = None


@pytest.fixture(scope="function")
def demo_users(db_session) -> int:
    return AuthenticationService(db_session).ensure_demo_users()


@pytest.fixture(scope="function")
def auth_headers(client, demo_users) -> Callable[[str], Dict[str, str]]:
    """Log a demo account in and return its bearer header."""

    def login(username: str) -> Dict[str, str]:
        response = client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": demo_password(username)},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return login


@pytest.fixture(scope="function")
def admin_headers(auth_headers) -> Dict[str, str]:
    return auth_headers("admin")


@pytest.fixture(scope="function")
def manufacturer_headers(auth_headers) -> Dict[str, str]:
    return auth_headers("manufacturer")


@pytest.fixture(scope="function")
def distributor_headers(auth_headers) -> Dict[str, str]:
    return auth_headers("distributor")


@pytest.fixture(scope="function")
def pharmacy_headers(auth_headers) -> Dict[str, str]:
    return auth_headers("pharmacy")


@pytest.fixture(scope="function")
def customer_headers(auth_headers) -> Dict[str, str]:
    return auth_headers("customer")


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as authentication related"
    )
