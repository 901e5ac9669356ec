"""Pytest fixtures for testing"""

import os

# Must be set before remit_ledger.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from remit_ledger.api.main import create_app
from remit_ledger.infrastructure.database.models import Base, Client
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.repositories import (
    ClientRepository,
    LedgerEntryRepository,
    SettingRepository,
    UserRepository,
)
from remit_ledger.infrastructure.security import hash_password, issue_token


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_headers(db: Session) -> Callable[[str], Dict[str, str]]:
    """Create a staff user with the given role and return its bearer header"""
    counter = {"n": 0}

    def _make(role: str = "cashier") -> Dict[str, str]:
        counter["n"] += 1
        user = UserRepository(db).create(
            name=f"{role} {counter['n']}",
            email=f"{role}{counter['n']}@example.com",
            password_hash=hash_password("secret123"),
            role=role,
        )
        db.commit()
        return {"Authorization": f"Bearer {issue_token(user.id, user.role)}"}

    return _make


@pytest.fixture
def admin_headers(make_headers) -> Dict[str, str]:
    return make_headers("admin")


@pytest.fixture
def cashier_headers(make_headers) -> Dict[str, str]:
    return make_headers("cashier")


@pytest.fixture
def make_client(db: Session) -> Callable[..., Client]:
    """Insert a client with an opening balance straight through the repositories"""

    def _make(full_name: str, balance_cents: int = 0) -> Client:
        client = ClientRepository(db).create(full_name=full_name)
        if balance_cents:
            LedgerEntryRepository(db).apply_delta(client.id, balance_cents, kind="opening")
        db.commit()
        db.refresh(client)
        return client

    return _make


@pytest.fixture
def set_tax_rate(db: Session) -> Callable[[object], None]:
    def _set(rate) -> None:
        SettingRepository(db).upsert("taxRate", rate)
        db.commit()

    return _set


@pytest.fixture
def balance_of(db: Session) -> Callable[[object], int]:
    """Fresh balance read, bypassing the identity map"""

    def _read(client_id) -> int:
        db.expire_all()
        return db.get(Client, client_id).balance_cents

    return _read
