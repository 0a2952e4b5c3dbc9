"""Pytest fixtures for testing"""

import os

# Must be set before the application modules read their settings
TEST_SECRET_KEY = "test-secret-key-for-receivables-0123456789abcdef"
TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ["JWT_SECRET_KEY"] = TEST_SECRET_KEY
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Generator, Iterable

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker, Session

from accounts_receivable.api.dependencies import get_auth_client
from accounts_receivable.api.main import create_app
from accounts_receivable.domain.exceptions import UserNotFoundError
from accounts_receivable.domain.models import ReceivableData, UserIdentity
from accounts_receivable.infrastructure.clients.auth import normalize_roles
from accounts_receivable.infrastructure.clients.documents import StubDocumentStorage
from accounts_receivable.infrastructure.database.models import Base
from accounts_receivable.infrastructure.database.session import build_engine, get_db
from accounts_receivable.services.receivables import ReceivableService


engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# username -> roles as the auth service would return them
TEST_USERS: Dict[str, Iterable[str]] = {
    "admin": ["admin"],
    "accountant": ["accountant"],
    "sales": ["ROLE_SALES"],
    "manager": ["manager"],
    "viewer": ["financial_viewer"],
    "norole": [],
}


class FakeAuthClient:
    """In-memory stand-in for the auth service user directory"""

    def __init__(self, users: Dict[str, Iterable[str]]):
        self.users = users
        self.lookups = []

    async def lookup_user(self, username: str) -> UserIdentity:
        self.lookups.append(username)
        if username not in self.users:
            raise UserNotFoundError(f"User not found: {username}")
        return UserIdentity(username=username, roles=normalize_roles(self.users[username]))


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
def auth_client() -> FakeAuthClient:
    return FakeAuthClient(dict(TEST_USERS))


@pytest.fixture
def app(db: Session, auth_client: FakeAuthClient):
    """FastAPI app wired to the test database and fake auth service"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_client] = lambda: auth_client
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client with test database"""
    return TestClient(app)


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build signed bearer tokens; negative expires_in produces an expired token"""

    def _make_token(
        subject: str | None = "admin",
        expires_in: timedelta | None = timedelta(minutes=30),
        secret: str = TEST_SECRET_KEY,
        algorithm: str = "HS256",
    ) -> str:
        claims = {"iat": datetime.now(timezone.utc)}
        if subject is not None:
            claims["sub"] = subject
        if expires_in is not None:
            claims["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(claims, secret, algorithm=algorithm)

    return _make_token


@pytest.fixture
def auth_headers(make_token) -> Callable[[str], Dict[str, str]]:
    def _headers(username: str = "admin") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(username)}"}

    return _headers


@pytest.fixture
def service(db: Session) -> ReceivableService:
    return ReceivableService(db, StubDocumentStorage())


@pytest.fixture
def make_receivable_data() -> Callable[..., ReceivableData]:
    """Receivable input with sensible defaults; override any field by keyword"""

    def _make(**overrides) -> ReceivableData:
        fields = {
            "client_id": uuid.uuid4(),
            "project_id": 42,
            "description": "Phase 1 milestone payment",
            "issue_date": date.today() - timedelta(days=10),
            "due_date": date.today() + timedelta(days=20),
            "amount_expected": Decimal("5000.00"),
        }
        fields.update(overrides)
        return ReceivableData(**fields)

    return _make


@pytest.fixture
def receivable_payload() -> Dict:
    """JSON body for POST /receivables without status or amountReceived"""
    return {
        "clientId": str(uuid.uuid4()),
        "projectId": 7,
        "description": "Invoice for design phase",
        "invoiceReference": "INV-2024-001",
        "issueDate": (date.today() - timedelta(days=5)).isoformat(),
        "dueDate": (date.today() + timedelta(days=25)).isoformat(),
        "amountExpected": "5000.00",
    }
