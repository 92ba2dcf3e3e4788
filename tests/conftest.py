"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from copilot_server.core.account_status import AccountStatus, Role
from copilot_server.core.analysis_client import AnalysisError
from copilot_server.core.config import Settings
from copilot_server.core.security import hash_password
from copilot_server.core.tokens import TokenService
from copilot_server.database import build_engine, create_db_and_tables
from copilot_server.main import create_app
from copilot_server.models.user import User

TEST_SECRET = "test-secret-for-unit-tests"
MASTER_EMAIL = "admin@example.com"
MASTER_PASSWORD = "master-pass-123"


class FakeClock:
    """Settable clock for token expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeAnalysisClient:
    """Stands in for the Anthropic client; records calls, can be told to fail."""

    def __init__(self):
        self.configured = True
        self.calls: list[tuple[str, str, str]] = []
        self.fail_with: AnalysisError | None = None

    def analyze(self, image_base64: str, media_type: str, prompt: str) -> str:
        self.calls.append((image_base64, media_type, prompt))
        if self.fail_with is not None:
            raise self.fail_with
        return "analysis result"


# ============================================================================
# Storage fixtures
# ============================================================================


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret=TEST_SECRET)


def make_user(
    session: Session,
    email: str = "user@example.com",
    password: str = "secret1",
    status: AccountStatus = AccountStatus.ACTIVE,
    role: Role = Role.STANDARD,
    daily_limit: int | None = 10,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=email.split("@", 1)[0],
        status=status,
        role=role,
        daily_limit=daily_limit,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


# ============================================================================
# Application fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        MASTER_EMAIL=MASTER_EMAIL,
        MASTER_PASSWORD=MASTER_PASSWORD,
        MASTER_NAME="Master Admin",
        ANTHROPIC_API_KEY=None,
    )


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def app(settings, engine, analysis_client):
    return create_app(settings=settings, engine=engine, analysis_client=analysis_client)


@pytest.fixture
def client(app):
    # Context manager runs the lifespan (tables + master admin)
    with TestClient(app) as c:
        yield c


def login(client: TestClient, email: str, password: str) -> str:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    return bearer(login(client, MASTER_EMAIL, MASTER_PASSWORD))


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 14, 15, 0, tzinfo=timezone.utc)
