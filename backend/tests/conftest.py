"""Pytest configuration and fixtures"""
import os

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ADMIN_PASSWORD"] = "correct-horse-battery"
os.environ["RATE_LIMIT_DEFAULT"] = '["10000/minute"]'
os.environ.pop("RECAPTCHA_SECRET_KEY", None)
os.environ.pop("RESEND_API_KEY", None)

from datetime import datetime, timedelta
from typing import Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from portfolio_admin.api.deps import get_bot_verifier, get_clock, get_notifier
from portfolio_admin.database import Base, get_db, get_session_factory
from portfolio_admin.main import app
from portfolio_admin.services.bot_check import BotCheckResult
from portfolio_admin.services.rate_limiter import LoginRateLimiter

ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Naive-UTC clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class StubVerifier:
    """Bot check double; disabled unless a test turns it on"""

    def __init__(self):
        self.enabled = False
        self.passed = True
        self.score: Optional[float] = 0.9
        self.calls: List[str] = []

    def verify(self, token: str, remote_ip: Optional[str] = None) -> BotCheckResult:
        self.calls.append(token)
        return BotCheckResult(passed=self.passed, score=self.score)


class RecordingNotifier:
    """Collects notifications instead of sending e-mail"""

    def __init__(self):
        self.events: List[Tuple[str, Optional[str]]] = []

    def login_succeeded(self, ip, user_agent, when) -> None:
        self.events.append(("login_succeeded", ip))

    def login_failed(self, ip, user_agent, when) -> None:
        self.events.append(("login_failed", ip))


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory() -> sessionmaker:
    return TestingSessionLocal


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def bot_verifier() -> StubVerifier:
    return StubVerifier()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(
    db: Session,
    clock: FrozenClock,
    bot_verifier: StubVerifier,
    notifier: RecordingNotifier,
) -> Generator[TestClient, None, None]:
    """Create test client with database, clock and collaborator overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_bot_verifier] = lambda: bot_verifier
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.state.login_limiter = LoginRateLimiter(clock=clock)

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client: TestClient):
    """Log in and return the token response body"""

    def _login(password: str = ADMIN_PASSWORD, **extra) -> dict:
        response = client.post("/admin/login", json={"password": password, **extra})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def auth_headers(login) -> dict:
    """Bearer headers for a freshly issued session"""
    return {"Authorization": f"Bearer {login()['token']}"}
