import os

# required settings must exist before the app modules are imported
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "DISCORD_CLIENT_ID": "1234567890",
        "DISCORD_CLIENT_SECRET": "test-secret",
        "DISCORD_REDIRECT_URI": "http://testserver/auth/discord/callback",
        "DISCORD_GUILD_ID": "111111111111111111",
        "DISCORD_BOT_TOKEN": "test-bot-token",
        "CHAIN_RPC_URL": "http://localhost:8545",
        "NFT_CONTRACT_ADDRESS": "0x0000000000000000000000000000000000000001",
        "NEYNAR_API_KEY": "test-neynar-key",
        "SCHEDULER_ENABLED": "false",
        "DOC_PASSWORD": "docs-secret",
    }
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from main import app
from app.db.base import Base
from app.db.session import get_db, init_db


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_database() -> Generator:
    """Every test starts with empty tables"""
    init_db(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class RoleRecorder:
    """Stands in for the Discord role grant/revoke calls"""

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def __call__(self, discord_id: str) -> None:
        from app.core.errors import RoleSyncError

        self.calls.append(discord_id)
        if self.fail:
            raise RoleSyncError(f"role change failed for {discord_id}")


@pytest.fixture
def grant_role() -> RoleRecorder:
    return RoleRecorder()


@pytest.fixture
def revoke_role() -> RoleRecorder:
    return RoleRecorder()


@pytest.fixture
def failing_role() -> RoleRecorder:
    return RoleRecorder(fail=True)


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator:
    """Rate limit counters do not leak between tests"""
    from app.core.rate_limit import limiter

    limiter.reset()
    yield
    limiter.reset()
