import os
import random
import string

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# ------------------------------------------------------------------
# FORCE TESTING MODE
# Must be set BEFORE importing app.main so settings, the bcrypt context
# and the limiter pick these values up.
# ------------------------------------------------------------------
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

from app.main import app
from app.api.deps import get_db_session
from app.core.config import settings
from app.core.database import init_db
from app.core.security import create_access_token
from app.models.user import UserRole
from app.services.user_service import create_user


def random_str(prefix=""):
    return f"{prefix}{''.join(random.choices(string.ascii_lowercase + string.digits, k=6))}"


@pytest.fixture(autouse=True)
def isolated_uploads(tmp_path, monkeypatch):
    """Each test writes resumes to its own directory."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


@pytest_asyncio.fixture
async def session_factory():
    """
    Fresh in-memory database per test. StaticPool keeps the single
    connection alive so every session sees the same tables.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    httpx >= 0.27 client over ASGITransport, with the app's session
    dependency pointed at the per-test database.
    """
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(session_factory):
    """Factory: await make_user(UserRole.Trainer, email=None, password=None) -> User"""
    async def _make_user(role, email=None, password=None, full_name=None):
        email = email or f"{random_str(str(UserRole(role).value))}@example.com"
        async with session_factory() as session:
            user, _ = await create_user(
                session,
                full_name=full_name or f"Test {UserRole(role).value.title()}",
                email=email,
                role=role,
                password=password or "password123",
            )
        return user

    return _make_user


def auth_headers(user) -> dict:
    token = create_access_token(subject=user.id, data={"role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(UserRole.Admin, email="admin@example.com", password="adminpass")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def headers_for():
    return auth_headers
