import os
from collections.abc import AsyncGenerator
from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Load environment variables from .env file
load_dotenv()

# Settings are read at import time; keep the app off any real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "console")

from clinic_api.core.security import create_access_token  # noqa: E402
from clinic_api.database import get_db  # noqa: E402
from clinic_api.main import app  # noqa: E402
from clinic_api.models import metadata  # noqa: E402

# In-memory SQLite shared through a single connection.
# Set TEST_DATABASE_URL to run the suite against PostgreSQL instead.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

if TEST_DATABASE_URL.startswith("postgresql://"):
    TEST_DATABASE_URL = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

if TEST_DATABASE_URL.startswith("sqlite"):
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh schema."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _headers_for(user_id: str) -> dict:
    token = create_access_token(data={"sub": user_id}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def clinic_id() -> str:
    """ID of the authenticated clinic owner."""
    return str(uuid4())


@pytest.fixture
def auth_headers(clinic_id: str) -> dict:
    """Create authentication headers for testing protected endpoints."""
    return _headers_for(clinic_id)


@pytest.fixture
def other_clinic_headers() -> dict:
    """Authentication headers of an unrelated clinic."""
    return _headers_for(str(uuid4()))


@pytest_asyncio.fixture
async def consultation(client: AsyncClient, auth_headers: dict) -> dict:
    """A 30 minute service priced at 200.00."""
    response = await client.post(
        "/api/v1/services/",
        json={"name": "Consulta", "duration": 30, "price": "200.00"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def weekday_schedule(client: AsyncClient, auth_headers: dict) -> list:
    """Monday 08:00-12:00 with 30 minute slots and no lunch break."""
    response = await client.put(
        "/api/v1/schedules/",
        json={
            "schedules": [
                {
                    "day_of_week": "segunda",
                    "is_active": True,
                    "start_time": "08:00:00",
                    "end_time": "12:00:00",
                    "slot_interval": 30,
                    "has_lunch_break": False,
                }
            ]
        },
        headers=auth_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def appointment_payload(consultation: dict) -> dict:
    """Appointment on Monday 2026-10-19, 10:00-10:30 in São Paulo."""
    return {
        "service_id": consultation["id"],
        "patient_cpf": "123.456.789-09",
        "patient_name": "Maria Souza",
        "patient_phone": "+55 11 99999-0000",
        "start_time": "2026-10-19T10:00:00-03:00",
        "end_time": "2026-10-19T10:30:00-03:00",
    }
