"""Pytest configuration and shared fixtures for tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.clients.service import ClientService
from src.core.database import create_session_factory, create_tables
from src.integrations.storage import DocumentStorage
from src.main import app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests.

    Returns:
        Backend name string.
    """
    return "asyncio"


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create an in-memory sqlite session factory with all tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await create_tables(engine)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def storage(tmp_path) -> DocumentStorage:
    """Document storage rooted in a temporary directory."""
    return DocumentStorage(str(tmp_path / "storage"))


@pytest.fixture
def service(
    session_factory: async_sessionmaker[AsyncSession], storage: DocumentStorage
) -> ClientService:
    """Client service with audit rows cascading on delete."""
    return ClientService(
        session_factory,
        storage=storage,
        timeout=5.0,
        audit_cascade_on_delete=True,
    )


@pytest_asyncio.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    storage: DocumentStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """Create API client bound to the in-memory database and temp storage."""
    app.state.async_session = session_factory
    app.state.document_storage = storage
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def personal_payload() -> dict[str, Any]:
    """Minimal valid PERSONAL client payload."""
    return {
        "firstName": "John",
        "personalDetails": {
            "mobileNumber": "9876543210",
            "birthDate": "1990-01-01",
        },
    }


@pytest.fixture
def family_payload() -> dict[str, Any]:
    """Minimal valid FAMILY_EMPLOYEE client payload."""
    return {
        "firstName": "Priya",
        "lastName": "Sharma",
        "familyDetails": {
            "phoneNumber": "9876543211",
            "whatsappNumber": "9876543212",
            "dateOfBirth": "1992-03-15",
            "relationship": "SPOUSE",
        },
    }


@pytest.fixture
def corporate_payload() -> dict[str, Any]:
    """Minimal valid CORPORATE client payload."""
    return {
        "email": "accounts@acme.in",
        "corporateDetails": {
            "companyName": "Acme Industries",
            "panNumber": "ABCDE1234F",
            "gstNumber": "27ABCDE1234F1Z5",
        },
    }
