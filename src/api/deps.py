"""FastAPI dependency injection for database, storage and the client service."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.service import ClientService
from src.integrations.storage import DocumentStorage


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session from the app's session factory.

    Args:
        request: FastAPI request containing app state.

    Yields:
        AsyncSession for database operations with automatic commit/rollback.
    """
    async with request.app.state.async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_storage(request: Request) -> DocumentStorage:
    """Get the document storage from app state."""
    return request.app.state.document_storage


def get_client_service(request: Request) -> ClientService:
    """Build a ClientService bound to the app's session factory and storage.

    The service manages its own sessions, one transaction per operation.
    """
    return ClientService(
        request.app.state.async_session,
        storage=request.app.state.document_storage,
    )
