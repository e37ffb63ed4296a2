"""Database client owning the async engine and units of work."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from ...core.errors import ConflictError, MarknestError, TransactionFailure, VersionConflictError
from .models import Base, VERSION_CONSTRAINT

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Async database client for documents, folders and version history."""

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize database client.

        Args:
            database_url: SQLAlchemy database URL (e.g., sqlite+aiosqlite:///./db.sqlite)
            echo: Log every SQL statement
        """
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=echo)
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def verify_connection(self):
        """Verify the database answers before anything else touches it."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")

    async def initialize(self):
        """Create database tables."""
        await self.verify_connection()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Plain session for reads; callers commit explicitly if they write."""
        async with self.async_session() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """All-or-nothing unit of work.

        Commits when the block exits cleanly and rolls back otherwise. Domain
        errors propagate unchanged; unique-constraint violations become
        ConflictError (VersionConflictError for the version-number constraint)
        and anything else becomes TransactionFailure.
        """
        async with self.async_session() as session:
            try:
                async with session.begin():
                    yield session
            except MarknestError:
                raise
            except IntegrityError as e:
                logger.warning(f"Transaction rolled back on constraint violation: {e.orig}")
                if _is_version_clash(e):
                    raise VersionConflictError(
                        "The document was modified concurrently, please retry"
                    ) from e
                raise ConflictError("The request conflicts with existing data, please retry") from e
            except Exception as e:
                logger.error(f"Transaction rolled back: {e}")
                raise TransactionFailure(f"Transaction failed: {e}") from e

    async def close(self):
        """Close database connections."""
        await self.engine.dispose()


def _is_version_clash(error: IntegrityError) -> bool:
    # PostgreSQL names the constraint, SQLite names the columns
    message = str(error.orig)
    return (
        VERSION_CONSTRAINT in message
        or "document_versions.version_number" in message
    )
