"""Database-backed run lock for scheduled tasks."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator
from uuid import uuid4
from sqlalchemy import delete, select
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import TaskLockModel, ensure_utc, utcnow
from .errors import ConflictError

logger = logging.getLogger(__name__)


class TaskLock:
    """Named mutex with expiry shared by every process on the same database.

    A lock older than its expiry is considered abandoned (crashed run) and
    may be reclaimed by the next caller.
    """

    def __init__(self, db_client: DatabaseClient, name: str, expiry_minutes: int = 1440):
        self.db = db_client
        self.name = name
        self.expiry = timedelta(minutes=expiry_minutes)
        self.owner = uuid4().hex

    async def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if this instance now holds the lock
        """
        now = utcnow()
        try:
            async with self.db.transaction() as session:
                current = await session.get(TaskLockModel, self.name)
                if current is not None:
                    if ensure_utc(current.expires_at) > now:
                        logger.info(
                            f"Lock '{self.name}' held by {current.owner} until "
                            f"{ensure_utc(current.expires_at).isoformat()}"
                        )
                        return False
                    logger.warning(f"Reclaiming expired lock '{self.name}' from {current.owner}")
                    await session.delete(current)
                    await session.flush()

                session.add(TaskLockModel(
                    name=self.name,
                    owner=self.owner,
                    acquired_at=now,
                    expires_at=now + self.expiry,
                ))
        except ConflictError:
            # Another process inserted the row first.
            return False

        logger.debug(f"Lock '{self.name}' acquired by {self.owner}")
        return True

    async def release(self) -> None:
        async with self.db.transaction() as session:
            await session.execute(
                delete(TaskLockModel).where(
                    TaskLockModel.name == self.name,
                    TaskLockModel.owner == self.owner,
                )
            )
        logger.debug(f"Lock '{self.name}' released by {self.owner}")

    async def is_held(self) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskLockModel.expires_at).where(TaskLockModel.name == self.name)
            )
            expires_at = result.scalar_one_or_none()
        return expires_at is not None and ensure_utc(expires_at) > utcnow()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        """Yield whether the lock was acquired; release it on exit if so."""
        acquired = await self.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                await self.release()
