"""Local user records for gateway-authenticated callers."""

import logging
from typing import Optional
from sqlalchemy import select
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import UserModel
from .errors import ConflictError

logger = logging.getLogger(__name__)


class UserManager:
    """Provisions a users row the first time a gateway user is seen."""

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    async def ensure_user(self, user_id: str, email: Optional[str] = None) -> UserModel:
        """Return the user row for user_id, creating it if missing."""
        async with self.db.session() as session:
            user = await session.get(UserModel, user_id)
            if user is not None:
                return user

        try:
            async with self.db.transaction() as session:
                user = UserModel(id=user_id, email=email)
                session.add(user)
            logger.info(f"Provisioned user {user_id}")
            return user
        except ConflictError:
            # Lost the race against a concurrent first request for the same user.
            async with self.db.session() as session:
                user = await session.get(UserModel, user_id)
                if user is None:
                    raise
                return user
