"""Shared fixtures: a throwaway SQLite database per test and managers wired to it."""

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update

from marknest_service.config.settings import RetentionConfig, VersioningConfig
from marknest_service.core.document_manager import DocumentManager
from marknest_service.core.folder_manager import FolderManager
from marknest_service.core.tag_manager import TagManager
from marknest_service.core.trash_sweeper import TrashSweeper
from marknest_service.core.user_manager import UserManager
from marknest_service.core.version_manager import VersionManager
from marknest_service.infrastructure.database.client import DatabaseClient
from marknest_service.infrastructure.database.models import utcnow

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'marknest.db'}"


@pytest_asyncio.fixture
async def db_client(database_url):
    client = DatabaseClient(database_url)
    await client.initialize()
    yield client
    await client.close()


@pytest.fixture
def versioning():
    return VersioningConfig()


@pytest.fixture
def retention():
    return RetentionConfig()


@pytest_asyncio.fixture
async def users(db_client):
    user_mgr = UserManager(db_client)
    await user_mgr.ensure_user(USER_ID, "owner@example.com")
    await user_mgr.ensure_user(OTHER_USER_ID, "other@example.com")
    return user_mgr


@pytest.fixture
def version_manager(db_client, versioning):
    return VersionManager(db_client, versioning)


@pytest.fixture
def document_manager(db_client, version_manager, versioning, retention, users):
    return DocumentManager(db_client, version_manager, versioning, retention)


@pytest.fixture
def folder_manager(db_client, users):
    return FolderManager(db_client)


@pytest.fixture
def tag_manager(db_client, users):
    return TagManager(db_client)


@pytest.fixture
def sweeper(db_client, retention):
    return TrashSweeper(db_client, retention)


@pytest.fixture
def backdate(db_client):
    """Move the deleted_at of rows into the past by a number of days."""
    async def _backdate(model, ids, days):
        async with db_client.transaction() as session:
            await session.execute(
                update(model)
                .where(model.id.in_(list(ids)))
                .values(deleted_at=utcnow() - timedelta(days=days))
            )
    return _backdate


@pytest_asyncio.fixture
async def client(db_client, version_manager, document_manager, folder_manager, tag_manager, users):
    from marknest_service.api import dependencies
    from marknest_service.api.routes import documents, versions, folders, tags
    from marknest_service.main import app

    dependencies.set_user_manager(users)
    documents.set_managers(document_manager)
    versions.set_managers(version_manager)
    folders.set_managers(folder_manager)
    tags.set_managers(tag_manager)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers["X-User-ID"] = USER_ID
        yield ac

    dependencies.set_user_manager(None)
