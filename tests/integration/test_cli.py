"""Integration tests for the marknest CLI

The CLI runs its own event loop (asyncio.run), so these tests are plain
synchronous functions and prepare data through a separate loop.
"""

import asyncio
import io

import pytest
from sqlalchemy import func, select, text

from marknest_service import cli
from marknest_service.config.settings import get_settings
from marknest_service.infrastructure.database.client import DatabaseClient
from marknest_service.infrastructure.database.models import DocumentModel


@pytest.fixture
def cli_database(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def run(coro):
    return asyncio.run(coro)


async def seed_trashed_document(url, days_ago):
    db_client = DatabaseClient(url)
    await db_client.initialize()
    async with db_client.transaction() as session:
        await session.execute(text("INSERT INTO users (id, created_at) VALUES ('user-1', CURRENT_TIMESTAMP)"))
        await session.execute(text(
            "INSERT INTO documents (id, user_id, title, slug, content, size, word_count, character_count, "
            "version_number, tags, doc_metadata, status, is_favorite, is_archived, is_trashed, "
            "created_at, updated_at, deleted_at) VALUES ('doc-1', 'user-1', 'Old', 'doc-1', '', 0, 0, 0, "
            "1, '[]', '{}', 'draft', 0, 0, 1, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, "
            f"datetime('now', '-{days_ago} days'))"
        ))
    await db_client.close()


async def document_count(url):
    db_client = DatabaseClient(url)
    async with db_client.session() as session:
        total = (await session.execute(select(func.count()).select_from(DocumentModel))).scalar_one()
    await db_client.close()
    return total


@pytest.mark.integration
class TestCleanupCommands:
    """Test the cleanup commands end to end"""

    def test_documents_cleanup_with_force(self, cli_database, capsys):
        run(seed_trashed_document(cli_database, 31))

        assert cli.main(["documents:cleanup-trashed", "--force"]) == 0

        assert run(document_count(cli_database)) == 0
        assert "Permanently deleted 1/1 trashed documents" in capsys.readouterr().out

    def test_nothing_to_do_exits_zero(self, cli_database, capsys):
        run(seed_trashed_document(cli_database, 5))

        assert cli.main(["documents:cleanup-trashed", "--no-interaction"]) == 0

        assert run(document_count(cli_database)) == 1
        assert "No trashed documents" in capsys.readouterr().out

    def test_days_option(self, cli_database):
        run(seed_trashed_document(cli_database, 5))

        assert cli.main(["documents:cleanup-trashed", "--days", "3", "--force"]) == 0

        assert run(document_count(cli_database)) == 0

    def test_folders_cleanup_on_empty_database(self, cli_database):
        assert cli.main(["db:init"]) == 0
        assert cli.main(["folders:cleanup-trashed", "--force"]) == 0

    def test_unreachable_database_exits_one(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        get_settings.cache_clear()
        try:
            assert cli.main(["documents:cleanup-trashed", "--force"]) == 1
        finally:
            get_settings.cache_clear()

    def test_negative_days_is_a_usage_error(self, cli_database):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["documents:cleanup-trashed", "--days", "-1"])
        assert exc_info.value.code == 2


@pytest.mark.integration
class TestConfirmation:
    """Test how the CLI decides whether to ask before deleting"""

    class FakeTTY(io.StringIO):
        def isatty(self):
            return True

    def test_force_skips_the_prompt(self):
        assert cli.make_confirm("documents", force=True, stdin=self.FakeTTY()) is None

    def test_non_interactive_stdin_skips_the_prompt(self):
        assert cli.make_confirm("documents", force=False, stdin=io.StringIO()) is None

    def test_terminal_asks(self):
        prompts = []
        confirm = cli.make_confirm(
            "documents", force=False, stdin=self.FakeTTY(), ask=lambda p: prompts.append(p) or "y"
        )
        assert confirm(3) is True
        assert "3 trashed documents" in prompts[0]

        declining = cli.make_confirm("folders", force=False, stdin=self.FakeTTY(), ask=lambda p: "")
        assert declining(1) is False
