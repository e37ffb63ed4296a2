"""Unit tests for version comparison"""

from datetime import datetime, timezone

import pytest

from marknest_service.core.version_manager import compare_versions
from marknest_service.infrastructure.database.models import DocumentVersionModel


def make_version(number, title, content, words, chars):
    return DocumentVersionModel(
        id=f"v{number}",
        document_id="doc-1",
        user_id="user-1",
        version_number=number,
        title=title,
        content=content,
        word_count=words,
        character_count=chars,
        created_at=datetime(2026, 1, number, tzinfo=timezone.utc),
    )


@pytest.mark.unit
class TestCompareVersions:
    """Test the pure comparison of two versions"""

    def test_reports_signed_deltas(self):
        old = make_version(1, "Notes", "one two three", 3, 13)
        new = make_version(2, "Notes", "one", 1, 3)

        diff = compare_versions(old, new)

        assert diff["title_changed"] is False
        assert diff["content_changed"] is True
        assert diff["word_count_diff"] == -2
        assert diff["character_count_diff"] == -10
        assert diff["old_version"]["version_number"] == 1
        assert diff["new_version"]["version_number"] == 2

    def test_identical_versions(self):
        old = make_version(1, "Notes", "same", 1, 4)
        new = make_version(2, "Notes", "same", 1, 4)

        diff = compare_versions(old, new)

        assert not diff["title_changed"]
        assert not diff["content_changed"]
        assert diff["word_count_diff"] == 0

    def test_title_change_only(self):
        diff = compare_versions(make_version(1, "Draft", "x", 1, 1), make_version(3, "Final", "x", 1, 1))
        assert diff["title_changed"] is True
        assert diff["content_changed"] is False
