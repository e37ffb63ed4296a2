"""Unit tests for TagManager"""

import pytest
from sqlalchemy import select

from marknest_service.core.errors import NotFoundError, ValidationError
from marknest_service.infrastructure.database.models import DocumentModel, DocumentTagModel
from marknest_service.models.document import DocumentCreate
from marknest_service.models.tag import TagCreate

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.mark.unit
class TestTagManager:
    """Test listing, creating and deleting tags"""

    async def test_created_and_synced_tags_are_listed_by_name(self, tag_manager, document_manager):
        await tag_manager.create_tag(USER_ID, TagCreate(name="tutorial"))
        await document_manager.create_document(USER_ID, DocumentCreate(title="Notes", tags=["JavaScript"]))
        await tag_manager.create_tag(OTHER_USER_ID, TagCreate(name="theirs"))

        tags = await tag_manager.list_tags(USER_ID)

        assert [(t.name, t.slug) for t in tags] == [("JavaScript", "javascript"), ("tutorial", "tutorial")]

    async def test_duplicate_slug_is_rejected(self, tag_manager):
        await tag_manager.create_tag(USER_ID, TagCreate(name="Python"))

        with pytest.raises(ValidationError) as exc_info:
            await tag_manager.create_tag(USER_ID, TagCreate(name="python"))
        assert exc_info.value.errors == {"name": ["You already have a tag with this name."]}

    async def test_same_name_for_another_user(self, tag_manager):
        await tag_manager.create_tag(USER_ID, TagCreate(name="python"))
        tag = await tag_manager.create_tag(OTHER_USER_ID, TagCreate(name="python"))
        assert tag.user_id == OTHER_USER_ID

    async def test_delete_detaches_and_edits_documents(self, tag_manager, document_manager, db_client):
        doc = await document_manager.create_document(
            USER_ID, DocumentCreate(title="Notes", tags=["python", "web"])
        )
        python = next(t for t in await tag_manager.list_tags(USER_ID) if t.slug == "python")

        await tag_manager.delete_tag(python.id, USER_ID)

        async with db_client.session() as session:
            row = await session.get(DocumentModel, doc.id)
            links = (await session.execute(
                select(DocumentTagModel).where(DocumentTagModel.document_id == doc.id)
            )).scalars().all()
        assert row.tags == ["web"]
        assert len(links) == 1
        assert [t.slug for t in await tag_manager.list_tags(USER_ID)] == ["web"]

    async def test_delete_foreign_tag_is_not_found(self, tag_manager):
        tag = await tag_manager.create_tag(OTHER_USER_ID, TagCreate(name="theirs"))

        with pytest.raises(NotFoundError):
            await tag_manager.delete_tag(tag.id, USER_ID)
