"""Per-user tag management."""

import logging
from typing import List
from sqlalchemy import delete, select
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import DocumentModel, DocumentTagModel, TagModel, new_id
from ..infrastructure.database.scopes import with_trashed
from ..models.tag import TagCreate
from .content import tag_slug
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class TagManager:
    """Tags a user owns.

    Documents keep their tags as a JSON list of names and DocumentManager
    creates Tag rows on demand from it. Tags created here exist before any
    document uses them; deleting a tag also removes it from the documents
    carrying it.
    """

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    async def list_tags(self, user_id: str) -> List[TagModel]:
        async with self.db.session() as session:
            result = await session.execute(
                select(TagModel).where(TagModel.user_id == user_id).order_by(TagModel.name.asc())
            )
            return list(result.scalars().all())

    async def create_tag(self, user_id: str, data: TagCreate) -> TagModel:
        """Create a tag.

        Raises:
            ValidationError: the user already has a tag with the same slug
        """
        name = data.name.strip()
        slug = tag_slug(name)

        async with self.db.transaction() as session:
            existing = await session.execute(
                select(TagModel.id).where(TagModel.user_id == user_id, TagModel.slug == slug).limit(1)
            )
            if existing.first() is not None:
                raise ValidationError(
                    "The given data was invalid.",
                    {"name": ["You already have a tag with this name."]},
                )
            tag = TagModel(id=new_id(), user_id=user_id, name=name, slug=slug)
            session.add(tag)

        logger.info(f"Created tag {tag.id} ({slug}) for user {user_id}")
        return tag

    async def delete_tag(self, tag_id: str, user_id: str) -> None:
        """Delete a tag, detach it and drop it from every document's tag list.

        Raises:
            NotFoundError: tag does not exist or belongs to another user
        """
        async with self.db.transaction() as session:
            result = await session.execute(
                select(TagModel).where(TagModel.id == tag_id, TagModel.user_id == user_id)
            )
            tag = result.scalar_one_or_none()
            if tag is None:
                raise NotFoundError("Tag", tag_id)

            # Trashed documents included, so a restore does not bring the tag back
            stmt = (
                select(DocumentModel)
                .join(DocumentTagModel, DocumentTagModel.document_id == DocumentModel.id)
                .where(DocumentTagModel.tag_id == tag.id)
            )
            result = await session.execute(with_trashed(stmt, DocumentModel))
            documents = list(result.scalars().all())
            for document in documents:
                document.tags = [name for name in document.tags or [] if tag_slug(name) != tag.slug]

            await session.execute(delete(DocumentTagModel).where(DocumentTagModel.tag_id == tag.id))
            await session.delete(tag)

        logger.info(f"Deleted tag {tag_id} from {len(documents)} documents")
