"""Document version history: listing, restore, auto-save pruning and comparison."""

import logging
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from ..config.settings import VersioningConfig
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import (
    DocumentModel,
    DocumentVersionModel,
    UserModel,
    new_id,
    utcnow,
)
from .errors import NotFoundError, ValidationError
from .lookups import get_owned_document
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


async def next_version_number(session: AsyncSession, document: DocumentModel) -> int:
    """One past the highest number ever allocated to the document.

    That is the larger of the stored versions' maximum and the document's
    own version_number, so numbers freed by auto-save pruning are never
    handed out again.

    Callers must hold the document row (get_owned_document(for_update=True))
    inside the same transaction; the unique constraint on
    (document_id, version_number) catches whatever slips past the lock.
    """
    result = await session.execute(
        select(func.max(DocumentVersionModel.version_number)).where(
            DocumentVersionModel.document_id == document.id
        )
    )
    return max(result.scalar_one_or_none() or 0, document.version_number or 0) + 1


def snapshot_version(
    document: DocumentModel,
    user_id: str,
    version_number: int,
    operation: str,
    change_summary: Optional[str],
    is_auto_save: bool = False,
) -> DocumentVersionModel:
    """Build a version row mirroring the document's current fields."""
    return DocumentVersionModel(
        id=new_id(),
        document_id=document.id,
        user_id=user_id,
        version_number=version_number,
        title=document.title,
        content=document.content,
        rendered_html=document.rendered_html,
        size=document.size,
        word_count=document.word_count,
        character_count=document.character_count,
        change_summary=change_summary,
        operation=operation,
        is_auto_save=is_auto_save,
        created_at=utcnow(),
    )


async def prune_auto_saves(session: AsyncSession, document_id: str, keep_count: int) -> int:
    """Delete auto-save versions beyond the newest keep_count; manual saves are untouched.

    Returns:
        Number of versions deleted
    """
    stale = (
        select(DocumentVersionModel.id)
        .where(
            DocumentVersionModel.document_id == document_id,
            DocumentVersionModel.is_auto_save.is_(True),
        )
        .order_by(DocumentVersionModel.version_number.desc())
        .offset(keep_count)
    )
    stale_ids = list((await session.execute(stale)).scalars().all())
    if not stale_ids:
        return 0

    result = await session.execute(
        delete(DocumentVersionModel).where(DocumentVersionModel.id.in_(stale_ids))
    )
    return result.rowcount


def compare_versions(old: DocumentVersionModel, new: DocumentVersionModel) -> Dict[str, Any]:
    """Compare two versions without touching the database.

    Returns:
        Change flags, signed word/character deltas (new minus old) and a
        short description of each side
    """
    return {
        "title_changed": old.title != new.title,
        "content_changed": old.content != new.content,
        "word_count_diff": new.word_count - old.word_count,
        "character_count_diff": new.character_count - old.character_count,
        "old_version": {
            "version_number": old.version_number,
            "created_at": old.created_at,
            "title": old.title,
        },
        "new_version": {
            "version_number": new.version_number,
            "created_at": new.created_at,
            "title": new.title,
        },
    }


class VersionManager:
    """Business logic over a document's version history."""

    def __init__(self, db_client: DatabaseClient, config: VersioningConfig):
        """Initialize version manager.

        Args:
            db_client: Database client
            config: Pagination and auto-save limits
        """
        self.db = db_client
        self.config = config

    async def get_versions(
        self, document_id: str, user_id: str, page: int = 1, per_page: Optional[int] = None
    ) -> Page:
        """List versions newest first.

        Args:
            document_id: Document ID
            user_id: User ID for authorization
            page: 1-based page number
            per_page: Page size, capped at the configured maximum

        Returns:
            Page whose items are (DocumentVersionModel, UserModel or None) tuples
        """
        per_page = min(per_page or self.config.versions_per_page, self.config.max_versions_per_page)
        async with self.db.session() as session:
            await get_owned_document(session, document_id, user_id)
            stmt = (
                select(DocumentVersionModel, UserModel)
                .outerjoin(UserModel, UserModel.id == DocumentVersionModel.user_id)
                .where(DocumentVersionModel.document_id == document_id)
                .order_by(DocumentVersionModel.version_number.desc())
            )
            return await paginate(session, stmt, page, per_page, scalars=False)

    async def get_version(
        self, document_id: str, version_id: str, user_id: str
    ) -> Tuple[DocumentVersionModel, Optional[UserModel]]:
        """Get one version of an owned document, with its author."""
        async with self.db.session() as session:
            await get_owned_document(session, document_id, user_id)
            return await self._load_version(session, document_id, version_id)

    async def get_recent_versions(
        self, session: AsyncSession, document_id: str, limit: Optional[int] = None
    ) -> List[DocumentVersionModel]:
        """Newest versions of a document, inside the caller's session."""
        result = await session.execute(
            select(DocumentVersionModel)
            .where(DocumentVersionModel.document_id == document_id)
            .order_by(DocumentVersionModel.version_number.desc())
            .limit(limit or self.config.recent_versions_limit)
        )
        return list(result.scalars().all())

    async def create_version(
        self,
        session: AsyncSession,
        document: DocumentModel,
        user_id: str,
        operation: str = "update",
        change_summary: Optional[str] = None,
        is_auto_save: bool = False,
    ) -> DocumentVersionModel:
        """Append a version for the document's current state and bump its version_number.

        Runs inside the caller's transaction.
        """
        number = await next_version_number(session, document)
        version = snapshot_version(
            document,
            user_id,
            number,
            operation,
            change_summary or "Version created",
            is_auto_save,
        )
        session.add(version)
        document.version_number = number
        return version

    async def restore_version(
        self,
        document_id: str,
        version_id: str,
        user_id: str,
        change_summary: Optional[str] = None,
    ) -> DocumentModel:
        """Make a past version current again as a brand-new version.

        The restored content gets number max + 1; the old version keeps its
        own number and no history is discarded.

        Args:
            document_id: Document ID
            version_id: Version to restore
            user_id: User performing the restore
            change_summary: Optional summary, defaults to "Restored from version N"

        Returns:
            Updated document
        """
        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id, for_update=True)
            target, _ = await self._load_version(session, document_id, version_id)

            document.title = target.title
            document.content = target.content
            document.rendered_html = target.rendered_html
            document.size = target.size
            document.word_count = target.word_count
            document.character_count = target.character_count

            await self.create_version(
                session,
                document,
                user_id,
                operation="restore",
                change_summary=change_summary or f"Restored from version {target.version_number}",
            )

        logger.info(
            f"Restored document {document_id} to version {target.version_number} "
            f"as version {document.version_number}"
        )
        return document

    async def cleanup_auto_saves(
        self, document_id: str, user_id: str, keep_count: Optional[int] = None
    ) -> int:
        """Prune old auto-saves of an owned document.

        Args:
            document_id: Document ID
            user_id: User ID for authorization
            keep_count: Auto-saves to keep, defaults to the configured count

        Returns:
            Number of versions deleted
        """
        keep = self.config.auto_save_keep_count if keep_count is None else keep_count
        if keep < 0:
            raise ValidationError("Invalid keep count", {"keep": ["Keep count must be at least 0."]})

        async with self.db.transaction() as session:
            await get_owned_document(session, document_id, user_id, for_update=True)
            deleted = await prune_auto_saves(session, document_id, keep)

        if deleted:
            logger.info(f"Pruned {deleted} auto-save versions of document {document_id}")
        return deleted

    async def diff_versions(
        self,
        document_id: str,
        version_id: str,
        user_id: str,
        against_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Compare a version with another version of the same document.

        Without against_id the closest earlier version is the old side.
        """
        async with self.db.session() as session:
            await get_owned_document(session, document_id, user_id)
            new, _ = await self._load_version(session, document_id, version_id)

            if against_id is not None:
                old, _ = await self._load_version(session, document_id, against_id)
            else:
                result = await session.execute(
                    select(DocumentVersionModel)
                    .where(
                        DocumentVersionModel.document_id == document_id,
                        DocumentVersionModel.version_number < new.version_number,
                    )
                    .order_by(DocumentVersionModel.version_number.desc())
                    .limit(1)
                )
                old = result.scalar_one_or_none()
                if old is None:
                    raise ValidationError(
                        "No earlier version to compare against",
                        {"against": [f"Version {new.version_number} has no earlier version."]},
                    )

        return compare_versions(old, new)

    async def _load_version(
        self, session: AsyncSession, document_id: str, version_id: str
    ) -> Tuple[DocumentVersionModel, Optional[UserModel]]:
        result = await session.execute(
            select(DocumentVersionModel, UserModel)
            .outerjoin(UserModel, UserModel.id == DocumentVersionModel.user_id)
            .where(
                DocumentVersionModel.id == version_id,
                DocumentVersionModel.document_id == document_id,
            )
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Version", version_id)
        return row[0], row[1]
