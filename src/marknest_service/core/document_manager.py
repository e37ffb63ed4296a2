"""Document management business logic."""

import logging
import math
from datetime import timedelta
from typing import List, Optional, Tuple
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from ..config.settings import RetentionConfig, VersioningConfig
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import (
    DocumentModel,
    DocumentTagModel,
    DocumentVersionModel,
    FolderModel,
    TagModel,
    ensure_utc,
    new_id,
    utcnow,
)
from ..infrastructure.database.scopes import exclude_trashed, only_trashed
from ..models.document import DocumentCreate, DocumentDuplicate, DocumentUpdate, RecentDocumentsQuery
from .content import compute_stats, normalize_tags, render_markdown, slugify, tag_slug
from .errors import NotFoundError
from .lookups import get_owned_document, get_owned_folder
from .pagination import Page, paginate
from .purge import purge_document
from .version_manager import VersionManager, next_version_number, snapshot_version

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "updated_at": DocumentModel.updated_at,
    "title": DocumentModel.title,
    "word_count": DocumentModel.word_count,
    "created_at": DocumentModel.created_at,
}


class DocumentManager:
    """Business logic for document CRUD, versioned edits and the trash."""

    def __init__(
        self,
        db_client: DatabaseClient,
        version_manager: VersionManager,
        versioning: VersioningConfig,
        retention: RetentionConfig,
    ):
        """Initialize document manager.

        Args:
            db_client: Database client
            version_manager: Version history manager
            versioning: Pagination and history limits
            retention: Trash retention windows
        """
        self.db = db_client
        self.versions = version_manager
        self.versioning = versioning
        self.retention = retention

    async def create_document(self, user_id: str, doc_data: DocumentCreate) -> DocumentModel:
        """Create a new document with its initial version.

        Args:
            user_id: Owner, from gateway headers
            doc_data: Document creation data

        Returns:
            Created document

        Raises:
            NotFoundError: folder_id is not a live folder of the owner
        """
        content = doc_data.content or ""

        async with self.db.transaction() as session:
            if doc_data.folder_id:
                await get_owned_folder(session, doc_data.folder_id, user_id)

            stats = compute_stats(content)
            now = utcnow()
            document = DocumentModel(
                id=new_id(),
                user_id=user_id,
                folder_id=doc_data.folder_id or None,
                title=doc_data.title,
                slug="",
                content=content,
                rendered_html=render_markdown(content),
                size=stats.size,
                word_count=stats.word_count,
                character_count=stats.character_count,
                version_number=1,
                tags=normalize_tags(doc_data.tags),
                doc_metadata={},
                status=doc_data.status,
                last_accessed_at=now,
                created_at=now,
                updated_at=now,
            )
            session.add(document)
            await session.flush()

            document.slug = document.id
            session.add(snapshot_version(document, user_id, 1, "create", "Initial version"))
            await self._sync_tags(session, document)

        logger.info(f"Created document {document.id} for user {user_id}")
        return document

    async def get_document(
        self, document_id: str, user_id: str
    ) -> Tuple[DocumentModel, List[DocumentVersionModel]]:
        """Get a live document and its most recent versions.

        Touches last_accessed_at.
        """
        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id)
            document.last_accessed_at = utcnow()
            recent = await self.versions.get_recent_versions(session, document_id)
        return document, recent

    async def update_document(
        self, document_id: str, user_id: str, updates: DocumentUpdate
    ) -> DocumentModel:
        """Apply a partial update, versioning title/content changes.

        Only fields present in the request are considered. A null title,
        content, tags or status counts as absent; a null folder_id moves the
        document to the root. A new version is written only when title or
        content is given.

        Args:
            document_id: Document ID
            user_id: User ID for authorization and version attribution
            updates: Fields to update

        Returns:
            Updated document
        """
        fields = updates.model_dump(exclude_unset=True)
        title = fields.get("title")
        content = fields.get("content")

        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id, for_update=True)

            if "folder_id" in fields and fields["folder_id"]:
                await get_owned_folder(session, fields["folder_id"], user_id)

            if title is not None:
                document.title = title
                document.slug = slugify(title) or document.id

            if content is not None:
                stats = compute_stats(content)
                document.content = content
                document.rendered_html = render_markdown(content)
                document.size = stats.size
                document.word_count = stats.word_count
                document.character_count = stats.character_count

            if "folder_id" in fields:
                document.folder_id = fields["folder_id"] or None

            if fields.get("tags") is not None:
                document.tags = normalize_tags(fields["tags"])
                await self._sync_tags(session, document)

            if fields.get("status") is not None:
                document.status = fields["status"]

            if title is not None or content is not None:
                number = await next_version_number(session, document)
                session.add(snapshot_version(
                    document,
                    user_id,
                    number,
                    "update",
                    fields.get("change_summary") or "Document updated",
                    bool(fields.get("is_auto_save")),
                ))
                document.version_number = number

            document.updated_at = utcnow()

        logger.info(f"Updated document {document_id} (version {document.version_number})")
        return document

    async def duplicate_document(
        self, document_id: str, user_id: str, options: DocumentDuplicate
    ) -> DocumentModel:
        """Copy a document into a new draft with its own history.

        Args:
            document_id: Source document ID
            user_id: User creating the duplicate
            options: Optional title and folder for the copy

        Returns:
            The new document
        """
        async with self.db.transaction() as session:
            source = await get_owned_document(session, document_id, user_id)
            folder_id = options.folder_id or source.folder_id
            if folder_id:
                await get_owned_folder(session, folder_id, user_id)

            now = utcnow()
            duplicate = DocumentModel(
                id=new_id(),
                user_id=user_id,
                folder_id=folder_id,
                title=options.title or f"Copy of {source.title}",
                slug="",
                content=source.content,
                rendered_html=source.rendered_html,
                size=source.size,
                word_count=source.word_count,
                character_count=source.character_count,
                version_number=1,
                tags=list(source.tags or []),
                doc_metadata=dict(source.doc_metadata or {}),
                status="draft",
                is_favorite=False,
                is_archived=False,
                is_trashed=False,
                last_accessed_at=now,
                created_at=now,
                updated_at=now,
            )
            session.add(duplicate)
            await session.flush()

            duplicate.slug = duplicate.id
            session.add(snapshot_version(
                duplicate,
                user_id,
                1,
                "create",
                f"Duplicated from document: {source.title}",
            ))
            await self._sync_tags(session, duplicate)

        logger.info(f"Duplicated document {document_id} as {duplicate.id}")
        return duplicate

    async def delete_document(self, document_id: str, user_id: str) -> DocumentModel:
        """Move a document to the trash."""
        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id)
            document.deleted_at = utcnow()
            document.is_trashed = True

        logger.info(f"Trashed document {document_id}")
        return document

    async def restore_document(self, document_id: str, user_id: str) -> DocumentModel:
        """Bring a trashed document back.

        A document whose folder is itself trashed or gone lands at the root.
        """
        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id, scope=only_trashed)
            if document.folder_id:
                folder = await session.get(FolderModel, document.folder_id)
                if folder is None or folder.deleted_at is not None:
                    document.folder_id = None
            document.deleted_at = None
            document.is_trashed = False

        logger.info(f"Restored document {document_id} from trash")
        return document

    async def force_delete_document(self, document_id: str, user_id: str) -> None:
        """Permanently delete a trashed document and everything hanging off it."""
        async with self.db.transaction() as session:
            await get_owned_document(session, document_id, user_id, scope=only_trashed)
            counts = await purge_document(session, document_id)

        logger.info(f"Permanently deleted document {document_id} ({counts.versions} versions)")

    async def toggle_favorite(self, document_id: str, user_id: str) -> DocumentModel:
        """Flip is_favorite on a live document."""
        return await self._toggle_flag(document_id, user_id, "is_favorite")

    async def toggle_archive(self, document_id: str, user_id: str) -> DocumentModel:
        """Flip is_archived on a live document. Archived documents drop out of the recent list."""
        return await self._toggle_flag(document_id, user_id, "is_archived")

    async def set_favorite(self, user_id: str, document_ids: List[str], value: bool) -> int:
        """Set is_favorite on every listed live document the user owns.

        Returns:
            Number of documents updated

        Raises:
            NotFoundError: none of the ids is a live document of the user
        """
        return await self._set_flag(user_id, document_ids, "is_favorite", value)

    async def set_archived(self, user_id: str, document_ids: List[str], value: bool) -> int:
        return await self._set_flag(user_id, document_ids, "is_archived", value)

    async def get_recent_documents(self, user_id: str, query: RecentDocumentsQuery) -> Page:
        """List live, non-archived documents with search and sorting.

        Args:
            user_id: Owner
            query: Page, page size, search term and sort options

        Returns:
            Page of DocumentModel rows
        """
        per_page = min(query.per_page or self.versioning.recent_per_page, self.versioning.max_recent_per_page)
        stmt = exclude_trashed(
            select(DocumentModel).where(
                DocumentModel.user_id == user_id,
                DocumentModel.is_archived.is_(False),
            ),
            DocumentModel,
        )
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(or_(DocumentModel.title.ilike(pattern), DocumentModel.content.ilike(pattern)))

        column = SORT_COLUMNS[query.sort_by]
        stmt = stmt.order_by(column.asc() if query.sort_direction == "asc" else column.desc())
        if query.sort_by != "updated_at":
            stmt = stmt.order_by(DocumentModel.updated_at.desc())

        async with self.db.session() as session:
            return await paginate(session, stmt, query.page, per_page)

    async def get_trashed_documents(
        self, user_id: str, page: int = 1, per_page: Optional[int] = None
    ) -> Tuple[Page, List[int]]:
        """List trashed documents, most recently trashed first.

        Returns:
            The page and, per document, the whole days left before the sweeper purges it
        """
        per_page = min(per_page or self.versioning.trash_per_page, self.versioning.max_recent_per_page)
        stmt = only_trashed(
            select(DocumentModel).where(DocumentModel.user_id == user_id),
            DocumentModel,
        ).order_by(DocumentModel.deleted_at.desc())

        async with self.db.session() as session:
            result = await paginate(session, stmt, page, per_page)

        now = utcnow()
        days_left = [
            max(0, self.retention.document_days - math.floor(
                (now - ensure_utc(doc.deleted_at)) / timedelta(days=1)
            ))
            for doc in result.items
        ]
        return result, days_left

    async def _toggle_flag(self, document_id: str, user_id: str, flag: str) -> DocumentModel:
        async with self.db.transaction() as session:
            document = await get_owned_document(session, document_id, user_id)
            setattr(document, flag, not getattr(document, flag))
            document.updated_at = utcnow()

        logger.info(f"Set {flag}={getattr(document, flag)} on document {document_id}")
        return document

    async def _set_flag(self, user_id: str, document_ids: List[str], flag: str, value: bool) -> int:
        async with self.db.transaction() as session:
            result = await session.execute(
                exclude_trashed(
                    update(DocumentModel).where(
                        DocumentModel.id.in_(list(document_ids)),
                        DocumentModel.user_id == user_id,
                    ),
                    DocumentModel,
                ).values({flag: value, "updated_at": utcnow()})
            )
            updated = result.rowcount

        if not updated:
            raise NotFoundError("Documents", ",".join(document_ids))
        logger.info(f"Set {flag}={value} on {updated} documents for user {user_id}")
        return updated

    async def _sync_tags(self, session: AsyncSession, document: DocumentModel) -> None:
        """Mirror document.tags into the owner's tags and the document_tag links."""
        wanted = {}
        for name in document.tags or []:
            wanted.setdefault(tag_slug(name), name)

        existing = {}
        if wanted:
            result = await session.execute(
                select(TagModel).where(
                    TagModel.user_id == document.user_id,
                    TagModel.slug.in_(list(wanted)),
                )
            )
            existing = {tag.slug: tag for tag in result.scalars().all()}

        created = False
        for slug, name in wanted.items():
            if slug not in existing:
                tag = TagModel(id=new_id(), user_id=document.user_id, name=name, slug=slug)
                session.add(tag)
                existing[slug] = tag
                created = True
        if created:
            await session.flush()

        wanted_ids = {tag.id for tag in existing.values()}
        result = await session.execute(
            select(DocumentTagModel.tag_id).where(DocumentTagModel.document_id == document.id)
        )
        linked_ids = set(result.scalars().all())

        stale = linked_ids - wanted_ids
        if stale:
            await session.execute(
                delete(DocumentTagModel).where(
                    DocumentTagModel.document_id == document.id,
                    DocumentTagModel.tag_id.in_(stale),
                )
            )
        for tag_id in wanted_ids - linked_ids:
            session.add(DocumentTagModel(id=new_id(), document_id=document.id, tag_id=tag_id))
