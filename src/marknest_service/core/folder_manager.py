"""Folder tree management: create, rename, move, browse, trash and restore."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from ..infrastructure.database.client import DatabaseClient
from ..infrastructure.database.models import (
    DocumentModel,
    DocumentShareModel,
    FolderModel,
    new_id,
    utcnow,
)
from ..infrastructure.database.scopes import exclude_trashed, only_trashed
from ..models.folder import FolderCreate, FolderUpdate
from .content import slugify
from .errors import ValidationError
from .folder_tree import collect_ancestors, collect_subtree, is_descendant
from .lookups import get_owned_folder

logger = logging.getLogger(__name__)

ROOT_CRUMB = {"id": "root", "name": "My Drive", "path": "/"}

SEARCH_LIMIT = 20

FOLDER_SORT_COLUMNS = {
    "name": FolderModel.name,
    "modified": FolderModel.updated_at,
    "created_at": FolderModel.created_at,
}

DOCUMENT_SORT_COLUMNS = {
    "name": DocumentModel.title,
    "modified": DocumentModel.updated_at,
    "created_at": DocumentModel.created_at,
}


@dataclass
class FolderContents:
    """One level of the tree: subfolders with live document counts, then documents."""
    folder: Optional[FolderModel]
    folders: List[Tuple[FolderModel, int]] = field(default_factory=list)
    documents: List[DocumentModel] = field(default_factory=list)
    shared_ids: Set[str] = field(default_factory=set)
    breadcrumbs: List[Dict[str, str]] = field(default_factory=list)


@dataclass
class SearchResults:
    folders: List[FolderModel] = field(default_factory=list)
    documents: List[DocumentModel] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.folders) + len(self.documents)


class FolderManager:
    """Business logic for the per-user folder tree."""

    def __init__(self, db_client: DatabaseClient):
        self.db = db_client

    async def create_folder(self, user_id: str, data: FolderCreate) -> FolderModel:
        """Create a folder under an optional parent.

        Raises:
            NotFoundError: parent is not a live folder of the user
            ValidationError: a live sibling already has the same name
        """
        async with self.db.transaction() as session:
            parent = None
            if data.parent_id:
                parent = await get_owned_folder(session, data.parent_id, user_id)

            await self._ensure_unique_name(session, user_id, data.parent_id or None, data.name)

            slug = slugify(data.name) or new_id()[:8]
            folder = FolderModel(
                id=new_id(),
                user_id=user_id,
                parent_id=parent.id if parent else None,
                name=data.name,
                slug=slug,
                description=data.description,
                path=f"{parent.path}/{slug}" if parent else f"/{slug}",
                depth=parent.depth + 1 if parent else 0,
                color=data.color,
                icon=data.icon,
            )
            session.add(folder)

        logger.info(f"Created folder {folder.id} for user {user_id}")
        return folder

    async def get_folder(self, folder_id: str, user_id: str) -> FolderModel:
        async with self.db.session() as session:
            return await get_owned_folder(session, folder_id, user_id)

    async def list_folders(self, user_id: str, parent_id: Optional[str] = None) -> List[FolderModel]:
        """Live folders directly under parent_id, or at the root level when None."""
        async with self.db.session() as session:
            if parent_id:
                await get_owned_folder(session, parent_id, user_id)
            stmt = exclude_trashed(
                select(FolderModel).where(
                    FolderModel.user_id == user_id,
                    FolderModel.parent_id == parent_id if parent_id else FolderModel.parent_id.is_(None),
                ),
                FolderModel,
            ).order_by(FolderModel.name.asc())
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update_folder(self, folder_id: str, user_id: str, updates: FolderUpdate) -> FolderModel:
        """Rename a folder or change its description, color or icon.

        A new name must be unique among live siblings; it also changes the
        slug, so the paths of the whole subtree are rewritten.

        Raises:
            ValidationError: a live sibling already has the new name
        """
        fields = updates.model_dump(exclude_unset=True)
        name = fields.pop("name", None)

        async with self.db.transaction() as session:
            folder = await get_owned_folder(session, folder_id, user_id)

            if name is not None and name != folder.name:
                await self._ensure_unique_name(session, user_id, folder.parent_id, name, exclude_id=folder.id)
                parent = await session.get(FolderModel, folder.parent_id) if folder.parent_id else None
                folder.name = name
                folder.slug = slugify(name) or new_id()[:8]
                folder.path = f"{parent.path}/{folder.slug}" if parent else f"/{folder.slug}"
                await session.flush()
                await self._rewrite_descendant_paths(session, folder)

            for key, value in fields.items():
                setattr(folder, key, value)
            folder.updated_at = utcnow()

        logger.info(f"Updated folder {folder_id}")
        return folder

    async def move_folder(self, folder_id: str, user_id: str, parent_id: Optional[str]) -> FolderModel:
        """Re-parent a folder, rewriting path and depth of the whole subtree.

        Raises:
            ValidationError: target is the folder itself or one of its descendants
        """
        async with self.db.transaction() as session:
            folder = await get_owned_folder(session, folder_id, user_id)
            parent = None
            if parent_id:
                parent = await get_owned_folder(session, parent_id, user_id)
                if await is_descendant(session, parent.id, folder.id):
                    raise ValidationError(
                        "Cannot move folder into itself or its subfolders",
                        {"parent_id": ["Target folder is inside the folder being moved."]},
                    )

            await self._ensure_unique_name(session, user_id, parent_id or None, folder.name, exclude_id=folder.id)

            folder.parent_id = parent.id if parent else None
            folder.depth = parent.depth + 1 if parent else 0
            folder.path = f"{parent.path}/{folder.slug}" if parent else f"/{folder.slug}"
            await session.flush()
            await self._rewrite_descendant_paths(session, folder)

        logger.info(f"Moved folder {folder_id} under {parent_id or 'root'}")
        return folder

    async def get_breadcrumbs(self, folder_id: str, user_id: str) -> List[Dict[str, str]]:
        """Path from the drive root down to folder_id, root entry first."""
        async with self.db.session() as session:
            folder = await get_owned_folder(session, folder_id, user_id)
            return await self._breadcrumbs(session, folder)

    async def get_contents(
        self,
        user_id: str,
        folder_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "name",
        order: str = "asc",
    ) -> FolderContents:
        """List the live subfolders and documents of one folder (or the root level).

        Args:
            user_id: Owner
            folder_id: Folder to open; None for the root level
            search: Optional substring matched against folder names and document titles
            sort: "name", "modified" or "created_at"
            order: "asc" or "desc"

        Returns:
            FolderContents with breadcrumbs for the opened folder
        """
        folder_column = FOLDER_SORT_COLUMNS[sort]
        document_column = DOCUMENT_SORT_COLUMNS[sort]
        if order == "desc":
            folder_column, document_column = folder_column.desc(), document_column.desc()
        else:
            folder_column, document_column = folder_column.asc(), document_column.asc()

        async with self.db.session() as session:
            folder = None
            if folder_id:
                folder = await get_owned_folder(session, folder_id, user_id)
                breadcrumbs = await self._breadcrumbs(session, folder)
            else:
                breadcrumbs = [dict(ROOT_CRUMB)]

            folders_stmt = exclude_trashed(
                select(FolderModel).where(
                    FolderModel.user_id == user_id,
                    FolderModel.parent_id == folder_id if folder_id else FolderModel.parent_id.is_(None),
                ),
                FolderModel,
            )
            documents_stmt = exclude_trashed(
                select(DocumentModel).where(
                    DocumentModel.user_id == user_id,
                    DocumentModel.folder_id == folder_id if folder_id else DocumentModel.folder_id.is_(None),
                ),
                DocumentModel,
            )
            if search:
                pattern = f"%{search}%"
                folders_stmt = folders_stmt.where(FolderModel.name.ilike(pattern))
                documents_stmt = documents_stmt.where(DocumentModel.title.ilike(pattern))

            folders = list((await session.execute(folders_stmt.order_by(folder_column))).scalars().all())
            documents = list((await session.execute(documents_stmt.order_by(document_column))).scalars().all())

            counts = await self._document_counts(session, [f.id for f in folders])
            shared_ids = await self._shared_document_ids(session, [d.id for d in documents])

        return FolderContents(
            folder=folder,
            folders=[(f, counts.get(f.id, 0)) for f in folders],
            documents=documents,
            shared_ids=shared_ids,
            breadcrumbs=breadcrumbs,
        )

    async def search(self, user_id: str, query: str, kind: str = "all") -> SearchResults:
        """Find live folders by name and live documents by title or content.

        At most SEARCH_LIMIT hits of each kind are returned.
        """
        pattern = f"%{query}%"
        results = SearchResults()

        async with self.db.session() as session:
            if kind in ("all", "folders"):
                stmt = exclude_trashed(
                    select(FolderModel).where(
                        FolderModel.user_id == user_id,
                        FolderModel.name.ilike(pattern),
                    ),
                    FolderModel,
                ).order_by(FolderModel.name.asc()).limit(SEARCH_LIMIT)
                results.folders = list((await session.execute(stmt)).scalars().all())

            if kind in ("all", "documents"):
                stmt = exclude_trashed(
                    select(DocumentModel).where(
                        DocumentModel.user_id == user_id,
                        or_(DocumentModel.title.ilike(pattern), DocumentModel.content.ilike(pattern)),
                    ),
                    DocumentModel,
                ).order_by(DocumentModel.updated_at.desc()).limit(SEARCH_LIMIT)
                results.documents = list((await session.execute(stmt)).scalars().all())

        return results

    async def delete_folder(self, folder_id: str, user_id: str, action: str = "abort") -> FolderModel:
        """Move a folder to the trash.

        Args:
            folder_id: Folder ID
            user_id: User ID for authorization
            action: What to do with a non-empty folder: "abort" refuses,
                "move_to_parent" hands live contents to the parent,
                "delete_all" trashes the whole subtree

        Returns:
            The trashed folder

        Raises:
            ValidationError: folder is not empty and action is "abort", or a
                subfolder would clash by name with a folder under the parent
        """
        async with self.db.transaction() as session:
            folder = await get_owned_folder(session, folder_id, user_id)

            children_count = await self._count(session, FolderModel, FolderModel.parent_id == folder.id)
            documents_count = await self._count(session, DocumentModel, DocumentModel.folder_id == folder.id)
            now = utcnow()

            if children_count or documents_count:
                if action == "abort":
                    raise ValidationError(
                        "Folder contains items. Please specify action: move_to_parent or delete_all",
                        {
                            "children_count": [str(children_count)],
                            "documents_count": [str(documents_count)],
                        },
                    )
                if action == "move_to_parent":
                    await self._move_contents_to_parent(session, folder)
                elif action == "delete_all":
                    await self._trash_descendants(session, folder, now)

            folder.deleted_at = now

        logger.info(f"Trashed folder {folder_id} (action={action})")
        return folder

    async def restore_folder(self, folder_id: str, user_id: str) -> FolderModel:
        """Restore a trashed folder and whatever was trashed together with it.

        Descendants are restored only if they carry the exact deletion
        timestamp of the folder, i.e. they went to the trash in the same
        delete_all. A folder whose parent is still trashed lands at the root.

        Raises:
            ValidationError: a live folder with the same name already sits
                where the folder would be restored
        """
        async with self.db.transaction() as session:
            folder = await get_owned_folder(session, folder_id, user_id, scope=only_trashed)
            deleted_at = folder.deleted_at

            to_root = False
            if folder.parent_id:
                parent = await session.get(FolderModel, folder.parent_id)
                to_root = parent is None or parent.deleted_at is not None
            target_parent_id = None if to_root else folder.parent_id
            await self._ensure_unique_name(session, user_id, target_parent_id, folder.name, exclude_id=folder.id)

            subtree = await collect_subtree(session, folder.id, include_trashed=True, user_id=user_id)
            descendants = subtree[1:]
            if descendants:
                await session.execute(
                    update(FolderModel)
                    .where(FolderModel.id.in_(descendants), FolderModel.deleted_at == deleted_at)
                    .values(deleted_at=None)
                )
            await session.execute(
                update(DocumentModel)
                .where(DocumentModel.folder_id.in_(subtree), DocumentModel.deleted_at == deleted_at)
                .values(deleted_at=None, is_trashed=False)
            )

            if to_root:
                folder.parent_id = None
                folder.depth = 0
                folder.path = f"/{folder.slug}"
                await session.flush()
                await self._rewrite_descendant_paths(session, folder)

            folder.deleted_at = None

        logger.info(f"Restored folder {folder_id} from trash")
        return folder

    async def _ensure_unique_name(
        self,
        session: AsyncSession,
        user_id: str,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        stmt = exclude_trashed(
            select(FolderModel.id).where(
                FolderModel.user_id == user_id,
                FolderModel.name == name,
                FolderModel.parent_id == parent_id if parent_id else FolderModel.parent_id.is_(None),
            ),
            FolderModel,
        )
        if exclude_id:
            stmt = stmt.where(FolderModel.id != exclude_id)
        if (await session.execute(stmt.limit(1))).first() is not None:
            raise ValidationError(
                "A folder with this name already exists at this location",
                {"name": ["A folder with this name already exists at this location."]},
            )

    async def _count(self, session: AsyncSession, model, condition) -> int:
        stmt = exclude_trashed(select(func.count()).select_from(model).where(condition), model)
        return (await session.execute(stmt)).scalar_one()

    async def _breadcrumbs(self, session: AsyncSession, folder: FolderModel) -> List[Dict[str, str]]:
        chain = await collect_ancestors(session, folder)
        return [dict(ROOT_CRUMB)] + [{"id": f.id, "name": f.name, "path": f.path} for f in chain]

    async def _document_counts(self, session: AsyncSession, folder_ids: List[str]) -> Dict[str, int]:
        if not folder_ids:
            return {}
        stmt = exclude_trashed(
            select(DocumentModel.folder_id, func.count())
            .where(DocumentModel.folder_id.in_(folder_ids))
            .group_by(DocumentModel.folder_id),
            DocumentModel,
        )
        return {folder_id: count for folder_id, count in (await session.execute(stmt)).all()}

    async def _shared_document_ids(self, session: AsyncSession, document_ids: List[str]) -> Set[str]:
        if not document_ids:
            return set()
        result = await session.execute(
            select(DocumentShareModel.document_id)
            .where(DocumentShareModel.document_id.in_(document_ids))
            .distinct()
        )
        return set(result.scalars().all())

    async def _move_contents_to_parent(self, session: AsyncSession, folder: FolderModel) -> None:
        parent = await session.get(FolderModel, folder.parent_id) if folder.parent_id else None
        result = await session.execute(
            exclude_trashed(select(FolderModel).where(FolderModel.parent_id == folder.id), FolderModel)
        )
        children = list(result.scalars().all())

        # Check every child before writing anything; the folder itself is leaving.
        for child in children:
            await self._ensure_unique_name(
                session, folder.user_id, folder.parent_id, child.name, exclude_id=folder.id
            )

        for child in children:
            child.parent_id = folder.parent_id
            child.depth = parent.depth + 1 if parent else 0
            child.path = f"{parent.path}/{child.slug}" if parent else f"/{child.slug}"
            await session.flush()
            await self._rewrite_descendant_paths(session, child)

        await session.execute(
            exclude_trashed(
                update(DocumentModel).where(DocumentModel.folder_id == folder.id),
                DocumentModel,
            ).values(folder_id=folder.parent_id)
        )

    async def _trash_descendants(self, session: AsyncSession, folder: FolderModel, now) -> None:
        subtree = await collect_subtree(session, folder.id, include_trashed=False)
        descendants = subtree[1:]
        if descendants:
            await session.execute(
                exclude_trashed(
                    update(FolderModel).where(FolderModel.id.in_(descendants)),
                    FolderModel,
                ).values(deleted_at=now)
            )
        await session.execute(
            exclude_trashed(
                update(DocumentModel).where(DocumentModel.folder_id.in_(subtree)),
                DocumentModel,
            ).values(deleted_at=now, is_trashed=True)
        )

    async def _rewrite_descendant_paths(self, session: AsyncSession, folder: FolderModel) -> None:
        """Recompute path/depth below folder, walking the tree iteratively."""
        subtree = await collect_subtree(session, folder.id, include_trashed=True)
        nodes = {folder.id: folder}
        for fid in subtree[1:]:
            node = await session.get(FolderModel, fid)
            parent = nodes[node.parent_id]
            node.depth = parent.depth + 1
            node.path = f"{parent.path}/{node.slug}"
            nodes[fid] = node
