"""Permanent deletion of documents and folder subtrees.

These run inside a caller-owned transaction and issue bulk deletes in
dependency order, so they behave the same with or without database-level
foreign key cascades.
"""

import logging
from dataclasses import dataclass
from typing import List
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from ..infrastructure.database.models import (
    DocumentCollaboratorModel,
    DocumentMediaModel,
    DocumentModel,
    DocumentShareModel,
    DocumentTagModel,
    DocumentVersionModel,
    FolderModel,
)
from .folder_tree import collect_subtree

logger = logging.getLogger(__name__)


@dataclass
class PurgeCounts:
    folders: int = 0
    documents: int = 0
    versions: int = 0


async def purge_documents(session: AsyncSession, document_ids: List[str]) -> PurgeCounts:
    """Force-delete documents with their versions, shares, collaborators, media links and tag links."""
    counts = PurgeCounts()
    if not document_ids:
        return counts

    result = await session.execute(
        delete(DocumentVersionModel).where(DocumentVersionModel.document_id.in_(document_ids))
    )
    counts.versions = result.rowcount
    await session.execute(
        delete(DocumentShareModel).where(DocumentShareModel.document_id.in_(document_ids))
    )
    await session.execute(
        delete(DocumentCollaboratorModel).where(DocumentCollaboratorModel.document_id.in_(document_ids))
    )
    # Detach only; the media files themselves stay in the user's library.
    await session.execute(
        delete(DocumentMediaModel).where(DocumentMediaModel.document_id.in_(document_ids))
    )
    await session.execute(
        delete(DocumentTagModel).where(DocumentTagModel.document_id.in_(document_ids))
    )
    result = await session.execute(
        delete(DocumentModel).where(DocumentModel.id.in_(document_ids))
    )
    counts.documents = result.rowcount
    return counts


async def purge_document(session: AsyncSession, document_id: str) -> PurgeCounts:
    return await purge_documents(session, [document_id])


async def purge_folder_tree(session: AsyncSession, folder_id: str) -> PurgeCounts:
    """Force-delete a folder, every descendant folder and every document inside them.

    Trashed and live rows are removed alike. Documents go first, then the
    folders deepest-first.
    """
    folder_ids = await collect_subtree(session, folder_id, include_trashed=True)

    result = await session.execute(
        select(DocumentModel.id).where(DocumentModel.folder_id.in_(folder_ids))
    )
    counts = await purge_documents(session, list(result.scalars().all()))

    for fid in reversed(folder_ids):
        result = await session.execute(delete(FolderModel).where(FolderModel.id == fid))
        counts.folders += result.rowcount

    logger.debug(
        f"Purged folder tree {folder_id}: {counts.folders} folders, "
        f"{counts.documents} documents, {counts.versions} versions"
    )
    return counts
