"""Ownership-checked row lookups shared by the managers."""

from typing import Callable
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ..infrastructure.database.models import DocumentModel, FolderModel
from ..infrastructure.database.scopes import exclude_trashed
from .errors import NotFoundError


async def get_owned_document(
    session: AsyncSession,
    document_id: str,
    user_id: str,
    scope: Callable = exclude_trashed,
    for_update: bool = False,
) -> DocumentModel:
    """Load a document owned by user_id or raise NotFoundError.

    Args:
        session: Open database session
        document_id: Document ID
        user_id: Owner the document must belong to
        scope: Soft-delete modifier (exclude_trashed, only_trashed or with_trashed)
        for_update: Lock the row for the rest of the transaction

    Returns:
        The document row
    """
    stmt = scope(
        select(DocumentModel).where(
            DocumentModel.id == document_id,
            DocumentModel.user_id == user_id,
        ),
        DocumentModel,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document", document_id)
    return document


async def get_owned_folder(
    session: AsyncSession,
    folder_id: str,
    user_id: str,
    scope: Callable = exclude_trashed,
) -> FolderModel:
    """Load a folder owned by user_id or raise NotFoundError."""
    stmt = scope(
        select(FolderModel).where(
            FolderModel.id == folder_id,
            FolderModel.user_id == user_id,
        ),
        FolderModel,
    )
    result = await session.execute(stmt)
    folder = result.scalar_one_or_none()
    if folder is None:
        raise NotFoundError("Folder", folder_id)
    return folder
