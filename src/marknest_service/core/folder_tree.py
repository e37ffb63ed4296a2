"""Iterative folder-tree traversal."""

from collections import deque
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ..infrastructure.database.models import FolderModel
from ..infrastructure.database.scopes import exclude_trashed, with_trashed


async def collect_subtree(
    session: AsyncSession,
    root_id: str,
    include_trashed: bool = True,
    user_id: Optional[str] = None,
) -> List[str]:
    """Return folder ids of the subtree rooted at root_id, breadth-first.

    The root comes first and every folder appears after its parent, so
    reversing the list gives a children-before-parents deletion order. A
    visited set guards against cycles in corrupted parent links.

    Args:
        session: Open database session
        root_id: Folder the walk starts from (always included)
        include_trashed: Also descend into soft-deleted folders
        user_id: Restrict the walk to folders owned by this user

    Returns:
        Folder ids in breadth-first order
    """
    scope = with_trashed if include_trashed else exclude_trashed
    ordered = [root_id]
    visited = {root_id}
    queue = deque([root_id])

    while queue:
        parent_id = queue.popleft()
        stmt = scope(select(FolderModel.id).where(FolderModel.parent_id == parent_id), FolderModel)
        if user_id is not None:
            stmt = stmt.where(FolderModel.user_id == user_id)
        result = await session.execute(stmt)
        for child_id in result.scalars().all():
            if child_id in visited:
                continue
            visited.add(child_id)
            ordered.append(child_id)
            queue.append(child_id)

    return ordered


async def is_descendant(session: AsyncSession, candidate_id: str, ancestor_id: str) -> bool:
    """True if candidate_id is ancestor_id itself or lies beneath it."""
    visited = set()
    current: Optional[str] = candidate_id
    while current is not None and current not in visited:
        if current == ancestor_id:
            return True
        visited.add(current)
        result = await session.execute(
            select(FolderModel.parent_id).where(FolderModel.id == current)
        )
        current = result.scalar_one_or_none()
    return False


async def collect_ancestors(session: AsyncSession, folder: FolderModel) -> List[FolderModel]:
    """Return folder and its ancestors, outermost first."""
    chain = [folder]
    visited = {folder.id}
    parent_id = folder.parent_id
    while parent_id is not None and parent_id not in visited:
        parent = await session.get(FolderModel, parent_id)
        if parent is None:
            break
        visited.add(parent_id)
        chain.append(parent)
        parent_id = parent.parent_id
    chain.reverse()
    return chain
