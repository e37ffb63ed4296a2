"""Folder endpoints."""

import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from ...models.folder import (
    Breadcrumb,
    BreadcrumbListResponse,
    ContentsSort,
    FolderContentsData,
    FolderContentsResponse,
    FolderCreate,
    FolderItem,
    FolderUpdate,
    FolderMove,
    FolderSearchResponse,
    SearchKind,
    FolderDeleteAction,
    FolderResponse,
    FolderEnvelope,
    FolderListResponse,
)
from ...models.requests import MessageResponse
from ...core.folder_manager import FolderContents, FolderManager
from ...api.dependencies import get_user_id

router = APIRouter(prefix="/api/folders", tags=["folders"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
folder_manager: FolderManager = None


def set_managers(folder_mgr: FolderManager):
    """Set the manager instances (called from main.py)."""
    globals()['folder_manager'] = folder_mgr


@router.post(
    "",
    response_model=FolderEnvelope,
    status_code=201,
    summary="Create Folder",
    description="""
Create a folder at the root or under a parent folder.

Names must be unique among live siblings. `path` and `depth` are derived
from the parent.

**Request Example**:
```json
{"name": "Projects", "parent_id": null, "color": "#3366ff"}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        201: {"description": "Folder created"},
        404: {"description": "Parent folder not found"},
        422: {"description": "Invalid folder data or duplicate name"},
    }
)
async def create_folder(data: FolderCreate, user_id: str = Depends(get_user_id)):
    """Create a folder."""
    folder = await folder_manager.create_folder(user_id, data)
    return FolderEnvelope(data=FolderResponse.from_model(folder), message="Folder created successfully")


@router.get(
    "",
    response_model=FolderListResponse,
    summary="List Folders",
    description="""
List live folders directly under `parent_id`, or the root level when it is
omitted, ordered by name.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Folders retrieved"},
        404: {"description": "Parent folder not found"},
    }
)
async def list_folders(parent_id: Optional[str] = None, user_id: str = Depends(get_user_id)):
    """List folders."""
    folders = await folder_manager.list_folders(user_id, parent_id)
    return FolderListResponse(data=[FolderResponse.from_model(f) for f in folders])


def _contents_response(contents: FolderContents) -> FolderContentsResponse:
    items = [FolderItem.from_folder(f, count) for f, count in contents.folders]
    items += [FolderItem.from_document(d, d.id in contents.shared_ids) for d in contents.documents]
    return FolderContentsResponse(
        data=FolderContentsData(
            items=items,
            breadcrumbs=[Breadcrumb(**crumb) for crumb in contents.breadcrumbs],
            current_folder=FolderResponse.from_model(contents.folder) if contents.folder else None,
        ),
        message="Folder contents retrieved successfully",
    )


@router.get(
    "/contents",
    response_model=FolderContentsResponse,
    summary="Root Contents",
    description="""
List the root level of the caller's drive: top-level folders first (with
their live document counts), then documents outside any folder.

**Query Parameters**:
- `search`: substring matched against folder names and document titles
- `sort`: `name` (default), `modified` or `created_at`
- `order`: `asc` (default) or `desc`

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Contents retrieved"},
    }
)
async def get_root_contents(
    search: Optional[str] = Query(None, max_length=255),
    sort: ContentsSort = "name",
    order: Literal["asc", "desc"] = "asc",
    user_id: str = Depends(get_user_id),
):
    """List the root level."""
    contents = await folder_manager.get_contents(user_id, None, search, sort, order)
    return _contents_response(contents)


@router.get(
    "/search",
    response_model=FolderSearchResponse,
    summary="Search Folders and Documents",
    description="""
Search live folders by name and live documents by title or content.
At most 20 hits of each kind are returned.

**Query Parameters**:
- `query`: search term, at least 2 characters
- `type`: `all` (default), `folders` or `documents`

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Search results"},
        422: {"description": "Search term missing or too short"},
    }
)
async def search_items(
    query: str = Query(..., min_length=2, max_length=255),
    kind: SearchKind = Query("all", alias="type"),
    user_id: str = Depends(get_user_id),
):
    """Search folders and documents."""
    results = await folder_manager.search(user_id, query, kind)
    items = [FolderItem.from_folder(f) for f in results.folders]
    items += [FolderItem.from_document(d) for d in results.documents]
    return FolderSearchResponse(data=items, message=f"Found {results.total} results")


@router.get(
    "/{folder_id}",
    response_model=FolderEnvelope,
    summary="Get Folder",
    responses={
        200: {"description": "Folder retrieved"},
        404: {"description": "Folder not found or access denied"},
    }
)
async def get_folder(folder_id: str, user_id: str = Depends(get_user_id)):
    """Get folder by ID."""
    folder = await folder_manager.get_folder(folder_id, user_id)
    return FolderEnvelope(data=FolderResponse.from_model(folder))


@router.put(
    "/{folder_id}/move",
    response_model=FolderEnvelope,
    summary="Move Folder",
    description="""
Move a folder under another folder, or to the root with `parent_id: null`.

Moving a folder into itself or one of its subfolders is rejected. Paths
and depths of the whole subtree are rewritten.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Folder moved"},
        404: {"description": "Folder or target not found"},
        422: {"description": "Invalid target or duplicate name"},
    }
)
async def move_folder(folder_id: str, data: FolderMove, user_id: str = Depends(get_user_id)):
    """Move a folder."""
    folder = await folder_manager.move_folder(folder_id, user_id, data.parent_id)
    return FolderEnvelope(data=FolderResponse.from_model(folder), message="Folder moved successfully")


@router.delete(
    "/{folder_id}",
    response_model=MessageResponse,
    summary="Trash Folder",
    description="""
Move a folder to the trash.

**Query Parameters**:
- `action`: what to do when the folder is not empty
  - `abort` (default): refuse with 422 and the child/document counts
  - `move_to_parent`: hand live subfolders and documents to the parent folder
  - `delete_all`: trash the whole subtree with the same timestamp

Trashed folders are purged by the scheduled cleanup after the folder
retention window (90 days by default).

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Folder moved to trash"},
        404: {"description": "Folder not found"},
        422: {"description": "Folder is not empty"},
    }
)
async def delete_folder(
    folder_id: str,
    action: FolderDeleteAction = "abort",
    user_id: str = Depends(get_user_id),
):
    """Soft-delete a folder."""
    await folder_manager.delete_folder(folder_id, user_id, action)
    return MessageResponse(message="Folder moved to trash")


@router.post(
    "/{folder_id}/restore",
    response_model=FolderEnvelope,
    summary="Restore Folder",
    description="""
Restore a trashed folder together with the subfolders and documents that
were trashed with it. A folder whose parent is still trashed is restored
to the root.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Folder restored"},
        404: {"description": "Folder not found in trash"},
    }
)
async def restore_folder(folder_id: str, user_id: str = Depends(get_user_id)):
    """Restore a folder from trash."""
    folder = await folder_manager.restore_folder(folder_id, user_id)
    return FolderEnvelope(data=FolderResponse.from_model(folder), message="Folder restored successfully")


@router.put(
    "/{folder_id}",
    response_model=FolderEnvelope,
    summary="Update Folder",
    description="""
Rename a folder or change its description, color or icon. Only fields
present in the body are applied.

A new name must be unique among live siblings. Renaming changes the
folder's slug, and the paths of all its subfolders are rewritten.

**Request Example**:
```json
{"name": "Archive 2024", "color": "#999999"}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Folder updated"},
        404: {"description": "Folder not found"},
        422: {"description": "Invalid data or duplicate name"},
    }
)
async def update_folder(folder_id: str, data: FolderUpdate, user_id: str = Depends(get_user_id)):
    """Update a folder."""
    folder = await folder_manager.update_folder(folder_id, user_id, data)
    return FolderEnvelope(data=FolderResponse.from_model(folder), message="Folder updated successfully")


@router.get(
    "/{folder_id}/contents",
    response_model=FolderContentsResponse,
    summary="Folder Contents",
    description="""
List the live subfolders and documents of a folder, with breadcrumbs from
the drive root. Takes the same `search`, `sort` and `order` parameters as
`GET /api/folders/contents`.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Contents retrieved"},
        404: {"description": "Folder not found"},
    }
)
async def get_folder_contents(
    folder_id: str,
    search: Optional[str] = Query(None, max_length=255),
    sort: ContentsSort = "name",
    order: Literal["asc", "desc"] = "asc",
    user_id: str = Depends(get_user_id),
):
    """List one folder."""
    contents = await folder_manager.get_contents(user_id, folder_id, search, sort, order)
    return _contents_response(contents)


@router.get(
    "/{folder_id}/breadcrumbs",
    response_model=BreadcrumbListResponse,
    summary="Folder Breadcrumbs",
    responses={
        200: {"description": "Breadcrumbs retrieved"},
        404: {"description": "Folder not found"},
    }
)
async def get_breadcrumbs(folder_id: str, user_id: str = Depends(get_user_id)):
    """Path from the drive root to the folder."""
    crumbs = await folder_manager.get_breadcrumbs(folder_id, user_id)
    return BreadcrumbListResponse(
        data=[Breadcrumb(**crumb) for crumb in crumbs],
        message="Breadcrumbs retrieved successfully",
    )
