"""Document version history endpoints."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.document import DocumentEnvelope, DocumentResponse
from ...models.version import (
    VersionResponse,
    VersionRestore,
    VersionListResponse,
    VersionEnvelope,
    VersionComparison,
    VersionComparisonEnvelope,
    AutoSaveCleanup,
    AutoSaveCleanupResponse,
)
from ...core.version_manager import VersionManager
from ...api.dependencies import get_user_id

router = APIRouter(prefix="/api/documents/{document_id}/versions", tags=["versions"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
version_manager: VersionManager = None


def set_managers(version_mgr: VersionManager):
    """Set the manager instances (called from main.py)."""
    globals()['version_manager'] = version_mgr


@router.get(
    "",
    response_model=VersionListResponse,
    summary="List Versions",
    description="""
List a document's versions, newest first, with their authors.

Content is omitted from list entries; fetch a single version for it.

**Query Parameters**:
- `page`: 1-based page number (default: 1)
- `per_page`: Page size (default: 10, max: 50)

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Versions retrieved successfully"},
        404: {"description": "Document not found or access denied"},
    }
)
async def get_versions(
    document_id: str,
    user_id: str = Depends(get_user_id),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=50),
):
    """List document versions."""
    result = await version_manager.get_versions(document_id, user_id, page, per_page)
    return VersionListResponse(
        data=[
            VersionResponse.from_model(version, author, include_content=False)
            for version, author in result.items
        ],
        meta=result.meta(),
    )


@router.post(
    "/cleanup-auto-saves",
    response_model=AutoSaveCleanupResponse,
    summary="Clean Up Auto-Saves",
    description="""
Delete auto-save versions beyond the newest `keep` (default 5).

Manual saves are never touched. Version numbers of the remaining versions
do not change, so the history can show gaps afterwards.

**Request Example**:
```json
{"keep": 3}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Auto-saves pruned"},
        404: {"description": "Document not found or access denied"},
        422: {"description": "Invalid keep count"},
    }
)
async def cleanup_auto_saves(
    document_id: str,
    body: Optional[AutoSaveCleanup] = None,
    user_id: str = Depends(get_user_id),
):
    """Prune old auto-save versions."""
    keep = body.keep if body and body.keep is not None else version_manager.config.auto_save_keep_count
    deleted = await version_manager.cleanup_auto_saves(document_id, user_id, keep)
    return AutoSaveCleanupResponse(
        deleted=deleted,
        kept=keep,
        message=f"Deleted {deleted} old auto-save versions",
    )


@router.get(
    "/{version_id}",
    response_model=VersionEnvelope,
    summary="Get Version",
    description="""
Retrieve one version of a document, including its content and author.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Version retrieved successfully"},
        404: {"description": "Document or version not found"},
    }
)
async def get_version(document_id: str, version_id: str, user_id: str = Depends(get_user_id)):
    """Get a single version."""
    version, author = await version_manager.get_version(document_id, version_id, user_id)
    return VersionEnvelope(data=VersionResponse.from_model(version, author))


@router.post(
    "/{version_id}/restore",
    response_model=DocumentEnvelope,
    summary="Restore Version",
    description="""
Make a past version current again.

The document takes the version's title and content, and a new version is
appended with number max+1 and operation `restore`. Nothing is removed
from the history.

**Request Example**:
```json
{"change_summary": "Back to the reviewed draft"}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Document restored to the version"},
        404: {"description": "Document or version not found"},
        409: {"description": "Concurrent edit allocated the same version number"},
    }
)
async def restore_version(
    document_id: str,
    version_id: str,
    body: Optional[VersionRestore] = None,
    user_id: str = Depends(get_user_id),
):
    """Restore document to a version."""
    document = await version_manager.restore_version(
        document_id,
        version_id,
        user_id,
        body.change_summary if body else None,
    )
    return DocumentEnvelope(
        data=DocumentResponse.from_model(document),
        message="Document restored to selected version",
    )


@router.get(
    "/{version_id}/diff",
    response_model=VersionComparisonEnvelope,
    summary="Compare Versions",
    description="""
Compare a version against another version of the same document.

The `against` version (default: the closest earlier version) is the old
side, `{version_id}` the new side. Deltas are new minus old.

**Response Example**:
```json
{
  "data": {
    "title_changed": false,
    "content_changed": true,
    "word_count_diff": 12,
    "character_count_diff": 64,
    "old_version": {"version_number": 3, "created_at": "...", "title": "Notes"},
    "new_version": {"version_number": 4, "created_at": "...", "title": "Notes"}
  }
}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Comparison computed"},
        404: {"description": "Document or version not found"},
        422: {"description": "No earlier version to compare against"},
    }
)
async def diff_version(
    document_id: str,
    version_id: str,
    against: Optional[str] = None,
    user_id: str = Depends(get_user_id),
):
    """Compare two versions."""
    diff = await version_manager.diff_versions(document_id, version_id, user_id, against)
    return VersionComparisonEnvelope(data=VersionComparison.from_dict(diff))
