"""Document CRUD and trash endpoints."""

import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from ...models.document import (
    BulkArchiveUpdate,
    BulkFavoriteUpdate,
    BulkUpdateResponse,
    BulkUpdateResult,
    DocumentCreate,
    DocumentUpdate,
    DocumentDuplicate,
    DocumentResponse,
    DocumentEnvelope,
    TrashedDocumentResponse,
    RecentDocumentsQuery,
)
from ...models.requests import DocumentListResponse, TrashedDocumentListResponse, MessageResponse
from ...core.document_manager import DocumentManager
from ...api.dependencies import get_user_id

router = APIRouter(prefix="/api/documents", tags=["documents"])
logger = logging.getLogger(__name__)

# Set by main.py after creating the app
doc_manager: DocumentManager = None


def set_managers(doc_mgr: DocumentManager):
    """Set the manager instances (called from main.py)."""
    globals()['doc_manager'] = doc_mgr


@router.post(
    "",
    response_model=DocumentEnvelope,
    status_code=201,
    summary="Create Document",
    description="""
Create a new Markdown document together with its first version.

**Workflow**:
1. Validate document data (title required, status draft/published)
2. Verify folder_id, if given, is a live folder of the caller
3. Render Markdown to sanitized HTML and compute size/word/character counts
4. Insert the document, set its slug to its own id
5. Insert version 1 (operation `create`, summary "Initial version")
6. Return the created document

All steps run in one transaction; a failed folder check writes nothing.

**Request Example**:
```json
{
  "title": "Meeting notes",
  "content": "# Agenda\\n\\n- Budget review",
  "folder_id": null,
  "tags": ["meetings"],
  "status": "draft"
}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        201: {"description": "Document created successfully"},
        404: {"description": "Folder not found or access denied"},
        422: {"description": "Invalid document data"},
        500: {"description": "Internal server error during document creation"}
    }
)
async def create_document(doc_data: DocumentCreate, user_id: str = Depends(get_user_id)):
    """Create a new document."""
    document = await doc_manager.create_document(user_id, doc_data)
    return DocumentEnvelope(data=DocumentResponse.from_model(document), message="Document created successfully")


@router.get(
    "/recent",
    response_model=DocumentListResponse,
    summary="Recent Documents",
    description="""
List the caller's live, non-archived documents.

**Query Parameters**:
- `page`: 1-based page number (default: 1)
- `per_page`: Page size (default: 9, max: 100)
- `search`: Case-insensitive match on title or content
- `sort_by`: `updated_at` (default), `title`, `word_count` or `created_at`
- `sort_direction`: `desc` (default) or `asc`

**Authorization**: Required (X-User-ID header)
**User Isolation**: Only returns documents owned by the caller
    """,
    responses={
        200: {"description": "Document list retrieved successfully"},
        422: {"description": "Invalid query parameters"},
    }
)
async def get_recent_documents(
    user_id: str = Depends(get_user_id),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=255),
    sort_by: Literal["updated_at", "title", "word_count", "created_at"] = "updated_at",
    sort_direction: Literal["asc", "desc"] = "desc",
):
    """List recent documents."""
    result = await doc_manager.get_recent_documents(
        user_id,
        RecentDocumentsQuery(
            page=page,
            per_page=per_page,
            search=search,
            sort_by=sort_by,
            sort_direction=sort_direction,
        ),
    )
    return DocumentListResponse(
        data=[DocumentResponse.from_model(doc) for doc in result.items],
        meta=result.meta(),
    )


@router.get(
    "/trash",
    response_model=TrashedDocumentListResponse,
    summary="Trashed Documents",
    description="""
List the caller's trashed documents, most recently trashed first.

Each entry carries `days_until_permanent_deletion`: whole days left before
the daily cleanup purges it (never negative).

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Trash retrieved successfully"},
        422: {"description": "Invalid query parameters"},
    }
)
async def get_trashed_documents(
    user_id: str = Depends(get_user_id),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
):
    """List trashed documents."""
    result, days_left = await doc_manager.get_trashed_documents(user_id, page, per_page)
    return TrashedDocumentListResponse(
        data=[
            TrashedDocumentResponse(
                **DocumentResponse.from_model(doc).model_dump(),
                days_until_permanent_deletion=days,
            )
            for doc, days in zip(result.items, days_left)
        ],
        meta=result.meta(),
    )


@router.post(
    "/bulk/favorite",
    response_model=BulkUpdateResponse,
    response_model_exclude_none=True,
    summary="Bulk Set Favorite",
    description="""
Add several documents to the caller's favorites, or remove them.

Ids that are not live documents of the caller are ignored. If none of the
ids matches, nothing is written and 404 is returned.

**Request Example**:
```json
{"document_ids": ["3f0c...", "8a21..."], "is_favorite": true}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Documents updated"},
        404: {"description": "No document matched"},
        422: {"description": "Invalid request"},
    }
)
async def bulk_set_favorite(data: BulkFavoriteUpdate, user_id: str = Depends(get_user_id)):
    """Set favorite on several documents."""
    count = await doc_manager.set_favorite(user_id, data.document_ids, data.is_favorite)
    message = (
        f"Added {count} document(s) to favorites" if data.is_favorite
        else f"Removed {count} document(s) from favorites"
    )
    return BulkUpdateResponse(
        data=BulkUpdateResult(updated_count=count, document_ids=data.document_ids, is_favorite=data.is_favorite),
        message=message,
    )


@router.post(
    "/bulk/archive",
    response_model=BulkUpdateResponse,
    response_model_exclude_none=True,
    summary="Bulk Set Archived",
    description="""
Archive or unarchive several documents. Archived documents are left out of
`GET /api/documents/recent`.

Ids that are not live documents of the caller are ignored. If none of the
ids matches, nothing is written and 404 is returned.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Documents updated"},
        404: {"description": "No document matched"},
        422: {"description": "Invalid request"},
    }
)
async def bulk_set_archived(data: BulkArchiveUpdate, user_id: str = Depends(get_user_id)):
    """Set archived on several documents."""
    count = await doc_manager.set_archived(user_id, data.document_ids, data.is_archived)
    message = f"Archived {count} document(s)" if data.is_archived else f"Unarchived {count} document(s)"
    return BulkUpdateResponse(
        data=BulkUpdateResult(updated_count=count, document_ids=data.document_ids, is_archived=data.is_archived),
        message=message,
    )


@router.get(
    "/{document_id}",
    response_model=DocumentEnvelope,
    summary="Get Document",
    description="""
Retrieve a live document with its most recent versions.

Updates the document's `last_accessed_at`.

**Authorization**: Required (X-User-ID header)
**User Isolation**: Returns 404 if the document belongs to a different user or is trashed
    """,
    responses={
        200: {"description": "Document retrieved successfully"},
        404: {"description": "Document not found or access denied"},
    }
)
async def get_document(document_id: str, user_id: str = Depends(get_user_id)):
    """Get document by ID."""
    document, recent = await doc_manager.get_document(document_id, user_id)
    return DocumentEnvelope(data=DocumentResponse.from_model(document, recent_versions=recent))


@router.put(
    "/{document_id}",
    response_model=DocumentEnvelope,
    summary="Update Document",
    description="""
Partially update a document.

**Workflow**:
1. Lock the document row for the rest of the transaction
2. Re-validate folder ownership if `folder_id` is present (null moves to the root)
3. Apply only the fields present in the body
4. If `title` or `content` is present, append version max+1 with
   operation `update`, the given `change_summary` and `is_auto_save`
5. Return the updated document

Tags or status alone never create a version.

**Request Example**:
```json
{
  "content": "# Agenda\\n\\n- Budget review\\n- Hiring",
  "is_auto_save": true
}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Document updated successfully"},
        404: {"description": "Document or folder not found"},
        409: {"description": "Concurrent edit allocated the same version number"},
        422: {"description": "Invalid update data"},
    }
)
async def update_document(document_id: str, updates: DocumentUpdate, user_id: str = Depends(get_user_id)):
    """Update document."""
    document = await doc_manager.update_document(document_id, user_id, updates)
    return DocumentEnvelope(data=DocumentResponse.from_model(document), message="Document updated successfully")


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    summary="Trash Document",
    description="""
Move a document to the trash.

The document stays restorable for the document retention window (30 days
by default) and is then purged by the scheduled cleanup.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Document moved to trash"},
        404: {"description": "Document not found or already trashed"},
    }
)
async def delete_document(document_id: str, user_id: str = Depends(get_user_id)):
    """Soft-delete document."""
    await doc_manager.delete_document(document_id, user_id)
    return MessageResponse(message="Document moved to trash")


@router.post(
    "/{document_id}/restore",
    response_model=DocumentEnvelope,
    summary="Restore Document",
    description="""
Restore a trashed document. A document whose folder is trashed or gone is
restored to the root.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Document restored"},
        404: {"description": "Document not found in trash"},
    }
)
async def restore_document(document_id: str, user_id: str = Depends(get_user_id)):
    """Restore document from trash."""
    document = await doc_manager.restore_document(document_id, user_id)
    return DocumentEnvelope(data=DocumentResponse.from_model(document), message="Document restored successfully")


@router.delete(
    "/{document_id}/force",
    response_model=MessageResponse,
    summary="Permanently Delete Document",
    description="""
Permanently delete a trashed document with its versions, shares,
collaborators, media attachments and tag links.

**Warning**: This operation is irreversible
**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Document permanently deleted"},
        404: {"description": "Document not found in trash"},
    }
)
async def force_delete_document(document_id: str, user_id: str = Depends(get_user_id)):
    """Permanently delete a trashed document."""
    await doc_manager.force_delete_document(document_id, user_id)
    return MessageResponse(message="Document permanently deleted")


@router.post(
    "/{document_id}/duplicate",
    response_model=DocumentEnvelope,
    status_code=201,
    summary="Duplicate Document",
    description="""
Copy a document into a new draft.

The copy is titled "Copy of <title>" unless a title is given, lands in the
given folder or the source's folder, has favorite/archived flags reset and
starts its own history at version 1.

**Request Example**:
```json
{"title": "Meeting notes (template)", "folder_id": null}
```

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        201: {"description": "Document duplicated"},
        404: {"description": "Document or folder not found"},
        422: {"description": "Invalid duplicate options"},
    }
)
async def duplicate_document(
    document_id: str,
    options: Optional[DocumentDuplicate] = None,
    user_id: str = Depends(get_user_id),
):
    """Duplicate document."""
    duplicate = await doc_manager.duplicate_document(document_id, user_id, options or DocumentDuplicate())
    return DocumentEnvelope(data=DocumentResponse.from_model(duplicate), message="Document duplicated successfully")


@router.post(
    "/{document_id}/favorite",
    response_model=DocumentEnvelope,
    summary="Toggle Favorite",
    responses={
        200: {"description": "Favorite flag flipped"},
        404: {"description": "Document not found or access denied"},
    }
)
async def toggle_favorite(document_id: str, user_id: str = Depends(get_user_id)):
    """Flip the favorite flag of a document."""
    document = await doc_manager.toggle_favorite(document_id, user_id)
    message = "Document added to favorites" if document.is_favorite else "Document removed from favorites"
    return DocumentEnvelope(data=DocumentResponse.from_model(document), message=message)


@router.post(
    "/{document_id}/archive",
    response_model=DocumentEnvelope,
    summary="Toggle Archive",
    description="""
Archive a document, or unarchive it if it already is. Archived documents
stay in their folder but are left out of the recent documents list.

**Authorization**: Required (X-User-ID header)
    """,
    responses={
        200: {"description": "Archive flag flipped"},
        404: {"description": "Document not found or access denied"},
    }
)
async def toggle_archive(document_id: str, user_id: str = Depends(get_user_id)):
    """Flip the archived flag of a document."""
    document = await doc_manager.toggle_archive(document_id, user_id)
    message = "Document archived" if document.is_archived else "Document unarchived"
    return DocumentEnvelope(data=DocumentResponse.from_model(document), message=message)
