"""Document data models."""

from datetime import datetime
from typing import List, Dict, Any, Optional, Literal
from pydantic import BaseModel, Field
from ..infrastructure.database.models import ensure_utc

DocumentStatus = Literal["draft", "published"]


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a stored timestamp as UTC ISO-8601."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


class DocumentCreate(BaseModel):
    """Model for creating a new document."""
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    folder_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: DocumentStatus = "draft"


class DocumentUpdate(BaseModel):
    """Model for a partial document update.

    Only fields present in the request body are applied; see
    DocumentManager.update_document for how absent and null fields differ.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    folder_id: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[DocumentStatus] = None
    is_auto_save: Optional[bool] = None
    change_summary: Optional[str] = Field(None, max_length=500)


class DocumentDuplicate(BaseModel):
    """Options for duplicating a document."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    folder_id: Optional[str] = None


class RecentDocumentsQuery(BaseModel):
    """Filters for the recent documents listing."""
    page: int = Field(default=1, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1, le=100)
    search: Optional[str] = Field(default=None, max_length=255)
    sort_by: Literal["updated_at", "title", "word_count", "created_at"] = "updated_at"
    sort_direction: Literal["asc", "desc"] = "desc"


class VersionSummary(BaseModel):
    """Short version entry embedded in a document response."""
    id: str
    version_number: int
    title: str
    change_summary: Optional[str]
    operation: str
    is_auto_save: bool
    created_at: str


class DocumentResponse(BaseModel):
    """API response model for a single document."""
    id: str
    user_id: str
    title: str
    slug: str
    content: str
    rendered_html: Optional[str]
    folder_id: Optional[str]
    size: int
    word_count: int
    character_count: int
    version_number: int
    tags: List[str]
    metadata: Dict[str, Any]
    status: str
    is_favorite: bool
    is_archived: bool
    is_trashed: bool
    created_at: str
    updated_at: str
    last_accessed_at: Optional[str] = None
    deleted_at: Optional[str] = None
    recent_versions: Optional[List[VersionSummary]] = None

    @classmethod
    def from_model(cls, doc, recent_versions=None):
        """Convert a DocumentModel row to DocumentResponse."""
        return cls(
            id=doc.id,
            user_id=doc.user_id,
            title=doc.title,
            slug=doc.slug,
            content=doc.content,
            rendered_html=doc.rendered_html,
            folder_id=doc.folder_id,
            size=doc.size,
            word_count=doc.word_count,
            character_count=doc.character_count,
            version_number=doc.version_number,
            tags=doc.tags or [],
            metadata=doc.doc_metadata or {},
            status=doc.status,
            is_favorite=doc.is_favorite,
            is_archived=doc.is_archived,
            is_trashed=doc.is_trashed,
            created_at=isoformat(doc.created_at),
            updated_at=isoformat(doc.updated_at),
            last_accessed_at=isoformat(doc.last_accessed_at),
            deleted_at=isoformat(doc.deleted_at),
            recent_versions=None if recent_versions is None else [
                VersionSummary(
                    id=v.id,
                    version_number=v.version_number,
                    title=v.title,
                    change_summary=v.change_summary,
                    operation=v.operation,
                    is_auto_save=v.is_auto_save,
                    created_at=isoformat(v.created_at),
                )
                for v in recent_versions
            ],
        )


class TrashedDocumentResponse(DocumentResponse):
    """Trashed document with the time left before the sweeper purges it."""
    days_until_permanent_deletion: int = 0


class DocumentEnvelope(BaseModel):
    data: DocumentResponse
    message: Optional[str] = None


class BulkFavoriteUpdate(BaseModel):
    """Set the favorite flag on several documents at once."""
    document_ids: List[str] = Field(..., min_length=1)
    is_favorite: bool


class BulkArchiveUpdate(BaseModel):
    document_ids: List[str] = Field(..., min_length=1)
    is_archived: bool


class BulkUpdateResult(BaseModel):
    updated_count: int
    document_ids: List[str]
    is_favorite: Optional[bool] = None
    is_archived: Optional[bool] = None


class BulkUpdateResponse(BaseModel):
    data: BulkUpdateResult
    message: str
