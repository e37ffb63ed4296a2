"""Folder data models."""

from typing import Optional, List, Literal
from pydantic import BaseModel, Field
from ..core.content import format_file_size
from .document import isoformat


class FolderCreate(BaseModel):
    """Model for creating a folder."""
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = Field(None, max_length=50)


class FolderUpdate(BaseModel):
    """Partial folder update; a new name must be unique among live siblings."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = Field(None, max_length=50)


class FolderMove(BaseModel):
    """Target parent for a move; null moves the folder to the root."""
    parent_id: Optional[str] = None


FolderDeleteAction = Literal["abort", "move_to_parent", "delete_all"]
ContentsSort = Literal["name", "modified", "created_at"]
SearchKind = Literal["all", "folders", "documents"]


class FolderResponse(BaseModel):
    id: str
    user_id: str
    parent_id: Optional[str]
    name: str
    slug: str
    description: Optional[str]
    path: str
    depth: int
    color: Optional[str]
    icon: Optional[str]
    created_at: str
    updated_at: str
    deleted_at: Optional[str] = None

    @classmethod
    def from_model(cls, folder):
        """Convert a FolderModel row to FolderResponse."""
        return cls(
            id=folder.id,
            user_id=folder.user_id,
            parent_id=folder.parent_id,
            name=folder.name,
            slug=folder.slug,
            description=folder.description,
            path=folder.path,
            depth=folder.depth,
            color=folder.color,
            icon=folder.icon,
            created_at=isoformat(folder.created_at),
            updated_at=isoformat(folder.updated_at),
            deleted_at=isoformat(folder.deleted_at),
        )


class FolderEnvelope(BaseModel):
    data: FolderResponse
    message: Optional[str] = None


class FolderListResponse(BaseModel):
    data: List[FolderResponse]


class Breadcrumb(BaseModel):
    id: str
    name: str
    path: str


class BreadcrumbListResponse(BaseModel):
    data: List[Breadcrumb]
    message: Optional[str] = None


class FolderItem(BaseModel):
    """A folder or a document as shown in a folder listing or search result."""
    id: str
    name: str
    type: Literal["folder", "document"]
    updated_at: str
    path: Optional[str] = None
    folder_id: Optional[str] = None
    document_count: Optional[int] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    size: Optional[str] = None
    favorite: Optional[bool] = None
    shared: Optional[bool] = None

    @classmethod
    def from_folder(cls, folder, document_count=None):
        return cls(
            id=folder.id,
            name=folder.name,
            type="folder",
            updated_at=isoformat(folder.updated_at),
            path=folder.path,
            document_count=document_count,
            color=folder.color,
            icon=folder.icon,
        )

    @classmethod
    def from_document(cls, doc, shared=None):
        return cls(
            id=doc.id,
            name=doc.title,
            type="document",
            updated_at=isoformat(doc.updated_at),
            folder_id=doc.folder_id,
            size=format_file_size(doc.size or 0),
            favorite=doc.is_favorite,
            shared=shared,
        )


class FolderContentsData(BaseModel):
    items: List[FolderItem]
    breadcrumbs: List[Breadcrumb]
    current_folder: Optional[FolderResponse] = None


class FolderContentsResponse(BaseModel):
    data: FolderContentsData
    message: Optional[str] = None


class FolderSearchResponse(BaseModel):
    data: List[FolderItem]
    message: Optional[str] = None
