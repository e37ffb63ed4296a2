"""Data models for the Marknest document service."""

from .document import (
    BulkArchiveUpdate,
    BulkFavoriteUpdate,
    BulkUpdateResponse,
    DocumentCreate,
    DocumentUpdate,
    DocumentDuplicate,
    DocumentResponse,
    DocumentEnvelope,
    TrashedDocumentResponse,
    RecentDocumentsQuery,
)
from .version import (
    VersionResponse,
    VersionRestore,
    VersionListResponse,
    VersionEnvelope,
    VersionComparison,
    VersionComparisonEnvelope,
    AutoSaveCleanup,
    AutoSaveCleanupResponse,
    PaginationMeta,
)
from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderMove,
    FolderResponse,
    FolderEnvelope,
    FolderListResponse,
    FolderContentsResponse,
    FolderSearchResponse,
    BreadcrumbListResponse,
)
from .tag import TagCreate, TagResponse, TagListResponse
from .requests import (
    DocumentListResponse,
    TrashedDocumentListResponse,
    MessageResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "BulkArchiveUpdate",
    "BulkFavoriteUpdate",
    "BulkUpdateResponse",
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentDuplicate",
    "DocumentResponse",
    "DocumentEnvelope",
    "TrashedDocumentResponse",
    "RecentDocumentsQuery",
    "VersionResponse",
    "VersionRestore",
    "VersionListResponse",
    "VersionEnvelope",
    "VersionComparison",
    "VersionComparisonEnvelope",
    "AutoSaveCleanup",
    "AutoSaveCleanupResponse",
    "PaginationMeta",
    "FolderCreate",
    "FolderUpdate",
    "FolderMove",
    "FolderResponse",
    "FolderEnvelope",
    "FolderListResponse",
    "FolderContentsResponse",
    "FolderSearchResponse",
    "BreadcrumbListResponse",
    "TagCreate",
    "TagResponse",
    "TagListResponse",
    "DocumentListResponse",
    "TrashedDocumentListResponse",
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse",
]
