"""Shared request and response models for API endpoints."""

from typing import List, Dict, Optional
from pydantic import BaseModel, Field
from .document import DocumentResponse, TrashedDocumentResponse
from .version import PaginationMeta


class DocumentListResponse(BaseModel):
    """Paginated list of documents."""
    data: List[DocumentResponse]
    meta: PaginationMeta


class TrashedDocumentListResponse(BaseModel):
    """Paginated list of trashed documents."""
    data: List[TrashedDocumentResponse]
    meta: PaginationMeta


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""
    message: str
    errors: Dict[str, List[str]] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    service: str
    version: str
    database_connected: bool
    scheduler_running: Optional[bool] = None
    cleanup_in_progress: Optional[bool] = None
