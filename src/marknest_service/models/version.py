"""Document version data models."""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field
from .document import isoformat


class VersionAuthor(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class VersionResponse(BaseModel):
    """A stored version; content fields are omitted from list responses."""
    id: str
    document_id: str
    version_number: int
    title: str
    content: Optional[str] = None
    rendered_html: Optional[str] = None
    size: int
    word_count: int
    character_count: int
    change_summary: Optional[str]
    operation: str
    is_auto_save: bool
    created_at: str
    user: Optional[VersionAuthor] = None

    @classmethod
    def from_model(cls, version, author=None, include_content: bool = True):
        """Convert a DocumentVersionModel row (and optional UserModel) to VersionResponse."""
        return cls(
            id=version.id,
            document_id=version.document_id,
            version_number=version.version_number,
            title=version.title,
            content=version.content if include_content else None,
            rendered_html=version.rendered_html if include_content else None,
            size=version.size,
            word_count=version.word_count,
            character_count=version.character_count,
            change_summary=version.change_summary,
            operation=version.operation,
            is_auto_save=version.is_auto_save,
            created_at=isoformat(version.created_at),
            user=VersionAuthor(id=author.id, name=author.name, email=author.email) if author else None,
        )


class VersionRestore(BaseModel):
    """Body of a restore-to-version request."""
    change_summary: Optional[str] = Field(None, max_length=500)


class PaginationMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int


class VersionListResponse(BaseModel):
    data: List[VersionResponse]
    meta: PaginationMeta


class VersionEnvelope(BaseModel):
    data: VersionResponse


class VersionSide(BaseModel):
    version_number: int
    created_at: str
    title: str


class VersionComparison(BaseModel):
    """Result of comparing two versions."""
    title_changed: bool
    content_changed: bool
    word_count_diff: int
    character_count_diff: int
    old_version: VersionSide
    new_version: VersionSide

    @classmethod
    def from_dict(cls, diff: Dict[str, Any]):
        return cls(
            title_changed=diff["title_changed"],
            content_changed=diff["content_changed"],
            word_count_diff=diff["word_count_diff"],
            character_count_diff=diff["character_count_diff"],
            old_version=VersionSide(
                version_number=diff["old_version"]["version_number"],
                created_at=isoformat(diff["old_version"]["created_at"]),
                title=diff["old_version"]["title"],
            ),
            new_version=VersionSide(
                version_number=diff["new_version"]["version_number"],
                created_at=isoformat(diff["new_version"]["created_at"]),
                title=diff["new_version"]["title"],
            ),
        )


class VersionComparisonEnvelope(BaseModel):
    data: VersionComparison


class AutoSaveCleanupResponse(BaseModel):
    deleted: int
    kept: int
    message: str


class AutoSaveCleanup(BaseModel):
    """Body of an auto-save cleanup request; keep defaults to the configured count."""
    keep: Optional[int] = None
