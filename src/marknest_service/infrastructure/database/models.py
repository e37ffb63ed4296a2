"""SQLAlchemy ORM models for documents, folders and version history."""

from datetime import datetime, timezone
from uuid import uuid4
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Unique (document_id, version_number); named so conflicts can be told apart
VERSION_CONSTRAINT = "unq_document_versions_doc_version"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id() -> str:
    return str(uuid4())


class UserModel(Base):
    """Local mirror of a gateway-authenticated user."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<UserModel(id={self.id}, email={self.email})>"


class FolderModel(Base):
    """Folder tree node; parent_id is null for root folders."""
    __tablename__ = "folders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    path = Column(String(1024), nullable=False)
    depth = Column(Integer, nullable=False, default=0)
    color = Column(String(7), nullable=True)
    icon = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<FolderModel(id={self.id}, name={self.name})>"


class DocumentModel(Base):
    """Current state of a document; history lives in DocumentVersionModel."""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    folder_id = Column(String(36), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    rendered_html = Column(Text, nullable=True)
    size = Column(Integer, nullable=False, default=0)
    word_count = Column(Integer, nullable=False, default=0)
    character_count = Column(Integer, nullable=False, default=0)
    version_number = Column(Integer, nullable=False, default=1)
    tags = Column(JSON, nullable=False, default=list)
    doc_metadata = Column(JSON, nullable=False, default=dict)  # "metadata" is reserved by SQLAlchemy
    status = Column(String(20), nullable=False, default="draft", index=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    is_trashed = Column(Boolean, nullable=False, default=False)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return f"<DocumentModel(id={self.id}, title={self.title})>"


class DocumentVersionModel(Base):
    """Immutable snapshot of a document at one point of its history."""
    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name=VERSION_CONSTRAINT),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    rendered_html = Column(Text, nullable=True)
    size = Column(Integer, nullable=False, default=0)
    word_count = Column(Integer, nullable=False, default=0)
    character_count = Column(Integer, nullable=False, default=0)
    change_summary = Column(Text, nullable=True)
    operation = Column(String(20), nullable=False, default="update")
    is_auto_save = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<DocumentVersionModel(document_id={self.document_id}, version={self.version_number})>"


class DocumentShareModel(Base):
    """Public share link for a document."""
    __tablename__ = "document_shares"

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    share_token = Column(String(64), nullable=False, unique=True)
    access_level = Column(String(20), nullable=False, default="read")
    expires_at = Column(DateTime(timezone=True), nullable=True)
    view_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class DocumentCollaboratorModel(Base):
    """Another user invited to a document."""
    __tablename__ = "document_collaborators"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="unq_document_collaborators_doc_user"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invited_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(20), nullable=False, default="view")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class MediaFileModel(Base):
    """Uploaded file metadata; the bytes live in external storage."""
    __tablename__ = "media_files"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=True)
    size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class DocumentMediaModel(Base):
    """Attachment link between a document and a media file."""
    __tablename__ = "document_media"
    __table_args__ = (
        UniqueConstraint("document_id", "media_file_id", name="unq_document_media_doc_media"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    media_file_id = Column(String(36), ForeignKey("media_files.id", ondelete="CASCADE"), nullable=False, index=True)
    usage_context = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class TagModel(Base):
    """Per-user tag, created on demand from document tag names."""
    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="unq_tags_user_slug"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class DocumentTagModel(Base):
    __tablename__ = "document_tag"
    __table_args__ = (
        UniqueConstraint("document_id", "tag_id", name="unq_document_tag"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(String(36), ForeignKey("tags.id", ondelete="CASCADE"), nullable=False, index=True)


class TaskLockModel(Base):
    """Named mutex with expiry, used to keep scheduled tasks from overlapping."""
    __tablename__ = "task_locks"

    name = Column(String(100), primary_key=True)
    owner = Column(String(64), nullable=False)
    acquired_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<TaskLockModel(name={self.name}, owner={self.owner})>"
