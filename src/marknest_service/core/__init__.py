"""Business logic for documents, versions, folders and trash retention."""

from .errors import (
    MarknestError,
    ValidationError,
    NotFoundError,
    TransactionFailure,
    ConflictError,
    VersionConflictError,
)

__all__ = [
    "MarknestError",
    "ValidationError",
    "NotFoundError",
    "TransactionFailure",
    "ConflictError",
    "VersionConflictError",
]
