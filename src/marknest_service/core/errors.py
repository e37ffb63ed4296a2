"""Domain exceptions raised by the managers and mapped to HTTP responses in main.py."""

from typing import Dict, List, Optional


class MarknestError(Exception):
    """Base class for all service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarknestError):
    """Missing or invalid request fields, reported per field."""

    status_code = 422

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.errors = errors or {}


class NotFoundError(MarknestError):
    """Referenced row does not exist or is not owned by the requesting user."""

    status_code = 404

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class TransactionFailure(MarknestError):
    """A multi-row mutation failed and was rolled back in full."""

    status_code = 500


class ConflictError(TransactionFailure):
    """A concurrent write claimed a unique slot that is already taken."""

    status_code = 409


class VersionConflictError(ConflictError):
    """Two writers allocated the same version number for one document."""
