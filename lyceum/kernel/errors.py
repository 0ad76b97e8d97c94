"""
Error taxonomy shared by the graph engine and its services.

NotFound, Validation, Conflict and CircularDependency are expected conditions
callers branch on. StorageError wraps lower-layer failures and is surfaced
opaquely; the engine never retries it.
"""

from typing import Dict, List, Optional


class LyceumError(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFoundError(LyceumError):
    """A referenced lecture, entity, learner or edge does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ValidationError(LyceumError):
    """Malformed input (importance out of range, missing field, unknown status)."""

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.invalid_fields = invalid_fields or {}

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.invalid_fields:
            body["invalid_fields"] = self.invalid_fields
        return body


class ConflictError(LyceumError):
    """Duplicate prerequisite edge; carries the id of the edge already stored."""

    status_code = 409
    code = "conflict"

    def __init__(self, message: str = "Resource conflict", existing_id: Optional[str] = None):
        super().__init__(message)
        self.existing_id = existing_id

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.existing_id is not None:
            body["existing_id"] = self.existing_id
        return body


class CircularDependencyError(LyceumError):
    """Adding the edge would close a cycle; ``path`` lists the labeled loop."""

    status_code = 400
    code = "circular_dependency"

    def __init__(
        self,
        message: str = "Circular dependency detected",
        path: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.path = path or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["path"] = self.path
        body["description"] = " -> ".join(self.path)
        return body


class StorageError(LyceumError):
    """Any failure of the storage layer, wrapped."""

    status_code = 500
    code = "storage_error"

    def __init__(self, message: str = "Database operation failed", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
