"""
Common schema types used across the API.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: Optional[str] = None
    request_id: Optional[str] = None
    invalid_fields: Optional[Dict[str, str]] = None
    existing_id: Optional[str] = None
    path: Optional[List[str]] = None
    description: Optional[str] = None


class SuccessResponse(BaseModel):
    """Standard success response."""

    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
