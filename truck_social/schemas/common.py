"""Common schemas (errors, pagination)."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Optional error code")
    extra: Optional[Dict[str, Any]] = Field(None, description="Extra context")


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    current_page: int
    total_pages: int
    total_items: int
