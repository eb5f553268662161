"""Response envelope schemas for the API."""

from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Envelope carried by every response."""

    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(default="", description="Human-readable outcome")
    data: dict[str, Any] | None = Field(default=None, description="Operation payload")
    errors: list[dict[str, Any]] | None = Field(default=None, description="Field-level violations")


def ok(message: str = "", data: dict[str, Any] | None = None) -> ApiResponse:
    """Build a success envelope."""
    return ApiResponse(success=True, message=message, data=data)
