"""
Common API response models.
"""

from typing import Any

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")
    data: dict[str, Any] | None = Field(None, description="Response data")
    timestamp: str | None = Field(None, description="Response timestamp")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Health check message")
    version: str | None = Field(None, description="Service version")
    dependencies: dict[str, str] | None = Field(None, description="Dependency status")
