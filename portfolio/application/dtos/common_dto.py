"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Optional


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: str = Field(..., description="Error message describing what went wrong")


class BatchSaveErrorResponse(ErrorResponse):
    """Returned when a whole-draft save only partly succeeded."""
    succeeded: list[str] = Field(default_factory=list, description="Parts that were saved", example=["profile", "skills"])
    failed: dict[str, str] = Field(
        default_factory=dict,
        description="Parts that were not saved, with the reason",
        example={"packages": "Supabase packages upsert failed: timeout"},
    )
    unknown: list[str] = Field(
        default_factory=list,
        description="Parts whose write timed out and may or may not have landed",
        example=["projects"],
    )


class SuccessResponse(BaseModel):
    """Standard success response model."""
    ok: bool = Field(True, description="Indicates the operation was successful")
    message: Optional[str] = Field(None, description="Optional success message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", example="healthy")


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", example="ok")
    service: str = Field(..., description="Service name", example="portfolio-backend")
    version: str = Field(..., description="API version", example="0.1.0")
