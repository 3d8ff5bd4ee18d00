from __future__ import annotations

from pydantic import BaseModel, Field

from portfolio.application.dtos.portfolio_dto import SnapshotResponse


class StoredImage(BaseModel):
    """Metadata for an uploaded portfolio image."""
    slot: str = Field(..., description="Field the image was attached to", example="profile")
    path: str = Field(..., description="Storage path of the image file", example="profile/3f2a.png")
    url: str = Field(..., description="Public URL saved into the portfolio", example="/media/profile/3f2a.png")
    width: int = Field(..., description="Width of the image in pixels", example=512, gt=0)
    height: int = Field(..., description="Height of the image in pixels", example=512, gt=0)
    content_type: str = Field(..., description="MIME type of the image", example="image/png")
    size: int = Field(..., description="Size of the image file in bytes", example=20480, ge=0)


class UploadImageResponse(BaseModel):
    """Response model for a successful image upload."""
    image: StoredImage = Field(..., description="Metadata of the uploaded image")
    portfolio: SnapshotResponse = Field(..., description="Portfolio after the image was attached")
