from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ContactMessageRequest(BaseModel):
    """Visitor contact form."""
    name: str = Field(..., description="Visitor name", example="Budi", min_length=1)
    email: str = Field(..., description="Visitor email, copied into the message as typed", example="budi@example.com", min_length=1)
    message: str = Field(..., description="Message body", example="Saya ingin membuat website sekolah.", min_length=1)


class WhatsAppLinkResponse(BaseModel):
    message: str = Field(..., description="Composed message text")
    url: str = Field(..., description="wa.me deep link with the message pre-filled")


class OrderLinkResponse(BaseModel):
    package_id: str = Field(..., description="Ordered package id")
    package_name: str = Field(..., description="Ordered package name", example="Landing Page")
    message: str = Field(..., description="Composed order message")
    url: Optional[str] = Field(None, description="wa.me deep link with the message pre-filled")
