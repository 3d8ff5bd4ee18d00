from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SignInRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email", example="admin@example.com")
    password: str = Field(..., description="Account password", min_length=1)


class SignUpRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email", example="visitor@example.com")
    password: str = Field(..., description="At least 6 characters", min_length=6)


class UserOut(BaseModel):
    id: str = Field(..., description="User id issued by the auth provider")
    email: Optional[str] = Field(None, description="Account email")


class TokenResponse(BaseModel):
    """Bearer token returned after sign-in."""
    access_token: str = Field(..., description="Bearer token for the Authorization header")
    token_type: str = Field("bearer", description="Always 'bearer'")
    expires_in: Optional[int] = Field(None, description="Token lifetime in seconds", example=3600)
    user: UserOut = Field(..., description="Signed-in user")
    role: str = Field(..., description="Role resolved by the auth provider", example="admin")
    is_admin: bool = Field(..., description="Whether the user may edit the portfolio")


class SessionResponse(BaseModel):
    """Current session as seen by the server for the supplied token."""
    authenticated: bool = Field(..., description="Whether the token resolved to a user")
    user: Optional[UserOut] = Field(None, description="User, when authenticated")
    role: Optional[str] = Field(None, description="Role, when authenticated")
    is_admin: bool = Field(False, description="Whether the user may edit the portfolio")
