from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_USER = "user"


@dataclass(frozen=True, slots=True)
class UserInfo:
    id: str  # user id issued by the authority
    email: str | None


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Token pair handed out by the authority after a successful sign-in."""

    access_token: str
    user: UserInfo
    expires_in: int | None = None  # seconds


@dataclass(frozen=True, slots=True)
class Session:
    user: UserInfo
    role: str
    access_token: str
    expires_in: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
