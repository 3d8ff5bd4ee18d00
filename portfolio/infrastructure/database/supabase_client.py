from __future__ import annotations

import logging
import os

from supabase import Client, create_client

from portfolio.domain.entities.account import ROLE_ADMIN, ROLE_USER, AuthSession, UserInfo
from portfolio.domain.errors import InvalidCredentials, PersistenceError, ValidationError
from portfolio.infrastructure.auth.local_authority import LocalAuthority

logger = logging.getLogger(__name__)


def supabase_disabled() -> bool:
    return os.getenv("SUPABASE_DISABLED", "0") == "1"


class SupabaseAuthAdapter:
    """Credential authority backed by Supabase Auth.

    When SUPABASE_DISABLED=1 (or no project is configured) every call is
    delegated to :class:`LocalAuthority`.
    """

    def __init__(self) -> None:
        self.disabled = supabase_disabled()
        self.url = os.getenv("SUPABASE_URL")
        self.key = os.getenv("SUPABASE_ANON_KEY")
        self._client: Client | None = None
        self._local: LocalAuthority | None = None
        if not self.disabled and self.url and self.key:
            self._client = create_client(self.url, self.key)
        else:
            logger.debug("Supabase auth unavailable, using local authority")
            self._local = LocalAuthority()

    def sign_in(self, email: str, password: str) -> AuthSession:
        if self._local is not None:
            return self._local.sign_in(email, password)
        try:  # pragma: no cover - network
            res = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:  # pragma: no cover - network
            raise InvalidCredentials(str(exc)) from exc
        session = res.session  # pragma: no cover - network
        if session is None or res.user is None:  # pragma: no cover - network
            raise InvalidCredentials("Invalid login credentials")
        return AuthSession(  # pragma: no cover - network
            access_token=session.access_token,
            user=UserInfo(id=res.user.id, email=res.user.email),
            expires_in=session.expires_in,
        )

    def sign_up(self, email: str, password: str) -> UserInfo:
        if self._local is not None:
            return self._local.sign_up(email, password)
        try:  # pragma: no cover - network
            res = self._client.auth.sign_up({"email": email, "password": password})
        except Exception as exc:  # pragma: no cover - network
            raise ValidationError(f"Sign-up rejected: {exc}") from exc
        if res.user is None:  # pragma: no cover - network
            raise ValidationError("Sign-up rejected")
        return UserInfo(id=res.user.id, email=res.user.email)  # pragma: no cover - network

    def validate_token(self, token: str) -> UserInfo:
        if self._local is not None:
            return self._local.validate_token(token)
        if not token:
            raise ValueError("Missing access token")
        try:  # pragma: no cover - network
            res = self._client.auth.get_user(token)
            user = res.user if res else None
        except Exception as exc:  # pragma: no cover - network
            raise ValueError(f"Invalid access token: {exc}") from exc
        if not user:  # pragma: no cover - network
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)  # pragma: no cover - network

    def get_role(self, user: UserInfo) -> str:
        if self._local is not None:
            return self._local.get_role(user)
        try:  # pragma: no cover - network
            res = self._client.rpc("has_role", {"_user_id": user.id, "_role": ROLE_ADMIN}).execute()
        except Exception as exc:  # pragma: no cover - network
            raise PersistenceError(f"Supabase role lookup failed: {exc}") from exc
        return ROLE_ADMIN if res.data is True else ROLE_USER  # pragma: no cover - network

    def sign_out(self, token: str) -> None:
        if self._local is not None:
            self._local.sign_out(token)
            return
        try:  # pragma: no cover - network
            self._client.auth.admin.sign_out(token)
        except Exception as exc:  # pragma: no cover - network
            raise PersistenceError(f"Supabase sign-out failed: {exc}") from exc


# Simple reusable singleton client getter for repositories/storage
_CLIENT_SINGLETON: Client | None = None


def get_supabase_client(access_token: str | None = None) -> Client | None:
    """Anonymous singleton client, or a fresh client acting as ``access_token``.

    Writes go through the token-bound client so row-level security sees the
    signed-in admin.
    """
    global _CLIENT_SINGLETON
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    if supabase_disabled() or not url or not key:
        return None
    if access_token:  # pragma: no cover - network
        client = create_client(url, key)
        client.postgrest.auth(access_token)
        return client
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(url, key)
    return _CLIENT_SINGLETON
