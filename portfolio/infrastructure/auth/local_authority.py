"""Credential authority used when Supabase is disabled.

The admin account comes from ``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``. Sign-ups
are kept in process memory with role ``user``. Tokens are HS256 JWTs; the
role is always looked up from the account table, never trusted from the
token's claims.
"""
from __future__ import annotations

import logging
import os
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from portfolio.domain.entities.account import ROLE_ADMIN, ROLE_USER, AuthSession, UserInfo
from portfolio.domain.errors import InvalidCredentials, ValidationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 6

# used when AUTH_SECRET_KEY is unset; tokens then die with the process
_PROCESS_SECRET = secrets.token_urlsafe(32)


@dataclass
class _Account:
    id: str
    email: str
    password_hash: bytes
    role: str


# module-level account table for disabled mode, keyed by lower-cased email
_ACCOUNTS: dict[str, _Account] = {}
_REVOKED: set[str] = set()
_SEEDED: tuple[str, str] | None = None


def reset_local_accounts() -> None:
    global _SEEDED
    _ACCOUNTS.clear()
    _REVOKED.clear()
    _SEEDED = None


class LocalAuthority:
    def __init__(self) -> None:
        self.secret = os.getenv("AUTH_SECRET_KEY") or _PROCESS_SECRET
        self.expire_minutes = int(os.getenv("AUTH_TOKEN_EXPIRE_MINUTES", "60"))
        self.rounds = int(os.getenv("BCRYPT_ROUNDS", "12"))
        self._seed_admin()

    def _seed_admin(self) -> None:
        global _SEEDED
        email = os.getenv("ADMIN_EMAIL")
        password = os.getenv("ADMIN_PASSWORD")
        if not email or not password:
            return
        key = email.lower()
        if _SEEDED == (email, password) and key in _ACCOUNTS:
            return
        existing = _ACCOUNTS.get(key)
        _ACCOUNTS[key] = _Account(
            id=existing.id if existing else str(uuid.uuid4()),
            email=email,
            password_hash=self._hash(password),
            role=ROLE_ADMIN,
        )
        _SEEDED = (email, password)
        logger.info("Local admin account ready for %s", email)

    def _hash(self, password: str) -> bytes:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))

    @staticmethod
    def _check(password: str, password_hash: bytes) -> bool:
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(raw, password_hash)

    def _issue(self, account: _Account) -> AuthSession:
        expires = timedelta(minutes=self.expire_minutes)
        claims = {
            "sub": account.id,
            "email": account.email,
            "jti": uuid.uuid4().hex,
            "exp": datetime.now(timezone.utc) + expires,
        }
        token = jwt.encode(claims, self.secret, algorithm=ALGORITHM)
        return AuthSession(
            access_token=token,
            user=UserInfo(id=account.id, email=account.email),
            expires_in=int(expires.total_seconds()),
        )

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = _ACCOUNTS.get((email or "").lower())
        if account is None or not self._check(password or "", account.password_hash):
            raise InvalidCredentials("Invalid login credentials")
        return self._issue(account)

    def sign_up(self, email: str, password: str) -> UserInfo:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        key = email.lower()
        if key in _ACCOUNTS:
            raise ValidationError("User already registered")
        account = _Account(id=str(uuid.uuid4()), email=email, password_hash=self._hash(password), role=ROLE_USER)
        _ACCOUNTS[key] = account
        return UserInfo(id=account.id, email=account.email)

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except JWTError as exc:
            raise ValueError(f"Invalid access token: {exc}") from exc
        if claims.get("jti") in _REVOKED:
            raise ValueError("Access token has been revoked")
        account = self._by_id(claims.get("sub"))
        if account is None:
            raise ValueError("Invalid access token: unknown user")
        return UserInfo(id=account.id, email=account.email)

    def get_role(self, user: UserInfo) -> str:
        account = self._by_id(user.id)
        return account.role if account else ROLE_USER

    def sign_out(self, token: str) -> None:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except JWTError:
            return
        _REVOKED.add(claims.get("jti", ""))

    @staticmethod
    def _by_id(user_id: str | None) -> _Account | None:
        for account in _ACCOUNTS.values():
            if account.id == user_id:
                return account
        return None
