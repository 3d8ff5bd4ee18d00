from __future__ import annotations

import logging
from typing import Callable, Protocol

from portfolio.domain.entities.account import AuthSession, Session, UserInfo
from portfolio.domain.errors import InvalidCredentials, Unauthorized

logger = logging.getLogger(__name__)

UNAUTHENTICATED = "unauthenticated"
AUTHENTICATED = "authenticated"


class Authority(Protocol):
    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_up(self, email: str, password: str) -> UserInfo: ...

    def validate_token(self, token: str) -> UserInfo: ...

    def get_role(self, user: UserInfo) -> str: ...

    def sign_out(self, token: str) -> None: ...


class SessionGate:
    """Decides whether the caller may mutate the content store.

    States: ``unauthenticated`` and ``authenticated`` (role ``admin`` or
    ``user``). The role always comes from the authority; a persisted token
    only counts after :meth:`restore` re-validates it.
    """

    def __init__(self, authority: Authority) -> None:
        self.authority = authority
        self._session: Session | None = None
        self._sign_out_listeners: list[Callable[[], None]] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def state(self) -> str:
        return AUTHENTICATED if self._session else UNAUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return self._session is not None and self._session.is_admin

    def sign_in(self, email: str, password: str) -> Session:
        try:
            auth = self.authority.sign_in(email, password)
        except InvalidCredentials:
            logger.info("Sign-in rejected for %s", email)
            self._session = None
            raise
        role = self.authority.get_role(auth.user)
        self._session = Session(
            user=auth.user, role=role, access_token=auth.access_token, expires_in=auth.expires_in
        )
        logger.info("Signed in %s as %s", auth.user.email, role)
        return self._session

    def sign_up(self, email: str, password: str) -> UserInfo:
        user = self.authority.sign_up(email, password)
        logger.info("Registered %s", email)
        return user

    def restore(self, token: str | None) -> Session | None:
        """Re-validate a persisted token. Anything invalid leaves the gate signed out."""
        self._session = None
        if not token:
            return None
        try:
            user = self.authority.validate_token(token)
        except ValueError as exc:
            logger.info("Discarding persisted session: %s", exc)
            return None
        role = self.authority.get_role(user)
        self._session = Session(user=user, role=role, access_token=token)
        return self._session

    def sign_out(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            try:
                self.authority.sign_out(session.access_token)
            except Exception as exc:
                # local state is already cleared; the token expires on its own
                logger.warning("Authority sign-out failed for %s: %s", session.user.email, exc)
        for listener in list(self._sign_out_listeners):
            listener()

    def on_sign_out(self, listener: Callable[[], None]) -> None:
        self._sign_out_listeners.append(listener)

    def require_admin(self) -> Session:
        if self._session is None:
            raise Unauthorized("Sign in as admin to change the portfolio", authenticated=False)
        if not self._session.is_admin:
            raise Unauthorized("Admin role required", authenticated=True)
        return self._session
