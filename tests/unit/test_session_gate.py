"""
Tests for the session gate against the local credential authority.
"""
from __future__ import annotations

import os
from unittest.mock import Mock

import pytest

from portfolio.application.session_gate import AUTHENTICATED, UNAUTHENTICATED, SessionGate
from portfolio.domain.entities.account import ROLE_ADMIN, ROLE_USER, AuthSession, UserInfo
from portfolio.domain.errors import InvalidCredentials, Unauthorized, ValidationError
from portfolio.infrastructure.auth.local_authority import LocalAuthority

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


@pytest.fixture()
def gate() -> SessionGate:
    return SessionGate(LocalAuthority())


class TestSessionGate:
    """Test the session state machine against the local authority."""

    def test_starts_signed_out(self, gate):
        """Test that a new gate is signed out."""
        assert gate.state == UNAUTHENTICATED
        assert not gate.is_admin
        with pytest.raises(Unauthorized) as err:
            gate.require_admin()
        assert err.value.authenticated is False

    def test_admin_sign_in(self, gate):
        """Test signing in with the admin account."""
        session = gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert gate.state == AUTHENTICATED
        assert session.role == ROLE_ADMIN
        assert gate.require_admin() is session

    def test_wrong_password(self, gate):
        """Test that a wrong password leaves the gate signed out."""
        with pytest.raises(InvalidCredentials):
            gate.sign_in(ADMIN_EMAIL, "nope")
        assert gate.state == UNAUTHENTICATED

    def test_signed_up_user_is_not_admin(self, gate):
        """Test that a signed-up account gets the user role."""
        gate.sign_up("someone@example.com", "password1")
        session = gate.sign_in("someone@example.com", "password1")
        assert session.role == ROLE_USER
        with pytest.raises(Unauthorized) as err:
            gate.require_admin()
        assert err.value.authenticated is True

    def test_sign_up_rules(self, gate):
        """Test email and password rules on sign-up."""
        with pytest.raises(ValidationError):
            gate.sign_up("short@example.com", "123")
        gate.sign_up("dup@example.com", "password1")
        with pytest.raises(ValidationError):
            gate.sign_up("DUP@example.com", "password1")

    def test_restore_revalidates_token(self, gate):
        """Test restoring a session from a token."""
        token = gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD).access_token
        fresh = SessionGate(LocalAuthority())
        assert fresh.restore(token).is_admin
        assert fresh.restore("garbage") is None
        assert fresh.state == UNAUTHENTICATED

    def test_sign_out_revokes_token_and_notifies(self, gate):
        """Test that sign-out revokes the token and runs listeners."""
        token = gate.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD).access_token
        listener = Mock()
        gate.on_sign_out(listener)
        gate.sign_out()
        listener.assert_called_once_with()
        assert gate.state == UNAUTHENTICATED
        assert SessionGate(LocalAuthority()).restore(token) is None

    def test_sign_out_clears_state_when_authority_fails(self):
        """Test sign-out when the authority call fails."""
        authority = Mock()
        authority.sign_in.return_value = AuthSession(access_token="t", user=UserInfo(id="u1", email="a@b.c"))
        authority.get_role.return_value = ROLE_ADMIN
        authority.sign_out.side_effect = RuntimeError("network down")
        gate = SessionGate(authority)
        gate.sign_in("a@b.c", "pw")
        gate.sign_out()
        assert gate.session is None

    def test_role_comes_from_authority_on_restore(self):
        """Test that the role is looked up, not read from the token."""
        authority = Mock()
        authority.validate_token.return_value = UserInfo(id="u1", email="a@b.c")
        authority.get_role.return_value = ROLE_USER
        gate = SessionGate(authority)
        assert not gate.restore("token").is_admin
        authority.get_role.assert_called_once()
