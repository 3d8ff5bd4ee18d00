from __future__ import annotations

from fastapi import APIRouter, Depends, status

from portfolio.application.dtos.auth_dto import (
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserOut,
)
from portfolio.application.dtos.common_dto import SuccessResponse
from portfolio.application.session_gate import SessionGate
from portfolio.infrastructure.api.dependencies import get_auth_adapter, get_session_gate
from portfolio.infrastructure.database.supabase_client import SupabaseAuthAdapter

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized - Invalid credentials"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "/sign-in",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign In",
    description="""
    Exchange email and password for a bearer token.

    The role is resolved by the auth provider at sign-in; only `admin`
    sessions may change the portfolio.
    """,
)
def sign_in(body: SignInRequest, auth: SupabaseAuthAdapter = Depends(get_auth_adapter)):
    """Sign in with email and password."""
    gate = SessionGate(auth)
    session = gate.sign_in(body.email, body.password)
    return TokenResponse(
        access_token=session.access_token,
        expires_in=session.expires_in,
        user=UserOut(id=session.user.id, email=session.user.email),
        role=session.role,
        is_admin=session.is_admin,
    )


@router.post(
    "/sign-up",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    description="Register a new account. New accounts get the `user` role; admins are granted out of band.",
)
def sign_up(body: SignUpRequest, auth: SupabaseAuthAdapter = Depends(get_auth_adapter)):
    """Register a new account."""
    user = SessionGate(auth).sign_up(body.email, body.password)
    return UserOut(id=user.id, email=user.email)


@router.post(
    "/sign-out",
    response_model=SuccessResponse,
    summary="Sign Out",
    description="Revoke the bearer token. Succeeds even without a valid session.",
)
def sign_out(gate: SessionGate = Depends(get_session_gate)):
    """Sign out the current session."""
    gate.sign_out()
    return SuccessResponse(message="Signed out")


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current Session",
    description="Re-validate the bearer token and report the user and role it resolves to.",
)
def current_session(gate: SessionGate = Depends(get_session_gate)):
    """Report the session behind the bearer token."""
    session = gate.session
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        user=UserOut(id=session.user.id, email=session.user.email),
        role=session.role,
        is_admin=session.is_admin,
    )
