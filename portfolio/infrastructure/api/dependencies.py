from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio.application.admin_editor import AdminEditor, EditorSessions
from portfolio.application.portfolio_state import PortfolioState
from portfolio.application.session_gate import SessionGate
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.manage_item import DeleteItemUseCase, UpsertItemUseCase
from portfolio.application.use_cases.replace_collection import ReplaceCollectionUseCase
from portfolio.application.use_cases.save_all import SaveAllUseCase
from portfolio.application.use_cases.save_profile import SaveProfileUseCase
from portfolio.application.use_cases.upload_image import UploadImageUseCase
from portfolio.domain.entities.account import Session
from portfolio.infrastructure.database.repositories.content_store import ContentStore
from portfolio.infrastructure.database.supabase_client import SupabaseAuthAdapter, get_supabase_client
from portfolio.infrastructure.storage.supabase_storage import SupabaseStorage

_bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
) -> str | None:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials or None


def get_auth_adapter() -> SupabaseAuthAdapter:
    return SupabaseAuthAdapter()


def get_session_gate(
    request: Request,
    token: Annotated[str | None, Depends(get_bearer_token)],
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)],
) -> SessionGate:
    gate = SessionGate(auth)
    session = gate.restore(token)
    if session is not None:
        # signing out tears down the app-scoped state tied to this session
        app_state = request.app.state
        gate.on_sign_out(lambda: app_state.editors.close(session.user.id))
        gate.on_sign_out(app_state.portfolio.reset)
    return gate


def require_admin(gate: Annotated[SessionGate, Depends(get_session_gate)]) -> Session:
    return gate.require_admin()


def get_portfolio_state(request: Request) -> PortfolioState:
    return request.app.state.portfolio


def get_editor_sessions(request: Request) -> EditorSessions:
    return request.app.state.editors


def get_content_store(token: Annotated[str | None, Depends(get_bearer_token)]) -> ContentStore:
    # writes run as the caller so row-level security sees the admin
    return ContentStore.from_client(get_supabase_client(access_token=token))


def get_storage(token: Annotated[str | None, Depends(get_bearer_token)]) -> SupabaseStorage:
    return SupabaseStorage(get_supabase_client(access_token=token))


def get_loader(
    store: Annotated[ContentStore, Depends(get_content_store)],
    state: Annotated[PortfolioState, Depends(get_portfolio_state)],
) -> LoadPortfolioUseCase:
    return LoadPortfolioUseCase(store=store, state=state)


def get_profile_saver(
    store: Annotated[ContentStore, Depends(get_content_store)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
) -> SaveProfileUseCase:
    return SaveProfileUseCase(store=store, gate=gate, loader=loader)


def get_collection_saver(
    store: Annotated[ContentStore, Depends(get_content_store)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
) -> ReplaceCollectionUseCase:
    return ReplaceCollectionUseCase(store=store, gate=gate, loader=loader)


def get_save_all(
    profile_saver: Annotated[SaveProfileUseCase, Depends(get_profile_saver)],
    collection_saver: Annotated[ReplaceCollectionUseCase, Depends(get_collection_saver)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
) -> SaveAllUseCase:
    return SaveAllUseCase(profile_saver=profile_saver, collection_saver=collection_saver, loader=loader, gate=gate)


def get_item_upserter(
    store: Annotated[ContentStore, Depends(get_content_store)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
) -> UpsertItemUseCase:
    return UpsertItemUseCase(store=store, gate=gate, loader=loader)


def get_item_deleter(
    store: Annotated[ContentStore, Depends(get_content_store)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
) -> DeleteItemUseCase:
    return DeleteItemUseCase(store=store, gate=gate, loader=loader)


def get_image_uploader(
    storage: Annotated[SupabaseStorage, Depends(get_storage)],
    store: Annotated[ContentStore, Depends(get_content_store)],
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    profile_saver: Annotated[SaveProfileUseCase, Depends(get_profile_saver)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
) -> UploadImageUseCase:
    return UploadImageUseCase(
        storage=storage, store=store, gate=gate, profile_saver=profile_saver, loader=loader
    )


def get_public_loader(state: Annotated[PortfolioState, Depends(get_portfolio_state)]) -> LoadPortfolioUseCase:
    """Loader for the public pages; reads with the anonymous client whatever token is sent."""
    return LoadPortfolioUseCase(store=ContentStore.from_client(get_supabase_client()), state=state)


def get_admin_editor(
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    saver: Annotated[SaveAllUseCase, Depends(get_save_all)],
    loader: Annotated[LoadPortfolioUseCase, Depends(get_loader)],
    editors: Annotated[EditorSessions, Depends(get_editor_sessions)],
) -> AdminEditor:
    """The signed-in admin's draft editor, kept across requests."""
    return editors.open(gate, saver, loader)
