from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from portfolio.application.admin_editor import AdminEditor
from portfolio.application.dtos.portfolio_dto import (
    DraftResponse,
    MoveItemRequest,
    ProfilePatchIn,
    SnapshotResponse,
    parse_item,
    parse_item_changes,
)
from portfolio.domain.entities.snapshot import CollectionKind
from portfolio.infrastructure.api.dependencies import get_admin_editor, require_admin

router = APIRouter(
    prefix="/admin/draft",
    tags=["Admin Draft"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized - Missing or invalid bearer token"},
        403: {"description": "Forbidden - Signed in without the admin role"},
        422: {"description": "Validation Error - Invalid edit or no item at that position"},
        503: {"description": "Content store unavailable or partial save"},
    },
)


async def _loaded(editor: AdminEditor) -> AdminEditor:
    if editor.draft is None:
        await editor.refresh()
    return editor


def _response(editor: AdminEditor) -> DraftResponse:
    return DraftResponse.from_draft(editor.draft, saving=editor.saving, last_error=editor.last_error)


@router.get(
    "",
    response_model=DraftResponse,
    summary="Get Draft",
    description="""
    The admin's working copy. The first call seeds it from the stored
    portfolio; later calls return it with every unsaved edit applied.
    """,
)
async def get_draft(editor: AdminEditor = Depends(get_admin_editor)):
    return _response(await _loaded(editor))


@router.post(
    "/refresh",
    response_model=DraftResponse,
    summary="Discard Edits",
    description="Reload the draft from the stored portfolio. Ignored while a save is running.",
)
async def refresh_draft(editor: AdminEditor = Depends(get_admin_editor)):
    await editor.refresh()
    return _response(await _loaded(editor))


@router.post(
    "/save",
    response_model=SnapshotResponse,
    summary="Save Draft",
    description="""
    Save the whole draft (profile, skills, packages, projects).

    A save requested while another one is running joins it instead of
    writing twice. On failure the draft is kept so the save can be retried;
    on success it is replaced by the stored portfolio.
    """,
)
async def save_draft(editor: AdminEditor = Depends(get_admin_editor)):
    await _loaded(editor)
    return SnapshotResponse.from_snapshot(await editor.save())


@router.patch(
    "/profile",
    response_model=DraftResponse,
    summary="Edit Draft Profile",
    description="Change profile fields in the draft. Fields left out of the body are not touched.",
)
async def edit_profile(body: ProfilePatchIn, editor: AdminEditor = Depends(get_admin_editor)):
    editor = await _loaded(editor)
    editor.update_profile(**body.model_dump(exclude_unset=True))
    return _response(editor)


@router.post(
    "/{kind}",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Draft Item",
    description="Append an item to a draft collection.",
)
async def add_item(
    kind: CollectionKind,
    body: dict[str, Any] = Body(..., description="Item fields"),
    editor: AdminEditor = Depends(get_admin_editor),
):
    editor = await _loaded(editor)
    editor.add_item(kind, parse_item(kind, body))
    return _response(editor)


@router.patch(
    "/{kind}/{index}",
    response_model=DraftResponse,
    summary="Edit Draft Item",
    description="Change fields of the item at `index`. Ids cannot be edited.",
)
async def edit_item(
    kind: CollectionKind,
    index: int,
    body: dict[str, Any] = Body(..., description="Fields to change"),
    editor: AdminEditor = Depends(get_admin_editor),
):
    editor = await _loaded(editor)
    changes = parse_item_changes(kind, editor.item(kind, index), body)
    editor.update_item(kind, index, **changes)
    return _response(editor)


@router.post(
    "/{kind}/{index}/move",
    response_model=DraftResponse,
    summary="Move Draft Item",
    description="Move the item at `index` to position `to`; list position is the display order.",
)
async def move_item(
    kind: CollectionKind,
    index: int,
    body: MoveItemRequest,
    editor: AdminEditor = Depends(get_admin_editor),
):
    editor = await _loaded(editor)
    editor.move_item(kind, index, body.to)
    return _response(editor)


@router.delete(
    "/{kind}/{index}",
    response_model=DraftResponse,
    summary="Remove Draft Item",
)
async def remove_item(
    kind: CollectionKind,
    index: int,
    editor: AdminEditor = Depends(get_admin_editor),
):
    editor = await _loaded(editor)
    editor.remove_item(kind, index)
    return _response(editor)
