from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile, status

from portfolio.application.dtos.image_dto import StoredImage, UploadImageResponse
from portfolio.application.dtos.portfolio_dto import (
    ProfilePatchIn,
    SaveAllRequest,
    SnapshotResponse,
    parse_item,
)
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.application.use_cases.manage_item import DeleteItemUseCase, UpsertItemUseCase
from portfolio.application.use_cases.replace_collection import ReplaceCollectionUseCase
from portfolio.application.use_cases.save_all import SaveAllUseCase
from portfolio.application.use_cases.save_profile import SaveProfileUseCase
from portfolio.application.use_cases.upload_image import UploadImageUseCase
from portfolio.domain.entities.snapshot import CollectionKind
from portfolio.infrastructure.api.dependencies import (
    get_collection_saver,
    get_image_uploader,
    get_item_deleter,
    get_item_upserter,
    get_loader,
    get_profile_saver,
    get_save_all,
    require_admin,
)

# the admin check runs before the body is parsed into entities
router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized - Missing or invalid bearer token"},
        403: {"description": "Forbidden - Signed in without the admin role"},
        422: {"description": "Validation Error - Invalid content"},
        503: {"description": "Content store unavailable or partial save"},
    },
)


@router.get(
    "/portfolio",
    response_model=SnapshotResponse,
    summary="Load Portfolio For Editing",
    description="The stored portfolio, used to seed the admin editor's draft.",
)
async def get_portfolio(loader: LoadPortfolioUseCase = Depends(get_loader)):
    return SnapshotResponse.from_snapshot(await loader.execute())


@router.put(
    "/portfolio",
    response_model=SnapshotResponse,
    summary="Save Whole Draft",
    description="""
    Save profile, skills, packages and projects in one request.

    The four writes run in sequence and are not a transaction. If any of
    them fails the response is 503 and lists which parts were saved
    (`succeeded`) and which were not (`failed`); saved parts stay saved.
    """,
)
async def save_portfolio(body: SaveAllRequest, saver: SaveAllUseCase = Depends(get_save_all)):
    snapshot = await saver.execute(
        body.profile.to_patch(),
        [item.to_entity() for item in body.skills],
        [item.to_entity() for item in body.packages],
        [item.to_entity() for item in body.projects],
    )
    return SnapshotResponse.from_snapshot(snapshot)


@router.patch(
    "/profile",
    response_model=SnapshotResponse,
    summary="Update Profile",
    description="Update only the profile fields present in the body. Creates the profile on first save.",
)
async def patch_profile(body: ProfilePatchIn, saver: SaveProfileUseCase = Depends(get_profile_saver)):
    return SnapshotResponse.from_snapshot(await saver.execute(body.to_patch()))


@router.put(
    "/collections/{kind}",
    response_model=SnapshotResponse,
    summary="Replace Collection",
    description="""
    Replace the whole collection with the given ordered list. List position
    becomes the display order. Items without an `id` get a new one.
    """,
)
async def replace_collection(
    kind: CollectionKind,
    body: list[dict[str, Any]] = Body(..., description="Items in display order"),
    saver: ReplaceCollectionUseCase = Depends(get_collection_saver),
):
    items = [parse_item(kind, raw) for raw in body]
    return SnapshotResponse.from_snapshot(await saver.execute(kind, items))


@router.put(
    "/collections/{kind}/{item_id}",
    response_model=SnapshotResponse,
    summary="Create Or Update Item",
    description="Upsert one item by id. New items are appended to the end of the collection.",
)
async def upsert_item(
    kind: CollectionKind,
    item_id: UUID,
    body: dict[str, Any] = Body(..., description="Item fields"),
    upserter: UpsertItemUseCase = Depends(get_item_upserter),
):
    item = parse_item(kind, body)
    return SnapshotResponse.from_snapshot(await upserter.execute(kind, str(item_id), item))


@router.delete(
    "/collections/{kind}/{item_id}",
    response_model=SnapshotResponse,
    summary="Delete Item",
    responses={404: {"description": "Not Found - No item with this id"}},
)
async def delete_item(
    kind: CollectionKind,
    item_id: UUID,
    deleter: DeleteItemUseCase = Depends(get_item_deleter),
):
    return SnapshotResponse.from_snapshot(await deleter.execute(kind, str(item_id)))


@router.post(
    "/images/{slot}",
    response_model=UploadImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Image",
    description="""
    Upload an image and attach it to the portfolio.

    **Slots**: `profile` (profile photo), `logo`, `project` (needs the
    `project_id` form field).
    **Formats**: PNG, JPEG, WEBP, GIF. Size is limited by `MAX_IMAGE_BYTES`.
    """,
)
async def upload_image(
    slot: str,
    file: UploadFile = File(..., description="Image file"),
    project_id: Optional[UUID] = Form(None, description="Target project for the `project` slot"),
    uploader: UploadImageUseCase = Depends(get_image_uploader),
):
    # one byte over the limit is enough to reject the upload
    data = await file.read(uploader.storage.max_bytes + 1)
    stored, snapshot = await uploader.execute(
        slot, data, project_id=str(project_id) if project_id else None
    )
    return UploadImageResponse(
        image=StoredImage(
            slot=slot,
            path=stored.path,
            url=stored.url,
            width=stored.width,
            height=stored.height,
            content_type=stored.content_type,
            size=stored.size,
        ),
        portfolio=SnapshotResponse.from_snapshot(snapshot),
    )
