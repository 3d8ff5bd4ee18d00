from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from portfolio.application.dtos.contact_dto import (
    ContactMessageRequest,
    OrderLinkResponse,
    WhatsAppLinkResponse,
)
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.domain.errors import NotFoundError
from portfolio.domain.services.contact_service import ContactService
from portfolio.infrastructure.api.dependencies import get_public_loader

router = APIRouter(
    prefix="/contact",
    tags=["Contact"],
    responses={422: {"description": "Validation Error - Missing fields or no WhatsApp number configured"}},
)


@router.post(
    "/whatsapp",
    response_model=WhatsAppLinkResponse,
    summary="Compose WhatsApp Message",
    description="""
    Build the pre-filled contact message and the `wa.me` link for the
    profile's WhatsApp number. Nothing is sent; the client opens the link.
    """,
)
async def compose_whatsapp(body: ContactMessageRequest, loader: LoadPortfolioUseCase = Depends(get_public_loader)):
    snapshot = await loader.latest()
    message = ContactService.compose_contact_message(body.name, body.email, body.message)
    url = ContactService.build_whatsapp_link(snapshot.profile.whatsapp, message)
    return WhatsAppLinkResponse(message=message, url=url)


@router.get(
    "/order/{package_id}",
    response_model=OrderLinkResponse,
    summary="Order Package",
    description="WhatsApp link with the order message for one service package.",
    responses={404: {"description": "Not Found - No package with this id"}},
)
async def order_package(package_id: UUID, loader: LoadPortfolioUseCase = Depends(get_public_loader)):
    snapshot = await loader.latest()
    package = next((p for p in snapshot.packages if p.id == str(package_id)), None)
    if package is None:
        raise NotFoundError(f"No packages item with id {package_id}")
    message = ContactService.compose_order_message(package.name)
    return OrderLinkResponse(
        package_id=str(package_id),
        package_name=package.name,
        message=message,
        url=ContactService.build_whatsapp_link(snapshot.profile.whatsapp, message),
    )
