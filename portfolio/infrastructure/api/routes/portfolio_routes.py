from __future__ import annotations

from fastapi import APIRouter, Depends, status

from portfolio.application.dtos.portfolio_dto import PublicPortfolioResponse
from portfolio.application.use_cases.load_portfolio import LoadPortfolioUseCase
from portfolio.domain.services.presentation_service import PresentationService
from portfolio.infrastructure.api.dependencies import get_public_loader

router = APIRouter(
    tags=["Public Portfolio"],
    responses={503: {"description": "Content store unavailable"}},
)


@router.get(
    "/portfolio",
    response_model=PublicPortfolioResponse,
    status_code=status.HTTP_200_OK,
    summary="Public Portfolio",
    description="""
    Everything the landing page renders: profile, skills grouped into
    web development and cyber security, the pricing section and projects.

    `pricing` is `null` when no packages are configured, which hides the
    section entirely. Before the first save the built-in default profile is
    returned. While the content store is unavailable the last successfully
    loaded portfolio is served; 503 only when there is none yet.
    """,
)
async def get_public_portfolio(loader: LoadPortfolioUseCase = Depends(get_public_loader)):
    """Load the public read model."""
    snapshot = await loader.latest()
    return PublicPortfolioResponse.from_view(PresentationService.public_view(snapshot))
