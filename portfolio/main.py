from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from portfolio.application.dtos.common_dto import BatchSaveErrorResponse, HealthResponse, RootResponse
from portfolio.application.admin_editor import EditorSessions
from portfolio.application.portfolio_state import PortfolioState
from portfolio.infrastructure.api.error_handlers import add_exception_handlers
from portfolio.infrastructure.api.middlewares import add_default_middlewares
from portfolio.infrastructure.api.routes.admin_routes import router as admin_router
from portfolio.infrastructure.api.routes.auth_routes import router as auth_router
from portfolio.infrastructure.api.routes.contact_routes import router as contact_router
from portfolio.infrastructure.api.routes.draft_routes import router as draft_router
from portfolio.infrastructure.api.routes.portfolio_routes import router as portfolio_router
from portfolio.infrastructure.database.supabase_client import get_supabase_client
from portfolio.infrastructure.storage.supabase_storage import LOCAL_MEDIA_PREFIX, SupabaseStorage

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_app() -> FastAPI:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), format=LOG_FORMAT)

    app = FastAPI(
        title="Portfolio Backend",
        version="0.1.0",
        description="""
        ## Portfolio Backend API

        Content backend for a personal portfolio site: profile, skills,
        service packages and projects, stored in Supabase (or a local
        PostgreSQL / in-memory store for development).

        ### Features
        - **Public read model**: Everything the landing page renders in one call
        - **Admin editing**: Whole-draft save, partial profile updates, collection replace
        - **Server-side draft**: Stage edits across requests, then save them in one go
        - **Images**: Profile, logo and project image uploads
        - **Contact**: Pre-filled WhatsApp links for the contact form and package orders

        ### Authentication
        Admin endpoints require a bearer token from `POST /auth/sign-in`
        whose user holds the `admin` role:
        ```
        Authorization: Bearer your-access-token
        ```

        ### Error Responses
        - **401 Unauthorized**: Missing, invalid or expired token, or wrong credentials
        - **403 Forbidden**: Signed in without the admin role
        - **404 Not Found**: Addressed item does not exist
        - **422 Unprocessable Entity**: Invalid content
        - **503 Service Unavailable**: Content store failed or timed out; partial saves list what was saved
        """,
        responses={503: {"model": BatchSaveErrorResponse}},
    )
    app.state.portfolio = PortfolioState()
    app.state.editors = EditorSessions()
    add_default_middlewares(app)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Portfolio API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "portfolio-backend", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(portfolio_router)
    app.include_router(draft_router)
    app.include_router(admin_router)
    app.include_router(contact_router)

    # uploads land on disk when Supabase storage is not in use
    storage = SupabaseStorage(get_supabase_client())
    if storage.is_local:
        app.mount(LOCAL_MEDIA_PREFIX, StaticFiles(directory=storage.local_dir), name="media")
    return app


app = create_app()
