from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware


def add_default_middlewares(app: FastAPI) -> None:
    # The public site and the admin page are served from a separate frontend
    env = os.getenv("ENV", "development")

    if env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",  # Vite default
            "http://localhost:8080",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080",
        ]
    else:
        configured = os.getenv("CORS_ORIGINS", "")
        allowed_origins = [o.strip() for o in configured.split(",") if o.strip()] or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        # bearer tokens travel in headers, never cookies
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
