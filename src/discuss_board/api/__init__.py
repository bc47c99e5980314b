"""Discuss Board API service.

FastAPI application providing:
- Member, moderator and administrator authentication
- Public board reads (posts, comments, polls, taxonomy)
- Member authoring, reactions, polls, reports and appeals
- Moderation and administration endpoints
- Audit, consent and export logs

This module provides the app factory used by the ASGI entry point and by
tests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from discuss_board.api.middleware import ErrorHandlerMiddleware, RequestIDMiddleware
from discuss_board.api.routers import (
    administrator_router,
    auth_router,
    member_router,
    moderator_router,
    public_router,
)

if TYPE_CHECKING:
    from discuss_board.core.config import Settings

logger = logging.getLogger(__name__)

API_TITLE = "Discuss Board API"
API_DESCRIPTION = """
Discussion board backend.

## Namespaces

- **/auth/** - Join, login, refresh, logout, email verification, password reset
- **/discussBoard/** - Public reads
- **/discussBoard/member/** - Member operations (authenticated)
- **/discussBoard/moderator/** - Moderation (moderator auth)
- **/discussBoard/administrator/** - Administration (administrator auth)
"""


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. When omitted, routes load
            settings from the environment on first use.

    Returns:
        Configured FastAPI application ready to serve requests.
    """
    version = settings.app_version if settings else "0.1.0"

    app = FastAPI(
        title=settings.app_name if settings else API_TITLE,
        description=API_DESCRIPTION,
        version=version,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Store settings in app state for access in routes
    app.state.settings = settings

    # Last added is outermost
    _add_middleware(app, settings)

    _include_routers(app)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {"status": "healthy"}

    logger.info("Discuss Board API application created (version=%s)", version)

    return app


def _add_middleware(app: FastAPI, settings: Settings | None) -> None:
    # Error handler runs inside the request ID scope so error bodies carry the ID
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = ["http://localhost:3000", "http://localhost:8000"]
    if settings is not None:
        allowed_origins = list(settings.cors_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


def _include_routers(app: FastAPI) -> None:
    app.include_router(auth_router)
    app.include_router(public_router)
    app.include_router(member_router)
    app.include_router(moderator_router)
    app.include_router(administrator_router)
