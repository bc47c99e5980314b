"""Shared FastAPI dependencies: database session, settings and services."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from discuss_board.core.config import Settings
from discuss_board.services.email import AccountEmailService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Uses the application's async session factory. Routes commit explicitly;
    anything left uncommitted is rolled back when the request ends.
    """
    from discuss_board.db import get_async_session

    async with get_async_session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, or the environment settings."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        from discuss_board.core.settings import get_settings

        settings = get_settings()
    return settings


AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_email_service(settings: AppSettings) -> AccountEmailService:
    return AccountEmailService(
        settings.smtp,
        base_url=settings.public_base_url,
        app_name=settings.app_name,
    )


EmailService = Annotated[AccountEmailService, Depends(get_email_service)]


def get_client_ip(request: Request) -> str | None:
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
