"""Authentication router.

Handles registration, login, token refresh, logout, email verification and
password reset for the three roles:
- /auth/member/{join,login,refresh}
- /auth/moderator/{login,refresh}
- /auth/administrator/{join,login,refresh}
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from discuss_board.api.dependencies import (
    AppSettings,
    DbSession,
    EmailService,
    get_client_ip,
)
from discuss_board.api.middleware.auth import AuthenticatedUser, require_authenticated_user
from discuss_board.api.schemas.auth import (
    AdministratorJoinRequest,
    AuthorizedResponse,
    LoginRequest,
    MemberJoinRequest,
    MemberSchema,
    PasswordResetRequestSchema,
    PasswordResetSchema,
    RefreshRequest,
    TokenSchema,
    VerifyEmailRequest,
)
from discuss_board.api.schemas.common import MessageResponse
from discuss_board.core.exceptions import BoardError
from discuss_board.services.auth import AuthResult, AuthService, ConsentInput
from discuss_board.services.authz import RoleClass

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={
        401: {"description": "Invalid credentials or token"},
        403: {"description": "Account or role not active"},
    },
)


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


def get_auth_service(
    db: DbSession, settings: AppSettings, email_service: EmailService
) -> AuthService:
    return AuthService(db, settings.auth, settings.content, email_service)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentUser = Annotated[AuthenticatedUser, Depends(require_authenticated_user)]


def _authorized(result: AuthResult, role: RoleClass) -> AuthorizedResponse:
    return AuthorizedResponse(
        role=role,
        account_id=result.account.id,
        email=result.account.email,
        email_verified=result.account.email_verified,
        member=MemberSchema.model_validate(result.member),
        moderator_id=result.moderator.id if result.moderator else None,
        administrator_id=result.administrator.id if result.administrator else None,
        token=TokenSchema.model_validate(result.tokens),
    )


async def _login(
    role: RoleClass,
    body: LoginRequest,
    request: Request,
    db: DbSession,
    service: AuthService,
) -> AuthorizedResponse:
    try:
        result = await service.login(
            role,
            email=body.email,
            password=body.password,
            device_info=body.device_info or request.headers.get("User-Agent"),
            ip_address=get_client_ip(request),
        )
    except BoardError:
        # Keep the audit row of the failed attempt
        await db.commit()
        raise
    await db.commit()
    return _authorized(result, role)


async def _refresh(
    role: RoleClass, body: RefreshRequest, db: DbSession, service: AuthService
) -> AuthorizedResponse:
    result = await service.refresh(role, body.refresh_token)
    await db.commit()
    return _authorized(result, role)


# -----------------------------------------------------------------------------
# Member
# -----------------------------------------------------------------------------


@router.post(
    "/member/join",
    response_model=AuthorizedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member",
)
async def member_join(
    body: MemberJoinRequest,
    request: Request,
    db: DbSession,
    service: AuthServiceDep,
) -> AuthorizedResponse:
    """Register a member account.

    The account stays pending until the email address is verified; the
    returned tokens cannot be used to log in again before that.
    """
    result = await service.join_member(
        email=body.email,
        password=body.password,
        nickname=body.nickname,
        display_name=body.display_name,
        consents=[
            ConsentInput(
                consent_type=c.consent_type,
                consent_action=c.consent_action,
                policy_version=c.policy_version,
            )
            for c in body.consents
        ],
        device_info=body.device_info or request.headers.get("User-Agent"),
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return _authorized(result, RoleClass.MEMBER)


@router.post("/member/login", response_model=AuthorizedResponse, summary="Member login")
async def member_login(
    body: LoginRequest, request: Request, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _login(RoleClass.MEMBER, body, request, db, service)


@router.post("/member/refresh", response_model=AuthorizedResponse, summary="Refresh member tokens")
async def member_refresh(
    body: RefreshRequest, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _refresh(RoleClass.MEMBER, body, db, service)


# -----------------------------------------------------------------------------
# Moderator
# -----------------------------------------------------------------------------


@router.post("/moderator/login", response_model=AuthorizedResponse, summary="Moderator login")
async def moderator_login(
    body: LoginRequest, request: Request, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _login(RoleClass.MODERATOR, body, request, db, service)


@router.post(
    "/moderator/refresh", response_model=AuthorizedResponse, summary="Refresh moderator tokens"
)
async def moderator_refresh(
    body: RefreshRequest, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _refresh(RoleClass.MODERATOR, body, db, service)


# -----------------------------------------------------------------------------
# Administrator
# -----------------------------------------------------------------------------


@router.post(
    "/administrator/join",
    response_model=AuthorizedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register the first administrator",
)
async def administrator_join(
    body: AdministratorJoinRequest,
    request: Request,
    db: DbSession,
    service: AuthServiceDep,
) -> AuthorizedResponse:
    result = await service.join_administrator(
        email=body.email,
        password=body.password,
        nickname=body.nickname,
        device_info=body.device_info or request.headers.get("User-Agent"),
        ip_address=get_client_ip(request),
    )
    await db.commit()
    return _authorized(result, RoleClass.ADMINISTRATOR)


@router.post(
    "/administrator/login", response_model=AuthorizedResponse, summary="Administrator login"
)
async def administrator_login(
    body: LoginRequest, request: Request, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _login(RoleClass.ADMINISTRATOR, body, request, db, service)


@router.post(
    "/administrator/refresh",
    response_model=AuthorizedResponse,
    summary="Refresh administrator tokens",
)
async def administrator_refresh(
    body: RefreshRequest, db: DbSession, service: AuthServiceDep
) -> AuthorizedResponse:
    return await _refresh(RoleClass.ADMINISTRATOR, body, db, service)


# -----------------------------------------------------------------------------
# Session and account recovery
# -----------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse, summary="Revoke the current session")
async def logout(user: CurrentUser, db: DbSession, service: AuthServiceDep) -> MessageResponse:
    await service.logout(user.principal.jwt_id)
    await db.commit()
    return MessageResponse(message="Logged out")


@router.get("/verify-email", response_model=MessageResponse, summary="Verify email (link)")
async def verify_email_link(
    token: Annotated[str, Query(min_length=1)],
    db: DbSession,
    service: AuthServiceDep,
) -> MessageResponse:
    await service.verify_email(token)
    await db.commit()
    return MessageResponse(message="Email verified")


@router.post("/verify-email", response_model=MessageResponse, summary="Verify email")
async def verify_email(
    body: VerifyEmailRequest, db: DbSession, service: AuthServiceDep
) -> MessageResponse:
    await service.verify_email(body.token)
    await db.commit()
    return MessageResponse(message="Email verified")


@router.post(
    "/password/reset-request",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a password reset email",
)
async def request_password_reset(
    body: PasswordResetRequestSchema, db: DbSession, service: AuthServiceDep
) -> MessageResponse:
    await service.request_password_reset(body.email)
    await db.commit()
    return MessageResponse(
        message="If the address is registered, a reset link has been sent"
    )


@router.post("/password/reset", response_model=MessageResponse, summary="Reset password")
async def reset_password(
    body: PasswordResetSchema, db: DbSession, service: AuthServiceDep
) -> MessageResponse:
    await service.reset_password(body.token, body.new_password)
    await db.commit()
    return MessageResponse(message="Password updated")
