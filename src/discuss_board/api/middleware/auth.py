"""Bearer token authentication dependencies.

Protected routes declare ``require_permission(...)``. The dependency:
1. Extracts the access token from the Authorization header
2. Validates it and its session through ``AuthService.authenticate``
3. Checks the role-derived permission

A missing or invalid token yields 401, a missing permission 403.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from discuss_board.api.dependencies import AppSettings, DbSession, get_client_ip
from discuss_board.core.exceptions import AuthenticationError, PermissionDeniedError
from discuss_board.services.auth import AuthService
from discuss_board.services.authz import Permission, Principal, RoleClass

logger = logging.getLogger(__name__)

# Bearer token security scheme for OpenAPI docs
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Authenticated caller of the current request.

    Attributes:
        principal: Resolved principal handed to services.
        ip_address: Request IP address.
        user_agent: Request user agent.
    """

    principal: Principal
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def role(self) -> RoleClass:
        return self.principal.role

    def has_permission(self, permission: Permission) -> bool:
        return self.principal.has_permission(permission)

    def to_principal(self) -> Principal:
        return self.principal


async def require_authenticated_user(
    request: Request,
    db: DbSession,
    settings: AppSettings,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(bearer_scheme),
    ] = None,
) -> AuthenticatedUser:
    """Dependency that requires a valid access token.

    Raises:
        AuthenticationError: If no token is sent or it does not validate.
        PermissionDeniedError: If the account or role is no longer active.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    service = AuthService(db, settings.auth, settings.content)
    principal = await service.authenticate(credentials.credentials)

    user = AuthenticatedUser(
        principal=principal,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    request.state.user = user
    return user


def require_permission(permission: Permission) -> Callable:
    """Factory for permission-checking dependencies.

    Usage:
        @router.post("/posts")
        async def create_post(
            user: Annotated[AuthenticatedUser, Depends(require_permission(Permission.CREATE_POST))],
        ):
            ...
    """

    async def _check_permission(
        user: Annotated[AuthenticatedUser, Depends(require_authenticated_user)],
    ) -> AuthenticatedUser:
        if not user.has_permission(permission):
            logger.warning(
                "Permission denied",
                extra={
                    "account_id": str(user.principal.account_id),
                    "role": user.role.value,
                    "permission": permission.value,
                },
            )
            raise PermissionDeniedError(
                f"Permission required: {permission.value}",
                detail={"permission": permission.value},
            )
        return user

    return _check_permission


def require_role(*roles: RoleClass) -> Callable:
    """Factory for dependencies restricting a route to sessions of ``roles``."""

    async def _check_role(
        user: Annotated[AuthenticatedUser, Depends(require_authenticated_user)],
    ) -> AuthenticatedUser:
        if user.role not in roles:
            raise PermissionDeniedError(
                "Role required: " + " or ".join(role.value for role in roles)
            )
        return user

    return _check_role
