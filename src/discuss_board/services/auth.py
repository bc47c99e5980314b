"""Registration, login, token refresh and account recovery.

This module implements the authentication flows for all three roles:
- Member join with mandatory policy consents
- Administrator bootstrap join (first administrator only)
- Login as member, moderator or administrator
- Refresh with rotation of the session ``jti`` and refresh token hash
- Logout, email verification and password reset
- Access token authentication for protected routes

Login failures for missing accounts and wrong passwords share one message
so the endpoint does not reveal which emails are registered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select, update

from discuss_board.core.config import AuthSettings, ContentPolicySettings
from discuss_board.core.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from discuss_board.db.models.accounts import (
    Administrator,
    ConsentRecord,
    JwtSession,
    Member,
    Moderator,
    UserAccount,
    VerificationToken,
)
from discuss_board.db.models.base import (
    AccountStatus,
    ActorType,
    ConsentAction,
    RoleStatus,
    TokenPurpose,
    utcnow,
)
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Principal, RoleClass
from discuss_board.services.email import EmailDeliveryError
from discuss_board.services.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    TokenCodec,
    TokenPair,
    generate_opaque_token,
    hash_opaque_token,
    hash_password,
    new_jwt_id,
    validate_administrator_password,
    validate_member_password,
    verify_password,
)

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.email import AccountEmailService

logger = logging.getLogger(__name__)

REQUIRED_CONSENTS = ("privacy_policy", "terms_of_service")

INVALID_CREDENTIALS = "Invalid email or password"

_ROLE_ACTOR = {
    RoleClass.MEMBER: ActorType.MEMBER,
    RoleClass.MODERATOR: ActorType.MODERATOR,
    RoleClass.ADMINISTRATOR: ActorType.ADMINISTRATOR,
}


@dataclass(frozen=True, slots=True)
class ConsentInput:
    """Consent submitted with a member registration."""

    consent_type: str
    consent_action: ConsentAction
    policy_version: str


@dataclass(slots=True)
class AuthResult:
    """Outcome of a successful join, login or refresh.

    Attributes:
        account: The user account.
        member: The member profile.
        tokens: Issued token pair.
        moderator: Moderator row when acting as moderator.
        administrator: Administrator row when acting as administrator.
    """

    account: UserAccount
    member: Member
    tokens: TokenPair
    moderator: Moderator | None = None
    administrator: Administrator | None = None
    consents: list[ConsentRecord] = field(default_factory=list)


class AuthService:
    """Authentication flows backed by ``jwt_sessions``."""

    def __init__(
        self,
        session: AsyncSession,
        auth_settings: AuthSettings | None = None,
        policy: ContentPolicySettings | None = None,
        email_service: AccountEmailService | None = None,
    ) -> None:
        """Initialize the auth service.

        Args:
            session: SQLAlchemy async session for database operations.
            auth_settings: Token and hashing settings.
            policy: Content policy (member password length).
            email_service: Sender for verification and reset emails.
        """
        self._session = session
        self._settings = auth_settings or AuthSettings()
        self._policy = policy or ContentPolicySettings()
        self._email = email_service
        self._codec = TokenCodec(self._settings)
        self._audit = AuditLogService(session, self._policy)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _find_account_by_email(self, email: str) -> UserAccount | None:
        result = await self._session.execute(
            select(UserAccount).where(
                UserAccount.email == email.strip().lower(),
                UserAccount.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def _find_member_for_account(self, account_id: UUID) -> Member | None:
        result = await self._session.execute(
            select(Member).where(
                Member.user_account_id == account_id,
                Member.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def _find_moderator(self, member_id: UUID) -> Moderator | None:
        result = await self._session.execute(
            select(Moderator).where(Moderator.member_id == member_id)
        )
        return result.scalar_one_or_none()

    async def _find_administrator(self, member_id: UUID) -> Administrator | None:
        result = await self._session.execute(
            select(Administrator).where(Administrator.member_id == member_id)
        )
        return result.scalar_one_or_none()

    async def _ensure_unique(self, email: str, nickname: str) -> None:
        if await self._find_account_by_email(email) is not None:
            raise ConflictError("Email already registered")
        result = await self._session.execute(
            select(Member.id).where(
                Member.nickname == nickname,
                Member.deleted_at.is_(None),
            )
        )
        if result.first() is not None:
            raise ConflictError("Nickname already taken")

    async def _role_rows(
        self, role: RoleClass, member: Member
    ) -> tuple[Moderator | None, Administrator | None]:
        """Load and check the staff rows required for ``role``.

        Administrators act with moderator rights even without a moderator row.

        Raises:
            PermissionDeniedError: If the role is not currently held.
        """
        moderator: Moderator | None = None
        administrator: Administrator | None = None

        if role == RoleClass.ADMINISTRATOR:
            administrator = await self._find_administrator(member.id)
            if administrator is None or not administrator.is_active:
                raise PermissionDeniedError("Not an active administrator")
            moderator = await self._find_moderator(member.id)
            if moderator is not None and not moderator.is_active:
                moderator = None
        elif role == RoleClass.MODERATOR:
            moderator = await self._find_moderator(member.id)
            if moderator is None or not moderator.is_active:
                raise PermissionDeniedError("Not an active moderator")

        return moderator, administrator

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def _open_session(
        self,
        account: UserAccount,
        role: RoleClass,
        *,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        jwt_id = new_jwt_id()
        tokens, refresh_hash = self._codec.issue_pair(
            subject=str(account.id), role=role.value, jwt_id=jwt_id
        )
        self._session.add(
            JwtSession(
                user_account_id=account.id,
                role=role.value,
                jwt_id=jwt_id,
                refresh_token_hash=refresh_hash,
                expires_at=tokens.refreshable_until,
                device_info=device_info,
                ip_address=ip_address,
            )
        )
        await self._session.flush()
        return tokens

    async def _issue_verification_token(
        self, account: UserAccount, purpose: TokenPurpose, lifetime: timedelta
    ) -> str:
        token = generate_opaque_token()
        self._session.add(
            VerificationToken(
                user_account_id=account.id,
                purpose=purpose,
                token_hash=hash_opaque_token(token),
                expires_at=utcnow() + lifetime,
            )
        )
        await self._session.flush()
        return token

    def _send_verification(self, account: UserAccount, member: Member, token: str) -> None:
        if self._email is None:
            return
        try:
            self._email.send_verification(
                to_email=account.email, nickname=member.nickname, token=token
            )
        except EmailDeliveryError:
            logger.exception(
                "Verification email could not be sent",
                extra={"account_id": str(account.id)},
            )

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    async def join_member(
        self,
        *,
        email: str,
        password: str,
        nickname: str,
        consents: list[ConsentInput],
        display_name: str | None = None,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> AuthResult:
        """Register a new member.

        The account starts ``pending`` and unverified; the member profile is
        ``active``. A verification email is sent when a sender is configured.

        Raises:
            ConflictError: If the email or nickname is taken.
            BusinessRuleError: If a required consent is missing.
            ValidationAPIError: If the password is too short.
        """
        email = email.strip().lower()
        nickname = nickname.strip()

        granted = {
            c.consent_type for c in consents if c.consent_action == ConsentAction.GRANTED
        }
        for required in REQUIRED_CONSENTS:
            if required not in granted:
                raise BusinessRuleError(
                    f"Missing consent for {required}",
                    error="consent_required",
                    detail={"consent_type": required},
                )

        validate_member_password(password, self._policy.member_password_min_length)
        await self._ensure_unique(email, nickname)

        account = UserAccount(
            email=email,
            password_hash=hash_password(password, self._settings.bcrypt_rounds),
            status=AccountStatus.PENDING,
            email_verified=False,
        )
        self._session.add(account)
        await self._session.flush()

        member = Member(
            user_account_id=account.id,
            nickname=nickname,
            display_name=display_name,
            status=AccountStatus.ACTIVE,
        )
        self._session.add(member)

        records = [
            ConsentRecord(
                user_account_id=account.id,
                consent_type=c.consent_type,
                consent_action=c.consent_action,
                policy_version=c.policy_version,
            )
            for c in consents
        ]
        self._session.add_all(records)
        await self._session.flush()

        tokens = await self._open_session(
            account, RoleClass.MEMBER, device_info=device_info, ip_address=ip_address
        )
        token = await self._issue_verification_token(
            account,
            TokenPurpose.EMAIL_VERIFICATION,
            timedelta(hours=self._settings.verification_token_hours),
        )
        self._send_verification(account, member, token)

        logger.info(
            "Member registered",
            extra={"account_id": str(account.id), "member_id": str(member.id)},
        )
        return AuthResult(account=account, member=member, tokens=tokens, consents=records)

    async def join_administrator(
        self,
        *,
        email: str,
        password: str,
        nickname: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> AuthResult:
        """Register the first administrator.

        Only allowed while bootstrap is enabled and no active administrator
        exists; later administrators are escalated by an existing one.

        Raises:
            PermissionDeniedError: If bootstrap is closed.
            ConflictError: If the email or nickname is taken.
            ValidationAPIError: If the password breaks the administrator policy.
        """
        if not self._settings.allow_administrator_bootstrap:
            raise PermissionDeniedError("Administrator self-registration is disabled")

        result = await self._session.execute(
            select(Administrator.id).where(
                Administrator.status == RoleStatus.ACTIVE,
                Administrator.deleted_at.is_(None),
            )
        )
        if result.first() is not None:
            raise PermissionDeniedError(
                "An administrator already exists; ask them to escalate your account"
            )

        email = email.strip().lower()
        nickname = nickname.strip()
        validate_administrator_password(password, self._policy.member_password_min_length)
        await self._ensure_unique(email, nickname)

        account = UserAccount(
            email=email,
            password_hash=hash_password(password, self._settings.bcrypt_rounds),
            status=AccountStatus.ACTIVE,
            email_verified=False,
        )
        self._session.add(account)
        await self._session.flush()

        member = Member(
            user_account_id=account.id, nickname=nickname, status=AccountStatus.ACTIVE
        )
        self._session.add(member)
        await self._session.flush()

        administrator = Administrator(member_id=member.id, status=RoleStatus.ACTIVE)
        self._session.add(administrator)
        await self._session.flush()
        administrator.escalated_by_administrator_id = administrator.id
        await self._session.flush()

        tokens = await self._open_session(
            account, RoleClass.ADMINISTRATOR, device_info=device_info, ip_address=ip_address
        )
        token = await self._issue_verification_token(
            account,
            TokenPurpose.EMAIL_VERIFICATION,
            timedelta(hours=self._settings.verification_token_hours),
        )
        self._send_verification(account, member, token)

        await self._audit.record(
            actor_type=ActorType.ADMINISTRATOR,
            actor_id=account.id,
            action_type="administrator_join",
            target_object=f"administrator:{administrator.id}",
            description="Bootstrap administrator registered",
        )
        logger.info(
            "Bootstrap administrator registered",
            extra={"administrator_id": str(administrator.id)},
        )
        return AuthResult(
            account=account, member=member, tokens=tokens, administrator=administrator
        )

    # ------------------------------------------------------------------
    # Login / refresh / logout
    # ------------------------------------------------------------------

    async def _audit_login(
        self,
        role: RoleClass,
        actor_id: UUID | None,
        email: str,
        outcome: str,
    ) -> None:
        await self._audit.record(
            actor_type=_ROLE_ACTOR[role],
            actor_id=actor_id,
            action_type=f"{role.value}_login",
            target_object=f"email:{email}",
            description=outcome,
        )

    async def login(
        self,
        role: RoleClass,
        *,
        email: str,
        password: str,
        device_info: str | None = None,
        ip_address: str | None = None,
    ) -> AuthResult:
        """Authenticate with email and password as ``role``.

        Every attempt, successful or not, leaves an audit row. Failed
        attempts are flushed before raising so the caller can commit them.

        Raises:
            AuthenticationError: Unknown email or wrong password.
            PermissionDeniedError: Unverified, inactive or lacking the role.
        """
        email = email.strip().lower()
        account = await self._find_account_by_email(email)
        if account is None:
            await self._audit_login(role, None, email, "failure: unknown account")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not account.email_verified:
            await self._audit_login(role, account.id, email, "failure: email not verified")
            raise PermissionDeniedError("Account email not verified")

        if account.status != AccountStatus.ACTIVE:
            await self._audit_login(
                role, account.id, email, f"failure: account {account.status.value}"
            )
            raise PermissionDeniedError(f"Account is {account.status.value}")

        if not verify_password(password, account.password_hash):
            await self._audit_login(role, account.id, email, "failure: wrong password")
            raise AuthenticationError(INVALID_CREDENTIALS)

        member = await self._find_member_for_account(account.id)
        if member is None:
            await self._audit_login(role, account.id, email, "failure: no member profile")
            raise PermissionDeniedError("No member profile for this account")
        if member.status != AccountStatus.ACTIVE:
            await self._audit_login(
                role, account.id, email, f"failure: member {member.status.value}"
            )
            raise PermissionDeniedError(f"Member is {member.status.value}")

        try:
            moderator, administrator = await self._role_rows(role, member)
        except PermissionDeniedError as e:
            await self._audit_login(role, account.id, email, f"failure: {e.message}")
            raise

        account.last_login_at = utcnow()
        tokens = await self._open_session(
            account, role, device_info=device_info, ip_address=ip_address
        )
        await self._audit_login(role, account.id, email, "success")

        logger.info(
            "Login succeeded",
            extra={"account_id": str(account.id), "role": role.value},
        )
        return AuthResult(
            account=account,
            member=member,
            tokens=tokens,
            moderator=moderator,
            administrator=administrator,
        )

    async def _load_session(self, jwt_id: str) -> JwtSession:
        result = await self._session.execute(
            select(JwtSession).where(JwtSession.jwt_id == jwt_id)
        )
        session_row = result.scalar_one_or_none()
        if session_row is None or session_row.deleted_at is not None:
            raise AuthenticationError("Session not found")
        if session_row.revoked_at is not None:
            raise AuthenticationError("Session has been revoked")
        if session_row.expires_at <= utcnow():
            raise AuthenticationError("Session has expired")
        return session_row

    async def _load_live_principal(
        self, account_id: UUID, role: RoleClass
    ) -> tuple[UserAccount, Member, Moderator | None, Administrator | None]:
        account = await self._session.get(UserAccount, account_id)
        if account is None or account.deleted_at is not None:
            raise AuthenticationError("Account not found")
        if account.status != AccountStatus.ACTIVE:
            raise PermissionDeniedError(f"Account is {account.status.value}")
        member = await self._find_member_for_account(account.id)
        if member is None:
            raise AuthenticationError("Member not found")
        if member.status != AccountStatus.ACTIVE:
            raise PermissionDeniedError(f"Member is {member.status.value}")
        moderator, administrator = await self._role_rows(role, member)
        return account, member, moderator, administrator

    async def refresh(self, role: RoleClass, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new pair, rotating the session.

        Raises:
            AuthenticationError: Invalid token, unknown, revoked or expired
                session, or a refresh token that was already rotated.
            PermissionDeniedError: The account or role is no longer active.
        """
        claims = self._codec.decode(refresh_token, TOKEN_TYPE_REFRESH)
        if claims.get("role") != role.value:
            raise AuthenticationError("Token was not issued for this role")

        session_row = await self._load_session(claims["jti"])
        if session_row.refresh_token_hash != hash_opaque_token(refresh_token):
            raise AuthenticationError("Refresh token has already been used")
        if session_row.role != role.value:
            raise AuthenticationError("Token was not issued for this role")

        account, member, moderator, administrator = await self._load_live_principal(
            session_row.user_account_id, role
        )

        jwt_id = new_jwt_id()
        tokens, refresh_hash = self._codec.issue_pair(
            subject=str(account.id), role=role.value, jwt_id=jwt_id
        )
        session_row.jwt_id = jwt_id
        session_row.refresh_token_hash = refresh_hash
        session_row.expires_at = tokens.refreshable_until
        await self._session.flush()

        logger.info(
            "Session refreshed",
            extra={"account_id": str(account.id), "role": role.value},
        )
        return AuthResult(
            account=account,
            member=member,
            tokens=tokens,
            moderator=moderator,
            administrator=administrator,
        )

    async def logout(self, jwt_id: str) -> None:
        """Revoke the session identified by ``jwt_id``."""
        session_row = await self._load_session(jwt_id)
        session_row.revoked_at = utcnow()
        await self._session.flush()
        logger.info("Session revoked", extra={"account_id": str(session_row.user_account_id)})

    async def revoke_all_sessions(self, account_id: UUID) -> int:
        """Revoke every open session of an account.

        Returns:
            Number of sessions revoked.
        """
        result = await self._session.execute(
            update(JwtSession)
            .where(
                JwtSession.user_account_id == account_id,
                JwtSession.revoked_at.is_(None),
            )
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def authenticate(self, access_token: str) -> Principal:
        """Resolve an access token into a principal.

        Raises:
            AuthenticationError: If the token or its session is not valid.
            PermissionDeniedError: If the account or role is no longer active.
        """
        claims = self._codec.decode(access_token, TOKEN_TYPE_ACCESS)
        try:
            role = RoleClass(claims.get("role"))
        except ValueError as e:
            raise AuthenticationError("Invalid token role") from e

        session_row = await self._load_session(claims["jti"])
        if str(session_row.user_account_id) != claims["sub"]:
            raise AuthenticationError("Invalid token subject")

        account, member, moderator, administrator = await self._load_live_principal(
            session_row.user_account_id, role
        )
        return Principal.for_role(
            account_id=account.id,
            member_id=member.id,
            role=role,
            moderator_id=moderator.id if moderator else None,
            administrator_id=administrator.id if administrator else None,
            jwt_id=session_row.jwt_id,
        )

    # ------------------------------------------------------------------
    # Email verification / password reset
    # ------------------------------------------------------------------

    async def _consume_token(self, token: str, purpose: TokenPurpose) -> VerificationToken:
        result = await self._session.execute(
            select(VerificationToken).where(
                VerificationToken.token_hash == hash_opaque_token(token),
                VerificationToken.purpose == purpose,
            )
        )
        row = result.scalar_one_or_none()
        if row is None or row.used_at is not None:
            raise BusinessRuleError("Token is invalid or has already been used")
        if row.expires_at <= utcnow():
            raise BusinessRuleError("Token has expired")
        row.used_at = utcnow()
        return row

    async def verify_email(self, token: str) -> UserAccount:
        """Mark the account's email verified and activate pending accounts."""
        row = await self._consume_token(token, TokenPurpose.EMAIL_VERIFICATION)
        account = await self._session.get(UserAccount, row.user_account_id)
        if account is None or account.deleted_at is not None:
            raise NotFoundError("Account", row.user_account_id)
        account.email_verified = True
        if account.status == AccountStatus.PENDING:
            account.status = AccountStatus.ACTIVE
        await self._session.flush()
        logger.info("Email verified", extra={"account_id": str(account.id)})
        return account

    async def request_password_reset(self, email: str) -> None:
        """Issue and mail a reset token; silent when the email is unknown."""
        account = await self._find_account_by_email(email)
        if account is None:
            logger.info("Password reset requested for unknown email")
            return

        member = await self._find_member_for_account(account.id)
        token = await self._issue_verification_token(
            account,
            TokenPurpose.PASSWORD_RESET,
            timedelta(minutes=self._settings.password_reset_token_minutes),
        )
        if self._email is not None:
            try:
                self._email.send_password_reset(
                    to_email=account.email,
                    nickname=member.nickname if member else account.email,
                    token=token,
                    expires_minutes=self._settings.password_reset_token_minutes,
                )
            except EmailDeliveryError:
                logger.exception(
                    "Password reset email could not be sent",
                    extra={"account_id": str(account.id)},
                )

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password and revoke all sessions of the account."""
        validate_member_password(new_password, self._policy.member_password_min_length)
        row = await self._consume_token(token, TokenPurpose.PASSWORD_RESET)
        account = await self._session.get(UserAccount, row.user_account_id)
        if account is None or account.deleted_at is not None:
            raise NotFoundError("Account", row.user_account_id)

        account.password_hash = hash_password(new_password, self._settings.bcrypt_rounds)
        revoked = await self.revoke_all_sessions(account.id)
        await self._session.flush()

        await self._audit.record(
            actor_type=ActorType.MEMBER,
            actor_id=account.id,
            action_type="password_reset",
            target_object=f"user_account:{account.id}",
            description=f"Password reset, {revoked} session(s) revoked",
        )
