"""Password hashing, password policy and JWT helpers.

Passwords are hashed with bcrypt. Access and refresh tokens are JWTs signed
with the configured HMAC secret; both carry the session ``jti`` so the
session row can be looked up and revoked.
"""

from __future__ import annotations

import hashlib
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from discuss_board.core.exceptions import AuthenticationError, ValidationAPIError

if TYPE_CHECKING:
    from discuss_board.core.config import AuthSettings

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72

_SPECIAL_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt."""
    password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def validate_member_password(password: str, min_length: int = 10) -> None:
    """Members only need a minimum length.

    Raises:
        ValidationAPIError: If the password is too short.
    """
    if len(password) < min_length:
        msg = f"Password must be at least {min_length} characters"
        raise ValidationAPIError(msg)


def validate_administrator_password(password: str, min_length: int = 10) -> None:
    """Administrators need length plus four character classes.

    Raises:
        ValidationAPIError: Listing every rule the password breaks.
    """
    problems = []
    if len(password) < min_length:
        problems.append(f"at least {min_length} characters")
    if not any(c.isupper() for c in password):
        problems.append("an uppercase letter")
    if not any(c.islower() for c in password):
        problems.append("a lowercase letter")
    if not any(c.isdigit() for c in password):
        problems.append("a digit")
    if not _SPECIAL_CHARACTERS.search(password):
        problems.append("a special character")
    if problems:
        msg = "Password must contain " + ", ".join(problems)
        raise ValidationAPIError(msg, detail={"requirements": problems})


def hash_opaque_token(token: str) -> str:
    """SHA-256 hex digest used to store refresh and verification tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_opaque_token() -> str:
    """256-bit URL-safe random token."""
    return secrets.token_urlsafe(32)


def new_jwt_id() -> str:
    """Fresh ``jti`` value for a session."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class TokenPair:
    """Access and refresh tokens issued for one session.

    Attributes:
        access: Access JWT for the Authorization header.
        refresh: Refresh JWT, exchanged at the refresh endpoint.
        expired_at: When the access token expires.
        refreshable_until: When the refresh token (and session) expires.
    """

    access: str
    refresh: str
    expired_at: datetime
    refreshable_until: datetime


class TokenCodec:
    """Encode and decode the board's JWTs."""

    def __init__(self, settings: AuthSettings) -> None:
        self._settings = settings

    def encode(
        self,
        *,
        subject: str,
        role: str,
        jwt_id: str,
        token_type: str,
        expires_at: datetime,
        extra: dict[str, Any] | None = None,
    ) -> str:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": subject,
            "role": role,
            "jti": jwt_id,
            "token_type": token_type,
            "iss": self._settings.jwt_issuer,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        if extra:
            claims.update(extra)
        return jwt.encode(
            claims,
            self._settings.jwt_secret.get_secret_value(),
            algorithm=self._settings.jwt_algorithm,
        )

    def decode(self, token: str, expected_type: str) -> dict[str, Any]:
        """Verify signature, issuer, expiry and token type.

        Raises:
            AuthenticationError: If any check fails.
        """
        try:
            claims = jwt.decode(
                token,
                self._settings.jwt_secret.get_secret_value(),
                algorithms=[self._settings.jwt_algorithm],
                issuer=self._settings.jwt_issuer,
            )
        except ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except JWTError as e:
            raise AuthenticationError("Invalid token") from e

        if claims.get("token_type") != expected_type:
            raise AuthenticationError("Invalid token type")
        if not claims.get("jti") or not claims.get("sub"):
            raise AuthenticationError("Invalid token claims")
        return claims

    def issue_pair(self, *, subject: str, role: str, jwt_id: str) -> tuple[TokenPair, str]:
        """Issue access and refresh tokens sharing ``jwt_id``.

        Returns:
            Tuple of (token pair, SHA-256 of the refresh token).
        """
        now = datetime.now(UTC)
        access_expires = now + timedelta(minutes=self._settings.access_token_minutes)
        refresh_expires = now + timedelta(days=self._settings.refresh_token_days)

        access = self.encode(
            subject=subject,
            role=role,
            jwt_id=jwt_id,
            token_type=TOKEN_TYPE_ACCESS,
            expires_at=access_expires,
        )
        refresh = self.encode(
            subject=subject,
            role=role,
            jwt_id=jwt_id,
            token_type=TOKEN_TYPE_REFRESH,
            expires_at=refresh_expires,
            # Two refreshes within the same second must still differ
            extra={"nonce": secrets.token_hex(8)},
        )
        pair = TokenPair(
            access=access,
            refresh=refresh,
            expired_at=access_expires,
            refreshable_until=refresh_expires,
        )
        return pair, hash_opaque_token(refresh)
