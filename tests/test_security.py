"""Tests for password hashing, password policy and JWT handling.

Tests cover:
- bcrypt hashing and verification
- Member and administrator password rules
- Opaque token helpers
- TokenCodec encode/decode, expiry, tampering and token types
"""

from datetime import UTC, datetime, timedelta

import pytest

from discuss_board.core.config import AuthSettings
from discuss_board.core.exceptions import AuthenticationError, ValidationAPIError
from discuss_board.services.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    TokenCodec,
    generate_opaque_token,
    hash_opaque_token,
    hash_password,
    new_jwt_id,
    validate_administrator_password,
    validate_member_password,
    verify_password,
)


@pytest.fixture
def codec(auth_settings: AuthSettings) -> TokenCodec:
    return TokenCodec(auth_settings)


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_hash_and_verify(self):
        """A hashed password verifies; a different one does not."""
        hashed = hash_password("s3cret-password", rounds=4)
        assert hashed.startswith("$2")
        assert verify_password("s3cret-password", hashed)
        assert not verify_password("other-password", hashed)

    def test_hashes_are_salted(self):
        """Hashing twice gives different hashes."""
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_hash_does_not_verify(self):
        """A corrupt stored hash is treated as a mismatch."""
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestPasswordPolicy:
    """Tests for the password rules."""

    def test_member_password_min_length(self):
        """Members need the minimum length only."""
        validate_member_password("long-enough-pw", min_length=10)
        with pytest.raises(ValidationAPIError, match="at least 10"):
            validate_member_password("short", min_length=10)

    def test_administrator_password_accepts_strong(self):
        """A password with every character class passes."""
        validate_administrator_password("Strong-Pass-1")

    def test_administrator_password_lists_problems(self):
        """Every missing rule is reported."""
        with pytest.raises(ValidationAPIError) as exc_info:
            validate_administrator_password("lowercaseonly")
        requirements = exc_info.value.detail["requirements"]
        assert "an uppercase letter" in requirements
        assert "a digit" in requirements
        assert "a special character" in requirements
        assert "a lowercase letter" not in requirements


class TestOpaqueTokens:
    """Tests for random tokens and their hashes."""

    def test_generated_tokens_are_unique(self):
        assert generate_opaque_token() != generate_opaque_token()

    def test_hash_is_sha256_hex(self):
        digest = hash_opaque_token("token")
        assert len(digest) == 64
        assert digest == hash_opaque_token("token")

    def test_jwt_ids_are_unique(self):
        assert new_jwt_id() != new_jwt_id()


class TestTokenCodec:
    """Tests for JWT encoding and decoding."""

    def test_round_trip_claims(self, codec: TokenCodec):
        """Decoded claims carry subject, role, jti and type."""
        token = codec.encode(
            subject="account-1",
            role="member",
            jwt_id="jti-1",
            token_type=TOKEN_TYPE_ACCESS,
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
        )
        claims = codec.decode(token, TOKEN_TYPE_ACCESS)
        assert claims["sub"] == "account-1"
        assert claims["role"] == "member"
        assert claims["jti"] == "jti-1"
        assert claims["iss"] == "discuss-board"

    def test_wrong_token_type_rejected(self, codec: TokenCodec):
        """A refresh token cannot be used as an access token."""
        token = codec.encode(
            subject="account-1",
            role="member",
            jwt_id="jti-1",
            token_type=TOKEN_TYPE_REFRESH,
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
        )
        with pytest.raises(AuthenticationError, match="Invalid token type"):
            codec.decode(token, TOKEN_TYPE_ACCESS)

    def test_expired_token_rejected(self, codec: TokenCodec):
        """Expired tokens are rejected with a dedicated message."""
        token = codec.encode(
            subject="account-1",
            role="member",
            jwt_id="jti-1",
            token_type=TOKEN_TYPE_ACCESS,
            expires_at=datetime.now(UTC) - timedelta(minutes=1),
        )
        with pytest.raises(AuthenticationError, match="expired"):
            codec.decode(token, TOKEN_TYPE_ACCESS)

    def test_foreign_signature_rejected(self, codec: TokenCodec):
        """Tokens signed with another secret are invalid."""
        other = TokenCodec(AuthSettings(jwt_secret="a-completely-different-secret-value"))
        token = other.encode(
            subject="account-1",
            role="member",
            jwt_id="jti-1",
            token_type=TOKEN_TYPE_ACCESS,
            expires_at=datetime.now(UTC) + timedelta(minutes=5),
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            codec.decode(token, TOKEN_TYPE_ACCESS)

    def test_garbage_rejected(self, codec: TokenCodec):
        with pytest.raises(AuthenticationError):
            codec.decode("not.a.jwt", TOKEN_TYPE_ACCESS)

    def test_issue_pair(self, codec: TokenCodec, auth_settings: AuthSettings):
        """Both tokens share the jti and the refresh hash matches."""
        pair, refresh_hash = codec.issue_pair(subject="account-1", role="member", jwt_id="jti-9")

        access_claims = codec.decode(pair.access, TOKEN_TYPE_ACCESS)
        refresh_claims = codec.decode(pair.refresh, TOKEN_TYPE_REFRESH)
        assert access_claims["jti"] == refresh_claims["jti"] == "jti-9"
        assert refresh_hash == hash_opaque_token(pair.refresh)
        assert pair.refreshable_until - pair.expired_at > timedelta(days=6)

    def test_refresh_tokens_differ_within_same_second(self, codec: TokenCodec):
        first, _ = codec.issue_pair(subject="a", role="member", jwt_id="j")
        second, _ = codec.issue_pair(subject="a", role="member", jwt_id="j")
        assert first.refresh != second.refresh
