# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the TokenCodec and JWTManager classes.
"""

from unittest.mock import MagicMock

import pytest
from jose import jwt

from tokengate.domains.auth.jwt import (
    AccessTokenPayload,
    ExpiredTokenError,
    InvalidTokenError,
    JWTManager,
    RefreshTokenPayload,
    TokenCodec,
    TokenError,
    TokenPair,
)
from tokengate.domains.auth.users import Principal

SECRET = "codec-secret-for-testing"


@pytest.fixture
def principal() -> Principal:
    """Create a principal to issue tokens for."""
    return Principal(
        id=42,
        email="a@x.com",
        password_hash="$2b$04$unused",
        branch_id=7,
    )


class TestTokenCodec:
    """Tests for TokenCodec class."""

    def test_sign_sets_iat_and_exp(self, codec: TokenCodec, clock) -> None:
        """Test that sign stamps integer iat and exp claims."""
        token = codec.sign({"sub": "1"}, SECRET, 60)

        claims = jwt.get_unverified_claims(token)
        issued_at = int(clock.now.timestamp())
        assert claims["iat"] == issued_at
        assert claims["exp"] == issued_at + 60

    def test_verify_returns_claims(self, codec: TokenCodec) -> None:
        """Test that verify returns the signed claims."""
        token = codec.sign({"sub": "1", "type": "access"}, SECRET, 60)

        claims = codec.verify(token, SECRET)

        assert claims["sub"] == "1"
        assert claims["type"] == "access"

    def test_token_is_compact_jws(self, codec: TokenCodec) -> None:
        """Test that the wire form has three base64url segments."""
        token = codec.sign({"sub": "1"}, SECRET, 60)

        assert token.count(".") == 2
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_valid_one_second_before_expiry(self, codec: TokenCodec, clock) -> None:
        """Test that a token is accepted one second before exp."""
        token = codec.sign({"sub": "1"}, SECRET, 60)
        clock.advance(59)

        assert codec.verify(token, SECRET)["sub"] == "1"

    def test_expired_exactly_at_exp(self, codec: TokenCodec, clock) -> None:
        """Test that a token is rejected once now reaches exp."""
        token = codec.sign({"sub": "1"}, SECRET, 60)
        clock.advance(60)

        with pytest.raises(ExpiredTokenError):
            codec.verify(token, SECRET)

    def test_expired_one_second_after_exp(self, codec: TokenCodec, clock) -> None:
        """Test that a token is rejected one second after exp."""
        token = codec.sign({"sub": "1"}, SECRET, 60)
        clock.advance(61)

        with pytest.raises(ExpiredTokenError):
            codec.verify(token, SECRET)

    def test_wrong_secret_raises_invalid(self, codec: TokenCodec) -> None:
        """Test that a token signed with another secret is invalid."""
        token = codec.sign({"sub": "1"}, "other-secret", 60)

        with pytest.raises(InvalidTokenError):
            codec.verify(token, SECRET)

    def test_wrong_secret_wins_over_expiry(self, codec: TokenCodec, clock) -> None:
        """Test that signature failure is reported before expiry."""
        token = codec.sign({"sub": "1"}, "other-secret", 60)
        clock.advance(3600)

        with pytest.raises(InvalidTokenError):
            codec.verify(token, SECRET)

    def test_tampered_payload_raises_invalid(self, codec: TokenCodec) -> None:
        """Test that modifying the payload breaks the signature."""
        token = codec.sign({"sub": "1"}, SECRET, 60)
        forged = jwt.encode(
            {**jwt.get_unverified_claims(token), "sub": "2"},
            "attacker-secret",
            algorithm="HS256",
        )
        header, _, signature = token.split(".")
        _, forged_payload, _ = forged.split(".")

        with pytest.raises(InvalidTokenError):
            codec.verify(f"{header}.{forged_payload}.{signature}", SECRET)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "a.b"])
    def test_malformed_token_raises_invalid(self, codec: TokenCodec, token: str) -> None:
        """Test that structurally broken tokens are invalid."""
        with pytest.raises(InvalidTokenError):
            codec.verify(token, SECRET)

    def test_missing_exp_raises_invalid(self, codec: TokenCodec) -> None:
        """Test that a signed token without exp is invalid."""
        token = jwt.encode({"sub": "1"}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            codec.verify(token, SECRET)

    def test_errors_share_base_class(self) -> None:
        """Test that both codec errors derive from TokenError."""
        assert issubclass(InvalidTokenError, TokenError)
        assert issubclass(ExpiredTokenError, TokenError)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_token_pair_returns_valid_tokens(
        self,
        jwt_manager: JWTManager,
        principal: Principal,
    ) -> None:
        """Test that create_token_pair returns valid token pair."""
        result = jwt_manager.create_token_pair(principal, token_id="record-1")

        assert isinstance(result, TokenPair)
        assert result.token_type == "Bearer"
        assert result.expires_in == 3600
        assert result.refresh_expires_in == 604800

    def test_decode_access_token_returns_payload(
        self,
        jwt_manager: JWTManager,
        principal: Principal,
    ) -> None:
        """Test that decode_access returns the principal's claims."""
        token = jwt_manager.issue_access_token(principal)

        payload = jwt_manager.decode_access(token)

        assert isinstance(payload, AccessTokenPayload)
        assert payload.sub == 42
        assert payload.email == "a@x.com"
        assert payload.branch_id == 7
        assert payload.type == "access"
        assert payload.exp - payload.iat == 3600

    def test_decode_refresh_token_returns_payload(
        self,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that decode_refresh returns the record id as jti."""
        token = jwt_manager.issue_refresh_token(42, "record-1")

        payload = jwt_manager.decode_refresh(token)

        assert isinstance(payload, RefreshTokenPayload)
        assert payload.sub == 42
        assert payload.jti == "record-1"
        assert payload.exp - payload.iat == 604800

    def test_access_tokens_are_unique(
        self,
        jwt_manager: JWTManager,
        principal: Principal,
    ) -> None:
        """Test that two access tokens issued at the same instant differ."""
        assert jwt_manager.issue_access_token(principal) != jwt_manager.issue_access_token(principal)

    def test_access_token_rejected_as_refresh(
        self,
        jwt_manager: JWTManager,
        principal: Principal,
    ) -> None:
        """Test that access tokens are signed with a different secret."""
        token = jwt_manager.issue_access_token(principal)

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_refresh(token)

    def test_refresh_token_rejected_as_access(self, jwt_manager: JWTManager) -> None:
        """Test that refresh tokens are not accepted as access tokens."""
        token = jwt_manager.issue_refresh_token(42, "record-1")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_access(token)

    def test_wrong_type_claim_raises_error(
        self,
        jwt_manager: JWTManager,
        codec: TokenCodec,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that a correctly signed token of the wrong type is invalid."""
        token = codec.sign(
            {"sub": "42", "type": "access", "email": "a@x.com", "jti": "x"},
            jwt_settings.refresh_secret_value,
            60,
        )

        with pytest.raises(InvalidTokenError, match="Expected refresh token"):
            jwt_manager.decode_refresh(token)

    def test_missing_claims_raise_invalid(
        self,
        jwt_manager: JWTManager,
        codec: TokenCodec,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that an access token lacking email is invalid."""
        token = codec.sign(
            {"sub": "42", "type": "access", "jti": "x"},
            jwt_settings.access_secret_value,
            60,
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_access(token)

    def test_decode_expired_token_raises_error(
        self,
        jwt_manager: JWTManager,
        principal: Principal,
        clock,
    ) -> None:
        """Test that an expired access token raises ExpiredTokenError."""
        token = jwt_manager.issue_access_token(principal)
        clock.advance(3600)

        with pytest.raises(ExpiredTokenError):
            jwt_manager.decode_access(token)
