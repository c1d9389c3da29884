"""Tests for auth token minting and verification."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from relay.auth.tokens import TokenService
from relay.errors import ApiError, ApiErrorCode
from tests.helpers import TEST_JWT_SECRET, mint_expired_token, mint_test_token


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_JWT_SECRET, expires_in_s=3600)


class TestTokenService:
    def test_mint_then_verify(self, tokens):
        user_id = uuid4()
        claims = tokens.verify(tokens.mint(user_id, "a@x.com"))

        assert claims.user_id == user_id
        assert claims.email == "a@x.com"
        assert claims.expires_at - claims.issued_at == timedelta(seconds=3600)

    def test_expired_token_rejected(self, tokens):
        with pytest.raises(ApiError) as exc_info:
            tokens.verify(mint_expired_token(uuid4()))

        assert exc_info.value.code == ApiErrorCode.E_INVALID_CREDENTIAL
        assert exc_info.value.message == "Token expired"
        assert exc_info.value.status_code == 401

    def test_token_expires_after_lifetime(self, tokens):
        issued = datetime.now(UTC) - timedelta(seconds=3601)
        token = tokens.mint(uuid4(), "a@x.com", now=issued)

        with pytest.raises(ApiError, match="Token expired"):
            tokens.verify(token)

    def test_foreign_secret_rejected(self, tokens):
        token = mint_test_token(uuid4(), secret="another-secret-another-secret-0123")

        with pytest.raises(ApiError) as exc_info:
            tokens.verify(token)

        assert exc_info.value.code == ApiErrorCode.E_INVALID_CREDENTIAL
        assert exc_info.value.message == "Invalid token"

    def test_wrong_issuer_rejected(self, tokens):
        with pytest.raises(ApiError, match="Invalid token"):
            tokens.verify(mint_test_token(uuid4(), issuer="someone-else"))

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
    def test_malformed_token_rejected(self, tokens, token):
        with pytest.raises(ApiError) as exc_info:
            tokens.verify(token)

        assert exc_info.value.code == ApiErrorCode.E_INVALID_CREDENTIAL

    def test_non_uuid_subject_rejected(self, tokens):
        with pytest.raises(ApiError, match="Invalid token"):
            tokens.verify(mint_test_token("user-123"))
