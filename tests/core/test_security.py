"""
Unit tests for password hashing and access tokens.
"""

from datetime import timedelta

import pytest

from it13.core.security import (
    create_access_token,
    decode_token,
    hash_password_async,
    verify_password,
    verify_password_async,
)


class TestPasswordHashing:
    @pytest.mark.asyncio
    async def test_hash_then_verify(self):
        hashed = await hash_password_async("Robuste#Pass2026")

        assert hashed != "Robuste#Pass2026"
        assert await verify_password_async("Robuste#Pass2026", hashed) is True
        assert await verify_password_async("robuste#pass2026", hashed) is False

    def test_malformed_hash_does_not_match(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessToken:
    def test_claims_survive_decode(self):
        token = create_access_token("42", {"role": "admin", "email": "admin@it13.fr"})

        claims = decode_token(token)

        assert claims["sub"] == "42"
        assert claims["role"] == "admin"
        assert claims["type"] == "access"

    def test_expired_token_is_rejected(self):
        token = create_access_token("42", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token("42")
        assert decode_token(token[:-2] + "xx") is None
