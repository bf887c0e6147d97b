"""Tests for JWT access tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from recipebox.auth.jwt import create_access_token, verify_token


class TestAccessToken:
    def test_create_and_verify(self, settings):
        token = create_access_token(user_id=1, role="admin", settings=settings)
        payload = verify_token(token, settings)
        assert payload["sub"] == "1"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"
        assert payload["iss"] == "recipebox"

    def test_wrong_secret_rejected(self, settings):
        token = create_access_token(user_id=1, role="user", settings=settings)
        other = settings.model_copy(update={"jwt_secret": "another-secret-key-with-enough-length"})
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token, other)

    def test_expired_rejected(self, settings):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "role": "user", "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1),
             "iss": settings.jwt_issuer, "type": "access"},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token, settings)

    def test_wrong_type_rejected(self, settings):
        token = jwt.encode(
            {"sub": "1", "iss": settings.jwt_issuer, "type": "refresh"},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(token, settings)
