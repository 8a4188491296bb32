# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for access token signing and verification."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from src.core.config.settings import JWTSettings
from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)


@pytest.fixture
def jwt_settings() -> JWTSettings:
    """Settings with a fixed secret and the default lifetime."""
    return JWTSettings(secret_key=SecretStr("mwangaza-test-secret"))


@pytest.fixture
def jwt_manager(jwt_settings: JWTSettings) -> JWTManager:
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager."""

    def test_create_and_decode_access_token(self, jwt_manager: JWTManager) -> None:
        """Test that a created token decodes to the same claims."""
        user_id = str(uuid4())
        school_id = str(uuid4())

        token = jwt_manager.create_access_token(
            user_id=user_id,
            role="teacher",
            school_id=school_id,
            name="Ms Achieng",
            email="achieng@example.com",
        )
        payload = jwt_manager.decode_token(token)

        assert isinstance(payload, TokenPayload)
        assert payload.sub == user_id
        assert payload.role == "teacher"
        assert payload.school_id == school_id
        assert payload.name == "Ms Achieng"
        assert payload.email == "achieng@example.com"
        assert payload.jti is not None
        assert payload.exp - payload.iat == 30 * 60

    def test_decode_expired_token_raises(self, jwt_manager: JWTManager) -> None:
        """Test that an expired token raises TokenExpiredError."""
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            role="student",
            school_id=str(uuid4()),
            expires_in=timedelta(seconds=-10),
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_decode_with_wrong_secret_raises(
        self,
        jwt_manager: JWTManager,
        jwt_settings: JWTSettings,
    ) -> None:
        """Test that a token signed with another key is rejected."""
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            role="admin",
            school_id=str(uuid4()),
        )
        other_settings = JWTSettings(secret_key=SecretStr("another-secret"))

        with pytest.raises(InvalidTokenError):
            JWTManager(other_settings).decode_token(token)

    def test_decode_token_missing_school_raises(
        self,
        jwt_manager: JWTManager,
        jwt_settings: JWTSettings,
    ) -> None:
        """Test that a token without school_id is invalid."""
        token = jwt.encode(
            {"sub": str(uuid4()), "role": "teacher", "exp": 4102444800},
            jwt_settings.secret_key.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        """Test verify_token returns a boolean."""
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            role="parent",
            school_id=str(uuid4()),
        )

        assert jwt_manager.verify_token(token) is True
        assert jwt_manager.verify_token("not-a-token") is False

    def test_decode_token_unknown_role_raises(self, jwt_manager: JWTManager) -> None:
        """Test that a role outside the school roles is rejected."""
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()),
            role="superuser",
            school_id=str(uuid4()),
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)
