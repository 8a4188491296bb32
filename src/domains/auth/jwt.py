# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access token verification.

SchoolOps does not log users in. Access tokens are issued by the school's
identity provider and carry the claims every domain operation needs: who
the caller is (``sub``), what they may do (``role``) and which school's
data they may touch (``school_id``). A token without a school or with an
unknown role is rejected outright, since nothing downstream could scope
it.

create_access_token() signs tokens with the same settings and is used by
tests and local tooling.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError, field_validator

from src.core.config.settings import JWTSettings
from src.infrastructure.database.models.tenant.user import UserRole

logger = logging.getLogger(__name__)

_ROLES = frozenset(role.value for role in UserRole)


class TokenPayload(BaseModel):
    """Verified access token claims.

    Attributes:
        sub: User id.
        role: One of admin, teacher, student or parent.
        school_id: School the user belongs to.
        name: Display name used in notifications and the feed.
        email: Email address for notification delivery.
        exp: Expiry, seconds since the epoch.
        iat: Issue time, seconds since the epoch.
        jti: Token id.
    """

    sub: str
    role: str
    school_id: str
    name: str = ""
    email: str | None = None
    exp: int
    iat: int | None = None
    jti: str | None = None

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str) -> str:
        if value not in _ROLES:
            raise ValueError(f"unknown role {value!r}")
        return value

    @field_validator("sub", "school_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class JWTError(Exception):
    """Base exception for token verification."""


class TokenExpiredError(JWTError):
    """Token signature is valid but ``exp`` has passed."""


class InvalidTokenError(JWTError):
    """Token is malformed, badly signed, or lacks required claims."""


class JWTManager:
    """Signs and verifies access tokens with one shared secret."""

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def _key(self) -> str:
        return self._settings.secret_key.get_secret_value()

    def create_access_token(
        self,
        user_id: str,
        role: str,
        school_id: str,
        name: str = "",
        email: str | None = None,
        expires_in: timedelta | None = None,
    ) -> str:
        """Sign an access token for a school member.

        Args:
            user_id: Subject of the token.
            role: Member's role.
            school_id: Member's school.
            name: Display name.
            email: Email address.
            expires_in: Lifetime; defaults to access_token_expire_minutes.
                Negative values produce an already expired token.

        Returns:
            Encoded token.
        """
        issued = datetime.now(timezone.utc)
        lifetime = expires_in or timedelta(minutes=self._settings.access_token_expire_minutes)
        claims: dict[str, Any] = {
            "sub": user_id,
            "role": role,
            "school_id": school_id,
            "name": name,
            "email": email,
            "iat": int(issued.timestamp()),
            "exp": int((issued + lifetime).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(claims, self._key, algorithm=self._settings.algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Verify a token and return its claims.

        Raises:
            TokenExpiredError: If ``exp`` has passed.
            InvalidTokenError: For bad signatures, malformed tokens, or
                missing and invalid claims.
        """
        try:
            claims = jwt.decode(token, self._key, algorithms=[self._settings.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JoseJWTError as e:
            logger.warning("Token verification failed: %s", e)
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            return TokenPayload.model_validate(claims)
        except ValidationError as e:
            logger.warning("Token claims rejected: %s", e.errors(include_url=False))
            raise InvalidTokenError("Token is missing required claims")

    def verify_token(self, token: str) -> bool:
        """Return True if ``token`` would pass decode_token()."""
        try:
            self.decode_token(token)
        except JWTError:
            return False
        return True
