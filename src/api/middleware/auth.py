# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bearer token authentication middleware.

Every request gets a fresh logging context with a request id. When the
Authorization header carries a valid access token, the caller is stored
on ``request.state.user`` and their id, school and role are bound to the
logging context, so domain log lines and the effects they schedule are
attributed without further plumbing.

A missing or bad token does not fail the request here; endpoints decide
through the dependencies in src.api.dependencies whether a caller is
required.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.config import get_settings
from src.domains.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError, TokenPayload
from src.domains.common import RequestContext
from src.infrastructure.database.models.base import new_id
from src.infrastructure.database.models.tenant.user import UserRole
from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/health/ready",
    "/health/live",
    "/docs",
    "/redoc",
    "/openapi.json",
})


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity taken from a verified access token."""

    id: str
    role: str
    school_id: str
    name: str = ""
    email: str | None = None

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "CurrentUser":
        return cls(
            id=payload.sub,
            role=payload.role,
            school_id=payload.school_id,
            name=payload.name,
            email=payload.email,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value

    def to_context(self) -> RequestContext:
        """Build the RequestContext passed into domain services."""
        return RequestContext(
            user_id=self.id,
            role=self.role,
            school_id=self.school_id,
            display_name=self.name,
            email=self.email,
        )


def bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token or " " in token.strip():
        return None
    return token.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    """Decode the bearer token and bind request logging context."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._jwt_manager = JWTManager(get_settings().jwt)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        clear_context()
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_id()
        bind_context(request_id=request_id, path=request.url.path)
        request.state.user = None

        if request.url.path not in PUBLIC_PATHS:
            request.state.user = self._authenticate(request)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _authenticate(self, request: Request) -> CurrentUser | None:
        token = bearer_token(request)
        if token is None:
            return None

        try:
            payload = self._jwt_manager.decode_token(token)
        except TokenExpiredError:
            logger.debug("Rejected expired token")
            return None
        except InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            return None

        user = CurrentUser.from_payload(payload)
        bind_context(actor_id=user.id, school_id=user.school_id, role=user.role)
        return user


def get_current_user(request: Request) -> CurrentUser | None:
    """Caller stored by AuthMiddleware, or None for anonymous requests."""
    return getattr(request.state, "user", None)
