# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared domain plumbing: actor context, error taxonomy, unit of work."""

from src.domains.common.context import RequestContext
from src.domains.common.errors import (
    DomainError,
    NotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailureError,
)
from src.domains.common.persistence import commit_unit

__all__ = [
    "RequestContext",
    "DomainError",
    "NotFoundError",
    "StoreUnavailableError",
    "UnauthorizedError",
    "ValidationFailureError",
    "commit_unit",
]
