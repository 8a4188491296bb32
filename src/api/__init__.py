# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP surface of SchoolOps.

Routers translate requests into RequestContext plus pydantic models and
hand them to the domain services; DomainError subclasses are mapped to
status codes in src.api.app.
"""

from src.api.app import create_app

__all__ = ["create_app"]
