# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unversioned routes mounted at the application root (health probes)."""

from src.api.routes.health import router as health_router

__all__ = ["health_router"]
