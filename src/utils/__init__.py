# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting helpers: structlog setup and UTC time handling."""

from src.utils.datetime import Clock, ensure_utc, is_past, utc_now
from src.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    "setup_logging",
    "bind_context",
    "clear_context",
    "Clock",
    "utc_now",
    "ensure_utc",
    "is_past",
]
