# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration sections and the cached get_settings() accessor."""

from src.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    DispatchSettings,
    JWTSettings,
    Settings,
    SMTPSettings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "APISettings",
    "CORSSettings",
    "DatabaseSettings",
    "DispatchSettings",
    "JWTSettings",
    "Settings",
    "SMTPSettings",
    "StorageSettings",
    "clear_settings_cache",
    "get_settings",
]
