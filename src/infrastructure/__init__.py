# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adapters around the store, the mail relay and the file system:

- Database connections and ORM models (PostgreSQL)
- Derived-effects dispatch (events)
- Notifications (in-app records, email)
- File storage for uploaded submissions
"""
