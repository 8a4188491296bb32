"""SchoolOps Core Backend.

Multi-tenant school operations platform: class enrollment, assignments
and submissions, exam periods, and the notifications and activity feed
derived from them.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
