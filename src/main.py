# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Process entry point: ``schoolops-api`` or ``python -m src.main``."""

import uvicorn

from src.core.config import get_settings


def run() -> None:
    """Serve the API with uvicorn using API_* settings."""
    api = get_settings().api
    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=api.host,
        port=api.port,
        workers=1 if api.reload else api.workers,
        reload=api.reload,
        # Logging is configured by the application lifespan.
        log_config=None,
    )


if __name__ == "__main__":
    run()
