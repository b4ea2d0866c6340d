# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Run the API server: ``python -m tokengate``."""

import uvicorn

from tokengate.core.config import get_settings


def main() -> None:
    """Start uvicorn with the API settings."""
    settings = get_settings()
    uvicorn.run(
        "tokengate.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        workers=settings.api.workers,
        reload=settings.api.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
