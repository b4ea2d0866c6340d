# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP API for tokengate.

Exports:
    create_app: FastAPI application factory.
"""

from tokengate.api.app import create_app

__all__ = ["create_app"]
