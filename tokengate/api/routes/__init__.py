# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API routers."""

from tokengate.api.routes import auth, health

__all__ = ["auth", "health"]
