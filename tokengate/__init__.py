"""tokengate.

Session credential service: password login, short-lived access tokens,
rotating refresh tokens and bearer-token verification for HTTP APIs.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
