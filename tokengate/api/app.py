# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the tokengate API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from tokengate import __version__
from tokengate.api.errors import register_exception_handlers
from tokengate.api.middleware.auth import AuthMiddleware
from tokengate.api.middleware.rate_limit import create_limiter, rate_limit_exceeded_handler
from tokengate.api.routes import auth, health
from tokengate.core.config import Settings, get_settings
from tokengate.domains.auth.guard import AccessGuard
from tokengate.domains.auth.jwt import JWTManager
from tokengate.domains.auth.password import PasswordHasher
from tokengate.infrastructure.database.connection import (
    close_database,
    create_schema,
    get_session,
    init_database,
)
from tokengate.infrastructure.database.seeds import seed_user
from tokengate.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup configures logging, opens the database, creates missing tables
    when DB_CREATE_SCHEMA is set and seeds the bootstrap account when one
    is configured. Shutdown closes the database.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "Starting tokengate API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================
    await init_database(settings)
    logger.info("Database connection initialized")

    if settings.database.create_schema:
        await create_schema()
        logger.info("Database schema ensured")

    if settings.bootstrap.enabled:
        bootstrap = settings.bootstrap
        async with get_session() as session:
            await seed_user(
                session,
                app.state.hasher,
                email=bootstrap.email,
                password=bootstrap.password.get_secret_value(),
                first_name=bootstrap.first_name,
                last_name=bootstrap.last_name,
            )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    await close_database()
    logger.info("Shutting down tokengate API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Defaults to get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="tokengate API",
        description="Session credential service",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    jwt_manager = JWTManager(settings.jwt)
    app.state.settings = settings
    app.state.jwt_manager = jwt_manager
    app.state.hasher = PasswordHasher(rounds=settings.auth.bcrypt_rounds)
    app.state.guard = AccessGuard(jwt_manager)
    app.state.limiter = create_limiter(settings.rate_limit)

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware, guard=app.state.guard)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(
        auth.create_router(app.state.limiter, settings.rate_limit.auth),
        prefix="/auth",
        tags=["Auth"],
    )

    return app
