# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from tokengate import __version__
from tokengate.api.dependencies import get_app_settings
from tokengate.core.config.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Report that the API process is up.

    Returns:
        HealthResponse.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
    )
