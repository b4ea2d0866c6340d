# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API models.

Request bodies for login and refresh, and the sanitized response shapes.
PrincipalResponse never carries the password hash.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tokengate.domains.auth.jwt import TokenPair
from tokengate.domains.auth.users import Principal


class LoginRequest(BaseModel):
    """Login request."""

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Password")


class RefreshTokenRequest(BaseModel):
    """Token refresh request."""

    refresh_token: str = Field(..., min_length=1, description="Current refresh token")


class PrincipalResponse(BaseModel):
    """Authenticated user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    branch_id: int | None = Field(None, description="Branch (tenant) ID")
    is_active: bool = Field(..., description="Account status")

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        """Build the sanitized view of a principal."""
        return cls(
            id=principal.id,
            email=principal.email,
            first_name=principal.first_name,
            last_name=principal.last_name,
            branch_id=principal.branch_id,
            is_active=principal.is_active,
        )


class TokenResponse(BaseModel):
    """Token pair response."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_expires_in: int = Field(..., description="Refresh token lifetime in seconds")

    @classmethod
    def from_pair(cls, tokens: TokenPair) -> "TokenResponse":
        """Build the response from an issued token pair."""
        return cls(**tokens.model_dump())


class LoginResponse(TokenResponse):
    """Login response: tokens plus the authenticated user."""

    principal: PrincipalResponse = Field(..., description="Authenticated user")


class ErrorResponse(BaseModel):
    """Error body returned by every auth failure."""

    detail: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Machine-readable error code")
