"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Password policy beyond presence is enforced by the domain so that it
follows configuration.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PreRegisterRequest(BaseModel):
    """
    Request model for initial registration.

    Email syntax is checked by the domain so a malformed address is
    reported with the same error body as other invalid input.
    """

    email: str = Field(
        ..., min_length=1, max_length=320, description="Email address to register"
    )
    password: str = Field(..., min_length=1, max_length=256, description="User password")
    profile: dict[str, str] | None = Field(
        default=None, description="Optional display fields, e.g. {'name': 'Ada'}"
    )


class PreRegisterResponse(BaseModel):
    """Response model for accepted registration."""

    message: str
    email: str
    expires_at: datetime


class ActivateRequest(BaseModel):
    """Request model for account activation."""

    token: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Activation token received by email",
    )


class ActivateResponse(BaseModel):
    """Response model for successful activation."""

    message: str
    user_id: UUID


class LoginRequest(BaseModel):
    """
    Request model for login.

    Email is a plain string: a malformed address must fail like any other
    bad credential, not as a validation error.
    """

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)


class LoginResponse(BaseModel):
    """Response model for successful login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str
