"""
Unit tests for API request/response models.

Tests Pydantic model validation for registration, activation and login.
"""

import uuid
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.api.models import (
    ActivateRequest,
    ActivateResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PreRegisterRequest,
    PreRegisterResponse,
)


class TestPreRegisterRequest:
    """Tests for PreRegisterRequest model."""

    def test_valid_request(self) -> None:
        request = PreRegisterRequest(email="user@example.com", password="Secret123")
        assert request.email == "user@example.com"
        assert request.password == "Secret123"
        assert request.profile is None

    def test_email_passed_through_unchanged(self) -> None:
        """Normalization and syntax checks belong to the domain."""
        request = PreRegisterRequest(email=" USER@EXAMPLE.COM", password="Secret123")
        assert request.email == " USER@EXAMPLE.COM"
        assert PreRegisterRequest(email="not-an-email", password="x").email == "not-an-email"

    def test_empty_email_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            PreRegisterRequest(email="", password="Secret123")
        assert "email" in str(exc_info.value)

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PreRegisterRequest(email="user@example.com", password="")

    def test_profile_accepts_string_map(self) -> None:
        request = PreRegisterRequest(
            email="user@example.com", password="Secret123", profile={"name": "Ada"}
        )
        assert request.profile == {"name": "Ada"}

    def test_missing_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PreRegisterRequest(password="Secret123")  # type: ignore[call-arg]
        with pytest.raises(ValidationError):
            PreRegisterRequest(email="user@example.com")  # type: ignore[call-arg]


class TestActivateRequest:
    def test_valid_token(self) -> None:
        assert ActivateRequest(token="abc_DEF-123").token == "abc_DEF-123"

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ActivateRequest(token="")

    def test_oversized_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ActivateRequest(token="x" * 129)


class TestLoginRequest:
    def test_malformed_email_is_accepted_by_model(self) -> None:
        """Malformed emails reach the domain and fail as bad credentials."""
        assert LoginRequest(email="not-an-email", password="x").email == "not-an-email"

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="user@example.com", password="")


class TestResponses:
    def test_pre_register_response(self) -> None:
        expires = datetime(2024, 1, 2, tzinfo=timezone.utc)
        response = PreRegisterResponse(message="ok", email="user@example.com", expires_at=expires)
        assert response.model_dump()["expires_at"] == expires

    def test_activate_response_serializes_uuid(self) -> None:
        user_id = uuid.uuid4()
        response = ActivateResponse(message="Account activated", user_id=user_id)
        assert response.model_dump(mode="json")["user_id"] == str(user_id)

    def test_login_response_defaults_bearer(self) -> None:
        assert LoginResponse(access_token="t", expires_in=60).token_type == "bearer"

    def test_error_response(self) -> None:
        error = ErrorResponse(detail="Invalid credentials", code="invalid_credentials")
        assert error.model_dump() == {"detail": "Invalid credentials", "code": "invalid_credentials"}
