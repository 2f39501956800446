"""
API v1 routes.

Defines REST endpoints for registration, activation and login. Domain
exceptions propagate to the handler installed by src.api.errors.

Endpoints are plain ``def``: bcrypt and psycopg block, so FastAPI runs
them in its threadpool.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_deadline, get_login_service, get_registration_service
from src.api.models import (
    ActivateRequest,
    ActivateResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    PreRegisterRequest,
    PreRegisterResponse,
)
from src.domain.deadline import Deadline
from src.domain.login import LoginService
from src.domain.registration import RegistrationService

router = APIRouter(prefix="/auth", tags=["v1"])

_DEPENDENCY_ERRORS = {
    502: {"model": ErrorResponse, "description": "Activation message could not be sent"},
    503: {"model": ErrorResponse, "description": "Upstream dependency unavailable"},
    504: {"model": ErrorResponse, "description": "Request deadline exceeded"},
}


@router.post(
    "/register/initial",
    response_model=PreRegisterResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
        **_DEPENDENCY_ERRORS,
    },
    summary="Begin registration",
    description="Submit email and password. An activation token is sent to the email. "
    "Repeating the call for a pending email replaces the earlier token.",
)
def pre_register(
    request_data: PreRegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
    deadline: Deadline = Depends(get_deadline),
) -> PreRegisterResponse:
    """
    Store a pending account and send its activation token.

    - **email**: Valid email address to register
    - **password**: Password meeting the configured policy
    - **profile**: Optional display fields
    """
    result = service.pre_register(
        request_data.email,
        request_data.password,
        request_data.profile,
        deadline=deadline,
    )
    return PreRegisterResponse(
        message="Activation token sent",
        email=result.email,
        expires_at=result.expires_at,
    )


@router.post(
    "/register/complete",
    response_model=ActivateResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Activation token not found"},
        409: {"model": ErrorResponse, "description": "Token already used or account active"},
        410: {"model": ErrorResponse, "description": "Activation token expired"},
        422: {"description": "Validation error"},
        **_DEPENDENCY_ERRORS,
    },
    summary="Activate account with token",
)
def activate(
    request_data: ActivateRequest,
    service: RegistrationService = Depends(get_registration_service),
    deadline: Deadline = Depends(get_deadline),
) -> ActivateResponse:
    """
    Redeem an activation token.

    - **token**: Activation token from email
    """
    user_id = service.activate(request_data.token, deadline=deadline)
    return ActivateResponse(message="Account activated", user_id=user_id)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        **_DEPENDENCY_ERRORS,
    },
    summary="Log in and obtain a session token",
)
def login(
    request_data: LoginRequest,
    service: LoginService = Depends(get_login_service),
    deadline: Deadline = Depends(get_deadline),
) -> LoginResponse:
    """
    Authenticate an active account.

    All failures return the same generic 401 so that unknown emails,
    pending accounts and wrong passwords are indistinguishable.
    """
    session = service.login(request_data.email, request_data.password, deadline=deadline)
    return LoginResponse(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
    )
