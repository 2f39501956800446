"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Request
from psycopg_pool import ConnectionPool

from src.adapters.mail.console import ConsoleNotifier
from src.adapters.repository.postgres import PostgresCredentialStore
from src.adapters.signing.jwt_signer import JWTTokenSigner
from src.config.settings import get_settings
from src.domain.deadline import Deadline
from src.domain.login import LoginService
from src.domain.registration import RegistrationService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_store(request: Request) -> PostgresCredentialStore:
    """Create credential store with connection pool from app state."""
    pool = get_pool(request)
    return PostgresCredentialStore(pool)


@lru_cache
def get_notifier() -> ConsoleNotifier:
    """Get console notifier (singleton, stateless)."""
    return ConsoleNotifier(activation_base_url=get_settings().activation_base_url)


@lru_cache
def get_signer() -> JWTTokenSigner:
    """Get JWT signer configured from settings (singleton)."""
    settings = get_settings()
    return JWTTokenSigner(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
        ttl=settings.session_ttl,
    )


def get_deadline() -> Deadline:
    """Per-request deadline from the configured timeout."""
    return Deadline.after(get_settings().request_timeout_seconds)


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the credential store and notifier for the domain service.
    """
    settings = get_settings()
    return RegistrationService(
        store=get_store(request),
        notifier=get_notifier(),
        password_policy=settings.password_policy,
        activation_ttl=settings.activation_ttl,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_login_service(request: Request) -> LoginService:
    """Create login service with the credential store and JWT signer."""
    settings = get_settings()
    return LoginService(
        store=get_store(request),
        signer=get_signer(),
        claims={"role": settings.session_role},
        bcrypt_cost=settings.bcrypt_cost,
    )
