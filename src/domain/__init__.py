"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for two-phase account
registration (pre-register, activate) and login. It defines its own port
interfaces for infrastructure abstraction, ensuring true hexagonal
architecture decoupling.
"""

from .credentials import PasswordPolicy
from .deadline import Deadline
from .exceptions import (
    AccountError,
    AlreadyActive,
    ConflictError,
    DeadlineExceeded,
    DependencyError,
    EmailAlreadyTaken,
    InvalidCredentials,
    InvalidInput,
    NotificationFailed,
    SignerUnavailable,
    StoreUnavailable,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)
from .login import LoginService, SessionToken
from .ports import (
    ActivationOutcome,
    ActivationResult,
    CredentialStore,
    Notifier,
    TokenSigner,
    User,
    UserStatus,
)
from .registration import PreRegistration, RegistrationService

__all__ = [
    "AccountError",
    "ActivationOutcome",
    "ActivationResult",
    "AlreadyActive",
    "ConflictError",
    "CredentialStore",
    "Deadline",
    "DeadlineExceeded",
    "DependencyError",
    "EmailAlreadyTaken",
    "InvalidCredentials",
    "InvalidInput",
    "LoginService",
    "Notifier",
    "NotificationFailed",
    "PasswordPolicy",
    "PreRegistration",
    "RegistrationService",
    "SessionToken",
    "SignerUnavailable",
    "StoreUnavailable",
    "TokenAlreadyUsed",
    "TokenExpired",
    "TokenNotFound",
    "TokenSigner",
    "User",
    "UserStatus",
]
