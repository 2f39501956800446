"""
Domain exceptions - Semantic error types for registration and login.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Taxonomy:
- InvalidInput: malformed email, password outside policy. Raised before
  any persistence call; the message is safe to report verbatim.
- ConflictError: the request is well-formed but the current state forbids
  it (email taken, token unknown/expired/used, bad credentials).
- DependencyError: an upstream collaborator (store, notifier, signer) failed
  or the request deadline elapsed. Safe to retry.

Every exception carries a stable ``code`` so the boundary can map it to a
transport status without string matching.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    code = "account_error"


class InvalidInput(AccountError):
    """Email or password rejected by validation."""

    code = "invalid_input"


class ConflictError(AccountError):
    """Request conflicts with the current account or token state."""

    code = "conflict"


class EmailAlreadyTaken(ConflictError):
    """Email is already bound to an ACTIVE user."""

    code = "email_taken"


class TokenNotFound(ConflictError):
    """Activation token is unknown, superseded, or was purged after expiry."""

    code = "token_not_found"


class TokenExpired(ConflictError):
    """Activation token existed but its TTL elapsed. The token is purged."""

    code = "token_expired"


class TokenAlreadyUsed(ConflictError):
    """Activation token was already consumed."""

    code = "token_already_used"


class AlreadyActive(ConflictError):
    """User bound to the token is already ACTIVE."""

    code = "already_active"


class InvalidCredentials(ConflictError):
    """
    Login failed.

    Deliberately covers unknown email, wrong password and not-yet-activated
    accounts alike so callers cannot probe account existence or state.
    """

    code = "invalid_credentials"


class DependencyError(AccountError):
    """An upstream collaborator failed. Retryable."""

    code = "upstream_failure"


class StoreUnavailable(DependencyError):
    """Credential store could not complete the operation."""

    code = "store_unavailable"


class NotificationFailed(DependencyError):
    """
    Activation message could not be dispatched.

    Partial success: the pending registration HAS been persisted. Calling
    pre_register again with the same email issues a fresh token and
    retries delivery.
    """

    code = "notify_failed"

    def __init__(self, email: str) -> None:
        super().__init__(email)
        self.email = email


class SignerUnavailable(DependencyError):
    """Session token could not be issued."""

    code = "signer_unavailable"


class DeadlineExceeded(DependencyError):
    """The caller's deadline elapsed before the operation completed."""

    code = "deadline_exceeded"
