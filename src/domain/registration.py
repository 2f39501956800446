"""
Registration domain service - Pending/Active account state machine.

This module contains the core business logic for two-phase registration:
a pre-registration that stores a PENDING user and mails an activation
token, and an activation that redeems the token exactly once.

Account State Machine (Forward-Only Transitions)
================================================

States:
- PENDING: User stored, email ownership not yet proven
- ACTIVE: Terminal state after the activation token was redeemed

Valid Transitions:
    (none)  -> PENDING  (pre_register, new email)
    PENDING -> PENDING  (pre_register again: record and token superseded)
    PENDING -> ACTIVE   (activate with a live, unconsumed token)

Invalid Transitions (never allowed):
    ACTIVE -> any       (ACTIVE is terminal, pre_register raises EmailAlreadyTaken)

Activation tokens are single-use and time-bounded. An expired token is
purged when presented, so a retry reports TokenNotFound.

Note: Atomicity (upsert of user + token, consume + activate) is enforced
by the credential store, not by compensating logic here.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID

from .credentials import (
    MAX_TOKEN_LENGTH,
    PasswordPolicy,
    generate_activation_token,
    hash_password,
    validate_email_address,
    validate_profile,
)
from .deadline import Deadline, remaining_budget
from .exceptions import (
    AlreadyActive,
    EmailAlreadyTaken,
    NotificationFailed,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)
from .ports import ActivationOutcome, CredentialStore, Notifier

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_TTL = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PreRegistration:
    """Successful pre-registration: activation message sent."""

    email: str
    expires_at: datetime


_OUTCOME_ERRORS = {
    ActivationOutcome.NOT_FOUND: TokenNotFound,
    ActivationOutcome.EXPIRED: TokenExpired,
    ActivationOutcome.ALREADY_USED: TokenAlreadyUsed,
    ActivationOutcome.ALREADY_ACTIVE: AlreadyActive,
}


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Orchestrates the registration flow: input validation, password
    hashing, token issuance, pending-user persistence and notification.
    """

    store: CredentialStore
    notifier: Notifier
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)
    activation_ttl: timedelta = DEFAULT_ACTIVATION_TTL
    bcrypt_cost: int = 10
    clock: Callable[[], datetime] = utc_now

    def pre_register(
        self,
        email: str,
        password: str,
        profile: Mapping[str, str] | None = None,
        deadline: Deadline | None = None,
    ) -> PreRegistration:
        """
        Store a PENDING user and send a fresh activation token.

        A repeated call for an email that is still PENDING supersedes the
        earlier record and invalidates its token.

        Args:
            email: User's email address (will be normalized)
            password: User's password (will be hashed)
            profile: Optional display fields
            deadline: Optional request deadline

        Returns:
            PreRegistration with the normalized email and token expiry

        Raises:
            InvalidInput: Malformed email, password outside policy, bad profile
            EmailAlreadyTaken: Email belongs to an ACTIVE user
            NotificationFailed: User persisted but the message was not sent
            StoreUnavailable: Persistence failed, nothing was written
            DeadlineExceeded: Deadline passed before the write committed
        """
        normalized_email = validate_email_address(email)
        self.password_policy.validate(password)
        cleaned_profile = validate_profile(profile)

        remaining_budget(deadline)
        password_hash = hash_password(password, self.bcrypt_cost)
        token = generate_activation_token()
        issued_at = self.clock()
        expires_at = issued_at + self.activation_ttl

        user_id = self.store.upsert_pending_user(
            normalized_email,
            password_hash,
            cleaned_profile,
            token,
            issued_at,
            expires_at,
            timeout=remaining_budget(deadline),
        )
        if user_id is None:
            raise EmailAlreadyTaken(normalized_email)

        # The pending record stays committed if delivery fails.
        try:
            self.notifier.send_activation(normalized_email, token)
        except Exception as e:
            logger.warning(
                "Activation message for user %s could not be sent: %s", user_id, e
            )
            raise NotificationFailed(normalized_email) from e

        return PreRegistration(email=normalized_email, expires_at=expires_at)

    def activate(self, token: str, deadline: Deadline | None = None) -> UUID:
        """
        Redeem an activation token and activate the bound user.

        Args:
            token: Activation token from the notification
            deadline: Optional request deadline

        Returns:
            Identifier of the activated user

        Raises:
            TokenNotFound: Token unknown, superseded or purged
            TokenExpired: Token TTL elapsed (token is purged)
            TokenAlreadyUsed: Token consumed earlier, or by a concurrent call
            AlreadyActive: User already ACTIVE
            StoreUnavailable / DeadlineExceeded: Dependency failure
        """
        token = token.strip()
        if not token or len(token) > MAX_TOKEN_LENGTH:
            raise TokenNotFound()

        result = self.store.consume_token_and_activate(
            token, self.clock(), timeout=remaining_budget(deadline)
        )

        if result.outcome == ActivationOutcome.SUCCESS and result.user_id is not None:
            logger.info("User %s activated", result.user_id)
            return result.user_id

        if result.outcome == ActivationOutcome.ALREADY_ACTIVE:
            logger.warning("Unconsumed token presented for active user %s", result.user_id)

        raise _OUTCOME_ERRORS.get(result.outcome, TokenNotFound)()
