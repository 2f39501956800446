"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain reads and the interfaces
(ports) it requires from infrastructure. Adapters implement these
protocols structurally; flows depend only on the contracts.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID


class UserStatus(str, Enum):
    """
    Account lifecycle states.

    State Transitions (forward-only):
    - PENDING -> ACTIVE (activation token redeemed)

    ACTIVE is terminal. A PENDING record may be overwritten by a repeated
    pre-registration for the same email, but never re-created once ACTIVE.
    """

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"


class ActivationOutcome(Enum):
    """
    Result of an atomic consume-and-activate attempt.

    Returned by CredentialStore.consume_token_and_activate().
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    ALREADY_ACTIVE = "already_active"


@dataclass(frozen=True)
class User:
    """User record as held by the credential store."""

    id: UUID
    email: str
    password_hash: str = field(repr=False)
    status: UserStatus
    created_at: datetime
    activated_at: datetime | None = None
    profile: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass(frozen=True)
class ActivationResult:
    """Outcome of consume_token_and_activate with the bound user, if any."""

    outcome: ActivationOutcome
    user_id: UUID | None = None


class CredentialStore(Protocol):
    """Port interface for user and activation-token persistence."""

    def find_user_by_email(self, email: str, *, timeout: float | None = None) -> User | None:
        """
        Look up a user by normalized email.

        Args:
            email: Normalized email address
            timeout: Seconds the operation may take before it is cancelled

        Returns:
            The user record, or None if no user owns the email
        """
        ...

    def find_user_by_id(self, user_id: UUID, *, timeout: float | None = None) -> User | None:
        """Look up a user by identifier. None if absent."""
        ...

    def upsert_pending_user(
        self,
        email: str,
        password_hash: str,
        profile: Mapping[str, str],
        token: str,
        issued_at: datetime,
        expires_at: datetime,
        *,
        timeout: float | None = None,
    ) -> UUID | None:
        """
        Atomically create or supersede a PENDING user and its activation token.

        In a single transaction:
        1. Insert the user as PENDING, or overwrite an existing PENDING
           record for the same email (password hash, profile, created_at)
        2. Invalidate every prior token bound to that user
        3. Store the new token with its issue and expiry timestamps

        Concurrent calls for the same email are serialized by the store;
        the last committed call wins.

        Args:
            email: Normalized email address
            password_hash: bcrypt hashed password
            profile: Display fields supplied at registration
            token: Raw activation token (stores may persist only a digest)
            issued_at: Token issue timestamp (UTC)
            expires_at: Token expiry timestamp (UTC)
            timeout: Seconds the operation may take before it is cancelled

        Returns:
            The user id, or None if the email belongs to an ACTIVE user
            (nothing is written in that case)
        """
        ...

    def consume_token_and_activate(
        self, token: str, now: datetime, *, timeout: float | None = None
    ) -> ActivationResult:
        """
        Redeem an activation token and activate its user.

        The lookup-verify-mutate sequence is atomic with respect to
        concurrent calls for the same token: at most one caller observes
        SUCCESS, the rest observe ALREADY_USED.

        Return values by scenario:
        - NOT_FOUND: Token unknown (never issued, superseded, or purged)
        - ALREADY_USED: Token was consumed earlier
        - ALREADY_ACTIVE: Bound user is ACTIVE although the token is unconsumed
        - EXPIRED: expires_at <= now; the token is deleted on this path
        - SUCCESS: Token marked consumed, user set ACTIVE with activated_at = now

        Args:
            token: Raw activation token
            now: Current time (UTC) used for the expiry check and activated_at
            timeout: Seconds the operation may take before it is cancelled
        """
        ...


class Notifier(Protocol):
    """Port interface for out-of-band activation delivery."""

    def send_activation(self, destination: str, token: str) -> None:
        """
        Deliver an activation token to the destination address.

        Raises any exception on delivery failure; the domain wraps it.
        """
        ...


class TokenSigner(Protocol):
    """Port interface for session token issuance."""

    @property
    def expires_in(self) -> int:
        """Lifetime in seconds of the tokens this signer issues."""
        ...

    def issue(self, subject: str, claims: Mapping[str, Any]) -> str:
        """
        Build a signed, time-bounded session token.

        Args:
            subject: Authenticated user identifier
            claims: Additional claims (role, email, ...)

        Returns:
            Encoded token string
        """
        ...
