"""
Login domain service - credential verification and session issuance.

Every rejection raises the same InvalidCredentials, whether the email is
unknown, the account is still PENDING, or the password is wrong. bcrypt
runs on every path (against a dummy hash when there is no usable stored
hash) so response time does not separate those cases either.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .credentials import normalize_email, verify_password
from .deadline import Deadline, remaining_budget
from .exceptions import InvalidCredentials, SignerUnavailable
from .ports import CredentialStore, TokenSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionToken:
    """Signed session credential returned to the caller."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = 0


@dataclass
class LoginService:
    """Domain service for login of ACTIVE users."""

    store: CredentialStore
    signer: TokenSigner
    claims: Mapping[str, Any] = field(default_factory=lambda: {"role": "user"})
    bcrypt_cost: int = 10

    def login(self, email: str, password: str, deadline: Deadline | None = None) -> SessionToken:
        """
        Authenticate an ACTIVE user and issue a session token.

        Args:
            email: User's email (will be normalized)
            password: User's password
            deadline: Optional request deadline

        Returns:
            SessionToken signed by the configured signer

        Raises:
            InvalidCredentials: Unknown email, PENDING account or wrong password
            SignerUnavailable: Token could not be signed
            StoreUnavailable / DeadlineExceeded: Dependency failure
        """
        normalized_email = normalize_email(email)
        user = self.store.find_user_by_email(normalized_email, timeout=remaining_budget(deadline))

        if user is None or not user.is_active:
            verify_password(password, None, self.bcrypt_cost)
            if user is not None:
                logger.info("Login rejected for user %s: account not activated", user.id)
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash, self.bcrypt_cost):
            raise InvalidCredentials()

        current = self.store.find_user_by_id(user.id, timeout=remaining_budget(deadline))
        if current is None or not current.is_active:
            raise InvalidCredentials()

        claims = {**self.claims, "email": current.email}
        remaining_budget(deadline)
        try:
            token = self.signer.issue(str(current.id), claims)
        except Exception as e:
            logger.error("Session token issuance failed for user %s: %s", current.id, e)
            raise SignerUnavailable() from e

        return SessionToken(access_token=token, expires_in=self.signer.expires_in)
