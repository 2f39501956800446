"""
JWT signer adapter - Implements TokenSigner protocol.

Issues HS256 (by default) session tokens with PyJWT. Verification of
session tokens belongs to downstream consumers; decode() is provided for
them and for tests.
"""

import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

# Claims the signer owns; caller-supplied claims may not override them.
RESERVED_CLAIMS = frozenset({"iss", "sub", "iat", "exp", "jti"})


class InvalidSessionToken(Exception):
    """Raised by decode() for expired, tampered or foreign tokens."""

    pass


class JWTTokenSigner:
    """
    Implements TokenSigner protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        issuer: str = "accounts",
        ttl: timedelta = timedelta(hours=1),
    ) -> None:
        if not secret_key:
            raise ValueError("JWT secret key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._issuer = issuer
        self._ttl = ttl

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._ttl.total_seconds())

    def issue(self, subject: str, claims: Mapping[str, Any]) -> str:
        """
        Create a signed session token.

        Args:
            subject: User identifier, stored as ``sub``
            claims: Extra claims; reserved registered claims are ignored

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload = {key: value for key, value in claims.items() if key not in RESERVED_CLAIMS}
        payload.update(
            {
                "iss": self._issuer,
                "sub": subject,
                "iat": now,
                "exp": now + self._ttl,
                "jti": str(uuid.uuid4()),
            }
        )
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a session token.

        Raises:
            InvalidSessionToken: If the token is expired or invalid
        """
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidSessionToken("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidSessionToken("Invalid token") from e
