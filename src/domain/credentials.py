"""
Credential value types and validation.

Email normalization, password policy, password hashing and activation
token generation. Everything here is pure and framework-free so both
flows share exactly one definition of each rule.
"""

import hashlib
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache

import bcrypt
from email_validator import EmailNotValidError, validate_email

from .exceptions import InvalidInput

# bcrypt only reads the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72

MAX_PROFILE_FIELDS = 16
MAX_PROFILE_VALUE_LENGTH = 255

# Upper bound for anything presented as an activation token
MAX_TOKEN_LENGTH = 128


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


def validate_email_address(email: str) -> str:
    """
    Normalize and syntactically validate an email address.

    Deliverability (DNS) is not checked.

    Returns:
        Normalized email address

    Raises:
        InvalidInput: If the address is malformed
    """
    normalized = normalize_email(email)
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError as e:
        raise InvalidInput(f"Invalid email address: {e}") from None
    return normalized


@dataclass(frozen=True)
class PasswordPolicy:
    """Minimum requirements a registration password must meet."""

    min_length: int = 8
    require_letter: bool = True
    require_digit: bool = True

    def validate(self, password: str) -> None:
        """
        Check a password against the policy.

        Raises:
            InvalidInput: Describing the first rule the password breaks
        """
        if len(password) < self.min_length:
            raise InvalidInput(f"Password must be at least {self.min_length} characters")
        if len(password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
            raise InvalidInput(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        if self.require_letter and not any(c.isalpha() for c in password):
            raise InvalidInput("Password must contain at least one letter")
        if self.require_digit and not any(c.isdigit() for c in password):
            raise InvalidInput("Password must contain at least one digit")


def validate_profile(profile: Mapping[str, str] | None) -> dict[str, str]:
    """Validate display fields and return a plain dict copy."""
    if not profile:
        return {}
    if len(profile) > MAX_PROFILE_FIELDS:
        raise InvalidInput(f"At most {MAX_PROFILE_FIELDS} profile fields are allowed")
    cleaned: dict[str, str] = {}
    for key, value in profile.items():
        if not isinstance(key, str) or not key.strip():
            raise InvalidInput("Profile field names must be non-empty strings")
        if not isinstance(value, str):
            raise InvalidInput(f"Profile field '{key}' must be a string")
        if len(value) > MAX_PROFILE_VALUE_LENGTH:
            raise InvalidInput(
                f"Profile field '{key}' exceeds {MAX_PROFILE_VALUE_LENGTH} characters"
            )
        cleaned[key.strip()] = value.strip()
    return cleaned


def hash_password(password: str, rounds: int = 10) -> str:
    """
    Hash password using bcrypt with cost factor >= 10.

    Cost factors below 10 are raised to 10.
    """
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=max(rounds, 10))).decode()


@lru_cache
def _dummy_hash(rounds: int) -> bytes:
    """Stand-in hash for verifications that have no usable stored hash."""
    salt = bcrypt.gensalt(rounds=max(rounds, 10))
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", salt)


def verify_password(password: str, password_hash: str | None, dummy_rounds: int = 10) -> bool:
    """
    Compare a password with a stored bcrypt hash in constant time.

    When password_hash is None, or the password is longer than bcrypt
    accepts, the password is checked against a dummy hash of cost
    dummy_rounds and False is returned, so the call costs the same
    either way.
    """
    encoded = password.encode()
    if password_hash is None or len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        bcrypt.checkpw(encoded[:BCRYPT_MAX_PASSWORD_BYTES], _dummy_hash(dummy_rounds))
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


def generate_activation_token() -> str:
    """
    Generate a cryptographically secure, URL-safe activation token.

    32 random bytes, ~43 characters.
    """
    return secrets.token_urlsafe(32)


def token_digest(token: str) -> str:
    """SHA-256 hex digest of a token, the form in which stores persist it."""
    return hashlib.sha256(token.encode()).hexdigest()
