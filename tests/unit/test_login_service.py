"""
Unit tests for LoginService domain logic.

Tests verify:
- Active users with correct passwords receive a signed session token
- Unknown email, pending account and wrong password are indistinguishable
- bcrypt runs on every rejection path
- Signer failures surface as SignerUnavailable
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import bcrypt
import pytest
from doubles import InMemoryCredentialStore, RecordingNotifier

from src.adapters.signing.jwt_signer import JWTTokenSigner
from src.domain.credentials import hash_password
from src.domain.deadline import Deadline
from src.domain.exceptions import (
    DeadlineExceeded,
    InvalidCredentials,
    SignerUnavailable,
    StoreUnavailable,
)
from src.domain.login import LoginService
from src.domain.ports import User, UserStatus
from src.domain.registration import RegistrationService

PASSWORD = "Secret123"


def make_user(status: UserStatus, password: str = PASSWORD) -> User:
    return User(
        id=uuid.uuid4(),
        email="user@example.com",
        password_hash=hash_password(password),
        status=status,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        activated_at=datetime(2024, 1, 2, tzinfo=timezone.utc) if status == UserStatus.ACTIVE else None,
    )


def store_with(user: User | None) -> Mock:
    store = Mock()
    store.find_user_by_email.return_value = user
    store.find_user_by_id.return_value = user
    return store


class TestLoginSuccess:
    def test_returns_signed_token(self, signer: JWTTokenSigner) -> None:
        user = make_user(UserStatus.ACTIVE)
        service = LoginService(store=store_with(user), signer=signer)

        session = service.login("user@example.com", PASSWORD)

        assert session.access_token
        assert session.token_type == "bearer"
        assert session.expires_in == signer.expires_in
        claims = signer.decode(session.access_token)
        assert claims["sub"] == str(user.id)
        assert claims["email"] == "user@example.com"
        assert claims["role"] == "user"

    def test_email_is_normalized_for_lookup(self, signer: JWTTokenSigner) -> None:
        store = store_with(make_user(UserStatus.ACTIVE))
        LoginService(store=store, signer=signer).login("  USER@Example.com ", PASSWORD)
        assert store.find_user_by_email.call_args[0][0] == "user@example.com"

    def test_configured_claims_are_issued(self, signer: JWTTokenSigner) -> None:
        service = LoginService(
            store=store_with(make_user(UserStatus.ACTIVE)),
            signer=signer,
            claims={"role": "admin", "tenant": "acme"},
        )
        claims = signer.decode(service.login("user@example.com", PASSWORD).access_token)
        assert claims["role"] == "admin"
        assert claims["tenant"] == "acme"

    def test_active_check_by_id_before_issuing(self, signer: JWTTokenSigner) -> None:
        user = make_user(UserStatus.ACTIVE)
        store = store_with(user)
        LoginService(store=store, signer=signer).login("user@example.com", PASSWORD)
        store.find_user_by_id.assert_called_once()
        assert store.find_user_by_id.call_args[0][0] == user.id


class TestLoginIndistinguishability:
    """Every rejection is the same InvalidCredentials."""

    def _failure(self, store: Mock, password: str = PASSWORD) -> InvalidCredentials:
        signer = Mock()
        service = LoginService(store=store, signer=signer)
        with pytest.raises(InvalidCredentials) as exc_info:
            service.login("user@example.com", password)
        signer.issue.assert_not_called()
        return exc_info.value

    def test_unknown_email(self) -> None:
        self._failure(store_with(None))

    def test_pending_user_with_correct_password(self) -> None:
        self._failure(store_with(make_user(UserStatus.PENDING)))

    def test_wrong_password(self) -> None:
        self._failure(store_with(make_user(UserStatus.ACTIVE)), password="wrong-password1")

    def test_all_failures_look_the_same(self) -> None:
        errors = [
            self._failure(store_with(None)),
            self._failure(store_with(make_user(UserStatus.PENDING))),
            self._failure(store_with(make_user(UserStatus.ACTIVE)), password="wrong-password1"),
        ]
        assert {type(e) for e in errors} == {InvalidCredentials}
        assert {str(e) for e in errors} == {""}
        assert {e.code for e in errors} == {"invalid_credentials"}

    @pytest.mark.parametrize("status", [None, UserStatus.PENDING])
    def test_bcrypt_runs_when_no_usable_user(self, status: UserStatus | None) -> None:
        user = make_user(status) if status is not None else None
        with patch("src.domain.credentials.bcrypt.checkpw", wraps=bcrypt.checkpw) as checkpw:
            self._failure(store_with(user))
        checkpw.assert_called_once()

    def test_pending_reason_logged_not_returned(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="src.domain.login"):
            exc = self._failure(store_with(make_user(UserStatus.PENDING)))
        assert "not activated" in caplog.text
        assert "activated" not in str(exc)

    def test_oversized_password_rejected_on_every_path(self) -> None:
        """Passwords past the bcrypt limit fail the same way whether or not the account exists."""
        long_password = "a" * 100
        errors = [
            self._failure(store_with(None), password=long_password),
            self._failure(store_with(make_user(UserStatus.PENDING)), password=long_password),
            self._failure(store_with(make_user(UserStatus.ACTIVE)), password=long_password),
        ]
        assert {(type(e), str(e), e.code) for e in errors} == {
            (InvalidCredentials, "", "invalid_credentials")
        }

    def test_dummy_check_uses_configured_cost(self) -> None:
        service = LoginService(store=store_with(None), signer=Mock(), bcrypt_cost=11)
        with patch("src.domain.credentials.bcrypt.checkpw", wraps=bcrypt.checkpw) as checkpw:
            with pytest.raises(InvalidCredentials):
                service.login("user@example.com", PASSWORD)
        assert checkpw.call_args[0][1].startswith(b"$2b$11$")


class TestLoginDependencyFailures:
    def test_signer_failure_raises_signer_unavailable(self) -> None:
        signer = Mock()
        signer.issue.side_effect = RuntimeError("hsm offline")
        service = LoginService(store=store_with(make_user(UserStatus.ACTIVE)), signer=signer)

        with pytest.raises(SignerUnavailable):
            service.login("user@example.com", PASSWORD)

    def test_store_failure_propagates(self, signer: JWTTokenSigner) -> None:
        store = Mock()
        store.find_user_by_email.side_effect = StoreUnavailable("down")
        with pytest.raises(StoreUnavailable):
            LoginService(store=store, signer=signer).login("user@example.com", PASSWORD)

    def test_expired_deadline(self, signer: JWTTokenSigner) -> None:
        store = store_with(make_user(UserStatus.ACTIVE))
        with pytest.raises(DeadlineExceeded):
            LoginService(store=store, signer=signer).login(
                "user@example.com", PASSWORD, deadline=Deadline(at=time.monotonic() - 1)
            )
        store.find_user_by_email.assert_not_called()


class TestLoginAfterRegistration:
    """Login against users created through RegistrationService."""

    def test_pending_then_active(
        self, store: InMemoryCredentialStore, notifier: RecordingNotifier, signer: JWTTokenSigner
    ) -> None:
        registration = RegistrationService(store=store, notifier=notifier)
        login = LoginService(store=store, signer=signer)

        registration.pre_register("user@example.com", PASSWORD)
        with pytest.raises(InvalidCredentials):
            login.login("user@example.com", PASSWORD)

        registration.activate(notifier.last_token)
        assert login.login("user@example.com", PASSWORD).access_token
