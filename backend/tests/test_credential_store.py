"""
SnipStash Backend - Credential Store & Account Service Tests
============================================================

What:  Accounts, password policy and sessions against a real SQLite store.
How:   Uses the store_db fixture and session_scope(); bcrypt runs at the
       minimum work factor (BCRYPT_ROUNDS=4 in conftest).
"""

import pytest
from datetime import timedelta
from unittest.mock import patch

from sqlalchemy import select

from snipstash.config import settings
from snipstash.database import session_scope
from snipstash.exceptions import (
    AccountExistsError,
    AuthenticationError,
    ConfigurationError,
    ValidationError,
    WeakPasswordError,
)
from snipstash.models.account import LoginSession, utcnow
from snipstash.schemas.account import RegisterRequest, SignInRequest
from snipstash.services.account_service import REGISTERED, account_service
from snipstash.services.credential_store import credential_store


class TestPasswords:

    def test_hash_is_not_the_password_and_verifies(self):
        hashed = credential_store.hash_password("secret1")
        assert hashed != "secret1"
        assert credential_store.check_password("secret1", hashed)
        assert not credential_store.check_password("secret2", hashed)

    def test_malformed_hash_does_not_raise(self):
        assert credential_store.check_password("secret1", "not-a-bcrypt-hash") is False


class TestAccounts:

    @pytest.mark.asyncio
    async def test_short_password_uses_store_message(self, store_db):
        async with session_scope() as db:
            with pytest.raises(WeakPasswordError) as exc_info:
                await credential_store.create_account(db, "a@x.com", "12345")
        assert exc_info.value.message == "Password should be at least 6 characters"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, store_db):
        async with session_scope() as db:
            await credential_store.create_account(db, "a@x.com", "secret1")
        async with session_scope() as db:
            with pytest.raises(AccountExistsError) as exc_info:
                await credential_store.create_account(db, "a@x.com", "secret2")
        assert exc_info.value.message == "User already registered"

    @pytest.mark.asyncio
    async def test_verify_credentials(self, store_db):
        async with session_scope() as db:
            account = await credential_store.create_account(db, "a@x.com", "secret1", name="Ada")
        async with session_scope() as db:
            assert (await credential_store.verify_credentials(db, "a@x.com", "secret1")).id == account.id
            assert await credential_store.verify_credentials(db, "a@x.com", "wrong!!") is None
            assert await credential_store.verify_credentials(db, "b@x.com", "secret1") is None


class TestSessions:

    @pytest.mark.asyncio
    async def test_session_round_trip_and_revoke(self, store_db):
        async with session_scope() as db:
            account = await credential_store.create_account(db, "a@x.com", "secret1")
            token, _ = await credential_store.create_session(db, account.id)

        async with session_scope() as db:
            assert await credential_store.resolve_session(db, token) == account.id
            await credential_store.revoke_session(db, token)

        async with session_scope() as db:
            assert await credential_store.resolve_session(db, token) is None

    @pytest.mark.asyncio
    async def test_only_the_digest_is_stored(self, store_db):
        async with session_scope() as db:
            account = await credential_store.create_account(db, "a@x.com", "secret1")
            token, _ = await credential_store.create_session(db, account.id)

        async with session_scope() as db:
            hashes = (await db.execute(select(LoginSession.token_hash))).scalars().all()
        assert hashes == [credential_store.digest_token(token)]
        assert token not in hashes

    @pytest.mark.asyncio
    async def test_expired_session_resolves_to_none(self, store_db):
        async with session_scope() as db:
            account = await credential_store.create_account(db, "a@x.com", "secret1")
            token, _ = await credential_store.create_session(db, account.id)

        async with session_scope() as db:
            record = await db.get(LoginSession, credential_store.digest_token(token))
            record.expires_at = utcnow() - timedelta(minutes=1)

        async with session_scope() as db:
            assert await credential_store.resolve_session(db, token) is None

    @pytest.mark.asyncio
    async def test_unknown_or_empty_token(self, store_db):
        async with session_scope() as db:
            assert await credential_store.resolve_session(db, None) is None
            assert await credential_store.resolve_session(db, "garbage") is None

    def test_missing_store_key_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "store_key", "")
        with pytest.raises(ConfigurationError) as exc_info:
            credential_store.digest_token("token")
        assert exc_info.value.context["STORE_KEY"] == "missing"


class TestAccountService:

    @pytest.mark.asyncio
    async def test_register_normalises_email(self, store_db):
        async with session_scope() as db:
            result = await account_service.register(
                db, RegisterRequest(email="  A@X.com ", password="secret1")
            )
        assert result.user.email == "a@x.com"
        assert result.message == REGISTERED
        assert result.confirmation_pending is False

    @pytest.mark.asyncio
    async def test_register_requires_email_and_password(self, store_db):
        async with session_scope() as db:
            with pytest.raises(ValidationError) as exc_info:
                await account_service.register(db, RegisterRequest(email="a@x.com"))
        assert exc_info.value.message == "Missing email or password"

    @pytest.mark.asyncio
    async def test_register_checks_configuration_first(self, mock_db_session):
        with patch.object(settings, "store_key", ""), \
             patch("snipstash.services.account_service.credential_store") as store:
            with pytest.raises(ConfigurationError) as exc_info:
                await account_service.register(mock_db_session, RegisterRequest())
            store.create_account.assert_not_called()
        assert exc_info.value.context == {"STORE_URL": "set", "STORE_KEY": "missing"}

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, store_db):
        async with session_scope() as db:
            await credential_store.create_account(db, "a@x.com", "secret1")
        async with session_scope() as db:
            with pytest.raises(AuthenticationError) as exc_info:
                await account_service.sign_in(
                    db, SignInRequest(email="a@x.com", password="nope-nope")
                )
        assert exc_info.value.code == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_sign_in_and_current_account(self, store_db):
        async with session_scope() as db:
            await credential_store.create_account(db, "a@x.com", "secret1")
        async with session_scope() as db:
            account, token, expires_at = await account_service.sign_in(
                db, SignInRequest(email="A@x.com", password="secret1")
            )
        assert expires_at > utcnow() + timedelta(days=settings.session_max_age_days - 1)

        async with session_scope() as db:
            current = await account_service.current_account(db, token)
        assert current.id == account.id
