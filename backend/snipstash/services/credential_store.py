"""
SnipStash Backend - Credential Store
====================================

What:  Accounts, password verification and sign-in sessions.
How:   bcrypt for password hashes; opaque random session tokens whose
       HMAC-SHA256 digest (keyed by STORE_KEY) is the only thing persisted.
Who:   Called by the account service, the auth dependencies and the
       session gate middleware.

Operations:
    create_account(email, password, name)   → Account
    verify_credentials(email, password)     → Account | None
    create_session(account_id)              → (token, expires_at)
    resolve_session(token)                  → account id | None
    revoke_session(token)                   → None

Error Handling:
    Driver failures are wrapped in StoreError with the raw message as
    detail. A unique-constraint violation on accounts.email becomes
    AccountExistsError: email uniqueness is the store's job.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from snipstash.config import settings
from snipstash.exceptions import (
    AccountExistsError,
    ConfigurationError,
    StoreError,
    ValidationError,
    WeakPasswordError,
)
from snipstash.models.account import Account, LoginSession, as_utc, utcnow

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; longer inputs are refused outright
BCRYPT_MAX_BYTES = 72


class CredentialStore:
    """Account and session storage over the `accounts` / `sessions` tables."""

    # ── Passwords ─────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def check_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash or over-long input
            return False

    def _validate_password(self, password: str) -> None:
        if len(password) < settings.min_password_length:
            raise WeakPasswordError(min_length=settings.min_password_length)
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                message=f"Password cannot be longer than {BCRYPT_MAX_BYTES} bytes",
                field="password",
            )

    # ── Tokens ────────────────────────────────────────────────────────────

    def digest_token(self, token: str) -> str:
        """
        HMAC-SHA256 of a session token, hex encoded.

        Raises:
            ConfigurationError: STORE_KEY is not configured.
        """
        if not settings.store_key:
            raise ConfigurationError(context=settings.store_credentials_status())
        return hmac.new(
            settings.store_key.encode("utf-8"),
            token.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    # ── Accounts ──────────────────────────────────────────────────────────

    async def create_account(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        name: Optional[str] = None,
    ) -> Account:
        """
        Create an account with a bcrypt password hash.

        The account is created already confirmed: this store has no email
        delivery, so there is no confirmation step to wait for.

        Raises:
            WeakPasswordError / ValidationError: password policy
            AccountExistsError: the email is already registered
            StoreError: any other store failure
        """
        self._validate_password(password)
        password_hash = await run_in_threadpool(self.hash_password, password)
        now = utcnow()
        account = Account(
            email=email,
            password_hash=password_hash,
            name=name or "",
            email_confirmed_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            db.add(account)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Registration rejected, email already registered")
            raise AccountExistsError()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to create account: %s", str(e))
            raise StoreError(message="Failed to create user", detail=str(e))

        logger.info("Account created: %s", account.id)
        return account

    async def get_account(self, db: AsyncSession, account_id: str) -> Optional[Account]:
        try:
            result = await db.execute(select(Account).where(Account.id == account_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(message="Could not load the account", detail=str(e))

    async def verify_credentials(
        self,
        db: AsyncSession,
        email: str,
        password: str,
    ) -> Optional[Account]:
        """Return the account when email and password match, else None."""
        try:
            result = await db.execute(select(Account).where(Account.email == email))
            account = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(message="Could not verify credentials", detail=str(e))

        if account is None:
            return None
        matches = await run_in_threadpool(self.check_password, password, account.password_hash)
        return account if matches else None

    # ── Sessions ──────────────────────────────────────────────────────────

    async def create_session(
        self,
        db: AsyncSession,
        account_id: str,
    ) -> Tuple[str, datetime]:
        """
        Issue a new session for an account.

        Returns:
            (token, expires_at). The raw token goes into the cookie and is
            not stored anywhere server-side.
        """
        token = secrets.token_urlsafe(32)
        now = utcnow()
        expires_at = now + timedelta(days=settings.session_max_age_days)
        record = LoginSession(
            token_hash=self.digest_token(token),
            account_id=account_id,
            created_at=now,
            expires_at=expires_at,
        )
        try:
            db.add(record)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreError(message="Could not create a session", detail=str(e))
        return token, expires_at

    async def resolve_session(self, db: AsyncSession, token: Optional[str]) -> Optional[str]:
        """Account id for a live session token; None if unknown or expired."""
        if not token:
            return None
        digest = self.digest_token(token)
        try:
            result = await db.execute(
                select(LoginSession).where(LoginSession.token_hash == digest)
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(message="Could not resolve the session", detail=str(e))

        if record is None:
            return None
        if as_utc(record.expires_at) <= utcnow():
            return None
        return record.account_id

    async def revoke_session(self, db: AsyncSession, token: Optional[str]) -> None:
        if not token:
            return
        try:
            await db.execute(
                delete(LoginSession).where(LoginSession.token_hash == self.digest_token(token))
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise StoreError(message="Could not end the session", detail=str(e))


credential_store = CredentialStore()
