"""
SnipStash Backend - Account Service
===================================

What:  Registration, sign-in, sign-out and current-account lookup.
How:   Validates the request, then delegates to the credential store.
Who:   Called by /api/register and /api/auth/* route handlers.

Registration does not sign the account in; the client calls sign-in next.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.exceptions import AuthenticationError, ConfigurationError, ValidationError
from snipstash.models.account import Account
from snipstash.schemas.account import (
    AccountSummary,
    RegisterRequest,
    RegisterResponse,
    SignInRequest,
)
from snipstash.services.credential_store import credential_store

logger = logging.getLogger(__name__)

REGISTERED = "Registration successful"
REGISTERED_PENDING = "Registration successful. Please check your email to confirm your account."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_store_configured() -> None:
    """
    Raises:
        ConfigurationError: with the masked set/missing map as context.
    """
    if not settings.store_configured:
        status = settings.store_credentials_status()
        logger.error("Missing store credentials: %s", status)
        raise ConfigurationError(context=status)


class AccountService:

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
        """
        Create an account.

        Raises:
            ConfigurationError: store credentials missing
            ValidationError: email or password missing, password policy
            AccountExistsError: email already registered
            StoreError: credential store failure
        """
        ensure_store_configured()

        if not payload.email or not payload.password:
            logger.warning("Registration missing required fields")
            raise ValidationError(message="Missing email or password")

        email = normalize_email(payload.email)
        logger.info("Registration received for %s", email)

        account = await credential_store.create_account(
            db, email=email, password=payload.password, name=payload.name
        )
        pending = account.email_confirmed_at is None
        return RegisterResponse(
            message=REGISTERED_PENDING if pending else REGISTERED,
            user=AccountSummary(id=account.id, email=account.email),
            confirmation_pending=pending,
        )

    async def sign_in(
        self,
        db: AsyncSession,
        payload: SignInRequest,
    ) -> Tuple[Account, str, datetime]:
        """
        Verify credentials and open a session.

        Returns:
            (account, session token, expiry)

        Raises:
            AuthenticationError: missing fields or wrong email/password.
            Both cases use the same message so callers cannot probe emails.
        """
        if not payload.email or not payload.password:
            raise AuthenticationError(message="Invalid credentials", code="invalid_credentials")

        account = await credential_store.verify_credentials(
            db, normalize_email(payload.email), payload.password
        )
        if account is None:
            logger.info("Sign-in failed")
            raise AuthenticationError(message="Invalid credentials", code="invalid_credentials")

        token, expires_at = await credential_store.create_session(db, account.id)
        logger.info("Account %s signed in", account.id)
        return account, token, expires_at

    async def sign_out(self, db: AsyncSession, token: Optional[str]) -> None:
        await credential_store.revoke_session(db, token)

    async def current_account(self, db: AsyncSession, token: Optional[str]) -> Optional[Account]:
        account_id = await credential_store.resolve_session(db, token)
        if account_id is None:
            return None
        return await credential_store.get_account(db, account_id)


account_service = AccountService()
