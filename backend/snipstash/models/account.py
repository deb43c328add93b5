"""
SnipStash Backend - Account & Session SQLAlchemy Models
=======================================================

What:  ORM models for the `accounts` and `sessions` tables.
Who:   Owned by the credential store; nothing else writes these tables.

Table Design:
    - accounts.email is UNIQUE: the store, not the application, rejects
      duplicate registrations (IntegrityError → AccountExistsError).
    - sessions stores only an HMAC digest of each token. A leaked table
      cannot be replayed as cookies.
    - Accounts are never deleted by the application; sessions cascade
      with their account if an operator removes one.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Account(Base):
    """A registered user. Created by registration, read by sign-in."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Lower-cased email, unique per account",
    )

    # bcrypt hash, never the plain password
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Optional display name",
    )

    # NULL while an email confirmation step is pending
    email_confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}')>"


class LoginSession(Base):
    """
    A signed-in session. The cookie carries the raw token; this row
    carries its digest and expiry.

    Query Patterns:
        - Resolve cookie: SELECT ... WHERE token_hash = :digest (primary key)
        - Sign out:       DELETE ... WHERE token_hash = :digest
    """

    __tablename__ = "sessions"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)

    account_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_account_id", "account_id"),
    )

    def __repr__(self) -> str:
        return f"<LoginSession(account_id={self.account_id}, expires_at='{self.expires_at}')>"
