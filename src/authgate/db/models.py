"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table.

Key concepts:
- UUID primary keys via the generic Uuid type (native on PostgreSQL,
  CHAR(32) elsewhere)
- References point one way, child → parent (refresh token → user,
  audit log → user). No back-populated object graph is needed by
  the auth core.
- Emails are stored normalised (stripped, lower-cased), which makes
  the unique constraint case-insensitive.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A user account and its authentication state.

    Learn: failed_login_attempts only moves in three ways: +1 on a wrong
    password (atomic UPDATE, see AccountService.record_failed_attempt),
    reset to 0 on a successful login, reset by the admin unlock.
    account_locked flips to true in the same statement that pushes the
    counter to the lockout threshold.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_account_status", "account_enabled", "account_locked"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(60), nullable=False)
    account_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    account_locked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    failed_login_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=utcnow
    )


class RefreshToken(Base):
    """A long-lived, server-tracked refresh token.

    Learn: only the SHA-256 digest of the token is stored (same idea as
    storing password hashes). The raw value goes to the client once.
    Usable iff not revoked and not expired.
    """

    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_expiry_revoked", "expires_at", "is_revoked"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), primary_key=True, default=new_uuid
    )
    token_hash: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    is_revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class AuthAuditLog(Base):
    """Append-only audit trail of authentication outcomes.

    Learn: user_id is nullable — a failed login against an unknown
    email has no account to point at. `username` is a snapshot of the
    email at the time of the event. Rows are never updated or deleted
    by this service; retention is somebody else's job.
    """

    __tablename__ = "auth_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    event_status: Mapped[str] = mapped_column(String(20), nullable=False)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
