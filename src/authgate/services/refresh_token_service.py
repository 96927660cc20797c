"""Refresh token store.

Learn: refresh tokens are opaque random strings (256 bits), not JWTs,
and they live server-side so they can be revoked. Only a SHA-256
digest is persisted, the same way API keys usually are; a leaked
table dump can't be replayed.

A token is usable iff not revoked and now < expires_at. Every check
happens inside the SQL WHERE clause, so "is it usable" and "revoke
it" are one atomic statement; a refresh token can't be spent twice
by two racing requests.
"""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.config import settings
from authgate.db.models import RefreshToken, utcnow

TOKEN_BYTES = 32


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class RefreshTokenService:
    """Issues, consumes and revokes refresh tokens. Never commits."""

    def __init__(
        self,
        db: AsyncSession,
        ttl_seconds: int = settings.refresh_token_expire_seconds,
    ):
        self.db = db
        self.ttl_seconds = ttl_seconds

    async def save(self, token: RefreshToken) -> RefreshToken:
        self.db.add(token)
        await self.db.flush()
        return token

    async def issue(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> str:
        """Create a token for a user. Returns the raw value (shown once)."""
        now = now or utcnow()
        raw = secrets.token_urlsafe(TOKEN_BYTES)
        await self.save(
            RefreshToken(
                token_hash=hash_token(raw),
                user_id=user_id,
                expires_at=now + timedelta(seconds=self.ttl_seconds),
                created_at=now,
            )
        )
        return raw

    async def consume(
        self, raw_token: str, now: Optional[datetime] = None
    ) -> Optional[uuid.UUID]:
        """Revoke a usable token and return its owner, or None if unusable."""
        now = now or utcnow()
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == hash_token(raw_token),
                RefreshToken.is_revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(is_revoked=True, revoked_at=now)
            .returning(RefreshToken.user_id)
            .execution_options(synchronize_session=False)
        )
        row = (await self.db.execute(stmt)).first()
        return row[0] if row else None

    async def revoke_all_by_user_id(
        self, user_id: uuid.UUID, now: Optional[datetime] = None
    ) -> int:
        """Flag every live token of a user as revoked. Returns the count."""
        result = await self.db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_revoked.is_(False),
            )
            .values(is_revoked=True, revoked_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_all_by_user_id(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_expired_or_revoked(self, now: Optional[datetime] = None) -> int:
        """Bulk cleanup for the periodic sweep. Returns rows deleted."""
        result = await self.db.execute(
            delete(RefreshToken)
            .where(
                or_(
                    RefreshToken.is_revoked.is_(True),
                    RefreshToken.expires_at <= (now or utcnow()),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
