"""Account store — persistence for users and their login state.

Learn: the one piece of shared mutable state with a real race is the
failed-login counter. Two wrong passwords arriving at the same time
must both count, or lockout becomes unreliable. A read-modify-write
in Python (`user.failed_login_attempts += 1`) would lose one of them,
so the increment and the lock decision happen in a single UPDATE ...
RETURNING that the database serialises per row.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from authgate.db.models import User, utcnow


def normalize_email(email: str) -> str:
    """Canonical form used for storage, lookups and token subjects."""
    return email.strip().lower()


@dataclass(frozen=True)
class FailedAttempt:
    attempts: int
    just_locked: bool


class AccountService:
    """Reads and writes User rows. Never commits; callers own the transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id, populate_existing=True)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(User.email == normalize_email(email))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def exists_by_email(self, email: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.email == normalize_email(email))
        )
        return result.first() is not None

    async def search_by_name(self, fragment: str) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.name.ilike(f"%{fragment}%"))
            .order_by(User.name)
        )
        return list(result.scalars().all())

    async def save(self, user: User) -> User:
        """Insert or update a user and flush so generated fields are set."""
        self.db.add(user)
        await self.db.flush()
        return user

    async def record_failed_attempt(
        self, user_id: uuid.UUID, threshold: int
    ) -> Optional[FailedAttempt]:
        """Atomically bump the failure counter and lock at the threshold.

        Returns None when the account was already locked by the time
        the UPDATE ran (a concurrent attempt got there first). The
        counter therefore never moves past the threshold.
        """
        new_count = User.failed_login_attempts + 1
        stmt = (
            update(User)
            .where(User.id == user_id, User.account_locked.is_(False))
            .values(
                failed_login_attempts=new_count,
                account_locked=case((new_count >= threshold, True), else_=False),
            )
            .returning(User.failed_login_attempts, User.account_locked)
            .execution_options(synchronize_session=False)
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            return None
        attempts, locked = row
        return FailedAttempt(attempts=attempts, just_locked=bool(locked))

    async def record_successful_login(
        self, user: User, now: Optional[datetime] = None
    ) -> bool:
        """Reset the failure counter, unless the account stopped being usable.

        Conditional on the row still being unlocked and enabled, so a
        lock that lands between the password check and this write wins.
        Returns False in that case and the caller must not sign in.
        """
        now = now or utcnow()
        stmt = (
            update(User)
            .where(
                User.id == user.id,
                User.account_locked.is_(False),
                User.account_enabled.is_(True),
            )
            .values(failed_login_attempts=0, last_login_at=now)
            .returning(User.id)
            .execution_options(synchronize_session=False)
        )
        if (await self.db.execute(stmt)).first() is None:
            return False
        set_committed_value(user, "failed_login_attempts", 0)
        set_committed_value(user, "last_login_at", now)
        return True

    async def unlock(self, user: User) -> None:
        user.account_locked = False
        user.failed_login_attempts = 0
        await self.save(user)

    async def delete(self, user: User) -> None:
        await self.db.delete(user)
        await self.db.flush()
