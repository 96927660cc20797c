"""User service — the per-user resource guarded by ownership rules.

Learn: reads (get, search) are open to any authenticated identity;
the route layer already guarantees one. Writes (rename, delete) go
through authorize_owner and come back as ACCESS_DENIED when the
caller isn't the user being changed.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.errors import AuthError, AuthOutcome
from authgate.auth.identity import CurrentIdentity
from authgate.auth.ownership import Decision, authorize_owner
from authgate.db.models import User
from authgate.services.account_service import AccountService
from authgate.services.refresh_token_service import RefreshTokenService

logger = structlog.get_logger()


class UserService:
    """Business logic for user profile reads and owner-only writes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)
        self.refresh_tokens = RefreshTokenService(db)

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.accounts.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.accounts.find_by_email(email)

    async def search(self, name: str) -> list[User]:
        return await self.accounts.search_by_name(name)

    async def rename(
        self, user: User, name: str, identity: CurrentIdentity
    ) -> AuthOutcome[User]:
        if authorize_owner(user.email, identity) is Decision.DENY:
            return AuthOutcome.failure(AuthError.ACCESS_DENIED)

        user.name = name
        await self.accounts.save(user)
        await self.db.commit()
        return AuthOutcome.success(user)

    async def delete(
        self, user: User, identity: CurrentIdentity
    ) -> AuthOutcome[uuid.UUID]:
        """Delete a user and their refresh tokens. Audit rows are kept."""
        if authorize_owner(user.email, identity) is Decision.DENY:
            return AuthOutcome.failure(AuthError.ACCESS_DENIED)

        user_id = user.id
        await self.refresh_tokens.delete_all_by_user_id(user_id)
        await self.accounts.delete(user)
        await self.db.commit()
        logger.info("users.deleted", user_id=str(user_id))
        return AuthOutcome.success(user_id)
