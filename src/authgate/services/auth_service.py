"""Auth service — registration, login with lockout, refresh, logout.

Learn: the login flow is a small per-account state machine:

    Unlocked (failed_login_attempts < threshold)
        └─ wrong password that reaches the threshold ─→ Locked
    Locked is terminal until an admin unlock (see cli/main.py).

Checks run in a fixed order: unknown email, locked, disabled, then the
password. A locked account never gets its password checked, so a
lockout can't be used to learn whether a guess was right.

Every state change is committed before its audit event is recorded,
and audit failures are swallowed by the sink. Expected failures come
back as AuthOutcome values; database errors propagate.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.auth.errors import AuthError, AuthOutcome
from authgate.auth.identity import CurrentIdentity
from authgate.auth.jwt import TokenCodec
from authgate.auth.password import burn_verify, hash_password, verify_password
from authgate.auth.policy import PasswordPolicy
from authgate.config import Settings, settings
from authgate.db.models import User, utcnow
from authgate.events.audit import AuditEvent, AuditSink
from authgate.events.types import (
    ACCOUNT_LOCKED,
    ACCOUNT_UNLOCKED,
    LOGIN_FAILURE,
    LOGIN_SUCCESS,
    LOGOUT,
    PASSWORD_CHANGED,
    REGISTER,
    TOKEN_REFRESH,
)
from authgate.services.account_service import AccountService, normalize_email
from authgate.services.refresh_token_service import RefreshTokenService

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthSession:
    """What a successful login/registration/refresh hands back."""

    access_token: str
    refresh_token: str
    expires_in: int
    user: User


class AuthService:
    """Business logic for the authentication gate."""

    def __init__(
        self,
        db: AsyncSession,
        audit: AuditSink,
        codec: TokenCodec,
        config: Settings = settings,
    ):
        self.db = db
        self.audit = audit
        self.codec = codec
        self.config = config
        self.policy = PasswordPolicy.from_settings(config)
        self.accounts = AccountService(db)
        self.refresh_tokens = RefreshTokenService(
            db, ttl_seconds=config.refresh_token_expire_seconds
        )

    # ─── Registration ───────────────────────────────────

    async def register(
        self, name: str, email: str, password: str, confirm_password: str
    ) -> AuthOutcome[AuthSession]:
        """Create an account and sign it in.

        Validation rejections are not audited — no account exists yet.
        """
        if password != confirm_password:
            return AuthOutcome.failure(AuthError.PASSWORDS_DO_NOT_MATCH)

        problems = self.policy.violations(password)
        if problems:
            return AuthOutcome.failure(AuthError.PASSWORD_POLICY_VIOLATION, *problems)

        email = normalize_email(email)
        if await self.accounts.exists_by_email(email):
            return AuthOutcome.failure(AuthError.EMAIL_ALREADY_REGISTERED)

        password_hash = await asyncio.to_thread(
            hash_password, password, self.config.bcrypt_rounds
        )
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            account_enabled=True,
            account_locked=False,
            failed_login_attempts=0,
            password_changed_at=utcnow(),
        )
        try:
            await self.accounts.save(user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            await self.db.rollback()
            return AuthOutcome.failure(AuthError.EMAIL_ALREADY_REGISTERED)

        session = await self._open_session(user)
        logger.info("auth.registered", user_id=str(user.id))
        await self.audit.record(
            AuditEvent.success(REGISTER, user_id=user.id, username=user.email)
        )
        return AuthOutcome.success(session)

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: str, password: str) -> AuthOutcome[AuthSession]:
        email = normalize_email(email)
        user = await self.accounts.find_by_email(email)

        if user is None:
            await asyncio.to_thread(burn_verify, password, self.config.bcrypt_rounds)
            return await self._reject(
                AuthError.INVALID_CREDENTIALS, "Unknown email", username=email
            )

        if user.account_locked:
            return await self._reject(AuthError.ACCOUNT_LOCKED, "Account is locked", user=user)

        if not user.account_enabled:
            return await self._reject(AuthError.ACCOUNT_DISABLED, "Account is disabled", user=user)

        matches = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not matches:
            return await self._record_wrong_password(user)

        if not await self.accounts.record_successful_login(user):
            # Locked (or disabled) by a concurrent request after the read.
            await self.db.commit()
            return await self._reject(AuthError.ACCOUNT_LOCKED, "Account is locked", user=user)

        session = await self._open_session(user)
        logger.info("auth.login_succeeded", user_id=str(user.id))
        await self.audit.record(
            AuditEvent.success(LOGIN_SUCCESS, user_id=user.id, username=user.email)
        )
        return AuthOutcome.success(session)

    async def _record_wrong_password(self, user: User) -> AuthOutcome[AuthSession]:
        threshold = self.config.lockout_threshold
        attempt = await self.accounts.record_failed_attempt(user.id, threshold)
        await self.db.commit()

        if attempt is None:
            return await self._reject(AuthError.ACCOUNT_LOCKED, "Account is locked", user=user)

        if attempt.just_locked:
            logger.warning(
                "auth.account_locked",
                user_id=str(user.id),
                attempts=attempt.attempts,
            )
            await self.audit.record(
                AuditEvent.success(
                    ACCOUNT_LOCKED,
                    user_id=user.id,
                    username=user.email,
                    failure_reason=f"Account locked after {threshold} failed login attempts",
                )
            )
            return AuthOutcome.failure(AuthError.ACCOUNT_JUST_LOCKED)

        return await self._reject(AuthError.INVALID_CREDENTIALS, "Invalid password", user=user)

    async def _reject(
        self,
        error: AuthError,
        reason: str,
        user: Optional[User] = None,
        username: Optional[str] = None,
    ) -> AuthOutcome[AuthSession]:
        logger.info("auth.login_failed", reason=error.value)
        await self.audit.record(
            AuditEvent.failure(
                LOGIN_FAILURE,
                reason,
                user_id=user.id if user else None,
                username=user.email if user else username,
            )
        )
        return AuthOutcome.failure(error)

    # ─── Refresh ────────────────────────────────────────

    async def refresh(self, raw_token: str) -> AuthOutcome[AuthSession]:
        """Swap a usable refresh token for a new access + refresh pair.

        The presented token is revoked (rotation) whether or not a new
        pair is issued.
        """
        user_id = await self.refresh_tokens.consume(raw_token)
        if user_id is None:
            return AuthOutcome.failure(AuthError.REFRESH_TOKEN_INVALID)

        user = await self.accounts.get(user_id)
        if user is None or user.account_locked or not user.account_enabled:
            await self.db.commit()
            return AuthOutcome.failure(AuthError.REFRESH_TOKEN_INVALID)

        session = await self._open_session(user)
        await self.audit.record(
            AuditEvent.success(TOKEN_REFRESH, user_id=user.id, username=user.email)
        )
        return AuthOutcome.success(session)

    # ─── Logout ─────────────────────────────────────────

    async def logout(self, identity: CurrentIdentity) -> AuthOutcome[int]:
        """Revoke every refresh token of the caller.

        The access token in hand stays valid until it expires; there is
        no server-side record of it to revoke.
        """
        user = await self.accounts.find_by_email(identity.subject)
        if user is None:
            return AuthOutcome.success(0)

        revoked = await self.refresh_tokens.revoke_all_by_user_id(user.id)
        await self.db.commit()
        await self.audit.record(
            AuditEvent.success(LOGOUT, user_id=user.id, username=user.email)
        )
        return AuthOutcome.success(revoked)

    # ─── Password change ────────────────────────────────

    async def change_password(
        self,
        identity: CurrentIdentity,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> AuthOutcome[int]:
        """Re-hash the password and revoke all refresh tokens.

        Returns the number of refresh tokens revoked.
        """
        if new_password != confirm_password:
            return AuthOutcome.failure(AuthError.PASSWORDS_DO_NOT_MATCH)

        problems = self.policy.violations(new_password)
        if problems:
            return AuthOutcome.failure(AuthError.PASSWORD_POLICY_VIOLATION, *problems)

        user = await self.accounts.find_by_email(identity.subject)
        if user is None:
            return AuthOutcome.failure(AuthError.INVALID_CREDENTIALS)

        matches = await asyncio.to_thread(
            verify_password, current_password, user.password_hash
        )
        if not matches:
            return AuthOutcome.failure(AuthError.INVALID_CREDENTIALS)

        user.password_hash = await asyncio.to_thread(
            hash_password, new_password, self.config.bcrypt_rounds
        )
        user.password_changed_at = utcnow()
        await self.accounts.save(user)
        revoked = await self.refresh_tokens.revoke_all_by_user_id(user.id)
        await self.db.commit()

        await self.audit.record(
            AuditEvent.success(PASSWORD_CHANGED, user_id=user.id, username=user.email)
        )
        return AuthOutcome.success(revoked)

    # ─── Admin ──────────────────────────────────────────

    async def unlock(self, email: str) -> Optional[User]:
        """Clear the lock and failure counter. Returns None for unknown emails."""
        user = await self.accounts.find_by_email(email)
        if user is None:
            return None

        await self.accounts.unlock(user)
        await self.db.commit()
        logger.info("auth.account_unlocked", user_id=str(user.id))
        await self.audit.record(
            AuditEvent.success(ACCOUNT_UNLOCKED, user_id=user.id, username=user.email)
        )
        return user

    # ─── Helpers ────────────────────────────────────────

    async def _open_session(self, user: User) -> AuthSession:
        """Issue an access + refresh pair and commit the transaction."""
        access_token = self.codec.issue(user.email)
        refresh_token = await self.refresh_tokens.issue(user.id)
        await self.db.commit()
        return AuthSession(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.codec.default_ttl_seconds,
            user=user,
        )
