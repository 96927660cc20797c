"""Auth API — registration, login, token refresh, logout, password change.

Learn: Routes for the authentication lifecycle:
- POST /auth/register → create an account, returns tokens (201)
- POST /auth/login → email/password → access + refresh tokens
- POST /auth/refresh → refresh token → new pair (old one revoked)
- POST /auth/logout → revoke all of the caller's refresh tokens
- POST /auth/password → change password, revoke all refresh tokens
- GET /auth/me → current user info

register, login and refresh are public. The others need a bearer
token. Logout can't kill the access token itself; clients should drop
it, and it dies on its own within the access-token TTL.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.api.errors import raise_for_outcome
from authgate.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_token_codec,
)
from authgate.auth.jwt import TokenCodec
from authgate.db.engine import async_session_factory, get_db
from authgate.events.audit import AuditSink
from authgate.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RevokedResponse,
    UserRead,
)
from authgate.services.auth_service import AuthService, AuthSession
from authgate.services.user_service import UserService

router = APIRouter(prefix="/auth")


def get_audit_sink() -> AuditSink:
    """FastAPI dependency — audit sink with its own sessions."""
    return AuditSink(async_session_factory)


def _svc(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(db, audit, codec)


def _auth_response(session: AuthSession) -> AuthResponse:
    return AuthResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=UserRead.model_validate(session.user),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account and sign it in."""
    outcome = await svc.register(
        name=body.name,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    raise_for_outcome(outcome)
    return _auth_response(outcome.value)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → tokens."""
    outcome = await svc.login(body.email, body.password)
    raise_for_outcome(outcome)
    return _auth_response(outcome.value)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AuthResponse)
async def refresh(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Exchange a refresh token for a new access + refresh pair."""
    outcome = await svc.refresh(body.refresh_token)
    raise_for_outcome(outcome)
    return _auth_response(outcome.value)


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=RevokedResponse)
async def logout(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Revoke all refresh tokens of the current user."""
    outcome = await svc.logout(identity)
    raise_for_outcome(outcome)
    return RevokedResponse(revoked_refresh_tokens=outcome.value)


# ─── Password change ────────────────────────────────────


@router.post("/password", response_model=RevokedResponse)
async def change_password(
    body: ChangePasswordRequest,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    """Change the current user's password. Signs out every other session."""
    outcome = await svc.change_password(
        identity,
        current_password=body.current_password,
        new_password=body.new_password,
        confirm_password=body.confirm_password,
    )
    raise_for_outcome(outcome)
    return RevokedResponse(revoked_refresh_tokens=outcome.value)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    user = await UserService(db).get_by_email(identity.subject)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
