"""Pydantic schemas for registration, login, refresh and password change.

Learn: Pydantic v2 models validate request/response data. Field-level
limits here are only shape checks (non-empty, sane length); password
strength is enforced by PasswordPolicy in the service so the rules
stay configurable and the error lists every failed rule.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


# ─── Requests ───────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1, max_length=256)
    confirm_password: str = Field(..., min_length=1, max_length=256)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256)
    confirm_password: str = Field(..., min_length=1, max_length=256)


# ─── Responses ──────────────────────────────────────────

class UserRead(BaseModel):
    """Public profile — never includes the hash or lockout state."""
    id: uuid.UUID
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


class RevokedResponse(BaseModel):
    revoked_refresh_tokens: int
