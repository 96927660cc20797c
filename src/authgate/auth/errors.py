"""Authentication outcome kinds.

Learn: expected failures (wrong password, locked account, duplicate
email) are values, not exceptions. Services return an AuthOutcome and
the HTTP layer maps the kind to a status code and a fixed message
(see api/errors.py). Only infrastructure failures, e.g. the database
being unreachable, are raised.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class AuthError(str, enum.Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_JUST_LOCKED = "account_just_locked"
    ACCOUNT_DISABLED = "account_disabled"
    PASSWORD_POLICY_VIOLATION = "password_policy_violation"
    PASSWORDS_DO_NOT_MATCH = "passwords_do_not_match"
    EMAIL_ALREADY_REGISTERED = "email_already_registered"
    REFRESH_TOKEN_INVALID = "refresh_token_invalid"
    ACCESS_DENIED = "access_denied"


@dataclass(frozen=True)
class AuthOutcome(Generic[T]):
    """Either a value or an AuthError (plus optional per-rule details)."""

    value: Optional[T] = None
    error: Optional[AuthError] = None
    details: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AuthOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AuthError, *details: str) -> "AuthOutcome[T]":
        return cls(error=error, details=tuple(details))
