"""JWT access token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The access token is short-lived (15 min by default) and carries the
subject (the account's email) plus iat/exp. It is never stored, so it
can't be revoked individually; the short lifetime is the mitigation.
Refresh tokens are NOT JWTs (see services/refresh_token_service.py).

validate() never raises. It reports one of three failure kinds, checked
in this order: structure, signature, expiry. PyJWT verifies the HMAC
over the raw header.payload bytes before it parses any claims, which
is what makes a tampered payload a signature failure rather than a
parsing one.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from authgate.config import MIN_SECRET_BYTES, Settings

ACCESS_TOKEN_TYPE = "access"


class TokenErrorKind(str, enum.Enum):
    MALFORMED = "malformed"
    EXPIRED = "expired"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class TokenValidation:
    """Result of TokenCodec.validate — either a subject or an error kind."""

    subject: Optional[str] = None
    error: Optional[TokenErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TokenCodec:
    """Signs and verifies HS256 access tokens with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl_seconds: int = 900,
    ):
        if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(
                f"Signing secret must be at least {MIN_SECRET_BYTES} bytes"
            )
        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl_seconds = default_ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            default_ttl_seconds=settings.access_token_expire_seconds,
        )

    def issue(
        self,
        subject: str,
        ttl_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed access token for `subject`."""
        issued_at = now or datetime.now(timezone.utc)
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        payload = {
            "sub": subject,
            "type": ACCESS_TOKEN_TYPE,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def validate(self, token: str) -> TokenValidation:
        """Verify a token. Returns the subject, or the reason it was rejected."""
        if not isinstance(token, str) or token.count(".") != 2:
            return TokenValidation(error=TokenErrorKind.MALFORMED)
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            return TokenValidation(error=TokenErrorKind.EXPIRED)
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
            return TokenValidation(error=TokenErrorKind.SIGNATURE_INVALID)
        except (jwt.InvalidTokenError, ValueError, TypeError):
            return TokenValidation(error=TokenErrorKind.MALFORMED)

        subject = payload.get("sub")
        if payload.get("type") != ACCESS_TOKEN_TYPE or not isinstance(subject, str) or not subject:
            return TokenValidation(error=TokenErrorKind.MALFORMED)
        return TokenValidation(subject=subject)
