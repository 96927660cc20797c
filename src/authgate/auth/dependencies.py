"""Request authenticator and FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current identity from the request.

The authenticator is purely cryptographic: it validates the bearer
token's signature and expiry and never queries the accounts table.
That trades instant access-token revocation for no database round
trip per request. A missing or bad token is not an error here; the
request just carries no identity, and whichever route needs one
rejects it (get_current_user → 401).
"""

from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Header

from authgate.auth.identity import CurrentIdentity
from authgate.auth.jwt import TokenCodec
from authgate.auth.ownership import Decision, authorize_read
from authgate.config import settings

logger = structlog.get_logger()

BEARER_SCHEME = "bearer"


class RequestAuthenticator:
    """Turns an Authorization header into an identity, or into nothing."""

    def __init__(self, codec: TokenCodec):
        self.codec = codec

    def authenticate(self, authorization: Optional[str]) -> Optional[CurrentIdentity]:
        if not authorization:
            return None
        try:
            scheme, _, token = authorization.partition(" ")
            token = token.strip()
            if scheme.lower() != BEARER_SCHEME or not token:
                return None

            result = self.codec.validate(token)
            if not result.ok:
                logger.debug("auth.token_rejected", reason=result.error.value)
                return None
            return CurrentIdentity(subject=result.subject)
        except Exception:
            # Never raise out of authentication; no identity is the failure mode.
            logger.exception("auth.authenticator_error")
            return None


_codec: Optional[TokenCodec] = None


def get_token_codec() -> TokenCodec:
    """FastAPI dependency — the process-wide codec, built on first use."""
    global _codec
    if _codec is None:
        _codec = TokenCodec.from_settings(settings)
    return _codec


def get_request_authenticator(
    codec: TokenCodec = Depends(get_token_codec),
) -> RequestAuthenticator:
    return RequestAuthenticator(codec)


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no valid auth).

    Learn: This is the "soft" auth dependency. Used for endpoints that
    work both authenticated and unauthenticated. For mandatory auth,
    use get_current_user instead.
    """
    return authenticator.authenticate(authorization)


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no auth).

    Learn: every token failure (malformed, expired, bad signature)
    collapses into the same generic message; the specific kind is
    only logged.
    """
    if authorize_read(identity) is Decision.DENY:
        detail = "Invalid or expired token" if authorization else "Authentication required"
        raise HTTPException(
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
