"""AuthError → HTTP response mapping.

Learn: each failure kind gets a fixed status and message. Unknown
email and wrong password share INVALID_CREDENTIALS and therefore the
exact same response, so the API can't be used to enumerate accounts.
"""

from fastapi import HTTPException

from authgate.auth.errors import AuthError, AuthOutcome

ERROR_RESPONSES: dict[AuthError, tuple[int, str]] = {
    AuthError.INVALID_CREDENTIALS: (401, "Invalid email or password"),
    AuthError.ACCOUNT_LOCKED: (403, "Account is locked"),
    AuthError.ACCOUNT_JUST_LOCKED: (
        403,
        "Account has been locked due to too many failed login attempts",
    ),
    AuthError.ACCOUNT_DISABLED: (403, "Account is disabled"),
    AuthError.PASSWORD_POLICY_VIOLATION: (400, "Password does not meet requirements"),
    AuthError.PASSWORDS_DO_NOT_MATCH: (400, "Passwords do not match"),
    AuthError.EMAIL_ALREADY_REGISTERED: (409, "Email already registered"),
    AuthError.REFRESH_TOKEN_INVALID: (401, "Invalid or expired refresh token"),
    AuthError.ACCESS_DENIED: (403, "Access denied"),
}


def raise_for_outcome(outcome: AuthOutcome) -> None:
    """Raise the HTTPException for a failed outcome; no-op on success."""
    if outcome.ok:
        return
    status_code, message = ERROR_RESPONSES[outcome.error]
    if outcome.details:
        message = f"{message}: {'; '.join(outcome.details)}"
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    raise HTTPException(status_code=status_code, detail=message, headers=headers)
