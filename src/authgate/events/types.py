"""Audit event type and status constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover all event types in the system.
"""

# ─── Login flow ──────────────────────────────────────────

LOGIN_SUCCESS = "LOGIN_SUCCESS"
LOGIN_FAILURE = "LOGIN_FAILURE"
ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
REGISTER = "REGISTER"

# ─── Token / credential lifecycle ───────────────────────

TOKEN_REFRESH = "TOKEN_REFRESH"
LOGOUT = "LOGOUT"
PASSWORD_CHANGED = "PASSWORD_CHANGED"

# ─── Administrative ─────────────────────────────────────

ACCOUNT_UNLOCKED = "ACCOUNT_UNLOCKED"

# ─── Outcomes ───────────────────────────────────────────

SUCCESS = "SUCCESS"
FAILURE = "FAILURE"
