"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and embeds the work factor in the hash, so changing
AUTHGATE_BCRYPT_ROUNDS only affects newly created hashes. Comparison
uses bcrypt's own constant-time check.

A stored hash that bcrypt cannot parse is an unverifiable credential:
verify_password returns False instead of raising.
"""

from functools import lru_cache

import bcrypt

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Learn: every call draws a fresh salt, so hashing the same password
    twice yields two different strings. Both verify.
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("authgate-timing-equaliser", rounds=rounds)


def burn_verify(password: str, rounds: int = 12) -> None:
    """Spend one bcrypt verify on a throwaway hash.

    Learn: used when the email is unknown, so a miss costs the same
    wall-clock time as a wrong password for a real account.
    """
    verify_password(password, _dummy_hash(rounds))
