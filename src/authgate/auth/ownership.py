"""Ownership authorization for per-user resources.

Learn: two different rules, kept apart on purpose:
- read: any authenticated identity may read another user's public data
- write (update/delete): only the identity that owns the resource

Both are pure functions of the identity threaded in from the request
authenticator; neither touches the database.
"""

import enum
from typing import Optional

from authgate.auth.identity import CurrentIdentity


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize_owner(
    resource_owner: str, identity: Optional[CurrentIdentity]
) -> Decision:
    """Allow a mutation only when the caller is the resource's owner.

    The comparison is an exact, case-sensitive match on the canonical
    identity (the normalised email the token was issued for).
    """
    if identity is None or not identity.subject:
        return Decision.DENY
    if identity.subject != resource_owner:
        return Decision.DENY
    return Decision.ALLOW


def authorize_read(identity: Optional[CurrentIdentity]) -> Decision:
    """Allow a read for any authenticated identity."""
    if identity is None or not identity.subject:
        return Decision.DENY
    return Decision.ALLOW
