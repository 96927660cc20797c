"""The identity a request carries once its bearer token checks out."""


class CurrentIdentity:
    """Represents the authenticated identity making the request.

    Learn: This is the unified auth context, passed explicitly down the
    call chain (route → service → ownership check) instead of living
    in ambient per-thread state. `subject` is the normalised email
    the access token was issued for.
    """

    def __init__(self, subject: str):
        self.subject = subject

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CurrentIdentity) and other.subject == self.subject

    def __hash__(self) -> int:
        return hash(self.subject)

    def __repr__(self) -> str:
        return f"CurrentIdentity(subject={self.subject!r})"
