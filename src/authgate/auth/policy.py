"""Password strength policy.

A pure predicate over the plaintext, evaluated before hashing.
"""

from dataclasses import dataclass

from authgate.config import Settings


@dataclass(frozen=True)
class PasswordPolicy:
    min_length: int = 12
    require_upper: bool = True
    require_lower: bool = True
    require_digit: bool = True
    require_special: bool = True
    special_chars: str = "@$!%*?&"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordPolicy":
        return cls(
            min_length=settings.password_min_length,
            require_upper=settings.password_require_upper,
            require_lower=settings.password_require_lower,
            require_digit=settings.password_require_digit,
            require_special=settings.password_require_special,
            special_chars=settings.password_special_chars,
        )

    def violations(self, password: str) -> list[str]:
        """Return a human-readable line for every rule the password breaks."""
        problems = []
        if len(password) < self.min_length:
            problems.append(f"must be at least {self.min_length} characters long")
        if self.require_upper and not any(c.isupper() for c in password):
            problems.append("must contain an uppercase letter")
        if self.require_lower and not any(c.islower() for c in password):
            problems.append("must contain a lowercase letter")
        if self.require_digit and not any(c.isdigit() for c in password):
            problems.append("must contain a digit")
        if self.require_special and not any(c in self.special_chars for c in password):
            problems.append(
                f"must contain a special character ({self.special_chars})"
            )
        return problems
