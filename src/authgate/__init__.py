"""authgate — authentication and authorization gate for multi-user services.

Credential verification with brute-force lockout, stateless JWT access
tokens, server-tracked refresh tokens, and ownership rules for
mutating per-user resources.
"""

__version__ = "0.1.0"
