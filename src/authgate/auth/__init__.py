"""Authentication and authorization.

Learn: Three layers, leaf first:
1. password.py / policy.py / jwt.py — hashing, strength rules, token codec
2. dependencies.py — per-request bearer token → CurrentIdentity (stateless)
3. ownership.py — owner-only writes, any-authenticated reads

The stateful parts (lockout counter, refresh tokens, audit trail)
live in services/.
"""
