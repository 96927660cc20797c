"""Audit trail: event type constants and the append-only sink."""
