"""Audit sink — append-only log of authentication outcomes.

Learn: recording is fire-and-forget from the caller's point of view.
Each event is written in its own short session, separate from the
session the login flow is using, and any failure is logged and
dropped. A broken audit table must never turn a correct password
into a failed login (or a wrong one into a 500). A write that hangs
is abandoned after audit_write_timeout_seconds.

Callers commit their own state changes before recording, so an audit
row never describes something that was rolled back.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authgate.config import settings
from authgate.db.models import AuthAuditLog, utcnow
from authgate.events.types import FAILURE, SUCCESS

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuditEvent:
    """One write-once audit record."""

    event_type: str
    outcome: str
    user_id: Optional[uuid.UUID] = None
    username: Optional[str] = None
    failure_reason: Optional[str] = None
    occurred_at: datetime = field(default_factory=utcnow)

    @classmethod
    def success(cls, event_type: str, **kwargs) -> "AuditEvent":
        return cls(event_type=event_type, outcome=SUCCESS, **kwargs)

    @classmethod
    def failure(cls, event_type: str, reason: str, **kwargs) -> "AuditEvent":
        return cls(event_type=event_type, outcome=FAILURE, failure_reason=reason, **kwargs)


class AuditSink:
    """Writes AuditEvents to the auth_audit_logs table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = settings.audit_write_timeout_seconds,
    ):
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    async def record(self, event: AuditEvent) -> None:
        """Append an event. Never raises, and gives up after timeout_seconds."""
        try:
            await asyncio.wait_for(self._write(event), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "audit.write_failed",
                event_type=event.event_type,
                outcome=event.outcome,
                error=f"timed out after {self.timeout_seconds}s",
            )
        except Exception as e:
            logger.warning(
                "audit.write_failed",
                event_type=event.event_type,
                outcome=event.outcome,
                error=str(e),
            )

    async def _write(self, event: AuditEvent) -> None:
        async with self.session_factory() as session:
            session.add(
                AuthAuditLog(
                    user_id=event.user_id,
                    username=event.username,
                    event_type=event.event_type,
                    event_status=event.outcome,
                    failure_reason=event.failure_reason,
                    created_at=event.occurred_at,
                )
            )
            await session.commit()

    async def read_user_events(
        self, user_id: uuid.UUID, limit: int = 100
    ) -> list[AuthAuditLog]:
        """Read a user's audit trail, oldest first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(AuthAuditLog)
                .where(AuthAuditLog.user_id == user_id)
                .order_by(AuthAuditLog.id)
                .limit(limit)
            )
            return list(result.scalars().all())
