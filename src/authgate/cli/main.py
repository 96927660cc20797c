"""authgate admin CLI — account unlock and refresh-token cleanup.

Usage:
    authgate-admin unlock alice@example.com     # Clear lock + failure counter
    authgate-admin sweep-tokens                 # Delete expired/revoked refresh tokens

Talks to the database directly (same AUTHGATE_DATABASE_URL as the
server). sweep-tokens is meant to be run from cron or a scheduled job.
"""

from __future__ import annotations

import asyncio
import concurrent.futures

import click

from authgate.auth.dependencies import get_token_codec
from authgate.db.engine import async_session_factory
from authgate.events.audit import AuditSink
from authgate.services.auth_service import AuthService
from authgate.services.refresh_token_service import RefreshTokenService


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


@click.group()
def cli():
    """authgate administration."""


@cli.command()
@click.argument("email")
def unlock(email: str):
    """Unlock a locked account and reset its failed-login counter."""

    async def _unlock():
        async with async_session_factory() as db:
            svc = AuthService(db, AuditSink(async_session_factory), get_token_codec())
            return await svc.unlock(email)

    user = _run(_unlock())
    if user is None:
        click.secho(f"No account for {email}", fg="red", err=True)
        raise SystemExit(1)
    click.secho(f"Unlocked {user.email}", fg="green")


@cli.command("sweep-tokens")
def sweep_tokens():
    """Delete refresh tokens that are expired or revoked."""

    async def _sweep():
        async with async_session_factory() as db:
            deleted = await RefreshTokenService(db).delete_expired_or_revoked()
            await db.commit()
            return deleted

    deleted = _run(_sweep())
    click.echo(f"Deleted {deleted} refresh token(s)")


if __name__ == "__main__":
    cli()
