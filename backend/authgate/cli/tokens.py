"""Flask CLI commands for incident response on issued tokens."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from authgate.services._shared.errors import LedgerWriteError
from authgate.services.tokens import TokenLifecycleManager

LOGGER = logging.getLogger(__name__)


def _manager() -> TokenLifecycleManager:
    return current_app.extensions["token_lifecycle"]


@click.group("tokens")
def tokens_cli() -> None:
    """Token revocation commands."""


@tokens_cli.command("revoke-all")
@click.argument("identifier")
@with_appcontext
def revoke_all_command(identifier: str) -> None:
    """Revoke every token issued to IDENTIFIER so far (e.g. after a password leak)."""
    manager = _manager()
    if manager.credentials.find_by_identifier(identifier) is None:
        raise click.ClickException(f"Unknown identifier: {identifier}")
    try:
        epoch = manager.revoke_all(identifier)
    except LedgerWriteError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Revoked all tokens of {identifier.strip().lower()} issued up to {epoch.isoformat()}")


@tokens_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Drop revocation records whose tokens have expired anyway."""
    dropped = _manager().ledger.purge_expired()
    LOGGER.info("Revocation ledger purged", extra={"event": "ledger.purged", "status": dropped})
    click.echo(f"Purged {dropped} expired revocation record(s)")
