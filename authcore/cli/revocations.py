"""Flask CLI commands for revocation store maintenance."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from authcore.core.wiring import get_auth_components
from authcore.services.auth.errors import RevocationStoreError

LOGGER = logging.getLogger(__name__)


@click.group("revocations")
@click.option("--verbose", is_flag=True, help="Enable verbose logging for store operations.")
def revocations_cli(verbose: bool) -> None:
    """Inspect and maintain the token revocation store."""
    if verbose:
        logging.getLogger("authcore.infra.revocation").setLevel(logging.DEBUG)
        LOGGER.setLevel(logging.DEBUG)


@revocations_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Delete revocation entries whose tokens have expired."""
    backend = current_app.config["REVOCATION_BACKEND"]
    try:
        removed = get_auth_components().store.sweep()
    except RevocationStoreError as exc:
        raise click.ClickException(f"Sweep failed: {exc}") from exc
    click.echo(f"Swept {removed} expired entr{'y' if removed == 1 else 'ies'} ({backend}).")


@revocations_cli.command("revoke-user")
@click.argument("user_id", type=int)
@with_appcontext
def revoke_user_command(user_id: int) -> None:
    """Revoke every registered refresh token of USER_ID (logout everywhere)."""
    try:
        count = get_auth_components().service.logout_all(user_id)
    except RevocationStoreError as exc:
        raise click.ClickException(f"Revocation failed: {exc}") from exc
    click.echo(f"Revoked {count} token(s) for user {user_id}.")
