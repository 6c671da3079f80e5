"""CLI error handling helpers."""

import click

from spendmap.domain.errors import DomainError, PersistenceError
from spendmap.logging_setup import get_logger

logger = get_logger("spendmap.cli")


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Render a domain error on stderr and exit with failure.

    Store failures also point at the database option, since a wrong or
    locked path is the usual cause.
    """
    logger.debug("Command %s failed: %r", ctx.command_path, error)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, PersistenceError):
        click.echo("Check --db-path / SPENDMAP_DB_PATH and that no other process holds the database.", err=True)
    ctx.exit(1)
