"""Main CLI entry point."""

import click
from spendmap.database.factories import create_sqlite_database
from spendmap.logging_setup import configure_logging

# Import and register all commands at module level
from spendmap.cli.commands import (
    category,
    files,
    format,
    import_cmd,
    init_categories,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SPENDMAP_DB_PATH environment variable)",
    envvar="SPENDMAP_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides SPENDMAP_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Spendmap - Bank statement merging and categorization.

    Import statement files from any bank, let spendmap recognize their
    columns, and keep one categorized ledger across all of them.
    """
    ctx.ensure_object(dict)
    configure_logging(log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
files.register_commands(cli)
format.register_commands(cli)
transaction.register_commands(cli)
category.register_commands(cli)
init_categories.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
