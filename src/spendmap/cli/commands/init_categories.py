"""Initialize default categories."""

import click
from spendmap.cli.context import get_category_service
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.errors import DomainError


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Add missing default categories even if categories exist")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize the category list with the default categories."""
    service = get_category_service(ctx)

    existing = service.list_categories()
    if existing and not force:
        click.echo("Categories already exist. Use --force to add missing defaults.")
        return

    try:
        created = service.ensure_defaults(merge=force)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if created == 0:
        click.echo("All default categories already exist.")
    else:
        click.echo(f"Successfully created {created} categories.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
