"""Merged file management commands."""

import click
from spendmap.cli.context import get_merge_service
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.errors import DomainError


@click.group()
def files_group():
    """Manage merged statement files."""
    pass


@files_group.command("list")
@click.pass_context
def list_files(ctx):
    """List merged files."""
    service = get_merge_service(ctx)

    entries = service.list_merged_files()
    if not entries:
        click.echo("No merged files found.")
        return

    click.echo(f"\nMerged files ({len(entries)}):")
    click.echo("-" * 80)
    click.echo(f"{'':<2} {'File':<36} {'Currency':<9} {'Transactions':>12}  {'Added':<16}")
    click.echo("-" * 80)
    for entry in entries:
        mark = "*" if entry.selected else " "
        count = service.transaction_count(entry.file_name)
        click.echo(
            f"{mark:<2} {entry.file_name[:36]:<36} {entry.currency:<9} {count:>12}  "
            f"{entry.date_added:%Y-%m-%d %H:%M}"
        )
    click.echo("\n* = included in transaction views")


@files_group.command("remove")
@click.argument("file_names", nargs=-1, required=True)
@click.pass_context
def remove_files(ctx, file_names: tuple[str, ...]):
    """Remove merged files and their transactions."""
    service = get_merge_service(ctx)

    try:
        removed = service.remove_merged_files(list(file_names))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed {len(set(file_names))} files and {removed} transactions")


@files_group.command("select")
@click.argument("file_name")
@click.pass_context
def select_file(ctx, file_name: str):
    """Include a merged file in transaction views."""
    service = get_merge_service(ctx)

    try:
        service.set_selected(file_name, True)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Selected '{file_name}'")


@files_group.command("deselect")
@click.argument("file_name")
@click.pass_context
def deselect_file(ctx, file_name: str):
    """Hide a merged file from transaction views without removing it."""
    service = get_merge_service(ctx)

    try:
        service.set_selected(file_name, False)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deselected '{file_name}'")


@files_group.command("clear")
@click.confirmation_option(prompt="Remove all merged files and transactions?")
@click.pass_context
def clear_files(ctx):
    """Remove all merged files and the whole ledger."""
    service = get_merge_service(ctx)

    try:
        files, transactions = service.clear_all()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Removed {files} files and {transactions} transactions")


def register_commands(cli):
    """Register files commands with main CLI."""
    cli.add_command(files_group, name="files")
