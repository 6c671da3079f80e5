"""Saved file format management commands."""

import click
from spendmap.cli.context import get_mapping_store, get_merge_service
from spendmap.cli.error_handling import handle_domain_error
from spendmap.domain.errors import DomainError
from spendmap.domain.header_mapping import format_mapping, validate_mapping


@click.group()
def format_group():
    """Manage saved file formats."""
    pass


@format_group.command("list")
@click.pass_context
def list_formats(ctx):
    """List saved file formats."""
    store = get_mapping_store(ctx)

    records = store.list_all()
    if not records:
        click.echo("No saved formats found.")
        return

    click.echo("\nSaved Formats:")
    click.echo("-" * 60)
    for number, record in enumerate(records, start=1):
        is_valid, _ = validate_mapping(record.mapping)
        status = "✓" if is_valid else "✗"
        click.echo(f"{status} {number}. {record.file_name} ({record.currency or 'no currency'})")
        click.echo(f"  Mapping: {format_mapping(record.mapping)}")
        click.echo(f"  Last used: {record.last_used_at:%Y-%m-%d %H:%M}")


@format_group.command("show")
@click.argument("number", type=click.IntRange(min=1))
@click.pass_context
def show_format(ctx, number: int):
    """Show details of a saved format (NUMBER as shown by 'format list')."""
    store = get_mapping_store(ctx)

    records = store.list_all()
    if number > len(records):
        click.echo(f"Error: No saved format number {number}", err=True)
        ctx.exit(1)
    record = records[number - 1]
    is_valid, problems = validate_mapping(record.mapping)

    click.echo(f"\nFormat: {record.file_name}")
    click.echo(f"Signature: {record.signature}")
    click.echo(f"Currency: {record.currency or '(none)'}")
    click.echo(f"Header row: {record.header_row_index + 1}")
    click.echo(f"First data row: {record.data_row_index + 1}")
    click.echo(f"Created: {record.created_at:%Y-%m-%d %H:%M}")
    click.echo(f"Last used: {record.last_used_at:%Y-%m-%d %H:%M}")
    click.echo(f"Valid: {'Yes' if is_valid else 'No'}")
    if not is_valid:
        click.echo(f"Problems: {'; '.join(problems)}")

    click.echo("\nColumn Mappings:")
    for column, tag in enumerate(record.mapping, start=1):
        click.echo(f"  {column}. {tag.value}")

    click.echo("\nFiles:")
    if not record.files:
        click.echo("  (none)")
    for file_name in record.files:
        click.echo(f"  {file_name}")


@format_group.command("delete")
@click.argument("number", type=click.IntRange(min=1))
@click.option("--with-files", is_flag=True, help="Also remove merged files that used this format")
@click.pass_context
def delete_format(ctx, number: int, with_files: bool):
    """Delete a saved format (NUMBER as shown by 'format list')."""
    store = get_mapping_store(ctx)
    merge_service = get_merge_service(ctx)

    try:
        record = store.delete_at(number - 1)
        click.echo(f"Deleted format of '{record.file_name}'")
        if with_files:
            merged = {e.file_name for e in merge_service.list_merged_files()}
            names = [name for name in record.files if name in merged]
            if names:
                removed = merge_service.remove_merged_files(names)
                click.echo(f"Removed {len(names)} files and {removed} transactions")
    except DomainError as e:
        handle_domain_error(ctx, e)


@format_group.command("clear")
@click.confirmation_option(prompt="Delete all saved formats?")
@click.pass_context
def clear_formats(ctx):
    """Delete all saved formats."""
    store = get_mapping_store(ctx)

    try:
        count = store.clear()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted {count} saved formats")


def register_commands(cli):
    """Register format commands with main CLI."""
    cli.add_command(format_group, name="format")
